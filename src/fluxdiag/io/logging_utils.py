"""
logging_utils.py
================

Logging for fluxdiag runs.

Scripts call setup_logger() once with the run's output directory; library
modules never log themselves. They raise, or emit warnings (FluxLevelWarning
for off-grid flux levels), which capture_warnings() folds into the same log.

Log lines look like

    2024-05-01 12:00:00 | INFO     | fluxdiag | Bandwidth: average eps=0.0125
"""

import logging
import sys
from pathlib import Path


LOGGER_NAME = "fluxdiag"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(level) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logger(log_path: Path, level: str = "INFO", console: bool = True) -> logging.Logger:
    """
    Configure the "fluxdiag" logger for one run.

    Parameters
    ----------
    log_path : Path
        Run log file (e.g. out_dir/run.log). Parent directories are created;
        an existing file is overwritten.
    level : str or int
        "DEBUG", "INFO", "WARNING", "ERROR" or a logging constant. Unknown
        names fall back to INFO.
    console : bool
        Also echo to stdout.

    Returns
    -------
    logger : logging.Logger
        If the logger already has handlers (a second call in the same
        process) it is returned unchanged, so profiles computed in a loop do
        not duplicate every line.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    log_path = Path(log_path).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    lvl = _level(level)
    logger.setLevel(lvl)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.FileHandler(log_path, mode="w", encoding="utf-8")]
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    for h in handlers:
        h.setLevel(lvl)
        h.setFormatter(formatter)
        logger.addHandler(h)

    logger.debug("Logger initialized (level=%s)", logging.getLevelName(lvl))
    logger.info("Logging to file: %s", log_path)
    return logger


def capture_warnings(logger: logging.Logger) -> None:
    """
    Route warnings.warn(...) from library modules (e.g. FluxLevelWarning) into the log.
    """
    logging.captureWarnings(True)
    py_warnings = logging.getLogger("py.warnings")
    for h in logger.handlers:
        if h not in py_warnings.handlers:
            py_warnings.addHandler(h)
