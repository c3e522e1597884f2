# src/fluxdiag/io/config.py
"""
fluxdiag.io.config
==================

YAML loading and consistency checks for profile runs.

What belongs here
-----------------
- Load YAML safely and normalize structures
- Check a run config for consistency before anything expensive is built
- Small conventions (profile levels, meta name)

What does NOT belong here
-------------------------
- Building grids (that's fluxdiag.geometry.grid.build_grid)
- Building geometries (that's fluxdiag.physics.geometries.build_geometry)

Expected layout
---------------
meta:
  name: circular_R0_5
grid:
  R: {min: 3.0, max: 7.0, N: 160}
  Z: {min: -2.0, max: 2.0, N: 160}
  n: 2
geometry:
  type: circular
  R0: 5.0
  I0: 1.0
profiles:
  levels: {min: 0.1, max: 1.9, num: 19}
  average: psip
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping

import numpy as np
import yaml


AVERAGEABLE_QUANTITIES = ("ones", "psip", "gradpsip", "ipol")
GEOMETRY_TYPES = ("circular", "guenther")


# -----------------------------------------------------------------------------
# YAML loading + normalization
# -----------------------------------------------------------------------------

def load_yaml(path: Path) -> Dict[str, Any]:
    """
    Load YAML from path using safe loader.

    Normalization:
      - empty YAML -> {}
      - top-level must be a dict (mapping); otherwise error
    """
    path = Path(path).expanduser().resolve()
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise TypeError(f"Top-level YAML must be a mapping/dict: {path}")

    return data


# -----------------------------------------------------------------------------
# Consistency check
# -----------------------------------------------------------------------------

def _section(cfg: Mapping[str, Any], name: str) -> Dict[str, Any]:
    sec = cfg.get(name, None)
    if sec is None:
        raise ValueError(f"Missing required config section: {name}")
    if not isinstance(sec, dict):
        raise TypeError(f"Config section '{name}' must be a mapping/dict.")
    return sec


def _positive_int(value: Any, name: str) -> int:
    try:
        iv = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid int for {name}: {value!r}") from e
    if iv < 1:
        raise ValueError(f"{name} must be >= 1 (got {iv})")
    return iv


def check_consistency(cfg: Mapping[str, Any]) -> List[str]:
    """
    Validate a run config.

    Raises ValueError/TypeError for settings that would make the run fail.
    Returns a list of warning messages for settings that are ignored or suspicious;
    callers decide whether to log them.
    """
    if not isinstance(cfg, Mapping):
        raise TypeError("cfg must be a mapping/dict.")

    warn: List[str] = []

    grid = _section(cfg, "grid")
    n = _positive_int(grid.get("n", 3), "grid.n")
    if n > 20:
        warn.append(f"grid.n={n} is unusually high; Gauss-Legendre nodes beyond ~20 per cell add little.")

    geo = _section(cfg, "geometry")
    gtype = str(geo.get("type", "circular")).strip().lower()
    if gtype not in GEOMETRY_TYPES:
        raise ValueError(f"Unsupported geometry.type={geo.get('type')!r}. Supported: {list(GEOMETRY_TYPES)}")
    if geo.get("R0", None) is None:
        raise ValueError("Missing required config value: geometry.R0")
    R0 = float(geo["R0"])
    if R0 <= 0.0:
        raise ValueError(f"geometry.R0 must be > 0, got {R0}")
    R_cfg = grid.get("R", {}) if isinstance(grid.get("R", {}), dict) else {}
    Rmin = R_cfg.get("min", grid.get("R_min", None))
    if Rmin is not None and float(Rmin) <= 0.0:
        # alpha ~ 1/R
        raise ValueError("grid R range must stay at R > 0 for the safety factor.")

    prof = _section(cfg, "profiles")
    levels = prof.get("levels", None)
    if not isinstance(levels, dict):
        raise ValueError("profiles.levels must be a mapping with keys min, max, num.")
    lo = float(levels.get("min", np.nan))
    hi = float(levels.get("max", np.nan))
    num = _positive_int(levels.get("num", None), "profiles.levels.num")
    if not (np.isfinite(lo) and np.isfinite(hi)):
        raise ValueError("profiles.levels.min and profiles.levels.max must be finite numbers.")
    if num > 1 and hi <= lo:
        raise ValueError(f"Empty level range: profiles.levels.max={hi} <= min={lo}")

    quantity = str(prof.get("average", "psip")).strip().lower()
    if quantity not in AVERAGEABLE_QUANTITIES:
        raise ValueError(
            f"Unknown profiles.average={prof.get('average')!r}. Supported: {list(AVERAGEABLE_QUANTITIES)}"
        )

    if quantity == "ones":
        warn.append("profiles.average='ones' always averages to 1; useful only as a sanity check.")
    if "epsilon" in prof and prof["epsilon"] is not None and float(prof["epsilon"]) <= 0.0:
        raise ValueError(f"profiles.epsilon must be > 0 when given, got {prof['epsilon']}")
    if "I0" in geo and float(geo["I0"]) == 0.0:
        warn.append("geometry.I0 == 0 makes the safety factor identically zero.")

    return warn


# -----------------------------------------------------------------------------
# Small conventions
# -----------------------------------------------------------------------------

def profile_levels(cfg: Mapping[str, Any]) -> np.ndarray:
    """Flux levels psi0 from profiles.levels as np.linspace(min, max, num)."""
    levels = _section(cfg, "profiles").get("levels", {}) or {}
    return np.linspace(float(levels["min"]), float(levels["max"]), int(levels["num"]))


def pick_meta_name(cfg: Mapping[str, Any], default: str = "") -> str:
    """meta.name if present, else default."""
    meta = cfg.get("meta") if isinstance(cfg, Mapping) else None
    if isinstance(meta, dict) and meta.get("name"):
        return str(meta["name"]).strip()
    return default
