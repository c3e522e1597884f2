"""
style.py
========

Shared matplotlib settings for profile and histogram figures.
"""

from __future__ import annotations

from typing import Optional

import matplotlib.pyplot as plt


MPL_DEFAULTS = {
    "figure.dpi": 120,
    "savefig.dpi": 160,
    "axes.grid": True,
    "grid.alpha": 0.25,
    "axes.titlesize": 11,
    "axes.labelsize": 11,
    "legend.fontsize": 9,
    "lines.markersize": 3,
    "image.cmap": "viridis",
}


def apply_mpl_defaults() -> None:
    """Call once per plotting session (e.g. at the start of a script)."""
    plt.rcParams.update(MPL_DEFAULTS)


def run_header(ax: plt.Axes, *, run_name: str, subtitle: Optional[str] = None) -> None:
    """Title "Run: <name>" with an optional second line."""
    title = f"Run: {run_name}" if run_name else "Run: (unnamed)"
    if subtitle:
        title = f"{title}\n{subtitle}"
    ax.set_title(title)
