"""
plot_profiles.py
================

1D profiles as functions of the flux level ψ0:
  - flux-surface average <f>(ψ0)
  - safety factor q(ψ0), optionally against a reference curve

Levels that came back as NaN (off-grid levels) are left as gaps.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt

from .style import run_header


def plot_flux_profiles(
    *,
    run_name: str,
    levels: np.ndarray,
    average: np.ndarray,
    q: np.ndarray,
    average_label: str = "<f>",
    q_reference: Optional[np.ndarray] = None,
) -> Tuple[plt.Figure, np.ndarray]:
    """
    Two-panel profile plot: <f>(ψ0) on top, q(ψ0) below.
    """
    levels = np.asarray(levels, float)
    average = np.asarray(average, float)
    q = np.asarray(q, float)
    if not (levels.shape == average.shape == q.shape):
        raise ValueError("levels, average and q must have the same shape.")

    fig, axes = plt.subplots(2, 1, figsize=(8, 6), sharex=True)
    run_header(axes[0], run_name=run_name, subtitle="Flux-surface quantities vs ψ0")

    axes[0].plot(levels, average, "o-", lw=2.0, ms=3, label=f"{average_label}(ψ0)")
    axes[0].set_ylabel(average_label)
    axes[0].legend(loc="best")
    axes[0].grid(True, alpha=0.25)

    axes[1].plot(levels, q, "o-", lw=2.0, ms=3, label="q(ψ0)")
    if q_reference is not None:
        axes[1].plot(levels, np.asarray(q_reference, float), "k--", lw=1.2, label="closed form")
    axes[1].set_ylabel("q")
    axes[1].set_xlabel("ψ0")
    axes[1].legend(loc="best")
    axes[1].grid(True, alpha=0.25)

    return fig, np.asarray(axes)
