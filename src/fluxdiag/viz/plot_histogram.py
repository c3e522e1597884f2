"""
plot_histogram.py
=================

Marginal and joint probability densities from fluxdiag.diag.histogram.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
import matplotlib.pyplot as plt

from .style import run_header


def plot_joint_pdf(
    *,
    run_name: str,
    a1: np.ndarray,
    p_a1: np.ndarray,
    a2: np.ndarray,
    p_a2: np.ndarray,
    p_a1a2: np.ndarray,
) -> Tuple[plt.Figure, np.ndarray]:
    """
    P(A1), P(A2) and P(A1,A2) side by side.

    p_a1a2 has shape (len(a2), len(a1)) (A2 along axis 0).
    """
    a1 = np.asarray(a1, float)
    a2 = np.asarray(a2, float)
    p_a1a2 = np.asarray(p_a1a2, float)
    if p_a1a2.shape != (a2.size, a1.size):
        raise ValueError(f"p_a1a2 must have shape ({a2.size}, {a1.size}), got {p_a1a2.shape}")

    fig, axes = plt.subplots(1, 3, figsize=(13, 4))
    run_header(axes[0], run_name=run_name, subtitle="Marginal P(A1)")

    axes[0].plot(a1, p_a1, lw=1.5)
    axes[0].set_xlabel("A1 [σ]")
    axes[0].set_ylabel("P (normalized to max)")

    axes[1].plot(a2, p_a2, lw=1.5)
    axes[1].set_title("Marginal P(A2)")
    axes[1].set_xlabel("A2 [σ]")

    im = axes[2].pcolormesh(a1, a2, p_a1a2, shading="auto", cmap="viridis")
    axes[2].set_title("Joint P(A1, A2)")
    axes[2].set_xlabel("A1 [σ]")
    axes[2].set_ylabel("A2 [σ]")
    axes[2].set_aspect("equal", adjustable="box")
    fig.colorbar(im, ax=axes[2])

    return fig, np.asarray(axes)
