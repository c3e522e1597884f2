"""
ops.py
======

Elementwise construction and reductions on grid-sampled fields.

Fields are plain 1D numpy arrays holding one sample per grid node in the
grid's flat (y-major) order. This module only knows how to fill and reduce
them; it knows nothing about flux surfaces.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from fluxdiag.geometry.grid import Grid1d, Grid2d


def evaluate(f: Callable, grid: Grid1d | Grid2d) -> np.ndarray:
    """
    Sample f on every node of grid.

    f is called once with the full node meshgrid, so it must accept numpy
    arrays (wrap scalar-only callables with make_binary_functor(..., vectorize=True)).
    Scalar results are broadcast to the node count.

    Returns
    -------
    values : np.ndarray, shape (grid.size,)
    """
    if isinstance(grid, Grid2d):
        XX, YY = grid.meshgrid()
        vals = np.asarray(f(XX, YY), dtype=float)
        return np.array(np.broadcast_to(vals, XX.shape), dtype=float).ravel()
    if isinstance(grid, Grid1d):
        x = grid.abscissas()
        vals = np.asarray(f(x), dtype=float)
        return np.array(np.broadcast_to(vals, x.shape), dtype=float)
    raise TypeError(f"evaluate expects a Grid1d or Grid2d, got {type(grid).__name__}")


def weighted_dot(a: np.ndarray, w: np.ndarray, b: np.ndarray) -> float:
    """Return sum_i a_i w_i b_i."""
    a = np.asarray(a, dtype=float)
    w = np.asarray(w, dtype=float)
    b = np.asarray(b, dtype=float)
    if not (a.shape == w.shape == b.shape):
        raise ValueError(f"weighted_dot shape mismatch: {a.shape}, {w.shape}, {b.shape}")
    return float(np.sum(a * w * b))


def scal(x: np.ndarray, alpha: float) -> np.ndarray:
    """Return alpha * x as a new array."""
    return float(alpha) * np.asarray(x, dtype=float)


def reduce_max(x: np.ndarray, initial: float = -np.inf) -> float:
    """Fold x with max, starting from `initial`."""
    return float(np.max(np.asarray(x, dtype=float), initial=initial))


def reduce_min(x: np.ndarray, initial: float = np.inf) -> float:
    """Fold x with min, starting from `initial`."""
    return float(np.min(np.asarray(x, dtype=float), initial=initial))
