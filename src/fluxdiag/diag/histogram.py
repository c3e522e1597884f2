"""
histogram.py
============

Nearest-bin histograms of sampled signals on 1D and 2D grids.

Used to estimate (joint) probability densities of fluctuation signals, e.g.
the amplitude distribution of two probes and their correlation.

Binning rules
-------------
• Counting: a sample x goes to bin floor((x - x0) / h), clipped to the grid.
• Lookup:   __call__(x) reads bin floor((x - x0) / h + 0.5), clipped.
• Counts are normalized so the fullest bin has value 1.

Bins are grid cells, so histogram grids must have one node per cell (n == 1).
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from fluxdiag.geometry.grid import Grid1d, Grid2d
from fluxdiag.numerics.ops import reduce_max, scal


def _bin_index(x: np.ndarray, x0: float, h: float, nbins: int, shift: float = 0.0) -> np.ndarray:
    idx = np.floor((np.asarray(x, dtype=float) - x0) / h + shift)
    return np.clip(idx, 0, nbins - 1).astype(int)


def _normalize_counts(count: np.ndarray) -> np.ndarray:
    amp_max = reduce_max(count, initial=0.0)
    if amp_max <= 0.0:
        return count
    return scal(count, 1.0 / amp_max)


def _require_single_node(grid, name: str) -> None:
    if grid.n != 1:
        raise ValueError(f"{name} needs a grid with one node per cell (n == 1), got n={grid.n}.")


class Histogram1D:
    """
    Normalized histogram of `values` with the cells of `grid` as bins.

    Parameters
    ----------
    grid : Grid1d
        Bin layout (x0, h, N). Must have n == 1.
    values : sequence of float
        Samples to count.
    """

    def __init__(self, grid: Grid1d, values: Sequence[float]):
        _require_single_node(grid, "Histogram1D")
        self._g1d = grid
        self._in = np.array(values, dtype=float).ravel()
        self._binwidth = grid.h

        count = np.zeros(grid.size)
        bins = _bin_index(self._in, grid.x0, self._binwidth, grid.size)
        np.add.at(count, bins, 1.0)
        self._count = _normalize_counts(count)

    @property
    def binwidth(self) -> float:
        return self._binwidth

    @property
    def counts(self) -> np.ndarray:
        return self._count.copy()

    def __call__(self, x):
        bins = _bin_index(x, self._g1d.x0, self._binwidth, self._g1d.size, shift=0.5)
        return self._count[bins]


class Histogram2D:
    """
    Normalized joint histogram of (xs, ys) with the cells of `grid` as bins.

    The flat bin index is biny * Nx + binx.
    """

    def __init__(self, grid: Grid2d, xs: Sequence[float], ys: Sequence[float]):
        _require_single_node(grid, "Histogram2D")
        xs = np.array(xs, dtype=float).ravel()
        ys = np.array(ys, dtype=float).ravel()
        if xs.shape != ys.shape:
            raise ValueError(f"xs and ys must have the same length, got {xs.size} and {ys.size}")

        self._g2d = grid
        self._inx = xs
        self._iny = ys
        self._binwidthx = grid.hx
        self._binwidthy = grid.hy

        count = np.zeros(grid.Nx * grid.Ny)
        binx = _bin_index(xs, grid.x0, self._binwidthx, grid.Nx)
        biny = _bin_index(ys, grid.y0, self._binwidthy, grid.Ny)
        np.add.at(count, biny * grid.Nx + binx, 1.0)
        self._count = _normalize_counts(count)

    @property
    def binwidths(self) -> Tuple[float, float]:
        return self._binwidthx, self._binwidthy

    @property
    def counts(self) -> np.ndarray:
        return self._count.copy()

    def __call__(self, x, y):
        g = self._g2d
        binx = _bin_index(x, g.x0, self._binwidthx, g.Nx, shift=0.5)
        biny = _bin_index(y, g.y0, self._binwidthy, g.Ny, shift=0.5)
        return self._count[biny * g.Nx + binx]


def normalize_to_fluc(values: Sequence[float]) -> Tuple[np.ndarray, float, float]:
    """
    Normalize a signal to zero mean and unit standard deviation.

    Returns
    -------
    normalized : np.ndarray
        (values - mean) / sigma
    sigma : float
        Population standard deviation sqrt(<x²> - <x>²).
    mean : float
    """
    x = np.array(values, dtype=float).ravel()
    if x.size == 0:
        raise ValueError("normalize_to_fluc needs at least one sample.")
    ex = float(np.mean(x))
    exx = float(np.mean(x * x))
    sigma = float(np.sqrt(max(exx - ex * ex, 0.0)))
    if sigma == 0.0:
        raise ValueError("Signal has zero variance; cannot normalize to fluctuations.")
    return (x - ex) / sigma, sigma, ex
