"""
fluxdiag.geometry.grid
======================

Structured (R,Z) grids with Gauss-Legendre nodes in every cell.

This module is intentionally *not* tied to flux-surface diagnostics.
It provides the sampling domain that every field, weight vector and
reduction in fluxdiag is defined on.

Layout
------
A grid with N cells and n nodes per cell in one direction has n*N nodes.
Inside cell i, node k sits at

    x0 + h * (i + (xi_k + 1) / 2)

where xi_k are the ascending Gauss-Legendre roots on [-1, 1] and h = lx / N.

2D samples are stored as flat arrays in row-major order
(y index first, then x index), i.e. node (iy, ix) lives at

    iy * (n * Nx) + ix

Every reduction in fluxdiag relies on this ordering.

Supported config shapes
-----------------------
We read grid settings from cfg["grid"] by convention.

grid:
  R: {min: 3.0, max: 7.0, N: 160}
  Z: {min: -2.0, max: 2.0, N: 160}
  n: 3
  bc: {x: DIR, y: DIR}

or (also accepted):
grid:
  R_min: 3.0
  R_max: 7.0
  Nx: 160
  Z_min: -2.0
  Z_max: 2.0
  Ny: 160
  n: 3
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Tuple

import numpy as np
from scipy.special import roots_legendre


BOUNDARY_CONDITIONS = ("PER", "DIR", "NEU", "DIR_NEU", "NEU_DIR")


# -----------------------------------------------------------------------------
# Gauss-Legendre helpers
# -----------------------------------------------------------------------------

@lru_cache(maxsize=None)
def _legendre(n: int) -> Tuple[np.ndarray, np.ndarray]:
    xi, w = roots_legendre(int(n))
    xi = np.asarray(xi, dtype=float)
    w = np.asarray(w, dtype=float)
    xi.setflags(write=False)
    w.setflags(write=False)
    return xi, w


def _check_axis(lo: float, hi: float, n: int, N: int, bc: str, name: str) -> None:
    if not (np.isfinite(lo) and np.isfinite(hi)):
        raise ValueError(f"{name} bounds must be finite numbers, got ({lo}, {hi}).")
    if hi <= lo:
        raise ValueError(f"Require {name}1 > {name}0, got {hi} <= {lo}")
    if int(n) < 1:
        raise ValueError(f"Number of nodes per cell must be >= 1 (got {n}).")
    if int(N) < 1:
        raise ValueError(f"Number of cells in {name} must be >= 1 (got {N}).")
    if bc not in BOUNDARY_CONDITIONS:
        raise ValueError(f"Unknown boundary condition {bc!r}. Supported: {BOUNDARY_CONDITIONS}")


def _abscissas_1d(x0: float, h: float, n: int, N: int) -> np.ndarray:
    xi, _ = _legendre(n)
    cells = np.arange(N, dtype=float)[:, None]
    return (x0 + h * (cells + 0.5 * (xi[None, :] + 1.0))).ravel()


def _weights_1d(h: float, n: int, N: int) -> np.ndarray:
    _, w = _legendre(n)
    return np.tile(0.5 * h * w, N)


# -----------------------------------------------------------------------------
# Public grid containers
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Grid1d:
    """
    One-dimensional grid of N cells with n Gauss-Legendre nodes each.
    """
    x0: float
    x1: float
    n: int
    N: int
    bc: str = "DIR"

    def __post_init__(self) -> None:
        _check_axis(self.x0, self.x1, self.n, self.N, self.bc, "x")

    @property
    def lx(self) -> float:
        return float(self.x1 - self.x0)

    @property
    def h(self) -> float:
        return self.lx / self.N

    @property
    def size(self) -> int:
        return int(self.n * self.N)

    def abscissas(self) -> np.ndarray:
        return _abscissas_1d(self.x0, self.h, self.n, self.N)


@dataclass(frozen=True)
class Grid2d:
    """
    Immutable description of a 2D (x,y) = (R,Z) sampling domain.

    Shapes
    ------
    abscissas():  x (n*Nx,), y (n*Ny,)
    meshgrid():   XX, YY (n*Ny, n*Nx)
    samples:      flat (n*n*Nx*Ny,), y-major
    """
    x0: float
    x1: float
    y0: float
    y1: float
    n: int
    Nx: int
    Ny: int
    bcx: str = "DIR"
    bcy: str = "DIR"

    def __post_init__(self) -> None:
        _check_axis(self.x0, self.x1, self.n, self.Nx, self.bcx, "x")
        _check_axis(self.y0, self.y1, self.n, self.Ny, self.bcy, "y")

    @property
    def lx(self) -> float:
        return float(self.x1 - self.x0)

    @property
    def ly(self) -> float:
        return float(self.y1 - self.y0)

    @property
    def hx(self) -> float:
        return self.lx / self.Nx

    @property
    def hy(self) -> float:
        return self.ly / self.Ny

    @property
    def shape(self) -> Tuple[int, int]:
        return (int(self.n * self.Ny), int(self.n * self.Nx))

    @property
    def size(self) -> int:
        return int(self.n * self.n * self.Nx * self.Ny)

    def abscissas(self) -> Tuple[np.ndarray, np.ndarray]:
        x = _abscissas_1d(self.x0, self.hx, self.n, self.Nx)
        y = _abscissas_1d(self.y0, self.hy, self.n, self.Ny)
        return x, y

    def meshgrid(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Node coordinates as 2D arrays shaped (n*Ny, n*Nx).

        indexing="xy" puts y on axis 0, so ravel() yields the y-major order.
        """
        x, y = self.abscissas()
        return np.meshgrid(x, y, indexing="xy")


def create_weights(grid: Grid1d | Grid2d) -> np.ndarray:
    """
    Quadrature weights for every node of `grid`.

    Summing the weights gives the length (1D) or area (2D) of the domain,
    and weights @ f integrates any polynomial of degree < 2n per cell exactly.
    """
    if isinstance(grid, Grid1d):
        return _weights_1d(grid.h, grid.n, grid.N)
    if isinstance(grid, Grid2d):
        wx = _weights_1d(grid.hx, grid.n, grid.Nx)
        wy = _weights_1d(grid.hy, grid.n, grid.Ny)
        return np.outer(wy, wx).ravel()
    raise TypeError(f"create_weights expects a Grid1d or Grid2d, got {type(grid).__name__}")


# -----------------------------------------------------------------------------
# Main builder entry point
# -----------------------------------------------------------------------------

def build_grid(cfg: Dict[str, Any]) -> Grid2d:
    """
    Build a Grid2d from a run config dict.

    Parameters
    ----------
    cfg:
      Usually the loaded run YAML. We read cfg["grid"].

    Returns
    -------
    Grid2d
    """
    grid_cfg = _get_grid_cfg(cfg)

    Rmin, Rmax, Nx = _read_axis_cfg(grid_cfg, "R")
    Zmin, Zmax, Ny = _read_axis_cfg(grid_cfg, "Z")
    n = _as_int(grid_cfg.get("n", 3), "grid.n")

    bc = grid_cfg.get("bc", {}) or {}
    if not isinstance(bc, dict):
        raise TypeError("cfg['grid']['bc'] must be a dict with keys 'x' and 'y'.")
    bcx = str(bc.get("x", "DIR")).strip().upper()
    bcy = str(bc.get("y", "DIR")).strip().upper()

    return Grid2d(x0=Rmin, x1=Rmax, y0=Zmin, y1=Zmax, n=n, Nx=Nx, Ny=Ny, bcx=bcx, bcy=bcy)


# -----------------------------------------------------------------------------
# Config parsing helpers
# -----------------------------------------------------------------------------

def _get_grid_cfg(cfg: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(cfg, dict):
        raise TypeError("cfg must be a dict.")
    grid_cfg = cfg.get("grid", None)
    if grid_cfg is None:
        raise ValueError("Missing required config section: grid")
    if not isinstance(grid_cfg, dict):
        raise TypeError("cfg['grid'] must be a dict.")
    return grid_cfg


def _read_axis_cfg(grid_cfg: Dict[str, Any], axis: str) -> Tuple[float, float, int]:
    """
    Read axis config for R or Z.

    Accepts:
      grid_cfg["R"] = {"min":..., "max":..., "N":...}
    or:
      grid_cfg["R_min"], grid_cfg["R_max"], grid_cfg["Nx"]  (Ny for Z)

    Returns:
      (amin, amax, N)
    """
    axis = axis.upper()
    if axis not in ("R", "Z"):
        raise ValueError("axis must be 'R' or 'Z'.")
    count_key = "Nx" if axis == "R" else "Ny"

    nested = grid_cfg.get(axis, None)
    if isinstance(nested, dict):
        amin = _as_float(nested.get("min", None), f"grid.{axis}.min")
        amax = _as_float(nested.get("max", None), f"grid.{axis}.max")
        N = _as_int(nested.get("N", grid_cfg.get(count_key, None)), f"grid.{axis}.N")
        return amin, amax, N

    amin = _as_float(grid_cfg.get(f"{axis}_min", None), f"grid.{axis}_min")
    amax = _as_float(grid_cfg.get(f"{axis}_max", None), f"grid.{axis}_max")
    N = _as_int(grid_cfg.get(count_key, None), f"grid.{count_key}")
    return amin, amax, N


def _as_float(x: Any, name: str) -> float:
    if x is None:
        raise ValueError(f"Missing required config value: {name}")
    try:
        return float(x)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid float for {name}: {x!r}") from e


def _as_int(x: Any, name: str) -> int:
    if x is None:
        raise ValueError(f"Missing required config value: {name}")
    try:
        xi = int(x)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid int for {name}: {x!r}") from e
    if xi < 1:
        raise ValueError(f"{name} must be >= 1 (got {xi})")
    return xi
