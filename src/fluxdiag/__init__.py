"""
fluxdiag
========

Flux-surface averages and safety-factor profiles of scalar fields sampled on
a structured (R,Z) grid.

The level-set integrals are evaluated with a Gaussian-regularized Dirac delta
of the flux function, so no contour extraction is needed. Fields and their
analytic derivatives are passed around as BinaryFunctor objects bundled with
value semantics (copies never share state).
"""

from .geometry.grid import Grid1d, Grid2d, build_grid, create_weights
from .numerics.ops import evaluate, weighted_dot
from .physics.fluxfunctions import (
    BinaryFunctor,
    BinaryFunctorAdapter,
    BinaryFunctorsLvl1,
    BinaryFunctorsLvl2,
    BinarySymmTensorLvl1,
    BinaryVectorLvl0,
    CloneableBinaryFunctor,
    Constant,
    EmptyHandleError,
    Handle,
    make_binary_functor,
)
from .physics.geometries import (
    TokamakGeometry,
    build_geometry,
    circular_geometry,
    circular_safety_factor,
    guenther_geometry,
)
from .physics.average import (
    Alpha,
    DegenerateBandwidthError,
    DeltaFunction,
    FluxLevelWarning,
    FluxSurfaceAverage,
    SafetyFactor,
    calibrate_bandwidth,
)

__version__ = "0.1.0"

__all__ = [
    "Grid1d",
    "Grid2d",
    "build_grid",
    "create_weights",
    "evaluate",
    "weighted_dot",
    "BinaryFunctor",
    "BinaryFunctorAdapter",
    "BinaryFunctorsLvl1",
    "BinaryFunctorsLvl2",
    "BinarySymmTensorLvl1",
    "BinaryVectorLvl0",
    "CloneableBinaryFunctor",
    "Constant",
    "EmptyHandleError",
    "Handle",
    "make_binary_functor",
    "TokamakGeometry",
    "build_geometry",
    "circular_geometry",
    "circular_safety_factor",
    "guenther_geometry",
    "Alpha",
    "DegenerateBandwidthError",
    "DeltaFunction",
    "FluxLevelWarning",
    "FluxSurfaceAverage",
    "SafetyFactor",
    "calibrate_bandwidth",
]
