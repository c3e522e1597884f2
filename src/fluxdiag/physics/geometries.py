"""
fluxdiag.physics.geometries
===========================

Magnetic geometries: the poloidal flux psip(R,Z), its derivatives and the
poloidal current function ipol(R,Z).

Anything with callable attributes psip, psipR, psipZ (and ipol for the safety
factor) can be handed to the diagnostics in fluxdiag.physics.average. This
module provides TokamakGeometry, which assembles such a provider from functor
bundles, plus two analytic equilibria that are handy for testing:

circular
    psip = ((R - R0)^2 + Z^2) / 2,     ipol = I0
    Flux surfaces are circles of radius r = sqrt(2 psip) around (R0, 0) and
        q(psip) = I0 / sqrt(R0^2 - 2 psip)

guenther
    psip = cos(pi (R - R0) / 2) cos(pi Z / 2),   ipol = I0
    Closed nested surfaces inside |R - R0| < 1, |Z| < 1 with the O-point at
    (R0, 0) where psip = 1.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol, Union

import numpy as np

from .fluxfunctions import (
    BinaryFunctor,
    BinaryFunctorsLvl1,
    BinaryFunctorsLvl2,
    CloneableBinaryFunctor,
    Constant,
)


class GeometryProvider(Protocol):
    """
    Minimal interface consumed by DeltaFunction / FluxSurfaceAverage / SafetyFactor.

    Providers must be deep-copyable: the diagnostics keep their own copy, so
    providers holding locks, open files or similar state raise TypeError.
    """

    psip: Callable
    psipR: Callable
    psipZ: Callable


class TokamakGeometry:
    """
    Geometry provider backed by functor bundles.

    Parameters
    ----------
    psip : BinaryFunctorsLvl1 or BinaryFunctorsLvl2
        Poloidal flux and its derivatives in (R, Z).
    ipol : BinaryFunctorsLvl1, optional
        Poloidal current function and its derivatives. Required for the
        safety factor.
    """

    def __init__(self, psip: BinaryFunctorsLvl1, ipol: Optional[BinaryFunctorsLvl1] = None):
        if not isinstance(psip, BinaryFunctorsLvl1):
            raise TypeError(f"psip must be a BinaryFunctorsLvl1/Lvl2 bundle, got {type(psip).__name__}")
        if ipol is not None and not isinstance(ipol, BinaryFunctorsLvl1):
            raise TypeError(f"ipol must be a BinaryFunctorsLvl1 bundle, got {type(ipol).__name__}")
        self._psip = psip
        self._ipol = ipol

    def __deepcopy__(self, memo) -> "TokamakGeometry":
        return TokamakGeometry(self._psip.clone(), None if self._ipol is None else self._ipol.clone())

    def __copy__(self) -> "TokamakGeometry":
        return self.__deepcopy__({})

    @property
    def psip(self) -> BinaryFunctor:
        return self._psip.f

    @property
    def psipR(self) -> BinaryFunctor:
        return self._psip.dfx

    @property
    def psipZ(self) -> BinaryFunctor:
        return self._psip.dfy

    @property
    def psipRR(self) -> BinaryFunctor:
        return self._lvl2().dfxx

    @property
    def psipRZ(self) -> BinaryFunctor:
        return self._lvl2().dfxy

    @property
    def psipZZ(self) -> BinaryFunctor:
        return self._lvl2().dfyy

    @property
    def ipol(self) -> BinaryFunctor:
        return self._ipol_bundle().f

    @property
    def ipolR(self) -> BinaryFunctor:
        return self._ipol_bundle().dfx

    @property
    def ipolZ(self) -> BinaryFunctor:
        return self._ipol_bundle().dfy

    def _lvl2(self) -> BinaryFunctorsLvl2:
        if not isinstance(self._psip, BinaryFunctorsLvl2):
            raise AttributeError("This geometry was built without second derivatives of psip.")
        return self._psip

    def _ipol_bundle(self) -> BinaryFunctorsLvl1:
        if self._ipol is None:
            raise AttributeError("This geometry was built without a poloidal current function ipol.")
        return self._ipol


# =============================================================================
# Circular flux surfaces
# =============================================================================

class _CircularPsip(CloneableBinaryFunctor):
    def __init__(self, R0: float):
        self.R0 = float(R0)

    def evaluate(self, R, Z):
        return 0.5 * ((R - self.R0) ** 2 + Z ** 2)


class _CircularPsipR(CloneableBinaryFunctor):
    def __init__(self, R0: float):
        self.R0 = float(R0)

    def evaluate(self, R, Z):
        return R - self.R0


class _CircularPsipZ(CloneableBinaryFunctor):
    def evaluate(self, R, Z):
        return Z + 0.0 * R


def circular_geometry(R0: float, I0: float = 1.0) -> TokamakGeometry:
    """Concentric circular flux surfaces around (R0, 0) with constant ipol = I0."""
    psip = BinaryFunctorsLvl2(
        _CircularPsip(R0),
        _CircularPsipR(R0),
        _CircularPsipZ(),
        Constant(1.0),
        Constant(0.0),
        Constant(1.0),
    )
    ipol = BinaryFunctorsLvl1(Constant(I0), Constant(0.0), Constant(0.0))
    return TokamakGeometry(psip, ipol)


def circular_safety_factor(psi, R0: float, I0: float = 1.0):
    """
    Closed-form q(psi) for circular_geometry(R0, I0).

    q = (1/2pi) * loop integral of I0 / (R |grad psi|) dl over the circle of
    radius r = sqrt(2 psi), which evaluates to I0 / sqrt(R0^2 - r^2).
    """
    psi = np.asarray(psi, dtype=float)
    return float(I0) / np.sqrt(float(R0) ** 2 - 2.0 * psi)


# =============================================================================
# Guenther-type (cosine) flux surfaces
# =============================================================================

class _GuentherPsip(CloneableBinaryFunctor):
    def __init__(self, R0: float):
        self.R0 = float(R0)

    def evaluate(self, R, Z):
        return np.cos(0.5 * np.pi * (R - self.R0)) * np.cos(0.5 * np.pi * Z)


class _GuentherPsipR(CloneableBinaryFunctor):
    def __init__(self, R0: float):
        self.R0 = float(R0)

    def evaluate(self, R, Z):
        return -0.5 * np.pi * np.sin(0.5 * np.pi * (R - self.R0)) * np.cos(0.5 * np.pi * Z)


class _GuentherPsipZ(CloneableBinaryFunctor):
    def __init__(self, R0: float):
        self.R0 = float(R0)

    def evaluate(self, R, Z):
        return -0.5 * np.pi * np.cos(0.5 * np.pi * (R - self.R0)) * np.sin(0.5 * np.pi * Z)


class _GuentherPsipRR(CloneableBinaryFunctor):
    # psipRR == psipZZ for this flux function
    def __init__(self, R0: float):
        self.R0 = float(R0)

    def evaluate(self, R, Z):
        return -0.25 * np.pi ** 2 * np.cos(0.5 * np.pi * (R - self.R0)) * np.cos(0.5 * np.pi * Z)


class _GuentherPsipRZ(CloneableBinaryFunctor):
    def __init__(self, R0: float):
        self.R0 = float(R0)

    def evaluate(self, R, Z):
        return 0.25 * np.pi ** 2 * np.sin(0.5 * np.pi * (R - self.R0)) * np.sin(0.5 * np.pi * Z)


def guenther_geometry(R0: float, I0: float = 1.0) -> TokamakGeometry:
    """Cosine flux function with the O-point at (R0, 0) and constant ipol = I0."""
    psip = BinaryFunctorsLvl2(
        _GuentherPsip(R0),
        _GuentherPsipR(R0),
        _GuentherPsipZ(R0),
        _GuentherPsipRR(R0),
        _GuentherPsipRZ(R0),
        _GuentherPsipRR(R0),
    )
    ipol = BinaryFunctorsLvl1(Constant(I0), Constant(0.0), Constant(0.0))
    return TokamakGeometry(psip, ipol)


# =============================================================================
# Config entry point
# =============================================================================

_GEOMETRY_BUILDERS: Dict[str, Callable[..., TokamakGeometry]] = {
    "circular": circular_geometry,
    "guenther": guenther_geometry,
}


def build_geometry(cfg: Dict[str, Any]) -> TokamakGeometry:
    """
    Build a geometry from cfg["geometry"].

    geometry:
      type: circular     # or guenther
      R0: 5.0
      I0: 1.0
    """
    geo_cfg: Union[Dict[str, Any], None] = cfg.get("geometry", None) if isinstance(cfg, dict) else None
    if not isinstance(geo_cfg, dict):
        raise ValueError("Missing required config section: geometry")

    gtype = str(geo_cfg.get("type", "circular")).strip().lower()
    builder = _GEOMETRY_BUILDERS.get(gtype)
    if builder is None:
        raise ValueError(
            f"Unsupported geometry.type={geo_cfg.get('type')!r}. Supported: {sorted(_GEOMETRY_BUILDERS)}"
        )

    if geo_cfg.get("R0", None) is None:
        raise ValueError("Missing required config value: geometry.R0")
    try:
        R0 = float(geo_cfg["R0"])
        I0 = float(geo_cfg.get("I0", 1.0))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid geometry parameters: {geo_cfg!r}") from e

    return builder(R0=R0, I0=I0)
