"""
fluxdiag.physics.fluxfunctions
==============================

Scalar fields on the poloidal plane and bundles of their derivatives.

Every user-supplied field (flux function, its derivatives, tensor components,
analytic test functions) is a BinaryFunctor: something that evaluates f(R,Z)
and can produce an independent copy of itself. Fields written in cylindrical
coordinates that do not depend on the toroidal angle accept and ignore a
third argument phi.

Ownership
---------
Bundles store their constituents in Handle objects. A Handle owns exactly one
functor; copying a Handle clones the functor, so copies of a bundle never
share mutable state with the original. Passing a functor to a bundle
constructor hands it over: the bundle keeps that instance and callers should
not keep mutating it afterwards.

Evaluation convention
---------------------
Functors are called with numpy arrays (the node meshgrid of a grid) as well as
with plain floats, and must broadcast like numpy ufuncs.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np


class EmptyHandleError(LookupError):
    """Raised when a Handle without an owned functor is dereferenced."""


# =============================================================================
# Functor capability
# =============================================================================

class BinaryFunctor(ABC):
    """
    A function f(R,Z) in cylindrical coordinates, independent of phi.
    """

    def __call__(self, R, Z, phi=None):
        return self.evaluate(R, Z)

    @abstractmethod
    def evaluate(self, R, Z):
        """Return f(R,Z)."""

    @abstractmethod
    def clone(self) -> "BinaryFunctor":
        """Return an independent copy of this functor."""


class CloneableBinaryFunctor(BinaryFunctor):
    """
    Implements clone() as a deep copy of the concrete instance.

    Derive from this instead of BinaryFunctor unless the subclass needs a
    custom copy rule.
    """

    def clone(self) -> "CloneableBinaryFunctor":
        return copy.deepcopy(self)


class BinaryFunctorAdapter(CloneableBinaryFunctor):
    """
    Turns any callable f(x, y) into a BinaryFunctor.

    The adapter owns its own copy of the callable. Plain functions and lambdas
    are immutable and are shared; callable objects are deep-copied on clone.
    """

    def __init__(self, f: Callable, *, vectorize: bool = False):
        if f is None:
            raise ValueError("BinaryFunctorAdapter needs a callable, got None.")
        if not callable(f):
            raise TypeError(f"BinaryFunctorAdapter needs a callable, got {type(f).__name__}")
        self._f = f
        self._vectorize = bool(vectorize)
        self._vf = np.vectorize(f, otypes=[float]) if vectorize else f

    def __deepcopy__(self, memo):
        return BinaryFunctorAdapter(copy.deepcopy(self._f, memo), vectorize=self._vectorize)

    def evaluate(self, R, Z):
        return self._vf(R, Z)


def make_binary_functor(f: Callable, *, vectorize: bool = False) -> BinaryFunctor:
    """
    Convert any two-argument callable into a BinaryFunctor.

    BinaryFunctor instances are returned unchanged. Deriving from
    CloneableBinaryFunctor is preferred; use this when you can't or don't want to.
    Set vectorize=True for callables that only work on scalars.
    """
    if isinstance(f, BinaryFunctor):
        return f
    return BinaryFunctorAdapter(f, vectorize=vectorize)


class Constant(CloneableBinaryFunctor):
    """f(R,Z) = c"""

    def __init__(self, c: float):
        self._c = float(c)

    @property
    def value(self) -> float:
        return self._c

    def evaluate(self, R, Z):
        shape = np.broadcast(np.asarray(R), np.asarray(Z)).shape
        if shape == ():
            return self._c
        return np.full(shape, self._c)


# =============================================================================
# Owning handle
# =============================================================================

class Handle:
    """
    Value-semantic owner of at most one BinaryFunctor.

    copy.copy / copy.deepcopy / clone() produce a Handle owning a clone, never
    an alias of the held functor.
    """

    __slots__ = ("_ptr",)

    def __init__(self, functor: Optional[BinaryFunctor] = None):
        self._ptr: Optional[BinaryFunctor] = None
        if functor is not None:
            self.set(functor)

    def set(self, functor: BinaryFunctor) -> None:
        """Release the current functor (if any) and take ownership of `functor`."""
        if not isinstance(functor, BinaryFunctor):
            raise TypeError(
                f"Handle can only own a BinaryFunctor, got {type(functor).__name__}. "
                "Use make_binary_functor() to wrap plain callables."
            )
        self.release()
        self._ptr = functor

    def get(self) -> BinaryFunctor:
        if self.is_empty():
            raise EmptyHandleError("Access to an empty Handle.")
        return self._ptr

    def release(self) -> None:
        self._ptr = None

    def is_empty(self) -> bool:
        return self._ptr is None

    def clone(self) -> "Handle":
        return Handle(None if self.is_empty() else self._ptr.clone())

    def __copy__(self) -> "Handle":
        return self.clone()

    def __deepcopy__(self, memo) -> "Handle":
        return self.clone()

    def __repr__(self) -> str:
        inner = "empty" if self._ptr is None else type(self._ptr).__name__
        return f"Handle({inner})"


# =============================================================================
# Bundles
# =============================================================================

class _FunctorBundle:
    """
    Read-only, fixed-size aggregate of owned functors.

    Subclasses list their constituent names in _names; constructors pass the
    functors positionally in that order.
    """

    __slots__ = ("_p",)
    _names: tuple = ()

    def __init__(self, *functors: BinaryFunctor):
        if len(functors) != len(self._names):
            raise TypeError(
                f"{type(self).__name__} takes {len(self._names)} functors, got {len(functors)}"
            )
        handles = []
        for name, fn in zip(self._names, functors):
            if fn is None:
                raise ValueError(f"{type(self).__name__}: missing functor '{name}'.")
            if not isinstance(fn, BinaryFunctor):
                raise TypeError(
                    f"{type(self).__name__}: '{name}' must be a BinaryFunctor, got {type(fn).__name__}. "
                    "Use make_binary_functor() to wrap plain callables."
                )
            handles.append(Handle(fn))
        object.__setattr__(self, "_p", tuple(handles))

    def __setattr__(self, key, value):
        raise AttributeError(f"{type(self).__name__} is read-only.")

    def _get(self, i: int) -> BinaryFunctor:
        return self._p[i].get()

    def clone(self):
        new = object.__new__(type(self))
        object.__setattr__(new, "_p", tuple(h.clone() for h in self._p))
        return new

    def __copy__(self):
        return self.clone()

    def __deepcopy__(self, memo):
        return self.clone()

    def __repr__(self) -> str:
        parts = ", ".join(f"{n}={type(h.get()).__name__}" for n, h in zip(self._names, self._p))
        return f"{type(self).__name__}({parts})"


class BinaryFunctorsLvl1(_FunctorBundle):
    """
    A function f(x,y) and its first derivatives.

    Parameters
    ----------
    f  : f(x,y)
    fx : df/dx
    fy : df/dy
    """

    __slots__ = ()
    _names = ("f", "dfx", "dfy")

    def __init__(self, f: BinaryFunctor, fx: BinaryFunctor, fy: BinaryFunctor):
        super().__init__(f, fx, fy)

    @property
    def f(self) -> BinaryFunctor:
        return self._get(0)

    @property
    def dfx(self) -> BinaryFunctor:
        return self._get(1)

    @property
    def dfy(self) -> BinaryFunctor:
        return self._get(2)


class BinaryFunctorsLvl2(BinaryFunctorsLvl1):
    """
    A function f(x,y) with its first and second derivatives.

    fxx, fxy, fyy are d2f/dx2, d2f/dxdy and d2f/dy2.
    """

    __slots__ = ()
    _names = ("f", "dfx", "dfy", "dfxx", "dfxy", "dfyy")

    def __init__(
        self,
        f: BinaryFunctor,
        fx: BinaryFunctor,
        fy: BinaryFunctor,
        fxx: BinaryFunctor,
        fxy: BinaryFunctor,
        fyy: BinaryFunctor,
    ):
        _FunctorBundle.__init__(self, f, fx, fy, fxx, fxy, fyy)

    @property
    def dfxx(self) -> BinaryFunctor:
        return self._get(3)

    @property
    def dfxy(self) -> BinaryFunctor:
        return self._get(4)

    @property
    def dfyy(self) -> BinaryFunctor:
        return self._get(5)


class BinarySymmTensorLvl1(_FunctorBundle):
    """
    A symmetric 2d tensor field chi and its divergence.

    xx, xy, yy : contravariant components chi^xx, chi^xy, chi^yy
    div_x      : d_x chi^xx + d_y chi^yx
    div_y      : d_x chi^xy + d_y chi^yy
    """

    __slots__ = ()
    _names = ("xx", "xy", "yy", "div_x", "div_y")

    def __init__(
        self,
        chi_xx: BinaryFunctor,
        chi_xy: BinaryFunctor,
        chi_yy: BinaryFunctor,
        div_chi_x: BinaryFunctor,
        div_chi_y: BinaryFunctor,
    ):
        super().__init__(chi_xx, chi_xy, chi_yy, div_chi_x, div_chi_y)

    @property
    def xx(self) -> BinaryFunctor:
        return self._get(0)

    @property
    def xy(self) -> BinaryFunctor:
        return self._get(1)

    @property
    def yy(self) -> BinaryFunctor:
        return self._get(2)

    @property
    def div_x(self) -> BinaryFunctor:
        return self._get(3)

    @property
    def div_y(self) -> BinaryFunctor:
        return self._get(4)


class BinaryVectorLvl0(_FunctorBundle):
    """A vector field with three components that depend only on the first two coordinates."""

    __slots__ = ()
    _names = ("x", "y", "z")

    def __init__(self, v_x: BinaryFunctor, v_y: BinaryFunctor, v_z: BinaryFunctor):
        super().__init__(v_x, v_y, v_z)

    @property
    def x(self) -> BinaryFunctor:
        return self._get(0)

    @property
    def y(self) -> BinaryFunctor:
        return self._get(1)

    @property
    def z(self) -> BinaryFunctor:
        return self._get(2)
