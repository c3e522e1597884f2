import copy

import numpy as np
import pytest

from fluxdiag.physics.fluxfunctions import (
    BinaryFunctor,
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
from fluxdiag.physics.geometries import TokamakGeometry, circular_geometry


class Polynomial(CloneableBinaryFunctor):
    """f = c0 + c1 x + c2 y, with mutable coefficients."""

    def __init__(self, coeffs):
        self.coeffs = np.array(coeffs, dtype=float)

    def evaluate(self, R, Z):
        return self.coeffs[0] + self.coeffs[1] * R + self.coeffs[2] * Z


class Counter:
    """Callable object with state, for adapter cloning."""

    def __init__(self, scale):
        self.scale = [scale]

    def __call__(self, x, y):
        return self.scale[0] * (x + y)


def _six_functors():
    return [
        make_binary_functor(lambda x, y: np.sin(x) * np.cos(y)),
        make_binary_functor(lambda x, y: np.cos(x) * np.cos(y)),
        make_binary_functor(lambda x, y: -np.sin(x) * np.sin(y)),
        make_binary_functor(lambda x, y: -np.sin(x) * np.cos(y)),
        make_binary_functor(lambda x, y: -np.cos(x) * np.sin(y)),
        make_binary_functor(lambda x, y: -np.sin(x) * np.cos(y)),
    ]


def test_lvl2_reads_back_constituents_bit_for_bit():
    fs = _six_functors()
    bundle = BinaryFunctorsLvl2(*fs)
    getters = [bundle.f, bundle.dfx, bundle.dfy, bundle.dfxx, bundle.dfxy, bundle.dfyy]

    R = np.linspace(0.3, 2.7, 11)
    Z = np.linspace(-1.1, 0.9, 11)
    for orig, got in zip(fs, getters):
        assert np.array_equal(got(R, Z), orig(R, Z))
        assert got(1.3, -0.2) == orig(1.3, -0.2)


def test_three_argument_call_ignores_angle():
    f = Polynomial([1.0, 2.0, 3.0])
    assert f(0.5, 0.25, 1.7) == f(0.5, 0.25)
    assert np.array_equal(f(np.ones(3), np.zeros(3), np.pi), f(np.ones(3), np.zeros(3)))


@pytest.mark.parametrize("missing", [0, 1, 2])
def test_lvl1_rejects_missing_functor(missing):
    fs = [Constant(1.0), Constant(0.0), Constant(0.0)]
    fs[missing] = None
    with pytest.raises(ValueError, match="missing functor"):
        BinaryFunctorsLvl1(*fs)


def test_lvl2_rejects_missing_second_derivative():
    fs = _six_functors()
    fs[4] = None
    with pytest.raises(ValueError, match="dfxy"):
        BinaryFunctorsLvl2(*fs)


def test_bundle_rejects_plain_callables():
    with pytest.raises(TypeError, match="make_binary_functor"):
        BinaryFunctorsLvl1(lambda x, y: x, Constant(1.0), Constant(0.0))


def test_bundle_clone_never_aliases_mutable_state():
    src = BinaryFunctorsLvl1(Polynomial([1.0, 2.0, 3.0]), Constant(2.0), Constant(3.0))
    clone = src.clone()
    shallow = copy.copy(src)
    deep = copy.deepcopy(src)

    assert clone.f is not src.f
    before = clone.f(0.5, 0.5)

    src.f.coeffs[:] = [100.0, 0.0, 0.0]
    assert src.f(0.5, 0.5) == 100.0
    for other in (clone, shallow, deep):
        assert other.f(0.5, 0.5) == before

    clone.f.coeffs[0] = -7.0
    assert src.f(0.5, 0.5) == 100.0


def test_bundles_are_read_only():
    bundle = BinaryFunctorsLvl1(Constant(1.0), Constant(0.0), Constant(0.0))
    with pytest.raises(AttributeError):
        bundle.f = Constant(2.0)
    with pytest.raises(AttributeError):
        bundle.extra = 1


def test_tensor_and_vector_accessors():
    tensor = BinarySymmTensorLvl1(Constant(1.0), Constant(2.0), Constant(3.0), Constant(4.0), Constant(5.0))
    assert [tensor.xx(0, 0), tensor.xy(0, 0), tensor.yy(0, 0), tensor.div_x(0, 0), tensor.div_y(0, 0)] == [
        1.0, 2.0, 3.0, 4.0, 5.0,
    ]
    vec = BinaryVectorLvl0(Constant(-1.0), Constant(0.0), make_binary_functor(lambda x, y: x * y))
    assert vec.x(2.0, 3.0) == -1.0
    assert vec.y(2.0, 3.0) == 0.0
    assert vec.z(2.0, 3.0) == 6.0

    with pytest.raises(ValueError):
        BinaryVectorLvl0(Constant(1.0), None, Constant(1.0))


def test_handle_owns_and_clones():
    h = Handle()
    assert h.is_empty()
    with pytest.raises(EmptyHandleError):
        h.get()

    p = Polynomial([0.0, 1.0, 0.0])
    h.set(p)
    assert h.get() is p

    h2 = copy.copy(h)
    assert h2.get() is not p
    p.coeffs[1] = 5.0
    assert h2.get()(1.0, 0.0) == 1.0
    assert h.get()(1.0, 0.0) == 5.0

    h.set(Constant(3.0))
    assert h.get()(0.0, 0.0) == 3.0

    h.release()
    with pytest.raises(EmptyHandleError):
        h.get()

    with pytest.raises(TypeError):
        h.set(lambda x, y: x)


def test_adapter_clone_copies_wrapped_callable():
    counter = Counter(2.0)
    f = make_binary_functor(counter)
    g = f.clone()

    counter.scale[0] = 10.0
    assert f(1.0, 2.0) == 30.0
    assert g(1.0, 2.0) == 6.0


def test_make_binary_functor_passthrough_and_vectorize():
    c = Constant(4.0)
    assert make_binary_functor(c) is c

    import math

    f = make_binary_functor(lambda x, y: math.hypot(x, y), vectorize=True)
    out = f(np.array([3.0, 5.0]), np.array([4.0, 12.0]))
    assert np.allclose(out, [5.0, 13.0])
    assert isinstance(f.clone(), BinaryFunctor)


def test_constant_broadcasts_to_input_shape():
    c = Constant(2.5)
    assert c(1.0, 2.0) == 2.5
    RR, ZZ = np.meshgrid(np.arange(3.0), np.arange(4.0))
    out = c(RR, ZZ)
    assert out.shape == (4, 3)
    assert np.all(out == 2.5)


def test_geometry_copy_is_independent_and_checks_levels():
    geo = circular_geometry(R0=3.0, I0=2.0)
    dup = copy.deepcopy(geo)
    assert dup.psip is not geo.psip
    assert dup.psip(4.0, 1.0) == geo.psip(4.0, 1.0) == 1.0
    assert geo.psipRR(0.0, 0.0) == 1.0
    assert geo.ipol(3.5, 0.0) == 2.0

    lvl1 = TokamakGeometry(BinaryFunctorsLvl1(Constant(1.0), Constant(0.0), Constant(0.0)))
    with pytest.raises(AttributeError, match="second derivatives"):
        lvl1.psipRR
    with pytest.raises(AttributeError, match="ipol"):
        lvl1.ipol
