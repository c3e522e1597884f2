import numpy as np
import pytest

from fluxdiag.geometry.grid import Grid1d, Grid2d, build_grid, create_weights
from fluxdiag.numerics.ops import evaluate, reduce_max, reduce_min, scal, weighted_dot


def test_weights_sum_to_length_and_area():
    g1 = Grid1d(-1.0, 3.0, 3, 7)
    assert np.sum(create_weights(g1)) == pytest.approx(4.0, rel=1e-13)

    g2 = Grid2d(3.0, 7.0, -2.0, 2.0, 2, 10, 12)
    w = create_weights(g2)
    assert w.shape == (g2.size,)
    assert np.sum(w) == pytest.approx(16.0, rel=1e-13)


def test_quadrature_is_exact_for_low_order_polynomials():
    g = Grid2d(0.0, 2.0, -1.0, 1.0, 3, 4, 5)
    w = create_weights(g)
    # int_0^2 x^5 dx * int_{-1}^1 (y^4 + 1) dy = 64/6 * (2/5 + 2)
    f = evaluate(lambda x, y: x ** 5 * (y ** 4 + 1.0), g)
    assert weighted_dot(f, w, np.ones(g.size)) == pytest.approx(64.0 / 6.0 * 2.4, rel=1e-12)


def test_samples_are_y_major():
    g = Grid2d(0.0, 1.0, 10.0, 12.0, 2, 3, 4)
    x, y = g.abscissas()
    ys = evaluate(lambda X, Y: Y, g)
    xs = evaluate(lambda X, Y: X, g)
    nx = g.n * g.Nx

    assert g.shape == (g.n * g.Ny, nx)
    assert np.all(ys[:nx] == y[0])
    assert np.array_equal(xs[:nx], x)
    assert ys[nx] == y[1]
    # node (iy, ix) at iy * nx + ix
    assert xs[2 * nx + 4] == x[4]
    assert ys[2 * nx + 4] == y[2]


def test_nodes_lie_inside_their_cells():
    g = Grid1d(1.0, 2.0, 4, 5)
    x = g.abscissas().reshape(g.N, g.n)
    edges = 1.0 + g.h * np.arange(g.N + 1)
    assert np.all(x > edges[:-1, None])
    assert np.all(x < edges[1:, None])
    assert np.all(np.diff(x.ravel()) > 0)


def test_evaluate_on_1d_grid_and_broadcast_scalars():
    g = Grid1d(0.0, 1.0, 2, 3)
    assert np.array_equal(evaluate(lambda x: 2.0 * x, g), 2.0 * g.abscissas())

    g2 = Grid2d(0.0, 1.0, 0.0, 1.0, 1, 2, 3)
    vals = evaluate(lambda x, y: 4.0, g2)
    assert vals.shape == (6,)
    assert np.all(vals == 4.0)

    with pytest.raises(TypeError):
        evaluate(lambda x, y: x, object())


@pytest.mark.parametrize(
    "args",
    [
        (1.0, 1.0, 0.0, 1.0, 1, 1, 1),
        (0.0, 1.0, 0.0, 1.0, 0, 1, 1),
        (0.0, 1.0, 0.0, 1.0, 1, 0, 1),
        (0.0, np.inf, 0.0, 1.0, 1, 1, 1),
    ],
)
def test_invalid_grids_are_rejected(args):
    with pytest.raises(ValueError):
        Grid2d(*args)


def test_unknown_boundary_condition():
    with pytest.raises(ValueError, match="boundary condition"):
        Grid1d(0.0, 1.0, 1, 4, bc="ABSORBING")


def test_build_grid_nested_and_flat_layouts_agree():
    nested = {
        "grid": {
            "R": {"min": 3.0, "max": 7.0, "N": 16},
            "Z": {"min": -2.0, "max": 2.0, "N": 8},
            "n": 2,
            "bc": {"x": "dir", "y": "per"},
        }
    }
    flat = {
        "grid": {
            "R_min": 3.0, "R_max": 7.0, "Nx": 16,
            "Z_min": -2.0, "Z_max": 2.0, "Ny": 8,
            "n": 2,
            "bc": {"x": "DIR", "y": "PER"},
        }
    }
    g = build_grid(nested)
    assert g == build_grid(flat)
    assert (g.n, g.Nx, g.Ny) == (2, 16, 8)
    assert (g.bcx, g.bcy) == ("DIR", "PER")
    assert g.hx == pytest.approx(0.25)


def test_build_grid_errors():
    with pytest.raises(ValueError, match="grid"):
        build_grid({})
    with pytest.raises(ValueError, match="grid.Z"):
        build_grid({"grid": {"R": {"min": 0.0, "max": 1.0, "N": 4}}})
    with pytest.raises(ValueError, match="grid.n"):
        build_grid({"grid": {"R_min": 0, "R_max": 1, "Nx": 2, "Z_min": 0, "Z_max": 1, "Ny": 2, "n": 0}})
    with pytest.raises(TypeError):
        build_grid({"grid": {"R_min": 0, "R_max": 1, "Nx": 2, "Z_min": 0, "Z_max": 1, "Ny": 2, "bc": "DIR"}})


def test_reductions_and_weighted_dot():
    x = np.array([-3.0, -1.0, -2.0])
    assert reduce_max(x) == -1.0
    assert reduce_max(x, initial=0.0) == 0.0
    assert reduce_min(x) == -3.0
    assert np.array_equal(scal(x, -2.0), [6.0, 2.0, 4.0])

    assert weighted_dot([1.0, 2.0], [0.5, 0.5], [4.0, 1.0]) == pytest.approx(3.0)
    with pytest.raises(ValueError, match="shape"):
        weighted_dot([1.0, 2.0], [1.0], [1.0, 2.0])
