import numpy as np
import pytest

from mgpoisson.core.quadrature import CellValues, Q1Element, gauss_quadrature


@pytest.mark.parametrize("n", [1, 2, 3])
def test_gauss_weights(n):
    q = gauss_quadrature(n)
    assert q.n_points == n * n
    assert q.weights.sum() == pytest.approx(1.0)
    assert np.all((q.points > 0) & (q.points < 1))


def test_partition_of_unity():
    el = Q1Element()
    pts = np.random.default_rng(0).random((7, 2))
    np.testing.assert_allclose(el.shape_values(pts).sum(axis=0), 1.0)
    np.testing.assert_allclose(el.shape_gradients(pts).sum(axis=0), 0.0, atol=1e-14)
    # nodal: phi_i(x_j) = delta_ij
    np.testing.assert_allclose(el.shape_values(el.support_points), np.eye(4))


def test_cell_values_on_rectangle():
    vals = CellValues(Q1Element(), gauss_quadrature(2))
    X = np.array([[1.0, 2.0], [4.0, 2.0], [1.0, 4.0], [4.0, 4.0]])
    vals.reinit(X)
    assert vals.JxW.sum() == pytest.approx(6.0)
    # gradient of the linear function x is reproduced exactly
    grad_x = np.einsum("k,kqd->qd", X[:, 0], vals.shape_grads)
    np.testing.assert_allclose(grad_x, np.tile([1.0, 0.0], (4, 1)), atol=1e-14)
    np.testing.assert_allclose(vals.quadrature_points.mean(axis=0), [2.5, 3.0])


def test_degenerate_cell():
    vals = CellValues(Q1Element(), gauss_quadrature(2))
    with pytest.raises(ValueError):
        vals.reinit(np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 0.0], [1.0, 0.0]]))
    with pytest.raises(ValueError):
        vals.reinit(np.zeros((3, 2)))
