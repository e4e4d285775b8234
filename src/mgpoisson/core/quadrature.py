# core/quadrature.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.polynomial.legendre import leggauss


@dataclass(frozen=True)
class Quadrature:
    points: np.ndarray   # (nq, 2) on the reference square [0, 1]^2
    weights: np.ndarray  # (nq,)

    @property
    def n_points(self) -> int:
        return int(self.weights.size)


def gauss_quadrature(n: int = 2) -> Quadrature:
    """
    Tensor-product Gauss-Legendre rule with n points per direction on [0, 1]^2.

    Points are ordered with x running fastest.
    """
    n = int(n)
    if n < 1:
        raise ValueError("gauss_quadrature requires n >= 1.")
    x, w = leggauss(n)
    x = 0.5 * (x + 1.0)
    w = 0.5 * w
    X, Y = np.meshgrid(x, x, indexing="xy")
    W = np.outer(w, w)
    points = np.column_stack([X.ravel(), Y.ravel()])
    return Quadrature(points=points, weights=W.ravel())


class Q1Element:
    """
    Bilinear Lagrange element on the reference square.

    Local basis functions follow the lexicographic vertex order of a Cell:
        phi_0 = (1-x)(1-y), phi_1 = x(1-y), phi_2 = (1-x)y, phi_3 = xy
    """
    degree = 1
    dofs_per_cell = 4
    # reference coordinates of the local support points
    support_points = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])

    def shape_values(self, points: np.ndarray) -> np.ndarray:
        """(4, n) values at reference points of shape (n, 2)."""
        p = np.atleast_2d(np.asarray(points, dtype=float))
        x, y = p[:, 0], p[:, 1]
        return np.stack([(1 - x) * (1 - y), x * (1 - y), (1 - x) * y, x * y])

    def shape_gradients(self, points: np.ndarray) -> np.ndarray:
        """(4, n, 2) reference gradients at points of shape (n, 2)."""
        p = np.atleast_2d(np.asarray(points, dtype=float))
        x, y = p[:, 0], p[:, 1]
        dx = np.stack([-(1 - y), (1 - y), -y, y])
        dy = np.stack([-(1 - x), -x, (1 - x), x])
        return np.stack([dx, dy], axis=-1)


class CellValues:
    """
    Values, gradients and JxW of the element's basis on one physical cell.

    The reference-to-physical map is the bilinear map through the cell's four
    vertices. Call reinit() with the (4, 2) vertex coordinates of a cell
    before reading the arrays.

    Parameters
    ----------
    element : Q1Element
    quadrature : Quadrature
    """

    def __init__(self, element: Q1Element, quadrature: Quadrature) -> None:
        self.element = element
        self.quadrature = quadrature

        # reference data is cell-independent
        self._ref_values = element.shape_values(quadrature.points)
        self._ref_grads = element.shape_gradients(quadrature.points)

        self.shape_values: np.ndarray = self._ref_values
        self.shape_grads: Optional[np.ndarray] = None
        self.JxW: Optional[np.ndarray] = None
        self.quadrature_points: Optional[np.ndarray] = None

    @property
    def dofs_per_cell(self) -> int:
        return self.element.dofs_per_cell

    @property
    def n_quadrature_points(self) -> int:
        return self.quadrature.n_points

    def reinit(self, vertex_coords: np.ndarray) -> "CellValues":
        X = np.asarray(vertex_coords, dtype=float)
        if X.shape != (self.dofs_per_cell, 2):
            raise ValueError(
                f"vertex_coords has shape {X.shape}, expected {(self.dofs_per_cell, 2)}"
            )

        # J[q] = sum_k x_k (outer) grad phi_k(q)
        J = np.einsum("kd,kqe->qde", X, self._ref_grads)
        det = J[:, 0, 0] * J[:, 1, 1] - J[:, 0, 1] * J[:, 1, 0]
        if np.any(det <= 0.0):
            raise ValueError("Degenerate or inverted cell: non-positive Jacobian determinant.")

        Jinv = np.empty_like(J)
        Jinv[:, 0, 0] = J[:, 1, 1] / det
        Jinv[:, 1, 1] = J[:, 0, 0] / det
        Jinv[:, 0, 1] = -J[:, 0, 1] / det
        Jinv[:, 1, 0] = -J[:, 1, 0] / det

        # physical gradient: grad phi = J^{-T} grad_ref phi
        self.shape_grads = np.einsum("kqe,qed->kqd", self._ref_grads, Jinv)
        self.JxW = self.quadrature.weights * det
        self.quadrature_points = self._ref_values.T @ X
        return self

