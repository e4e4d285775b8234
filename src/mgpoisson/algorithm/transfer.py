from __future__ import annotations

import numpy as np
import scipy.sparse as sp

from mgpoisson.core.dofs import LevelDoFIndices
from mgpoisson.core.mesh import MeshHierarchy
from mgpoisson.core.quadrature import Q1Element
from mgpoisson.operators.sparse import SparseMatrix


def build_prolongation(
    mesh: MeshHierarchy,
    level_dofs: LevelDoFIndices,
    element: Q1Element,
    level: int,
) -> sp.csr_matrix:
    """
    Interpolation from level `level` to level `level + 1` for nested Q1 spaces.

    A fine vertex that coincides with a coarse vertex takes weight 1, an edge
    midpoint 1/2 from each end, a cell centre 1/4 from each corner. Weights
    come from evaluating the parent's basis at the child's support points.

    Returns
    -------
    P : scipy.sparse.csr_matrix (n_dofs(level+1), n_dofs(level))
    """
    level = int(level)
    if not 0 <= level < mesh.n_levels - 1:
        raise ValueError(f"no finer level above level {level}")

    entries = {}
    for cell in mesh.cells(level):
        coarse = level_dofs.cell_dof_indices(cell)
        for c, child_index in enumerate(cell.children):
            child = mesh.levels[level + 1][child_index]
            fine = level_dofs.cell_dof_indices(child)
            # child c sits at offset (c % 2, c // 2) / 2 in the parent
            offset = 0.5 * np.array([c % 2, c // 2], dtype=float)
            phi = element.shape_values(offset + 0.5 * element.support_points)
            for a in range(element.dofs_per_cell):
                for b in range(element.dofs_per_cell):
                    if phi[b, a] != 0.0:
                        entries[(int(fine[a]), int(coarse[b]))] = float(phi[b, a])

    n_fine = level_dofs.n_dofs(level + 1)
    n_coarse = level_dofs.n_dofs(level)
    if not entries:
        return sp.csr_matrix((n_fine, n_coarse))
    rows = [i for i, _ in entries]
    cols = [j for _, j in entries]
    vals = list(entries.values())
    return sp.coo_matrix((vals, (rows, cols)), shape=(n_fine, n_coarse)).tocsr()


def prolongate(P: sp.csr_matrix, v_coarse: np.ndarray) -> np.ndarray:
    """Coarse -> fine."""
    return P @ v_coarse


def restrict(P: sp.csr_matrix, v_fine: np.ndarray) -> np.ndarray:
    """Fine -> coarse (transpose of prolongation)."""
    return P.T @ v_fine


def galerkin_defect(A_fine: SparseMatrix, A_coarse: SparseMatrix, P: sp.csr_matrix) -> float:
    """max |P^T A_fine P - A_coarse|"""
    G = (P.T @ A_fine.csr @ P) - A_coarse.csr
    return float(np.max(np.abs(G.toarray()))) if G.nnz else 0.0
