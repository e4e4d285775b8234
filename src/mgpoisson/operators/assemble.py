# operators/assemble.py
from __future__ import annotations

import numpy as np

from mgpoisson.core.dofs import MultilevelDoFs
from mgpoisson.core.mesh import MeshHierarchy
from mgpoisson.core.quadrature import CellValues
from mgpoisson.logging import get_logger
from mgpoisson.operators.sparse import DimensionMismatchError, LevelObject, SparseMatrix

logger = get_logger(__name__)


def local_stiffness(values: CellValues) -> np.ndarray:
    """
    Cell stiffness block:
        K[i, j] = sum_q grad(phi_i)(q) . grad(phi_j)(q) * JxW(q)
    """
    if values.shape_grads is None:
        raise RuntimeError("Must call reinit() before computing local matrices")
    return np.einsum("iqd,jqd,q->ij", values.shape_grads, values.shape_grads, values.JxW)


def local_rhs(values: CellValues, source: float = 1.0) -> np.ndarray:
    """
    Cell load block for a constant source f:
        F[i] = sum_q phi_i(q) * f * JxW(q)
    """
    if values.JxW is None:
        raise RuntimeError("Must call reinit() before computing local vectors")
    return np.einsum("iq,q->i", values.shape_values, values.JxW) * float(source)


def _check_indices(indices: np.ndarray, dofs_per_cell: int) -> None:
    if indices.size != dofs_per_cell:
        raise DimensionMismatchError(
            f"cell has {indices.size} DoF indices, element expects {dofs_per_cell}"
        )


def assemble_system(
    mesh: MeshHierarchy,
    dofs: MultilevelDoFs,
    cell_values: CellValues,
    matrix: SparseMatrix,
    rhs: np.ndarray,
    source: float = 1.0,
) -> None:
    """
    Assemble the Laplace matrix and load vector on the active cells.

    `matrix` and `rhs` must be sized to the global DoF count. Both are zeroed
    first and then filled by scattering the local blocks of every active cell
    through its global DoF indices.

    Parameters
    ----------
    mesh : MeshHierarchy
    dofs : MultilevelDoFs
        only the global (active-cell) numbering is used
    cell_values : CellValues
        evaluator for the element and quadrature rule
    matrix : SparseMatrix (n_dofs, n_dofs)
    rhs : ndarray (n_dofs,)
    source : float
        constant right-hand side f
    """
    n = dofs.global_dofs.n_dofs
    if matrix.shape != (n, n):
        raise DimensionMismatchError(f"matrix has shape {matrix.shape}, expected {(n, n)}")
    if rhs.shape != (n,):
        raise DimensionMismatchError(f"rhs has shape {rhs.shape}, expected ({n},)")

    k = cell_values.dofs_per_cell
    matrix.reinit()
    rhs[:] = 0.0

    n_cells = 0
    for cell in mesh.active_cells():
        indices = dofs.global_dofs.cell_dof_indices(cell)
        _check_indices(indices, k)

        cell_values.reinit(mesh.cell_vertices(cell))
        cell_matrix = local_stiffness(cell_values)
        cell_rhs = local_rhs(cell_values, source)

        matrix.add(indices, indices, cell_matrix)
        np.add.at(rhs, indices, cell_rhs)
        n_cells += 1

    logger.debug(f"assembled global system: {n_cells} cells, {n} dofs, nnz={matrix.nnz}")


def assemble_multigrid(
    mesh: MeshHierarchy,
    dofs: MultilevelDoFs,
    cell_values: CellValues,
    level_matrices: LevelObject[SparseMatrix],
) -> None:
    """
    Assemble one stiffness matrix per level.

    The integration is the one of assemble_system(), but the loop runs over
    all cells of the hierarchy, active or not, and each cell contributes only
    to the matrix of its own level through its level DoF indices. No load
    vector is built.
    """
    level_dofs = dofs.level_dofs
    if level_dofs.n_levels != mesh.n_levels:
        raise DimensionMismatchError(
            f"level numbering has {level_dofs.n_levels} levels, mesh has {mesh.n_levels}"
        )
    for level in range(mesh.n_levels):
        n = level_dofs.n_dofs(level)
        if level_matrices[level].shape != (n, n):
            raise DimensionMismatchError(
                f"level {level} matrix has shape {level_matrices[level].shape}, expected {(n, n)}"
            )
        level_matrices[level].reinit()

    k = cell_values.dofs_per_cell
    for cell in mesh.cells():
        # level indices, not the global ones
        indices = level_dofs.cell_dof_indices(cell)
        _check_indices(indices, k)

        cell_values.reinit(mesh.cell_vertices(cell))
        cell_matrix = local_stiffness(cell_values)
        level_matrices[cell.level].add(indices, indices, cell_matrix)

    logger.debug(
        "assembled level matrices: "
        + ", ".join(f"L{lvl}={level_dofs.n_dofs(lvl)}" for lvl in range(mesh.n_levels))
    )
