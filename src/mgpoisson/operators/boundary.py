# operators/boundary.py
from __future__ import annotations

from typing import Callable, Dict, Optional

import numpy as np

from mgpoisson.core.dofs import GlobalDoFIndices
from mgpoisson.core.mesh import MeshHierarchy
from mgpoisson.operators.sparse import DimensionMismatchError, SparseMatrix


def interpolate_boundary_values(
    mesh: MeshHierarchy,
    global_dofs: GlobalDoFIndices,
    boundary_id: int = 0,
    function: Optional[Callable[[float, float], float]] = None,
) -> Dict[int, float]:
    """
    Map global DoF index -> prescribed value for every DoF on the boundary
    part `boundary_id` of the active mesh. `function(x, y)` defaults to zero.
    """
    out: Dict[int, float] = {}
    coords = mesh.vertices
    for v in mesh.boundary_vertices(boundary_id):
        d = global_dofs.vertex_to_dof[int(v)]
        x, y = coords[v]
        out[d] = 0.0 if function is None else float(function(x, y))
    return out


def apply_boundary_values(
    boundary_values: Dict[int, float],
    matrix: SparseMatrix,
    solution: np.ndarray,
    rhs: np.ndarray,
) -> None:
    """
    Eliminate Dirichlet DoFs from A u = f in place.

    For every constrained DoF k with value g_k:
      - f[i] -= A[i, k] * g_k for every unconstrained row i,
      - row k and column k of A are zeroed and A[k, k] = 1,
      - f[k] = g_k and u[k] = g_k.

    The sparsity pattern is left intact (eliminated entries stay stored as
    zeros), the matrix stays symmetric, and a second call with the same map
    changes nothing.
    """
    n = matrix.n
    if rhs.shape != (n,) or solution.shape != (n,):
        raise DimensionMismatchError(
            f"vectors have shapes {solution.shape}, {rhs.shape}; matrix is {matrix.shape}"
        )
    if not boundary_values:
        return

    idx = np.fromiter(boundary_values.keys(), dtype=np.int64, count=len(boundary_values))
    val = np.fromiter(boundary_values.values(), dtype=np.float64, count=len(boundary_values))
    if idx.min() < 0 or idx.max() >= n:
        raise IndexError(f"boundary DoF index outside [0, {n})")

    constrained = np.zeros(n, dtype=bool)
    constrained[idx] = True
    g = np.zeros(n)
    g[idx] = val

    A = matrix.csr
    # move the known columns to the right-hand side
    rhs[~constrained] -= (A @ g)[~constrained]

    rows = np.repeat(np.arange(n), np.diff(A.indptr))
    cols = A.indices
    A.data[constrained[rows] | constrained[cols]] = 0.0
    A.data[constrained[rows] & (rows == cols)] = 1.0

    rhs[idx] = val
    solution[idx] = val
