"""
Operators: sparse storage, assembly, boundary elimination, linear solves.

Public API:
- make_sparsity_pattern, SparseMatrix, LevelObject
- assemble_system, assemble_multigrid
- interpolate_boundary_values, apply_boundary_values
- SSORPreconditioner, solve_cg, compute_residual
"""

# Storage
from .sparse import DimensionMismatchError, LevelObject, SparseMatrix, make_sparsity_pattern

# Assembly
from .assemble import assemble_multigrid, assemble_system, local_rhs, local_stiffness

# Dirichlet elimination
from .boundary import apply_boundary_values, interpolate_boundary_values

# Linear solves
from .solve import (
    SolverDivergedError,
    SolverResult,
    SSORPreconditioner,
    compute_residual,
    residual_norms,
    solve_cg,
)

__all__ = [
    # Storage
    "DimensionMismatchError",
    "LevelObject",
    "SparseMatrix",
    "make_sparsity_pattern",

    # Assembly
    "assemble_system",
    "assemble_multigrid",
    "local_stiffness",
    "local_rhs",

    # Boundary
    "interpolate_boundary_values",
    "apply_boundary_values",

    # Solves
    "SolverDivergedError",
    "SolverResult",
    "SSORPreconditioner",
    "solve_cg",
    "compute_residual",
    "residual_norms",
]
