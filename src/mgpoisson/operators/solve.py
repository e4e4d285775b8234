# operators/solve.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Union

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from mgpoisson.logging import get_logger
from mgpoisson.operators.sparse import DimensionMismatchError, SparseMatrix

logger = get_logger(__name__)

MatrixLike = Union[SparseMatrix, sp.spmatrix]


def _as_csr(A: MatrixLike) -> sp.csr_matrix:
    if isinstance(A, SparseMatrix):
        return A.csr
    return sp.csr_matrix(A)


class SolverDivergedError(RuntimeError):
    """CG did not reach the tolerance within the iteration cap."""

    def __init__(self, iterations: int, residual_norm: float, tol: float) -> None:
        super().__init__(
            f"CG did not converge: residual {residual_norm:.3e} > {tol:.3e} "
            f"after {iterations} iterations"
        )
        self.iterations = iterations
        self.residual_norm = residual_norm
        self.tol = tol


# ============================
# Preconditioner
# ============================

class SSORPreconditioner:
    """
    One symmetric SOR sweep with relaxation omega:

        M = omega/(2-omega) * (D/omega + L) D^{-1} (D/omega + U)

    where A = L + D + U. Applying M^{-1} takes a forward and a backward
    triangular solve.
    """

    def __init__(self, matrix: MatrixLike, relaxation: float = 1.2) -> None:
        omega = float(relaxation)
        if not 0.0 < omega < 2.0:
            raise ValueError("SSOR relaxation must lie in (0, 2).")
        A = _as_csr(matrix)
        d = A.diagonal()
        if np.any(d == 0.0):
            raise ValueError("SSOR needs a matrix without zero diagonal entries.")

        self.relaxation = omega
        self.shape = A.shape
        D = sp.diags(d / omega)
        self._lower = sp.csr_matrix(sp.tril(A, k=-1) + D)
        self._upper = sp.csr_matrix(sp.triu(A, k=1) + D)
        self._scale = (2.0 - omega) / omega * d

    def vmult(self, r: np.ndarray) -> np.ndarray:
        """z = M^{-1} r"""
        y = spla.spsolve_triangular(self._lower, r, lower=True)
        return spla.spsolve_triangular(self._upper, self._scale * y, lower=False)

    def as_linear_operator(self) -> spla.LinearOperator:
        return spla.LinearOperator(self.shape, matvec=self.vmult, dtype=np.float64)


# ============================
# Krylov solve
# ============================

@dataclass(frozen=True)
class SolverResult:
    iterations: int
    residual_norm: float
    converged: bool = True


def solve_cg(
    matrix: MatrixLike,
    rhs: np.ndarray,
    solution: np.ndarray,
    *,
    preconditioner: Optional[SSORPreconditioner] = None,
    tol: float = 1e-12,
    maxiter: int = 1000,
) -> SolverResult:
    """
    Preconditioned CG for a symmetric positive definite system.

    Iterates from the current contents of `solution` until ||f - A u||_2 < tol
    (absolute) and writes the result back into `solution`.

    Raises
    ------
    SolverDivergedError
        if the tolerance is not reached within `maxiter` iterations
    ValueError
        on illegal input reported by the Krylov solver
    """
    A = _as_csr(matrix)
    n = A.shape[0]
    if rhs.shape != (n,) or solution.shape != (n,):
        raise DimensionMismatchError(
            f"vectors have shapes {solution.shape}, {rhs.shape}; matrix is {A.shape}"
        )

    M = None if preconditioner is None else preconditioner.as_linear_operator()

    iterations = 0

    def count(_xk: np.ndarray) -> None:
        nonlocal iterations
        iterations += 1

    x, info = spla.cg(
        A, rhs, x0=solution.copy(), rtol=0.0, atol=float(tol),
        maxiter=int(maxiter), M=M, callback=count,
    )
    if info < 0:
        raise ValueError(f"CG reported illegal input or breakdown, info={info}")

    residual = float(np.linalg.norm(rhs - A @ x))
    if info > 0:
        raise SolverDivergedError(iterations, residual, float(tol))

    solution[:] = x
    logger.debug(f"CG converged: {iterations} iterations, residual {residual:.3e}")
    return SolverResult(iterations=iterations, residual_norm=residual)


# ============================
# Residual diagnostics
# ============================

def compute_residual(A: MatrixLike, u: np.ndarray, f: np.ndarray) -> np.ndarray:
    """
    r = f - A u
    """
    return f - _as_csr(A) @ u


def residual_norms(A: MatrixLike, u: np.ndarray, f: np.ndarray) -> Dict[str, float]:
    """
    Common residual diagnostics.
    """
    r = compute_residual(A, u, f)
    fn = float(np.linalg.norm(f))
    rn = float(np.linalg.norm(r))
    return {
        "||r||2": rn,
        "||f||2": fn,
        "||r||2/||f||2": rn / fn if fn > 0 else np.nan,
        "||u||2": float(np.linalg.norm(u)),
        "||r||inf": float(np.max(np.abs(r))) if r.size else 0.0,
    }
