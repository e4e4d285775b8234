from __future__ import annotations
from pathlib import Path
import numpy as np

from mgpoisson.core.config import ProblemConfig
from mgpoisson.algorithm.cycle import LaplaceProblem
from mgpoisson.algorithm.transfer import build_prolongation, galerkin_defect
from mgpoisson.operators.solve import residual_norms
from mgpoisson.diagnostics import save_npz


def level_defects(problem: LaplaceProblem) -> list[float]:
    """Galerkin defect between each pair of neighbouring level matrices."""
    mats = problem.level_matrices
    out = []
    for level in range(problem.mesh.n_levels - 1):
        P = build_prolongation(problem.mesh, problem.dofs.level_dofs, problem.element, level)
        out.append(galerkin_defect(mats[level + 1], mats[level], P))
    return out


def main() -> None:
    outdir = Path("outputs") / "baseline"
    cfg = ProblemConfig(outdir=outdir, write_figures=True, log_to_file=True)

    problem = LaplaceProblem(cfg)
    results = problem.run()

    norms = residual_norms(problem.system_matrix, problem.solution, problem.system_rhs)
    defects = level_defects(problem)

    metrics = {
        "n_dofs": np.array([r.n_dofs for r in results]),
        "n_active_cells": np.array([r.n_active_cells for r in results]),
        "cg_iterations": np.array([r.cg_iterations for r in results]),
        "residual_norm": np.array([r.residual_norm for r in results]),
        "galerkin_defect": np.array(defects),
        "u_max": np.array(float(problem.solution.max())),
    }
    save_npz(outdir / "metrics.npz", **metrics)

    print("final residual norms:", norms)
    print("galerkin defects per level:", defects)


if __name__ == "__main__":
    main()
