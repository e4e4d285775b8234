from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np

from mgpoisson.core.config import ProblemConfig
from mgpoisson.core.dofs import MultilevelDoFs, distribute_dofs
from mgpoisson.core.mesh import MeshHierarchy
from mgpoisson.core.quadrature import CellValues, Q1Element, gauss_quadrature
from mgpoisson.logging import configure_logging, get_logger
from mgpoisson.operators.assemble import assemble_multigrid, assemble_system
from mgpoisson.operators.boundary import apply_boundary_values, interpolate_boundary_values
from mgpoisson.operators.solve import SolverResult, SSORPreconditioner, solve_cg
from mgpoisson.operators.sparse import LevelObject, SparseMatrix, make_sparsity_pattern
from mgpoisson.output import solution_filename, write_gnuplot


class CycleState(Enum):
    INITIAL = "initial"
    GENERATE_BASE = "generate_base"
    REFINE = "refine"
    SETUP = "setup"
    ASSEMBLE = "assemble"
    SOLVE = "solve"
    OUTPUT = "output"
    DONE = "done"


@dataclass(frozen=True)
class CycleResult:
    cycle: int
    n_active_cells: int
    n_cells: int
    n_dofs: int
    level_dofs: Tuple[int, ...]
    cg_iterations: int
    residual_norm: float
    output_path: Path


class LaplaceProblem:
    """
    -Laplace(u) = f on a square with u = 0 on the boundary, solved on a
    sequence of globally refined meshes.

    Every cycle refines the mesh (or creates it on cycle 0), rebuilds all
    DoF numberings, sparsity patterns and storage, assembles the global
    system and the level matrices, solves with SSOR-preconditioned CG and
    writes the solution.

    The level matrices are assembled for every cycle but the solver only uses
    the global matrix; they are kept on `level_matrices` for inspection.
    """

    def __init__(self, config: Optional[ProblemConfig] = None) -> None:
        self.config = config if config is not None else ProblemConfig()
        logfile = self.config.outdir / "mgpoisson.log" if self.config.log_to_file else None
        configure_logging(logfile)
        self.logger = get_logger(__name__)

        self.element = Q1Element()
        self.cell_values = CellValues(self.element, gauss_quadrature(self.config.quadrature_order))

        self.mesh = MeshHierarchy()
        self.state = CycleState.INITIAL

        self.dofs: Optional[MultilevelDoFs] = None
        self.system_matrix: Optional[SparseMatrix] = None
        self.level_matrices: Optional[LevelObject[SparseMatrix]] = None
        self.solution: Optional[np.ndarray] = None
        self.system_rhs: Optional[np.ndarray] = None
        self.boundary_values: Dict[int, float] = {}

    # -----------------------------
    # Stages
    # -----------------------------

    def make_mesh(self, cycle: int) -> None:
        if cycle == 0:
            self.state = CycleState.GENERATE_BASE
            m = self.config.mesh
            self.mesh = MeshHierarchy.subdivided_hyper_cube(
                m.subdivisions, left=m.left, right=m.right, boundary_id=self.config.boundary_id
            )
        else:
            self.state = CycleState.REFINE
            self.mesh.refine_global(1)

    def setup_system(self) -> None:
        self.state = CycleState.SETUP
        self.dofs = distribute_dofs(self.mesh, self.element)
        n = self.dofs.n_dofs
        self.logger.info(f"   Number of degrees of freedom: {n}")

        gd = self.dofs.global_dofs
        self.system_matrix = SparseMatrix(make_sparsity_pattern(gd.cell_dof_array(), n))
        self.solution = np.zeros(n)
        self.system_rhs = np.zeros(n)

        # level 0 is the coarsest, n_levels-1 the finest
        ld = self.dofs.level_dofs
        self.level_matrices = LevelObject(
            0,
            self.mesh.n_levels - 1,
            lambda level: SparseMatrix(
                make_sparsity_pattern(ld.cell_dof_array(level), ld.n_dofs(level))
            ),
        )

    def assemble_system(self) -> None:
        self.state = CycleState.ASSEMBLE
        assemble_system(
            self.mesh, self.dofs, self.cell_values,
            self.system_matrix, self.system_rhs, source=self.config.source,
        )

    def assemble_multigrid(self) -> None:
        self.state = CycleState.ASSEMBLE
        assemble_multigrid(self.mesh, self.dofs, self.cell_values, self.level_matrices)

    def solve(self) -> SolverResult:
        self.state = CycleState.SOLVE
        self.boundary_values = interpolate_boundary_values(
            self.mesh, self.dofs.global_dofs, self.config.boundary_id
        )
        apply_boundary_values(
            self.boundary_values, self.system_matrix, self.solution, self.system_rhs
        )

        s = self.config.solver
        result = solve_cg(
            self.system_matrix, self.system_rhs, self.solution,
            preconditioner=SSORPreconditioner(self.system_matrix, s.relaxation),
            tol=s.tol, maxiter=s.maxiter,
        )
        self.logger.info(f"   {result.iterations} CG iterations needed to obtain convergence.")
        return result

    def output_results(self, cycle: int) -> Path:
        self.state = CycleState.OUTPUT
        path = write_gnuplot(
            self.config.outdir / solution_filename(cycle),
            self.mesh, self.dofs.global_dofs, self.solution,
        )
        if self.config.write_figures:
            from mgpoisson.diagnostics import plot_field

            plot_field(
                self.dofs.global_dofs, self.solution,
                title=f"solution, cycle {cycle}",
                path=path.with_suffix(".png"),
            )
        return path

    # -----------------------------
    # Driver
    # -----------------------------

    def run_cycle(self, cycle: int) -> CycleResult:
        self.logger.info(f"Cycle {cycle}:")
        self.make_mesh(cycle)
        self.logger.info(f"   Number of active cells: {self.mesh.n_active_cells()}")
        self.logger.info(f"   Total number of cells: {self.mesh.n_cells()}")

        self.setup_system()
        self.assemble_system()
        self.assemble_multigrid()
        result = self.solve()
        path = self.output_results(cycle)

        ld = self.dofs.level_dofs
        return CycleResult(
            cycle=cycle,
            n_active_cells=self.mesh.n_active_cells(),
            n_cells=self.mesh.n_cells(),
            n_dofs=self.dofs.n_dofs,
            level_dofs=tuple(ld.n_dofs(level) for level in range(ld.n_levels)),
            cg_iterations=result.iterations,
            residual_norm=result.residual_norm,
            output_path=path,
        )

    def run(self) -> List[CycleResult]:
        results = [self.run_cycle(cycle) for cycle in range(self.config.n_cycles)]
        self.state = CycleState.DONE
        return results
