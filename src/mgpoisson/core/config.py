from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class MeshConfig:
    """
    Coarse mesh: the square [left, right]^2 split into subdivisions^2 cells.
    """
    left: float = -1.0
    right: float = 1.0
    subdivisions: int = 1

    def __post_init__(self) -> None:
        if float(self.right) <= float(self.left):
            raise ValueError("MeshConfig requires right > left.")
        if int(self.subdivisions) < 1:
            raise ValueError("MeshConfig requires subdivisions >= 1.")

    @property
    def n_base_cells(self) -> int:
        return int(self.subdivisions) ** 2


@dataclass(frozen=True)
class SolverConfig:
    relaxation: float = 1.2   # SSOR omega
    tol: float = 1e-12        # absolute residual tolerance
    maxiter: int = 1000

    def __post_init__(self) -> None:
        if not 0.0 < float(self.relaxation) < 2.0:
            raise ValueError("SSOR relaxation must lie in (0, 2).")
        if float(self.tol) <= 0.0:
            raise ValueError("tol must be > 0.")
        if int(self.maxiter) < 1:
            raise ValueError("maxiter must be >= 1.")


@dataclass(frozen=True)
class ProblemConfig:
    mesh: MeshConfig = field(default_factory=MeshConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    n_cycles: int = 6
    source: float = 1.0
    boundary_id: int = 0
    quadrature_order: int = 2
    outdir: Path = Path(".")
    write_figures: bool = False
    log_to_file: bool = False

    def __post_init__(self) -> None:
        if int(self.n_cycles) < 1:
            raise ValueError("n_cycles must be >= 1.")
        if int(self.quadrature_order) < 1:
            raise ValueError("quadrature_order must be >= 1.")
        # accept plain strings for outdir
        object.__setattr__(self, "outdir", Path(self.outdir))
