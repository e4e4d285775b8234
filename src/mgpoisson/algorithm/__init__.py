"""
Algorithms: refinement cycle driver, transfer operators between levels.
"""

from .cycle import CycleResult, CycleState, LaplaceProblem
from .transfer import build_prolongation, galerkin_defect, prolongate, restrict

__all__ = [
    # cycle.py
    "CycleResult",
    "CycleState",
    "LaplaceProblem",
    # transfer.py
    "build_prolongation",
    "galerkin_defect",
    "prolongate",
    "restrict",
]
