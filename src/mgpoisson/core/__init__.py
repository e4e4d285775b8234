"""
Core: problem configuration, mesh hierarchy, DoF numberings, Q1 element.
"""

from .config import MeshConfig, SolverConfig, ProblemConfig
from .mesh import Cell, MeshHierarchy
from .dofs import GlobalDoFIndices, LevelDoFIndices, MultilevelDoFs, distribute_dofs
from .quadrature import Quadrature, Q1Element, CellValues, gauss_quadrature

__all__ = [
    "MeshConfig",
    "SolverConfig",
    "ProblemConfig",
    "Cell",
    "MeshHierarchy",
    "GlobalDoFIndices",
    "LevelDoFIndices",
    "MultilevelDoFs",
    "distribute_dofs",
    "Quadrature",
    "Q1Element",
    "CellValues",
    "gauss_quadrature",
]
