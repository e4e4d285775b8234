# core/dofs.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

import numpy as np

from .mesh import Cell, MeshHierarchy
from .quadrature import Q1Element


def _number_vertices(cells: Iterable[Cell]) -> Tuple[Dict[int, int], List[np.ndarray]]:
    """
    Number the vertices of `cells` in order of first appearance.

    Returns (vertex -> dof, local dof indices of each cell in iteration order).
    """
    vertex_to_dof: Dict[int, int] = {}
    cell_dofs: List[np.ndarray] = []
    for cell in cells:
        local = np.empty(len(cell.vertices), dtype=np.int64)
        for k, v in enumerate(cell.vertices):
            d = vertex_to_dof.get(v)
            if d is None:
                d = len(vertex_to_dof)
                vertex_to_dof[v] = d
            local[k] = d
        cell_dofs.append(local)
    return vertex_to_dof, cell_dofs


class GlobalDoFIndices:
    """
    DoF numbering of the active mesh (one Q1 unknown per vertex).

    Answers the active-cell question: which global indices does this cell
    couple?
    """

    def __init__(self, mesh: MeshHierarchy, element: Q1Element) -> None:
        if mesh.n_levels == 0:
            raise ValueError("Cannot distribute DoFs on an empty mesh.")
        self.dofs_per_cell = element.dofs_per_cell
        cells = list(mesh.active_cells())
        self.vertex_to_dof, local = _number_vertices(cells)
        # active cells may in principle live on different levels
        self._cell_dofs: Dict[Tuple[int, int], np.ndarray] = {
            (cell.level, cell.index): idx for cell, idx in zip(cells, local)
        }

        dof_vertices = np.empty(self.n_dofs, dtype=np.int64)
        for v, d in self.vertex_to_dof.items():
            dof_vertices[d] = v
        self.dof_vertices = dof_vertices
        self.support_points = mesh.vertices[dof_vertices]

    @property
    def n_dofs(self) -> int:
        return len(self.vertex_to_dof)

    def cell_dof_indices(self, cell: Cell) -> np.ndarray:
        try:
            return self._cell_dofs[(cell.level, cell.index)]
        except KeyError:
            raise ValueError(
                f"cell ({cell.level}, {cell.index}) is not an active cell of this numbering"
            ) from None

    def cell_dof_array(self) -> np.ndarray:
        """(n_active_cells, dofs_per_cell) indices in active-cell order."""
        return np.stack(list(self._cell_dofs.values()))


class LevelDoFIndices:
    """
    Independent DoF numbering on every level of the hierarchy.

    Indices on level l run over [0, n_dofs(l)) and only ever address
    level-l objects; they have nothing to do with the global numbering.
    """

    def __init__(self, mesh: MeshHierarchy, element: Q1Element) -> None:
        if mesh.n_levels == 0:
            raise ValueError("Cannot distribute level DoFs on an empty mesh.")
        self.dofs_per_cell = element.dofs_per_cell
        self._vertex_to_dof: List[Dict[int, int]] = []
        self._cell_dofs: List[List[np.ndarray]] = []
        for level in range(mesh.n_levels):
            v2d, cdofs = _number_vertices(mesh.cells(level))
            self._vertex_to_dof.append(v2d)
            self._cell_dofs.append(cdofs)

    @property
    def n_levels(self) -> int:
        return len(self._cell_dofs)

    def n_dofs(self, level: int) -> int:
        return len(self._vertex_to_dof[level])

    def vertex_to_dof(self, level: int) -> Dict[int, int]:
        return self._vertex_to_dof[level]

    def cell_dof_indices(self, cell: Cell) -> np.ndarray:
        return self._cell_dofs[cell.level][cell.index]

    def cell_dof_array(self, level: int) -> np.ndarray:
        """(n_cells(level), dofs_per_cell) level indices in cell order."""
        return np.stack(self._cell_dofs[level])


@dataclass(frozen=True)
class MultilevelDoFs:
    """Global (active-cell) numbering together with the per-level numberings."""
    global_dofs: GlobalDoFIndices
    level_dofs: LevelDoFIndices

    @property
    def n_dofs(self) -> int:
        return self.global_dofs.n_dofs


def distribute_dofs(mesh: MeshHierarchy, element: Q1Element) -> MultilevelDoFs:
    return MultilevelDoFs(
        global_dofs=GlobalDoFIndices(mesh, element),
        level_dofs=LevelDoFIndices(mesh, element),
    )
