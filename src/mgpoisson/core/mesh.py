# core/mesh.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np


Edge = Tuple[int, int]


def _edge(a: int, b: int) -> Edge:
    return (a, b) if a < b else (b, a)


@dataclass
class Cell:
    """
    A quadrilateral cell of the hierarchy.

    Vertices are stored in lexicographic order:
        v0 = (x0, y0), v1 = (x1, y0), v2 = (x0, y1), v3 = (x1, y1)
    """
    level: int
    index: int
    vertices: Tuple[int, int, int, int]
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return not self.children

    def edges(self) -> Tuple[Edge, Edge, Edge, Edge]:
        """Bottom, top, left, right edges as sorted vertex pairs."""
        v0, v1, v2, v3 = self.vertices
        return (_edge(v0, v1), _edge(v2, v3), _edge(v0, v2), _edge(v1, v3))


class MeshHierarchy:
    """
    Nested sequence of quadrilateral meshes built by global refinement.

    Level 0 holds the coarse cells. Every call to refine_global() splits each
    active cell into four children that form the next level. Vertices are
    shared between cells of all levels; a vertex created on an edge is reused
    by the neighbour across that edge.
    """

    def __init__(self) -> None:
        self._vertices: List[Tuple[float, float]] = []
        self.levels: List[List[Cell]] = []
        self.boundary_ids: Dict[Edge, int] = {}
        self._midpoints: Dict[Edge, int] = {}

    # -----------------------------
    # Generation
    # -----------------------------

    @classmethod
    def hyper_cube(cls, left: float = -1.0, right: float = 1.0) -> "MeshHierarchy":
        return cls.subdivided_hyper_cube(1, left=left, right=right)

    @classmethod
    def subdivided_hyper_cube(
        cls,
        n: int,
        left: float = -1.0,
        right: float = 1.0,
        boundary_id: int = 0,
    ) -> "MeshHierarchy":
        """
        Square [left, right]^2 split into n x n coarse cells, all boundary
        edges carrying `boundary_id`.
        """
        n = int(n)
        if n < 1:
            raise ValueError("subdivided_hyper_cube requires n >= 1.")
        if float(right) <= float(left):
            raise ValueError("subdivided_hyper_cube requires right > left.")

        mesh = cls()
        xs = np.linspace(float(left), float(right), n + 1)
        for j in range(n + 1):
            for i in range(n + 1):
                mesh._add_vertex(xs[i], xs[j])

        def vid(i: int, j: int) -> int:
            return j * (n + 1) + i

        base: List[Cell] = []
        for j in range(n):
            for i in range(n):
                verts = (vid(i, j), vid(i + 1, j), vid(i, j + 1), vid(i + 1, j + 1))
                base.append(Cell(level=0, index=len(base), vertices=verts))
        mesh.levels.append(base)

        counts: Dict[Edge, int] = {}
        for cell in base:
            for e in cell.edges():
                counts[e] = counts.get(e, 0) + 1
        for e, c in counts.items():
            if c == 1:
                mesh.boundary_ids[e] = int(boundary_id)
        return mesh

    def _add_vertex(self, x: float, y: float) -> int:
        self._vertices.append((float(x), float(y)))
        return len(self._vertices) - 1

    def _midpoint(self, a: int, b: int) -> int:
        e = _edge(a, b)
        m = self._midpoints.get(e)
        if m is None:
            (xa, ya), (xb, yb) = self._vertices[a], self._vertices[b]
            m = self._add_vertex(0.5 * (xa + xb), 0.5 * (ya + yb))
            self._midpoints[e] = m
            bid = self.boundary_ids.get(e)
            if bid is not None:
                self.boundary_ids[_edge(a, m)] = bid
                self.boundary_ids[_edge(m, b)] = bid
        return m

    # -----------------------------
    # Refinement
    # -----------------------------

    def refine_global(self, times: int = 1) -> None:
        """Split every active cell into its four children, `times` times."""
        if not self.levels:
            raise ValueError("Cannot refine an empty mesh.")
        for _ in range(int(times)):
            self._refine_once()

    def _refine_once(self) -> None:
        for cell in list(self.active_cells()):
            level = cell.level + 1
            if level == len(self.levels):
                self.levels.append([])
            siblings = self.levels[level]

            v0, v1, v2, v3 = cell.vertices
            m01 = self._midpoint(v0, v1)
            m23 = self._midpoint(v2, v3)
            m02 = self._midpoint(v0, v2)
            m13 = self._midpoint(v1, v3)
            xc = 0.25 * sum(self._vertices[v][0] for v in cell.vertices)
            yc = 0.25 * sum(self._vertices[v][1] for v in cell.vertices)
            c = self._add_vertex(xc, yc)

            quads = (
                (v0, m01, m02, c),
                (m01, v1, c, m13),
                (m02, c, v2, m23),
                (c, m13, m23, v3),
            )
            for verts in quads:
                child = Cell(
                    level=level,
                    index=len(siblings),
                    vertices=verts,
                    parent=cell.index,
                )
                cell.children.append(child.index)
                siblings.append(child)

    # -----------------------------
    # Queries
    # -----------------------------

    @property
    def n_levels(self) -> int:
        return len(self.levels)

    @property
    def vertices(self) -> np.ndarray:
        return np.asarray(self._vertices, dtype=float).reshape(-1, 2)

    @property
    def n_vertices(self) -> int:
        return len(self._vertices)

    def n_cells(self, level: Optional[int] = None) -> int:
        if level is None:
            return sum(len(cells) for cells in self.levels)
        return len(self.levels[level])

    def n_active_cells(self) -> int:
        return sum(1 for _ in self.active_cells())

    def cells(self, level: Optional[int] = None) -> Iterator[Cell]:
        """All cells, coarsest level first, or only the cells of `level`."""
        if level is not None:
            yield from self.levels[level]
            return
        for cells in self.levels:
            yield from cells

    def active_cells(self) -> Iterator[Cell]:
        for cell in self.cells():
            if cell.active:
                yield cell

    def cell_vertices(self, cell: Cell) -> np.ndarray:
        """(4, 2) coordinates of the cell's vertices."""
        return np.array([self._vertices[v] for v in cell.vertices], dtype=float)

    def parent(self, cell: Cell) -> Optional[Cell]:
        if cell.parent is None:
            return None
        return self.levels[cell.level - 1][cell.parent]

    def child(self, cell: Cell, i: int) -> Cell:
        return self.levels[cell.level + 1][cell.children[i]]

    def boundary_vertices(self, boundary_id: int = 0, level: Optional[int] = None) -> np.ndarray:
        """
        Sorted vertex ids on edges with the given boundary indicator.

        With level=None the edges of the active cells are used, otherwise the
        edges of the cells on that level.
        """
        cells = self.active_cells() if level is None else self.cells(level)
        out = set()
        for cell in cells:
            for e in cell.edges():
                if self.boundary_ids.get(e) == boundary_id:
                    out.update(e)
        return np.array(sorted(out), dtype=np.int64)
