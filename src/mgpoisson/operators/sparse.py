# operators/sparse.py
from __future__ import annotations

from typing import Callable, Generic, Iterator, List, Tuple, TypeVar

import numpy as np
import scipy.sparse as sp


class DimensionMismatchError(ValueError):
    """A local block does not match the index lists it is scattered with."""


def make_sparsity_pattern(cell_dofs: np.ndarray, n_dofs: int) -> sp.csr_matrix:
    """
    Connectivity pattern of a cell-based discretization.

    Every pair (i, j) of indices sharing a cell is stored. All stored values
    are zero and column indices are sorted within each row.

    Parameters
    ----------
    cell_dofs : ndarray (n_cells, dofs_per_cell)
        DoF indices of each cell.
    n_dofs : int
        Number of rows / columns.
    """
    cell_dofs = np.asarray(cell_dofs, dtype=np.int64)
    if cell_dofs.ndim != 2:
        raise ValueError("cell_dofs must be 2D (n_cells, dofs_per_cell)")
    if cell_dofs.size and (cell_dofs.min() < 0 or cell_dofs.max() >= n_dofs):
        raise ValueError(f"cell_dofs contains indices outside [0, {n_dofs})")

    k = cell_dofs.shape[1]
    rows = np.repeat(cell_dofs, k, axis=1).ravel()
    cols = np.tile(cell_dofs, (1, k)).ravel()
    ones = np.ones(rows.size, dtype=np.float64)

    P = sp.coo_matrix((ones, (rows, cols)), shape=(n_dofs, n_dofs)).tocsr()
    P.sum_duplicates()
    P.sort_indices()
    P.data[:] = 0.0
    return P


class SparseMatrix:
    """
    Values on a fixed CSR sparsity pattern.

    The structure is set once at construction; afterwards only numeric values
    change. add() scatters a dense block into the stored entries and raises
    KeyError for entries outside the pattern.
    """

    def __init__(self, pattern: sp.csr_matrix) -> None:
        if pattern.shape[0] != pattern.shape[1]:
            raise ValueError(f"pattern must be square, got {pattern.shape}")
        self._mat = sp.csr_matrix(pattern, dtype=np.float64, copy=True)
        self._mat.sort_indices()
        self._mat.data[:] = 0.0

    @property
    def shape(self) -> Tuple[int, int]:
        return self._mat.shape

    @property
    def n(self) -> int:
        return int(self._mat.shape[0])

    @property
    def nnz(self) -> int:
        return int(self._mat.nnz)

    @property
    def csr(self) -> sp.csr_matrix:
        """The underlying matrix (shares storage)."""
        return self._mat

    def reinit(self) -> None:
        """Zero all values, keep the pattern."""
        self._mat.data[:] = 0.0

    def _positions(self, rows: np.ndarray, cols: np.ndarray) -> np.ndarray:
        """(len(rows), len(cols)) positions into the data array."""
        indptr, indices = self._mat.indptr, self._mat.indices
        pos = np.empty((rows.size, cols.size), dtype=np.int64)
        for a, i in enumerate(rows):
            start, stop = indptr[i], indptr[i + 1]
            row_cols = indices[start:stop]
            k = np.searchsorted(row_cols, cols)
            ok = k < row_cols.size
            ok[ok] = row_cols[k[ok]] == cols[ok]
            if not np.all(ok):
                j = int(cols[~ok][0])
                raise KeyError(f"entry ({int(i)}, {j}) is not in the sparsity pattern")
            pos[a] = start + k
        return pos

    def add(self, rows: np.ndarray, cols: np.ndarray, block: np.ndarray) -> None:
        """A[rows[a], cols[b]] += block[a, b]."""
        rows = np.asarray(rows, dtype=np.int64)
        cols = np.asarray(cols, dtype=np.int64)
        block = np.asarray(block, dtype=np.float64)
        if block.shape != (rows.size, cols.size):
            raise DimensionMismatchError(
                f"block has shape {block.shape}, index lists give {(rows.size, cols.size)}"
            )
        if rows.size and (rows.min() < 0 or rows.max() >= self.n):
            raise IndexError(f"row index outside [0, {self.n})")
        pos = self._positions(rows, cols)
        np.add.at(self._mat.data, pos.ravel(), block.ravel())

    def el(self, i: int, j: int) -> float:
        """Value at (i, j); zero if (i, j) is not in the pattern."""
        return float(self._mat[i, j])

    def diagonal(self) -> np.ndarray:
        return self._mat.diagonal()

    def vmult(self, x: np.ndarray) -> np.ndarray:
        return self._mat @ x

    def __matmul__(self, x: np.ndarray) -> np.ndarray:
        return self._mat @ x

    def copy(self) -> "SparseMatrix":
        out = SparseMatrix(self._mat)
        out._mat.data[:] = self._mat.data
        return out

    def toarray(self) -> np.ndarray:
        return self._mat.toarray()


T = TypeVar("T")


class LevelObject(Generic[T]):
    """
    One object per mesh level, addressed by level number.

    Levels run over [min_level, max_level]; indexing outside raises IndexError
    (no wrap-around for negative levels).
    """

    def __init__(self, min_level: int, max_level: int, factory: Callable[[int], T]) -> None:
        self._objects: List[T] = []
        self.resize(min_level, max_level, factory)

    def resize(self, min_level: int, max_level: int, factory: Callable[[int], T]) -> None:
        min_level, max_level = int(min_level), int(max_level)
        if min_level < 0 or max_level < min_level:
            raise ValueError(f"invalid level range [{min_level}, {max_level}]")
        self.min_level = min_level
        self.max_level = max_level
        self._objects = [factory(level) for level in range(min_level, max_level + 1)]

    def _slot(self, level: int) -> int:
        level = int(level)
        if not self.min_level <= level <= self.max_level:
            raise IndexError(f"level {level} outside [{self.min_level}, {self.max_level}]")
        return level - self.min_level

    def __getitem__(self, level: int) -> T:
        return self._objects[self._slot(level)]

    def __setitem__(self, level: int, obj: T) -> None:
        self._objects[self._slot(level)] = obj

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[T]:
        return iter(self._objects)

    def levels(self) -> range:
        return range(self.min_level, self.max_level + 1)
