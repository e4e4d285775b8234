# output.py
from __future__ import annotations

from pathlib import Path
from typing import TextIO, Union

import numpy as np

from mgpoisson.core.dofs import GlobalDoFIndices
from mgpoisson.core.mesh import MeshHierarchy


def solution_filename(cycle: int) -> str:
    return f"solution-{int(cycle)}.gnuplot"


def _write_patches(
    stream: TextIO,
    mesh: MeshHierarchy,
    global_dofs: GlobalDoFIndices,
    solution: np.ndarray,
    name: str,
) -> None:
    stream.write("# This file was generated by mgpoisson.\n")
    stream.write("#\n")
    stream.write("# For a description of the GNUPLOT format see the GNUPLOT manual.\n")
    stream.write("#\n")
    stream.write(f"# <x> <y> <{name}> \n")

    coords = mesh.vertices
    for cell in mesh.active_cells():
        idx = global_dofs.cell_dof_indices(cell)
        # one patch per cell: two rows of two points, lexicographic
        for row in ((0, 1), (2, 3)):
            for k in row:
                x, y = coords[cell.vertices[k]]
                stream.write(f"{x:.6g} {y:.6g} {solution[idx[k]]:.6g} \n")
            stream.write("\n")
        stream.write("\n")


def write_gnuplot(
    path: Union[str, Path],
    mesh: MeshHierarchy,
    global_dofs: GlobalDoFIndices,
    solution: np.ndarray,
    *,
    name: str = "solution",
) -> Path:
    """
    Write a nodal solution on the active mesh as gnuplot patches.

    Each active cell becomes one patch: its two bottom vertices, a blank line,
    its two top vertices, a blank line, and one more blank line ending the
    patch. Plot with `splot "<file>" with lines`.
    """
    if solution.shape != (global_dofs.n_dofs,):
        raise ValueError(
            f"solution has shape {solution.shape}, expected ({global_dofs.n_dofs},)"
        )
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        _write_patches(f, mesh, global_dofs, solution, name)
    return path
