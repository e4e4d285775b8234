# diagnostics.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.tri as mtri

from mgpoisson.core.dofs import GlobalDoFIndices


# -----------------------------
# I/O helpers
# -----------------------------

def save_npz(path: Path, **arrays: np.ndarray) -> None:
    """Save compressed .npz (creates parent dirs)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(path, **arrays)


# -----------------------------
# Plotting
# -----------------------------

def _triangulate(global_dofs: GlobalDoFIndices) -> mtri.Triangulation:
    """Split every active quad (lexicographic v0..v3) into two triangles."""
    quads = global_dofs.cell_dof_array()
    tris = np.concatenate([quads[:, [0, 1, 3]], quads[:, [0, 3, 2]]])
    pts = global_dofs.support_points
    return mtri.Triangulation(pts[:, 0], pts[:, 1], tris)


def plot_field(
    global_dofs: GlobalDoFIndices,
    u: np.ndarray,
    *,
    title: str = "",
    path: Optional[Path] = None,
    show_mesh: bool = True,
    cmap: str | None = None,
    show: bool = False,
    close: bool = True,
) -> None:
    """
    Plot a nodal field on the active mesh of `global_dofs`.

    Parameters
    ----------
    path:
        If provided, saves the figure to this path (parent dirs created).
    show_mesh:
        Overlay the cell edges.
    show:
        If True, calls plt.show().
    close:
        If True, closes the figure.
    """
    if u.shape != (global_dofs.n_dofs,):
        raise ValueError(f"u has shape {u.shape}, expected ({global_dofs.n_dofs},)")

    tri = _triangulate(global_dofs)

    fig, ax = plt.subplots(figsize=(5, 4))
    im = ax.tripcolor(tri, u, shading="gouraud", cmap=cmap)
    if show_mesh:
        pts = global_dofs.support_points
        for q in global_dofs.cell_dof_array():
            loop = pts[[q[0], q[1], q[3], q[2], q[0]]]
            ax.plot(loop[:, 0], loop[:, 1], color="k", lw=0.3)
    ax.set_aspect("equal")
    ax.set_title(title)
    plt.colorbar(im, ax=ax, fraction=0.046)
    plt.tight_layout()

    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(path, dpi=200)
    if show:
        plt.show()
    if close:
        plt.close(fig)
