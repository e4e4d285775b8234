import numpy as np
import pytest

from mgpoisson.core.dofs import distribute_dofs
from mgpoisson.core.mesh import MeshHierarchy
from mgpoisson.core.quadrature import Q1Element


def _refined(times):
    mesh = MeshHierarchy.hyper_cube()
    mesh.refine_global(times)
    return mesh


def test_global_dof_count():
    for c in range(4):
        dofs = distribute_dofs(_refined(c), Q1Element())
        assert dofs.n_dofs == (2 ** c + 1) ** 2


def test_level_dof_counts():
    dofs = distribute_dofs(_refined(3), Q1Element())
    ld = dofs.level_dofs
    assert ld.n_levels == 4
    assert ld.n_dofs(0) == Q1Element.dofs_per_cell
    assert [ld.n_dofs(level) for level in range(4)] == [4, 9, 25, 81]


def test_level_indices_are_level_local():
    mesh = _refined(2)
    ld = distribute_dofs(mesh, Q1Element()).level_dofs
    for cell in mesh.cells():
        idx = ld.cell_dof_indices(cell)
        assert len(set(idx.tolist())) == 4
        assert idx.min() >= 0 and idx.max() < ld.n_dofs(cell.level)


def test_global_indices_shared_between_neighbours():
    mesh = _refined(1)
    gd = distribute_dofs(mesh, Q1Element()).global_dofs
    cells = list(mesh.active_cells())
    # bottom-left and bottom-right children share the bottom midpoint and the centre
    shared = set(gd.cell_dof_indices(cells[0])) & set(gd.cell_dof_indices(cells[1]))
    assert len(shared) == 2
    np.testing.assert_allclose(gd.support_points[gd.vertex_to_dof[0]], [-1.0, -1.0])


def test_inactive_cell_has_no_global_indices():
    mesh = _refined(1)
    gd = distribute_dofs(mesh, Q1Element()).global_dofs
    with pytest.raises(ValueError):
        gd.cell_dof_indices(mesh.levels[0][0])


def test_empty_mesh():
    with pytest.raises(ValueError):
        distribute_dofs(MeshHierarchy(), Q1Element())
