import numpy as np
import pytest

from mgpoisson.algorithm.transfer import build_prolongation, galerkin_defect, prolongate, restrict
from mgpoisson.core.dofs import distribute_dofs
from mgpoisson.core.mesh import MeshHierarchy
from mgpoisson.core.quadrature import CellValues, Q1Element, gauss_quadrature
from mgpoisson.operators.assemble import (
    assemble_multigrid,
    assemble_system,
    local_rhs,
    local_stiffness,
)
from mgpoisson.operators.sparse import (
    DimensionMismatchError,
    LevelObject,
    SparseMatrix,
    make_sparsity_pattern,
)


def _setup(times, n_base=1):
    mesh = MeshHierarchy.subdivided_hyper_cube(n_base)
    mesh.refine_global(times)
    element = Q1Element()
    dofs = distribute_dofs(mesh, element)
    values = CellValues(element, gauss_quadrature(2))
    gd = dofs.global_dofs
    A = SparseMatrix(make_sparsity_pattern(gd.cell_dof_array(), gd.n_dofs))
    b = np.zeros(gd.n_dofs)
    ld = dofs.level_dofs
    levels = LevelObject(
        0, mesh.n_levels - 1,
        lambda lvl: SparseMatrix(make_sparsity_pattern(ld.cell_dof_array(lvl), ld.n_dofs(lvl))),
    )
    return mesh, element, dofs, values, A, b, levels


def test_local_stiffness_unit_square():
    values = CellValues(Q1Element(), gauss_quadrature(2))
    values.reinit(np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]]))
    expected = np.array([
        [4, -1, -1, -2],
        [-1, 4, -2, -1],
        [-1, -2, 4, -1],
        [-2, -1, -1, 4],
    ]) / 6.0
    np.testing.assert_allclose(local_stiffness(values), expected, atol=1e-14)
    np.testing.assert_allclose(local_rhs(values, 2.0), 0.5)


@pytest.mark.parametrize("times", [0, 1, 2, 3])
def test_global_matrix_symmetric_with_zero_row_sums(times):
    mesh, _, dofs, values, A, b, _ = _setup(times)
    assemble_system(mesh, dofs, values, A, b, source=1.0)
    M = A.toarray()
    np.testing.assert_allclose(M, M.T, rtol=0, atol=1e-15)
    np.testing.assert_allclose(M.sum(axis=1), 0.0, atol=1e-12)
    # integral of f = 1 over [-1, 1]^2
    assert b.sum() == pytest.approx(4.0)


def test_assembly_is_repeatable():
    mesh, _, dofs, values, A, b, _ = _setup(2)
    assemble_system(mesh, dofs, values, A, b)
    A1, b1 = A.toarray(), b.copy()
    assemble_system(mesh, dofs, values, A, b)
    np.testing.assert_array_equal(A.toarray(), A1)
    np.testing.assert_array_equal(b, b1)


def test_dimension_mismatch():
    mesh, _, dofs, values, A, b, _ = _setup(1)
    with pytest.raises(DimensionMismatchError):
        assemble_system(mesh, dofs, values, A, np.zeros(b.size + 1))
    with pytest.raises(DimensionMismatchError):
        A.add(np.array([0, 1]), np.array([0, 1]), np.zeros((3, 3)))


class _FiveDoFElement(Q1Element):
    dofs_per_cell = 5


def test_cell_block_size_mismatch():
    mesh, _, dofs, _, A, b, levels = _setup(1)
    values = CellValues(_FiveDoFElement(), gauss_quadrature(2))
    with pytest.raises(DimensionMismatchError):
        assemble_system(mesh, dofs, values, A, b)
    with pytest.raises(DimensionMismatchError):
        assemble_multigrid(mesh, dofs, values, levels)


def test_add_outside_pattern():
    # two separate cells: dofs 0..3 and 4..7 never couple
    P = make_sparsity_pattern(np.array([[0, 1, 2, 3], [4, 5, 6, 7]]), 8)
    A = SparseMatrix(P)
    A.add(np.array([0, 1]), np.array([0, 1]), np.ones((2, 2)))
    assert A.el(1, 0) == 1.0
    with pytest.raises(KeyError):
        A.add(np.array([0]), np.array([7]), np.ones((1, 1)))


def test_level_matrix_sizes():
    mesh, _, dofs, values, _, _, levels = _setup(3)
    assemble_multigrid(mesh, dofs, values, levels)
    assert len(levels) == 4
    assert levels[0].shape == (4, 4)
    for lvl in levels.levels():
        assert levels[lvl].n == (2 ** lvl + 1) ** 2
        M = levels[lvl].toarray()
        np.testing.assert_allclose(M, M.T, atol=1e-14)
        np.testing.assert_allclose(M.sum(axis=1), 0.0, atol=1e-12)
    with pytest.raises(IndexError):
        levels[4]


def test_finest_level_matches_global_matrix():
    mesh, _, dofs, values, A, b, levels = _setup(2)
    assemble_system(mesh, dofs, values, A, b)
    assemble_multigrid(mesh, dofs, values, levels)
    np.testing.assert_allclose(levels[2].toarray(), A.toarray(), atol=1e-14)


@pytest.mark.parametrize("n_base", [1, 2])
def test_level_matrices_satisfy_galerkin_relation(n_base):
    mesh, element, dofs, values, _, _, levels = _setup(3, n_base=n_base)
    assemble_multigrid(mesh, dofs, values, levels)
    for lvl in range(mesh.n_levels - 1):
        P = build_prolongation(mesh, dofs.level_dofs, element, lvl)
        assert P.shape == (dofs.level_dofs.n_dofs(lvl + 1), dofs.level_dofs.n_dofs(lvl))
        assert galerkin_defect(levels[lvl + 1], levels[lvl], P) < 1e-12


def test_prolongation_reproduces_linear_functions():
    mesh, element, dofs, _, _, _, _ = _setup(2)
    ld = dofs.level_dofs
    P = build_prolongation(mesh, ld, element, 1)

    def nodal(level, f):
        u = np.zeros(ld.n_dofs(level))
        for v, d in ld.vertex_to_dof(level).items():
            u[d] = f(*mesh.vertices[v])
        return u

    f = lambda x, y: 2.0 * x - y + 0.5
    np.testing.assert_allclose(prolongate(P, nodal(1, f)), nodal(2, f), atol=1e-14)
    # every fine value is a convex combination of coarse values
    np.testing.assert_allclose(np.asarray(P.sum(axis=1)).ravel(), 1.0)
    assert restrict(P, np.ones(ld.n_dofs(2))).shape == (ld.n_dofs(1),)
