import numpy as np
import pytest

from mgpoisson.core.dofs import distribute_dofs
from mgpoisson.core.mesh import MeshHierarchy
from mgpoisson.core.quadrature import Q1Element
from mgpoisson.diagnostics import plot_field, save_npz
from mgpoisson.output import solution_filename, write_gnuplot


def _mesh_and_dofs():
    mesh = MeshHierarchy.hyper_cube(0.0, 1.0)
    mesh.refine_global(1)
    return mesh, distribute_dofs(mesh, Q1Element()).global_dofs


def test_filename_pattern():
    assert solution_filename(0) == "solution-0.gnuplot"
    assert solution_filename(5) == "solution-5.gnuplot"


def test_gnuplot_patch_layout(tmp_path):
    mesh, gd = _mesh_and_dofs()
    u = gd.support_points[:, 0] + 10.0 * gd.support_points[:, 1]
    path = write_gnuplot(tmp_path / "sub" / "u.gnuplot", mesh, gd, u, name="u")

    lines = path.read_text().splitlines()
    body = [ln for ln in lines if not ln.startswith("#")]
    # per cell: 2 points, blank, 2 points, blank, blank
    assert len(body) == 4 * 7
    first = body[:7]
    assert [ln == "" for ln in first] == [False, False, True, False, False, True, True]
    x, y, v = map(float, first[3].split())
    assert (x, y) == (0.0, 0.5)
    assert v == pytest.approx(x + 10.0 * y)


def test_gnuplot_rejects_wrong_size(tmp_path):
    mesh, gd = _mesh_and_dofs()
    with pytest.raises(ValueError):
        write_gnuplot(tmp_path / "u.gnuplot", mesh, gd, np.zeros(gd.n_dofs + 1))


def test_diagnostics(tmp_path):
    _, gd = _mesh_and_dofs()
    u = np.linspace(0.0, 1.0, gd.n_dofs)
    plot_field(gd, u, title="u", path=tmp_path / "figs" / "u.png")
    assert (tmp_path / "figs" / "u.png").exists()

    save_npz(tmp_path / "out" / "u.npz", u=u)
    np.testing.assert_array_equal(np.load(tmp_path / "out" / "u.npz")["u"], u)

    with pytest.raises(ValueError):
        plot_field(gd, u[:-1])
