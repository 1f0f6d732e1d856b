from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from mpi4py import MPI

dolfinx = pytest.importorskip("dolfinx")

from dolfinx.io import XDMFFile  # noqa: E402
from dolfinx.mesh import create_unit_square  # noqa: E402

from Cracks import MeshManager  # noqa: E402
from Cracks.Mesh.dolfinx_mesh import DolfinxMesh, read_xdmf_mesh  # noqa: E402


def test_refine_returns_local_parent_map():
    backend = DolfinxMesh(create_unit_square(MPI.COMM_SELF, 2, 2))
    mesh = MeshManager(backend, 2, 1)
    assert mesh.n_active_cells == 8
    assert mesh.cell_diameters().shape == (8,)
    flags = np.zeros(8, dtype=bool)
    flags[0] = True
    mesh.set_refine_flags(flags)
    parents = mesh.execute_coarsening_and_refinement()
    assert mesh.n_active_cells > 8
    assert parents.shape == (mesh.n_active_cells,)
    assert parents.min() >= 0 and parents.max() < 8


def test_read_xdmf_mesh(tmp_path: Path):
    file_name = str(tmp_path / "square.xdmf")
    with XDMFFile(MPI.COMM_SELF, file_name, "w") as xdmf:
        xdmf.write_mesh(create_unit_square(MPI.COMM_SELF, 3, 3))
    backend = read_xdmf_mesh(file_name, MPI.COMM_SELF)
    assert backend.n_local_cells() == 18
    assert backend.n_global_cells() == 18


def test_quadrature_points_follow_cell_type():
    from basix import CellType, make_quadrature

    triangles = DolfinxMesh(create_unit_square(MPI.COMM_SELF, 1, 1))
    quadrilaterals = DolfinxMesh(create_unit_square(MPI.COMM_SELF, 1, 1,
                                                    dolfinx.mesh.CellType.quadrilateral))
    assert triangles.n_quadrature_points(1) == len(make_quadrature(CellType.triangle, 3)[1])
    assert quadrilaterals.n_quadrature_points(1) == 4
    assert quadrilaterals.n_quadrature_points(2) == 9
    assert MeshManager(triangles, 2, 1).n_q_points == triangles.n_quadrature_points(1)
