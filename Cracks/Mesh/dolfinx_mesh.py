# Copyright 2025 CEA
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
dolfinx Mesh Backend
====================

Mesh backend built on a distributed ``dolfinx.mesh.Mesh``. It reads XDMF
meshes and refines marked cells with ``dolfinx.mesh.refine``, keeping the
parent map needed to relocate quadrature data. Refined meshes are not
redistributed so that parent indices stay local.

Requires the optional ``fem`` dependencies (dolfinx 0.9 or later).
"""
from basix import CellType, make_quadrature
from dolfinx.io import XDMFFile
from dolfinx.mesh import compute_incident_entities, refine, RefinementOption
from numpy import arange, asarray, flatnonzero, int32


class DolfinxMesh:
    """
    Mesh backend wrapping a dolfinx mesh.

    Attributes
    ----------
    mesh : dolfinx.mesh.Mesh Current mesh, replaced on each refinement
    tdim : int Topological dimension of the cells
    """
    def __init__(self, mesh):
        self.mesh = mesh
        self.tdim = mesh.topology.dim

    @property
    def comm(self):
        return self.mesh.comm

    def n_local_cells(self):
        return self.mesh.topology.index_map(self.tdim).size_local

    def n_global_cells(self):
        return self.mesh.topology.index_map(self.tdim).size_global

    def cell_diameters(self):
        cells = arange(self.n_local_cells(), dtype=int32)
        return self.mesh.h(self.tdim, cells)

    def n_quadrature_points(self, poly_degree):
        """
        Size of the basix quadrature rule of degree 2 * poly_degree + 1 on the
        cell type of the mesh ((poly_degree + 1)**dim Gauss points on
        quadrilaterals and hexahedra).
        """
        cell_type = CellType[self.mesh.topology.cell_type.name]
        _, weights = make_quadrature(cell_type, 2 * poly_degree + 1)
        return len(weights)

    def refine(self, flags):
        """
        Refine the flagged cells by splitting all of their edges. Collective.

        Parameters
        ----------
        flags : numpy.ndarray of bool One flag per locally owned cell

        Returns
        -------
        numpy.ndarray Local parent cell of each locally owned cell of the new mesh
        """
        cells = flatnonzero(flags).astype(int32)
        self.mesh.topology.create_entities(1)
        self.mesh.topology.create_connectivity(self.tdim, 1)
        edges = compute_incident_entities(self.mesh.topology, cells, self.tdim, 1)
        new_mesh, parent_cell, _ = refine(self.mesh, edges, partitioner=None,
                                          option=RefinementOption.parent_cell)
        self.mesh = new_mesh
        return asarray(parent_cell)[:self.n_local_cells()]


def read_xdmf_mesh(file_name, comm, name="mesh"):
    """
    Read a mesh stored in an XDMF file.

    Parameters
    ----------
    file_name : str Path of the XDMF file
    comm : mpi4py.MPI.Comm Communicator over which the mesh is distributed
    name : str, optional Name of the mesh inside the file

    Returns
    -------
    DolfinxMesh
    """
    with XDMFFile(comm, file_name, "r") as xdmf:
        mesh = xdmf.read_mesh(name=name)
    return DolfinxMesh(mesh)
