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
Mesh Manager Module
===================

The MeshManager owns the distributed mesh of a run together with its
per-cell refinement markers. It is created once by the simulation controller
and mutated only by refinement; field solvers and the point history keep
references to it and address data by local cell index.

The actual mesh is a backend object exposing:

- ``n_local_cells()`` : number of locally owned active cells
- ``n_global_cells()`` : number of active cells over all ranks (collective)
- ``cell_diameters()`` : diameter of each locally owned active cell
- ``n_quadrature_points(poly_degree)`` : quadrature points per cell used for
  fields of the given polynomial degree
- ``refine(flags)`` : refine the flagged cells (collective) and return, for
  each new local cell, the local index of its parent cell
"""
from numpy import asarray, zeros


class MeshManager:
    """
    Manager of the mesh and of its refinement markers.

    Attributes
    ----------
    backend : object Mesh backend (see module documentation)
    dim : int Spatial dimension
    poly_degree : int Polynomial degree of the fields
    parent_cells : numpy.ndarray or None Parent map of the last refinement
    n_refinements : int Number of refinements executed so far
    """
    def __init__(self, backend, dim, poly_degree):
        """
        Parameters
        ----------
        backend : object Mesh backend
        dim : int Spatial dimension
        poly_degree : int Polynomial degree of the fields
        """
        self.backend = backend
        self.dim = dim
        self.poly_degree = poly_degree
        self.parent_cells = None
        self.n_refinements = 0
        self._refine_flags = zeros(self.n_active_cells, dtype=bool)

    @classmethod
    def from_parameters(cls, backend, parameters):
        return cls(backend, parameters["dim"], parameters["poly_degree"])

    @property
    def n_active_cells(self):
        """Number of locally owned active cells."""
        return int(self.backend.n_local_cells())

    @property
    def n_global_active_cells(self):
        """Number of active cells over all ranks. Collective."""
        return int(self.backend.n_global_cells())

    @property
    def n_q_points(self):
        """Number of quadrature points per cell, as given by the backend."""
        return int(self.backend.n_quadrature_points(self.poly_degree))

    def cell_diameters(self):
        return asarray(self.backend.cell_diameters(), dtype=float)

    @property
    def refine_flags(self):
        if self._refine_flags.size != self.n_active_cells:
            self._refine_flags = zeros(self.n_active_cells, dtype=bool)
        return self._refine_flags

    def set_refine_flags(self, flags):
        """
        Mark cells for refinement.

        Parameters
        ----------
        flags : array_like of bool One flag per locally owned active cell

        Raises
        ------
        ValueError If the number of flags does not match the number of cells
        """
        flags = asarray(flags, dtype=bool)
        if flags.shape != (self.n_active_cells,):
            raise ValueError(f"Expected {self.n_active_cells} refinement flags, got {flags.shape}")
        self._refine_flags = flags.copy()

    def clear_refine_flags(self):
        self._refine_flags = zeros(self.n_active_cells, dtype=bool)

    def execute_coarsening_and_refinement(self):
        """
        Refine the flagged cells. Collective: every rank must call it.

        Returns
        -------
        numpy.ndarray Local index of the parent of each new local cell
        """
        parent_cells = asarray(self.backend.refine(self.refine_flags))
        if parent_cells.shape != (self.n_active_cells,):
            raise RuntimeError("Mesh backend returned a parent map inconsistent with the new mesh")
        self.parent_cells = parent_cells
        self.n_refinements += 1
        self.clear_refine_flags()
        return parent_cells
