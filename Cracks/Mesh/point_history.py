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
Point History Module
====================

Persistent internal variables stored at every quadrature point of every
locally owned active cell (damage history, maximal elastic energy...).

The physics registers its variables by name; the store keeps for each of
them a current array, written by the field solvers during a solve, and a
committed array updated by :meth:`PointHistoryStore.finalize` once a field
has been solved. Both have shape ``(n_cells, n_q, *shape)``.

The core never changes the values, it only sizes the arrays and relocates
them across a mesh refinement with :class:`PointHistoryTransfer`.
"""
from numpy import copyto, full, newaxis


class PointHistoryStore:
    """
    Quadrature point history indexed by (cell, quadrature point).

    Attributes
    ----------
    n_cells : int Number of locally owned active cells the store is sized for
    n_q : int Number of quadrature points per cell
    values : dict Current array of each registered variable
    committed : dict Committed array of each registered variable
    """
    def __init__(self):
        self.n_cells = 0
        self.n_q = 0
        self.values = {}
        self.committed = {}
        self._variables = {}

    def register(self, name, shape=(), initial=0.):
        """
        Declare a history variable. Registering the same variable again
        with the same shape and initial value is a no-op, so that fields may
        register in setup_system.

        Parameters
        ----------
        name : str Variable name
        shape : tuple, optional Shape of the value at one quadrature point
        initial : float, optional Value given on allocation

        Raises
        ------
        ValueError If the name is already registered with another definition
        """
        definition = (tuple(shape), initial)
        if name in self._variables:
            if self._variables[name] != definition:
                raise ValueError(f"History variable {name} is already registered "
                                 f"as {self._variables[name]}")
            return
        self._variables[name] = definition
        self._allocate(name)

    @property
    def variables(self):
        return list(self._variables)

    @property
    def n_entries(self):
        """Number of (cell, quadrature point) records."""
        return self.n_cells * self.n_q

    def initialize(self, n_cells, n_q):
        """
        (Re)allocate every variable for n_cells cells of n_q points, filled
        with the registered initial values.
        """
        self.n_cells = int(n_cells)
        self.n_q = int(n_q)
        for name in self._variables:
            self._allocate(name)

    def _allocate(self, name):
        shape, initial = self._variables[name]
        self.values[name] = full((self.n_cells, self.n_q) + shape, initial, dtype=float)
        self.committed[name] = full((self.n_cells, self.n_q) + shape, initial, dtype=float)

    def __getitem__(self, name):
        return self.values[name]

    def entry(self, cell, q):
        """
        Current values of all variables at one quadrature point.

        Returns
        -------
        dict name -> value (views into the store)
        """
        return {name: self.values[name][cell, q] for name in self._variables}

    def finalize(self):
        """Commit the current values after a field solve."""
        for name in self._variables:
            copyto(self.committed[name], self.values[name])

    def check_size(self, n_cells, n_q):
        """
        Raises
        ------
        RuntimeError If the store is not sized for n_cells cells of n_q points
        """
        if self.n_cells != n_cells or self.n_q != n_q:
            raise RuntimeError(f"Point history holds {self.n_cells} x {self.n_q} entries, "
                               f"mesh requires {n_cells} x {n_q}")

    def prepare_transfer(self):
        return PointHistoryTransfer(self)


class PointHistoryTransfer:
    """
    History data of the mesh about to be refined, reduced to one value per
    cell (average over its quadrature points, i.e. the projection on
    piecewise constants) and handed to the children of each cell.
    """
    def __init__(self, store):
        """
        Parameters
        ----------
        store : PointHistoryStore Store sized for the mesh before refinement
        """
        self.n_cells = store.n_cells
        self.cell_values = {name: store.values[name].mean(axis=1)
                            for name in store.variables}
        self.cell_committed = {name: store.committed[name].mean(axis=1)
                               for name in store.variables}

    def interpolate(self, store, parent_cells):
        """
        Fill a store already sized for the new mesh.

        Parameters
        ----------
        store : PointHistoryStore Store reallocated for the refined mesh
        parent_cells : numpy.ndarray Old local cell of each new local cell

        Raises
        ------
        ValueError If the parent map does not match the store or the old mesh
        """
        if len(parent_cells) != store.n_cells:
            raise ValueError(f"Parent map has {len(parent_cells)} cells, store has {store.n_cells}")
        if len(parent_cells) and (parent_cells.min() < 0 or parent_cells.max() >= self.n_cells):
            raise ValueError("Parent map refers to cells outside the previous mesh")
        for name, cell_values in self.cell_values.items():
            store.values[name][...] = cell_values[parent_cells][:, newaxis]
            store.committed[name][...] = self.cell_committed[name][parent_cells][:, newaxis]
