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
Field Solver Capabilities
=========================

Interfaces that a physics field must satisfy to be driven by the staggered
scheme. The finite element discretisation, the assembly and the nonlinear
solve of each field live in the concrete implementations; the core only
calls the methods declared here.

Classes
-------
FieldState
    Current solution vector of a field and its snapshot
FieldSolver
    Capability interface of one physics field
PhaseFieldSolver
    FieldSolver which also exposes the damage gradient at quadrature points
"""
from abc import ABC, abstractmethod

from numpy import zeros, copyto


class FieldState:
    """
    Solution of a field over its degrees of freedom and the snapshot taken
    before each attempt.

    Attributes
    ----------
    solution : numpy.ndarray Current solution vector
    old_solution : numpy.ndarray Accepted solution at the start of the attempt
    """
    def __init__(self, n_dofs=0):
        self.solution = zeros(n_dofs)
        self.old_solution = zeros(n_dofs)

    @property
    def n_dofs(self):
        return self.solution.size

    def resize(self, n_dofs):
        """Reallocate both vectors, discarding their content."""
        self.solution = zeros(n_dofs)
        self.old_solution = zeros(n_dofs)

    def record(self):
        """Copy the current solution into the snapshot."""
        if self.old_solution.shape != self.solution.shape:
            self.old_solution = self.solution.copy()
        else:
            copyto(self.old_solution, self.solution)

    def restore(self):
        """Copy the snapshot back into the current solution, verbatim."""
        if self.solution.shape != self.old_solution.shape:
            self.solution = self.old_solution.copy()
        else:
            copyto(self.solution, self.old_solution)


class FieldSolver(ABC):
    """
    Capability interface of one physics field.

    Concrete fields own a FieldState and mutate nothing but it. Mesh and
    point history are reached through the SimulationContext handed to each
    call.

    Attributes
    ----------
    name : str Field identifier used for output and diagnostics
    state : FieldState Solution and snapshot of the field
    """
    def __init__(self, name):
        self.name = name
        self.state = FieldState()

    @abstractmethod
    def setup_system(self, ctx):
        """
        Build the degree-of-freedom layout on the current mesh and size
        ``self.state`` accordingly.

        Parameters
        ----------
        ctx : SimulationContext
        """

    @abstractmethod
    def update(self, ctx):
        """
        Solve the field to convergence for the current time.

        Parameters
        ----------
        ctx : SimulationContext

        Returns
        -------
        float Residual reduction of the nonlinear solve

        Raises
        ------
        NonConvergenceError If the inner solve cannot converge
        """

    @abstractmethod
    def prepare_refine(self, ctx):
        """
        Register the transfer of the solution before the mesh changes.

        Returns
        -------
        object Transfer handle given back to post_refine
        """

    @abstractmethod
    def post_refine(self, handle, ctx):
        """
        Complete the transfer prepared by prepare_refine into the vectors
        sized by the last setup_system.
        """

    @abstractmethod
    def output_results(self, sink):
        """
        Add the field data of the current step to the output sink.

        Parameters
        ----------
        sink : ExportResults
        """

    def record_old_solution(self):
        self.state.record()

    def return_old_solution(self):
        self.state.restore()

    def enforce_bounds(self, ctx):
        """Post-solve correction of the field, called after its history update."""
        return None


class PhaseFieldSolver(FieldSolver):
    """Damage field driving the refinement criterion."""

    @abstractmethod
    def quadrature_gradients(self):
        """
        Gradient of the damage field at the quadrature points of every
        locally owned active cell.

        Returns
        -------
        numpy.ndarray Array of shape (n_cells, n_q, dim)
        """
