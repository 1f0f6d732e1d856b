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
Simulation Context
==================

Explicit value handed to every component operation in place of a global
controller object.

Write access by component:

- ``state`` : SimulationController and TimestepAdapter
- ``mesh`` and ``point_history`` : SimulationController, MeshRefiner and
  StateTransferManager (field solvers write history values, never resize)
- field solutions : each FieldSolver, its own only
"""


class SimulationContext:
    """
    Attributes
    ----------
    comm : mpi4py.MPI.Comm Communicator of the run
    parameters : dict Run parameters, read only
    state : SimulationState Simulation clock
    out : ParallelOutput Console and log streams
    mesh : MeshManager or None Mesh, set once it has been read
    point_history : PointHistoryStore Quadrature point history
    """
    def __init__(self, comm, parameters, state, out, point_history, mesh=None):
        self.comm = comm
        self.parameters = parameters
        self.state = state
        self.out = out
        self.point_history = point_history
        self.mesh = mesh

    @property
    def time(self):
        return self.state.time

    @property
    def timestep(self):
        return self.state.current_timestep
