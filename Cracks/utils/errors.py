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
Error Kinds
===========

Exceptions raised by the simulation core.

NonConvergenceError
    Raised by a field solver when its nonlinear solve cannot converge.
    Recoverable: the attempt loop shrinks the time step and retries.
MeshFileNotFoundError
    Raised at startup when the input mesh path does not resolve. Fatal.
TransferOrderError
    Raised when the refinement transfer protocol is driven out of order.
"""


class NonConvergenceError(RuntimeError):
    """The inner nonlinear solve of a field did not converge."""


class MeshFileNotFoundError(FileNotFoundError):
    """The mesh description given by ``mesh_from`` does not exist."""
    def __init__(self, path):
        self.path = path
        super().__init__(f"Mesh file does not exist: {path}")


class TransferOrderError(RuntimeError):
    """A refinement transaction step was called out of its strict order."""
