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
Multiphysics Coupling Base
==========================

Base class of a coupled problem made of several FieldSolver objects. It
holds references to its fields and forwards the per-field hooks to all of
them; it never provides a solve of its own.
"""
from abc import ABC, abstractmethod


class Multiphysics(ABC):
    """
    Coupled problem seen by the simulation core.

    Subclasses decide which fields are active and in which order the
    staggered scheme visits them.
    """

    @abstractmethod
    def fields(self):
        """
        Active fields, in output order.

        Returns
        -------
        list of FieldSolver
        """

    @abstractmethod
    def staggered_fields(self):
        """
        Active fields, in the order of one staggered sweep.

        Returns
        -------
        list of FieldSolver
        """

    @property
    def criterion_field(self):
        """Field whose gradient drives mesh refinement, None if there is none."""
        return None

    def setup_system(self, ctx):
        for field in self.fields():
            ctx.out.debug(f"Initialize system - {field.name}")
            field.setup_system(ctx)

    def record_old_solution(self):
        for field in self.fields():
            field.record_old_solution()

    def return_old_solution(self):
        for field in self.fields():
            field.return_old_solution()

    def output_results(self, sink, ctx):
        for field in self.fields():
            ctx.out.dcout(f"Computing output - {field.name}")
            field.output_results(sink)
