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
Staggered Scheme
================

One staggered sweep visits each field of the coupled problem once, in the
order given by the problem (damage first when the phase field is enabled,
then elasticity). Fields are not iterated to mutual agreement inside a
sweep; the quality of the coupling is judged by the combined residual
reduction only.

A failing field solve raises NonConvergenceError on its own rank. The sweep
turns it into a Diverged status and all ranks agree on the status through a
reduction before deciding anything, so no rank leaves the collective call
sequence of its peers.
"""
from ..utils.errors import NonConvergenceError
from ..utils.mpi.collective import global_max
from .status import Converged, Diverged


class StaggeredSolver:
    """
    Single-pass staggered solver.

    Attributes
    ----------
    problem : Multiphysics Coupled problem
    """
    def __init__(self, problem):
        self.problem = problem

    def sweep(self, ctx):
        """
        Solve every field once.

        Parameters
        ----------
        ctx : SimulationContext

        Returns
        -------
        Converged or Diverged Status agreed by all ranks
        """
        reductions = []
        for field in self.problem.staggered_fields():
            ctx.out.dcout(f"Staggered scheme - Solving {field.name}")
            status = self._agree(self._solve_field(field, ctx), field, ctx)
            if status.diverged:
                return status
            ctx.out.debug(f"Staggered scheme - Solving {field.name} - point_history")
            ctx.point_history.finalize()
            field.enforce_bounds(ctx)
            reductions.append(status.residual_reduction)
        return Converged(max(reductions))

    def attempt(self, ctx):
        """
        Solve every field once.

        Returns
        -------
        float Combined residual reduction

        Raises
        ------
        NonConvergenceError If any field failed on any rank
        """
        status = self.sweep(ctx)
        if status.diverged:
            raise NonConvergenceError(status.reason)
        return status.residual_reduction

    def _solve_field(self, field, ctx):
        try:
            return Converged(float(field.update(ctx)))
        except NonConvergenceError as e:
            return Diverged(str(e) or "no convergence", field.name)

    def _agree(self, status, field, ctx):
        any_diverged = global_max(ctx.comm, int(status.diverged))
        if any_diverged:
            if status.diverged:
                return status
            return Diverged("no convergence on another rank", field.name)
        return Converged(global_max(ctx.comm, status.residual_reduction))
