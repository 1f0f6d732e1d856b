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
State Transfer Module
=====================

Transfer of the field solutions and of the point history across a mesh
refinement. The protocol is strictly ordered:

1. prepare : register the history transfer and each field's solution
   transfer against the mesh about to change
2. execute : refine the mesh (collective)
3. rebuild : set up the degree-of-freedom layout of every field again
4. finalize_history : reallocate the point history for the new mesh and
   interpolate the prepared transfer into it
5. finalize_fields : complete each field's prepared transfer

Any other order leaves garbage in the solution vectors; a
RefinementTransaction therefore refuses to move out of sequence.
"""
from ..utils.errors import TransferOrderError

PREPARED = "prepared"
EXECUTED = "executed"
REBUILT = "rebuilt"
HISTORY_FINALIZED = "history_finalized"
CLOSED = "closed"


class RefinementTransaction:
    """
    Transfer handles of one refinement cycle.

    Valid only between prepare and finalize_fields.

    Attributes
    ----------
    history_transfer : PointHistoryTransfer Prepared point history transfer
    field_handles : list of (FieldSolver, object) Prepared solution transfers
    stage : str Last completed step of the protocol
    """
    def __init__(self, history_transfer, field_handles):
        self.history_transfer = history_transfer
        self.field_handles = field_handles
        self.stage = PREPARED

    @property
    def is_open(self):
        return self.stage != CLOSED

    def advance(self, expected, new_stage):
        """
        Move to new_stage if the transaction is at the expected stage.

        Raises
        ------
        TransferOrderError Otherwise
        """
        if self.stage != expected:
            raise TransferOrderError(f"Cannot move to '{new_stage}': transaction is "
                                     f"'{self.stage}', expected '{expected}'")
        self.stage = new_stage


class StateTransferManager:
    """
    Drives the transfer protocol for a coupled problem.

    Attributes
    ----------
    problem : Multiphysics Coupled problem whose fields are transferred
    """
    def __init__(self, problem):
        self.problem = problem

    def prepare(self, ctx):
        """
        Step 1, before the mesh changes.

        Returns
        -------
        RefinementTransaction
        """
        ctx.out.debug("Refine - prepare")
        history_transfer = ctx.point_history.prepare_transfer()
        field_handles = [(field, field.prepare_refine(ctx)) for field in self.problem.fields()]
        return RefinementTransaction(history_transfer, field_handles)

    def execute(self, transaction, ctx):
        """Step 2, collective refinement of the flagged cells."""
        transaction.advance(PREPARED, EXECUTED)
        ctx.out.debug("Refine - start refinement")
        ctx.mesh.execute_coarsening_and_refinement()

    def rebuild(self, transaction, ctx):
        """Step 3, degree-of-freedom layouts of all fields on the new mesh."""
        transaction.advance(EXECUTED, REBUILT)
        self.problem.setup_system(ctx)

    def finalize_history(self, transaction, ctx):
        """Step 4, point history sized for the new mesh then interpolated."""
        transaction.advance(REBUILT, HISTORY_FINALIZED)
        ctx.out.debug("Refine - after refinement - point history")
        n_cells, n_q = ctx.mesh.n_active_cells, ctx.mesh.n_q_points
        ctx.point_history.initialize(n_cells, n_q)
        transaction.history_transfer.interpolate(ctx.point_history, ctx.mesh.parent_cells)
        ctx.point_history.check_size(n_cells, n_q)

    def finalize_fields(self, transaction, ctx):
        """Step 5, solution transfers completed; the transaction is closed."""
        transaction.advance(HISTORY_FINALIZED, CLOSED)
        ctx.out.debug("Refine - after refinement - transfer fields")
        for field, handle in transaction.field_handles:
            field.post_refine(handle, ctx)
        transaction.history_transfer = None
        transaction.field_handles = []

    def transfer(self, ctx):
        """
        Run the whole protocol on the cells currently flagged in ctx.mesh.

        Returns
        -------
        RefinementTransaction The closed transaction
        """
        transaction = self.prepare(ctx)
        self.execute(transaction, ctx)
        self.rebuild(transaction, ctx)
        self.finalize_history(transaction, ctx)
        self.finalize_fields(transaction, ctx)
        ctx.out.debug("Refine - done")
        return transaction
