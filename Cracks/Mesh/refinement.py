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
Adaptive Refinement Module
==========================

Gradient based refinement of the cells crossed by the damage band.

A locally owned cell is marked when the largest norm of the damage gradient
over its quadrature points exceeds

    threshold = 1 / l_phi * exp(-a2) / exp(-a1) * exp(-a1)

where a1 and a2 are the initial and final influence decay parameters.
Cells whose diameter is already below ``l_phi * refine_minimum_size_ratio``
are never marked. Whether the mesh is refined is decided collectively: the
refinement happens on all ranks or on none.
"""
from ..utils.mpi.collective import global_any
from .transfer import StateTransferManager

from math import exp
from numpy import sqrt


def refinement_threshold(l_phi, a1, a2):
    """
    Gradient norm above which a cell is refined.

    Parameters
    ----------
    l_phi : float Phase field length scale
    a1 : float Initial influence decay parameter
    a2 : float Final influence decay parameter
    """
    phi_ref = exp(-a2) / exp(-a1)
    return 1 / l_phi * phi_ref * exp(-a1)


class MeshRefiner:
    """
    Evaluates the refinement criterion and applies the refinement.

    Attributes
    ----------
    problem : Multiphysics Coupled problem providing the criterion field
    transfer_manager : StateTransferManager Transfer protocol run on refinement
    min_cell_size : float Cells below this diameter are never refined
    threshold : float Gradient norm above which a cell is marked
    """
    def __init__(self, problem, parameters, transfer_manager=None):
        """
        Parameters
        ----------
        problem : Multiphysics Coupled problem
        parameters : dict Run parameters (l_phi, refine_influence_initial,
                          refine_influence_final, refine_minimum_size_ratio)
        transfer_manager : StateTransferManager, optional
        """
        self.problem = problem
        self.transfer_manager = transfer_manager or StateTransferManager(problem)
        l_phi = parameters["l_phi"]
        self.min_cell_size = l_phi * parameters["refine_minimum_size_ratio"]
        self.threshold = refinement_threshold(l_phi,
                                              parameters["refine_influence_initial"],
                                              parameters["refine_influence_final"])

    def mark_cells(self, field, mesh):
        """
        Per-cell refinement flags of the locally owned cells.

        Parameters
        ----------
        field : PhaseFieldSolver Damage field
        mesh : MeshManager

        Returns
        -------
        numpy.ndarray of bool

        Raises
        ------
        ValueError If the gradients do not match the cells and quadrature
                   points of the mesh
        """
        gradients = field.quadrature_gradients()
        n_cells, n_q = mesh.n_active_cells, mesh.n_q_points
        if gradients.shape[:2] != (n_cells, n_q):
            raise ValueError(f"Damage gradients given for {gradients.shape[:2]} "
                             f"(cells, quadrature points), mesh has {(n_cells, n_q)}")
        max_grad = sqrt((gradients ** 2).sum(axis=-1)).max(axis=1, initial=0.)
        large_enough = ~(mesh.cell_diameters() < self.min_cell_size)
        return large_enough & (max_grad > self.threshold)

    def evaluate_and_apply(self, ctx):
        """
        Mark cells, agree across ranks and refine if any rank marked a cell.

        Parameters
        ----------
        ctx : SimulationContext

        Returns
        -------
        bool True if the mesh has been refined
        """
        field = self.problem.criterion_field
        if field is None:
            return False
        flags = self.mark_cells(field, ctx.mesh)
        ctx.mesh.set_refine_flags(flags)
        ctx.out.debug("Refine - finish marking")
        if not global_any(ctx.comm, flags.any()):
            ctx.mesh.clear_refine_flags()
            ctx.out.dcout("No cell to refine")
            return False
        self.transfer_manager.transfer(ctx)
        ctx.out.dcout(f"Mesh refined: {ctx.mesh.n_global_active_cells} cells")
        return True
