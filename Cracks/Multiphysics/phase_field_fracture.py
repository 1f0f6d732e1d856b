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
Phase Field Fracture Coupling
=============================

Staggered coupling of an elasticity field with a phase field damage model.
When the phase field is enabled it is solved first, then elasticity is
solved with the updated damage. Otherwise only elasticity is active.
"""
from .multiphysics import Multiphysics
from .field_solver import FieldSolver, PhaseFieldSolver


class PhaseFieldFracture(Multiphysics):
    """
    Elasticity coupled with a phase field damage model.

    Attributes
    ----------
    elasticity : FieldSolver Mechanical field
    phasefield : PhaseFieldSolver or None Damage field
    enable_phase_field : bool Whether the damage field takes part in the run
    """
    def __init__(self, elasticity, phasefield=None, enable_phase_field=True):
        """
        Parameters
        ----------
        elasticity : FieldSolver Mechanical field
        phasefield : PhaseFieldSolver, optional Damage field
        enable_phase_field : bool, optional Solve the damage field

        Raises
        ------
        TypeError If a field does not implement the expected capability
        ValueError If the phase field is enabled but not given
        """
        if not isinstance(elasticity, FieldSolver):
            raise TypeError("elasticity must implement FieldSolver")
        if enable_phase_field:
            if phasefield is None:
                raise ValueError("enable_phase_field is set but no phase field was given")
            if not isinstance(phasefield, PhaseFieldSolver):
                raise TypeError("phasefield must implement PhaseFieldSolver")
        self.elasticity = elasticity
        self.phasefield = phasefield
        self.enable_phase_field = enable_phase_field

    @classmethod
    def from_parameters(cls, elasticity, phasefield, parameters):
        """Build the coupling with the enable_phase_field flag of a parameter dict."""
        return cls(elasticity, phasefield, parameters["enable_phase_field"])

    def fields(self):
        if self.enable_phase_field:
            return [self.elasticity, self.phasefield]
        return [self.elasticity]

    def staggered_fields(self):
        if self.enable_phase_field:
            return [self.phasefield, self.elasticity]
        return [self.elasticity]

    @property
    def criterion_field(self):
        return self.phasefield if self.enable_phase_field else None
