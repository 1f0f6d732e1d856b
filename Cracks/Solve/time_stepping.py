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
Time Stepping Module
====================

Global time state of a run and the policy shrinking the step when a solve
fails or converges poorly.

Classes
-------
SimulationState
    Simulation clock and step sizes
TimestepAdapter
    Step-size control used by the attempt loop
"""


class SimulationState:
    """
    Clock of the simulation.

    Attributes
    ----------
    time : float Current simulation time
    timestep_number : int Index of the step being computed, starts at 1
    current_timestep : float Step size of the current attempt, > 0
    old_timestep : float Step size at the start of the current step
    """
    def __init__(self, timestep, time=0., timestep_number=1):
        if not timestep > 0:
            raise ValueError(f"timestep must be strictly positive, got {timestep}")
        self.time = time
        self.timestep_number = timestep_number
        self.current_timestep = timestep
        self.old_timestep = timestep

    def __repr__(self):
        return (f"SimulationState(time={self.time!r}, timestep_number={self.timestep_number!r}, "
                f"current_timestep={self.current_timestep!r})")


class TimestepAdapter:
    """
    Step-size control.

    Attributes
    ----------
    upper_threshold : float Residual reduction above which the step is shrunk
    min_timestep : float Floor below which a step is accepted anyway
    reduction : float Division factor of each shrink
    """
    def __init__(self, upper_threshold, min_timestep=1e-9, reduction=10.):
        self.upper_threshold = upper_threshold
        self.min_timestep = min_timestep
        self.reduction = reduction

    @classmethod
    def from_parameters(cls, parameters):
        return cls(parameters["upper_newton_rho"], parameters["min_timestep"],
                   parameters["timestep_reduction"])

    def exceeds_threshold(self, residual_reduction):
        return residual_reduction > self.upper_threshold

    def below_floor(self, state):
        return state.current_timestep < self.min_timestep

    def shrink(self, state):
        """
        Roll the clock back by the current step, divide the step and roll the
        clock forward by the new step.

        Parameters
        ----------
        state : SimulationState
        """
        state.time -= state.current_timestep
        state.current_timestep = state.current_timestep / self.reduction
        state.time += state.current_timestep
