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
Default Parameters Module
=========================

Default values of every key read by the simulation core. Each function
returns a fresh dictionary so that callers may mutate the result freely.
"""


def default_project_parameters():
    """
    Identification of the run and location of inputs and outputs.

    Returns
    -------
    dict project_name, mesh_from, output_dir
    """
    return {"project_name": "cracks",
            "mesh_from": "mesh.xdmf",
            "output_dir": "output/"}


def default_fem_parameters():
    """
    Spatial discretisation parameters.

    Returns
    -------
    dict dim (spatial dimension), poly_degree (polynomial degree of the fields)
    """
    return {"dim": 2, "poly_degree": 1}


def default_timestep_parameters():
    """
    Time stepping and step-size control.

    Returns
    -------
    dict
        - timestep : initial step size
        - timestep_size_2 : step size used after switch_timestep
        - switch_timestep : step index after which timestep_size_2 is used (0 disables)
        - max_no_timesteps : last step index to compute
        - upper_newton_rho : residual reduction above which the step is shrunk
        - min_timestep : floor below which a step is accepted anyway
        - timestep_reduction : division factor applied on each shrink
    """
    return {"timestep": 1e-4,
            "timestep_size_2": 1e-4,
            "switch_timestep": 0,
            "max_no_timesteps": 100,
            "upper_newton_rho": 0.9,
            "min_timestep": 1e-9,
            "timestep_reduction": 10.}


def default_phase_field_parameters():
    """
    Phase field coupling and adaptive refinement.

    Returns
    -------
    dict
        - enable_phase_field : solve the damage field before elasticity
        - l_phi : phase field length scale
        - refine : evaluate the refinement criterion after each accepted step
        - refine_influence_initial : decay parameter a1 of the criterion
        - refine_influence_final : decay parameter a2 of the criterion
        - refine_minimum_size_ratio : cells smaller than l_phi * ratio are never refined
    """
    return {"enable_phase_field": True,
            "l_phi": 1e-2,
            "refine": True,
            "refine_influence_initial": 0.5,
            "refine_influence_final": 3.,
            "refine_minimum_size_ratio": 0.25}


def default_output_parameters():
    """
    Console and file output.

    Returns
    -------
    dict debug (enable debug messages), progress_bar (tqdm bar on rank 0)
    """
    return {"debug": False, "progress_bar": True}


def default_parameters():
    """Merge all default parameter groups into a single flat dictionary."""
    parameters = {}
    for group in (default_project_parameters, default_fem_parameters,
                  default_timestep_parameters, default_phase_field_parameters,
                  default_output_parameters):
        parameters.update(group())
    return parameters
