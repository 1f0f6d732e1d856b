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
Parameters Module
=================

Merging, validation and loading of the flat parameter dictionary consumed
by the simulation core.

Functions
---------
set_parameters
    Merge a user dictionary over the defaults and validate it
load_parameters
    Read a YAML parameter file and pass it through set_parameters
"""
from .default_parameters import default_parameters

from os import path
import yaml

_POSITIVE_FLOATS = ("timestep", "timestep_size_2", "upper_newton_rho",
                    "min_timestep", "l_phi")
_NON_NEGATIVE_FLOATS = ("refine_minimum_size_ratio", "refine_influence_initial",
                        "refine_influence_final")
_BOOLEANS = ("enable_phase_field", "refine", "debug", "progress_bar")


def set_parameters(dictionnaire=None):
    """
    Build the parameter dictionary of a run.

    Parameters
    ----------
    dictionnaire : dict, optional User values overriding the defaults

    Returns
    -------
    dict Complete, validated parameter dictionary

    Raises
    ------
    ValueError If a key is unknown or a value is out of range
    """
    parameters = default_parameters()
    unknown = set(dictionnaire or {}) - set(parameters)
    if unknown:
        raise ValueError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
    parameters.update(dictionnaire or {})
    check_parameters(parameters)
    if not parameters["output_dir"].endswith("/"):
        parameters["output_dir"] += "/"
    return parameters


def check_parameters(parameters):
    """
    Validate the ranges of a parameter dictionary.

    Parameters
    ----------
    parameters : dict Complete parameter dictionary

    Raises
    ------
    ValueError On the first offending key
    """
    for key in _POSITIVE_FLOATS:
        if not parameters[key] > 0:
            raise ValueError(f"{key} must be strictly positive, got {parameters[key]}")
    for key in _NON_NEGATIVE_FLOATS:
        if parameters[key] < 0:
            raise ValueError(f"{key} must be non negative, got {parameters[key]}")
    for key in _BOOLEANS:
        if not isinstance(parameters[key], bool):
            raise ValueError(f"{key} must be a boolean, got {parameters[key]!r}")
    if parameters["dim"] not in (2, 3):
        raise ValueError(f"dim must be 2 or 3, got {parameters['dim']}")
    if int(parameters["poly_degree"]) < 1:
        raise ValueError(f"poly_degree must be at least 1, got {parameters['poly_degree']}")
    if int(parameters["max_no_timesteps"]) < 0:
        raise ValueError("max_no_timesteps must be non negative")
    if int(parameters["switch_timestep"]) < 0:
        raise ValueError("switch_timestep must be non negative")
    if not parameters["timestep_reduction"] > 1:
        raise ValueError("timestep_reduction must be greater than 1")


def load_parameters(file_name):
    """
    Read a YAML parameter file.

    Parameters
    ----------
    file_name : str Path of a YAML file holding a flat mapping of parameters

    Returns
    -------
    dict Complete, validated parameter dictionary

    Raises
    ------
    FileNotFoundError If the file does not exist
    ValueError If the file does not hold a mapping or a value is invalid
    """
    if not path.isfile(file_name):
        raise FileNotFoundError(f"Parameter file does not exist: {file_name}")
    with open(file_name, "r", encoding="utf-8") as f:
        content = yaml.safe_load(f) or {}
    if not isinstance(content, dict):
        raise ValueError(f"{file_name} must contain a mapping of parameters")
    return set_parameters(content)
