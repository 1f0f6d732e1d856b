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
Mesh Input Module
=================

Entry point used at startup to obtain the mesh of a run. Parsing the mesh
description is the job of a reader callable ``reader(path, comm)`` returning
a mesh backend, for instance :func:`Cracks.Mesh.dolfinx_mesh.read_xdmf_mesh`.
"""
from ..utils.errors import MeshFileNotFoundError

from os import path


def check_mesh_file(file_name):
    """
    Raises
    ------
    MeshFileNotFoundError If file_name does not point to an existing file
    """
    if not path.isfile(file_name):
        raise MeshFileNotFoundError(file_name)


def read_mesh(file_name, comm, reader):
    """
    Read the mesh of a run.

    Parameters
    ----------
    file_name : str Path of the mesh description
    comm : mpi4py.MPI.Comm Communicator over which the mesh is distributed
    reader : callable reader(file_name, comm) returning a mesh backend

    Returns
    -------
    object Mesh backend

    Raises
    ------
    MeshFileNotFoundError If the mesh file does not exist
    """
    check_mesh_file(file_name)
    return reader(file_name, comm)
