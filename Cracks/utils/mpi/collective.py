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
Collective Reductions Module
============================

Thin wrappers around the reductions used to keep every rank on the same
control-flow branch. Each function is a collective operation: every rank of
``comm`` must call it, unconditionally and in the same order.
"""

from mpi4py.MPI import MAX, SUM


def global_sum(comm, value):
    """
    Sum a value over all ranks.

    Parameters
    ----------
    comm : mpi4py.MPI.Comm Communicator
    value : int or float Local contribution

    Returns
    -------
    int or float Sum of the contributions of all ranks
    """
    return comm.allreduce(value, op=SUM)


def global_max(comm, value):
    """
    Maximum of a value over all ranks.

    Parameters
    ----------
    comm : mpi4py.MPI.Comm Communicator
    value : int or float Local value

    Returns
    -------
    int or float Largest value of all ranks
    """
    return comm.allreduce(value, op=MAX)


def global_any(comm, flag):
    """
    Logical OR of a flag over all ranks, computed as a sum.

    Parameters
    ----------
    comm : mpi4py.MPI.Comm Communicator
    flag : bool Local flag

    Returns
    -------
    bool True if at least one rank raised the flag
    """
    return global_sum(comm, int(bool(flag))) > 0
