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
Parallel Output Module
======================

Console and log-file streams that display a message once per MPI job
instead of once per rank.
"""

from os import makedirs, path

import builtins as __builtin__


class ParallelOutput:
    """
    Rank-filtered output streams.

    Attributes
    ----------
    comm : mpi4py.MPI.Comm Communicator of the run
    log_file : str or None Path of the log file written by dcout
    is_debug : bool Whether debug messages are displayed
    """
    def __init__(self, comm, log_file=None, debug=False):
        """
        Parameters
        ----------
        comm : mpi4py.MPI.Comm Communicator of the run
        log_file : str, optional Path of the log file, created on first write
        debug : bool, optional Display debug messages
        """
        self.comm = comm
        self.log_file = log_file
        self.is_debug = debug
        self._fout = None

    @property
    def is_root(self):
        return self.comm.rank == 0

    def pcout(self, *args, **kwargs):
        """Print on rank 0 only."""
        if self.is_root:
            __builtin__.print(*args, **kwargs)

    def dcout(self, *args, **kwargs):
        """Print on rank 0 and append the same line to the log file."""
        if not self.is_root:
            return
        __builtin__.print(*args, **kwargs)
        fout = self._open()
        if fout is not None:
            kwargs.pop("file", None)
            __builtin__.print(*args, file=fout, **kwargs)
            fout.flush()

    def debug(self, *args, **kwargs):
        """dcout restricted to runs with debug enabled."""
        if self.is_debug:
            self.dcout(*args, **kwargs)

    def _open(self):
        if self._fout is None and self.log_file is not None:
            directory = path.dirname(self.log_file)
            if directory:
                makedirs(directory, exist_ok=True)
            self._fout = open(self.log_file, "a", encoding="utf-8")
        return self._fout

    def close(self):
        """Close the log file if it has been opened."""
        if self._fout is not None:
            self._fout.close()
            self._fout = None
