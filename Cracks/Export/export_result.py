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
Result Export
=============

Output sink of the simulation core. Each accepted step collects the data
vectors of every field plus the owning rank of each cell, then writes them
per rank; the (Step, Time) statistics are written by rank 0.
"""
from .statistics import StatisticsTable

from os import makedirs, path
from numpy import asarray, full, savez_compressed


class ExportResults:
    """
    Per-step field data and running statistics.

    Attributes
    ----------
    output_dir : str Directory receiving the result files
    comm : mpi4py.MPI.Comm Communicator of the run
    data : dict Data vectors of the current step
    statistics : StatisticsTable
    """
    STATISTICS_FILE = "statistics.txt"

    def __init__(self, output_dir, comm):
        self.output_dir = output_dir
        self.comm = comm
        self.data = {}
        self.statistics = StatisticsTable()
        makedirs(output_dir, exist_ok=True)

    def new_step(self):
        self.data = {}

    def add_data_vector(self, name, values):
        """
        Register a data vector of the current step.

        Raises
        ------
        ValueError If a vector with the same name has already been added
        """
        if name in self.data:
            raise ValueError(f"Data vector {name} already added for this step")
        self.data[name] = asarray(values)

    def add_subdomain(self, n_cells):
        """Owning rank of each locally owned cell."""
        self.add_data_vector("subdomain", full(n_cells, self.comm.rank, dtype=float))

    def add_statistics(self, step, time):
        self.statistics.add_value(step, time)

    def result_file(self, step):
        return path.join(self.output_dir, f"solution-{step:04d}.{self.comm.rank}.npz")

    def write_results(self, step):
        """
        Write the data vectors of the current step of this rank.

        Returns
        -------
        str Path of the written file
        """
        file_name = self.result_file(step)
        savez_compressed(file_name, **self.data)
        return file_name

    def write_statistics(self):
        if self.comm.rank == 0:
            self.statistics.write_text(path.join(self.output_dir, self.STATISTICS_FILE))
