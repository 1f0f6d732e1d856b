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
Simulation controller of the staggered phase field fracture scheme.

The controller owns the clock, the mesh and the point history of a run and
composes the staggered solver, the step-size control and the adaptive
refinement into the time-stepping loop:

    Advancing -> (Retrying) -> Accepted -> (Refining) -> Advancing ...

until the step index exceeds ``max_no_timesteps``.
"""
from ..Export.export_result import ExportResults
from ..Mesh.mesh_io import read_mesh
from ..Mesh.mesh_manager import MeshManager
from ..Mesh.point_history import PointHistoryStore
from ..Mesh.refinement import MeshRefiner
from ..utils.mpi.parallel_output import ParallelOutput
from ..utils.parameters import set_parameters
from .context import SimulationContext
from .staggered_solve import StaggeredSolver
from .time_stepping import SimulationState, TimestepAdapter

from mpi4py.MPI import COMM_WORLD
from tqdm import tqdm

ATTEMPTING = "attempting"
SHRINKING = "shrinking"
ACCEPTED = "accepted"


class SimulationController:
    """
    Top-level driver of a run.

    Parameters
    ----------
    problem : Multiphysics Coupled problem (e.g. PhaseFieldFracture)
    dictionnaire : dict Run parameters, merged over the defaults
    mesh_reader : callable reader(file_name, comm) returning a mesh backend
    comm : mpi4py.MPI.Comm, optional Communicator, COMM_WORLD by default

    Attributes
    ----------
    params : dict Validated run parameters
    state : SimulationState Clock of the run
    ctx : SimulationContext Context handed to every component
    history : list of dict One record per accepted step
    """
    def __init__(self, problem, dictionnaire, mesh_reader, comm=None):
        self.comm = COMM_WORLD if comm is None else comm
        self.params = set_parameters(dictionnaire)
        if getattr(problem, "enable_phase_field", self.params["enable_phase_field"]) \
                != self.params["enable_phase_field"]:
            raise ValueError("enable_phase_field differs between the problem and the parameters")
        self.problem = problem
        self.mesh_reader = mesh_reader
        self.out = ParallelOutput(self.comm, self.params["output_dir"] + "log.txt",
                                  self.params["debug"])
        self.state = SimulationState(self.params["timestep"])
        self.point_history = PointHistoryStore()
        self.ctx = SimulationContext(self.comm, self.params, self.state, self.out,
                                     self.point_history)
        self.adapter = TimestepAdapter.from_parameters(self.params)
        self.staggered_solver = StaggeredSolver(problem)
        self.refiner = MeshRefiner(problem, self.params)
        self.export = None
        self.history = []

    def run(self):
        """
        Execute the complete simulation.

        Returns
        -------
        list of dict Records of the accepted steps

        Raises
        ------
        MeshFileNotFoundError If the mesh file does not exist; nothing is solved
        """
        try:
            self.print_run_info()
            self.setup_mesh()
            self.setup_system()
            self.export = ExportResults(self.params["output_dir"], self.comm)
            self.time_loop()
            self.final_output(self.ctx)
            self.export.write_statistics()
        finally:
            self.out.close()
        return self.history

    def print_run_info(self):
        self.out.dcout(f"Project: {self.params['project_name']}")
        self.out.dcout(f"Mesh from: {self.params['mesh_from']}")
        self.out.dcout(f"Output directory: {self.params['output_dir']}")
        self.out.dcout(f"Solving {self.params['dim']} dimensional PFM problem")
        self.out.dcout(f"Running on {self.comm.size} MPI rank(s)")

    def setup_mesh(self):
        backend = read_mesh(self.params["mesh_from"], self.comm, self.mesh_reader)
        self.ctx.mesh = MeshManager.from_parameters(backend, self.params)
        self.out.dcout(f"Find {self.ctx.mesh.n_global_active_cells} elements")

    def setup_system(self):
        """Degree-of-freedom layouts of all fields and point history allocation."""
        self.problem.setup_system(self.ctx)
        mesh = self.ctx.mesh
        self.point_history.initialize(mesh.n_active_cells, mesh.n_q_points)

    def time_loop(self):
        state = self.state
        max_no_timesteps = int(self.params["max_no_timesteps"])
        n_steps = max(max_no_timesteps - state.timestep_number + 1, 0)
        show_bar = self.params["progress_bar"] and self.comm.rank == 0
        with tqdm(total=n_steps, desc="Progression", unit="step", disable=not show_bar) as pbar:
            while state.timestep_number <= max_no_timesteps:
                self.select_timestep()
                record = self.solve_timestep()
                self.output_results()
                self.history.append(record)
                self.query_output(self.ctx)
                state.timestep_number += 1
                if self.params["refine"]:
                    record["refined"] = self.refiner.evaluate_and_apply(self.ctx)
                pbar.update(1)

    def select_timestep(self):
        """Switch to the second step size once switch_timestep is passed."""
        switch = int(self.params["switch_timestep"])
        if switch > 0 and self.state.timestep_number > switch:
            self.state.current_timestep = self.params["timestep_size_2"]

    def solve_timestep(self):
        """
        Advance the clock and run the attempt loop until the step is accepted.
        The step size shrunk by the retries is restored afterwards.

        Returns
        -------
        dict Record of the accepted step
        """
        state = self.state
        tmp_current_timestep = state.current_timestep
        state.old_timestep = state.current_timestep
        n_cells = self.ctx.mesh.n_global_active_cells
        self.out.pcout("\n" + "=" * 71)
        self.out.pcout(f"Time {state.timestep_number}: {state.time} ({state.current_timestep})"
                       f"   Cells: {n_cells}")
        self.out.pcout("-" * 71 + "\n")
        state.time += state.current_timestep
        record = self.attempt_loop()
        state.current_timestep = tmp_current_timestep
        return record

    def attempt_loop(self):
        """
        Retry state machine of one time step.

        ATTEMPTING records the old solutions and runs a sweep. A diverged
        sweep rolls back, shrinks the step and restarts ATTEMPTING. A
        converged sweep with an excessive residual reduction moves to
        SHRINKING, which shrinks the step, rolls the solutions back and
        sweeps again until the reduction is acceptable.

        Both retries stop once the step falls below min_timestep: the step
        is accepted with a warning. After a divergence the accepted
        solutions are the recorded ones of the previous step.

        Returns
        -------
        dict Record of the accepted step
        """
        state = self.state
        record = {"step": state.timestep_number, "divergence_retries": 0,
                  "residual_shrinks": 0, "floor_reached": False, "refined": False}
        phase = ATTEMPTING
        while phase != ACCEPTED:
            if phase == ATTEMPTING:
                self.problem.record_old_solution()
            else:
                self.adapter.shrink(state)
                self.problem.return_old_solution()
                record["residual_shrinks"] += 1
            status = self.staggered_solver.sweep(self.ctx)

            if status.diverged:
                self.recover_from_divergence(status)
                record["divergence_retries"] += 1
                if self.adapter.below_floor(state):
                    self.out.dcout("Step size too small - keeping the step size")
                    record["floor_reached"] = True
                    phase = ACCEPTED
                else:
                    phase = ATTEMPTING
            elif not self.adapter.exceeds_threshold(status.residual_reduction):
                phase = ACCEPTED
            elif phase == SHRINKING and self.adapter.below_floor(state):
                self.out.dcout("Step size too small - keeping the step size")
                record["floor_reached"] = True
                phase = ACCEPTED
            else:
                phase = SHRINKING
        record.update(time=state.time, timestep=state.current_timestep,
                      residual_reduction=status.residual_reduction)
        return record

    def recover_from_divergence(self, status):
        """
        Roll the solutions back to the recorded ones and shrink the step.

        Parameters
        ----------
        status : Diverged Agreed outcome of the failed sweep
        """
        self.out.dcout(f"Solver did not converge! Adjusting time step. ({status.reason})")
        self.problem.return_old_solution()
        self.adapter.shrink(self.state)

    def output_results(self):
        state = self.state
        sink = self.export
        sink.new_step()
        sink.add_subdomain(self.ctx.mesh.n_active_cells)
        sink.add_statistics(state.timestep_number, state.time)
        self.problem.output_results(sink, self.ctx)
        sink.write_results(state.timestep_number)
        sink.write_statistics()

    def query_output(self, ctx):
        """
        User-defined output after each accepted step.

        Parameters
        ----------
        ctx : SimulationContext
        """
        pass

    def final_output(self, ctx):
        """
        User-defined output at the end of the run.

        Parameters
        ----------
        ctx : SimulationContext
        """
        pass
