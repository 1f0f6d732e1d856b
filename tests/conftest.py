"""Shared fakes: communicator, mesh backend and scripted field solvers."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from mpi4py import MPI

from Cracks import (
    FieldSolver,
    MeshManager,
    PhaseFieldSolver,
    PointHistoryStore,
    SimulationContext,
    SimulationState,
    set_parameters,
)
from Cracks.utils.mpi.parallel_output import ParallelOutput


class FakeComm:
    """One rank of a job of `size` ranks.

    `peers(value, op)` returns the contributions of the other ranks to a
    reduction; without it the job behaves as a single rank.
    """

    def __init__(self, rank=0, size=1, peers=None):
        self.rank = rank
        self.size = size
        self.peers = peers
        self.calls = []

    def allreduce(self, value, op=MPI.SUM):
        self.calls.append((value, op))
        values = [value]
        if self.peers is not None:
            values += list(self.peers(value, op))
        if op == MPI.SUM:
            return sum(values)
        if op == MPI.MAX:
            return max(values)
        raise NotImplementedError(op)


class FakeMeshBackend:
    """Flat list of quadrilateral cells; refining a cell splits it in two halves."""

    def __init__(self, diameters, log=None, dim=2):
        self.diameters = np.asarray(diameters, dtype=float)
        self.log = log if log is not None else []
        self.dim = dim

    def n_local_cells(self):
        return self.diameters.size

    def n_global_cells(self):
        return self.diameters.size

    def cell_diameters(self):
        return self.diameters.copy()

    def n_quadrature_points(self, poly_degree):
        return (poly_degree + 1) ** self.dim

    def refine(self, flags):
        self.log.append(("refine",))
        parents, diameters = [], []
        for cell, (diameter, flag) in enumerate(zip(self.diameters, flags)):
            children = 2 if flag else 1
            parents += [cell] * children
            diameters += [diameter / children] * children
        self.diameters = np.asarray(diameters)
        return np.asarray(parents)


class ScriptedField(FieldSolver):
    """Field with one dof per cell whose update outcomes are scripted.

    An outcome is a residual reduction, an exception to raise, or a callable
    of the context returning either. The default outcome is used once the
    script is exhausted.
    """

    def __init__(self, name, outcomes=None, default=0.1, log=None):
        super().__init__(name)
        self.outcomes = list(outcomes or [])
        self.default = default
        self.log = log if log is not None else []
        self.updates = []

    def setup_system(self, ctx):
        self.log.append(("setup", self.name))
        n_dofs = ctx.mesh.n_active_cells
        if self.state.n_dofs != n_dofs:
            self.state.resize(n_dofs)

    def update(self, ctx):
        self.log.append(("update", self.name))
        self.updates.append({"time": ctx.time, "timestep": ctx.timestep,
                             "step": ctx.state.timestep_number,
                             "solution": self.state.solution.copy()})
        self.state.solution += ctx.timestep
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if callable(outcome):
            outcome = outcome(ctx)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def prepare_refine(self, ctx):
        self.log.append(("prepare_refine", self.name))
        return self.state.solution.copy()

    def post_refine(self, handle, ctx):
        self.log.append(("post_refine", self.name))
        self.state.solution = handle[ctx.mesh.parent_cells]
        self.state.record()

    def output_results(self, sink):
        sink.add_data_vector(self.name, self.state.solution)


class ScriptedPhaseField(ScriptedField, PhaseFieldSolver):
    """Scripted damage field with a prescribed gradient norm per cell."""

    def __init__(self, name="phase field", **kwargs):
        super().__init__(name, **kwargs)
        self.grad_values = np.zeros(0)
        self.dim = 2
        self.n_q = 1
        self.bounds_enforced = 0

    def setup_system(self, ctx):
        super().setup_system(ctx)
        ctx.point_history.register("history")
        self.dim = ctx.mesh.dim
        self.n_q = ctx.mesh.n_q_points
        if self.grad_values.size != ctx.mesh.n_active_cells:
            self.grad_values = np.zeros(ctx.mesh.n_active_cells)

    def prepare_refine(self, ctx):
        return super().prepare_refine(ctx), self.grad_values.copy()

    def post_refine(self, handle, ctx):
        solution, grad_values = handle
        super().post_refine(solution, ctx)
        self.grad_values = grad_values[ctx.mesh.parent_cells]

    def quadrature_gradients(self):
        gradients = np.zeros((self.grad_values.size, self.n_q, self.dim))
        gradients[:, :, 0] = self.grad_values[:, None]
        return gradients

    def enforce_bounds(self, ctx):
        self.bounds_enforced += 1


@pytest.fixture
def mesh_file(tmp_path: Path) -> Path:
    path = tmp_path / "mesh.xdmf"
    path.write_text("<Xdmf/>", encoding="utf-8")
    return path


@pytest.fixture
def make_params(tmp_path: Path, mesh_file: Path):
    """Parameter dictionaries of small runs writing into tmp_path."""

    def _make(**overrides):
        dictionnaire = {"mesh_from": str(mesh_file),
                        "output_dir": str(tmp_path / "output"),
                        "timestep": 0.1,
                        "timestep_size_2": 0.1,
                        "max_no_timesteps": 3,
                        "upper_newton_rho": 1.0,
                        "progress_bar": False}
        dictionnaire.update(overrides)
        return dictionnaire

    return _make


def fake_reader(diameters=(1.0, 1.0, 1.0, 1.0), log=None):
    """Mesh reader returning a FakeMeshBackend, as passed to SimulationController."""

    def _read(file_name, comm):
        return FakeMeshBackend(diameters, log)

    return _read


def make_context(comm=None, diameters=(1.0, 1.0, 1.0, 1.0), log=None, **overrides):
    """Context on a fake mesh with the point history allocated."""
    comm = comm or FakeComm()
    parameters = set_parameters(overrides)
    mesh = MeshManager(FakeMeshBackend(diameters, log, parameters["dim"]), parameters["dim"],
                       parameters["poly_degree"])
    point_history = PointHistoryStore()
    point_history.initialize(mesh.n_active_cells, mesh.n_q_points)
    return SimulationContext(comm, parameters, SimulationState(parameters["timestep"]),
                             ParallelOutput(comm), point_history, mesh)
