from __future__ import annotations

from math import exp

import numpy as np
import pytest

from Cracks import MeshRefiner, PhaseFieldFracture, refinement_threshold
from conftest import FakeComm, ScriptedField, ScriptedPhaseField, make_context


def test_threshold_formula():
    assert refinement_threshold(0.01, 0.5, 3.0) == pytest.approx(100 * exp(-3.0))
    assert refinement_threshold(0.01, 0.0, 0.0) == pytest.approx(100.0)


def build(grad_values, diameters=(1.0, 1.0, 1.0, 1.0), comm=None, enable=True, **overrides):
    elasticity = ScriptedField("elasticity")
    phasefield = ScriptedPhaseField()
    problem = PhaseFieldFracture(elasticity, phasefield, enable)
    ctx = make_context(comm=comm, diameters=diameters, enable_phase_field=enable,
                       l_phi=1.0, refine_influence_initial=0.0, refine_influence_final=0.0,
                       refine_minimum_size_ratio=0.25, **overrides)
    problem.setup_system(ctx)
    phasefield.grad_values = np.asarray(grad_values, dtype=float)
    return MeshRefiner(problem, ctx.parameters), problem, ctx


def test_marks_cells_above_threshold():
    refiner, problem, ctx = build([0.5, 2.0, 1.0, 3.0])
    assert refiner.threshold == pytest.approx(1.0)
    flags = refiner.mark_cells(problem.phasefield, ctx.mesh)
    np.testing.assert_array_equal(flags, [False, True, False, True])


def test_gradients_must_match_cells_and_quadrature_points():
    refiner, problem, ctx = build([2.0, 2.0, 2.0, 2.0])
    problem.phasefield.n_q = ctx.mesh.n_q_points - 1
    with pytest.raises(ValueError, match="quadrature points"):
        refiner.mark_cells(problem.phasefield, ctx.mesh)
    problem.phasefield.n_q = ctx.mesh.n_q_points
    problem.phasefield.grad_values = np.zeros(3)
    with pytest.raises(ValueError):
        refiner.mark_cells(problem.phasefield, ctx.mesh)


def test_small_cells_are_never_marked():
    refiner, problem, ctx = build([5.0, 5.0, 5.0, 5.0], diameters=(1.0, 0.2, 0.25, 0.1))
    flags = refiner.mark_cells(problem.phasefield, ctx.mesh)
    np.testing.assert_array_equal(flags, [True, False, True, False])


def test_refines_when_a_cell_is_marked():
    refiner, problem, ctx = build([0.0, 2.0, 0.0, 0.0])
    assert refiner.evaluate_and_apply(ctx)
    assert ctx.mesh.n_active_cells == 5
    assert ctx.mesh.n_refinements == 1
    assert problem.elasticity.state.n_dofs == 5
    ctx.point_history.check_size(5, ctx.mesh.n_q_points)


def test_no_refinement_when_no_rank_marks():
    comm = FakeComm(rank=0, size=3, peers=lambda value, op: [0, 0])
    refiner, _, ctx = build([0.0, 0.0, 0.0, 0.0], comm=comm)
    assert not refiner.evaluate_and_apply(ctx)
    assert ctx.mesh.n_refinements == 0
    assert len(comm.calls) == 1


def test_rank_without_marks_follows_peer():
    comm = FakeComm(rank=1, size=2, peers=lambda value, op: [1])
    refiner, _, ctx = build([0.0, 0.0, 0.0, 0.0], comm=comm)
    assert refiner.evaluate_and_apply(ctx)
    assert ctx.mesh.n_refinements == 1
    assert ctx.mesh.n_active_cells == 4


def test_local_marks_dropped_when_agreement_says_no():
    class DisagreeingComm(FakeComm):
        def allreduce(self, value, op=None):
            self.calls.append((value, op))
            return 0

    comm = DisagreeingComm()
    refiner, _, ctx = build([0.0, 2.0, 0.0, 0.0], comm=comm)
    assert not refiner.evaluate_and_apply(ctx)
    assert not ctx.mesh.refine_flags.any()
    assert ctx.mesh.n_active_cells == 4


def test_disabled_phase_field_skips_refinement_without_collectives():
    comm = FakeComm()
    refiner, _, ctx = build([2.0, 2.0, 2.0, 2.0], comm=comm, enable=False)
    assert not refiner.evaluate_and_apply(ctx)
    assert comm.calls == []
    assert ctx.mesh.n_refinements == 0
