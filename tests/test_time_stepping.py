from __future__ import annotations

import numpy as np
import pytest

from Cracks import FieldState, SimulationState, TimestepAdapter, set_parameters


def test_state_rejects_non_positive_step():
    with pytest.raises(ValueError):
        SimulationState(0.0)


def test_state_starts_at_step_one():
    state = SimulationState(0.1)
    assert state.timestep_number == 1
    assert state.time == 0.0
    assert state.current_timestep == state.old_timestep == 0.1


def test_shrink_divides_step_and_moves_clock():
    state = SimulationState(0.1)
    state.time = 0.3
    adapter = TimestepAdapter(0.9)
    adapter.shrink(state)
    assert state.current_timestep == pytest.approx(0.01)
    assert state.time == pytest.approx(0.21)
    adapter.shrink(state)
    assert state.current_timestep == pytest.approx(0.001)
    assert state.time == pytest.approx(0.201)


def test_threshold_and_floor():
    adapter = TimestepAdapter.from_parameters(set_parameters({"upper_newton_rho": 0.5,
                                                              "min_timestep": 1e-3}))
    assert not adapter.exceeds_threshold(0.5)
    assert adapter.exceeds_threshold(0.51)
    state = SimulationState(1e-3)
    assert not adapter.below_floor(state)
    adapter.shrink(state)
    assert adapter.below_floor(state)
    assert state.current_timestep > 0


def test_field_state_snapshot_restores_verbatim():
    field_state = FieldState(3)
    field_state.solution[:] = [1.0, 2.0, 3.0]
    field_state.record()
    field_state.solution += 10.0
    field_state.restore()
    np.testing.assert_array_equal(field_state.solution, [1.0, 2.0, 3.0])
    field_state.solution[0] = -1.0
    assert field_state.old_solution[0] == 1.0


def test_field_state_resize_discards_content():
    field_state = FieldState(2)
    field_state.solution[:] = 5.0
    field_state.resize(4)
    assert field_state.n_dofs == 4
    np.testing.assert_array_equal(field_state.old_solution, np.zeros(4))
