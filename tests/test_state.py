"""Tests for SimulationState commands and the snapshot/commit tick."""

import numpy as np
import pytest

from particle_life.engine import ForceEngine
from particle_life.errors import ConfigurationError, StaleColorClassError
from particle_life.matrix import BehaviorMatrix
from particle_life.particles import ParticleSet
from particle_life.state import Command, SimulationState


@pytest.fixture
def state(unit_params, rng):
    particles = ParticleSet([(0.0, 0.0), (5.0, 0.0)], [0, 0])
    return SimulationState(BehaviorMatrix([[1.0]]), unit_params, particles,
                           ForceEngine("python"), rng=rng, color_count_range=(2, 6))


class TestStep:

    def test_commits_new_positions(self, state):
        result = state.step(1.0)
        np.testing.assert_allclose(state.particles.positions, [[0.5, 0.0], [4.5, 0.0]])
        np.testing.assert_array_equal(state.particles.positions, result.positions)
        assert state.ticks == 1

    def test_failed_tick_keeps_previous_positions(self, state):
        before = state.particles.positions.copy()
        state.particles.classes[1] = 3
        with pytest.raises(StaleColorClassError):
            state.step(1.0)
        np.testing.assert_array_equal(state.particles.positions, before)
        assert state.ticks == 0

    def test_external_snapshot_is_not_committed(self, state):
        snap = ParticleSet([(0.0, 0.0), (0.0, 5.0)], [0, 0]).snapshot()
        result = state.tick(snap, 1.0)
        assert result.positions[0, 1] == pytest.approx(0.5)
        assert state.particles.positions[1].tolist() == [5.0, 0.0]


class TestCommands:

    def test_submitted_commands_wait_for_next_tick(self, state):
        state.submit(Command.DOUBLE_SPEED)
        state.submit("double_speed")
        assert state.params.speed == 1.0
        result = state.step(1.0)
        assert state.params.speed == 4.0
        assert result.velocities[0, 0] == pytest.approx(2.0)

    def test_apply_pending_order(self, state):
        state.submit(Command.DOUBLE_SPEED)
        state.submit(Command.HALVE_SPEED)
        state.submit(Command.HALVE_SPEED)
        applied = state.apply_pending()
        assert [c for c, _ in applied] == [Command.DOUBLE_SPEED, Command.HALVE_SPEED,
                                           Command.HALVE_SPEED]
        assert state.params.speed == 0.5
        assert state.apply_pending() == []

    def test_unknown_command(self, state):
        with pytest.raises(ValueError):
            state.submit("explode")

    def test_regenerate_matrix_keeps_size(self, state):
        old = state.matrix
        state.regenerate_behavior_matrix()
        assert state.matrix.size == 1
        assert state.matrix is not old

    def test_regenerate_shape_constants(self, state):
        state.regenerate_shape_constants()
        p = state.params
        assert 0.1 <= p.beta <= 0.4 and 0.6 <= p.gamma <= 0.9
        assert p.speed == 1.0


class TestPalettePolicy:

    def _crowd(self, state, n_colors):
        state.matrix = BehaviorMatrix.random(n_colors, state.rng)
        state.particles.clear()
        state.spawn(200)

    def test_remap_folds_classes(self, state):
        self._crowd(state, 8)
        before = state.particles.classes.copy()
        positions = state.particles.positions.copy()
        state.submit(Command.REGENERATE_PALETTE, 3)
        state.apply_pending()
        assert state.palette_size == 3
        np.testing.assert_array_equal(state.particles.classes, before % 3)
        np.testing.assert_array_equal(state.particles.positions, positions)
        state.step(0.1)

    def test_respawn_replaces_particles(self, state):
        state.palette_policy = "respawn"
        self._crowd(state, 8)
        state.regenerate_palette(2)
        assert len(state.particles) == 200
        assert state.particles.classes.max() < 2
        state.step(0.1)

    def test_size_drawn_from_range(self, state):
        state.regenerate_palette()
        assert 2 <= state.palette_size <= 6

    def test_unknown_policy(self, unit_params):
        with pytest.raises(ConfigurationError):
            SimulationState(BehaviorMatrix([[1.0]]), unit_params, palette_policy="ignore")


def test_create_is_seeded():
    a = SimulationState.create((2, 16), "random", seed=42, engine=ForceEngine("python"))
    b = SimulationState.create((2, 16), "random", seed=42, engine=ForceEngine("python"))
    assert a.matrix == b.matrix
    assert a.params == b.params
    a.spawn(10)
    b.spawn(10)
    np.testing.assert_array_equal(a.particles.positions, b.particles.positions)


class TestLifecycle:

    def test_close_shuts_down_worker_pool(self, unit_params, rng):
        particles = ParticleSet([(0.0, 0.0), (5.0, 0.0), (0.0, 5.0)], [0, 0, 0])
        with SimulationState(BehaviorMatrix([[1.0]]), unit_params, particles,
                             ForceEngine("python", workers=2), rng=rng) as state:
            state.step(1.0)
            assert state.engine._executor is not None
        assert state.engine._executor is None

    def test_close_is_repeatable(self, state):
        state.close()
        state.close()
        state.step(1.0)
