"""Tests for JSON state persistence."""

import json

import numpy as np
import pytest

from particle_life.engine import ForceEngine
from particle_life.errors import ConfigurationError, StaleColorClassError
from particle_life.persistence import load_state, save_state
from particle_life.state import SimulationState


@pytest.fixture
def saved(tmp_path):
    state = SimulationState.create((3, 5), "random", seed=3,
                                   engine=ForceEngine("python", law="flat"),
                                   palette_policy="respawn")
    state.spawn(25)
    path = tmp_path / "state.json"
    save_state(state, path)
    return state, path


def test_reload_restores_everything(saved):
    state, path = saved
    loaded = load_state(path)
    assert loaded.matrix == state.matrix
    assert loaded.params == state.params
    assert loaded.engine.law == "flat"
    assert loaded.palette_policy == "respawn"
    assert loaded.color_count_range == (3, 5)
    np.testing.assert_array_equal(loaded.particles.positions, state.particles.positions)
    np.testing.assert_array_equal(loaded.particles.classes, state.particles.classes)


def test_stale_class_in_file_rejected(saved):
    _, path = saved
    data = json.loads(path.read_text())
    data["particles"][0]["class"] = data["palette_size"]
    path.write_text(json.dumps(data))
    with pytest.raises(StaleColorClassError):
        load_state(path)


def test_engine_options_keep_saved_law(saved):
    _, path = saved
    loaded = load_state(path, backend="python", integration="velocity")
    assert loaded.engine.law == "flat"
    assert loaded.engine.integration == "velocity"


def test_unknown_profile_in_file_rejected(saved):
    _, path = saved
    data = json.loads(path.read_text())
    data["physics"]["profile"] = "bogus"
    path.write_text(json.dumps(data))
    with pytest.raises(ConfigurationError):
        load_state(path)
