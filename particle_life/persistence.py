"""Save / load a complete simulation state as JSON."""

import json
import logging

from particle_life.engine import ForceEngine
from particle_life.forces import LAW_PIECEWISE
from particle_life.matrix import BehaviorMatrix
from particle_life.params import SimulationParameters
from particle_life.particles import ParticleSet
from particle_life.state import POLICY_REMAP, SimulationState

log = logging.getLogger(__name__)

FORMAT_VERSION = 1


def state_to_dict(state):
    parts = state.particles
    return {
        "version": FORMAT_VERSION,
        "palette_size": state.matrix.size,
        "color_count_range": list(state.color_count_range),
        "behavior_matrix": state.matrix.tolist(),
        "physics": state.params.as_dict(),
        "force_law": state.engine.law,
        "palette_policy": state.palette_policy,
        "bounds": list(state.bounds),
        "particles": [
            {"x": x, "y": y, "class": c}
            for (x, y), c in zip(parts.positions.tolist(), parts.classes.tolist())
        ],
    }


def state_from_dict(data, engine=None, **engine_kwargs):
    """Rebuild a state; class ids and parameters are validated as usual.

    Without an ``engine`` one is built from ``engine_kwargs``, taking the
    force law stored in ``data`` unless ``law`` is given explicitly.
    """
    matrix = BehaviorMatrix(data["behavior_matrix"])
    params = SimulationParameters.from_dict(data["physics"])
    pdata = data.get("particles", [])
    particles = ParticleSet([(p["x"], p["y"]) for p in pdata],
                            [p["class"] for p in pdata])
    matrix.check_classes(particles.classes)
    if engine is None:
        if engine_kwargs.get("law") is None:
            engine_kwargs["law"] = data.get("force_law", LAW_PIECEWISE)
        engine = ForceEngine(**engine_kwargs)
    kwargs = {}
    if "color_count_range" in data:
        kwargs["color_count_range"] = tuple(data["color_count_range"])
    if "bounds" in data:
        kwargs["bounds"] = tuple(data["bounds"])
    return SimulationState(matrix, params, particles, engine,
                           palette_policy=data.get("palette_policy", POLICY_REMAP),
                           **kwargs)


def save_state(state, path):
    """Write current simulation state to JSON file."""
    with open(path, "w") as f:
        json.dump(state_to_dict(state), f)
    log.info("saved %d particles to %s", len(state.particles), path)


def load_state(path, engine=None, **engine_kwargs):
    """Load simulation state from JSON file."""
    with open(path) as f:
        data = json.load(f)
    state = state_from_dict(data, engine, **engine_kwargs)
    log.info("loaded %d particles, %d colours from %s",
             len(state.particles), state.matrix.size, path)
    return state
