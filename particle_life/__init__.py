"""Particle-life force core.

Colour-classed point particles attract or repel each other according to an
asymmetric behavior matrix and a three-zone force law.
"""

from particle_life.engine import ForceEngine, TickResult
from particle_life.errors import ConfigurationError, ParticleLifeError, StaleColorClassError
from particle_life.forces import flat_force, force_magnitude, piecewise_force
from particle_life.matrix import BehaviorMatrix
from particle_life.params import SimulationParameters
from particle_life.particles import ParticleSet, Snapshot
from particle_life.persistence import load_state, save_state
from particle_life.state import Command, SimulationState

__version__ = "0.2.0"

__all__ = [
    "BehaviorMatrix", "Command", "ConfigurationError", "ForceEngine",
    "ParticleLifeError", "ParticleSet", "SimulationParameters", "SimulationState",
    "Snapshot", "StaleColorClassError", "TickResult", "flat_force",
    "force_magnitude", "load_state", "piecewise_force", "save_state",
]
