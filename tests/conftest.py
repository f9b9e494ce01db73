"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from particle_life.matrix import BehaviorMatrix  # noqa: E402
from particle_life.params import SimulationParameters  # noqa: E402


@pytest.fixture
def rng():
    """Seeded generator so random draws are repeatable."""
    return np.random.default_rng(1234)


@pytest.fixture
def unit_params():
    """beta=0.2, gamma=0.8, radius=10, speed=1."""
    return SimulationParameters(speed=1.0, beta=0.2, gamma=0.8, attraction_radius=10.0)


@pytest.fixture
def chase_matrix():
    """Class 0 is drawn to class 1, class 1 flees class 0."""
    return BehaviorMatrix([[0.0, 1.0], [-1.0, 0.0]])


@pytest.fixture
def random_cloud(rng):
    """300 particles of 4 classes in a 400 x 300 box and a matching matrix."""
    positions = np.column_stack([rng.uniform(0, 400, 300), rng.uniform(0, 300, 300)])
    classes = rng.integers(0, 4, 300)
    return positions, classes, BehaviorMatrix.random(4, rng)
