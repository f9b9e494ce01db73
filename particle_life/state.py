"""Explicitly owned simulation state and the control commands acting on it."""

import enum
import logging
import threading
from collections import deque

import numpy as np

from particle_life.config import COLOR_COUNT_RANGE, PROFILE_FIXED, WORLD_H, WORLD_W
from particle_life.engine import ForceEngine
from particle_life.errors import ConfigurationError
from particle_life.matrix import BehaviorMatrix, check_color_count_range
from particle_life.params import SimulationParameters
from particle_life.particles import ParticleSet

log = logging.getLogger(__name__)

POLICY_REMAP   = "remap"
POLICY_RESPAWN = "respawn"
POLICIES       = (POLICY_REMAP, POLICY_RESPAWN)


class Command(enum.Enum):
    REGENERATE_BEHAVIOR_MATRIX = "regenerate_behavior_matrix"
    REGENERATE_SHAPE_CONSTANTS = "regenerate_shape_constants"
    REGENERATE_PALETTE         = "regenerate_palette"
    DOUBLE_SPEED               = "double_speed"
    HALVE_SPEED                = "halve_speed"


class SimulationState:
    """Palette, behavior matrix, parameters and (optionally) the particles.

    Control commands may be submitted from any thread with :meth:`submit`;
    they are applied together at the start of the next :meth:`step`, never
    while a tick is computing.  The direct methods (``double_speed`` and
    friends) take the same lock, so they too wait for a running tick.

    When the palette size changes, existing particles are either folded
    into the new index range (``remap``: ``id % n``) or thrown away and
    spawned again (``respawn``).
    """

    def __init__(self, matrix, params, particles=None, engine=None, rng=None,
                 color_count_range=COLOR_COUNT_RANGE, palette_policy=POLICY_REMAP,
                 bounds=(WORLD_W, WORLD_H)):
        if palette_policy not in POLICIES:
            raise ConfigurationError(
                f"unknown palette policy {palette_policy!r}, expected one of {POLICIES}")
        self.color_count_range = check_color_count_range(color_count_range)
        self.matrix         = matrix
        self.params         = params
        self.particles      = particles if particles is not None else ParticleSet()
        self.engine         = engine if engine is not None else ForceEngine()
        self.rng            = rng if rng is not None else np.random.default_rng()
        self.palette_policy = palette_policy
        self.bounds         = bounds
        self.ticks          = 0
        self._lock          = threading.RLock()
        self._pending       = deque()

    @classmethod
    def create(cls, color_count_range=COLOR_COUNT_RANGE, profile=PROFILE_FIXED,
               seed=None, **kwargs):
        """Fresh random palette, matrix and parameters."""
        rng = np.random.default_rng(seed)
        matrix = BehaviorMatrix.generate(color_count_range, rng)
        params = SimulationParameters.sample(profile, rng)
        log.info("created palette of %d colours, %r", matrix.size, params)
        log.debug("behavior matrix: %s", matrix.tolist())
        return cls(matrix, params, rng=rng, color_count_range=color_count_range, **kwargs)

    @property
    def palette_size(self):
        return self.matrix.size

    # ── Lifecycle ──────────────────────────────────────────────────────────────
    def close(self):
        """Release the engine's worker threads."""
        with self._lock:
            self.engine.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── Commands ───────────────────────────────────────────────────────────────
    def submit(self, command, argument=None):
        """Queue a command for the next tick.  Safe to call mid-tick."""
        command = Command(command)
        self._pending.append((command, argument))

    def apply_pending(self):
        """Apply every queued command in submission order; returns them."""
        applied = []
        with self._lock:
            while self._pending:
                command, argument = self._pending.popleft()
                self.apply(command, argument)
                applied.append((command, argument))
        return applied

    def apply(self, command, argument=None):
        command = Command(command)
        if command is Command.REGENERATE_BEHAVIOR_MATRIX:
            self.regenerate_behavior_matrix()
        elif command is Command.REGENERATE_SHAPE_CONSTANTS:
            self.regenerate_shape_constants()
        elif command is Command.REGENERATE_PALETTE:
            self.regenerate_palette(argument)
        elif command is Command.DOUBLE_SPEED:
            self.double_speed()
        else:
            self.halve_speed()

    def regenerate_behavior_matrix(self):
        """New random matrix of the same size."""
        with self._lock:
            self.matrix = self.matrix.regenerate(rng=self.rng)
            log.info("behavior matrix regenerated (%d colours)", self.matrix.size)
            log.debug("behavior matrix: %s", self.matrix.tolist())

    def regenerate_shape_constants(self):
        with self._lock:
            self.params.regenerate_shape_constants(self.rng)
            log.info("shape constants regenerated: %r", self.params)

    def regenerate_palette(self, color_count=None):
        """New palette of ``color_count`` colours (drawn from the configured
        range when omitted) and a new matrix, with particles fixed up by the
        palette policy in the same step."""
        with self._lock:
            if color_count is None:
                matrix = BehaviorMatrix.generate(self.color_count_range, self.rng)
            else:
                matrix = BehaviorMatrix.random(int(color_count), self.rng)
            n = matrix.size
            if self.palette_policy == POLICY_RESPAWN:
                self.particles.respawn(n, self.bounds, self.rng)
            else:
                self.particles.remap_classes(n)
            self.matrix = matrix
            log.info("palette regenerated: %d colours, particles %s",
                     n, "respawned" if self.palette_policy == POLICY_RESPAWN else "remapped")
            log.debug("behavior matrix: %s", matrix.tolist())

    def double_speed(self):
        with self._lock:
            self.params.double_speed()
            log.info("speed doubled to %g", self.params.speed)

    def halve_speed(self):
        with self._lock:
            self.params.halve_speed()
            log.info("speed halved to %g", self.params.speed)

    # ── Particles ──────────────────────────────────────────────────────────────
    def spawn(self, count):
        with self._lock:
            self.particles.spawn(count, self.matrix.size, self.bounds, self.rng)

    # ── Tick ───────────────────────────────────────────────────────────────────
    def step(self, dt):
        """Apply pending commands, then advance the owned particles by ``dt``.

        New positions are committed only after the whole tick succeeded.
        """
        with self._lock:
            self.apply_pending()
            result = self.engine.tick(self.particles.snapshot(), self.matrix, self.params, dt)
            self.particles.commit(result.positions)
            self.ticks += 1
            return result

    def tick(self, snapshot, dt):
        """Advance an externally owned snapshot; nothing here is committed."""
        with self._lock:
            self.apply_pending()
            result = self.engine.tick(snapshot, self.matrix, self.params, dt)
            self.ticks += 1
            return result
