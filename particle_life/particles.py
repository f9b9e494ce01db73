"""Particle snapshots and a small host-side particle store."""

import numpy as np

from particle_life.config import WORLD_H, WORLD_W
from particle_life.errors import ConfigurationError


def _as_positions(positions):
    pos = np.array(positions, dtype=np.float64)
    if pos.size == 0:
        pos = pos.reshape(0, 2)
    if pos.ndim != 2 or pos.shape[1] != 2:
        raise ConfigurationError(f"positions must have shape (n, 2), got {pos.shape}")
    return pos


def _as_classes(classes, n):
    raw = np.asarray(classes)
    if raw.dtype.kind not in "iu":
        try:
            vals = raw.astype(np.float64)
        except (TypeError, ValueError):
            raise ConfigurationError(f"colour classes must be integers, got {raw.dtype}") from None
        # a fractional id must not be truncated into a valid one
        if not np.all(np.isfinite(vals) & (vals == np.trunc(vals))):
            raise ConfigurationError("colour classes must be integral values")
    ids = np.array(raw, dtype=np.int64).reshape(-1)
    if ids.shape[0] != n:
        raise ConfigurationError(f"got {ids.shape[0]} colour classes for {n} positions")
    return ids


class Snapshot:
    """Read-only copy of every particle's position and colour class.

    Taken once before a tick; the force on every particle is computed from
    these pre-tick values only.
    """

    __slots__ = ("positions", "classes")

    def __init__(self, positions, classes):
        pos = _as_positions(positions)
        ids = _as_classes(classes, pos.shape[0])
        pos.setflags(write=False)
        ids.setflags(write=False)
        self.positions = pos
        self.classes   = ids

    def __len__(self):
        return self.positions.shape[0]


class ParticleSet:
    """Positions and colour classes of live particles.

    The force engine never owns particles; this store is what a host (the
    headless runner, the tests) keeps between ticks.  Positions are replaced
    only through :meth:`commit`, so a tick that raises leaves them untouched.
    """

    def __init__(self, positions=None, classes=None):
        self.positions = _as_positions(positions if positions is not None else [])
        self.classes   = _as_classes(classes if classes is not None else [], len(self.positions))

    def __len__(self):
        return self.positions.shape[0]

    # ── Spawning ───────────────────────────────────────────────────────────────
    def spawn(self, count, n_colors, bounds=(WORLD_W, WORLD_H), rng=None):
        """Add ``count`` particles at uniform positions in a ``w x h`` box
        centred on the origin, each with a uniform random colour class."""
        if count < 0:
            raise ConfigurationError(f"cannot spawn {count} particles")
        if n_colors < 1:
            raise ConfigurationError(f"palette needs at least one colour, got {n_colors}")
        rng = rng if rng is not None else np.random.default_rng()
        w, h = bounds
        xs  = rng.uniform(-w / 2.0, w / 2.0, size=count)
        ys  = rng.uniform(-h / 2.0, h / 2.0, size=count)
        ids = rng.integers(0, n_colors, size=count)
        self.positions = np.concatenate([self.positions, np.column_stack([xs, ys])])
        self.classes   = np.concatenate([self.classes, ids.astype(np.int64)])

    def clear(self):
        self.positions = np.empty((0, 2), dtype=np.float64)
        self.classes   = np.empty(0, dtype=np.int64)

    def respawn(self, n_colors, bounds=(WORLD_W, WORLD_H), rng=None):
        """Discard everything and spawn the same number of fresh particles."""
        count = len(self)
        self.clear()
        self.spawn(count, n_colors, bounds, rng)

    def remap_classes(self, n_colors):
        """Fold every class id into ``[0, n_colors)`` with ``id % n_colors``."""
        if n_colors < 1:
            raise ConfigurationError(f"palette needs at least one colour, got {n_colors}")
        self.classes = self.classes % n_colors

    # ── Tick plumbing ──────────────────────────────────────────────────────────
    def snapshot(self):
        return Snapshot(self.positions, self.classes)

    def commit(self, positions):
        pos = _as_positions(positions)
        if pos.shape[0] != len(self):
            raise ConfigurationError(f"got {pos.shape[0]} positions for {len(self)} particles")
        self.positions = pos

    def count_for(self, color_class):
        return int(np.count_nonzero(self.classes == color_class))
