"""Colour palette and behavior matrix.

The palette is nothing more than its size ``n``: colour classes are the
integers ``0 .. n-1`` and the mapping to display colours belongs to whoever
draws the particles.  The behavior matrix holds the affinity of every ordered
pair of classes.  ``values[a, b]`` is how strongly class ``a`` is pulled
towards (positive) or pushed away from (negative) class ``b``; it need not
equal ``values[b, a]``.
"""

import numpy as np

from particle_life.config import COLOR_COUNT_RANGE
from particle_life.errors import ConfigurationError, StaleColorClassError


def check_color_count_range(color_count_range):
    lo, hi = color_count_range
    if int(lo) != lo or int(hi) != hi:
        raise ConfigurationError(f"colour count range must be integral, got {color_count_range!r}")
    if lo < 1 or hi < lo:
        raise ConfigurationError(f"invalid colour count range {color_count_range!r}")
    return int(lo), int(hi)


class BehaviorMatrix:
    """Dense ``n x n`` affinity table in ``[-1, 1]``.

    Instances are never mutated: regeneration builds a new matrix, so a
    reference held by an in-flight tick keeps indexing the table it started
    with.
    """

    __slots__ = ("_values",)

    def __init__(self, values):
        arr = np.array(values, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] < 1:
            raise ConfigurationError(f"behavior matrix must be square and non-empty, got shape {arr.shape}")
        if not np.all(np.isfinite(arr)) or np.any(np.abs(arr) > 1.0):
            raise ConfigurationError("behavior matrix entries must lie in [-1, 1]")
        arr.setflags(write=False)
        self._values = arr

    # ── Generation ─────────────────────────────────────────────────────────────
    @classmethod
    def generate(cls, color_count_range=COLOR_COUNT_RANGE, rng=None):
        """Pick ``n`` uniformly from the inclusive range and fill an ``n x n`` table."""
        lo, hi = check_color_count_range(color_count_range)
        rng = rng if rng is not None else np.random.default_rng()
        n = int(rng.integers(lo, hi, endpoint=True))
        return cls.random(n, rng)

    @classmethod
    def random(cls, n, rng=None):
        """Every cell drawn independently from ``U[-1, 1]``."""
        if n < 1:
            raise ConfigurationError(f"palette needs at least one colour, got {n}")
        rng = rng if rng is not None else np.random.default_rng()
        return cls(rng.uniform(-1.0, 1.0, size=(n, n)))

    def regenerate(self, color_count_range=None, rng=None):
        """Fresh independent draw; same size unless a colour count range is given."""
        if color_count_range is None:
            return self.random(self.size, rng)
        return self.generate(color_count_range, rng)

    # ── Access ─────────────────────────────────────────────────────────────────
    @property
    def size(self):
        return self._values.shape[0]

    @property
    def values(self):
        """Read-only ``float64`` view, suitable for the compiled kernels."""
        return self._values

    def lookup(self, from_class, to_class):
        n = self.size
        for c in (from_class, to_class):
            if not 0 <= c < n:
                raise StaleColorClassError(c, n)
        return float(self._values[from_class, to_class])

    def check_classes(self, color_classes):
        """Raise if any id in ``color_classes`` is outside ``[0, n)``."""
        ids = np.asarray(color_classes)
        if ids.size == 0:
            return
        bad = (ids < 0) | (ids >= self.size)
        if bad.any():
            raise StaleColorClassError(int(ids[np.argmax(bad)]), self.size)

    def tolist(self):
        return self._values.tolist()

    def __eq__(self, other):
        if not isinstance(other, BehaviorMatrix):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    __hash__ = None

    def __repr__(self):
        return f"BehaviorMatrix(size={self.size})"
