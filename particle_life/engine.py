"""Per-tick interaction kernel.

Every tick reads one :class:`~particle_life.particles.Snapshot` and produces
fresh output arrays; nothing in the snapshot is written.  For each particle
``i`` the engine averages, over every other particle ``j`` strictly inside
the attraction radius, the unit vector towards ``j`` scaled by the force law
evaluated with ``matrix[class_i, class_j]``.  Pairs at zero distance are
skipped.  The mean force is then integrated with forward Euler.

Three backends compute the same forces:

``python``  plain loops, split into chunks over a thread pool
``numba``   compiled all-pairs kernel, parallel over ``i``
``grid``    compiled kernel over a spatial hash with cell size >= radius;
            candidates are visited in ascending index order so neighbour
            set and summation order match ``numba`` exactly
"""

import logging
import math
import time
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from numba import njit, prange

from particle_life.config import BACKEND, WORKERS
from particle_life.errors import ConfigurationError
from particle_life.forces import LAW_PIECEWISE, law_code, law_function, magnitude_nb

log = logging.getLogger(__name__)

BACKENDS = ("python", "numba", "grid")

INTEGRATE_POSITION = "position"
INTEGRATE_VELOCITY = "velocity"
INTEGRATIONS       = (INTEGRATE_POSITION, INTEGRATE_VELOCITY)

# upper bound on hash cells per particle before the cell size is widened
GRID_CELLS_PER_PARTICLE = 4

TickResult = namedtuple("TickResult", "positions velocities forces neighbor_counts")
TickResult.__doc__ = """Output of one tick, row ``i`` belonging to snapshot particle ``i``.

``velocities`` is ``forces * speed``.  With position integration
``positions`` is ``old + velocities * dt``; with velocity integration it is a
copy of the old positions and the host steps the velocities itself.
"""


# ═══════════════════════════════════════════════════════════════════════════════
#  COMPILED KERNELS
# ═══════════════════════════════════════════════════════════════════════════════

@njit(parallel=True)
def _all_pairs_kernel(xs, ys, classes, matrix, code, beta, gamma, radius,
                      forces, counts):
    n = xs.shape[0]
    for i in prange(n):
        x = xs[i]; y = ys[i]
        row = classes[i]
        fx = 0.0; fy = 0.0
        k = 0
        for j in range(n):
            if j == i:
                continue
            dx = xs[j] - x
            dy = ys[j] - y
            d = math.hypot(dx, dy)
            if d == 0.0:
                continue
            rn = d / radius
            if rn >= 1.0:
                continue
            f = magnitude_nb(code, rn, matrix[row, classes[j]], beta, gamma)
            fx += dx / d * f
            fy += dy / d * f
            k += 1
        if k > 0:
            fx /= k
            fy /= k
        forces[i, 0] = fx
        forces[i, 1] = fy
        counts[i] = k


@njit(parallel=True)
def _grid_kernel(xs, ys, classes, matrix, code, beta, gamma, radius,
                 cx, cy, cols, rows, offsets, order, forces, counts):
    n = xs.shape[0]
    for i in prange(n):
        gx0 = max(cx[i] - 1, 0); gx1 = min(cx[i] + 2, cols)
        gy0 = max(cy[i] - 1, 0); gy1 = min(cy[i] + 2, rows)
        m = 0
        for gy in range(gy0, gy1):
            for gx in range(gx0, gx1):
                base = gx + gy * cols
                m += offsets[base + 1] - offsets[base]
        cand = np.empty(m, dtype=np.int64)
        m = 0
        for gy in range(gy0, gy1):
            for gx in range(gx0, gx1):
                base = gx + gy * cols
                for idx in range(offsets[base], offsets[base + 1]):
                    cand[m] = order[idx]
                    m += 1
        cand.sort()

        x = xs[i]; y = ys[i]
        row = classes[i]
        fx = 0.0; fy = 0.0
        k = 0
        for c in range(m):
            j = cand[c]
            if j == i:
                continue
            dx = xs[j] - x
            dy = ys[j] - y
            d = math.hypot(dx, dy)
            if d == 0.0:
                continue
            rn = d / radius
            if rn >= 1.0:
                continue
            f = magnitude_nb(code, rn, matrix[row, classes[j]], beta, gamma)
            fx += dx / d * f
            fy += dy / d * f
            k += 1
        if k > 0:
            fx /= k
            fy /= k
        forces[i, 0] = fx
        forces[i, 1] = fy
        counts[i] = k


def _grid_shape(span, cell):
    return int(span[0] // cell) + 1, int(span[1] // cell) + 1


def build_grid(positions, radius, max_cells):
    """Bucket ``positions`` into square cells at least ``radius`` wide.

    Returns per-particle cell coordinates, the grid shape and a CSR layout
    (``offsets`` into ``order``) with each cell's particles in index order.
    """
    # any cell >= radius keeps every in-range pair in adjacent cells
    cell = radius * (1.0 + 1e-9)
    lo = positions.min(axis=0)
    span = positions.max(axis=0) - lo
    cols, rows = _grid_shape(span, cell)
    if cols * rows > max_cells:
        # widen per axis so a spread along a single line stays bounded too
        cell = max(cell, span[0] / max_cells, span[1] / max_cells,
                   math.sqrt(span[0] * span[1] / max_cells))
        cols, rows = _grid_shape(span, cell)
        while cols * rows > max_cells:
            cell *= 2.0
            cols, rows = _grid_shape(span, cell)
    cx = np.minimum(np.floor((positions[:, 0] - lo[0]) / cell).astype(np.int64), cols - 1)
    cy = np.minimum(np.floor((positions[:, 1] - lo[1]) / cell).astype(np.int64), rows - 1)
    cell_of = cx + cy * cols
    order = np.argsort(cell_of, kind="stable").astype(np.int64)
    offsets = np.zeros(cols * rows + 1, dtype=np.int64)
    np.cumsum(np.bincount(cell_of, minlength=cols * rows), out=offsets[1:])
    return cx, cy, cols, rows, offsets, order


# ═══════════════════════════════════════════════════════════════════════════════
#  ENGINE
# ═══════════════════════════════════════════════════════════════════════════════

class ForceEngine:
    """Computes one tick of particle-life motion.

    The engine holds no simulation state: matrix, parameters and snapshot are
    passed to every call.  It only keeps its configuration and, for the
    ``python`` backend, a thread pool reused across ticks.
    """

    def __init__(self, backend=BACKEND, law=LAW_PIECEWISE,
                 integration=INTEGRATE_POSITION, workers=WORKERS):
        if backend not in BACKENDS:
            raise ConfigurationError(f"unknown backend {backend!r}, expected one of {BACKENDS}")
        if integration not in INTEGRATIONS:
            raise ConfigurationError(
                f"unknown integration target {integration!r}, expected one of {INTEGRATIONS}")
        if workers < 1:
            raise ConfigurationError(f"need at least one worker, got {workers}")
        law_code(law)
        self.backend     = backend
        self.law         = law
        self.integration = integration
        self.workers     = workers
        self._executor   = None

    # ── Lifecycle ──────────────────────────────────────────────────────────────
    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── Forces ─────────────────────────────────────────────────────────────────
    def compute_forces(self, snapshot, matrix, params):
        """Mean force on every particle and the number of neighbours it had.

        Raises :class:`StaleColorClassError` before any work if a particle's
        class is not in the matrix.
        """
        matrix.check_classes(snapshot.classes)
        n = len(snapshot)
        forces = np.zeros((n, 2), dtype=np.float64)
        counts = np.zeros(n, dtype=np.int64)
        if n == 0:
            return forces, counts

        beta, gamma = params.beta, params.gamma
        radius = params.attraction_radius
        if self.backend == "python":
            self._forces_python(snapshot, matrix, beta, gamma, radius, forces, counts)
            return forces, counts

        pos = snapshot.positions
        xs = np.ascontiguousarray(pos[:, 0])
        ys = np.ascontiguousarray(pos[:, 1])
        classes = snapshot.classes
        values = matrix.values
        code = law_code(self.law)
        if self.backend == "numba":
            _all_pairs_kernel(xs, ys, classes, values, code, beta, gamma, radius,
                              forces, counts)
        else:
            cx, cy, cols, rows, offsets, order = build_grid(
                pos, radius, max(1, GRID_CELLS_PER_PARTICLE * n))
            _grid_kernel(xs, ys, classes, values, code, beta, gamma, radius,
                         cx, cy, cols, rows, offsets, order, forces, counts)
        return forces, counts

    def _forces_python(self, snapshot, matrix, beta, gamma, radius, forces, counts):
        # plain lists are much faster to index than numpy scalars here
        xs = snapshot.positions[:, 0].tolist()
        ys = snapshot.positions[:, 1].tolist()
        cls = snapshot.classes.tolist()
        rm = matrix.values.tolist()
        ffunc = law_function(self.law)
        hypot = math.hypot
        n = len(xs)

        def compute_forces_chunk(bounds):
            start, stop = bounds
            results = []
            for i in range(start, stop):
                x = xs[i]; y = ys[i]
                rules_a = rm[cls[i]]
                fx = fy = 0.0
                k = 0
                for j in range(n):
                    if j == i:
                        continue
                    dx = xs[j] - x
                    dy = ys[j] - y
                    d = hypot(dx, dy)
                    if d == 0.0:
                        continue
                    rn = d / radius
                    if rn >= 1.0:
                        continue
                    f = ffunc(rn, rules_a[cls[j]], beta, gamma)
                    fx += dx / d * f
                    fy += dy / d * f
                    k += 1
                if k > 0:
                    fx /= k
                    fy /= k
                results.append((i, fx, fy, k))
            return results

        chunk_size = max(1, -(-n // self.workers))
        chunks = [(s, min(s + chunk_size, n)) for s in range(0, n, chunk_size)]
        if len(chunks) == 1:
            parts = [compute_forces_chunk(chunks[0])]
        else:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.workers)
            parts = self._executor.map(compute_forces_chunk, chunks)
        for res in parts:
            for i, fx, fy, k in res:
                forces[i, 0] = fx
                forces[i, 1] = fy
                counts[i] = k

    # ── Tick ───────────────────────────────────────────────────────────────────
    def tick(self, snapshot, matrix, params, dt):
        """Advance every particle in ``snapshot`` by ``dt``.

        ``params`` is read once at the start, so changing it while a tick
        runs elsewhere has no effect on that tick.
        """
        if not (dt >= 0.0 and math.isfinite(dt)):
            raise ConfigurationError(f"delta time must be finite and >= 0, got {dt!r}")
        speed = params.speed
        t0 = time.perf_counter()
        forces, counts = self.compute_forces(snapshot, matrix, params)
        velocities = forces * speed
        if self.integration == INTEGRATE_POSITION:
            positions = snapshot.positions + velocities * dt
        else:
            positions = snapshot.positions.copy()
        log.debug("tick: %d particles, backend=%s, %.2f ms",
                  len(snapshot), self.backend, (time.perf_counter() - t0) * 1000.0)
        return TickResult(positions, velocities, forces, counts)
