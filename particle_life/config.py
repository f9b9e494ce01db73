"""Defaults and environment overrides for the particle-life core."""

import os

# ── Physics defaults ───────────────────────────────────────────────────────────
BASE_SPEED              = 100.0
BETA_RANGE              = (0.1, 0.4)
GAMMA_RANGE             = (0.6, 0.9)
FIXED_ATTRACTION_RADIUS = 100.0
ATTRACTION_RADIUS_RANGE = (50.0, 200.0)
COLOR_COUNT_RANGE       = (2, 16)

PROFILE_FIXED  = "fixed"
PROFILE_RANDOM = "random"
PROFILES       = (PROFILE_FIXED, PROFILE_RANDOM)

# ── Headless runner defaults ───────────────────────────────────────────────────
WORLD_W       = 800.0
WORLD_H       = 600.0
NUM_PARTICLES = 500
DELTA_TIME    = 1.0 / 60.0

# ── Environment ────────────────────────────────────────────────────────────────
BACKEND    = os.getenv("PARTICLE_LIFE_BACKEND", "numba")
WORKERS    = int(os.getenv("PARTICLE_LIFE_WORKERS", str(os.cpu_count() or 1)))
LOG_LEVEL  = os.getenv("PARTICLE_LIFE_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv(
    "PARTICLE_LIFE_LOG_FORMAT",
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
