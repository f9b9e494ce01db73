"""Scalar knobs of the force law: speed and the beta / gamma / radius shape."""

import math

import numpy as np

from particle_life.config import (
    ATTRACTION_RADIUS_RANGE, BASE_SPEED, BETA_RANGE, FIXED_ATTRACTION_RADIUS,
    GAMMA_RANGE, PROFILE_FIXED, PROFILE_RANDOM, PROFILES,
)
from particle_life.errors import ConfigurationError


def check_shape(beta, gamma, attraction_radius):
    """Fail fast on a shape that would divide by zero or break continuity."""
    if not (0.0 < beta < gamma < 1.0):
        raise ConfigurationError(
            f"need 0 < beta < gamma < 1, got beta={beta!r} gamma={gamma!r}"
        )
    if not (attraction_radius > 0.0 and math.isfinite(attraction_radius)):
        raise ConfigurationError(f"attraction radius must be positive, got {attraction_radius!r}")


def _check_ranges(profile):
    if profile not in PROFILES:
        raise ConfigurationError(f"unknown parameter profile {profile!r}, expected one of {PROFILES}")
    # disjoint sub-ranges are what guarantees beta < gamma for every draw
    if not (0.0 < BETA_RANGE[0] <= BETA_RANGE[1] < GAMMA_RANGE[0] <= GAMMA_RANGE[1] < 1.0):
        raise ConfigurationError(f"beta range {BETA_RANGE} and gamma range {GAMMA_RANGE} overlap")


class SimulationParameters:
    """``speed``, ``beta``, ``gamma`` and ``attraction_radius``.

    ``beta`` and ``gamma`` are fractions of ``attraction_radius``: below
    ``beta`` every pair repels, between ``beta`` and ``gamma`` the affinity
    ramps up, and from ``gamma`` to the radius it ramps back down to zero.

    ``double_speed`` / ``halve_speed`` are deliberately unbounded; repeated
    use can drive ``speed`` to ``inf`` or ``0.0``.
    """

    __slots__ = ("speed", "beta", "gamma", "attraction_radius", "profile")

    def __init__(self, speed=BASE_SPEED, beta=0.3, gamma=0.7,
                 attraction_radius=FIXED_ATTRACTION_RADIUS, profile=PROFILE_FIXED):
        if not (speed > 0.0):
            raise ConfigurationError(f"speed must be positive, got {speed!r}")
        check_shape(beta, gamma, attraction_radius)
        if profile not in PROFILES:
            raise ConfigurationError(f"unknown parameter profile {profile!r}, expected one of {PROFILES}")
        self.speed             = float(speed)
        self.beta              = float(beta)
        self.gamma             = float(gamma)
        self.attraction_radius = float(attraction_radius)
        self.profile           = profile

    @classmethod
    def sample(cls, profile=PROFILE_FIXED, rng=None, speed=BASE_SPEED):
        """Initial draw: ``beta ~ U[0.1, 0.4]``, ``gamma ~ U[0.6, 0.9]``."""
        _check_ranges(profile)
        rng = rng if rng is not None else np.random.default_rng()
        beta, gamma, radius = _draw_shape(profile, rng)
        return cls(speed, beta, gamma, radius, profile)

    # ── Control ────────────────────────────────────────────────────────────────
    def regenerate_shape_constants(self, rng=None):
        """Re-roll beta, gamma and radius together; speed is left alone."""
        _check_ranges(self.profile)
        rng = rng if rng is not None else np.random.default_rng()
        beta, gamma, radius = _draw_shape(self.profile, rng)
        check_shape(beta, gamma, radius)
        self.beta, self.gamma, self.attraction_radius = beta, gamma, radius

    def double_speed(self):
        self.speed *= 2.0

    def halve_speed(self):
        self.speed /= 2.0

    # ── Helpers ────────────────────────────────────────────────────────────────
    def copy(self):
        return SimulationParameters(self.speed, self.beta, self.gamma,
                                    self.attraction_radius, self.profile)

    def as_dict(self):
        return {
            "speed": self.speed,
            "beta": self.beta,
            "gamma": self.gamma,
            "attraction_radius": self.attraction_radius,
            "profile": self.profile,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            speed=data.get("speed", BASE_SPEED),
            beta=data["beta"],
            gamma=data["gamma"],
            attraction_radius=data["attraction_radius"],
            profile=data.get("profile", PROFILE_FIXED),
        )

    def __eq__(self, other):
        if not isinstance(other, SimulationParameters):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    __hash__ = None

    def __repr__(self):
        return ("SimulationParameters(speed={:g}, beta={:.3f}, gamma={:.3f}, "
                "attraction_radius={:.1f})").format(
                    self.speed, self.beta, self.gamma, self.attraction_radius)


def _draw_shape(profile, rng):
    beta  = float(rng.uniform(*BETA_RANGE))
    gamma = float(rng.uniform(*GAMMA_RANGE))
    if profile == PROFILE_RANDOM:
        radius = float(rng.uniform(*ATTRACTION_RADIUS_RANGE))
    else:
        radius = FIXED_ATTRACTION_RADIUS
    return beta, gamma, radius
