"""Exceptions raised by the particle-life core."""


class ParticleLifeError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(ParticleLifeError, ValueError):
    """Simulation parameters or generation ranges are not usable."""


class StaleColorClassError(ParticleLifeError, IndexError):
    """A particle refers to a colour class the current matrix does not have."""

    def __init__(self, color_class, size):
        self.color_class = color_class
        self.size = size
        super().__init__(
            f"colour class {color_class} is outside the palette [0, {size})"
        )
