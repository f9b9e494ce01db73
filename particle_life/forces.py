"""Scalar force laws.

Each law maps a normalised distance ``rn = d / attraction_radius`` and the
affinity ``a`` of the ordered colour pair to a signed magnitude along the
unit vector pointing from the particle towards its neighbour.  Positive
values attract, negative values repel.  Anything at ``rn >= 1`` is outside
the interaction radius and contributes nothing.

The plain Python functions are used by the ``python`` backend and the tests;
the compiled kernels call ``njit`` builds of the very same functions.
"""

from numba import njit

from particle_life.errors import ConfigurationError

LAW_PIECEWISE = "piecewise"
LAW_FLAT      = "flat"
LAWS          = (LAW_PIECEWISE, LAW_FLAT)


def piecewise_force(rn, a, beta, gamma):
    """Three-zone particle-life law.

    near  (rn < beta):          -1 + rn / beta, repels whatever ``a`` is
    mid   (beta <= rn < gamma):  ramps 0 -> a
    far   (gamma <= rn < 1):     ramps a -> 0 at the radius
    """
    if rn < beta:
        return rn / beta - 1.0
    if rn < gamma:
        return a * (rn - beta) / (gamma - beta)
    if rn < 1.0:
        return a * (1.0 - rn) / (1.0 - gamma)
    return 0.0


def flat_force(rn, a, beta, gamma):
    """Every neighbour inside the radius pulls with its full affinity."""
    if rn < 1.0:
        return a
    return 0.0


_LAW_FUNCS = {LAW_PIECEWISE: piecewise_force, LAW_FLAT: flat_force}


def law_function(law):
    try:
        return _LAW_FUNCS[law]
    except KeyError:
        raise ConfigurationError(f"unknown force law {law!r}, expected one of {LAWS}") from None


def law_code(law):
    """Integer id of ``law`` as understood by the compiled kernels."""
    law_function(law)
    return LAWS.index(law)


def force_magnitude(rn, a, beta, gamma, law=LAW_PIECEWISE):
    return law_function(law)(rn, a, beta, gamma)


_piecewise_nb = njit(piecewise_force)
_flat_nb      = njit(flat_force)


@njit
def magnitude_nb(code, rn, a, beta, gamma):
    if code == 0:
        return _piecewise_nb(rn, a, beta, gamma)
    return _flat_nb(rn, a, beta, gamma)
