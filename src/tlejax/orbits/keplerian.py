"""Two-body relations between TLE mean motion, semi-major axis and anomalies.

A TLE stores its size as a Kozai mean motion, while the fitting engine
works with a semi-major axis.  The helpers below convert between the two
with an explicit gravitational parameter, :data:`~tlejax.constants.TLE_MU`
by default, and move between the mean, eccentric and true anomalies of an
osculating ellipse.

Every function traces under ``jax.jit``, maps under ``jax.vmap`` and is
differentiable.  Angles are radians unless ``use_degrees`` is set.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from tlejax.config import get_dtype
from tlejax.constants import TLE_MU
from tlejax.utils import from_radians, to_radians

KEPLER_ITERATIONS = 10


def _as_float(*values: ArrayLike) -> tuple[Array, ...]:
    dtype = get_dtype()
    return tuple(jnp.asarray(v, dtype=dtype) for v in values)


def orbital_period(a: ArrayLike, mu: float = TLE_MU) -> Array:
    """Period of an ellipse of semi-major axis ``a`` [m], in seconds."""
    (a,) = _as_float(a)
    return 2.0 * jnp.pi / jnp.sqrt(mu / a**3)


def mean_motion(a: ArrayLike, mu: float = TLE_MU) -> Array:
    """Mean motion [rad/s] of an ellipse of semi-major axis ``a`` [m].

    Args:
        a: Semi-major axis. Units: *m*
        mu: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Mean motion. Units: *rad/s*
    """
    (a,) = _as_float(a)
    return jnp.sqrt(mu / a**3)


def semimajor_axis(n: ArrayLike, mu: float = TLE_MU) -> Array:
    """Semi-major axis [m] of an orbit of mean motion ``n`` [rad/s].

    Examples:
        ```python
        from tlejax.constants import REVDAY_TO_RADSEC
        from tlejax.orbits import semimajor_axis
        a = semimajor_axis(15.72125391 * REVDAY_TO_RADSEC)  # ISS, about 6.73e6 m
        ```
    """
    (n,) = _as_float(n)
    return jnp.cbrt(mu / n**2)


def anomaly_eccentric_to_mean(anm_ecc: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Mean anomaly from eccentric anomaly, ``M = E - e sin E``."""
    anm_ecc, e = _as_float(anm_ecc, e)
    ecc_anomaly = to_radians(anm_ecc, use_degrees)
    return from_radians(ecc_anomaly - e * jnp.sin(ecc_anomaly), use_degrees)


def anomaly_mean_to_eccentric(anm_mean: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Solve Kepler's equation for the eccentric anomaly.

    A fixed number of Newton steps (:data:`KEPLER_ITERATIONS`) runs inside
    ``jax.lax.fori_loop``, so the solve has a static cost and differentiates
    through the loop.  Starting from ``M`` for moderate eccentricities and
    from the apoapsis of the same revolution otherwise keeps the result in
    the revolution of ``M``.

    Args:
        anm_mean: Mean anomaly. Units: *rad* or *deg*
        e: Eccentricity, ``0 <= e < 1``.
        use_degrees: Whether ``anm_mean`` and the result are in degrees.

    Returns:
        Eccentric anomaly. Units: *rad* or *deg*
    """
    anm_mean, e = _as_float(anm_mean, e)
    mean_anomaly = to_radians(anm_mean, use_degrees)
    apoapsis = mean_anomaly - jnp.mod(mean_anomaly, 2.0 * jnp.pi) + jnp.pi
    guess = jnp.where(e < 0.8, mean_anomaly, apoapsis)

    def _newton(_, ecc_anomaly):
        residual = ecc_anomaly - e * jnp.sin(ecc_anomaly) - mean_anomaly
        return ecc_anomaly - residual / (1.0 - e * jnp.cos(ecc_anomaly))

    return from_radians(jax.lax.fori_loop(0, KEPLER_ITERATIONS, _newton, guess), use_degrees)


def anomaly_true_to_eccentric(anm_true: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Eccentric anomaly from true anomaly, in the same revolution."""
    anm_true, e = _as_float(anm_true, e)
    nu = to_radians(anm_true, use_degrees)
    beta = jnp.sqrt(1.0 - e * e)
    return from_radians(jnp.arctan2(beta * jnp.sin(nu), e + jnp.cos(nu)), use_degrees)


def anomaly_eccentric_to_true(anm_ecc: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """True anomaly from eccentric anomaly."""
    anm_ecc, e = _as_float(anm_ecc, e)
    ecc_anomaly = to_radians(anm_ecc, use_degrees)
    beta = jnp.sqrt(1.0 - e * e)
    return from_radians(jnp.arctan2(beta * jnp.sin(ecc_anomaly), jnp.cos(ecc_anomaly) - e),
                        use_degrees)


def anomaly_true_to_mean(anm_true: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Mean anomaly from true anomaly, through the eccentric anomaly."""
    ecc_anomaly = anomaly_true_to_eccentric(anm_true, e, use_degrees)
    return anomaly_eccentric_to_mean(ecc_anomaly, e, use_degrees)


def anomaly_mean_to_true(anm_mean: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """True anomaly from mean anomaly, through the eccentric anomaly."""
    ecc_anomaly = anomaly_mean_to_eccentric(anm_mean, e, use_degrees)
    return anomaly_eccentric_to_true(ecc_anomaly, e, use_degrees)
