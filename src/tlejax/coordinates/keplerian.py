"""Osculating Keplerian elements and TEME Cartesian states.

Elements are ordered ``[a, e, i, RAAN, argp, M]``: semi-major axis in
metres, eccentricity, then inclination, right ascension of the ascending
node, argument of perigee and mean anomaly in radians (degrees with
``use_degrees``).  States are ``[x, y, z, vx, vy, vz]`` in metres and
metres per second.  The gravitational parameter defaults to the TLE value,
so that an osculating state read from the propagator maps to elements
consistent with the mean motion convention of the record.

The formulation follows O. Montenbruck and E. Gill, *Satellite Orbits:
Models, Methods and Applications*, Springer, 2012, Sec. 2.2.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from tlejax.config import get_dtype
from tlejax.constants import TLE_MU
from tlejax.orbits import anomaly_eccentric_to_mean, anomaly_mean_to_eccentric
from tlejax.utils import from_radians, normalize_angle, to_radians


def _perifocal_basis(i: Array, raan: Array, argp: Array) -> tuple[Array, Array]:
    """Unit vectors towards perigee (P) and 90 degrees ahead of it (Q)."""
    ci, si = jnp.cos(i), jnp.sin(i)
    cr, sr = jnp.cos(raan), jnp.sin(raan)
    cw, sw = jnp.cos(argp), jnp.sin(argp)
    p_hat = jnp.stack([cw * cr - sw * ci * sr, cw * sr + sw * ci * cr, sw * si])
    q_hat = jnp.stack([-sw * cr - cw * ci * sr, -sw * sr + cw * ci * cr, cw * si])
    return p_hat, q_hat


def state_koe_to_cartesian(
    x_oe: ArrayLike,
    mu: float = TLE_MU,
    use_degrees: bool = False,
) -> Array:
    """Cartesian state of a set of osculating Keplerian elements.

    Args:
        x_oe: Elements ``[a, e, i, RAAN, argp, M]``.
        mu: Gravitational parameter. Units: *m^3/s^2*
        use_degrees: Whether the angular elements are in degrees.

    Returns:
        State ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*.
    """
    x_oe = jnp.asarray(x_oe, dtype=get_dtype())
    a, e = x_oe[0], x_oe[1]
    i, raan, argp, mean_anomaly = to_radians(x_oe[2:6], use_degrees)

    p_hat, q_hat = _perifocal_basis(i, raan, argp)
    ecc_anomaly = anomaly_mean_to_eccentric(mean_anomaly, e)
    cos_ea, sin_ea = jnp.cos(ecc_anomaly), jnp.sin(ecc_anomaly)
    beta = jnp.sqrt(1.0 - e * e)

    position = a * ((cos_ea - e) * p_hat + beta * sin_ea * q_hat)
    speed_factor = jnp.sqrt(mu * a) / jnp.linalg.norm(position)
    velocity = speed_factor * (beta * cos_ea * q_hat - sin_ea * p_hat)
    return jnp.concatenate([position, velocity])


def state_cartesian_to_koe(
    x_cart: ArrayLike,
    mu: float = TLE_MU,
    use_degrees: bool = False,
) -> Array:
    """Osculating Keplerian elements of a Cartesian state.

    The node and perigee are undefined for equatorial and circular orbits;
    :func:`~tlejax.coordinates.state_cartesian_to_equinoctial` stays
    regular there.

    Args:
        x_cart: State ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*.
        mu: Gravitational parameter. Units: *m^3/s^2*
        use_degrees: Whether to return the angular elements in degrees.

    Returns:
        Elements ``[a, e, i, RAAN, argp, M]``, angles wrapped to ``[0, 2pi)``.
    """
    x_cart = jnp.asarray(x_cart, dtype=get_dtype())
    position, velocity = x_cart[:3], x_cart[3:6]
    radius = jnp.linalg.norm(position)

    momentum = jnp.cross(position, velocity)
    w_hat = momentum / jnp.linalg.norm(momentum)
    i = jnp.arctan2(jnp.hypot(w_hat[0], w_hat[1]), w_hat[2])
    raan = jnp.arctan2(w_hat[0], -w_hat[1])

    # Vis-viva
    a = 1.0 / (2.0 / radius - jnp.dot(velocity, velocity) / mu)
    semi_latus = jnp.dot(momentum, momentum) / mu
    e = jnp.sqrt(jnp.maximum(1.0 - semi_latus / a, 0.0))

    n = jnp.sqrt(mu / jnp.abs(a) ** 3)
    ecc_anomaly = jnp.arctan2(jnp.dot(position, velocity) / (n * a * a), 1.0 - radius / a)
    true_anomaly = jnp.arctan2(jnp.sqrt(1.0 - e * e) * jnp.sin(ecc_anomaly),
                               jnp.cos(ecc_anomaly) - e)
    arg_latitude = jnp.arctan2(position[2], w_hat[0] * position[1] - w_hat[1] * position[0])

    angles = normalize_angle(
        jnp.stack([raan, arg_latitude - true_anomaly,
                   anomaly_eccentric_to_mean(ecc_anomaly, e)]),
        jnp.pi,
    )
    i, raan, argp, mean_anomaly = from_radians(jnp.concatenate([i[None], angles]), use_degrees)
    return jnp.stack([a, e, i, raan, argp, mean_anomaly])
