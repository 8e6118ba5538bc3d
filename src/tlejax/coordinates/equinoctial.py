"""Equinoctial orbital element ↔ Cartesian state vector conversions.

Equinoctial elements stay regular for circular and equatorial orbits,
which makes them the working set of the fixed-point TLE fit.

| Index | Element                                   | Units         |
|-------|-------------------------------------------|---------------|
| 0     | *a* — semi-major axis                     | m             |
| 1     | *ex* — e cos(ω + Ω)                       | dimensionless |
| 2     | *ey* — e sin(ω + Ω)                       | dimensionless |
| 3     | *hx* — tan(i/2) cos(Ω)                    | dimensionless |
| 4     | *hy* — tan(i/2) sin(Ω)                    | dimensionless |
| 5     | *lv* — true longitude ω + Ω + ν           | rad           |

Retrograde equatorial orbits (i = 180 deg) are singular.

References:
    1. R. A. Broucke and P. J. Cefola, "On the equinoctial orbit
       elements", *Celestial Mechanics* 5, 1972.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from tlejax.config import get_dtype
from tlejax.constants import TLE_MU

# Newton iterations of the eccentric longitude solver
KEPLER_ITERATIONS = 10


def longitude_eccentric_to_true(le: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert the eccentric longitude to the true longitude."""
    epsilon = jnp.sqrt(1.0 - ex * ex - ey * ey)
    cos_le = jnp.cos(le)
    sin_le = jnp.sin(le)
    num = ex * sin_le - ey * cos_le
    den = epsilon + 1.0 - ex * cos_le - ey * sin_le
    return le + 2.0 * jnp.arctan(num / den)


def longitude_true_to_eccentric(lv: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert the true longitude to the eccentric longitude."""
    epsilon = jnp.sqrt(1.0 - ex * ex - ey * ey)
    cos_lv = jnp.cos(lv)
    sin_lv = jnp.sin(lv)
    num = ey * cos_lv - ex * sin_lv
    den = epsilon + 1.0 + ex * cos_lv + ey * sin_lv
    return lv + 2.0 * jnp.arctan(num / den)


def longitude_eccentric_to_mean(le: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert the eccentric longitude to the mean longitude (Kepler's equation)."""
    return le - ex * jnp.sin(le) + ey * jnp.cos(le)


def longitude_mean_to_eccentric(lm: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert the mean longitude to the eccentric longitude.

    Solves ``lm = le - ex sin(le) + ey cos(le)`` with a fixed number of
    Newton iterations.
    """

    def newton_step(_, le):
        cos_le = jnp.cos(le)
        sin_le = jnp.sin(le)
        f = le - ex * sin_le + ey * cos_le - lm
        return le - f / (1.0 - ex * cos_le - ey * sin_le)

    return jax.lax.fori_loop(0, KEPLER_ITERATIONS, newton_step, jnp.asarray(lm))


def longitude_true_to_mean(lv: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert the true longitude to the mean longitude."""
    return longitude_eccentric_to_mean(longitude_true_to_eccentric(lv, ex, ey), ex, ey)


def longitude_mean_to_true(lm: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert the mean longitude to the true longitude."""
    return longitude_eccentric_to_true(longitude_mean_to_eccentric(lm, ex, ey), ex, ey)


def state_cartesian_to_equinoctial(x_cart: ArrayLike, mu: float = TLE_MU) -> Array:
    """Convert a Cartesian state vector to equinoctial elements.

    Args:
        x_cart: State ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*.
        mu: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.

    Examples:
        ```python
        import jax.numpy as jnp
        from tlejax.coordinates import state_cartesian_to_equinoctial
        x = jnp.array([7000e3, 0.0, 0.0, 0.0, 7546.0, 0.0])
        eq = state_cartesian_to_equinoctial(x)
        ```
    """
    x_cart = jnp.asarray(x_cart, dtype=get_dtype())
    p = x_cart[:3]
    v = x_cart[3:6]

    r = jnp.linalg.norm(p)
    v2 = jnp.dot(v, v)
    r_v2_on_mu = r * v2 / mu
    a = r / (2.0 - r_v2_on_mu)

    w = jnp.cross(p, v)
    w = w / jnp.linalg.norm(w)
    d = 1.0 / (1.0 + w[2])
    hx = -d * w[1]
    hy = d * w[0]

    # True longitude from the position in the equinoctial frame
    cos_lv = (p[0] - d * p[2] * w[0]) / r
    sin_lv = (p[1] - d * p[2] * w[1]) / r
    lv = jnp.arctan2(sin_lv, cos_lv)

    e_sin_e = jnp.dot(p, v) / jnp.sqrt(mu * a)
    e_cos_e = r_v2_on_mu - 1.0
    e2 = e_cos_e * e_cos_e + e_sin_e * e_sin_e
    f = e_cos_e - e2
    g = jnp.sqrt(1.0 - e2) * e_sin_e
    ex = a * (f * cos_lv + g * sin_lv) / r
    ey = a * (f * sin_lv - g * cos_lv) / r

    return jnp.array([a, ex, ey, hx, hy, lv])


def state_equinoctial_to_cartesian(x_eq: ArrayLike, mu: float = TLE_MU) -> Array:
    """Convert equinoctial elements to a Cartesian state vector.

    Args:
        x_eq: Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.
        mu: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        State ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*.
    """
    x_eq = jnp.asarray(x_eq, dtype=get_dtype())
    a, ex, ey, hx, hy, lv = (x_eq[k] for k in range(6))

    le = longitude_true_to_eccentric(lv, ex, ey)
    cos_le = jnp.cos(le)
    sin_le = jnp.sin(le)

    hx2 = hx * hx
    hy2 = hy * hy
    h2p1 = 1.0 + hx2 + hy2
    beta = 1.0 / (1.0 + jnp.sqrt(1.0 - ex * ex - ey * ey))
    exey = ex * ey
    ex_c_ey_s = ex * cos_le + ey * sin_le

    # In-plane coordinates
    x = a * ((1.0 - beta * ey * ey) * cos_le + beta * exey * sin_le - ex)
    y = a * ((1.0 - beta * ex * ex) * sin_le + beta * exey * cos_le - ey)
    factor = jnp.sqrt(mu / a) / (1.0 - ex_c_ey_s)
    xdot = factor * (-sin_le + beta * ey * ex_c_ey_s)
    ydot = factor * (cos_le - beta * ex * ex_c_ey_s)

    # Equinoctial frame
    f = jnp.array([1.0 - hy2 + hx2, 2.0 * hx * hy, -2.0 * hy]) / h2p1
    g = jnp.array([2.0 * hx * hy, 1.0 + hy2 - hx2, 2.0 * hx]) / h2p1

    return jnp.concatenate([x * f + y * g, xdot * f + ydot * g])


def state_equinoctial_to_koe(x_eq: ArrayLike) -> Array:
    """Convert equinoctial elements to Keplerian elements.

    Args:
        x_eq: Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.

    Returns:
        Keplerian elements ``[a, e, i, RAAN, omega, M]``, angles unwrapped.
    """
    x_eq = jnp.asarray(x_eq, dtype=get_dtype())
    a, ex, ey, hx, hy, lv = (x_eq[k] for k in range(6))

    e = jnp.sqrt(ex * ex + ey * ey)
    i = 2.0 * jnp.arctan(jnp.sqrt(hx * hx + hy * hy))
    raan = jnp.arctan2(hy, hx)
    argp = jnp.arctan2(ey, ex) - raan
    lm = longitude_true_to_mean(lv, ex, ey)
    return jnp.array([a, e, i, raan, argp, lm - argp - raan])


def state_koe_to_equinoctial(x_oe: ArrayLike) -> Array:
    """Convert Keplerian elements to equinoctial elements.

    Args:
        x_oe: Keplerian elements ``[a, e, i, RAAN, omega, M]``.

    Returns:
        Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.
    """
    x_oe = jnp.asarray(x_oe, dtype=get_dtype())
    a, e, i, raan, argp, M = (x_oe[k] for k in range(6))

    pa_raan = argp + raan
    ex = e * jnp.cos(pa_raan)
    ey = e * jnp.sin(pa_raan)
    tan_half_i = jnp.tan(0.5 * i)
    hx = tan_half_i * jnp.cos(raan)
    hy = tan_half_i * jnp.sin(raan)
    lv = longitude_mean_to_true(M + pa_raan, ex, ey)
    return jnp.array([a, ex, ey, hx, hy, lv])
