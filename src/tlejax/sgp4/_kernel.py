"""
Kernel pieces shared by SGP4 and SDP4.

Both theories start from the same secular gravity and drag update, recover
the singly averaged mean elements the same way, and finish with the same
long-period periodics, Kepler solution, short-period corrections and
polar-nodal reconstruction of the TEME state.  They differ only in how the
intermediate mean elements are perturbed in between.

All functions are pure ``jax.numpy`` code: they run on plain arrays and on
``jax.jacfwd`` tracers alike.  Failures are reported through an ``int32``
status (0 for success) rather than exceptions, and are raised by the
propagator once the traced computation has returned.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from tlejax.sgp4._constants import EarthGravity

TWO_PI = 2.0 * jnp.pi
X2O3 = 2.0 / 3.0

# Newton iterations used for Kepler's equation
KEPLER_ITERATIONS = 10

# Floor applied to the mean eccentricity after drag
MIN_ECCENTRICITY = 1.0e-6


def first_error(status: Array, failed: ArrayLike, code: int) -> Array:
    """Record ``code`` in ``status`` unless an earlier error is already set."""
    return jnp.where((status == 0) & failed, jnp.int32(code), status)


def split_elements(x: Array) -> tuple[Array, ...]:
    """Split the element vector into its named components.

    Args:
        x: ``(n [rad/s], e, i, raan, argp, M, B*)``, shape ``(7,)``.

    Returns:
        Tuple ``(no_kozai [rad/min], e, i, raan, argp, M, bstar)``.
    """
    return x[0] * 60.0, x[1], x[2], x[3], x[4], x[5], x[6]


def secular_gravity_drag(c: dict[str, Array], x: Array, t: ArrayLike) -> tuple[Array, ...]:
    """Apply the secular effects of J2/J4 and the simplified drag model.

    Args:
        c: Initializer constants.
        x: Element vector.
        t: Time since epoch [min].

    Returns:
        Tuple ``(xmdf, argpdf, nodem, tempa, tempe, templ)``.
    """
    _, _, _, nodeo, argpo, mo, bstar = split_elements(x)
    xmdf = mo + c["mdot"] * t
    argpdf = argpo + c["argpdot"] * t
    nodedf = nodeo + c["nodedot"] * t
    t2 = t * t
    nodem = nodedf + c["nodecf"] * t2
    tempa = 1.0 - c["cc1"] * t
    tempe = bstar * c["cc4"] * t
    templ = c["t2cof"] * t2
    return xmdf, argpdf, nodem, tempa, tempe, templ


def recover_mean_elements(
    c: dict[str, Array],
    gravity: EarthGravity,
    nm: Array,
    em: Array,
    argpm: Array,
    nodem: Array,
    mm: Array,
    tempa: Array,
    tempe: Array,
    templ: Array,
    status: Array,
) -> tuple[Array, ...]:
    """Recover the drag-perturbed semi-major axis, mean motion and eccentricity.

    Angles are reduced with C ``fmod`` semantics, so negative values stay
    negative.

    Returns:
        Tuple ``(am, nm, em, argpm, nodem, mm, status)``.
    """
    xke = gravity.xke
    status = first_error(status, nm <= 0.0, 2)

    am = (xke / nm) ** X2O3 * tempa * tempa
    nm = xke / am**1.5
    em = em - tempe

    # Decay takes precedence over the eccentricity range
    status = first_error(status, am < 1.0, 7)
    status = first_error(status, (em >= 1.0) | (em < -0.001), 1)

    em = jnp.where(em < MIN_ECCENTRICITY, MIN_ECCENTRICITY, em)
    mm = mm + c["no_unkozai"] * templ
    xlm = mm + argpm + nodem

    nodem = jnp.fmod(nodem, TWO_PI)
    argpm = jnp.fmod(argpm, TWO_PI)
    xlm = jnp.fmod(xlm, TWO_PI)
    mm = jnp.fmod(xlm - argpm - nodem, TWO_PI)

    return am, nm, em, argpm, nodem, mm, status


def solve_kepler(u: Array, axnl: Array, aynl: Array) -> Array:
    """Solve the modified Kepler equation for ``E + ω``.

    Runs a fixed number of Newton steps, each clipped to ±0.95 rad.
    """

    def _step(_, eo1):
        sineo1 = jnp.sin(eo1)
        coseo1 = jnp.cos(eo1)
        tem5 = 1.0 - coseo1 * axnl - sineo1 * aynl
        tem5 = (u - aynl * coseo1 + axnl * sineo1 - eo1) / tem5
        tem5 = jnp.clip(tem5, -0.95, 0.95)
        return eo1 + tem5

    return jax.lax.fori_loop(0, KEPLER_ITERATIONS, _step, u)


def xlcof_coefficient(j3oj2: float, sinio: ArrayLike, cosio: ArrayLike) -> Array:
    """Long-period coefficient of the mean longitude, guarded at i = 180 deg."""
    denom = jnp.where(jnp.abs(cosio + 1.0) > 1.5e-12, 1.0 + cosio, 1.5e-12)
    return -0.25 * j3oj2 * sinio * (3.0 + 5.0 * cosio) / denom


def reconstruct(
    gravity: EarthGravity,
    am: Array,
    nm: Array,
    ep: Array,
    xincp: Array,
    nodep: Array,
    argpp: Array,
    mp: Array,
    sinip: Array,
    cosip: Array,
    aycof: Array,
    xlcof: Array,
    con41: Array,
    x1mth2: Array,
    x7thm1: Array,
    status: Array,
) -> tuple[Array, Array]:
    """Build the TEME state from perturbed mean elements.

    Applies the long-period periodics, solves Kepler's equation, applies
    the short-period corrections and rotates the polar-nodal coordinates
    into TEME.

    Returns:
        Tuple ``(state, status)`` with ``state = [x, y, z, vx, vy, vz]``
        in metres and metres per second.
    """
    xke = gravity.xke
    j2 = gravity.j2

    # Long period periodics
    axnl = ep * jnp.cos(argpp)
    temp = 1.0 / (am * (1.0 - ep * ep))
    aynl = ep * jnp.sin(argpp) + temp * aycof
    xl = mp + argpp + nodep + temp * xlcof * axnl

    u = jnp.fmod(xl - nodep, TWO_PI)
    eo1 = solve_kepler(u, axnl, aynl)
    sineo1 = jnp.sin(eo1)
    coseo1 = jnp.cos(eo1)

    # Short period preliminary quantities
    ecose = axnl * coseo1 + aynl * sineo1
    esine = axnl * sineo1 - aynl * coseo1
    el2 = axnl * axnl + aynl * aynl
    pl = am * (1.0 - el2)
    status = first_error(status, pl < 0.0, 4)

    rl = am * (1.0 - ecose)
    rdotl = jnp.sqrt(am) * esine / rl
    rvdotl = jnp.sqrt(pl) / rl
    betal = jnp.sqrt(1.0 - el2)
    temp = esine / (1.0 + betal)
    sinu = am / rl * (sineo1 - aynl - axnl * temp)
    cosu = am / rl * (coseo1 - axnl + aynl * temp)
    su = jnp.arctan2(sinu, cosu)
    sin2u = (cosu + cosu) * sinu
    cos2u = 1.0 - 2.0 * sinu * sinu
    temp = 1.0 / pl
    temp1 = 0.5 * j2 * temp
    temp2 = temp1 * temp

    # Short period periodics
    mrt = rl * (1.0 - 1.5 * temp2 * betal * con41) + 0.5 * temp1 * x1mth2 * cos2u
    su = su - 0.25 * temp2 * x7thm1 * sin2u
    xnode = nodep + 1.5 * temp2 * cosip * sin2u
    xinc = xincp + 1.5 * temp2 * cosip * sinip * cos2u
    mvt = rdotl - nm * temp1 * x1mth2 * sin2u / xke
    rvdot = rvdotl + nm * temp1 * (x1mth2 * cos2u + 1.5 * con41) / xke

    # Orientation vectors
    sinsu = jnp.sin(su)
    cossu = jnp.cos(su)
    snod = jnp.sin(xnode)
    cnod = jnp.cos(xnode)
    sini = jnp.sin(xinc)
    cosi = jnp.cos(xinc)
    xmx = -snod * cosi
    xmy = cnod * cosi
    uvec = jnp.stack([xmx * sinsu + cnod * cossu, xmy * sinsu + snod * cossu, sini * sinsu])
    vvec = jnp.stack([xmx * cossu - cnod * sinsu, xmy * cossu - snod * sinsu, sini * cossu])

    status = first_error(status, mrt < 1.0, 6)

    r = mrt * gravity.radiusearthkm * 1000.0 * uvec
    v = (mvt * uvec + rvdot * vvec) * gravity.vkmpersec * 1000.0
    return jnp.concatenate([r, v]), status
