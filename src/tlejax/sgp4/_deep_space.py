"""
SDP4 deep-space kernel.

Propagates orbits with a period of 225 minutes or more.  On top of the
shared secular gravity and drag update, the mean elements receive the
lunar-solar secular rates, the resonance integration for synchronous and
half-day orbits, and the lunar-solar periodics before the common
reconstruction of the TEME state.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from tlejax.sgp4._constants import EarthGravity
from tlejax.sgp4._initializer import RPTIM, BranchFlags, Resonance
from tlejax.sgp4._kernel import (
    TWO_PI,
    first_error,
    recover_mean_elements,
    reconstruct,
    secular_gravity_drag,
    split_elements,
    xlcof_coefficient,
)

# Resonance integrator step [min] and half its square
STEP = 720.0
STEP2 = 259200.0

# Inclination below which the Lyddane modification is used [rad]
LYDDANE_INCLINATION = 0.2


def _resonance_rates(c: dict[str, Array], resonance: Resonance, xli, xni, atime):
    """Rates ``(xndt, xldot, xnddt)`` of the resonance integrator."""
    xldot = xni + c["xfact"]
    if resonance == Resonance.SYNCHRONOUS:
        fasx2 = 0.13130908
        fasx4 = 2.8843198
        fasx6 = 0.37448087
        xndt = (
            c["del1"] * jnp.sin(xli - fasx2)
            + c["del2"] * jnp.sin(2.0 * (xli - fasx4))
            + c["del3"] * jnp.sin(3.0 * (xli - fasx6))
        )
        xnddt = (
            c["del1"] * jnp.cos(xli - fasx2)
            + 2.0 * c["del2"] * jnp.cos(2.0 * (xli - fasx4))
            + 3.0 * c["del3"] * jnp.cos(3.0 * (xli - fasx6))
        )
        return xndt, xldot, xnddt * xldot

    g22 = 5.7686396
    g32 = 0.95240898
    g44 = 1.8014998
    g52 = 1.0508330
    g54 = 4.4108898
    xomi = c["argpo"] + c["argpdot"] * atime
    x2omi = xomi + xomi
    x2li = xli + xli
    xndt = (
        c["d2201"] * jnp.sin(x2omi + xli - g22)
        + c["d2211"] * jnp.sin(xli - g22)
        + c["d3210"] * jnp.sin(xomi + xli - g32)
        + c["d3222"] * jnp.sin(-xomi + xli - g32)
        + c["d4410"] * jnp.sin(x2omi + x2li - g44)
        + c["d4422"] * jnp.sin(x2li - g44)
        + c["d5220"] * jnp.sin(xomi + xli - g52)
        + c["d5232"] * jnp.sin(-xomi + xli - g52)
        + c["d5421"] * jnp.sin(xomi + x2li - g54)
        + c["d5433"] * jnp.sin(-xomi + x2li - g54)
    )
    xnddt = (
        c["d2201"] * jnp.cos(x2omi + xli - g22)
        + c["d2211"] * jnp.cos(xli - g22)
        + c["d3210"] * jnp.cos(xomi + xli - g32)
        + c["d3222"] * jnp.cos(-xomi + xli - g32)
        + c["d5220"] * jnp.cos(xomi + xli - g52)
        + c["d5232"] * jnp.cos(-xomi + xli - g52)
        + 2.0
        * (
            c["d4410"] * jnp.cos(x2omi + x2li - g44)
            + c["d4422"] * jnp.cos(x2li - g44)
            + c["d5421"] * jnp.cos(xomi + x2li - g54)
            + c["d5433"] * jnp.cos(-xomi + x2li - g54)
        )
    )
    return xndt, xldot, xnddt * xldot


def dspace(
    c: dict[str, Array],
    flags: BranchFlags,
    t: ArrayLike,
    em: Array,
    argpm: Array,
    inclm: Array,
    mm: Array,
    nodem: Array,
    nm: Array,
) -> tuple[Array, ...]:
    """Apply the deep-space secular rates and the resonance integration.

    The resonance integrator always restarts from epoch, so the result
    does not depend on previously requested dates.

    Args:
        c: Initializer constants.
        flags: Static branch selection.
        t: Time since epoch [min].
        em: Eccentricity.
        argpm: Argument of perigee [rad].
        inclm: Inclination [rad].
        mm: Mean anomaly [rad].
        nodem: Right ascension of the ascending node [rad].
        nm: Mean motion [rad/min].

    Returns:
        Tuple ``(em, argpm, inclm, mm, nodem, nm)``.
    """
    em = em + c["dedt"] * t
    inclm = inclm + c["didt"] * t
    argpm = argpm + c["domdt"] * t
    nodem = nodem + c["dnodt"] * t
    mm = mm + c["dmdt"] * t

    if flags.resonance == Resonance.NONE:
        return em, argpm, inclm, mm, nodem, nm

    t = jnp.asarray(t, dtype=c["xlamo"].dtype)
    theta = jnp.fmod(flags.gsto + t * RPTIM, TWO_PI)
    delt = jnp.where(t > 0.0, STEP, -STEP)
    no = c["no_unkozai"]

    def _cond(state):
        atime, _, _ = state
        return jnp.abs(t - atime) >= STEP

    def _body(state):
        atime, xni, xli = state
        xndt, xldot, xnddt = _resonance_rates(c, flags.resonance, xli, xni, atime)
        xli = xli + xldot * delt + xndt * STEP2
        xni = xni + xndt * delt + xnddt * STEP2
        return atime + delt, xni, xli

    atime, xni, xli = jax.lax.while_loop(
        _cond, _body, (jnp.zeros_like(t), no + 0.0 * t, c["xlamo"] + 0.0 * t)
    )

    ft = t - atime
    xndt, xldot, xnddt = _resonance_rates(c, flags.resonance, xli, xni, atime)
    nm_res = xni + xndt * ft + xnddt * ft * ft * 0.5
    xl = xli + xldot * ft + xndt * ft * ft * 0.5
    if flags.resonance == Resonance.SYNCHRONOUS:
        mm = xl - nodem - argpm + theta
    else:
        mm = xl - 2.0 * nodem + 2.0 * theta
    nm = no + (nm_res - no)

    return em, argpm, inclm, mm, nodem, nm


def _body_periodics(t, zmo, zn, ze):
    """Periodic phase terms ``(f2, f3, sin(zf))`` of the Sun or the Moon."""
    zm = zmo + zn * t
    zf = zm + 2.0 * ze * jnp.sin(zm)
    sinzf = jnp.sin(zf)
    return 0.5 * sinzf * sinzf - 0.25, -0.5 * sinzf * jnp.cos(zf), sinzf


def dpper(
    c: dict[str, Array],
    t: ArrayLike,
    ep: Array,
    inclp: Array,
    nodep: Array,
    argpp: Array,
    mp: Array,
) -> tuple[Array, ...]:
    """Apply the lunar-solar periodics to the mean elements.

    Below 0.2 rad of inclination the node and perigee corrections use the
    Lyddane modification, which stays regular at zero inclination.

    Returns:
        Tuple ``(ep, inclp, nodep, argpp, mp)``.
    """
    f2, f3, sinzf = _body_periodics(t, c["zmos"], 1.19459e-5, 0.01675)
    ses = c["se2"] * f2 + c["se3"] * f3
    sis = c["si2"] * f2 + c["si3"] * f3
    sls = c["sl2"] * f2 + c["sl3"] * f3 + c["sl4"] * sinzf
    sghs = c["sgh2"] * f2 + c["sgh3"] * f3 + c["sgh4"] * sinzf
    shs = c["sh2"] * f2 + c["sh3"] * f3

    f2, f3, sinzf = _body_periodics(t, c["zmol"], 1.5835218e-4, 0.05490)
    sel = c["ee2"] * f2 + c["e3"] * f3
    sil = c["xi2"] * f2 + c["xi3"] * f3
    sll = c["xl2"] * f2 + c["xl3"] * f3 + c["xl4"] * sinzf
    sghl = c["xgh2"] * f2 + c["xgh3"] * f3 + c["xgh4"] * sinzf
    shll = c["xh2"] * f2 + c["xh3"] * f3

    pe = ses + sel
    pinc = sis + sil
    pl = sls + sll
    pgh = sghs + sghl
    ph = shs + shll

    inclp = inclp + pinc
    ep = ep + pe
    sinip = jnp.sin(inclp)
    cosip = jnp.cos(inclp)
    direct = inclp >= LYDDANE_INCLINATION

    # Direct application
    safe_sinip = jnp.where(direct, sinip, 1.0)
    ph_direct = ph / safe_sinip
    argpp_direct = argpp + pgh - cosip * ph_direct
    nodep_direct = nodep + ph_direct

    # Lyddane modification
    sinop = jnp.sin(nodep)
    cosop = jnp.cos(nodep)
    alfdp = sinip * sinop + ph * cosop + pinc * cosip * sinop
    betdp = sinip * cosop - ph * sinop + pinc * cosip * cosop
    xnoh = jnp.fmod(nodep, TWO_PI)
    xls = mp + argpp + cosip * xnoh
    xls = xls + pl + pgh - pinc * xnoh * sinip
    nodep_lyd = jnp.arctan2(alfdp, betdp)
    nodep_lyd = jnp.where(
        jnp.abs(xnoh - nodep_lyd) > jnp.pi,
        jnp.where(nodep_lyd < xnoh, nodep_lyd + TWO_PI, nodep_lyd - TWO_PI),
        nodep_lyd,
    )
    mp = mp + pl
    argpp_lyd = xls - mp - cosip * nodep_lyd

    argpp = jnp.where(direct, argpp_direct, argpp_lyd)
    nodep = jnp.where(direct, nodep_direct, nodep_lyd)
    return ep, inclp, nodep, argpp, mp


def propagate_deep_space(
    x: Array,
    t: ArrayLike,
    c: dict[str, Array],
    flags: BranchFlags,
    gravity: EarthGravity,
) -> tuple[Array, Array]:
    """Propagate a deep-space orbit with SDP4.

    Args:
        x: Element vector ``(n, e, i, raan, argp, M, B*)``.
        t: Time since epoch [min].
        c: Initializer constants for ``x``.
        flags: Static branch selection.
        gravity: Earth gravity model.

    Returns:
        Tuple ``(state, status)``: TEME state [m, m/s] and SGP4 status.
    """
    _, ecco, inclo, _, argpo, _, _ = split_elements(x)
    c = dict(c, argpo=argpo)
    status = jnp.int32(0)

    xmdf, argpdf, nodem, tempa, tempe, templ = secular_gravity_drag(c, x, t)
    em, argpm, inclm, mm, nodem, nm = dspace(
        c, flags, t, ecco, argpdf, inclo, xmdf, nodem, c["no_unkozai"]
    )

    am, nm, em, argpm, nodem, mm, status = recover_mean_elements(
        c, gravity, nm, em, argpm, nodem, mm, tempa, tempe, templ, status
    )

    ep, xincp, nodep, argpp, mp = dpper(c, t, em, inclm, nodem, argpm, mm)

    # Fold a negative inclination back into [0, pi]
    negative = xincp < 0.0
    xincp = jnp.where(negative, -xincp, xincp)
    nodep = jnp.where(negative, nodep + jnp.pi, nodep)
    argpp = jnp.where(negative, argpp - jnp.pi, argpp)

    status = first_error(status, (ep < 0.0) | (ep > 1.0), 3)

    # Long-period coefficients follow the perturbed inclination
    sinip = jnp.sin(xincp)
    cosip = jnp.cos(xincp)
    cosisq = cosip * cosip

    return reconstruct(
        gravity, am, nm, ep, xincp, nodep, argpp, mp,
        sinip, cosip,
        -0.5 * gravity.j3oj2 * sinip,
        xlcof_coefficient(gravity.j3oj2, sinip, cosip),
        3.0 * cosisq - 1.0, 1.0 - cosisq, 7.0 * cosisq - 1.0,
        status,
    )
