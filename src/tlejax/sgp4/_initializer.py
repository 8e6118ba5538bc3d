"""
SGP4/SDP4 initialization.

Initialization is split in two stages:

* :func:`classify` runs once per TLE on real values and resolves every
  branch that depends on the initial elements (near-Earth or deep-space,
  simplified drag, low-perigee atmosphere, resonance family, ...) into a
  hashable :class:`BranchFlags`.  The flags are static under ``jax.jit``.
* :func:`initialize` is a pure ``jax.numpy`` function of the element
  vector that computes the secular, drag and lunar-solar coefficients for
  the branches selected by the flags.  It is re-run inside every traced
  evaluation so that derivatives flow from the elements through the
  constants.
"""

from __future__ import annotations

import enum
import math
from typing import NamedTuple

import jax.numpy as jnp
from jax import Array

from tlejax.constants import JD_SGP4_EPOCH
from tlejax.exceptions import TLEInitializationError
from tlejax.sgp4._constants import EarthGravity
from tlejax.sgp4._kernel import TWO_PI, X2O3, split_elements, xlcof_coefficient
from tlejax.sgp4._scalar import real_value

# Deep-space threshold on the un-Kozai period [min]
DEEP_SPACE_PERIOD = 225.0

# Resonance bands on the un-Kozai mean motion [rad/min]
SYNCHRONOUS_BAND = (0.0034906585, 0.0052359877)
HALF_DAY_BAND = (8.26e-3, 9.24e-3)
HALF_DAY_MIN_ECCENTRICITY = 0.5

# Inclination below which (or above pi minus which) lunar-solar node rates vanish [rad]
LOW_INCLINATION = 5.2359877e-2

# Earth rotation rate [rad/min]
RPTIM = 4.37526908801129966e-3


class Resonance(enum.IntEnum):
    """Deep-space resonance family."""

    NONE = 0
    SYNCHRONOUS = 1
    HALF_DAY = 2


class BranchFlags(NamedTuple):
    """Branch selection of the SGP4/SDP4 theory for one TLE.

    Hashable and static under ``jax.jit``.  Shifted evaluations (finite
    differences, fitting iterations) reuse the flags of the nominal TLE.

    Attributes:
        deep_space: Un-Kozai period of 225 minutes or more (SDP4).
        isimp: Simplified drag model (perigee below 220 km, or deep-space).
        perigee_regime: 0 for a perigee above 156 km, 1 between 98 and
            156 km (``s4 = perigee - 78 km``), 2 below 98 km (``s4 = 20 km``).
        eccentric: Eccentricity above 1e-4 (enables ``cc3``/``xmcof``).
        resonance: Deep-space resonance family.
        low_inclination: Inclination within 3 degrees of 0 or 180 degrees,
            where the lunar-solar node rates are dropped.
        nonzero_sin_inclination: ``sin(i) != 0``.
        half_day_low_eccentricity: 12h resonance with ``e <= 0.65``.
        half_day_g520_high: 12h resonance with ``e > 0.715``.
        half_day_below_07: 12h resonance with ``e < 0.7``.
        gsto: Greenwich sidereal time at epoch [rad].
        epoch: TLE epoch in days since 1949-12-31 00:00.
    """

    deep_space: bool
    isimp: bool
    perigee_regime: int
    eccentric: bool
    resonance: Resonance
    low_inclination: bool
    nonzero_sin_inclination: bool
    half_day_low_eccentricity: bool
    half_day_g520_high: bool
    half_day_below_07: bool
    gsto: float
    epoch: float


def gstime(jdut1: float) -> float:
    """Greenwich mean sidereal time (IAU-82) of a UT1 Julian date [rad]."""
    tut1 = (jdut1 - 2451545.0) / 36525.0
    temp = (
        -6.2e-6 * tut1 * tut1 * tut1
        + 0.093104 * tut1 * tut1
        + (876600.0 * 3600 + 8640184.812866) * tut1
        + 67310.54841
    )
    temp = math.fmod(temp * (math.pi / 180.0) / 240.0, 2.0 * math.pi)
    if temp < 0.0:
        temp += 2.0 * math.pi
    return temp


def unkozai(no_kozai, ecco, inclo, gravity: EarthGravity) -> dict[str, Array]:
    """Recover the Brouwer (un-Kozai) mean motion and its auxiliary quantities.

    Args:
        no_kozai: Kozai mean motion [rad/min].
        ecco: Eccentricity.
        inclo: Inclination [rad].
        gravity: Earth gravity model.

    Returns:
        dict: ``no_unkozai``, ``ao``, ``con41``, ``con42``, ``cosio``,
            ``cosio2``, ``eccsq``, ``omeosq``, ``posq``, ``rp``, ``rteosq``,
            ``sinio``.
    """
    eccsq = ecco * ecco
    omeosq = 1.0 - eccsq
    rteosq = jnp.sqrt(omeosq)
    cosio = jnp.cos(inclo)
    cosio2 = cosio * cosio

    ak = (gravity.xke / no_kozai) ** X2O3
    d1 = 0.75 * gravity.j2 * (3.0 * cosio2 - 1.0) / (rteosq * omeosq)
    del_ = d1 / (ak * ak)
    adel = ak * (1.0 - del_ * del_ - del_ * (1.0 / 3.0 + 134.0 * del_ * del_ / 81.0))
    del_ = d1 / (adel * adel)
    no_unkozai = no_kozai / (1.0 + del_)

    ao = (gravity.xke / no_unkozai) ** X2O3
    po = ao * omeosq
    con42 = 1.0 - 5.0 * cosio2
    return {
        "no_unkozai": no_unkozai,
        "ao": ao,
        "con41": -con42 - cosio2 - cosio2,
        "con42": con42,
        "cosio": cosio,
        "cosio2": cosio2,
        "eccsq": eccsq,
        "omeosq": omeosq,
        "posq": po * po,
        "rp": ao * (1.0 - ecco),
        "rteosq": rteosq,
        "sinio": jnp.sin(inclo),
    }


def validate_elements(x: Array) -> None:
    """Reject element vectors that SGP4/SDP4 cannot initialize.

    Args:
        x: Element vector ``(n, e, i, raan, argp, M, B*)``.

    Raises:
        TLEInitializationError: If an element is not finite, the mean
            motion is not positive, the eccentricity is outside [0, 1) or the
            inclination is outside [0, pi].
    """
    values = [real_value(v) for v in x]
    if not all(math.isfinite(v) for v in values):
        raise TLEInitializationError(f"non-finite mean elements: {values}")
    if values[0] <= 0.0:
        raise TLEInitializationError(f"mean motion must be positive, got {values[0]} rad/s")
    if not 0.0 <= values[1] < 1.0:
        raise TLEInitializationError(f"eccentricity must be in [0, 1), got {values[1]}")
    if not 0.0 <= values[2] <= math.pi:
        raise TLEInitializationError(f"inclination must be in [0, pi], got {values[2]} rad")


def classify(x: Array, epoch: float, gravity: EarthGravity) -> BranchFlags:
    """Resolve the branch selection of the theory for one element vector.

    Args:
        x: Element vector ``(n, e, i, raan, argp, M, B*)`` (concrete values).
        epoch: TLE epoch in days since 1949-12-31 00:00.
        gravity: Earth gravity model.

    Returns:
        BranchFlags: Static branch selection.

    Raises:
        TLEInitializationError: If the elements are invalid or the epoch
            perigee lies below the Earth surface.
    """
    validate_elements(x)
    no_kozai, ecco, inclo, _, _, _, _ = split_elements(x)
    aux = unkozai(no_kozai, ecco, inclo, gravity)

    ecc = real_value(ecco)
    incl = real_value(inclo)
    no_unkozai = real_value(aux["no_unkozai"])
    rp = real_value(aux["rp"])

    if rp < 1.0:
        raise TLEInitializationError(
            f"perigee radius {rp:.6f} earth radii is below the Earth surface"
        )

    deep_space = TWO_PI / no_unkozai >= DEEP_SPACE_PERIOD
    isimp = deep_space or rp < 220.0 / gravity.radiusearthkm + 1.0

    perige = (rp - 1.0) * gravity.radiusearthkm
    if perige >= 156.0:
        perigee_regime = 0
    elif perige >= 98.0:
        perigee_regime = 1
    else:
        perigee_regime = 2

    resonance = Resonance.NONE
    if deep_space:
        if SYNCHRONOUS_BAND[0] < no_unkozai < SYNCHRONOUS_BAND[1]:
            resonance = Resonance.SYNCHRONOUS
        if (HALF_DAY_BAND[0] <= no_unkozai <= HALF_DAY_BAND[1]
                and ecc >= HALF_DAY_MIN_ECCENTRICITY):
            resonance = Resonance.HALF_DAY

    return BranchFlags(
        deep_space=deep_space,
        isimp=isimp,
        perigee_regime=perigee_regime,
        eccentric=ecc > 1.0e-4,
        resonance=resonance,
        low_inclination=incl < LOW_INCLINATION or incl > math.pi - LOW_INCLINATION,
        nonzero_sin_inclination=real_value(aux["sinio"]) != 0.0,
        half_day_low_eccentricity=ecc <= 0.65,
        half_day_g520_high=ecc > 0.715,
        half_day_below_07=ecc < 0.7,
        gsto=gstime(epoch + JD_SGP4_EPOCH),
        epoch=epoch,
    )


def initialize(x: Array, flags: BranchFlags, gravity: EarthGravity) -> dict[str, Array]:
    """Compute the SGP4/SDP4 constants of an element vector.

    Traceable: every branch is taken from ``flags``.

    Args:
        x: Element vector ``(n, e, i, raan, argp, M, B*)``.
        flags: Static branch selection from :func:`classify`.
        gravity: Earth gravity model.

    Returns:
        dict: Named constants consumed by the SGP4 and SDP4 kernels.
    """
    no_kozai, ecco, inclo, nodeo, argpo, mo, bstar = split_elements(x)
    radius = gravity.radiusearthkm
    j2 = gravity.j2
    j3oj2 = gravity.j3oj2

    aux = unkozai(no_kozai, ecco, inclo, gravity)
    no_unkozai = aux["no_unkozai"]
    ao = aux["ao"]
    con41 = aux["con41"]
    con42 = aux["con42"]
    cosio = aux["cosio"]
    cosio2 = aux["cosio2"]
    omeosq = aux["omeosq"]
    rteosq = aux["rteosq"]
    sinio = aux["sinio"]

    # Atmosphere model parameters, altered for perigees below 156 km
    sfour = 78.0 / radius + 1.0
    qzms24 = ((120.0 - 78.0) / radius) ** 4
    if flags.perigee_regime:
        perige = (aux["rp"] - 1.0) * radius
        sfour_km = perige - 78.0 if flags.perigee_regime == 1 else 20.0
        qzms24 = ((120.0 - sfour_km) / radius) ** 4
        sfour = sfour_km / radius + 1.0

    pinvsq = 1.0 / aux["posq"]
    tsi = 1.0 / (ao - sfour)
    eta = ao * ecco * tsi
    etasq = eta * eta
    eeta = ecco * eta
    psisq = jnp.abs(1.0 - etasq)
    coef = qzms24 * tsi**4
    coef1 = coef / psisq**3.5
    cc2 = (
        coef1
        * no_unkozai
        * (
            ao * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
            + 0.375 * j2 * tsi / psisq * con41 * (8.0 + 3.0 * etasq * (8.0 + etasq))
        )
    )
    cc1 = bstar * cc2
    cc3 = 0.0
    if flags.eccentric:
        cc3 = -2.0 * coef * tsi * j3oj2 * no_unkozai * sinio / ecco
    x1mth2 = 1.0 - cosio2
    cc4 = (
        2.0
        * no_unkozai
        * coef1
        * ao
        * omeosq
        * (
            eta * (2.0 + 0.5 * etasq)
            + ecco * (0.5 + 2.0 * etasq)
            - j2
            * tsi
            / (ao * psisq)
            * (
                -3.0 * con41 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
                + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * jnp.cos(2.0 * argpo)
            )
        )
    )
    cc5 = 2.0 * coef1 * ao * omeosq * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)
    cosio4 = cosio2 * cosio2
    temp1 = 1.5 * j2 * pinvsq * no_unkozai
    temp2 = 0.5 * temp1 * j2 * pinvsq
    temp3 = -0.46875 * gravity.j4 * pinvsq * pinvsq * no_unkozai
    mdot = (
        no_unkozai
        + 0.5 * temp1 * rteosq * con41
        + 0.0625 * temp2 * rteosq * (13.0 - 78.0 * cosio2 + 137.0 * cosio4)
    )
    argpdot = (
        -0.5 * temp1 * con42
        + 0.0625 * temp2 * (7.0 - 114.0 * cosio2 + 395.0 * cosio4)
        + temp3 * (3.0 - 36.0 * cosio2 + 49.0 * cosio4)
    )
    xhdot1 = -temp1 * cosio
    nodedot = xhdot1 + (
        0.5 * temp2 * (4.0 - 19.0 * cosio2) + 2.0 * temp3 * (3.0 - 7.0 * cosio2)
    ) * cosio
    xpidot = argpdot + nodedot
    xmcof = 0.0
    if flags.eccentric:
        xmcof = -X2O3 * coef * bstar / eeta
    delmotemp = 1.0 + eta * jnp.cos(mo)

    c = {
        "no_unkozai": no_unkozai,
        "con41": con41,
        "cosio": cosio,
        "sinio": sinio,
        "cc1": cc1,
        "cc4": cc4,
        "cc5": cc5,
        "eta": eta,
        "mdot": mdot,
        "argpdot": argpdot,
        "nodedot": nodedot,
        "omgcof": bstar * cc3 * jnp.cos(argpo),
        "xmcof": xmcof,
        "nodecf": 3.5 * omeosq * xhdot1 * cc1,
        "t2cof": 1.5 * cc1,
        "xlcof": xlcof_coefficient(j3oj2, sinio, cosio),
        "aycof": -0.5 * j3oj2 * sinio,
        "delmo": delmotemp * delmotemp * delmotemp,
        "sinmao": jnp.sin(mo),
        "x1mth2": x1mth2,
        "x7thm1": 7.0 * cosio2 - 1.0,
    }

    if flags.deep_space:
        ds = dscom(flags.epoch, ecco, argpo, 0.0, inclo, nodeo, no_unkozai)
        c.update(ds)
        c.update(dsinit(flags, gravity, ds, ecco, aux["eccsq"], argpo, mo, nodeo,
                        no_unkozai, mdot, nodedot, xpidot))

    if not flags.isimp:
        cc1sq = cc1 * cc1
        d2 = 4.0 * ao * tsi * cc1sq
        temp = d2 * tsi * cc1 / 3.0
        d3 = (17.0 * ao + sfour) * temp
        d4 = 0.5 * temp * ao * tsi * (221.0 * ao + 31.0 * sfour) * cc1
        c.update(
            d2=d2,
            d3=d3,
            d4=d4,
            t3cof=d2 + 2.0 * cc1sq,
            t4cof=0.25 * (3.0 * d3 + cc1 * (12.0 * d2 + 10.0 * cc1sq)),
            t5cof=0.2 * (3.0 * d4 + 12.0 * cc1 * d3 + 6.0 * d2 * d2
                         + 15.0 * cc1sq * (2.0 * d2 + cc1sq)),
        )

    return c


# Deep-space initialization


def _dscom_pass(zcosg, zsing, zcosi, zsini, zcosh, zsinh, cc,
                xnoi, em, emsq, betasq, rtemsq, cosomm, sinomm, cosim, sinim):
    """One body (Sun or Moon) of the lunar-solar coefficient computation."""
    a1 = zcosg * zcosh + zsing * zcosi * zsinh
    a3 = -zsing * zcosh + zcosg * zcosi * zsinh
    a7 = -zcosg * zsinh + zsing * zcosi * zcosh
    a8 = zsing * zsini
    a9 = zsing * zsinh + zcosg * zcosi * zcosh
    a10 = zcosg * zsini
    a2 = cosim * a7 + sinim * a8
    a4 = cosim * a9 + sinim * a10
    a5 = -sinim * a7 + cosim * a8
    a6 = -sinim * a9 + cosim * a10

    x1 = a1 * cosomm + a2 * sinomm
    x2 = a3 * cosomm + a4 * sinomm
    x3 = -a1 * sinomm + a2 * cosomm
    x4 = -a3 * sinomm + a4 * cosomm
    x5 = a5 * sinomm
    x6 = a6 * sinomm
    x7 = a5 * cosomm
    x8 = a6 * cosomm

    z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
    z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
    z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
    z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * emsq
    z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * emsq
    z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * emsq
    z11 = -6.0 * a1 * a5 + emsq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
    z12 = -6.0 * (a1 * a6 + a3 * a5) + emsq * (
        -24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5)
    )
    z13 = -6.0 * a3 * a6 + emsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
    z21 = 6.0 * a2 * a5 + emsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
    z22 = 6.0 * (a4 * a5 + a2 * a6) + emsq * (
        24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8)
    )
    z23 = 6.0 * a4 * a6 + emsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
    s3 = cc * xnoi
    s4 = s3 * rtemsq
    return {
        "s1": -15.0 * em * s4,
        "s2": -0.5 * s3 / rtemsq,
        "s3": s3,
        "s4": s4,
        "s5": x1 * x3 + x2 * x4,
        "s6": x2 * x3 + x1 * x4,
        "s7": x2 * x4 - x1 * x3,
        "z1": z1 + z1 + betasq * z31,
        "z2": z2 + z2 + betasq * z32,
        "z3": z3 + z3 + betasq * z33,
        "z11": z11, "z12": z12, "z13": z13,
        "z21": z21, "z22": z22, "z23": z23,
        "z31": z31, "z32": z32, "z33": z33,
    }


def dscom(epoch, ep, argpp, tc, inclp, nodep, np_) -> dict[str, Array]:
    """Lunar-solar geometry and periodic coefficients at epoch.

    Args:
        epoch: Days since 1949-12-31 00:00.
        ep: Eccentricity.
        argpp: Argument of perigee [rad].
        tc: Time offset [min] (0 at initialization).
        inclp: Inclination [rad].
        nodep: Right ascension of the ascending node [rad].
        np_: Un-Kozai mean motion [rad/min].

    Returns:
        dict: Solar (``ss*``, ``sz*``, ``se*``, ``si*``, ``sl*``, ``sgh*``,
            ``sh*``) and lunar (``s*``, ``z*``, ``ee2``, ``e3``, ``xi*``,
            ``xl*``, ``xgh*``, ``xh*``) coefficients, plus ``zmol``/``zmos``,
            ``sinim``, ``cosim`` and ``emsq``.
    """
    zes = 0.01675
    zel = 0.05490
    c1ss = 2.9864797e-6
    c1l = 4.7968065e-7
    zsinis = 0.39785416
    zcosis = 0.91744867
    zcosgs = 0.1945905
    zsings = -0.98088458

    em = ep
    snodm = jnp.sin(nodep)
    cnodm = jnp.cos(nodep)
    sinomm = jnp.sin(argpp)
    cosomm = jnp.cos(argpp)
    sinim = jnp.sin(inclp)
    cosim = jnp.cos(inclp)
    emsq = em * em
    betasq = 1.0 - emsq
    rtemsq = jnp.sqrt(betasq)

    # Moon orbit geometry depends only on the date
    day = epoch + 18261.5 + tc / 1440.0
    xnodce = math.fmod(4.5236020 - 9.2422029e-4 * day, 2.0 * math.pi)
    stem = math.sin(xnodce)
    ctem = math.cos(xnodce)
    zcosil = 0.91375164 - 0.03568096 * ctem
    zsinil = math.sqrt(1.0 - zcosil * zcosil)
    zsinhl = 0.089683511 * stem / zsinil
    zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
    gam = 5.8351514 + 0.0019443680 * day
    zx = 0.39785416 * stem / zsinil
    zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
    zx = gam + math.atan2(zx, zy) - xnodce
    zcosgl = math.cos(zx)
    zsingl = math.sin(zx)

    xnoi = 1.0 / np_
    common = (xnoi, em, emsq, betasq, rtemsq, cosomm, sinomm, cosim, sinim)

    sun = _dscom_pass(zcosgs, zsings, zcosis, zsinis, cnodm, snodm, c1ss, *common)
    moon = _dscom_pass(
        zcosgl, zsingl, zcosil, zsinil,
        zcoshl * cnodm + zsinhl * snodm,
        snodm * zcoshl - cnodm * zsinhl,
        c1l, *common,
    )

    # Solar values carry an extra "s" prefix (ss1, sz11, ...)
    out = {f"s{k}": v for k, v in sun.items()}
    out.update(moon)
    out.update(
        sinim=sinim,
        cosim=cosim,
        emsq=emsq,
        zmol=math.fmod(4.7199672 + 0.22997150 * day - gam, 2.0 * math.pi),
        zmos=math.fmod(6.2565837 + 0.017201977 * day, 2.0 * math.pi),
        # Solar terms
        se2=2.0 * sun["s1"] * sun["s6"],
        se3=2.0 * sun["s1"] * sun["s7"],
        si2=2.0 * sun["s2"] * sun["z12"],
        si3=2.0 * sun["s2"] * (sun["z13"] - sun["z11"]),
        sl2=-2.0 * sun["s3"] * sun["z2"],
        sl3=-2.0 * sun["s3"] * (sun["z3"] - sun["z1"]),
        sl4=-2.0 * sun["s3"] * (-21.0 - 9.0 * emsq) * zes,
        sgh2=2.0 * sun["s4"] * sun["z32"],
        sgh3=2.0 * sun["s4"] * (sun["z33"] - sun["z31"]),
        sgh4=-18.0 * sun["s4"] * zes,
        sh2=-2.0 * sun["s2"] * sun["z22"],
        sh3=-2.0 * sun["s2"] * (sun["z23"] - sun["z21"]),
        # Lunar terms
        ee2=2.0 * moon["s1"] * moon["s6"],
        e3=2.0 * moon["s1"] * moon["s7"],
        xi2=2.0 * moon["s2"] * moon["z12"],
        xi3=2.0 * moon["s2"] * (moon["z13"] - moon["z11"]),
        xl2=-2.0 * moon["s3"] * moon["z2"],
        xl3=-2.0 * moon["s3"] * (moon["z3"] - moon["z1"]),
        xl4=-2.0 * moon["s3"] * (-21.0 - 9.0 * emsq) * zel,
        xgh2=2.0 * moon["s4"] * moon["z32"],
        xgh3=2.0 * moon["s4"] * (moon["z33"] - moon["z31"]),
        xgh4=-18.0 * moon["s4"] * zel,
        xh2=-2.0 * moon["s2"] * moon["z22"],
        xh3=-2.0 * moon["s2"] * (moon["z23"] - moon["z21"]),
    )
    return out


def dsinit(
    flags: BranchFlags,
    gravity: EarthGravity,
    ds: dict[str, Array],
    ecco,
    eccsq,
    argpo,
    mo,
    nodeo,
    no,
    mdot,
    nodedot,
    xpidot,
) -> dict[str, Array]:
    """Deep-space secular rates and resonance coefficients.

    Args:
        flags: Static branch selection.
        gravity: Earth gravity model.
        ds: Output of :func:`dscom` at epoch.
        ecco: Eccentricity.
        eccsq: Eccentricity squared.
        argpo: Argument of perigee [rad].
        mo: Mean anomaly [rad].
        nodeo: Right ascension of the ascending node [rad].
        no: Un-Kozai mean motion [rad/min].
        mdot: Mean anomaly rate [rad/min].
        nodedot: Node rate [rad/min].
        xpidot: Sum of the perigee and node rates [rad/min].

    Returns:
        dict: Lunar-solar secular rates (``dedt``, ``didt``, ``dmdt``,
            ``domdt``, ``dnodt``) and, for resonant orbits, the resonance
            coefficients with the integrator start values ``xfact`` and
            ``xlamo``.
    """
    q22 = 1.7891679e-6
    q31 = 2.1460748e-6
    q33 = 2.2123015e-7
    root22 = 1.7891679e-6
    root44 = 7.3636953e-9
    root54 = 2.1765803e-9
    root32 = 3.7393792e-7
    root52 = 1.1428639e-7
    znl = 1.5835218e-4
    zns = 1.19459e-5

    cosim = ds["cosim"]
    sinim = ds["sinim"]
    emsq = ds["emsq"]

    # Solar secular terms
    ses = ds["ss1"] * zns * ds["ss5"]
    sis = ds["ss2"] * zns * (ds["sz11"] + ds["sz13"])
    sls = -zns * ds["ss3"] * (ds["sz1"] + ds["sz3"] - 14.0 - 6.0 * emsq)
    sghs = ds["ss4"] * zns * (ds["sz31"] + ds["sz33"] - 6.0)
    shs = -zns * ds["ss2"] * (ds["sz21"] + ds["sz23"])
    if flags.low_inclination:
        shs = 0.0
    if flags.nonzero_sin_inclination:
        shs = shs / sinim
    sgs = sghs - cosim * shs

    # Lunar secular terms
    dedt = ses + ds["s1"] * znl * ds["s5"]
    didt = sis + ds["s2"] * znl * (ds["z11"] + ds["z13"])
    dmdt = sls - znl * ds["s3"] * (ds["z1"] + ds["z3"] - 14.0 - 6.0 * emsq)
    sghl = ds["s4"] * znl * (ds["z31"] + ds["z33"] - 6.0)
    shll = -znl * ds["s2"] * (ds["z21"] + ds["z23"])
    if flags.low_inclination:
        shll = 0.0
    domdt = sgs + sghl
    dnodt = shs
    if flags.nonzero_sin_inclination:
        domdt = domdt - cosim / sinim * shll
        dnodt = dnodt + shll / sinim

    out = {"dedt": dedt, "didt": didt, "dmdt": dmdt, "domdt": domdt, "dnodt": dnodt}
    if flags.resonance == Resonance.NONE:
        return out

    theta = math.fmod(flags.gsto, 2.0 * math.pi)
    aonv = (no / gravity.xke) ** X2O3

    if flags.resonance == Resonance.HALF_DAY:
        cosisq = cosim * cosim
        em = ecco
        emsq = eccsq
        eoc = em * emsq
        g201 = -0.306 - (em - 0.64) * 0.440
        if flags.half_day_low_eccentricity:
            g211 = 3.616 - 13.2470 * em + 16.2900 * emsq
            g310 = -19.302 + 117.3900 * em - 228.4190 * emsq + 156.5910 * eoc
            g322 = -18.9068 + 109.7927 * em - 214.6334 * emsq + 146.5816 * eoc
            g410 = -41.122 + 242.6940 * em - 471.0940 * emsq + 313.9530 * eoc
            g422 = -146.407 + 841.8800 * em - 1629.014 * emsq + 1083.4350 * eoc
            g520 = -532.114 + 3017.977 * em - 5740.032 * emsq + 3708.2760 * eoc
        else:
            g211 = -72.099 + 331.819 * em - 508.738 * emsq + 266.724 * eoc
            g310 = -346.844 + 1582.851 * em - 2415.925 * emsq + 1246.113 * eoc
            g322 = -342.585 + 1554.908 * em - 2366.899 * emsq + 1215.972 * eoc
            g410 = -1052.797 + 4758.686 * em - 7193.992 * emsq + 3651.957 * eoc
            g422 = -3581.690 + 16178.110 * em - 24462.770 * emsq + 12422.520 * eoc
            if flags.half_day_g520_high:
                g520 = -5149.66 + 29936.92 * em - 54087.36 * emsq + 31324.56 * eoc
            else:
                g520 = 1464.74 - 4664.75 * em + 3763.64 * emsq
        if flags.half_day_below_07:
            g533 = -919.22770 + 4988.6100 * em - 9064.7700 * emsq + 5542.21 * eoc
            g521 = -822.71072 + 4568.6173 * em - 8491.4146 * emsq + 5337.524 * eoc
            g532 = -853.66600 + 4690.2500 * em - 8624.7700 * emsq + 5341.4 * eoc
        else:
            g533 = -37995.780 + 161616.52 * em - 229838.20 * emsq + 109377.94 * eoc
            g521 = -51752.104 + 218913.95 * em - 309468.16 * emsq + 146349.42 * eoc
            g532 = -40023.880 + 170470.89 * em - 242699.48 * emsq + 115605.82 * eoc

        sini2 = sinim * sinim
        f220 = 0.75 * (1.0 + 2.0 * cosim + cosisq)
        f221 = 1.5 * sini2
        f321 = 1.875 * sinim * (1.0 - 2.0 * cosim - 3.0 * cosisq)
        f322 = -1.875 * sinim * (1.0 + 2.0 * cosim - 3.0 * cosisq)
        f441 = 35.0 * sini2 * f220
        f442 = 39.3750 * sini2 * sini2
        f522 = 9.84375 * sinim * (
            sini2 * (1.0 - 2.0 * cosim - 5.0 * cosisq)
            + 0.33333333 * (-2.0 + 4.0 * cosim + 6.0 * cosisq)
        )
        f523 = sinim * (
            4.92187512 * sini2 * (-2.0 - 4.0 * cosim + 10.0 * cosisq)
            + 6.56250012 * (1.0 + 2.0 * cosim - 3.0 * cosisq)
        )
        f542 = 29.53125 * sinim * (
            2.0 - 8.0 * cosim + cosisq * (-12.0 + 8.0 * cosim + 10.0 * cosisq)
        )
        f543 = 29.53125 * sinim * (
            -2.0 - 8.0 * cosim + cosisq * (12.0 + 8.0 * cosim - 10.0 * cosisq)
        )

        xno2 = no * no
        ainv2 = aonv * aonv
        temp1 = 3.0 * xno2 * ainv2
        temp = temp1 * root22
        out["d2201"] = temp * f220 * g201
        out["d2211"] = temp * f221 * g211
        temp1 = temp1 * aonv
        temp = temp1 * root32
        out["d3210"] = temp * f321 * g310
        out["d3222"] = temp * f322 * g322
        temp1 = temp1 * aonv
        temp = 2.0 * temp1 * root44
        out["d4410"] = temp * f441 * g410
        out["d4422"] = temp * f442 * g422
        temp1 = temp1 * aonv
        temp = temp1 * root52
        out["d5220"] = temp * f522 * g520
        out["d5232"] = temp * f523 * g532
        temp = 2.0 * temp1 * root54
        out["d5421"] = temp * f542 * g521
        out["d5433"] = temp * f543 * g533
        out["xlamo"] = jnp.fmod(mo + nodeo + nodeo - theta - theta, TWO_PI)
        out["xfact"] = mdot + dmdt + 2.0 * (nodedot + dnodt - RPTIM) - no
    else:
        g200 = 1.0 + emsq * (-2.5 + 0.8125 * emsq)
        g310 = 1.0 + 2.0 * emsq
        g300 = 1.0 + emsq * (-6.0 + 6.60937 * emsq)
        f220 = 0.75 * (1.0 + cosim) * (1.0 + cosim)
        f311 = 0.9375 * sinim * sinim * (1.0 + 3.0 * cosim) - 0.75 * (1.0 + cosim)
        f330 = 1.0 + cosim
        f330 = 1.875 * f330 * f330 * f330
        del1 = 3.0 * no * no * aonv * aonv
        out["del2"] = 2.0 * del1 * f220 * g200 * q22
        out["del3"] = 3.0 * del1 * f330 * g300 * q33 * aonv
        out["del1"] = del1 * f311 * g310 * q31 * aonv
        out["xlamo"] = jnp.fmod(mo + nodeo + argpo - theta, TWO_PI)
        out["xfact"] = mdot + xpidot - RPTIM + dmdt + domdt + dnodt - no

    return out
