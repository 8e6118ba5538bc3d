"""
SGP4 near-Earth kernel.

Propagates orbits with a period below 225 minutes.  The secular update
includes the full drag polynomial unless the orbit is flagged as
simplified (perigee below 220 km).
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from tlejax.sgp4._constants import EarthGravity
from tlejax.sgp4._initializer import BranchFlags
from tlejax.sgp4._kernel import (
    recover_mean_elements,
    reconstruct,
    secular_gravity_drag,
    split_elements,
)


def propagate_near_earth(
    x: Array,
    t: ArrayLike,
    c: dict[str, Array],
    flags: BranchFlags,
    gravity: EarthGravity,
) -> tuple[Array, Array]:
    """Propagate a near-Earth orbit with SGP4.

    Args:
        x: Element vector ``(n, e, i, raan, argp, M, B*)``.
        t: Time since epoch [min].
        c: Initializer constants for ``x``.
        flags: Static branch selection.
        gravity: Earth gravity model.

    Returns:
        Tuple ``(state, status)``: TEME state [m, m/s] and SGP4 status.
    """
    _, ecco, inclo, _, _, _, bstar = split_elements(x)
    status = jnp.int32(0)

    xmdf, argpdf, nodem, tempa, tempe, templ = secular_gravity_drag(c, x, t)
    argpm = argpdf
    mm = xmdf

    if not flags.isimp:
        delomg = c["omgcof"] * t
        delmtemp = 1.0 + c["eta"] * jnp.cos(xmdf)
        delm = c["xmcof"] * (delmtemp * delmtemp * delmtemp - c["delmo"])
        temp = delomg + delm
        mm = xmdf + temp
        argpm = argpdf - temp
        t2 = t * t
        t3 = t2 * t
        t4 = t3 * t
        tempa = tempa - c["d2"] * t2 - c["d3"] * t3 - c["d4"] * t4
        tempe = tempe + bstar * c["cc5"] * (jnp.sin(mm) - c["sinmao"])
        templ = templ + c["t3cof"] * t3 + t4 * (c["t4cof"] + t * c["t5cof"])

    am, nm, em, argpm, nodem, mm, status = recover_mean_elements(
        c, gravity, c["no_unkozai"], ecco, argpm, nodem, mm, tempa, tempe, templ, status
    )

    return reconstruct(
        gravity, am, nm, em, inclo, nodem, argpm, mm,
        c["sinio"], c["cosio"], c["aycof"], c["xlcof"],
        c["con41"], c["x1mth2"], c["x7thm1"], status,
    )
