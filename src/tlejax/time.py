"""Calendar and Modified Julian Date conversions.

Civil dates are mapped to day counts with the proleptic Gregorian
day-number algorithm (H. Hinnant, *chrono-Compatible Low-Level Date
Algorithms*), written with integer ``jnp`` operations so it traces under
``jax.jit``.

Only the calendar arithmetic needed to place a TLE epoch on the time line
is provided.  No time-scale conversion is performed: every instant is read
in the time scale of the TLE (UTC) and callers convert externally if needed.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike

from .config import get_dtype
from .constants import JD_MJD_OFFSET

# Days from 0000-03-01 to 1858-11-17 (MJD 0) in the shifted Gregorian count
_MJD_SHIFT = 678881

_MS_PER_DAY = 86400000


def is_leap_year(year: int) -> bool:
    """Return whether a Gregorian year has 366 days."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_year(year: int) -> int:
    """Return the number of days of a Gregorian year."""
    return 366 if is_leap_year(year) else 365


def days_from_civil(year: ArrayLike, month: ArrayLike, day: ArrayLike) -> jax.Array:
    """Return the Modified Julian Day number of a calendar date at 00:00.

    Args:
        year (ArrayLike): Gregorian year.
        month (ArrayLike): Month, 1-12.
        day (ArrayLike): Day of month.

    Returns:
        Integer MJD (``int32``).
    """
    year = jnp.asarray(year, dtype=jnp.int32)
    month = jnp.asarray(month, dtype=jnp.int32)
    day = jnp.asarray(day, dtype=jnp.int32)

    # Years start on March 1st so the leap day is last
    y = jnp.where(month <= 2, year - 1, year)
    era = jnp.floor_divide(y, 400)
    yoe = y - era * 400
    doy = (153 * ((month + 9) % 12) + 2) // 5 + day - 1
    doe = 365 * yoe + yoe // 4 - yoe // 100 + doy
    return era * 146097 + doe - _MJD_SHIFT


def civil_from_days(mjd_day: ArrayLike) -> tuple[jax.Array, jax.Array, jax.Array]:
    """Return ``(year, month, day)`` of an integer Modified Julian Day number."""
    z = jnp.asarray(mjd_day, dtype=jnp.int32) + _MJD_SHIFT
    era = jnp.floor_divide(z, 146097)
    doe = z - era * 146097
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = jnp.where(mp < 10, mp + 3, mp - 9)
    year = yoe + era * 400 + jnp.where(month <= 2, 1, 0)
    return year, month, day


def caldate_to_mjd(
    year: ArrayLike,
    month: ArrayLike,
    day: ArrayLike,
    hour: ArrayLike = 0,
    minute: ArrayLike = 0,
    second: ArrayLike = 0.0,
) -> jax.Array:
    """Convert a calendar date to Modified Julian Date.

    Args:
        year (ArrayLike): Year of the calendar date.
        month (ArrayLike): Month of the calendar date.
        day (ArrayLike): Day of the calendar date.
        hour (ArrayLike): Hour of the calendar date. Default: ``0``
        minute (ArrayLike): Minute of the calendar date. Default: ``0``
        second (ArrayLike): Second of the calendar date. Default: ``0.0``

    Returns:
        Modified Julian Date in the configured float dtype.
    """
    dtype = get_dtype()
    frac_day = (hour * 3600.0 + minute * 60.0 + second) / 86400.0
    return days_from_civil(year, month, day).astype(dtype) + jnp.asarray(frac_day, dtype=dtype)


def caldate_to_jd(
    year: ArrayLike,
    month: ArrayLike,
    day: ArrayLike,
    hour: ArrayLike = 0,
    minute: ArrayLike = 0,
    second: ArrayLike = 0.0,
) -> jax.Array:
    """Convert a calendar date to Julian Date."""
    return caldate_to_mjd(year, month, day, hour, minute, second) + JD_MJD_OFFSET


def mjd_to_caldate(
    mjd: ArrayLike,
) -> tuple[jax.Array, jax.Array, jax.Array, jax.Array, jax.Array, jax.Array]:
    """Convert Modified Julian Date to calendar date.

    The time of day is rounded to the millisecond; a value that rounds up to
    midnight rolls over to the next day.  :class:`~tlejax.epoch.Epoch` keeps
    the seconds of day separately when more precision is needed.

    Args:
        mjd (ArrayLike): Modified Julian Date.

    Returns:
        tuple[jax.Array, ...]: (year, month, day, hour, minute, second) where
            year/month/day/hour/minute are int32 and second is configurable float dtype.
    """
    mjd = jnp.asarray(mjd, dtype=get_dtype())
    mjd_day = jnp.floor(mjd).astype(jnp.int32)
    total_ms = jnp.round((mjd - mjd_day) * _MS_PER_DAY).astype(jnp.int32)

    carry = total_ms // _MS_PER_DAY
    mjd_day = mjd_day + carry
    total_ms = total_ms - carry * _MS_PER_DAY

    year, month, day = civil_from_days(mjd_day)
    hour = total_ms // 3600000
    minute = (total_ms // 60000) % 60
    second = get_dtype()(total_ms % 60000) / 1000.0
    return year, month, day, hour, minute, second


def jd_to_caldate(
    jd: ArrayLike,
) -> tuple[jax.Array, jax.Array, jax.Array, jax.Array, jax.Array, jax.Array]:
    """Convert Julian Date to calendar date (see :func:`mjd_to_caldate`)."""
    return mjd_to_caldate(jnp.asarray(jd, dtype=get_dtype()) - JD_MJD_OFFSET)
