"""Instants on the TLE time line.

An :class:`Epoch` is stored as an integer Julian Day number, the seconds
elapsed since the noon that starts that Julian day, and a Kahan compensator
for the seconds.  Splitting the day count from the seconds keeps float64
resolution far below the 0.864 ms quantum of the TLE epoch field, and the
compensator stops rounding errors from growing when an epoch is stepped
through many samples.

Epochs are JAX pytrees: they pass through ``jax.jit``, ``jax.vmap`` and
``jax.lax.scan``, and their arithmetic and comparisons are traceable.
Calendar accessors (:meth:`Epoch.caldate`, :meth:`Epoch.day_of_year`, ...)
read concrete values and are not.

No time scale is attached.  A TLE epoch is read as written (UTC) and any
scale conversion is left to the caller.
"""

from __future__ import annotations

import math
import re

import jax
import jax.numpy as jnp

from .config import get_dtype, get_epoch_eq_tolerance
from .constants import JD_MJD_OFFSET, JD_SGP4_EPOCH, SECONDS_PER_DAY
from .time import caldate_to_jd, caldate_to_mjd, days_in_year, jd_to_caldate

# Julian days start at noon, civil days at midnight
_HALF_DAY = 0.5 * SECONDS_PER_DAY

_ISO_PATTERN = re.compile(
    r'^(\d{4})-(\d{2})-(\d{2})'
    r'(?:T(\d{2}):(\d{2}):(\d{2}(?:\.\d+)?)Z)?$'
)


def _carry_days(jd, seconds):
    """Move whole days out of ``seconds`` so that it lies in ``[0, 86400)``."""
    days = jnp.int32(jnp.floor(seconds / SECONDS_PER_DAY))
    return jd + days, seconds - days * SECONDS_PER_DAY


class Epoch:
    """A single instant, with compensated arithmetic in seconds.

    Constructors:
        Epoch(2018, 1, 1)
        Epoch(2018, 1, 1, 12, 0, 0.0)
        Epoch("2018-01-01T12:00:00Z")
        Epoch(other_epoch)
        Epoch.from_day_of_year(2008, 264, 44740.104192)

    Adding or subtracting a number of seconds returns a new epoch, and the
    difference of two epochs is a number of seconds.
    """

    __slots__ = ('_jd', '_seconds', '_kahan_c')

    def __init__(self, *args: int | float | str | Epoch) -> None:
        if len(args) == 1 and isinstance(args[0], Epoch):
            other = args[0]
            self._set(other._jd, other._seconds, other._kahan_c)
        elif len(args) == 1 and isinstance(args[0], str):
            self._set_date(*self._parse_iso(args[0]))
        elif len(args) == 1:
            raise ValueError(f"Cannot construct Epoch from {type(args[0])}")
        elif 3 <= len(args) <= 6:
            self._set_date(*args)
        else:
            raise ValueError(
                "Epoch requires date components (3-6 args), a string, or an Epoch"
            )

    @classmethod
    def _from_internal(cls, jd, seconds, kahan_c) -> Epoch:
        """Wrap already-normalized components, without any Python-side work."""
        obj = object.__new__(cls)
        obj._set(jd, seconds, kahan_c)
        return obj

    @classmethod
    def from_day_of_year(cls, year: int, day: int, seconds: float = 0.0) -> Epoch:
        """Create an Epoch from a year, a 1-based day of year and seconds in that day.

        This is the layout of the TLE epoch field (``YYDDD.DDDDDDDD``).
        ``seconds`` may exceed one day; the excess rolls into the next days.

        Args:
            year (int): Four-digit year.
            day (int): Day of year, 1 for January 1st.
            seconds (float): Seconds since midnight of that day.

        Returns:
            Epoch: The corresponding instant.

        Raises:
            ValueError: If ``day`` is not a day of ``year``.

        Examples:
            ```python
            epc = Epoch.from_day_of_year(2012, 90, 11409.683328)
            str(epc)
            ```
        """
        if not 1 <= day <= days_in_year(year):
            raise ValueError(f"day {day} is not a day of year {year}")
        obj = object.__new__(cls)
        obj._set_date(year, 1, 1, second=(day - 1) * SECONDS_PER_DAY + seconds)
        return obj

    @staticmethod
    def _parse_iso(string: str) -> tuple:
        match = _ISO_PATTERN.match(string)
        if match is None:
            raise ValueError(
                f'Invalid Epoch string: "{string}" is not ISO 8601 compliant'
            )
        year, month, day, hour, minute, second = match.groups()
        if hour is None:
            return int(year), int(month), int(day)
        return int(year), int(month), int(day), int(hour), int(minute), float(second)

    def _set(self, jd, seconds, kahan_c) -> None:
        self._jd = jd
        self._seconds = seconds
        self._kahan_c = kahan_c

    def _set_date(self, year, month, day, hour=0, minute=0, second=0.0) -> None:
        dtype = get_dtype()
        # Midnight is half a Julian day after the noon that starts the day
        jd_midnight = float(caldate_to_jd(year, month, day))
        jd_noon = math.floor(jd_midnight)
        seconds = ((jd_midnight - jd_noon) * SECONDS_PER_DAY
                   + hour * 3600.0 + minute * 60.0 + second)
        jd, seconds = _carry_days(jnp.int32(jd_noon), dtype(seconds))
        self._set(jd, seconds, dtype(0.0))

    def _compensated_seconds(self):
        return self._seconds - self._kahan_c

    # Arithmetic

    def __add__(self, delta: float) -> Epoch:
        """Return the epoch ``delta`` seconds later, by Kahan summation."""
        y = jnp.asarray(delta, dtype=get_dtype()) - self._kahan_c
        total = self._seconds + y
        kahan_c = (total - self._seconds) - y
        jd, seconds = _carry_days(self._jd, total)
        return Epoch._from_internal(jd, seconds, kahan_c)

    __iadd__ = __add__

    def __isub__(self, delta: float) -> Epoch:
        return self + (-delta)

    def __sub__(self, other: Epoch | float) -> Epoch | jax.Array:
        """Seconds between two epochs, or the epoch ``other`` seconds earlier."""
        if not isinstance(other, Epoch):
            return self + (-other)
        days = self._jd - other._jd
        return days * SECONDS_PER_DAY + (self._compensated_seconds()
                                         - other._compensated_seconds())

    # Comparison

    def _before(self, other: Epoch):
        return jnp.where(
            self._jd == other._jd,
            self._compensated_seconds() < other._compensated_seconds(),
            self._jd < other._jd,
        )

    def __eq__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return jnp.abs(self - other) < get_epoch_eq_tolerance()

    def __ne__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return ~(self == other)

    def __lt__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return self._before(other)

    def __gt__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return other._before(self)

    def __le__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return self._before(other) | (self == other)

    def __ge__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return other._before(self) | (self == other)

    # Calendar accessors

    def _civil_day(self) -> tuple[int, float]:
        """Integer MJD of the civil day and the seconds since its midnight."""
        civil = float(self._compensated_seconds()) + _HALF_DAY
        days, seconds = divmod(civil, SECONDS_PER_DAY)
        return int(self._jd) + int(days) - int(JD_MJD_OFFSET + 0.5), seconds

    def caldate(self) -> tuple[int, int, int, int, int, float]:
        """Return ``(year, month, day, hour, minute, second)``.

        The second keeps its fractional part.  Not traceable under ``jax.jit``.
        """
        mjd_day, seconds = self._civil_day()
        year, month, day, _, _, _ = jd_to_caldate(mjd_day + JD_MJD_OFFSET)
        hour, seconds = divmod(seconds, 3600.0)
        minute, second = divmod(seconds, 60.0)
        return int(year), int(month), int(day), int(hour), int(minute), second

    def year(self) -> int:
        return self.caldate()[0]

    def day_of_year(self) -> int:
        """Return the 1-based day of year (January 1st is 1)."""
        mjd_day, _ = self._civil_day()
        return mjd_day - int(caldate_to_mjd(self.year(), 1, 1)) + 1

    def seconds_in_day(self) -> float:
        """Return the seconds elapsed since midnight, at full precision."""
        return self._civil_day()[1]

    def jd(self) -> jax.Array:
        """Julian Date as a single float, lossy below the millisecond."""
        return self._jd + self._compensated_seconds() / SECONDS_PER_DAY

    def mjd(self) -> jax.Array:
        return self.jd() - JD_MJD_OFFSET

    def days_since_1950(self) -> jax.Array:
        """Days elapsed since 1949-12-31 00:00, the origin of SGP4 epochs.

        The whole-day difference is taken on the integer day count before the
        fraction is added, so the split precision survives.
        """
        days = self._jd - int(JD_SGP4_EPOCH + 0.5)
        return days + self._compensated_seconds() / SECONDS_PER_DAY + 0.5

    def __str__(self):
        year, month, day, hour, minute, second = self.caldate()
        return (f'{year:04d}-{month:02d}-{day:02d}T'
                f'{hour:02d}:{minute:02d}:{second:06.3f}Z')

    def __repr__(self):
        return (f'Epoch(_jd={int(self._jd)}, _seconds={float(self._seconds)}, '
                f'_kahan_c={float(self._kahan_c)})')

    def __hash__(self):
        return hash((int(self._jd), round(float(self._seconds), 3)))


jax.tree_util.register_pytree_node(
    Epoch,
    lambda epc: ((epc._jd, epc._seconds, epc._kahan_c), None),
    lambda _, children: Epoch._from_internal(*children),
)
