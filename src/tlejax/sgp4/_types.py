"""
Data types for the SGP4/SDP4 propagator.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

import jax.numpy as jnp
from jax import Array

from tlejax.constants import RAD2DEG, REVDAY_TO_RADSEC, TLE_MU, TWO_PI
from tlejax.epoch import Epoch
from tlejax.orbits import semimajor_axis
from tlejax.sgp4._tle import format_line1, format_line2, parse_tle

# Ephemeris types of the TLE line 1 column 63
DEFAULT = 0
SGP = 1
SGP4 = 2
SDP4 = 3
SGP8 = 4
SDP8 = 5


@dataclass(frozen=True, eq=False)
class TLE:
    """An immutable Two-Line Element mean-element set.

    Angles are stored in radians and mean motion in rad/s; the text lines
    and the ``*_deg`` properties export degrees.  A record never changes
    after construction: :meth:`replace` returns a new record, which is how
    fitting algorithms produce updated element sets.

    Examples:
        ```python
        from tlejax.sgp4 import TLE

        tle = TLE.from_lines(
            "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927",
            "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537",
        )
        tle.i_deg        # 51.6416
        tle.line1        # the original first line
        faster = tle.replace(mean_motion=tle.mean_motion * 1.01)
        ```

    Attributes:
        satellite_number: NORAD catalog number (alpha-5 above 99999).
        classification: Classification character (``'U'``, ``'C'`` or ``'S'``).
        launch_year: Four-digit launch year.
        launch_number: Launch number of the year.
        launch_piece: Piece of the launch (``'A'`` to ``'ZZZ'``).
        ephemeris_type: Ephemeris type, see the module constants.
        element_number: Element set number.
        epoch: Epoch of the elements.
        mean_motion: Mean motion [rad/s].
        mean_motion_first_derivative: Half the first derivative of mean motion [rad/s^2].
        mean_motion_second_derivative: Sixth of the second derivative of mean motion [rad/s^3].
        e: Eccentricity [dimensionless].
        i: Inclination [rad].
        raan: Right ascension of the ascending node [rad].
        argp: Argument of perigee [rad].
        mean_anomaly: Mean anomaly [rad].
        bstar: B* drag term [1/earth_radii].
        revolution_number: Revolution number at epoch.
    """

    satellite_number: int
    classification: str
    launch_year: int
    launch_number: int
    launch_piece: str
    ephemeris_type: int
    element_number: int
    epoch: Epoch
    mean_motion: float
    mean_motion_first_derivative: float
    mean_motion_second_derivative: float
    e: float
    i: float
    raan: float
    argp: float
    mean_anomaly: float
    bstar: float
    revolution_number: int
    _lines: tuple[str, str] | None = field(default=None, repr=False)

    @classmethod
    def from_lines(cls, line1: str, line2: str) -> TLE:
        """Build a record from its two text lines.

        The lines are kept, so ``line1`` and ``line2`` return them
        unchanged.

        Args:
            line1: First TLE line (69 characters).
            line2: Second TLE line (69 characters).

        Returns:
            The decoded record.

        Raises:
            TLEFormatError: If a line cannot be decoded.
            TLEChecksumError: If a checksum digit is wrong.
        """
        return cls(**parse_tle(line1, line2), _lines=(line1, line2))

    def replace(self, **changes) -> TLE:
        """Return a copy of this record with some fields changed.

        Args:
            **changes: New field values, by attribute name.

        Returns:
            A new record; its text lines are re-encoded from the fields.
        """
        return dataclasses.replace(self, _lines=None, **changes)

    def with_bstar(self, bstar: float) -> TLE:
        """Return a copy of this record with a new B* drag term."""
        return self.replace(bstar=bstar)

    # Text lines

    @property
    def line1(self) -> str:
        """First text line.

        Raises:
            TLEParameterRangeError: If a field does not fit its column.
        """
        if self._lines is not None:
            return self._lines[0]
        return format_line1(self)

    @property
    def line2(self) -> str:
        """Second text line.

        Raises:
            TLEParameterRangeError: If a field does not fit its column.
        """
        if self._lines is not None:
            return self._lines[1]
        return format_line2(self)

    @property
    def lines(self) -> tuple[str, str]:
        return self.line1, self.line2

    # Derived quantities

    @property
    def mean_motion_rev_per_day(self) -> float:
        return self.mean_motion / REVDAY_TO_RADSEC

    @property
    def period(self) -> float:
        """Anomalistic period from the Kozai mean motion [s]."""
        return TWO_PI / self.mean_motion

    @property
    def semi_major_axis(self) -> float:
        """Keplerian semi-major axis of the Kozai mean motion [m]."""
        return float(semimajor_axis(self.mean_motion, TLE_MU))

    @property
    def no_kozai(self) -> float:
        """Kozai mean motion in the SGP4 internal unit [rad/min]."""
        return self.mean_motion * 60.0

    @property
    def i_deg(self) -> float:
        return self.i * RAD2DEG

    @property
    def raan_deg(self) -> float:
        return self.raan * RAD2DEG

    @property
    def argp_deg(self) -> float:
        return self.argp * RAD2DEG

    @property
    def mean_anomaly_deg(self) -> float:
        return self.mean_anomaly * RAD2DEG

    def elements(self) -> Array:
        """Return ``(n, e, i, raan, argp, M)`` as an array, n in rad/s."""
        return jnp.array([self.mean_motion, self.e, self.i,
                          self.raan, self.argp, self.mean_anomaly])

    # Comparison

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TLE):
            return NotImplemented
        return (
            self.satellite_number == other.satellite_number
            and self.classification == other.classification
            and self.launch_year == other.launch_year
            and self.launch_number == other.launch_number
            and self.launch_piece == other.launch_piece
            and self.ephemeris_type == other.ephemeris_type
            and self.element_number == other.element_number
            and bool(self.epoch == other.epoch)
            and self.mean_motion == other.mean_motion
            and self.mean_motion_first_derivative == other.mean_motion_first_derivative
            and self.mean_motion_second_derivative == other.mean_motion_second_derivative
            and self.e == other.e
            and self.i == other.i
            and self.raan == other.raan
            and self.argp == other.argp
            and self.mean_anomaly == other.mean_anomaly
            and self.bstar == other.bstar
            and self.revolution_number == other.revolution_number
        )

    def __hash__(self) -> int:
        # Epochs compare within a tolerance, so they stay out of the hash
        return hash((self.satellite_number, self.element_number,
                     self.mean_motion, self.e, self.i))

    def __str__(self) -> str:
        return f"{self.line1}\n{self.line2}"
