"""
TLE text-format decoding and encoding.

Provides pure-Python functions to validate the two fixed-width 69 character
lines of a Two-Line Element set, decode them into the keyword arguments of
:class:`~tlejax.sgp4.TLE`, and re-encode a record into its two lines.

Catalog numbers above 99999 use the alpha-5 scheme: the leading digit is
replaced by a letter (``A`` = 10 ... ``Z`` = 33, skipping ``I`` and ``O``),
so the largest encodable number is 339999.
"""

from __future__ import annotations

import math
import re
from typing import Any

from tlejax.constants import (
    DEG2RAD,
    NDDOT_TO_RADSEC3,
    NDOT_TO_RADSEC2,
    RAD2DEG,
    REVDAY_TO_RADSEC,
)
from tlejax.epoch import Epoch
from tlejax.exceptions import TLEChecksumError, TLEFormatError, TLEParameterRangeError

_ALPHA5_LETTERS = "ABCDEFGHJKLMNPQRSTUVWXYZ"
_MAX_SATELLITE_NUMBER = 339999

_LINE_1_PATTERN = re.compile(
    r"1 [ 0-9A-HJ-NP-Z][ 0-9]{4}[A-Z] [ 0-9]{5}[ A-Z]{3} [ 0-9]{5}[.][ 0-9]{8} "
    r"(?:(?:[ +-][.][ 0-9]{8})|(?: [ +-][.][ 0-9]{7})) "
    r"[ +-][ 0-9]{5}[+-][ 0-9] [ +-][ 0-9]{5}[+-][ 0-9] [ 0-9] [ 0-9]{4}[ 0-9]"
)

_LINE_2_PATTERN = re.compile(
    r"2 [ 0-9A-HJ-NP-Z][ 0-9]{4} [ 0-9]{3}[.][ 0-9]{4} [ 0-9]{3}[.][ 0-9]{4} [ 0-9]{7} "
    r"[ 0-9]{3}[.][ 0-9]{4} [ 0-9]{3}[.][ 0-9]{4} [ 0-9]{2}[.][ 0-9]{13}[ 0-9]"
)


def compute_checksum(line: str) -> int:
    """Compute the TLE checksum for a line.

    The checksum is the sum of all digit characters plus 1 for each
    minus sign, modulo 10, computed over the first 68 characters.

    Args:
        line: A TLE line string (at least 68 characters).

    Returns:
        The checksum digit (0-9).
    """
    return sum((int(c) if c.isdigit() else c == "-") for c in line[:68]) % 10


def _check_line_checksum(line: str, line_number: int) -> None:
    expected = compute_checksum(line)
    actual = line[68]
    if not actual.isdigit() or int(actual) != expected:
        raise TLEChecksumError(line_number, expected, actual)


def is_format_ok(line1: str, line2: str) -> bool:
    """Check whether two lines form a well-formed TLE.

    Args:
        line1: First TLE line.
        line2: Second TLE line.

    Returns:
        ``True`` if both lines are 69 characters long and match the TLE
        column layout, ``False`` otherwise.

    Raises:
        TLEChecksumError: If the layout is valid but a checksum digit is wrong.
    """
    if line1 is None or line2 is None or len(line1) != 69 or len(line2) != 69:
        return False

    if not (_LINE_1_PATTERN.fullmatch(line1) and _LINE_2_PATTERN.fullmatch(line2)):
        return False

    _check_line_checksum(line1, 1)
    _check_line_checksum(line2, 2)
    return True


# Field decoding


def parse_satellite_number(field: str) -> int:
    """Decode a 5-character catalog number field, including alpha-5.

    Args:
        field: Columns 3-7 of either line.

    Returns:
        The catalog number.

    Raises:
        TLEFormatError: If the field is neither numeric nor alpha-5.
    """
    field = field.strip()
    if not field:
        return 0
    head = field[0]
    if head.isalpha():
        if head not in _ALPHA5_LETTERS or not field[1:].isdigit():
            raise TLEFormatError(f"invalid alpha-5 satellite number: {field!r}")
        return (_ALPHA5_LETTERS.index(head) + 10) * 10000 + int(field[1:])
    return _parse_int(field)


def _parse_int(field: str) -> int:
    field = field.strip()
    if not field:
        return 0
    try:
        return int(field.replace(" ", "0"))
    except ValueError as err:
        raise TLEFormatError(f"invalid integer field in TLE: {field!r}") from err


def _parse_float(field: str) -> float:
    field = field.strip()
    if not field:
        return 0.0
    try:
        return float(field.replace(" ", "0"))
    except ValueError as err:
        raise TLEFormatError(f"invalid real field in TLE: {field!r}") from err


def _parse_exponent_field(field: str) -> float:
    """Decode a ``±ddddd±d`` field meaning ``±0.ddddd x 10^±d``."""
    return _parse_float(f"{field[0]}.{field[1:6]}e{field[6:8]}")


def _parse_year(field: str) -> int:
    year = 2000 + _parse_int(field)
    return year - 100 if year > 2056 else year


def parse_tle(line1: str, line2: str) -> dict[str, Any]:
    """Decode two TLE lines into the keyword arguments of a TLE record.

    Lines must be exactly 69 characters and carry valid checksums.  The
    column layout is not matched against the strict format patterns (use
    :func:`is_format_ok` for that), so that older records with unusual
    but decodable fields are accepted.

    Angles are converted to radians, mean motion to rad/s and its
    derivatives to rad/s^2 and rad/s^3.

    Args:
        line1: First TLE line (69 characters including checksum).
        line2: Second TLE line (69 characters including checksum).

    Returns:
        Keyword arguments accepted by :class:`~tlejax.sgp4.TLE`.

    Raises:
        TLEFormatError: If a line has the wrong length or number, a field
            cannot be decoded, or the satellite numbers differ.
        TLEChecksumError: If a checksum digit is wrong.
    """
    for number, line in ((1, line1), (2, line2)):
        if line is None or len(line) != 69:
            raise TLEFormatError(
                f"TLE line {number} must have 69 characters, got {0 if line is None else len(line)}"
            )
        if line[0] != str(number):
            raise TLEFormatError(f"TLE line {number} does not start with '{number}': {line}")
        _check_line_checksum(line, number)

    satellite_number = parse_satellite_number(line1[2:7])
    if satellite_number != parse_satellite_number(line2[2:7]):
        raise TLEFormatError(
            f"TLE lines do not refer to the same object:\n{line1}\n{line2}"
        )

    # 27/31250 == 86400/100000000: the day fraction is an exact count of 0.864 ms
    df = 27 * _parse_int(line1[24:32])
    seconds = df // 31250 + (df % 31250) / 31250.0
    try:
        epoch = Epoch.from_day_of_year(_parse_year(line1[18:20]), _parse_int(line1[20:23]),
                                       seconds)
    except ValueError as err:
        raise TLEFormatError(f"invalid TLE epoch {line1[18:32]!r}: {err}") from err

    return dict(
        satellite_number=satellite_number,
        classification=line1[7],
        launch_year=_parse_year(line1[9:11]),
        launch_number=_parse_int(line1[11:14]),
        launch_piece=line1[14:17].strip(),
        ephemeris_type=_parse_int(line1[62]),
        element_number=_parse_int(line1[64:68]),
        epoch=epoch,
        mean_motion=_parse_float(line2[52:63]) * REVDAY_TO_RADSEC,
        mean_motion_first_derivative=_parse_float(line1[33:43]) * NDOT_TO_RADSEC2,
        mean_motion_second_derivative=_parse_exponent_field(line1[44:52]) * NDDOT_TO_RADSEC3,
        e=_parse_float("." + line2[26:33].replace(" ", "0")),
        i=_parse_float(line2[8:16]) * DEG2RAD,
        raan=_parse_float(line2[17:25]) * DEG2RAD,
        argp=_parse_float(line2[34:42]) * DEG2RAD,
        mean_anomaly=_parse_float(line2[43:51]) * DEG2RAD,
        bstar=_parse_exponent_field(line1[53:61]),
        revolution_number=_parse_int(line2[63:68]),
    )


# Field encoding


def _pad(satellite_number: int, name: str, value: str, size: int, fill: str = " ",
         right: bool = True) -> str:
    """Pad a rendered field to its column width.

    Raises:
        TLEParameterRangeError: If the rendering is wider than the column.
    """
    if len(value) > size:
        raise TLEParameterRangeError(satellite_number, name, value)
    return value.rjust(size, fill) if right else value.ljust(size, fill)


def format_satellite_number(satellite_number: int, name: str = "satelliteNumber-1") -> str:
    """Encode a catalog number on 5 characters, using alpha-5 above 99999.

    Args:
        satellite_number: Catalog number in ``[0, 339999]``.
        name: Parameter name reported on failure.

    Returns:
        The 5-character field.

    Raises:
        TLEParameterRangeError: If the number is negative or above 339999.
    """
    if satellite_number < 0 or satellite_number > _MAX_SATELLITE_NUMBER:
        raise TLEParameterRangeError(satellite_number, name, str(satellite_number))
    if satellite_number > 99999:
        head, tail = divmod(satellite_number, 10000)
        return f"{_ALPHA5_LETTERS[head - 10]}{tail:04d}"
    return f"{satellite_number:05d}"


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _format_exponent_field(satellite_number: int, name: str, value: float) -> str:
    """Render ``value`` as ``±ddddd±d`` (mantissa 0.ddddd, no ``e`` marker)."""
    mantissa_size = 5
    abs_value = abs(value)
    exponent = -9 if abs_value < 1.0e-9 else math.ceil(math.log10(abs_value))
    mantissa = _round_half_up(abs_value * 10.0 ** (mantissa_size - exponent))
    if mantissa == 0:
        exponent = 0
    elif mantissa > 10**mantissa_size - 1:
        # 1.0e-4 gives exponent -4 and mantissa 100000
        exponent += 1
        mantissa = _round_half_up(abs_value * 10.0 ** (mantissa_size - exponent))
    s_mantissa = _pad(satellite_number, name, str(mantissa), mantissa_size, "0")
    rendered = (
        ("-" if value < 0 else " ")
        + s_mantissa
        + ("-" if exponent <= 0 else "+")
        + str(abs(exponent))
    )
    return _pad(satellite_number, name, rendered, 8)


def _format_decimal(value: float, digits: int, leading_zero: bool = True) -> str:
    text = f"{value:.{digits}f}"
    if not leading_zero:
        text = text.replace("0.", ".", 1) if text.lstrip("-").startswith("0.") else text
    return text


def format_line1(tle) -> str:
    """Encode the first line of a TLE record, checksum included.

    Args:
        tle: A :class:`~tlejax.sgp4.TLE` record.

    Returns:
        The 69-character line 1.

    Raises:
        TLEParameterRangeError: If a field does not fit its column.
    """
    satnum = tle.satellite_number

    if len(tle.classification) != 1:
        raise TLEParameterRangeError(satnum, "classification", tle.classification)
    if not 0 <= tle.ephemeris_type <= 9:
        raise TLEParameterRangeError(satnum, "ephemerisType", str(tle.ephemeris_type))

    parts = [
        "1 ",
        format_satellite_number(satnum, "satelliteNumber-1"),
        tle.classification,
        " ",
        _pad(satnum, "launchYear", str(tle.launch_year % 100), 2, "0"),
        _pad(satnum, "launchNumber", str(tle.launch_number), 3, "0"),
        _pad(satnum, "launchPiece", tle.launch_piece, 3, " ", right=False),
        " ",
    ]

    epoch = tle.epoch
    # 31250/27 == 100000000/86400
    fraction = round(31250 * epoch.seconds_in_day() / 27.0)
    if fraction == 100000000:
        # Rounded up to the next midnight
        epoch = epoch + 1.0
        fraction = 0
    parts.append(_pad(satnum, "year", str(epoch.year() % 100), 2, "0"))
    parts.append(_pad(satnum, "day", str(epoch.day_of_year()), 3, "0"))
    parts.append(".")
    parts.append(_pad(satnum, "fraction", str(fraction), 8, "0"))

    parts.append(" ")
    n1 = tle.mean_motion_first_derivative / NDOT_TO_RADSEC2
    parts.append(_pad(satnum, "meanMotionFirstDerivative",
                      _format_decimal(n1, 8, leading_zero=False), 10))

    parts.append(" ")
    n2 = tle.mean_motion_second_derivative / NDDOT_TO_RADSEC3
    parts.append(_format_exponent_field(satnum, "meanMotionSecondDerivative", n2))

    parts.append(" ")
    parts.append(_format_exponent_field(satnum, "B*", tle.bstar))

    parts.append(" ")
    parts.append(str(tle.ephemeris_type))

    parts.append(" ")
    parts.append(_pad(satnum, "elementNumber", str(tle.element_number), 4))

    line = "".join(parts)
    return line + str(compute_checksum(line))


def format_line2(tle) -> str:
    """Encode the second line of a TLE record, checksum included.

    Args:
        tle: A :class:`~tlejax.sgp4.TLE` record.

    Returns:
        The 69-character line 2.

    Raises:
        TLEParameterRangeError: If a field does not fit its column.
    """
    satnum = tle.satellite_number
    parts = [
        "2 ",
        format_satellite_number(satnum, "satelliteNumber-2"),
        " ",
        _pad(satnum, "inclination", _format_decimal(tle.i * RAD2DEG, 4), 8),
        " ",
        _pad(satnum, "raan", _format_decimal(tle.raan * RAD2DEG, 4), 8),
        " ",
        _pad(satnum, "eccentricity", str(round(tle.e * 1.0e7)), 7, "0"),
        " ",
        _pad(satnum, "pa", _format_decimal(tle.argp * RAD2DEG, 4), 8),
        " ",
        _pad(satnum, "meanAnomaly", _format_decimal(tle.mean_anomaly * RAD2DEG, 4), 8),
        " ",
        _pad(satnum, "meanMotion", _format_decimal(tle.mean_motion / REVDAY_TO_RADSEC, 8), 11),
        _pad(satnum, "revolutionNumberAtEpoch", str(tle.revolution_number), 5),
    ]
    line = "".join(parts)
    return line + str(compute_checksum(line))
