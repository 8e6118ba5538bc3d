"""Exception hierarchy for TLE parsing, propagation, derivatives and fitting.

All exceptions derive from :class:`TLEError`.  Each concrete class also
derives from the closest built-in exception so callers that only catch
``ValueError``/``RuntimeError``/``KeyError`` keep working.
"""

from __future__ import annotations


class TLEError(Exception):
    """Base class for every error raised by tlejax."""


class TLEFormatError(TLEError, ValueError):
    """A TLE line is malformed or a field cannot be decoded."""


class TLEChecksumError(TLEFormatError):
    """The mod-10 checksum of a TLE line does not match its last digit.

    Attributes:
        line_number: 1 or 2.
        expected: Checksum computed from the first 68 characters.
        actual: Checksum digit found in column 69.
    """

    def __init__(self, line_number: int, expected: int, actual: str) -> None:
        self.line_number = line_number
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"wrong checksum of TLE line {line_number}, expected {expected} but got {actual}"
        )


class TLEParameterRangeError(TLEError, ValueError):
    """A TLE field value does not fit its fixed-width text column.

    Attributes:
        satellite_number: Catalog number of the offending record.
        parameter: Name of the field (e.g. ``"B*"``, ``"eccentricity"``).
        value: Text rendering that did not fit.
    """

    def __init__(self, satellite_number: int, parameter: str, value: str) -> None:
        self.satellite_number = satellite_number
        self.parameter = parameter
        self.value = value
        super().__init__(
            f"invalid TLE parameter for object {satellite_number}: {parameter} = {value}"
        )


class TLEInitializationError(TLEError, ValueError):
    """The mean elements cannot be initialized by SGP4/SDP4."""


class PropagationError(TLEError, RuntimeError):
    """SGP4/SDP4 failed at the requested time.

    Attributes:
        status: SGP4 status code (1-7).
        dt: Time since TLE epoch in seconds.
    """

    def __init__(self, message: str, status: int = 0, dt: float | None = None) -> None:
        self.status = status
        self.dt = dt
        super().__init__(message)


class OrbitDecayedError(PropagationError):
    """The orbit radius or semi-major axis fell below one Earth radius."""


class ConvergenceError(TLEError, RuntimeError):
    """An iterative solver exhausted its iteration budget.

    Attributes:
        iterations: Number of iterations performed.
    """

    def __init__(self, message: str, iterations: int) -> None:
        self.iterations = iterations
        super().__init__(message)


class DimensionMismatchError(TLEError, ValueError):
    """A matrix has the wrong shape for the selected parameters.

    Attributes:
        expected: Expected shape.
        actual: Shape received.
    """

    def __init__(self, name: str, expected: tuple[int, ...], actual: tuple[int, ...]) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"dimension mismatch for {name}: expected {expected}, got {actual}")


class UnknownParameterError(TLEError, KeyError):
    """A parameter driver name is not supported.

    Attributes:
        name: Name that was requested.
        supported: Names that exist.
    """

    def __init__(self, name: str, supported: tuple[str, ...]) -> None:
        self.name = name
        self.supported = supported
        super().__init__(f"unsupported parameter name {name!r}, supported names: {', '.join(supported)}")

    def __str__(self) -> str:
        return self.args[0]


_STATUS_MAP = {
    1: (PropagationError, "mean eccentricity out of range [-0.001, 1)"),
    2: (PropagationError, "mean motion is not positive"),
    3: (PropagationError, "perturbed eccentricity out of range [0, 1]"),
    4: (PropagationError, "semi-latus rectum is negative"),
    6: (OrbitDecayedError, "orbit radius below one Earth radius, satellite has decayed"),
    7: (OrbitDecayedError, "semi-major axis below one Earth radius, satellite has decayed"),
}


def check_status(status: int, dt: float | None = None) -> None:
    """Raise the exception matching an SGP4 status code, if any.

    Args:
        status: Status returned by the propagation kernel (0 means success).
        dt: Time since TLE epoch in seconds, for the error message.

    Raises:
        PropagationError: For status codes 1-4.
        OrbitDecayedError: For status codes 6 and 7.
    """
    if status == 0:
        return
    err = _STATUS_MAP.get(status)
    where = "" if dt is None else f" at dt = {dt} s"
    if err:
        raise err[0](f"{err[1]}{where}", status=status, dt=dt)
    raise PropagationError(f"unknown SGP4 status {status}{where}", status=status, dt=dt)
