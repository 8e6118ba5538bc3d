"""
Earth gravity constants for the SGP4/SDP4 propagator.

Provides three standard gravity models: WGS72OLD, WGS72 (standard), and WGS84.
Values match the reference ``sgp4`` library exactly.  TLE mean elements are
generated against WGS72, which is therefore the default everywhere.
"""

from __future__ import annotations

from math import sqrt
from typing import NamedTuple


class EarthGravity(NamedTuple):
    """Earth gravity model constants for SGP4 propagation.

    Attributes:
        name: Model name (``"wgs72"``, ``"wgs72old"`` or ``"wgs84"``).
        mu: Gravitational parameter [km^3/s^2].
        radiusearthkm: Earth equatorial radius [km].
        xke: sqrt(GM) in Earth radii^1.5 per minute.
        tumin: Minutes per SGP4 time unit (1/xke).
        j2: Second zonal harmonic.
        j3: Third zonal harmonic.
        j4: Fourth zonal harmonic.
        j3oj2: Ratio j3/j2.
    """

    name: str
    mu: float
    radiusearthkm: float
    xke: float
    tumin: float
    j2: float
    j3: float
    j4: float
    j3oj2: float

    @property
    def vkmpersec(self) -> float:
        """Velocity unit of the theory, Earth radii per minute in km/s."""
        return self.radiusearthkm * self.xke / 60.0


def _gravity_model(
    name: str,
    mu: float,
    radius: float,
    j2: float,
    j3: float,
    j4: float,
    xke: float | None = None,
) -> EarthGravity:
    if xke is None:
        xke = 60.0 / sqrt(radius**3 / mu)
    return EarthGravity(
        name=name,
        mu=mu,
        radiusearthkm=radius,
        xke=xke,
        tumin=1.0 / xke,
        j2=j2,
        j3=j3,
        j4=j4,
        j3oj2=j3 / j2,
    )


WGS72OLD = _gravity_model(
    "wgs72old", 398600.79964, 6378.135, 0.001082616, -0.00000253881, -0.00000165597,
    xke=0.0743669161,
)
"""WGS 72 Old gravity model (legacy)."""

WGS72 = _gravity_model(
    "wgs72", 398600.8, 6378.135, 0.001082616, -0.00000253881, -0.00000165597,
)
"""WGS 72 gravity model (standard for SGP4)."""

WGS84 = _gravity_model(
    "wgs84", 398600.5, 6378.137, 0.00108262998905, -0.00000253215306, -0.00000161098761,
)
"""WGS 84 gravity model."""

GRAVITY_MODELS = {
    "wgs72old": WGS72OLD,
    "wgs72": WGS72,
    "wgs84": WGS84,
}
"""Mapping of gravity model names to ``EarthGravity`` instances."""


def resolve_gravity(gravity: str | EarthGravity) -> EarthGravity:
    """Return an :class:`EarthGravity` from a model name or instance.

    Args:
        gravity: ``"wgs72"``, ``"wgs72old"``, ``"wgs84"`` (case-insensitive)
            or an :class:`EarthGravity` instance.

    Returns:
        The gravity model.

    Raises:
        ValueError: If the name is unknown.
    """
    if isinstance(gravity, EarthGravity):
        return gravity
    try:
        return GRAVITY_MODELS[gravity.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown gravity model {gravity!r}. Must be one of: {', '.join(GRAVITY_MODELS)}"
        ) from None
