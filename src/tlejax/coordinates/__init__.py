"""Coordinate transformations.

This sub-module provides functions for converting between the orbital
state representations used by the TLE fitting engine:

- **Keplerian**: orbital elements ``[a, e, i, Ω, ω, M]`` ↔ Cartesian
- **Equinoctial**: orbital elements ``[a, ex, ey, hx, hy, lv]`` ↔
  Cartesian and Keplerian, plus longitude conversions
"""

from .equinoctial import (
    longitude_eccentric_to_mean,
    longitude_eccentric_to_true,
    longitude_mean_to_eccentric,
    longitude_mean_to_true,
    longitude_true_to_eccentric,
    longitude_true_to_mean,
    state_cartesian_to_equinoctial,
    state_equinoctial_to_cartesian,
    state_equinoctial_to_koe,
    state_koe_to_equinoctial,
)
from .keplerian import (
    state_cartesian_to_koe,
    state_koe_to_cartesian,
)

__all__ = [
    "state_koe_to_cartesian",
    "state_cartesian_to_koe",
    "state_cartesian_to_equinoctial",
    "state_equinoctial_to_cartesian",
    "state_equinoctial_to_koe",
    "state_koe_to_equinoctial",
    "longitude_eccentric_to_mean",
    "longitude_eccentric_to_true",
    "longitude_mean_to_eccentric",
    "longitude_mean_to_true",
    "longitude_true_to_eccentric",
    "longitude_true_to_mean",
]
