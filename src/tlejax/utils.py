"""Shared angle helpers.

The ``use_degrees`` helpers provide JAX-traceable degree/radian conversion
via ``jnp.where``.
"""

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike


def to_radians(angle: ArrayLike, use_degrees: bool) -> Array:
    """Convert angle to radians if ``use_degrees`` is True.

    Args:
        angle (ArrayLike): Angle value.
        use_degrees (bool): If ``True``, treat ``angle`` as degrees and convert.

    Returns:
        Angle in radians.
    """
    return jnp.where(use_degrees, jnp.deg2rad(angle), angle)


def from_radians(angle: ArrayLike, use_degrees: bool) -> Array:
    """Convert angle from radians to degrees if ``use_degrees`` is True.

    Args:
        angle (ArrayLike): Angle in radians.
        use_degrees (bool): If ``True``, convert to degrees.

    Returns:
        Angle in radians or degrees.
    """
    return jnp.where(use_degrees, jnp.rad2deg(angle), angle)


def normalize_angle(angle: ArrayLike, center: ArrayLike = 0.0) -> Array:
    """Wrap an angle into ``[center - pi, center + pi)``.

    With ``center = pi`` the result lies in ``[0, 2 pi)``.

    Args:
        angle (ArrayLike): Angle in radians.
        center (ArrayLike): Center of the output interval in radians.

    Returns:
        Wrapped angle in radians.
    """
    two_pi = 2.0 * jnp.pi
    return angle - two_pi * jnp.floor((angle + jnp.pi - center) / two_pi)
