"""
Finite-difference Jacobians of the TLE propagator.

Reference implementation used to validate the forward-mode derivatives of
:class:`~tlejax.sgp4.TLEPropagator`.  Each column is obtained from eight
shifted propagations combined with the 8-point central stencil

    (-3 (f4 - f-4) + 32 (f3 - f-3) - 168 (f2 - f-2) + 672 (f1 - f-1)) / (840 h)

All shifted evaluations reuse the branch selection of the nominal TLE, so
a shift never crosses a theory boundary (e.g. the 225-minute deep-space
threshold).
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from tlejax.epoch import Epoch
from tlejax.exceptions import check_status
from tlejax.sgp4._propagator import PARAMETER_INDEX, TLEPropagator, state_from_elements

# Stencil offsets and weights, in units of the step
STENCIL_OFFSETS = (-4.0, -3.0, -2.0, -1.0, 1.0, 2.0, 3.0, 4.0)
STENCIL_WEIGHTS = (3.0, -32.0, 168.0, -672.0, 672.0, -168.0, 32.0, -3.0)
STENCIL_DENOMINATOR = 840.0

# Default relative step on mean motion and absolute steps on the other elements
MEAN_MOTION_RELATIVE_STEP = 1.0e-6
ECCENTRICITY_STEP = 1.0e-6
ANGLE_STEP = 1.0e-6


def default_steps(propagator: TLEPropagator) -> Array:
    """Finite-difference steps for the elements and the selected parameters.

    The B* step is the scale of its parameter driver.

    Args:
        propagator: Nominal propagator.

    Returns:
        Array: Steps, shape ``(6 + N,)``.
    """
    x0 = propagator.elements
    steps = [
        MEAN_MOTION_RELATIVE_STEP * x0[0],
        ECCENTRICITY_STEP,
        ANGLE_STEP,
        ANGLE_STEP,
        ANGLE_STEP,
        ANGLE_STEP,
    ]
    steps += [driver.scale for driver in propagator.parameters.selected()]
    return jnp.asarray(steps, dtype=x0.dtype)


def central_difference(values: Array, h: ArrayLike) -> Array:
    """Combine eight shifted evaluations with the 8-point stencil.

    Args:
        values: Evaluations at ``STENCIL_OFFSETS * h``, shape ``(8, ...)``.
        h: Step.

    Returns:
        Array: Derivative estimate, shape ``values.shape[1:]``.
    """
    weights = jnp.asarray(STENCIL_WEIGHTS, dtype=values.dtype)
    return jnp.tensordot(weights, values, axes=1) / (STENCIL_DENOMINATOR * h)


def finite_difference_jacobian(
    propagator: TLEPropagator,
    target: Epoch | float,
    steps: ArrayLike | None = None,
) -> Array:
    """Jacobian of the TEME state with respect to the elements, by finite differences.

    Args:
        propagator: Nominal propagator.  Its representation is ignored.
        target: :class:`Epoch`, or seconds since the TLE epoch.
        steps: Step per column, shape ``(6 + N,)``.  Defaults to
            :func:`default_steps`.

    Returns:
        Array: ``dY(t)/d(n, e, i, raan, argp, M, P...)``, shape
            ``(6, 6 + N)`` where ``N`` is the number of selected parameters.

    Raises:
        PropagationError: If a shifted propagation fails.
    """
    x0 = propagator.elements
    dt = float(target - propagator.tle.epoch) if isinstance(target, Epoch) else float(target)
    t = jnp.asarray(dt / 60.0, dtype=x0.dtype)
    columns = list(range(6)) + [PARAMETER_INDEX[name]
                                for name in propagator.parameters.selected_names()]
    steps = default_steps(propagator) if steps is None else jnp.asarray(steps, dtype=x0.dtype)
    offsets = jnp.asarray(STENCIL_OFFSETS, dtype=x0.dtype)

    def _shifted(x):
        return state_from_elements(x, t, propagator.flags, propagator.gravity)

    jacobian = []
    for col, h in zip(columns, steps):
        xs = x0[None, :] + jnp.outer(offsets * h, jnp.eye(x0.shape[0], dtype=x0.dtype)[col])
        states, status = jax.vmap(_shifted)(xs)
        for s in status:
            check_status(int(s), dt)
        jacobian.append(central_difference(states, h))

    return jnp.stack(jacobian, axis=1)
