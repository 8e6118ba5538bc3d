"""
Scalar representations for the SGP4/SDP4 kernels.

The perturbation theory is written once against ``jax.numpy``.  Whether a
run also yields partial derivatives is selected by evaluating the same
kernel function either directly (plain real values) or under
``jax.jacfwd`` (forward-mode dual numbers carrying one tangent per
independent variable).

Branches that depend on the initial elements are resolved before tracing,
from real magnitudes obtained with :func:`real_value`, so the traced
kernels never compare derivative-carrying values.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from typing import Any

import jax
from jax import Array
from jax.typing import ArrayLike


class Representation(enum.Enum):
    """Scalar representation used by a propagator.

    Attributes:
        REAL: Plain floating-point values; no derivatives are produced.
        DERIVATIVE: Forward-mode automatic differentiation with respect to
            the element vector.
    """

    REAL = "real"
    DERIVATIVE = "derivative"

    @classmethod
    def from_value(cls, value: Representation | str) -> Representation:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as err:
            names = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown representation {value!r}, expected one of: {names}") from err


def real_value(x: ArrayLike) -> float:
    """Return the real magnitude of a concrete scalar as a Python float.

    Tangents are discarded.  Must be called on concrete values, outside
    of any ``jax.jit`` or ``jax.jacfwd`` trace.

    Args:
        x: Scalar value.

    Returns:
        float: The primal value.
    """
    return float(jax.lax.stop_gradient(x))


def evaluate(
    fn: Callable[[Array], Any],
    x: Array,
    representation: Representation,
    has_aux: bool = False,
) -> tuple[Any, Array | None]:
    """Evaluate ``fn`` at ``x`` with the requested representation.

    With :attr:`Representation.DERIVATIVE` the function is run once under
    ``jax.jacfwd``, which returns its value together with the Jacobian
    with respect to ``x``.

    Args:
        fn: Function of a 1-D array.  If ``has_aux`` is true it must
            return ``(y, aux)`` and only ``y`` is differentiated.
        x: Point of evaluation, shape ``(n,)``.
        representation: Scalar representation.
        has_aux: Whether ``fn`` returns auxiliary data.

    Returns:
        tuple: ``(value, jacobian)``. ``value`` is the output of ``fn``
            and ``jacobian`` has shape ``y.shape + (n,)``, or is ``None``
            for :attr:`Representation.REAL`.
    """
    if representation is Representation.REAL:
        return fn(x), None

    def _with_value(z):
        out = fn(z)
        y = out[0] if has_aux else out
        return y, out

    jac, value = jax.jacfwd(_with_value, has_aux=True)(x)
    return value, jac
