"""Result types of the TLE fitting engine."""

from __future__ import annotations

from typing import NamedTuple

from tlejax.sgp4._types import TLE


class TLEFitResult(NamedTuple):
    """Outcome of a least-squares TLE fit.

    Attributes:
        tle: Fitted element set.
        rms: Root-mean-square residual ``sqrt(sum(r^2) / m)`` over the ``m``
            residual components [m or m/s].
        evaluations: Number of residual evaluations.
        jacobian_evaluations: Number of Jacobian evaluations.
        success: Whether the solver met one of its convergence criteria.
        message: Termination message of the solver.
    """

    tle: TLE
    rms: float
    evaluations: int
    jacobian_evaluations: int
    success: bool
    message: str
