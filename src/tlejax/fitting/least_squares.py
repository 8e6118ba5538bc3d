"""Least-squares TLE fitting.

Fits the mean elements of a TLE, and optionally its B* term, to a series
of sampled TEME states with the Levenberg-Marquardt solver of
:func:`scipy.optimize.least_squares`.  Residuals and their Jacobian come
from a single vectorized propagation of the element vector to all sample
dates.

The initial guess is the fixed-point TLE of the first sample.  Near the
equator the deep-space periodic corrections make the node ill-defined and
the fixed-point iteration can oscillate without converging; the template
TLE is then used as the initial guess instead.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import jax.numpy as jnp
import numpy as np
from jax.typing import ArrayLike
from scipy.optimize import least_squares

from tlejax.config import get_dtype
from tlejax.epoch import Epoch
from tlejax.exceptions import ConvergenceError, check_status
from tlejax.fitting._types import TLEFitResult
from tlejax.fitting.config import LeastSquaresConfig
from tlejax.fitting.fixed_point import FixedPointTLEGenerator
from tlejax.sgp4 import TLE, classify, element_vector, propagate_samples
from tlejax.sgp4._constants import resolve_gravity
from tlejax.utils import normalize_angle

logger = logging.getLogger(__name__)


class LeastSquaresTLEGenerator:
    """Fit a TLE to sampled states with Levenberg-Marquardt.

    Examples:
        ```python
        from tlejax.fitting import LeastSquaresConfig, LeastSquaresTLEGenerator

        samples = [(state.epoch, state.state) for state in states]
        result = LeastSquaresTLEGenerator(
            LeastSquaresConfig(estimate_bstar=True)
        ).generate(samples, template)
        result.tle, result.rms
        ```

    Args:
        config: Solver settings. Defaults to :class:`LeastSquaresConfig`.
    """

    def __init__(self, config: LeastSquaresConfig | None = None) -> None:
        self.config = LeastSquaresConfig() if config is None else config

    def generate(self, samples: Sequence[tuple[Epoch, ArrayLike]], template: TLE) -> TLEFitResult:
        """Fit a TLE to ``samples``.

        The fitted TLE takes the epoch of the first sample, or the epoch of
        ``template`` when the fixed-point initial guess does not converge.

        Args:
            samples: ``(epoch, state)`` pairs, state ``[x, y, z, vx, vy, vz]``
                in TEME [m, m/s].
            template: Record providing the identification, derivative and
                (unless estimated) drag fields.

        Returns:
            TLEFitResult: Fitted TLE and solver statistics.

        Raises:
            ValueError: If there are fewer residuals than estimated elements.
            PropagationError: If a sample cannot be propagated.
        """
        config = self.config
        gravity = resolve_gravity(config.gravity)
        n_rows = 3 if config.position_only else 6
        n_unknowns = 7 if config.estimate_bstar else 6

        if len(samples) * n_rows < n_unknowns:
            raise ValueError(
                f"{len(samples)} samples give {len(samples) * n_rows} residuals "
                f"for {n_unknowns} unknowns"
            )

        epoch0, x0 = samples[0]
        try:
            guess = FixedPointTLEGenerator(config.fixed_point).generate_from_state(
                epoch0, x0, template
            )
        except ConvergenceError as err:
            logger.warning("Fixed-point initial guess failed for satellite %d (%s), "
                           "starting from the template", template.satellite_number, err)
            guess = template

        dtype = get_dtype()
        t = np.array([float(epoch - guess.epoch) / 60.0 for epoch, _ in samples])
        observed = np.stack([np.asarray(state, dtype=dtype) for _, state in samples])[:, :n_rows]

        x_nominal = np.asarray(element_vector(guess))
        flags = classify(jnp.asarray(x_nominal), float(guess.epoch.days_since_1950()), gravity)
        columns = list(range(n_unknowns))

        def _elements(p):
            x = x_nominal.copy()
            x[:n_unknowns] = p
            return jnp.asarray(x, dtype=dtype)

        def _residuals(p):
            states, status, _ = propagate_samples(_elements(p), t, flags, gravity)
            for k in np.flatnonzero(status):
                check_status(int(status[k]), t[k] * 60.0)
            return (states[:, :n_rows] - observed).ravel()

        def _jacobian(p):
            _, _, jacs = propagate_samples(_elements(p), t, flags, gravity, with_jacobian=True)
            return jacs[:, :n_rows, :][:, :, columns].reshape(-1, n_unknowns)

        solution = least_squares(
            _residuals,
            x_nominal[:n_unknowns],
            jac=_jacobian,
            method="lm",
            ftol=config.ftol,
            xtol=config.xtol,
            gtol=config.gtol,
            max_nfev=config.max_evaluations,
            x_scale="jac",
        )

        p = solution.x
        i, raan, argp = float(p[2]), float(p[3]), float(p[4])
        if i < 0.0:
            # Same orbit, described from the opposite node
            i, raan, argp = -i, raan + np.pi, argp - np.pi
        fitted = guess.replace(
            mean_motion=float(p[0]),
            e=float(p[1]),
            i=i,
            raan=float(normalize_angle(raan, np.pi)),
            argp=float(normalize_angle(argp, np.pi)),
            mean_anomaly=float(normalize_angle(p[5], np.pi)),
            bstar=float(p[6]) if config.estimate_bstar else guess.bstar,
        )
        rms = float(np.sqrt(np.sum(solution.fun**2) / solution.fun.size))

        if solution.success:
            logger.info("Least-squares TLE fit of satellite %d: rms %.6e after %d evaluations",
                        template.satellite_number, rms, solution.nfev)
        else:
            logger.warning("Least-squares TLE fit of satellite %d did not converge: %s",
                           template.satellite_number, solution.message)

        return TLEFitResult(
            tle=fitted,
            rms=rms,
            evaluations=int(solution.nfev),
            jacobian_evaluations=int(solution.njev or 0),
            success=bool(solution.success),
            message=str(solution.message),
        )
