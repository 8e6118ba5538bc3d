"""Fixed-point TLE generation.

Finds the mean elements whose SGP4/SDP4 state at epoch reproduces a given
osculating TEME state.  The correction runs on equinoctial elements, which
stay regular for the circular and equatorial orbits common among TLEs:

1. propagate the current TLE to its own epoch,
2. difference the recovered equinoctial elements with the target ones,
3. add ``scale`` times the difference to the working elements and rebuild
   the TLE, until every difference is below its threshold.

A smaller ``scale`` damps oscillating iterations.  Deep-space orbits at or
near zero inclination are a known limit: the lunar-solar periodic
corrections move the node by large amounts for tiny changes of the
inclination vector, the iteration settles into a two-cycle and
:class:`~tlejax.exceptions.ConvergenceError` is raised whatever the scale.
"""

from __future__ import annotations

import logging
import math

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from tlejax.constants import TLE_MU, TWO_PI
from tlejax.coordinates import state_cartesian_to_equinoctial, state_equinoctial_to_koe
from tlejax.epoch import Epoch
from tlejax.exceptions import ConvergenceError
from tlejax.fitting.config import FixedPointConfig
from tlejax.orbits import mean_motion
from tlejax.sgp4 import TLE, PropagatedState, TLEPropagator
from tlejax.utils import normalize_angle

logger = logging.getLogger(__name__)


def new_tle(x_eq: ArrayLike, epoch: Epoch, template: TLE, bstar: float | None = None) -> TLE:
    """Build a TLE from equinoctial mean elements.

    The identification fields, mean motion derivatives and element number
    come from ``template``.  The revolution number is advanced by the
    number of orbits between the template epoch and ``epoch``.

    Args:
        x_eq: Mean equinoctial elements ``[a, ex, ey, hx, hy, lv]``.
        epoch: Epoch of the new TLE.
        template: Record providing the non-orbital fields.
        bstar: B* of the new TLE. Defaults to the template's.

    Returns:
        TLE: The new record.
    """
    a, e, i, raan, argp, M = (float(v) for v in state_equinoctial_to_koe(x_eq))
    n = float(mean_motion(a, TLE_MU))
    raan = float(normalize_angle(raan, math.pi))
    argp = float(normalize_angle(argp, math.pi))
    M = float(normalize_angle(M, math.pi))

    dt = float(epoch - template.epoch)
    revolution_number = template.revolution_number + int(math.floor((M + dt * n) / TWO_PI))

    return template.replace(
        epoch=epoch,
        mean_motion=n,
        e=e,
        i=i,
        raan=raan,
        argp=argp,
        mean_anomaly=M,
        bstar=template.bstar if bstar is None else bstar,
        revolution_number=revolution_number,
    )


def _thresholds(x_eq: Array, epsilon: float) -> Array:
    a, ex, ey, hx, hy = (x_eq[k] for k in range(5))
    thr_a = epsilon * (1.0 + a)
    thr_e = epsilon * (1.0 + jnp.hypot(ex, ey))
    thr_h = epsilon * (1.0 + jnp.hypot(hx, hy))
    thr_v = epsilon * math.pi
    return jnp.array([thr_a, thr_e, thr_e, thr_h, thr_h, thr_v])


class FixedPointTLEGenerator:
    """Generate a TLE from an osculating state by fixed-point iteration.

    Examples:
        ```python
        from tlejax.fitting import FixedPointConfig, FixedPointTLEGenerator
        from tlejax.sgp4 import TLEPropagator

        state = TLEPropagator(tle).propagate(3600.0)
        fitted = FixedPointTLEGenerator(FixedPointConfig(scale=0.5)).generate(state, tle)
        ```

    Args:
        config: Iteration settings. Defaults to :class:`FixedPointConfig`.
    """

    def __init__(self, config: FixedPointConfig | None = None) -> None:
        self.config = FixedPointConfig() if config is None else config

    def generate(self, state: PropagatedState, template: TLE) -> TLE:
        """Generate the TLE whose state at epoch matches ``state``.

        Args:
            state: Target TEME state; its epoch becomes the TLE epoch.
            template: Record providing identification, drag and derivative
                fields.

        Returns:
            TLE: The fitted record.

        Raises:
            ConvergenceError: If the iteration budget is exhausted.
        """
        return self.generate_from_state(state.epoch, state.state, template)

    def generate_from_state(self, epoch: Epoch, x_cart: ArrayLike, template: TLE) -> TLE:
        """Generate a TLE from a bare TEME state vector.

        Args:
            epoch: Date of the state, used as the TLE epoch.
            x_cart: TEME state ``[x, y, z, vx, vy, vz]`` [m, m/s].
            template: Record providing the non-orbital fields.

        Returns:
            TLE: The fitted record.

        Raises:
            ConvergenceError: If the iteration budget is exhausted, which
                happens for near-equatorial deep-space states (see the module
                notes).
        """
        config = self.config
        target = state_cartesian_to_equinoctial(x_cart, TLE_MU)
        thresholds = _thresholds(target, config.epsilon)

        working = target
        current = new_tle(working, epoch, template)

        for k in range(config.max_iterations):
            recovered = TLEPropagator(current, gravity=config.gravity).propagate(0.0)
            x_eq = recovered.equinoctial()

            deltas = target - x_eq
            deltas = deltas.at[5].set(normalize_angle(deltas[5], 0.0))

            logger.debug("Fixed-point iteration %d: |da| = %.3e m, |dlv| = %.3e rad",
                         k, abs(float(deltas[0])), abs(float(deltas[5])))

            if bool(jnp.all(jnp.abs(deltas) < thresholds)):
                logger.info("Fixed-point TLE fit converged in %d iterations for satellite %d",
                            k, template.satellite_number)
                return current

            working = working + config.scale * deltas
            current = new_tle(working, epoch, template)

        raise ConvergenceError(
            f"unable to compute TLE after {config.max_iterations} iterations",
            iterations=config.max_iterations,
        )
