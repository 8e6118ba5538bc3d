"""Configuration dataclasses for TLE fitting.

Provides :class:`FixedPointConfig` for the fixed-point mean-element
correction and :class:`LeastSquaresConfig` for the Levenberg-Marquardt
fit over a series of sampled states.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tlejax.sgp4._constants import EarthGravity


@dataclass(frozen=True)
class FixedPointConfig:
    """Configuration of the fixed-point TLE generation.

    Near-circular or near-equatorial orbits may need a ``scale`` below 1
    (0.5 is a common choice) to converge.

    Args:
        epsilon: Relative convergence threshold on the equinoctial elements.
        max_iterations: Iteration budget.
        scale: Damping factor applied to each correction.
        gravity: Gravity model name or :class:`EarthGravity` instance.

    Examples:
        ```python
        from tlejax.fitting import FixedPointConfig
        config = FixedPointConfig(scale=0.5)
        ```
    """

    epsilon: float = 1.0e-10
    max_iterations: int = 100
    scale: float = 1.0
    gravity: str | EarthGravity = "wgs72"

    def __post_init__(self) -> None:
        if self.epsilon <= 0.0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if self.scale <= 0.0:
            raise ValueError(f"scale must be positive, got {self.scale}")


@dataclass(frozen=True)
class LeastSquaresConfig:
    """Configuration of the Levenberg-Marquardt TLE fit.

    Args:
        max_evaluations: Maximum number of residual evaluations.
        ftol: Tolerance on the relative change of the cost.
        xtol: Tolerance on the relative change of the elements.
        gtol: Tolerance on the gradient norm.
        position_only: Fit positions only, ignoring sampled velocities.
        estimate_bstar: Also estimate the B* drag term.
        gravity: Gravity model name or :class:`EarthGravity` instance.
        fixed_point: Configuration of the fixed-point initial guess.
    """

    max_evaluations: int = 1000
    ftol: float = 1.0e-10
    xtol: float = 1.0e-10
    gtol: float = 1.0e-10
    position_only: bool = False
    estimate_bstar: bool = False
    gravity: str | EarthGravity = "wgs72"
    fixed_point: FixedPointConfig = field(default_factory=FixedPointConfig)

    def __post_init__(self) -> None:
        if self.max_evaluations < 1:
            raise ValueError(f"max_evaluations must be at least 1, got {self.max_evaluations}")
        for name in ("ftol", "xtol", "gtol"):
            value = getattr(self, name)
            if value <= 0.0:
                raise ValueError(f"{name} must be positive, got {value}")
