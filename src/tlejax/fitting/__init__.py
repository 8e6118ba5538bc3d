"""TLE fitting.

Generates TLE mean elements from osculating TEME states:

- **Fixed point**: :class:`FixedPointTLEGenerator` corrects equinoctial
  mean elements until the TLE reproduces one state at its epoch.
- **Least squares**: :class:`LeastSquaresTLEGenerator` fits the elements,
  and optionally B*, to a series of sampled states with
  Levenberg-Marquardt and analytical Jacobians.
"""

from ._types import TLEFitResult
from .config import FixedPointConfig, LeastSquaresConfig
from .fixed_point import FixedPointTLEGenerator, new_tle
from .least_squares import LeastSquaresTLEGenerator

__all__ = [
    "FixedPointConfig",
    "LeastSquaresConfig",
    "FixedPointTLEGenerator",
    "LeastSquaresTLEGenerator",
    "TLEFitResult",
    "new_tle",
]
