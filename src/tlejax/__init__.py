"""
tlejax propagates Two-Line Element sets with SGP4/SDP4 in JAX, computes their
state transition matrices, and fits TLEs to osculating states.
"""

from .constants import (
    DEG2RAD,
    RAD2DEG,
    TWO_PI,
    JD_MJD_OFFSET,
    SECONDS_PER_DAY,
    TLE_MU,
    DEFAULT_MASS,
)

from .config import set_dtype, get_dtype
from .epoch import Epoch

from .exceptions import (
    TLEError,
    TLEFormatError,
    TLEChecksumError,
    TLEParameterRangeError,
    TLEInitializationError,
    PropagationError,
    OrbitDecayedError,
    ConvergenceError,
    DimensionMismatchError,
    UnknownParameterError,
)

from .coordinates import (
    state_koe_to_cartesian,
    state_cartesian_to_koe,
    state_cartesian_to_equinoctial,
    state_equinoctial_to_cartesian,
)

from .orbits import (
    orbital_period,
    semimajor_axis,
    mean_motion,
    anomaly_eccentric_to_mean,
    anomaly_mean_to_eccentric,
    anomaly_true_to_eccentric,
    anomaly_eccentric_to_true,
    anomaly_true_to_mean,
    anomaly_mean_to_true,
)

from .sgp4 import (
    TLE,
    EarthGravity,
    WGS72OLD,
    WGS72,
    WGS84,
    Representation,
    ParameterSet,
    PropagatedState,
    TLEPropagator,
    finite_difference_jacobian,
)

from .fitting import (
    FixedPointConfig,
    LeastSquaresConfig,
    FixedPointTLEGenerator,
    LeastSquaresTLEGenerator,
    TLEFitResult,
)

__all__ = [
    # Constants
    "DEG2RAD",
    "RAD2DEG",
    "TWO_PI",
    "JD_MJD_OFFSET",
    "SECONDS_PER_DAY",
    "TLE_MU",
    "DEFAULT_MASS",
    # Config
    "set_dtype",
    "get_dtype",
    # Epoch
    "Epoch",
    # Exceptions
    "TLEError",
    "TLEFormatError",
    "TLEChecksumError",
    "TLEParameterRangeError",
    "TLEInitializationError",
    "PropagationError",
    "OrbitDecayedError",
    "ConvergenceError",
    "DimensionMismatchError",
    "UnknownParameterError",
    # Coordinates
    "state_koe_to_cartesian",
    "state_cartesian_to_koe",
    "state_cartesian_to_equinoctial",
    "state_equinoctial_to_cartesian",
    # Orbits
    "orbital_period",
    "semimajor_axis",
    "mean_motion",
    "anomaly_eccentric_to_mean",
    "anomaly_mean_to_eccentric",
    "anomaly_true_to_eccentric",
    "anomaly_eccentric_to_true",
    "anomaly_true_to_mean",
    "anomaly_mean_to_true",
    # SGP4 / SDP4
    "TLE",
    "EarthGravity",
    "WGS72OLD",
    "WGS72",
    "WGS84",
    "Representation",
    "ParameterSet",
    "PropagatedState",
    "TLEPropagator",
    "finite_difference_jacobian",
    # Fitting
    "FixedPointConfig",
    "LeastSquaresConfig",
    "FixedPointTLEGenerator",
    "LeastSquaresTLEGenerator",
    "TLEFitResult",
]
