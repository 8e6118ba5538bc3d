"""
SGP4/SDP4 propagation of Two-Line Element sets, with derivatives.

This module provides the TLE record and its text format, the SGP4
(near-Earth) and SDP4 (deep-space) theories written once in ``jax.numpy``,
and a propagator that evaluates them either with plain values or under
forward-mode differentiation to produce state transition matrices and
parameter Jacobians.  A finite-difference oracle validates the
derivatives.
"""

from tlejax.sgp4._constants import GRAVITY_MODELS, WGS72, WGS72OLD, WGS84, EarthGravity
from tlejax.sgp4._initializer import BranchFlags, Resonance, classify, initialize
from tlejax.sgp4._jacobians import central_difference, default_steps, finite_difference_jacobian
from tlejax.sgp4._parameters import BSTAR, BSTAR_SCALE, ParameterDriver, ParameterSet
from tlejax.sgp4._propagator import (
    PropagatedState,
    TLEPropagator,
    element_vector,
    propagate_samples,
    state_from_elements,
)
from tlejax.sgp4._scalar import Representation, evaluate, real_value
from tlejax.sgp4._tle import compute_checksum, is_format_ok, parse_tle
from tlejax.sgp4._types import DEFAULT, SDP4, SDP8, SGP, SGP4, SGP8, TLE

__all__ = [
    # Types
    "TLE",
    "EarthGravity",
    "BranchFlags",
    "Resonance",
    "Representation",
    "ParameterDriver",
    "ParameterSet",
    "PropagatedState",
    # Constants
    "WGS72OLD",
    "WGS72",
    "WGS84",
    "GRAVITY_MODELS",
    "BSTAR",
    "BSTAR_SCALE",
    "DEFAULT",
    "SGP",
    "SGP4",
    "SDP4",
    "SGP8",
    "SDP8",
    # TLE text format
    "parse_tle",
    "compute_checksum",
    "is_format_ok",
    # Propagation
    "TLEPropagator",
    "classify",
    "initialize",
    "element_vector",
    "state_from_elements",
    "propagate_samples",
    # Derivatives
    "evaluate",
    "real_value",
    "finite_difference_jacobian",
    "default_steps",
    "central_difference",
]
