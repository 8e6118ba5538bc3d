"""Keplerian orbital mechanics functions.

This sub-module provides functions for:

- **Mean motion, semi-major axis and period** with an explicit
  gravitational parameter (TLE value by default).
- **Anomaly conversions**: converting between mean, eccentric, and true
  anomalies, including a JAX-traceable Kepler equation solver.
"""

from .keplerian import (
    anomaly_eccentric_to_mean,
    anomaly_eccentric_to_true,
    anomaly_mean_to_eccentric,
    anomaly_mean_to_true,
    anomaly_true_to_eccentric,
    anomaly_true_to_mean,
    mean_motion,
    orbital_period,
    semimajor_axis,
)

__all__ = [
    "orbital_period",
    "mean_motion",
    "semimajor_axis",
    "anomaly_eccentric_to_mean",
    "anomaly_mean_to_eccentric",
    "anomaly_true_to_eccentric",
    "anomaly_eccentric_to_true",
    "anomaly_true_to_mean",
    "anomaly_mean_to_true",
]
