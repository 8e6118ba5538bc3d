import jax
import jax.numpy as jnp
import numpy as np
import pytest

from tlejax.constants import REVDAY_TO_RADSEC, TLE_MU
from tlejax.orbits import (
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
from tlejax.utils import normalize_angle

_GPS_SMA = 26559.0e3


class TestMeanMotion:
    def test_gps_period_is_half_a_sidereal_day(self):
        assert float(orbital_period(_GPS_SMA)) == pytest.approx(43077.0, abs=20.0)

    def test_mean_motion_period_consistency(self):
        n = mean_motion(7000e3)
        assert float(orbital_period(7000e3)) == pytest.approx(2.0 * np.pi / float(n), rel=1e-12)

    def test_semimajor_axis_inverse(self):
        n = 15.5 * REVDAY_TO_RADSEC
        assert float(mean_motion(semimajor_axis(n))) == pytest.approx(n, rel=1e-12)

    def test_explicit_mu(self):
        mu = 3.986004418e14
        assert float(mean_motion(7000e3, mu)) == pytest.approx(np.sqrt(mu / 7000e3**3), rel=1e-14)
        assert float(mean_motion(7000e3, mu)) != float(mean_motion(7000e3, TLE_MU))

    def test_vectorized(self):
        a = jnp.array([7000e3, 8000e3, _GPS_SMA])
        assert mean_motion(a).shape == (3,)


class TestAnomalies:
    def test_circular_orbit_all_equal(self):
        M = 1.234
        assert float(anomaly_mean_to_eccentric(M, 0.0)) == pytest.approx(M, abs=1e-14)
        assert float(anomaly_mean_to_true(M, 0.0)) == pytest.approx(M, abs=1e-14)

    def test_kepler_equation_residual(self):
        for e in (0.001, 0.1, 0.5, 0.74, 0.9):
            M = 2.5
            E = float(anomaly_mean_to_eccentric(M, e))
            assert E - e * np.sin(E) == pytest.approx(M, abs=1e-12)

    def test_kepler_same_revolution(self):
        """The eccentric anomaly stays in the revolution of the mean anomaly."""
        M = 4.0 * np.pi + 0.3
        E = float(anomaly_mean_to_eccentric(M, 0.1))
        assert 4.0 * np.pi <= E < 6.0 * np.pi

    def test_eccentric_to_mean_degrees(self):
        M = anomaly_eccentric_to_mean(90.0, 0.1, use_degrees=True)
        assert float(M) == pytest.approx(90.0 - np.rad2deg(0.1), abs=1e-10)

    def test_true_eccentric_roundtrip(self):
        e = 0.3
        for nu in (0.1, 1.5, 3.0, -2.0):
            E = anomaly_true_to_eccentric(nu, e)
            assert float(anomaly_eccentric_to_true(E, e)) == pytest.approx(nu, abs=1e-12)

    def test_true_mean_roundtrip(self):
        e = 0.6
        M = anomaly_true_to_mean(2.0, e)
        assert float(anomaly_mean_to_true(M, e)) == pytest.approx(2.0, abs=1e-10)

    def test_kepler_is_differentiable(self):
        e = 0.2
        M = 1.0
        dE_dM = jax.grad(anomaly_mean_to_eccentric)(M, e)
        E = float(anomaly_mean_to_eccentric(M, e))
        assert float(dE_dM) == pytest.approx(1.0 / (1.0 - e * np.cos(E)), rel=1e-10)


class TestNormalizeAngle:
    def test_center_zero(self):
        assert float(normalize_angle(3.0 * np.pi / 2.0)) == pytest.approx(-np.pi / 2.0)

    def test_center_pi(self):
        assert float(normalize_angle(-0.5, np.pi)) == pytest.approx(2.0 * np.pi - 0.5)

    def test_lower_bound_inclusive(self):
        assert float(normalize_angle(-np.pi)) == pytest.approx(-np.pi)
        assert float(normalize_angle(0.0, np.pi)) == 0.0
