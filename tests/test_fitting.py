"""Tests for fixed-point and least-squares TLE generation."""

import logging
import math

import numpy as np
import pytest

from tlejax.coordinates import state_koe_to_equinoctial
from tlejax.exceptions import ConvergenceError
from tlejax.fitting import (
    FixedPointConfig,
    FixedPointTLEGenerator,
    LeastSquaresConfig,
    LeastSquaresTLEGenerator,
    new_tle,
)
from tlejax.orbits import semimajor_axis
from tlejax.sgp4 import TLE, TLEPropagator

ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"

SPOT_LINE1 = "1 27421U 02021A   02124.48976499 -.00021470  00000-0 -89879-2 0    20"
SPOT_LINE2 = "2 27421  98.7490 199.5121 0001333 133.9522 226.1918 14.26113993    62"

GPS_LINE1 = "1 37753U 11036A   12090.13205652 -.00000006  00000-0  00000+0 0  2272"
GPS_LINE2 = "2 37753  55.0032 176.5796 0004733  13.2285 346.8266  2.00565440  5153"

# ITALSAT 2, geosynchronous resonance
ITALSAT_LINE1 = "1 24208U 96044A   06177.04061740 -.00000094  00000-0  10000-3 0  1600"
ITALSAT_LINE2 = "2 24208   3.8536  80.0121 0026640 311.0977  48.3000  1.00778054 36119"

# Geostationary with exactly zero inclination
EQUATORIAL_LINE1 = "1 26451U 00043A   10130.13784012 -.00000276  00000-0  10000-3 0  3866"
EQUATORIAL_LINE2 = "2 26451 000.0000 266.1044 0001893 160.7642 152.5985 01.00271160 35865"


def _samples(tle: TLE, duration: float, step: float):
    prop = TLEPropagator(tle)
    states = [prop.propagate(dt) for dt in np.arange(0.0, duration + step, step)]
    return [(s.epoch, s.state) for s in states]


class TestConfig:
    def test_fixed_point_defaults(self):
        config = FixedPointConfig()
        assert config.epsilon == 1e-10
        assert config.max_iterations == 100
        assert config.scale == 1.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"epsilon": 0.0}, {"max_iterations": 0}, {"scale": -1.0}],
    )
    def test_fixed_point_invalid(self, kwargs):
        with pytest.raises(ValueError):
            FixedPointConfig(**kwargs)

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_evaluations": 0}, {"ftol": 0.0}, {"xtol": -1e-3}, {"gtol": 0.0}],
    )
    def test_least_squares_invalid(self, kwargs):
        with pytest.raises(ValueError):
            LeastSquaresConfig(**kwargs)

    def test_configs_are_frozen(self):
        with pytest.raises(AttributeError):
            FixedPointConfig().scale = 0.5


class TestNewTLE:
    def test_keeps_template_fields(self):
        template = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        x_eq = state_koe_to_equinoctial(
            [float(semimajor_axis(template.mean_motion)), 0.001, 0.9, 1.0, 2.0, 0.1]
        )
        tle = new_tle(x_eq, template.epoch, template)
        assert tle.satellite_number == template.satellite_number
        assert tle.launch_piece == template.launch_piece
        assert tle.bstar == template.bstar
        assert tle.mean_motion == pytest.approx(template.mean_motion, rel=1e-12)
        assert tle.mean_anomaly == pytest.approx(0.1, abs=1e-10)
        assert tle.revolution_number == template.revolution_number

    def test_revolution_number_advances(self):
        template = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        x_eq = state_koe_to_equinoctial(
            [float(semimajor_axis(template.mean_motion)), 0.001, 0.9, 1.0, 2.0, 0.1]
        )
        epoch = template.epoch + 2.5 * template.period
        tle = new_tle(x_eq, epoch, template, bstar=1e-4)
        assert tle.revolution_number == template.revolution_number + 2
        assert tle.bstar == 1e-4

    def test_angles_normalized(self):
        template = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        x_eq = state_koe_to_equinoctial(
            [float(semimajor_axis(template.mean_motion)), 0.001, 0.9, -1.0, -2.0, -0.1]
        )
        tle = new_tle(x_eq, template.epoch, template)
        for angle in (tle.raan, tle.argp, tle.mean_anomaly):
            assert 0.0 <= angle < 2.0 * math.pi


class TestFixedPoint:
    @pytest.mark.parametrize(
        "line1, line2",
        [(ISS_LINE1, ISS_LINE2), (SPOT_LINE1, SPOT_LINE2), (GPS_LINE1, GPS_LINE2)],
    )
    def test_recovers_tle_at_epoch(self, line1, line2):
        tle = TLE.from_lines(line1, line2)
        state = TLEPropagator(tle).propagate(0.0)
        fitted = FixedPointTLEGenerator().generate(state, tle)

        assert fitted.mean_motion == pytest.approx(tle.mean_motion, rel=1e-8)
        assert fitted.i == pytest.approx(tle.i, abs=1e-8)
        assert fitted.raan == pytest.approx(tle.raan, abs=1e-8)

        recovered = TLEPropagator(fitted).propagate(0.0)
        np.testing.assert_allclose(np.asarray(recovered.state[:3]), np.asarray(state.state[:3]),
                                   atol=1e-2)

    def test_later_state_moves_epoch(self):
        tle = TLE.from_lines(SPOT_LINE1, SPOT_LINE2)
        state = TLEPropagator(tle).propagate(3600.0)
        fitted = FixedPointTLEGenerator(FixedPointConfig(scale=0.5, max_iterations=200)).generate(
            state, tle
        )
        assert float(fitted.epoch - tle.epoch) == pytest.approx(3600.0, abs=1e-6)

        recovered = TLEPropagator(fitted).propagate(0.0)
        np.testing.assert_allclose(np.asarray(recovered.state[:3]), np.asarray(state.state[:3]),
                                   atol=1e-2)

    def test_no_convergence(self):
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        state = TLEPropagator(tle).propagate(0.0)
        with pytest.raises(ConvergenceError) as exc:
            FixedPointTLEGenerator(FixedPointConfig(max_iterations=1)).generate(state, tle)
        assert exc.value.iterations == 1

    def test_logs_convergence(self, caplog):
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        state = TLEPropagator(tle).propagate(0.0)
        with caplog.at_level(logging.INFO, logger="tlejax.fitting.fixed_point"):
            FixedPointTLEGenerator().generate(state, tle)
        assert "converged" in caplog.text

    def test_damped_scale_converges_for_resonant_orbit(self):
        tle = TLE.from_lines(ITALSAT_LINE1, ITALSAT_LINE2)
        state = TLEPropagator(tle).propagate(0.0)
        config = FixedPointConfig(scale=0.5, max_iterations=200)
        fitted = FixedPointTLEGenerator(config).generate(state, tle)

        assert fitted.mean_motion == pytest.approx(tle.mean_motion, rel=1e-8)
        recovered = TLEPropagator(fitted).propagate(0.0)
        np.testing.assert_allclose(np.asarray(recovered.state[:3]), np.asarray(state.state[:3]),
                                   atol=1.0)

    def test_equatorial_deep_space_does_not_converge(self):
        tle = TLE.from_lines(EQUATORIAL_LINE1, EQUATORIAL_LINE2)
        state = TLEPropagator(tle).propagate(0.0)
        with pytest.raises(ConvergenceError) as exc:
            FixedPointTLEGenerator().generate(state, tle)
        assert exc.value.iterations == 100


class TestLeastSquares:
    def test_fit_states(self):
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        samples = _samples(tle, 5400.0, 300.0)
        result = LeastSquaresTLEGenerator().generate(samples, tle)

        assert result.success
        assert result.rms < 1e-2
        assert result.evaluations >= 1
        assert result.tle.epoch == tle.epoch
        assert result.tle.mean_motion == pytest.approx(tle.mean_motion, rel=1e-9)
        assert result.tle.e == pytest.approx(tle.e, abs=1e-8)

    def test_fit_positions_only(self):
        tle = TLE.from_lines(GPS_LINE1, GPS_LINE2)
        samples = _samples(tle, 43200.0, 1800.0)
        result = LeastSquaresTLEGenerator(LeastSquaresConfig(position_only=True)).generate(
            samples, tle
        )
        assert result.success
        assert result.rms < 1e-1
        assert result.tle.mean_motion == pytest.approx(tle.mean_motion, rel=1e-9)

    def test_estimate_bstar(self):
        tle = TLE.from_lines(SPOT_LINE1, SPOT_LINE2)
        samples = _samples(tle, 43200.0, 1200.0)
        template = tle.with_bstar(0.8 * tle.bstar)
        result = LeastSquaresTLEGenerator(LeastSquaresConfig(estimate_bstar=True)).generate(
            samples, template
        )
        assert result.success
        assert result.tle.bstar == pytest.approx(tle.bstar, rel=1e-2)
        assert result.rms < 1.0

    def test_fixed_bstar_is_kept(self):
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        result = LeastSquaresTLEGenerator().generate(_samples(tle, 1800.0, 600.0), tle)
        assert result.tle.bstar == tle.bstar

    def test_too_few_samples(self):
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        samples = _samples(tle, 0.0, 60.0)
        with pytest.raises(ValueError, match="unknowns"):
            LeastSquaresTLEGenerator(LeastSquaresConfig(position_only=True)).generate(samples, tle)

    def test_equatorial_deep_space_starts_from_template(self, caplog):
        tle = TLE.from_lines(EQUATORIAL_LINE1, EQUATORIAL_LINE2)
        samples = _samples(tle, 86400.0, 14400.0)
        with caplog.at_level(logging.WARNING, logger="tlejax.fitting.least_squares"):
            result = LeastSquaresTLEGenerator().generate(samples, tle)

        assert "starting from the template" in caplog.text
        assert result.success
        assert result.rms < 1e-2
        assert result.tle.epoch == tle.epoch
        assert 0.0 <= result.tle.i < 1e-3
        assert result.tle.mean_motion == pytest.approx(tle.mean_motion, rel=1e-9)

    def test_result_fields(self):
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        result = LeastSquaresTLEGenerator().generate(_samples(tle, 1800.0, 600.0), tle)
        assert isinstance(result.message, str)
        assert result.jacobian_evaluations >= 1
        assert result.tle.lines[0].startswith("1 25544U")
