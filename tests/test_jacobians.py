"""Tests for state transition matrices and parameter Jacobians.

The forward-mode derivatives of the propagator are checked against the
8-point finite-difference oracle, for a near-Earth (SGP4) and a
deep-space (SDP4) TLE.
"""

import jax.numpy as jnp
import numpy as np
import pytest

from tlejax.exceptions import DimensionMismatchError, UnknownParameterError
from tlejax.sgp4 import (
    BSTAR,
    BSTAR_SCALE,
    TLE,
    ParameterSet,
    Representation,
    TLEPropagator,
    central_difference,
    default_steps,
    evaluate,
    finite_difference_jacobian,
)

SPOT_LINE1 = "1 27421U 02021A   02124.48976499 -.00021470  00000-0 -89879-2 0    20"
SPOT_LINE2 = "2 27421  98.7490 199.5121 0001333 133.9522 226.1918 14.26113993    62"

GPS_LINE1 = "1 37753U 11036A   12090.13205652 -.00000006  00000-0  00000+0 0  2272"
GPS_LINE2 = "2 37753  55.0032 176.5796 0004733  13.2285 346.8266  2.00565440  5153"

DT = 900.0


def _derivative_propagator(line1: str, line2: str, parameters=(BSTAR,)) -> TLEPropagator:
    return TLEPropagator(TLE.from_lines(line1, line2), representation=Representation.DERIVATIVE,
                         parameters=list(parameters))


def _row_scale(state: np.ndarray) -> np.ndarray:
    r = np.linalg.norm(state[:3])
    v = np.linalg.norm(state[3:])
    return np.array([r, r, r, v, v, v])


def _scaled_stm_error(stm: np.ndarray, ref: np.ndarray, state: np.ndarray) -> float:
    scale = _row_scale(state)
    return float(np.max(np.abs(stm - ref) * scale[None, :] / scale[:, None]))


class TestStencil:
    def test_exact_on_polynomials(self) -> None:
        """The 8-point stencil differentiates polynomials up to degree 8 exactly."""
        h = 0.1
        offsets = jnp.array([-4.0, -3.0, -2.0, -1.0, 1.0, 2.0, 3.0, 4.0]) * h
        x0 = 0.3
        values = (x0 + offsets) ** 7
        assert float(central_difference(values, h)) == pytest.approx(7 * x0**6, rel=1e-10)

    def test_vector_values(self) -> None:
        h = 1e-3
        offsets = jnp.array([-4.0, -3.0, -2.0, -1.0, 1.0, 2.0, 3.0, 4.0]) * h
        values = jnp.stack([jnp.sin(offsets), jnp.cos(offsets)], axis=1)
        np.testing.assert_allclose(np.asarray(central_difference(values, h)), [1.0, 0.0],
                                   atol=1e-12)

    def test_default_steps(self) -> None:
        prop = _derivative_propagator(SPOT_LINE1, SPOT_LINE2)
        steps = np.asarray(default_steps(prop))
        assert steps.shape == (7,)
        assert steps[0] == pytest.approx(1e-6 * prop.tle.mean_motion)
        assert steps[6] == BSTAR_SCALE


class TestEvaluate:
    def test_real_has_no_jacobian(self) -> None:
        value, jac = evaluate(lambda x: x**2, jnp.array([1.0, 2.0]), Representation.REAL)
        assert jac is None
        np.testing.assert_allclose(np.asarray(value), [1.0, 4.0])

    def test_derivative_matches_analytic(self) -> None:
        value, jac = evaluate(lambda x: x**2, jnp.array([1.0, 2.0]), Representation.DERIVATIVE)
        np.testing.assert_allclose(np.asarray(value), [1.0, 4.0])
        np.testing.assert_allclose(np.asarray(jac), [[2.0, 0.0], [0.0, 4.0]])

    def test_representation_from_string(self) -> None:
        assert Representation.from_value("DERIVATIVE") is Representation.DERIVATIVE
        with pytest.raises(ValueError, match="Unknown representation"):
            Representation.from_value("dual")


@pytest.mark.parametrize(
    "line1, line2, method",
    [(SPOT_LINE1, SPOT_LINE2, "sgp4"), (GPS_LINE1, GPS_LINE2, "sdp4")],
)
class TestAgainstFiniteDifferences:
    def test_element_jacobian(self, line1: str, line2: str, method: str) -> None:
        prop = _derivative_propagator(line1, line2)
        assert prop.method == method
        state = prop.propagate(DT)
        analytic = np.asarray(state.jacobian)
        reference = np.asarray(finite_difference_jacobian(prop, DT))
        steps = np.asarray(default_steps(prop))

        assert analytic.shape == reference.shape == (6, 7)
        scale = _row_scale(np.asarray(state.state))[:, None]
        error = np.abs(analytic - reference) * steps[None, :] / scale
        assert float(np.max(error)) < 1e-9

    def test_state_transition_matrix(self, line1: str, line2: str, method: str) -> None:
        prop = _derivative_propagator(line1, line2)
        state = prop.propagate(DT)
        stm = np.asarray(prop.get_state_transition_matrix(state))

        j0 = np.asarray(finite_difference_jacobian(prop, 0.0))[:, :6]
        jt = np.asarray(finite_difference_jacobian(prop, DT))[:, :6]
        reference = jt @ np.linalg.inv(j0)

        assert stm.shape == (6, 6)
        assert _scaled_stm_error(stm, reference, np.asarray(state.state)) < 1e-4

    def test_parameters_jacobian(self, line1: str, line2: str, method: str) -> None:
        prop = _derivative_propagator(line1, line2)
        state = prop.propagate(DT)
        dydp = np.asarray(prop.get_parameters_jacobian(state))

        j0 = np.asarray(finite_difference_jacobian(prop, 0.0))
        jt = np.asarray(finite_difference_jacobian(prop, DT))
        phi = jt[:, :6] @ np.linalg.inv(j0[:, :6])
        reference = jt[:, 6:] - phi @ j0[:, 6:]

        assert dydp.shape == (6, 1)
        for rows in (slice(0, 3), slice(3, 6)):
            tol = 1e-4 * float(np.max(np.abs(reference[rows])))
            np.testing.assert_allclose(dydp[rows], reference[rows], rtol=0.0, atol=tol)


class TestInitialJacobians:
    def test_stm_at_epoch_is_identity(self) -> None:
        prop = _derivative_propagator(SPOT_LINE1, SPOT_LINE2)
        stm = prop.get_state_transition_matrix(prop.get_initial_state())
        np.testing.assert_allclose(np.asarray(stm), np.eye(6), atol=1e-6)

    def test_parameters_jacobian_at_epoch_is_zero(self) -> None:
        prop = _derivative_propagator(SPOT_LINE1, SPOT_LINE2)
        dydp = prop.get_parameters_jacobian(prop.get_initial_state())
        np.testing.assert_allclose(np.asarray(dydp), np.zeros((6, 1)), atol=1e-6)

    def test_custom_initial_jacobians(self) -> None:
        prop = _derivative_propagator(SPOT_LINE1, SPOT_LINE2)
        dY1dY0 = 2.0 * np.eye(6)
        dY1dP = np.arange(6.0).reshape(6, 1)
        prop.set_initial_jacobians(dY1dY0, dY1dP)
        state0 = prop.get_initial_state()
        np.testing.assert_allclose(np.asarray(prop.get_state_transition_matrix(state0)), dY1dY0,
                                   atol=1e-6)
        np.testing.assert_allclose(np.asarray(prop.get_parameters_jacobian(state0)), 2.0 * dY1dP,
                                   atol=1e-6)

    def test_stm_chains_initial_matrix(self) -> None:
        prop = _derivative_propagator(GPS_LINE1, GPS_LINE2)
        state = prop.propagate(DT)
        stm = np.asarray(prop.get_state_transition_matrix(state))
        m = np.diag([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
        prop.set_initial_jacobians(m)
        np.testing.assert_allclose(np.asarray(prop.get_state_transition_matrix(state)), stm @ m,
                                   rtol=1e-12, atol=1e-12)

    def test_too_small_dimension(self) -> None:
        prop = _derivative_propagator(GPS_LINE1, GPS_LINE2)
        with pytest.raises(DimensionMismatchError) as exc:
            prop.set_initial_jacobians(np.zeros((5, 6)), np.zeros((6, 1)))
        assert exc.value.expected == (6, 6)
        assert exc.value.actual == (5, 6)

    def test_too_large_dimension(self) -> None:
        prop = _derivative_propagator(GPS_LINE1, GPS_LINE2)
        with pytest.raises(DimensionMismatchError):
            prop.set_initial_jacobians(np.zeros((8, 6)), np.zeros((6, 1)))

    def test_mismatched_parameter_rows(self) -> None:
        prop = _derivative_propagator(GPS_LINE1, GPS_LINE2)
        with pytest.raises(DimensionMismatchError):
            prop.set_initial_jacobians(np.eye(6), np.zeros((7, 1)))

    def test_wrong_parameters_dimension(self) -> None:
        prop = _derivative_propagator(GPS_LINE1, GPS_LINE2)
        with pytest.raises(DimensionMismatchError) as exc:
            prop.set_initial_jacobians(np.eye(6), np.zeros((6, 3)))
        assert exc.value.expected == (6, 1)


class TestNoDerivatives:
    def test_real_representation_returns_none(self) -> None:
        prop = TLEPropagator(TLE.from_lines(SPOT_LINE1, SPOT_LINE2), parameters=[BSTAR])
        state = prop.propagate(DT)
        assert prop.get_state_transition_matrix(state) is None
        assert prop.get_parameters_jacobian(state) is None
        assert prop.get_elements_jacobian(state) is None

    def test_unselected_bstar_returns_none(self) -> None:
        prop = _derivative_propagator(SPOT_LINE1, SPOT_LINE2, parameters=())
        state = prop.propagate(DT)
        assert prop.get_state_transition_matrix(state) is not None
        assert prop.get_parameters_jacobian(state) is None

    def test_finite_differences_without_parameters(self) -> None:
        prop = _derivative_propagator(SPOT_LINE1, SPOT_LINE2, parameters=())
        assert finite_difference_jacobian(prop, DT).shape == (6, 6)


class TestParameterSet:
    def test_for_tle(self) -> None:
        tle = TLE.from_lines(SPOT_LINE1, SPOT_LINE2)
        params = ParameterSet.for_tle(tle)
        driver = params.get(BSTAR)
        assert driver.reference_value == tle.bstar
        assert driver.scale == BSTAR_SCALE
        assert not driver.selected
        assert params.selected_names() == ()

    def test_with_selected_is_a_copy(self) -> None:
        params = ParameterSet.for_tle(TLE.from_lines(SPOT_LINE1, SPOT_LINE2))
        selected = params.with_selected(BSTAR)
        assert selected.selected_names() == (BSTAR,)
        assert params.selected_names() == ()
        assert selected != params
        assert selected.with_selected(BSTAR, False) == params

    def test_with_reference_value(self) -> None:
        params = ParameterSet.for_tle(TLE.from_lines(SPOT_LINE1, SPOT_LINE2))
        assert params.with_reference_value(BSTAR, 1e-4).get(BSTAR).reference_value == 1e-4

    def test_unknown_parameter(self) -> None:
        params = ParameterSet.for_tle(TLE.from_lines(SPOT_LINE1, SPOT_LINE2))
        with pytest.raises(UnknownParameterError) as exc:
            params.get("drag")
        assert exc.value.name == "drag"
        assert exc.value.supported == (BSTAR,)

    def test_propagator_rejects_unknown_parameter(self) -> None:
        with pytest.raises(UnknownParameterError):
            TLEPropagator(TLE.from_lines(SPOT_LINE1, SPOT_LINE2), parameters=["drag"])

    def test_reference_value_drives_propagation(self) -> None:
        tle = TLE.from_lines(SPOT_LINE1, SPOT_LINE2)
        params = ParameterSet.for_tle(tle).with_reference_value(BSTAR, 0.0)
        a = TLEPropagator(tle, parameters=params).state(DT)
        b = TLEPropagator(tle.with_bstar(0.0)).state(DT)
        np.testing.assert_allclose(np.asarray(a), np.asarray(b), rtol=0.0, atol=1e-9)
