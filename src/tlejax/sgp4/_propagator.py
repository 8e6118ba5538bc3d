"""
TLE propagator.

:class:`TLEPropagator` ties a :class:`~tlejax.sgp4.TLE` record to the
SGP4/SDP4 kernels.  The branch selection is resolved once at construction;
each call to :meth:`TLEPropagator.propagate` re-runs the pure, jitted
kernel function :func:`state_from_elements` on the element vector, either
with plain values or under forward-mode differentiation, depending on the
scalar representation chosen for the propagator.

State transition matrices and parameter Jacobians are derived from the
raw element Jacobian carried by each :class:`PropagatedState`:

* ``STM(t) = J(t) J(0)^-1 dY1dY0``
* ``dY/dP(t) = J_p(t) - J(t) J(0)^-1 J_p(0) + STM(t) dY1dP``

where ``J`` is the Jacobian of the TEME state with respect to the six
mean elements and ``J_p`` the Jacobian with respect to the selected
parameters.
"""

from __future__ import annotations

import functools
import logging
from typing import NamedTuple

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from tlejax.config import get_dtype
from tlejax.constants import DEFAULT_MASS, TLE_MU
from tlejax.coordinates import state_cartesian_to_equinoctial, state_cartesian_to_koe
from tlejax.epoch import Epoch
from tlejax.exceptions import DimensionMismatchError, check_status
from tlejax.sgp4._constants import EarthGravity, resolve_gravity
from tlejax.sgp4._deep_space import propagate_deep_space
from tlejax.sgp4._initializer import BranchFlags, classify, initialize
from tlejax.sgp4._near_earth import propagate_near_earth
from tlejax.sgp4._parameters import BSTAR, ParameterSet
from tlejax.sgp4._scalar import Representation, evaluate
from tlejax.sgp4._types import TLE

logger = logging.getLogger(__name__)

# Index of each parameter in the element vector, after the six mean elements
PARAMETER_INDEX = {BSTAR: 6}


def element_vector(tle: TLE, bstar: float | None = None) -> Array:
    """Return the element vector ``(n, e, i, raan, argp, M, B*)`` of a TLE.

    Args:
        tle: Source record.
        bstar: Override of the B* term.

    Returns:
        Array: Shape ``(7,)``, mean motion in rad/s and angles in rad.
    """
    return jnp.array(
        [tle.mean_motion, tle.e, tle.i, tle.raan, tle.argp, tle.mean_anomaly,
         tle.bstar if bstar is None else bstar],
        dtype=get_dtype(),
    )


@functools.partial(jax.jit, static_argnames=("flags", "gravity"))
def state_from_elements(
    x: Array,
    t: ArrayLike,
    flags: BranchFlags,
    gravity: EarthGravity,
) -> tuple[Array, Array]:
    """Propagate an element vector with SGP4 or SDP4.

    The constants are re-initialized from ``x`` on every call, so the
    function can be differentiated with respect to the elements.

    Args:
        x: Element vector ``(n, e, i, raan, argp, M, B*)``.
        t: Time since epoch [min].
        flags: Static branch selection (from :func:`classify`).
        gravity: Earth gravity model.

    Returns:
        Tuple ``(state, status)``: TEME state ``[x, y, z, vx, vy, vz]``
        [m, m/s] and SGP4 status code (0 on success).
    """
    c = initialize(x, flags, gravity)
    if flags.deep_space:
        return propagate_deep_space(x, t, c, flags, gravity)
    return propagate_near_earth(x, t, c, flags, gravity)


class PropagatedState(NamedTuple):
    """A propagated TEME state.

    Attributes:
        epoch: Date of the state.
        dt: Time since the TLE epoch [s].
        position: TEME position [m].
        velocity: TEME velocity [m/s].
        mass: Spacecraft mass [kg].
        jacobian: Jacobian of ``[position, velocity]`` with respect to
            ``(n, e, i, raan, argp, M, B*)``, shape ``(6, 7)``, or ``None``
            when propagated with :attr:`Representation.REAL`.
    """

    epoch: Epoch
    dt: float
    position: Array
    velocity: Array
    mass: float
    jacobian: Array | None = None

    @property
    def state(self) -> Array:
        """Cartesian state ``[x, y, z, vx, vy, vz]`` [m, m/s]."""
        return jnp.concatenate([self.position, self.velocity])

    def keplerian(self, use_degrees: bool = False) -> Array:
        """Osculating elements ``[a, e, i, RAAN, omega, M]`` of the state.

        RAAN and perigee are ill-defined for circular or equatorial
        orbits, see :meth:`equinoctial`.
        """
        return state_cartesian_to_koe(self.state, TLE_MU, use_degrees)

    def equinoctial(self) -> Array:
        """Osculating equinoctial elements ``[a, ex, ey, hx, hy, lv]`` of the state."""
        return state_cartesian_to_equinoctial(self.state, TLE_MU)


class TLEPropagator:
    """SGP4/SDP4 propagator of a TLE.

    Examples:
        ```python
        from tlejax.sgp4 import TLE, TLEPropagator

        tle = TLE.from_lines(line1, line2)
        prop = TLEPropagator(tle, representation="derivative",
                             parameters=["BSTAR"])
        state = prop.propagate(900.0)
        stm = prop.get_state_transition_matrix(state)
        dydp = prop.get_parameters_jacobian(state)
        ```

    Args:
        tle: Mean-element record.
        gravity: Gravity model name or :class:`EarthGravity` (default WGS72).
        representation: :attr:`Representation.REAL` for plain propagation,
            :attr:`Representation.DERIVATIVE` to also compute Jacobians.
        parameters: :class:`ParameterSet`, or names of the parameters to
            select.  Defaults to no selected parameter.
        mass: Spacecraft mass reported with each state [kg].

    Raises:
        TLEInitializationError: If the elements cannot be initialized.
        UnknownParameterError: If a parameter name is not supported.
    """

    frame = "TEME"

    def __init__(
        self,
        tle: TLE,
        gravity: str | EarthGravity = "wgs72",
        representation: Representation | str = Representation.REAL,
        parameters: ParameterSet | list[str] | tuple[str, ...] | None = None,
        mass: float = DEFAULT_MASS,
    ) -> None:
        if parameters is None or not isinstance(parameters, ParameterSet):
            parameters = ParameterSet.for_tle(tle, parameters or ())

        self._tle = tle
        self._gravity = resolve_gravity(gravity)
        self._representation = Representation.from_value(representation)
        self._parameters = parameters
        self._mass = mass
        self._x0 = element_vector(tle, parameters.get(BSTAR).reference_value)
        self._flags = classify(self._x0, float(tle.epoch.days_since_1950()), self._gravity)

        n_params = len(parameters.selected())
        self._dY1dY0 = jnp.eye(6, dtype=self._x0.dtype)
        self._dY1dP = jnp.zeros((6, n_params), dtype=self._x0.dtype)

        logger.debug(
            "Initialized %s propagator for satellite %d (resonance %s, isimp %s, representation %s)",
            self.method, tle.satellite_number, self._flags.resonance.name,
            self._flags.isimp, self._representation.value,
        )

        self._initial_jacobian = None
        if self._representation is Representation.DERIVATIVE:
            self._initial_jacobian = self._evaluate(0.0)[2]

    # Properties

    @property
    def tle(self) -> TLE:
        return self._tle

    @property
    def gravity(self) -> EarthGravity:
        return self._gravity

    @property
    def representation(self) -> Representation:
        return self._representation

    @property
    def parameters(self) -> ParameterSet:
        return self._parameters

    @property
    def flags(self) -> BranchFlags:
        """Branch selection of the theory for this TLE."""
        return self._flags

    @property
    def method(self) -> str:
        """``'sdp4'`` for deep-space orbits, ``'sgp4'`` otherwise."""
        return "sdp4" if self._flags.deep_space else "sgp4"

    @property
    def mass(self) -> float:
        return self._mass

    @property
    def elements(self) -> Array:
        """Element vector ``(n, e, i, raan, argp, M, B*)`` of the TLE."""
        return self._x0

    # Propagation

    def _time_since_epoch(self, target: Epoch | float) -> float:
        if isinstance(target, Epoch):
            return float(target - self._tle.epoch)
        return float(target)

    def _evaluate(self, dt: float) -> tuple[Array, int, Array | None]:
        t = jnp.asarray(dt / 60.0, dtype=self._x0.dtype)

        def _kernel(x):
            return state_from_elements(x, t, self._flags, self._gravity)

        (state, status), jac = evaluate(_kernel, self._x0, self._representation, has_aux=True)
        return state, int(status), jac

    def propagate(self, target: Epoch | float) -> PropagatedState:
        """Propagate the TLE to a date.

        Args:
            target: :class:`Epoch`, or seconds since the TLE epoch.

        Returns:
            PropagatedState: TEME state at ``target``.

        Raises:
            PropagationError: If the kernel reports an error status.
            OrbitDecayedError: If the satellite has decayed at ``target``.
        """
        dt = self._time_since_epoch(target)
        state, status, jac = self._evaluate(dt)
        check_status(status, dt)
        return PropagatedState(
            epoch=self._tle.epoch + dt,
            dt=dt,
            position=state[:3],
            velocity=state[3:],
            mass=self._mass,
            jacobian=jac,
        )

    def state(self, target: Epoch | float) -> Array:
        """Return the TEME state ``[x, y, z, vx, vy, vz]`` [m, m/s] at ``target``."""
        return self.propagate(target).state

    def get_initial_state(self) -> PropagatedState:
        """Return the state at the TLE epoch."""
        return self.propagate(0.0)

    # Jacobians

    def set_initial_jacobians(
        self,
        dY1dY0: ArrayLike | None = None,
        dY1dP: ArrayLike | None = None,
    ) -> None:
        """Set the initial state and parameter Jacobians.

        Args:
            dY1dY0: Jacobian of the user state with respect to the TLE
                state at epoch, shape ``(6, 6)``.  Defaults to identity.
            dY1dP: Jacobian of the user state with respect to the selected
                parameters, shape ``(6, N)``.  Defaults to zeros.

        Raises:
            DimensionMismatchError: If a matrix has the wrong shape.
        """
        n_params = len(self._parameters.selected())
        dtype = self._x0.dtype
        dY1dY0 = jnp.eye(6, dtype=dtype) if dY1dY0 is None else jnp.asarray(dY1dY0, dtype=dtype)
        dY1dP = (jnp.zeros((6, n_params), dtype=dtype) if dY1dP is None
                 else jnp.asarray(dY1dP, dtype=dtype))

        if dY1dY0.shape != (6, 6):
            raise DimensionMismatchError("dY1dY0", (6, 6), dY1dY0.shape)
        if dY1dP.shape != (6, n_params):
            raise DimensionMismatchError("dY1dP", (6, n_params), dY1dP.shape)

        self._dY1dY0 = dY1dY0
        self._dY1dP = dY1dP

    def _parameter_columns(self) -> list[int]:
        return [PARAMETER_INDEX[name] for name in self._parameters.selected_names()]

    def get_elements_jacobian(self, state: PropagatedState) -> Array | None:
        """Return ``dY(t)/d(n, e, i, raan, argp, M)``, shape ``(6, 6)``.

        Returns ``None`` if ``state`` carries no derivatives.
        """
        if state.jacobian is None:
            return None
        return state.jacobian[:, :6]

    def get_state_transition_matrix(self, state: PropagatedState) -> Array | None:
        """Return the state transition matrix ``dY(t)/dY0``, shape ``(6, 6)``.

        Returns ``None`` if ``state`` carries no derivatives.
        """
        if state.jacobian is None or self._initial_jacobian is None:
            return None
        j0 = self._initial_jacobian[:, :6]
        phi = jnp.linalg.solve(j0.T, state.jacobian[:, :6].T).T
        return phi @ self._dY1dY0

    def get_parameters_jacobian(self, state: PropagatedState) -> Array | None:
        """Return ``dY(t)/dP`` for the selected parameters, shape ``(6, N)``.

        Returns ``None`` if ``state`` carries no derivatives or if no
        parameter is selected.
        """
        columns = self._parameter_columns()
        if not columns or state.jacobian is None or self._initial_jacobian is None:
            return None
        j0 = self._initial_jacobian[:, :6]
        phi_tle = jnp.linalg.solve(j0.T, state.jacobian[:, :6].T).T
        jp_t = state.jacobian[:, columns]
        jp_0 = self._initial_jacobian[:, columns]
        return (jp_t - phi_tle @ jp_0) + (phi_tle @ self._dY1dY0) @ self._dY1dP

    def __repr__(self) -> str:
        return (f"TLEPropagator(satellite={self._tle.satellite_number}, method={self.method!r}, "
                f"representation={self._representation.value!r}, "
                f"parameters={list(self._parameters.selected_names())})")


def propagate_samples(
    x: Array,
    t: ArrayLike,
    flags: BranchFlags,
    gravity: EarthGravity,
    with_jacobian: bool = False,
) -> tuple[np.ndarray, np.ndarray, np.ndarray | None]:
    """Propagate one element vector to many times at once.

    Args:
        x: Element vector ``(n, e, i, raan, argp, M, B*)``.
        t: Times since epoch [min], shape ``(m,)``.
        flags: Branch selection of the nominal elements.
        gravity: Earth gravity model.
        with_jacobian: Whether to also return the element Jacobians.

    Returns:
        Tuple ``(states, status, jacobians)`` of shapes ``(m, 6)``,
        ``(m,)`` and ``(m, 6, 7)`` (``None`` unless requested).
    """
    t = jnp.asarray(t, dtype=x.dtype)

    def _one(tk):
        fn = functools.partial(state_from_elements, t=tk, flags=flags, gravity=gravity)
        rep = Representation.DERIVATIVE if with_jacobian else Representation.REAL
        (state, status), jac = evaluate(fn, x, rep, has_aux=True)
        return state, status, jac

    if with_jacobian:
        states, status, jacs = jax.vmap(_one)(t)
        return np.asarray(states), np.asarray(status), np.asarray(jacs)

    states, status = jax.vmap(lambda tk: _one(tk)[:2])(t)
    return np.asarray(states), np.asarray(status), None
