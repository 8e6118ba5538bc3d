"""
Estimable parameters of the TLE propagator.

The selection of parameters is an explicit, immutable value handed to the
propagator and to the fitting engine.  Selecting a parameter produces a
new :class:`ParameterSet`; the TLE record itself never carries selection
flags.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from tlejax.exceptions import UnknownParameterError

BSTAR = "BSTAR"
"""Name of the B* drag term driver."""

BSTAR_SCALE = 2.0**-20
"""Scale of the B* driver, used for finite-difference step sizing."""


@dataclass(frozen=True)
class ParameterDriver:
    """A named estimable parameter.

    Attributes:
        name: Parameter name.
        reference_value: Value of the parameter in the TLE.
        scale: Typical magnitude of a correction.
        selected: Whether the parameter is estimated and differentiated.
    """

    name: str
    reference_value: float
    scale: float
    selected: bool = False


class ParameterSet:
    """Immutable, ordered collection of parameter drivers.

    Args:
        drivers: Drivers in column order of the parameter Jacobian.
    """

    def __init__(self, drivers: Iterable[ParameterDriver] = ()) -> None:
        self._drivers = tuple(drivers)

    @classmethod
    def for_tle(cls, tle, selected: Iterable[str] = ()) -> ParameterSet:
        """Build the parameter set of a TLE.

        Args:
            tle: Source record.
            selected: Names of the drivers to select.

        Returns:
            ParameterSet: The B* driver, selected if requested.

        Raises:
            UnknownParameterError: If a selected name is not supported.
        """
        params = cls([ParameterDriver(BSTAR, float(tle.bstar), BSTAR_SCALE)])
        for name in selected:
            params = params.with_selected(name)
        return params

    def get(self, name: str) -> ParameterDriver:
        """Return the driver called ``name``.

        Raises:
            UnknownParameterError: If no driver has this name.
        """
        for driver in self._drivers:
            if driver.name == name:
                return driver
        raise UnknownParameterError(name, tuple(d.name for d in self._drivers))

    def with_selected(self, name: str, selected: bool = True) -> ParameterSet:
        """Return a copy with the selection flag of one driver changed."""
        self.get(name)
        return ParameterSet(
            dataclasses.replace(d, selected=selected) if d.name == name else d
            for d in self._drivers
        )

    def with_reference_value(self, name: str, value: float) -> ParameterSet:
        """Return a copy with the reference value of one driver changed."""
        self.get(name)
        return ParameterSet(
            dataclasses.replace(d, reference_value=value) if d.name == name else d
            for d in self._drivers
        )

    def selected(self) -> tuple[ParameterDriver, ...]:
        return tuple(d for d in self._drivers if d.selected)

    def selected_names(self) -> tuple[str, ...]:
        return tuple(d.name for d in self._drivers if d.selected)

    def __iter__(self) -> Iterator[ParameterDriver]:
        return iter(self._drivers)

    def __len__(self) -> int:
        return len(self._drivers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterSet):
            return NotImplemented
        return self._drivers == other._drivers

    def __hash__(self) -> int:
        return hash(self._drivers)

    def __repr__(self) -> str:
        return f"ParameterSet({list(self._drivers)!r})"
