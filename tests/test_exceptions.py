import pytest

from tlejax.exceptions import (
    ConvergenceError,
    DimensionMismatchError,
    OrbitDecayedError,
    PropagationError,
    TLEChecksumError,
    TLEError,
    TLEFormatError,
    TLEParameterRangeError,
    UnknownParameterError,
    check_status,
)


class TestCheckStatus:
    def test_success_is_silent(self):
        check_status(0)

    @pytest.mark.parametrize("status", [1, 2, 3, 4])
    def test_propagation_errors(self, status):
        with pytest.raises(PropagationError) as exc:
            check_status(status, dt=60.0)
        assert not isinstance(exc.value, OrbitDecayedError)
        assert exc.value.status == status
        assert exc.value.dt == 60.0
        assert "dt = 60.0 s" in str(exc.value)

    @pytest.mark.parametrize("status", [6, 7])
    def test_decay(self, status):
        with pytest.raises(OrbitDecayedError, match="decayed"):
            check_status(status)

    def test_unknown_status(self):
        with pytest.raises(PropagationError, match="unknown SGP4 status 9"):
            check_status(9)


class TestHierarchy:
    def test_builtin_bases(self):
        assert issubclass(TLEFormatError, ValueError)
        assert issubclass(TLEChecksumError, TLEFormatError)
        assert issubclass(TLEParameterRangeError, ValueError)
        assert issubclass(PropagationError, RuntimeError)
        assert issubclass(ConvergenceError, RuntimeError)
        assert issubclass(UnknownParameterError, KeyError)
        for cls in (TLEFormatError, PropagationError, ConvergenceError, DimensionMismatchError):
            assert issubclass(cls, TLEError)

    def test_checksum_message(self):
        err = TLEChecksumError(2, 7, "3")
        assert str(err) == "wrong checksum of TLE line 2, expected 7 but got 3"

    def test_parameter_range_message(self):
        err = TLEParameterRangeError(5, "B*", "1.0e+12")
        assert err.parameter == "B*"
        assert "object 5" in str(err)

    def test_unknown_parameter_message_is_not_quoted(self):
        err = UnknownParameterError("drag", ("BSTAR",))
        assert str(err) == "unsupported parameter name 'drag', supported names: BSTAR"
