"""Tests for the TLE record, its text format and the gravity constants."""

from math import pi, radians

import pytest

from tlejax.constants import NDDOT_TO_RADSEC3, NDOT_TO_RADSEC2, REVDAY_TO_RADSEC
from tlejax.epoch import Epoch
from tlejax.exceptions import TLEChecksumError, TLEFormatError, TLEParameterRangeError
from tlejax.sgp4 import (
    TLE,
    WGS72,
    WGS72OLD,
    WGS84,
    compute_checksum,
    is_format_ok,
    parse_tle,
)
from tlejax.sgp4._constants import resolve_gravity

SPOT_LINE1 = "1 27421U 02021A   02124.48976499 -.00021470  00000-0 -89879-2 0    20"
SPOT_LINE2 = "2 27421  98.7490 199.5121 0001333 133.9522 226.1918 14.26113993    62"

ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"


def _bug77_tle(**changes) -> TLE:
    """Directly constructed record of satellite 5555 with overridable fields."""
    fields = dict(
        satellite_number=5555,
        classification="U",
        launch_year=1971,
        launch_number=86,
        launch_piece="J",
        ephemeris_type=0,
        element_number=908,
        epoch=Epoch.from_day_of_year(2012, 26, 0.96078249 * 86400.0),
        mean_motion=12.26882470 * REVDAY_TO_RADSEC,
        mean_motion_first_derivative=-0.00000004 * NDOT_TO_RADSEC2,
        mean_motion_second_derivative=0.00001e-9 * NDDOT_TO_RADSEC3,
        e=0.0075476,
        i=radians(74.0161),
        raan=radians(228.9750),
        argp=radians(328.9888),
        mean_anomaly=radians(30.6709),
        bstar=0.01234e-9,
        revolution_number=80454,
    )
    fields.update(changes)
    return TLE(**fields)


class TestEarthGravityConstants:
    def test_wgs72_values(self) -> None:
        assert WGS72.mu == 398600.8
        assert WGS72.radiusearthkm == 6378.135
        assert WGS72.j2 == 0.001082616

    def test_wgs72old_xke(self) -> None:
        assert WGS72OLD.xke == pytest.approx(0.0743669161, rel=1e-8)

    def test_wgs84_values(self) -> None:
        assert WGS84.mu == 398600.5
        assert WGS84.radiusearthkm == 6378.137

    def test_tumin_is_inverse_xke(self) -> None:
        for grav in (WGS72OLD, WGS72, WGS84):
            assert grav.tumin == pytest.approx(1.0 / grav.xke, rel=1e-12)

    def test_resolve_by_name(self) -> None:
        assert resolve_gravity("WGS84") is WGS84
        assert resolve_gravity(WGS72) is WGS72

    def test_resolve_unknown_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown gravity model"):
            resolve_gravity("egm96")


class TestChecksum:
    def test_spot_checksums(self) -> None:
        assert compute_checksum(SPOT_LINE1) == 0
        assert compute_checksum(SPOT_LINE2) == 2

    def test_minus_sign_counts_one(self) -> None:
        assert compute_checksum("-" + " " * 67) == 1


class TestFormatValidation:
    def test_valid_lines(self) -> None:
        assert is_format_ok(SPOT_LINE1, SPOT_LINE2)

    def test_star_in_mean_motion(self) -> None:
        assert not is_format_ok(SPOT_LINE1, SPOT_LINE2.replace("14.26", "14*26"))

    def test_missing_classification(self) -> None:
        line1 = "1 27421 02021A   02124.48976499 -.00021470  00000-0 -89879-2 0    20"
        assert not is_format_ok(line1, SPOT_LINE2)

    def test_missing_exponent_sign(self) -> None:
        line1 = SPOT_LINE1.replace("-89879-2", "-89879 2")
        assert not is_format_ok(line1, SPOT_LINE2)

    def test_wrong_length(self) -> None:
        assert not is_format_ok(SPOT_LINE1[:-1], SPOT_LINE2)

    def test_line1_checksum_mismatch(self) -> None:
        with pytest.raises(TLEChecksumError) as exc:
            is_format_ok(SPOT_LINE1[:-1] + "1", SPOT_LINE2)
        assert exc.value.line_number == 1
        assert exc.value.expected == 0
        assert exc.value.actual == "1"

    def test_line2_checksum_mismatch(self) -> None:
        with pytest.raises(TLEChecksumError) as exc:
            is_format_ok(SPOT_LINE1, SPOT_LINE2[:-1] + "1")
        assert exc.value.line_number == 2
        assert exc.value.expected == 2

    def test_any_digit_mutation_detected(self) -> None:
        """Changing any digit of line 2 breaks its checksum."""
        for k, c in enumerate(SPOT_LINE2[:68]):
            if k == 0 or not c.isdigit():
                continue
            mutated = SPOT_LINE2[:k] + str((int(c) + 1) % 10) + SPOT_LINE2[k + 1:]
            with pytest.raises(TLEChecksumError):
                parse_tle(SPOT_LINE1, mutated)


class TestParsing:
    def test_spot_fields(self) -> None:
        tle = TLE.from_lines(SPOT_LINE1, SPOT_LINE2)
        assert tle.satellite_number == 27421
        assert tle.classification == "U"
        assert tle.launch_year == 2002
        assert tle.launch_number == 21
        assert tle.launch_piece == "A"
        assert tle.bstar == -0.0089879
        assert tle.ephemeris_type == 0
        assert tle.i_deg == pytest.approx(98.749, abs=1e-10)
        assert tle.raan_deg == pytest.approx(199.5121, abs=1e-10)
        assert tle.e == pytest.approx(0.0001333, abs=1e-10)
        assert tle.argp_deg == pytest.approx(133.9522, abs=1e-10)
        assert tle.mean_anomaly_deg == pytest.approx(226.1918, abs=1e-10)
        assert tle.mean_motion_rev_per_day == pytest.approx(14.26113993, rel=1e-15)
        assert tle.revolution_number == 6
        assert tle.element_number == 2

    def test_epoch(self) -> None:
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        assert tle.epoch.year() == 2008
        assert tle.epoch.day_of_year() == 264
        assert tle.epoch.seconds_in_day() == pytest.approx(0.51782528 * 86400.0, abs=1e-6)

    def test_two_digit_year_pivot(self) -> None:
        tle = TLE.from_lines(SPOT_LINE1, SPOT_LINE2)
        assert tle.epoch.year() == 2002
        assert TLE.from_lines(ISS_LINE1, ISS_LINE2).launch_year == 1998

    def test_mean_motion_units(self) -> None:
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        assert tle.mean_motion == pytest.approx(15.72125391 * 2 * pi / 86400.0, rel=1e-15)
        assert tle.no_kozai == pytest.approx(tle.mean_motion * 60.0, rel=1e-15)

    def test_different_satellite_numbers(self) -> None:
        line2 = "2 27422  98.7490 199.5121 0001333 133.9522 226.1918 14.26113993    63"
        with pytest.raises(TLEFormatError, match="same object"):
            TLE.from_lines(SPOT_LINE1, line2)

    def test_line_too_short(self) -> None:
        with pytest.raises(TLEFormatError, match="69 characters"):
            TLE.from_lines(SPOT_LINE1[:60], SPOT_LINE2)

    def test_day_of_year_out_of_range(self) -> None:
        line1 = SPOT_LINE1[:18] + "02367" + SPOT_LINE1[23:68]
        line1 += str(compute_checksum(line1))
        with pytest.raises(TLEFormatError, match="invalid TLE epoch"):
            TLE.from_lines(line1, SPOT_LINE2)

    def test_swapped_lines(self) -> None:
        with pytest.raises(TLEFormatError):
            TLE.from_lines(SPOT_LINE2, SPOT_LINE1)


class TestSymmetry:
    """Re-encoding a parsed record gives back the original lines."""

    @pytest.mark.parametrize(
        "line1, line2",
        [
            (SPOT_LINE1, SPOT_LINE2),
            ("1 31928U 98067BA  08269.84884916  .00114257  17652-4  13615-3 0  4412",
             "2 31928  51.6257 175.4142 0001703  41.9031 318.2112 16.08175249 68368"),
            ("1 05555U 71086J   12026.96078249 -.00000004  00001-9  01234-9 0  9082",
             "2 05555  74.0161 228.9750 0075476 328.9888  30.6709 12.26882470804545"),
            ("1 34602U 09013A   12187.35117436  .00002472  18981-5  42406-5 0  9995",
             "2 34602  96.5991 210.0210 0006808 112.8142 247.3865 16.06008103193411"),
        ],
    )
    def test_reencode(self, line1: str, line2: str) -> None:
        tle = TLE.from_lines(line1, line2).replace()
        assert tle.line1 == line1
        assert tle.line2 == line2

    def test_from_lines_keeps_text(self) -> None:
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        assert tle.lines == (ISS_LINE1, ISS_LINE2)
        assert str(tle) == f"{ISS_LINE1}\n{ISS_LINE2}"

    def test_epoch_rounding_up_to_midnight_rolls_into_next_year(self) -> None:
        last_instant = Epoch(2008, 12, 31, 23, 59, 59.9999)
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2).replace(epoch=last_instant)
        assert tle.line1[18:32] == "09001.00000000"
        reparsed = TLE.from_lines(tle.line1, tle.line2)
        assert abs(float(reparsed.epoch - tle.epoch)) < 1e-3

    def test_direct_construction_matches_parsed(self) -> None:
        direct = _bug77_tle()
        parsed = TLE.from_lines(
            "1 05555U 71086J   12026.96078249 -.00000004  00001-9  01234-9 0  9082",
            "2 05555  74.0161 228.9750 0075476 328.9888  30.6709 12.26882470804545",
        )
        assert direct.line1 == parsed.line1
        assert direct.line2 == parsed.line2


class TestAlpha5:
    def test_parse_alpha5(self) -> None:
        line1 = "1 A0001U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  292"
        line2 = "2 A0001  51.6416 247.4627 0006703 130.5360 325.0288 15.7212539156353"
        line1 += str(compute_checksum(line1))
        line2 += str(compute_checksum(line2))
        tle = TLE.from_lines(line1, line2)
        assert tle.satellite_number == 100001

    def test_format_alpha5(self) -> None:
        tle = _bug77_tle(satellite_number=339999)
        assert tle.line1[2:7] == "Z9999"
        assert tle.line2[2:7] == "Z9999"

    def test_alpha5_skips_i_and_o(self) -> None:
        assert _bug77_tle(satellite_number=180000).line1[2:7] == "J0000"
        assert _bug77_tle(satellite_number=230000).line1[2:7] == "P0000"

    def test_alpha5_roundtrip(self) -> None:
        for number in (100000, 123456, 339999):
            tle = _bug77_tle(satellite_number=number)
            assert TLE.from_lines(tle.line1, tle.line2).satellite_number == number


class TestParameterRange:
    def test_too_large_second_derivative(self) -> None:
        tle = _bug77_tle(mean_motion_second_derivative=0.99999e11 * NDDOT_TO_RADSEC3)
        with pytest.raises(TLEParameterRangeError) as exc:
            tle.line1
        assert exc.value.satellite_number == 5555
        assert exc.value.parameter == "meanMotionSecondDerivative"

    def test_too_large_bstar(self) -> None:
        with pytest.raises(TLEParameterRangeError) as exc:
            _bug77_tle(bstar=0.99999e11).line1
        assert exc.value.parameter == "B*"

    def test_too_large_eccentricity(self) -> None:
        with pytest.raises(TLEParameterRangeError) as exc:
            _bug77_tle(e=1.0075476).line2
        assert exc.value.parameter == "eccentricity"

    def test_too_large_satellite_number(self) -> None:
        tle = _bug77_tle(satellite_number=1000000)
        with pytest.raises(TLEParameterRangeError) as exc:
            tle.line1
        assert exc.value.satellite_number == 1000000
        assert exc.value.parameter == "satelliteNumber-1"
        with pytest.raises(TLEParameterRangeError) as exc:
            tle.line2
        assert exc.value.parameter == "satelliteNumber-2"

    def test_too_large_element_number(self) -> None:
        with pytest.raises(TLEParameterRangeError) as exc:
            _bug77_tle(element_number=10000).line1
        assert exc.value.parameter == "elementNumber"

    def test_too_large_revolution_number(self) -> None:
        with pytest.raises(TLEParameterRangeError) as exc:
            _bug77_tle(revolution_number=100000).line2
        assert exc.value.parameter == "revolutionNumberAtEpoch"


class TestRecord:
    def test_replace_returns_new_record(self) -> None:
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        faster = tle.replace(mean_motion=tle.mean_motion * 1.01)
        assert faster is not tle
        assert tle.mean_motion_rev_per_day == pytest.approx(15.72125391, rel=1e-15)
        assert faster.mean_motion == pytest.approx(tle.mean_motion * 1.01, rel=1e-15)

    def test_semi_major_axis(self) -> None:
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        n = tle.mean_motion
        assert tle.semi_major_axis == pytest.approx((3.986008e14 / (n * n)) ** (1.0 / 3.0), rel=1e-12)
        assert 6.6e6 < tle.semi_major_axis < 6.8e6

    def test_with_bstar(self) -> None:
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2).with_bstar(1.0e-4)
        assert tle.bstar == 1.0e-4
        assert tle.line1[53:61] == " 10000-3"

    def test_equality(self) -> None:
        a = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        b = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        assert a == b
        assert hash(a) == hash(b)
        assert a != a.with_bstar(0.0)

    def test_equal_records_hash_alike_across_millisecond_rounding(self) -> None:
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        a = tle.replace(epoch=Epoch(2008, 9, 20, 0, 0, 0.0004999999))
        b = tle.replace(epoch=Epoch(2008, 9, 20, 0, 0, 0.0005000001))
        assert round(float(a.epoch._seconds), 3) != round(float(b.epoch._seconds), 3)
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_frozen(self) -> None:
        tle = TLE.from_lines(ISS_LINE1, ISS_LINE2)
        with pytest.raises(AttributeError):
            tle.e = 0.1
