"""
Tests for two-line element set parsing.
"""

import logging
import math

import pytest

from plan13_tracker.constants import ModelConstants
from plan13_tracker.elements import (
    TLEFormatError,
    iter_tle_file,
    load_tle_file,
    parse_tle,
)
from plan13_tracker.timebase import Instant, day_number


class TestParseTle:
    """Tests for parse_tle with real element sets."""

    def test_direct_fields(self, iss_elements) -> None:
        assert iss_elements.name == "ISS (ZARYA)"
        assert iss_elements.catalog_number == 25544
        assert iss_elements.epoch_year == 2024
        assert iss_elements.inclination == pytest.approx(math.radians(51.6461))
        assert iss_elements.raan == pytest.approx(math.radians(339.7939))
        assert iss_elements.eccentricity == pytest.approx(0.000122)
        assert iss_elements.argument_of_perigee == pytest.approx(math.radians(92.8340))
        assert iss_elements.mean_anomaly == pytest.approx(math.radians(267.3124))
        assert iss_elements.mean_motion == pytest.approx(2 * math.pi * 15.49309239)
        assert iss_elements.decay == pytest.approx(2 * math.pi * 0.00002182)
        assert iss_elements.orbit_number == 42638

    def test_epoch(self, iss_elements, sample_elements) -> None:
        assert iss_elements.epoch == Instant(day_number(2024, 1, 1), 0.0)
        assert sample_elements.epoch_year == 2025
        assert sample_elements.epoch.day_number == day_number(2025, 1, 0) + 306
        assert sample_elements.epoch.fraction == pytest.approx(0.22031033)

    def test_derived_constants(self, iss_elements) -> None:
        assert iss_elements.mean_motion_per_second == pytest.approx(
            iss_elements.mean_motion / 86400.0
        )
        # ISS orbits at roughly 420 km
        assert 6750 < iss_elements.semi_major_axis < 6850
        assert iss_elements.semi_minor_axis == pytest.approx(
            iss_elements.semi_major_axis * math.sqrt(1 - 0.000122 ** 2)
        )
        assert iss_elements.decay_factor == pytest.approx(-2.0 * 0.00002182 / (3.0 * 15.49309239))

    def test_kepler_third_law(self, iss_elements) -> None:
        n0 = iss_elements.mean_motion_per_second
        assert iss_elements.semi_major_axis ** 3 * n0 ** 2 == pytest.approx(3.986e5)

    def test_prograde_node_regresses(self, iss_elements) -> None:
        assert iss_elements.node_rate < 0
        # About -5 degrees per day for the ISS
        assert math.degrees(iss_elements.node_rate) == pytest.approx(-5.0, abs=0.3)

    def test_sun_synchronous_node_rate(self, sample_elements) -> None:
        # A sun-synchronous orbit's node follows the Sun: ~0.9856 deg/day
        assert math.degrees(sample_elements.node_rate) == pytest.approx(0.9856, abs=0.03)

    def test_perigee_rate_sign(self, iss_elements, sample_elements) -> None:
        # Below the critical inclination (63.4 deg) the perigee advances
        assert iss_elements.perigee_rate > 0
        assert sample_elements.perigee_rate < 0

    def test_period(self, iss_elements) -> None:
        assert iss_elements.period_minutes == pytest.approx(1440.0 / 15.49309239)

    def test_valid(self, iss_elements) -> None:
        assert iss_elements.is_valid
        assert iss_elements.invalid_fields == ()

    def test_trailing_whitespace_and_newlines(self, iss_tle_lines) -> None:
        line1, line2 = iss_tle_lines
        elements = parse_tle("ISS  \n", line1 + "  \r\n", line2 + "\n")
        assert elements.name == "ISS"
        assert elements.catalog_number == 25544

    def test_negative_decay(self) -> None:
        elements = parse_tle(
            "AO-7",
            "1 07530U 74089B   24001.00000000 -.00000038  00000-0  13860-3 0  9998",
            "2 07530 101.9966 191.1937 0012272 111.9046 248.3390 12.53678704257155",
        )
        assert elements.decay == pytest.approx(2 * math.pi * -0.00000038)
        assert elements.decay_factor > 0

    def test_custom_constants(self, iss_tle_lines) -> None:
        constants = ModelConstants(gravitational_parameter=4.0e5)
        default = parse_tle("ISS", *iss_tle_lines)
        custom = parse_tle("ISS", *iss_tle_lines, constants=constants)
        assert custom.semi_major_axis > default.semi_major_axis


class TestEpochYearPivot:
    """Two-digit epoch years pivot at 58."""

    @pytest.mark.parametrize("two_digit, year", [
        (0, 2000), (24, 2024), (57, 2057), (58, 1958), (99, 1999),
    ])
    def test_pivot(self, tle_builder, two_digit: int, year: int) -> None:
        elements = parse_tle("TEST", *tle_builder(epoch_year=two_digit))
        assert elements.epoch_year == year

    def test_epoch_day_fraction(self, tle_builder) -> None:
        elements = parse_tle("TEST", *tle_builder(epoch_year=24, epoch_day=32.75))
        assert elements.epoch.to_calendar() == (2024, 2, 1, 18, 0, 0)


class TestMalformedTle:
    """Structural errors raise, bad numbers degrade to zero."""

    def test_short_line(self, iss_tle_lines) -> None:
        with pytest.raises(TLEFormatError):
            parse_tle("ISS", iss_tle_lines[0][:60], iss_tle_lines[1])

    def test_short_second_line(self, iss_tle_lines) -> None:
        with pytest.raises(TLEFormatError):
            parse_tle("ISS", iss_tle_lines[0], iss_tle_lines[1][:50])

    def test_wrong_line_number(self, iss_tle_lines) -> None:
        with pytest.raises(TLEFormatError):
            parse_tle("ISS", iss_tle_lines[1], iss_tle_lines[0])

    def test_format_error_is_value_error(self) -> None:
        assert issubclass(TLEFormatError, ValueError)

    def test_unparsable_field_becomes_zero(self, iss_tle_lines, caplog) -> None:
        line1, line2 = iss_tle_lines
        broken = line2[:8] + "  abc.de" + line2[16:]
        with caplog.at_level(logging.WARNING):
            elements = parse_tle("ISS", line1, broken)
        assert elements.inclination == 0.0
        assert elements.invalid_fields == ("inclination",)
        assert not elements.is_valid
        assert "inclination" in caplog.text

    def test_strict_mode_raises(self, iss_tle_lines) -> None:
        line1, line2 = iss_tle_lines
        broken = line2[:8] + "  abc.de" + line2[16:]
        with pytest.raises(TLEFormatError, match="inclination"):
            parse_tle("ISS", line1, broken, strict=True)

    def test_blank_mean_motion(self, iss_tle_lines) -> None:
        line1, line2 = iss_tle_lines
        broken = line2[:52] + " " * 11 + line2[63:]
        elements = parse_tle("ISS", line1, broken)
        assert "mean_motion" in elements.invalid_fields
        assert elements.mean_motion == 0.0
        assert elements.semi_major_axis == 0.0
        assert elements.period_minutes == 0.0


class TestTleFile:
    """Tests for TLE file loading."""

    def test_iter_tle_file(self, sample_tle_file) -> None:
        names = [elements.name for elements in iter_tle_file(sample_tle_file)]
        assert names == ["ISS (ZARYA)", "NOAA 18", "TERRA", "AO-7"]

    def test_load_by_name(self, sample_tle_file) -> None:
        elements = load_tle_file(sample_tle_file, "noaa 18")
        assert elements.catalog_number == 28654

    def test_unknown_satellite(self, sample_tle_file) -> None:
        with pytest.raises(ValueError):
            load_tle_file(sample_tle_file, "NONEXISTENT SATELLITE")

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_tle_file(tmp_path / "nonexistent.tle", "ISS")
