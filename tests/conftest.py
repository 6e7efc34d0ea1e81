"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- Custom markers for test categorization
- Shared fixtures for common test setup (element sets, observers, instants)
- A builder for synthetic element sets with exact field values
"""

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Tuple

import pytest
from _pytest.config import Config

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

CONFIG_DIR = Path(__file__).parent.parent / "config"

SAMPLE_TLE_DATA = """ISS (ZARYA)
1 25544U 98067A   24001.00000000  .00002182  00000-0  40864-4 0  9990
2 25544  51.6461 339.7939 0001220  92.8340 267.3124 15.49309239426382
NOAA 18
1 28654U 05018A   24001.00000000  .00000012  00000-0  28110-4 0  9997
2 28654  99.0581 161.3857 0013414  73.9446 286.3932 14.12501637967188
TERRA
1 25994U 99068A   24001.00000000  .00000023  00000-0  42979-4 0  9991
2 25994  98.2022  10.3559 0001378  83.7123 276.4313 14.57107527260649

AO-7
1 07530U 74089B   24001.00000000 -.00000038  00000-0  13860-3 0  9998
2 07530 101.9966 191.1937 0012272 111.9046 248.3390 12.53678704257155
"""


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# =============================================================================
# TLE HELPERS
# =============================================================================


def tle_checksum(line: str) -> int:
    """Modulo-10 checksum of the first 68 columns (digits, '-' counts as 1)."""
    total = 0
    for char in line[:68]:
        if char.isdigit():
            total += int(char)
        elif char == "-":
            total += 1
    return total % 10


def _format_decay(decay: float) -> str:
    text = f"{decay:.8f}".replace("0.", ".", 1)
    return text.rjust(10)


def build_tle(
    catalog: int = 99999,
    epoch_year: int = 24,
    epoch_day: float = 1.5,
    decay: float = 0.0,
    inclination: float = 0.0,
    raan: float = 0.0,
    eccentricity: float = 0.0,
    argument_of_perigee: float = 0.0,
    mean_anomaly: float = 0.0,
    mean_motion: float = 15.0,
    orbit_number: int = 1000,
) -> Tuple[str, str]:
    """Build a pair of 69-column element lines with the given values."""
    line1 = (
        f"1 {catalog:05d}U 24001A   {epoch_year:02d}{epoch_day:012.8f} "
        f"{_format_decay(decay)}  00000-0  00000-0 0  999"
    )
    line1 += str(tle_checksum(line1))
    line2 = (
        f"2 {catalog:05d} {inclination:8.4f} {raan:8.4f} "
        f"{int(round(eccentricity * 1e7)):07d} {argument_of_perigee:8.4f} "
        f"{mean_anomaly:8.4f} {mean_motion:11.8f}{orbit_number:5d}"
    )
    line2 += str(tle_checksum(line2))
    return line1, line2


# =============================================================================
# FIXTURES - Common test setup
# =============================================================================


@pytest.fixture
def tle_builder() -> Callable[..., Tuple[str, str]]:
    """Factory for synthetic element lines."""
    return build_tle


@pytest.fixture
def sample_tle_lines() -> Tuple[str, str]:
    """Sample TLE data for ICEYE-X44 (sun-synchronous LEO)."""
    return (
        "1 62707U 25009DC  25306.22031033  .00004207  00000+0  39848-3 0  9995",
        "2 62707  97.7269  23.9854 0002193 135.9671 224.1724 14.94137357 66022",
    )


@pytest.fixture
def iss_tle_lines() -> Tuple[str, str]:
    """Sample TLE data for the ISS."""
    return (
        "1 25544U 98067A   24001.00000000  .00002182  00000-0  40864-4 0  9990",
        "2 25544  51.6461 339.7939 0001220  92.8340 267.3124 15.49309239426382",
    )


@pytest.fixture
def sample_elements(sample_tle_lines: Tuple[str, str]) -> Any:
    from plan13_tracker.elements import parse_tle

    return parse_tle("ICEYE-X44", *sample_tle_lines)


@pytest.fixture
def iss_elements(iss_tle_lines: Tuple[str, str]) -> Any:
    from plan13_tracker.elements import parse_tle

    return parse_tle("ISS (ZARYA)", *iss_tle_lines)


@pytest.fixture
def sample_tle_file(tmp_path: Path) -> Path:
    """Temporary three-line TLE file with a few satellites."""
    tle_file = tmp_path / "sample.tle"
    tle_file.write_text(SAMPLE_TLE_DATA)
    return tle_file


@pytest.fixture
def sample_observer() -> Any:
    """Ground station in California."""
    from plan13_tracker.observer import Observer

    return Observer(name="Santa Cruz", latitude=37.0, longitude=-122.0, height=100.0)


@pytest.fixture
def base_instant() -> Any:
    """Standard base instant for tests (2024-01-01 12:00:00 UTC)."""
    from plan13_tracker.timebase import Instant

    return Instant.from_calendar(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def config_dir() -> Path:
    return CONFIG_DIR


@pytest.fixture
def restore_root_logger():
    """Undo logging configuration done by a test."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)
