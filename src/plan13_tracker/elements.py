"""
Two-line element set parsing.

This module extracts the fixed-column fields of a TLE and derives the
secular constants that the Plan13 propagator needs. Derived values are
computed once, when the element set is parsed.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, Tuple, Union
import logging
import math

from .constants import DEFAULT_CONSTANTS, ModelConstants
from .timebase import Instant, day_number

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69

# 0-based column slices of the fields Plan13 uses
LINE1_FIELDS: Dict[str, Tuple[int, int]] = {
    "epoch_year": (18, 20),
    "epoch_day": (20, 32),
    "decay": (33, 43),
}
LINE2_FIELDS: Dict[str, Tuple[int, int]] = {
    "catalog_number": (2, 7),
    "inclination": (8, 16),
    "raan": (17, 25),
    "eccentricity": (26, 33),
    "argument_of_perigee": (34, 42),
    "mean_anomaly": (43, 51),
    "mean_motion": (52, 63),
    "orbit_number": (63, 68),
}

# Two-digit epoch years below this are 20xx, the rest 19xx
EPOCH_YEAR_PIVOT = 58


class TLEFormatError(ValueError):
    """Raised when element set text does not have the expected layout."""


@dataclass(frozen=True)
class OrbitalElements:
    """
    Orbital elements of one satellite plus derived secular constants.

    Angles are in radians, rates per day, distances in kilometres.
    """

    name: str
    catalog_number: int
    epoch_year: int
    epoch: Instant
    inclination: float
    raan: float
    eccentricity: float
    argument_of_perigee: float
    mean_anomaly: float
    mean_motion: float  # rad/day
    decay: float  # rad/day^2
    orbit_number: int

    # Derived
    mean_motion_per_second: float
    semi_major_axis: float
    semi_minor_axis: float
    perturbation_coefficient: float
    node_rate: float  # RAAN regression, rad/day
    perigee_rate: float  # argument of perigee rotation, rad/day
    decay_factor: float

    invalid_fields: Tuple[str, ...] = field(default=())

    @property
    def is_valid(self) -> bool:
        """True when every numeric field of the element set parsed."""
        return not self.invalid_fields

    @property
    def period_minutes(self) -> float:
        """Orbital period in minutes (0 when the mean motion is unknown)."""
        if self.mean_motion <= 0:
            return 0.0
        return 2.0 * math.pi / self.mean_motion * 1440.0


def _clean_line(line: str, number: int) -> str:
    line = line.rstrip("\r\n").rstrip()
    if len(line) < TLE_LINE_LENGTH:
        raise TLEFormatError(
            f"TLE line {number} must be {TLE_LINE_LENGTH} columns, got {len(line)}: {line!r}"
        )
    if line[0] != str(number):
        raise TLEFormatError(f"TLE line {number} must start with '{number}': {line!r}")
    return line


def _read_field(
    line: str,
    columns: Tuple[int, int],
    name: str,
    convert: Callable[[str], Union[int, float]],
    invalid: list,
) -> Union[int, float]:
    text = line[columns[0]:columns[1]].strip()
    try:
        return convert(text)
    except ValueError:
        invalid.append(name)
        return convert("0")


def parse_tle(
    name: str,
    line1: str,
    line2: str,
    constants: ModelConstants = DEFAULT_CONSTANTS,
    strict: bool = False,
) -> OrbitalElements:
    """
    Parse a two-line element set.

    Args:
        name: Satellite name (kept as given, not parsed)
        line1: First element line
        line2: Second element line
        constants: Model constants for the derived quantities
        strict: Raise instead of substituting zero for unparsable fields

    Returns:
        OrbitalElements instance

    Raises:
        TLEFormatError: If a line is too short or has the wrong line number,
            or (strict mode) if a numeric field does not parse
    """
    line1 = _clean_line(line1, 1)
    line2 = _clean_line(line2, 2)

    invalid: list = []

    def read(line: str, layout: Dict[str, Tuple[int, int]], key: str, convert=float):
        return _read_field(line, layout[key], key, convert, invalid)

    catalog_number = read(line2, LINE2_FIELDS, "catalog_number", int)
    epoch_year = read(line1, LINE1_FIELDS, "epoch_year", int)
    if epoch_year < EPOCH_YEAR_PIVOT:
        epoch_year += 2000
    else:
        epoch_year += 1900

    epoch_day = read(line1, LINE1_FIELDS, "epoch_day")
    # rev/day^2 -> rad/day^2
    decay = 2.0 * math.pi * read(line1, LINE1_FIELDS, "decay")

    inclination = math.radians(read(line2, LINE2_FIELDS, "inclination"))
    raan = math.radians(read(line2, LINE2_FIELDS, "raan"))
    eccentricity = read(line2, LINE2_FIELDS, "eccentricity") / 1e7
    argument_of_perigee = math.radians(read(line2, LINE2_FIELDS, "argument_of_perigee"))
    mean_anomaly = math.radians(read(line2, LINE2_FIELDS, "mean_anomaly"))
    mean_motion = 2.0 * math.pi * read(line2, LINE2_FIELDS, "mean_motion")
    orbit_number = read(line2, LINE2_FIELDS, "orbit_number", int)

    if invalid:
        if strict:
            raise TLEFormatError(f"Unparsable TLE fields for {name.strip()}: {invalid}")
        logger.warning(
            f"TLE for '{name.strip()}' has unparsable fields {invalid}; "
            "they were set to zero and predictions will be degraded"
        )

    whole_days = int(epoch_day)
    epoch = Instant(day_number(epoch_year, 1, 0) + whole_days, epoch_day - whole_days)

    n0 = mean_motion / 86400.0
    if n0 > 0:
        a0 = (constants.gravitational_parameter / (n0 * n0)) ** (1.0 / 3.0)
        b0 = a0 * math.sqrt(1.0 - eccentricity * eccentricity)
        pc = constants.earth_radius_km * a0 / (b0 * b0)
        pc = 1.5 * constants.j2 * pc * pc * mean_motion
        decay_factor = -2.0 * decay / (3.0 * mean_motion)
    else:
        a0 = b0 = pc = decay_factor = 0.0

    ci = math.cos(inclination)

    return OrbitalElements(
        name=name.strip(),
        catalog_number=catalog_number,
        epoch_year=epoch_year,
        epoch=epoch,
        inclination=inclination,
        raan=raan,
        eccentricity=eccentricity,
        argument_of_perigee=argument_of_perigee,
        mean_anomaly=mean_anomaly,
        mean_motion=mean_motion,
        decay=decay,
        orbit_number=orbit_number,
        mean_motion_per_second=n0,
        semi_major_axis=a0,
        semi_minor_axis=b0,
        perturbation_coefficient=pc,
        node_rate=-pc * ci,
        perigee_rate=pc * (5.0 * ci * ci - 1.0) / 2.0,
        decay_factor=decay_factor,
        invalid_fields=tuple(invalid),
    )


def iter_tle_file(
    tle_file_path: Union[str, Path], constants: ModelConstants = DEFAULT_CONSTANTS
) -> Iterator[OrbitalElements]:
    """
    Yield every element set of a three-line (name, line 1, line 2) TLE file.

    Raises:
        FileNotFoundError: If the TLE file doesn't exist
    """
    tle_path = Path(tle_file_path)
    if not tle_path.exists():
        raise FileNotFoundError(f"TLE file not found: {tle_file_path}")

    with open(tle_path, 'r') as f:
        lines = [line.rstrip() for line in f if line.strip()]

    for i in range(0, len(lines) - 2, 3):
        yield parse_tle(lines[i], lines[i + 1], lines[i + 2], constants)


def load_tle_file(
    tle_file_path: Union[str, Path],
    satellite_name: str,
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> OrbitalElements:
    """
    Load one satellite's element set from a TLE file.

    Args:
        tle_file_path: Path to TLE file
        satellite_name: Name (or part of it) of the satellite, case-insensitive
        constants: Model constants for the derived quantities

    Returns:
        OrbitalElements instance

    Raises:
        FileNotFoundError: If TLE file doesn't exist
        ValueError: If satellite not found in TLE file
    """
    for elements in iter_tle_file(tle_file_path, constants):
        if satellite_name.upper() in elements.name.upper():
            logger.info(f"Loaded elements for {elements.name} from {tle_file_path}")
            return elements

    raise ValueError(f"Satellite '{satellite_name}' not found in TLE file")
