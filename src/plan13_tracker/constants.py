"""
Physical and model constants for Plan13 predictions.

The sidereal and solar reference data only stay accurate for a limited span of
years, so every computation takes a ``ModelConstants`` value instead of reading
module-level globals. Two presets are provided and a YAML file can override
any field.
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
import logging
import math
import os

import yaml  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

CONSTANTS_ENV_VAR = "PLAN13_TRACKER_CONSTANTS"


@dataclass(frozen=True)
class ModelConstants:
    """
    Earth model, gravity field and sidereal/solar reference data.

    Distances are in kilometres, angles in degrees, rates per day unless
    the field name says otherwise.
    """

    # WGS-84 ellipsoid
    earth_radius_km: float = 6378.137
    flattening: float = 1.0 / 298.257224

    # Gravity field
    gravitational_parameter: float = 3.986e5  # km^3/s^2
    j2: float = 1.08263e-3  # 2nd zonal coefficient

    tropical_year: float = 365.2421874

    # GHA Aries at Jan 0.0 of sidereal_epoch_year
    sidereal_epoch_year: int = 2014
    gha_aries_deg: float = 99.5828

    # Sun mean anomaly at the sidereal epoch and its daily rate
    sun_mean_anomaly_deg: float = 356.4105
    sun_mean_anomaly_rate: float = 0.98560028
    sun_equation_of_centre: Tuple[float, float] = field(default=(0.03340, 0.00035))
    sun_inclination_deg: float = 23.4375

    astronomical_unit_km: float = 149597870.7

    def __post_init__(self) -> None:
        """Validate constants that would break the model if wrong."""
        if self.earth_radius_km <= 0:
            raise ValueError(f"earth_radius_km must be > 0, got {self.earth_radius_km}")
        if not 0 <= self.flattening < 1:
            raise ValueError(f"flattening must be in [0, 1), got {self.flattening}")
        if self.gravitational_parameter <= 0:
            raise ValueError(
                f"gravitational_parameter must be > 0, got {self.gravitational_parameter}"
            )
        if self.tropical_year <= 0:
            raise ValueError(f"tropical_year must be > 0, got {self.tropical_year}")
        if len(self.sun_equation_of_centre) != 2:
            raise ValueError(
                "sun_equation_of_centre needs exactly two terms, "
                f"got {self.sun_equation_of_centre!r}"
            )

    @property
    def polar_radius_km(self) -> float:
        return self.earth_radius_km * (1.0 - self.flattening)

    @property
    def ww(self) -> float:
        """Earth's orbital motion, radians per whole day."""
        return 2.0 * math.pi / self.tropical_year

    @property
    def we(self) -> float:
        """Earth's rotation rate, radians per day."""
        return 2.0 * math.pi + self.ww

    @property
    def w0(self) -> float:
        """Earth's rotation rate, radians per second."""
        return self.we / 86400.0

    @property
    def cos_sun_inclination(self) -> float:
        return math.cos(math.radians(self.sun_inclination_deg))

    @property
    def sin_sun_inclination(self) -> float:
        return math.sin(math.radians(self.sun_inclination_deg))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary (YAML friendly)."""
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        result["sun_equation_of_centre"] = list(self.sun_equation_of_centre)
        return result


# Sidereal and solar data valid to about 2030
PLAN13_2014 = ModelConstants()

# Previous data set, valid to about 2015
PLAN13_2000 = ModelConstants(
    sidereal_epoch_year=2000,
    gha_aries_deg=98.9821,
    sun_mean_anomaly_deg=356.0507,
    sun_equation_of_centre=(0.03342, 0.00035),
    sun_inclination_deg=23.4393,
)

DEFAULT_CONSTANTS = PLAN13_2014

PRESETS: Dict[str, ModelConstants] = {
    "plan13_2014": PLAN13_2014,
    "plan13_2000": PLAN13_2000,
}


def constants_from_dict(
    data: Dict[str, Any], base: ModelConstants = DEFAULT_CONSTANTS
) -> ModelConstants:
    """
    Build constants from a mapping of overrides.

    A ``preset`` key selects the base data set by name; all other keys must be
    ``ModelConstants`` fields.

    Raises:
        ValueError: If a key or preset name is unknown
    """
    data = dict(data)
    preset = data.pop("preset", None)
    if preset is not None:
        if preset not in PRESETS:
            raise ValueError(
                f"Unknown constants preset: {preset}. Use one of {sorted(PRESETS)}"
            )
        base = PRESETS[preset]

    known = {f.name for f in fields(ModelConstants)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown model constants: {unknown}")

    if "sun_equation_of_centre" in data:
        data["sun_equation_of_centre"] = tuple(data["sun_equation_of_centre"])
    if "sidereal_epoch_year" in data:
        data["sidereal_epoch_year"] = int(data["sidereal_epoch_year"])

    return replace(base, **data)


def load_model_constants(
    path: Optional[Union[str, Path]] = None, base: ModelConstants = DEFAULT_CONSTANTS
) -> ModelConstants:
    """
    Load model constants from a YAML file.

    Args:
        path: YAML file path. Falls back to the ``PLAN13_TRACKER_CONSTANTS``
            environment variable, then to the built-in defaults.
        base: Constants that the file overrides

    Returns:
        ModelConstants instance

    Raises:
        FileNotFoundError: If the given file does not exist
        ValueError: If the file content is invalid
    """
    if path is None:
        path = os.environ.get(CONSTANTS_ENV_VAR)
        if not path:
            return base

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Constants file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(f"Error parsing constants file {config_path}: {e}")
        raise ValueError(f"Invalid constants file {config_path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Constants file {config_path} must contain a mapping")

    constants = constants_from_dict(data, base)
    logger.info(f"Loaded model constants from {config_path}")
    return constants
