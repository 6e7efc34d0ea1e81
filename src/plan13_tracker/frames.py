"""
Reference frame helpers shared by the satellite and Sun models.
"""

from typing import List, Tuple
import math

import numpy as np

from .constants import DEFAULT_CONSTANTS, ModelConstants
from .timebase import Instant, day_number
from .utils import wrap_longitude


def sidereal_epoch(constants: ModelConstants = DEFAULT_CONSTANTS) -> Instant:
    """Jan 0.0 of the sidereal reference year."""
    return Instant(day_number(constants.sidereal_epoch_year, 1, 0))


def greenwich_hour_angle(
    instant: Instant, constants: ModelConstants = DEFAULT_CONSTANTS
) -> float:
    """
    Greenwich hour angle of Aries in radians (not reduced modulo 2*pi).
    """
    elapsed = instant.days_since(sidereal_epoch(constants))
    return math.radians(constants.gha_aries_deg) + elapsed * constants.we


def rotate_to_earth_fixed(vector: np.ndarray, gha: float) -> np.ndarray:
    """Rotate a celestial vector about the z axis by -gha."""
    cg = math.cos(-gha)
    sg = math.sin(-gha)
    return np.array([
        vector[0] * cg - vector[1] * sg,
        vector[0] * sg + vector[1] * cg,
        vector[2],
    ])


def footprint_points(
    latitude: float, longitude: float, angular_radius: float, num_points: int = 32
) -> List[Tuple[float, float]]:
    """
    Points of a small circle on the Earth's surface.

    Args:
        latitude: Circle centre latitude in degrees
        longitude: Circle centre longitude in degrees
        angular_radius: Circle radius as an Earth-centred angle in radians
        num_points: Number of points around the circle

    Returns:
        List of (latitude, longitude) tuples in degrees
    """
    if num_points <= 0:
        raise ValueError(f"num_points must be > 0, got {num_points}")

    sra = math.sin(angular_radius)
    cra = math.cos(angular_radius)
    cla = math.cos(math.radians(latitude))
    sla = math.sin(math.radians(latitude))
    clo = math.cos(math.radians(longitude))
    slo = math.sin(math.radians(longitude))

    points = []
    for i in range(num_points):
        a = 2.0 * math.pi * i / num_points
        # Circle centred on lat 0, lon 0 on a unit sphere
        xfp = cra
        yfp = sra * math.sin(a)
        zfp = sra * math.cos(a)

        # Rotate up by latitude, then around by longitude
        x = xfp * cla - zfp * sla
        z = xfp * sla + zfp * cla
        xfp = x * clo - yfp * slo
        yfp = x * slo + yfp * clo

        lat = math.degrees(math.asin(max(-1.0, min(1.0, z))))
        lon = wrap_longitude(math.degrees(math.atan2(yfp, xfp)))
        points.append((lat, lon))

    return points
