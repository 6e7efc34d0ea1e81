"""
Ground station reference frame and look-angle projection.

An observer's local up/east/north unit vectors and its Earth-fixed position
are derived once from geodetic coordinates using an oblate-spheroid Earth.
Any Earth-fixed position can then be turned into elevation and azimuth.
"""

from dataclasses import dataclass, field
from typing import NamedTuple
import logging
import math

import numpy as np

from .constants import DEFAULT_CONSTANTS, ModelConstants
from .utils import validate_coordinates

logger = logging.getLogger(__name__)


class LookAngles(NamedTuple):
    """Topocentric direction in degrees."""

    elevation: float  # -90 to +90
    azimuth: float  # 0 to 360, clockwise from north


@dataclass(frozen=True, eq=False)
class Observer:
    """
    A fixed ground station.

    Vectors are Earth-fixed: ``position`` in km, ``velocity`` in km/s (due to
    Earth's rotation), ``up``/``east``/``north`` unit vectors. Instances are
    frozen and the vectors are read-only.
    """

    name: str
    latitude: float  # degrees, -90 to +90
    longitude: float  # degrees, -180 to +180
    height: float = 0.0  # metres above the ellipsoid
    constants: ModelConstants = field(default=DEFAULT_CONSTANTS, repr=False)

    up: np.ndarray = field(init=False, repr=False)
    east: np.ndarray = field(init=False, repr=False)
    north: np.ndarray = field(init=False, repr=False)
    position: np.ndarray = field(init=False, repr=False)
    velocity: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not validate_coordinates(self.latitude, self.longitude):
            raise ValueError(
                f"Invalid observer coordinates for '{self.name}': "
                f"({self.latitude}, {self.longitude})"
            )

        la = math.radians(self.latitude)
        lo = math.radians(self.longitude)
        ht = self.height / 1000.0
        cl, sl = math.cos(la), math.sin(la)
        co, so = math.cos(lo), math.sin(lo)

        up = np.array([cl * co, cl * so, sl])
        east = np.array([-so, co, 0.0])
        north = np.array([-sl * co, -sl * so, cl])

        xx = self.constants.earth_radius_km ** 2
        zz = self.constants.polar_radius_km ** 2
        d = math.sqrt(xx * cl * cl + zz * sl * sl)
        rx = xx / d + ht
        rz = zz / d + ht

        position = np.array([rx * up[0], rx * up[1], rz * up[2]])
        w0 = self.constants.w0
        velocity = np.array([-position[1] * w0, position[0] * w0, 0.0])

        derived = {"up": up, "east": east, "north": north, "position": position, "velocity": velocity}
        for attribute, vector in derived.items():
            vector.setflags(write=False)
            object.__setattr__(self, attribute, vector)

        logger.debug(f"Observer {self.name} at {position} km")


def line_of_sight(observer: Observer, position: np.ndarray) -> np.ndarray:
    """Unit vector from the observer towards an Earth-fixed position."""
    r = np.asarray(position, dtype=float) - observer.position
    return r / np.linalg.norm(r)


def look_angles(observer: Observer, position: np.ndarray) -> LookAngles:
    """
    Elevation and azimuth of an Earth-fixed position (km) seen by an observer.
    """
    r = line_of_sight(observer, position)
    u = float(np.dot(r, observer.up))
    e = float(np.dot(r, observer.east))
    n = float(np.dot(r, observer.north))

    azimuth = math.degrees(math.atan2(e, n))
    if azimuth < 0.0:
        azimuth += 360.0
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, u))))
    return LookAngles(elevation, azimuth)


def slant_range(observer: Observer, position: np.ndarray) -> float:
    """Distance in km from the observer to an Earth-fixed position."""
    return float(np.linalg.norm(np.asarray(position, dtype=float) - observer.position))


def range_rate(observer: Observer, position: np.ndarray, velocity: np.ndarray) -> float:
    """
    Rate of change of the observer-target distance in km/s.

    Positive while the target recedes.
    """
    r = line_of_sight(observer, position)
    return float(np.dot(np.asarray(velocity, dtype=float) - observer.velocity, r))
