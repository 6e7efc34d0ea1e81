"""
Simplified solar ephemeris.

The Sun's direction comes from its mean longitude plus two equation-of-centre
terms and a fixed obliquity, which is good enough for pointing and daylight
checks over the span the sidereal/solar constants are valid for.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging
import math

import numpy as np

from .constants import DEFAULT_CONSTANTS, ModelConstants
from .frames import footprint_points, greenwich_hour_angle, rotate_to_earth_fixed, sidereal_epoch
from .observer import LookAngles, Observer, look_angles
from .timebase import Instant
from .utils import wrap_longitude

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SunState:
    """
    Sun unit direction at one instant.

    ``celestial_direction`` is equatorial (inertial), ``direction`` is
    Earth-fixed.
    """

    instant: Instant
    celestial_direction: np.ndarray
    direction: np.ndarray

    def __post_init__(self) -> None:
        self.celestial_direction.setflags(write=False)
        self.direction.setflags(write=False)


def predict_sun(
    instant: Instant, constants: ModelConstants = DEFAULT_CONSTANTS
) -> SunState:
    """
    Compute the Sun's direction at an instant.

    Args:
        instant: Time of the prediction
        constants: Model constants (sidereal and solar data)

    Returns:
        SunState for the instant
    """
    t = instant.days_since(sidereal_epoch(constants))

    # Mean RA and mean anomaly of the Sun, then its true longitude
    mrse = math.radians(constants.gha_aries_deg) + t * constants.ww + math.pi
    mase = math.radians(constants.sun_mean_anomaly_deg + t * constants.sun_mean_anomaly_rate)
    eqc1, eqc2 = constants.sun_equation_of_centre
    tas = mrse + eqc1 * math.sin(mase) + eqc2 * math.sin(2.0 * mase)

    c, s = math.cos(tas), math.sin(tas)
    celestial = np.array([
        c,
        s * constants.cos_sun_inclination,
        s * constants.sin_sun_inclination,
    ])

    return SunState(
        instant=instant,
        celestial_direction=celestial,
        direction=rotate_to_earth_fixed(celestial, greenwich_hour_angle(instant, constants)),
    )


def subsolar_point(state: SunState) -> Tuple[float, float]:
    """Point where the Sun is at the zenith, (latitude, longitude) in degrees."""
    h = state.direction
    latitude = math.degrees(math.asin(max(-1.0, min(1.0, h[2]))))
    longitude = wrap_longitude(math.degrees(math.atan2(h[1], h[0])))
    return latitude, longitude


def sun_look_angles(
    state: SunState,
    observer: Observer,
    constants: ModelConstants = DEFAULT_CONSTANTS,
    legacy: bool = False,
) -> LookAngles:
    """
    Elevation and azimuth of the Sun seen by an observer.

    The Sun is placed one astronomical unit away along its direction before
    the observer's position is subtracted.

    With ``legacy=True`` the unit direction vector is used as if it were a
    position in km, as classic Plan13 implementations do. Its results have no
    physical meaning (the observer, thousands of km from the Earth's centre,
    dominates the difference); the option only exists to reproduce old output.
    """
    if legacy:
        logger.warning("Using legacy Sun look angles; results are not physically meaningful")
        return look_angles(observer, state.direction)
    return look_angles(observer, state.direction * constants.astronomical_unit_km)


class Sun:
    """
    The Sun, holding its latest prediction.

    ``predict`` overwrites the stored state in place; use one instance per
    thread or lock around it.
    """

    def __init__(self, constants: ModelConstants = DEFAULT_CONSTANTS) -> None:
        self.constants = constants
        self._state: Optional[SunState] = None

    @property
    def state(self) -> SunState:
        """Latest prediction; raises RuntimeError before the first one."""
        if self._state is None:
            raise RuntimeError("No Sun prediction made yet")
        return self._state

    def predict(self, instant: Instant) -> SunState:
        """Compute, store and return the Sun's state at ``instant``."""
        self._state = predict_sun(instant, self.constants)
        return self._state

    def subsolar_point(self) -> Tuple[float, float]:
        return subsolar_point(self.state)

    def look_angles(self, observer: Observer, legacy: bool = False) -> LookAngles:
        return sun_look_angles(self.state, observer, self.constants, legacy)

    def is_above_horizon(self, observer: Observer, min_elevation: float = 0.0) -> bool:
        """True when the Sun's elevation at the observer is at least ``min_elevation``."""
        return self.look_angles(observer).elevation >= min_elevation

    def footprint(self, num_points: int = 32) -> List[Tuple[float, float]]:
        """
        Day/night terminator as a circle around the sub-solar point.

        The Sun is taken to be one astronomical unit away, which keeps the
        circle radius just under 90 degrees.
        """
        radius = math.acos(self.constants.earth_radius_km / self.constants.astronomical_unit_km)
        latitude, longitude = self.subsolar_point()
        return footprint_points(latitude, longitude, radius, num_points)
