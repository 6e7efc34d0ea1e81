"""
Plan13 orbit propagation.

Given an element set and an instant this module computes the satellite's
position and velocity in the orbital plane, in celestial (inertial)
coordinates and in Earth-fixed (geocentric) coordinates.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple, Union
import logging
import math

import numpy as np

from .constants import DEFAULT_CONSTANTS, ModelConstants
from .elements import OrbitalElements, load_tle_file, parse_tle
from .frames import footprint_points, greenwich_hour_angle, rotate_to_earth_fixed
from .observer import LookAngles, Observer, look_angles, range_rate
from .timebase import Instant
from .utils import wrap_longitude

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi
KEPLER_TOLERANCE = 1e-5  # radians
KEPLER_MAX_ITERATIONS = 50
SPEED_OF_LIGHT_KM_S = 299792.458
GROUND_TRACK_EPSILON_DAYS = 1e-9


class KeplerConvergenceError(RuntimeError):
    """Raised when the eccentric anomaly iteration does not converge."""

    def __init__(self, mean_anomaly: float, eccentricity: float, iterations: int) -> None:
        self.mean_anomaly = mean_anomaly
        self.eccentricity = eccentricity
        self.iterations = iterations
        super().__init__(
            f"Kepler's equation did not converge after {iterations} iterations "
            f"(M={mean_anomaly:.6f} rad, e={eccentricity:.7f})"
        )


class KeplerSolution(NamedTuple):
    """
    Result of solving Kepler's equation.

    ``cos_ea``, ``sin_ea`` and ``denominator`` (1 - e*cos E) are the values of
    the last iteration, taken before its final correction.
    """

    eccentric_anomaly: float
    cos_ea: float
    sin_ea: float
    denominator: float
    iterations: int


def solve_kepler(
    mean_anomaly: float,
    eccentricity: float,
    tolerance: float = KEPLER_TOLERANCE,
    max_iterations: int = KEPLER_MAX_ITERATIONS,
) -> KeplerSolution:
    """
    Solve E - e*sin(E) = M for E by Newton-Raphson, starting at E = M.

    Raises:
        KeplerConvergenceError: If no step below ``tolerance`` happens
            within ``max_iterations``
    """
    ea = mean_anomaly
    for iteration in range(1, max_iterations + 1):
        c_ea = math.cos(ea)
        s_ea = math.sin(ea)
        dnom = 1.0 - eccentricity * c_ea
        d = (ea - eccentricity * s_ea - mean_anomaly) / dnom
        ea -= d
        if abs(d) < tolerance:
            return KeplerSolution(ea, c_ea, s_ea, dnom, iteration)

    logger.error(
        f"Kepler solver failed for M={mean_anomaly}, e={eccentricity} "
        f"after {max_iterations} iterations"
    )
    raise KeplerConvergenceError(mean_anomaly, eccentricity, max_iterations)


@dataclass(frozen=True, eq=False)
class SatelliteState:
    """
    Satellite position and velocity at one instant.

    Positions are in km, velocities in km/s. ``celestial_*`` vectors are
    inertial, ``position``/``velocity`` are Earth-fixed (geocentric).
    """

    instant: Instant
    celestial_position: np.ndarray
    celestial_velocity: np.ndarray
    position: np.ndarray
    velocity: np.ndarray
    radius: float
    orbit_number: int
    mean_anomaly: float
    eccentric_anomaly: float

    def __post_init__(self) -> None:
        for vector in (self.celestial_position, self.celestial_velocity, self.position, self.velocity):
            vector.setflags(write=False)


def predict(
    elements: OrbitalElements,
    instant: Instant,
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> SatelliteState:
    """
    Propagate an element set to an instant.

    Args:
        elements: Parsed element set
        instant: Time of the prediction
        constants: Model constants (Earth rotation, sidereal data)

    Returns:
        SatelliteState for the instant

    Raises:
        KeplerConvergenceError: If the eccentric anomaly cannot be found
    """
    ec = elements.eccentricity

    # Elapsed days since epoch and linear drag terms
    t = instant.days_since(elements.epoch)
    dt = elements.decay_factor * t / 2.0
    kd = 1.0 + 4.0 * dt
    kdp = 1.0 - 7.0 * dt

    # Mean anomaly, whole revolutions stripped into the orbit count
    m = elements.mean_anomaly + elements.mean_motion * t * (1.0 - 3.0 * dt)
    revolutions = math.floor(m / TWO_PI)
    m -= revolutions * TWO_PI
    orbit_number = elements.orbit_number + int(revolutions)

    kepler = solve_kepler(m, ec)
    c_ea, s_ea, dnom = kepler.cos_ea, kepler.sin_ea, kepler.denominator

    a = elements.semi_major_axis * kd
    b = elements.semi_minor_axis * kd
    radius = a * dnom

    # Position and velocity in the plane of the ellipse
    n0 = elements.mean_motion_per_second
    sx = a * (c_ea - ec)
    sy = b * s_ea
    vx = -a * s_ea / dnom * n0
    vy = b * c_ea / dnom * n0

    ap = elements.argument_of_perigee + elements.perigee_rate * t * kdp
    cw, sw = math.cos(ap), math.sin(ap)
    raan = elements.raan + elements.node_rate * t * kdp
    cq, sq = math.cos(raan), math.sin(raan)
    ci, si = math.cos(elements.inclination), math.sin(elements.inclination)

    # Plane -> celestial rotation, [C] = [RAAN][IN][AP]
    cx = (cw * cq - sw * ci * sq, -sw * cq - cw * ci * sq)
    cy = (cw * sq + sw * ci * cq, -sw * sq + cw * ci * cq)
    cz = (sw * si, cw * si)

    celestial_position = np.array([
        sx * cx[0] + sy * cx[1],
        sx * cy[0] + sy * cy[1],
        sx * cz[0] + sy * cz[1],
    ])
    celestial_velocity = np.array([
        vx * cx[0] + vy * cx[1],
        vx * cy[0] + vy * cy[1],
        vx * cz[0] + vy * cz[1],
    ])

    gha = greenwich_hour_angle(instant, constants)

    logger.debug(
        f"{elements.name} at {instant}: T={t:.6f} d, M={m:.6f}, "
        f"E={kepler.eccentric_anomaly:.6f} ({kepler.iterations} iterations)"
    )

    return SatelliteState(
        instant=instant,
        celestial_position=celestial_position,
        celestial_velocity=celestial_velocity,
        position=rotate_to_earth_fixed(celestial_position, gha),
        velocity=rotate_to_earth_fixed(celestial_velocity, gha),
        radius=radius,
        orbit_number=orbit_number,
        mean_anomaly=m,
        eccentric_anomaly=kepler.eccentric_anomaly,
    )


def geographic_position(state: SatelliteState) -> Tuple[float, float]:
    """
    Sub-satellite point as (latitude, longitude) in degrees.

    Latitude is geocentric; longitude is in [-180, 180).
    """
    # Degenerate element sets (zero mean motion) give a zero radius
    if not state.radius:
        return 0.0, 0.0
    ratio = max(-1.0, min(1.0, state.position[2] / state.radius))
    latitude = math.degrees(math.asin(ratio))
    longitude = wrap_longitude(math.degrees(math.atan2(state.position[1], state.position[0])))
    return latitude, longitude


class Satellite:
    """
    A tracked satellite holding its latest prediction.

    ``predict`` overwrites the stored state in place, so one instance must not
    be shared between threads without external locking. The module-level
    ``predict`` function returns fresh values and has no such restriction.
    """

    def __init__(
        self, elements: OrbitalElements, constants: ModelConstants = DEFAULT_CONSTANTS
    ) -> None:
        self.elements = elements
        self.constants = constants
        self._state: Optional[SatelliteState] = None

    @classmethod
    def from_tle(
        cls,
        name: str,
        line1: str,
        line2: str,
        constants: ModelConstants = DEFAULT_CONSTANTS,
    ) -> "Satellite":
        return cls(parse_tle(name, line1, line2, constants), constants)

    @classmethod
    def from_tle_file(
        cls,
        tle_file_path: Union[str, Path],
        satellite_name: str,
        constants: ModelConstants = DEFAULT_CONSTANTS,
    ) -> "Satellite":
        """
        Create a Satellite from a three-line TLE file.

        Raises:
            FileNotFoundError: If TLE file doesn't exist
            ValueError: If satellite not found in TLE file
        """
        return cls(load_tle_file(tle_file_path, satellite_name, constants), constants)

    @property
    def name(self) -> str:
        return self.elements.name

    @property
    def state(self) -> SatelliteState:
        """Latest prediction; raises RuntimeError before the first one."""
        if self._state is None:
            raise RuntimeError(f"No prediction made yet for {self.name}")
        return self._state

    def predict(self, instant: Instant) -> SatelliteState:
        """Propagate to ``instant``, store and return the new state."""
        self._state = predict(self.elements, instant, self.constants)
        return self._state

    def geographic_position(self) -> Tuple[float, float]:
        return geographic_position(self.state)

    def look_angles(self, observer: Observer) -> LookAngles:
        return look_angles(observer, self.state.position)

    def range_rate(self, observer: Observer) -> float:
        """Range rate in km/s relative to the observer (positive receding)."""
        return range_rate(observer, self.state.position, self.state.velocity)

    def doppler(self, frequency: float, observer: Observer, uplink: bool = False) -> float:
        """
        Doppler-corrected frequency.

        Args:
            frequency: Nominal frequency (any unit)
            observer: Ground station
            uplink: True for the frequency to transmit, False for the one
                to expect on reception

        Returns:
            Corrected frequency in the unit of ``frequency``
        """
        shift = -frequency * self.range_rate(observer) / SPEED_OF_LIGHT_KM_S
        if uplink:
            return frequency - shift
        return frequency + shift

    def footprint(self, num_points: int = 32) -> List[Tuple[float, float]]:
        """
        Edge of the area from which the satellite is above the horizon.

        Raises:
            ValueError: If the prediction has no radius (zero mean motion)
        """
        state = self.state
        if state.radius <= 0:
            raise ValueError(f"Cannot compute footprint for {self.name}: orbit radius is zero")
        radius_ratio = min(1.0, self.constants.earth_radius_km / state.radius)
        latitude, longitude = geographic_position(state)
        return footprint_points(latitude, longitude, math.acos(radius_ratio), num_points)

    def ground_track(
        self, start: Instant, stop: Instant, step_days: float
    ) -> List[Tuple[Instant, float, float]]:
        """
        Sub-satellite points from ``start`` to ``stop`` inclusive.

        Does not change the stored state.

        Returns:
            List of tuples: (instant, latitude, longitude)
        """
        if step_days <= 0:
            raise ValueError(f"step_days must be > 0, got {step_days}")

        track = []
        index = 0
        current = start
        while current.days_since(stop) <= GROUND_TRACK_EPSILON_DAYS:
            latitude, longitude = geographic_position(
                predict(self.elements, current, self.constants)
            )
            track.append((current, latitude, longitude))
            index += 1
            current = start.advance(index * step_days)

        logger.info(f"Generated ground track with {len(track)} points for {self.name}")
        return track

    def __repr__(self) -> str:
        return (
            f"Satellite(name='{self.name}', "
            f"period={self.elements.period_minutes:.2f} min)"
        )
