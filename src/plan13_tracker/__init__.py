"""
Plan13 Satellite Tracker

Satellite and Sun position prediction with the Plan13 algorithm, driven by
two-line element sets, for antenna pointing and ground-track display.
"""

from .constants import DEFAULT_CONSTANTS, ModelConstants, load_model_constants
from .elements import OrbitalElements, TLEFormatError, load_tle_file, parse_tle
from .observer import LookAngles, Observer, look_angles
from .propagator import (
    KeplerConvergenceError,
    Satellite,
    SatelliteState,
    geographic_position,
    predict,
    solve_kepler,
)
from .sun import Sun, SunState, predict_sun
from .timebase import Instant

__version__ = "0.1.0"
__author__ = "Plan13 Tracker Team"

__all__ = [
    "DEFAULT_CONSTANTS",
    "ModelConstants",
    "load_model_constants",
    "OrbitalElements",
    "TLEFormatError",
    "load_tle_file",
    "parse_tle",
    "LookAngles",
    "Observer",
    "look_angles",
    "KeplerConvergenceError",
    "Satellite",
    "SatelliteState",
    "geographic_position",
    "predict",
    "solve_kepler",
    "Sun",
    "SunState",
    "predict_sun",
    "Instant",
]
