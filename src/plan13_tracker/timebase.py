"""
Continuous time representation used by all prediction calls.

An ``Instant`` is a Plan13 day number plus the fraction of the day elapsed.
Day numbers come from a simple day-counting formula that is valid between
1900-03-01 and 2100-02-28.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Tuple
import math

from .utils import parse_datetime

MEAN_YEAR = 365.25
SECONDS_PER_DAY = 86400


def day_number(year: int, month: int, day: int) -> int:
    """
    Convert a calendar date to a day number.

    January and February count as months 13 and 14 of the previous year.
    Inputs are not validated; out-of-range values just go through the
    arithmetic.
    """
    if month < 3:
        month += 12
        year -= 1
    return int(year * MEAN_YEAR) + int((month + 1) * 30.6) + day - 428


def calendar_date(number: int) -> Tuple[int, int, int]:
    """
    Convert a day number back to (year, month, day).
    """
    dt = number + 428
    year = int((dt - 122.1) / MEAN_YEAR)
    dt -= int(year * MEAN_YEAR)
    month = int(dt / 30.61)
    dt -= int(month * 30.6)
    month -= 1
    if month > 12:
        month -= 12
        year += 1
    return year, month, dt


@dataclass(frozen=True, order=True)
class Instant:
    """
    A point in time as day number plus fraction of day.

    The fraction is always kept in [0, 1); whole days overflowing (or
    borrowed by a negative fraction) are folded into the day number.
    Values are immutable: ``advance`` and ``round_up`` return new instants.
    """

    day_number: int
    fraction: float = 0.0

    def __post_init__(self) -> None:
        whole = math.floor(self.fraction)
        number = int(self.day_number) + int(whole)
        fraction = float(self.fraction - whole)
        # Tiny negative fractions can round up to exactly 1.0
        if fraction >= 1.0:
            fraction -= 1.0
            number += 1
        object.__setattr__(self, "day_number", number)
        object.__setattr__(self, "fraction", fraction)

    @classmethod
    def from_calendar(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: float = 0,
    ) -> "Instant":
        """Build an instant from a Gregorian calendar timestamp (UTC)."""
        fraction = (hour + minute / 60.0 + second / 3600.0) / 24.0
        return cls(day_number(year, month, day), fraction)

    @classmethod
    def from_datetime(cls, timestamp: datetime) -> "Instant":
        """
        Build an instant from a datetime.

        Naive datetimes are taken as UTC; aware ones are converted to UTC.
        """
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
        seconds = (
            timestamp.hour * 3600
            + timestamp.minute * 60
            + timestamp.second
            + timestamp.microsecond / 1e6
        )
        return cls(
            day_number(timestamp.year, timestamp.month, timestamp.day),
            seconds / SECONDS_PER_DAY,
        )

    @classmethod
    def parse(cls, text: str) -> "Instant":
        """Parse a date/time string such as ``2024-01-01 12:00:00`` (UTC)."""
        return cls.from_datetime(parse_datetime(text))

    @classmethod
    def now(cls) -> "Instant":
        return cls.from_datetime(datetime.now(timezone.utc))

    def to_calendar(self) -> Tuple[int, int, int, int, int, int]:
        """
        Convert back to (year, month, day, hour, minute, second).

        The time of day is rounded to the nearest whole second.
        """
        number = self.day_number
        seconds = int(round(self.fraction * SECONDS_PER_DAY))
        if seconds >= SECONDS_PER_DAY:
            seconds -= SECONDS_PER_DAY
            number += 1
        year, month, day = calendar_date(number)
        hour, remainder = divmod(seconds, 3600)
        minute, second = divmod(remainder, 60)
        return year, month, day, hour, minute, second

    def to_datetime(self) -> datetime:
        """Convert to a naive UTC datetime (microsecond resolution)."""
        year, month, day = calendar_date(self.day_number)
        return datetime(year, month, day) + timedelta(
            microseconds=round(self.fraction * SECONDS_PER_DAY * 1e6)
        )

    def advance(self, days: float) -> "Instant":
        """Return the instant ``days`` later (negative values go back)."""
        return Instant(self.day_number, self.fraction + days)

    def round_up(self, interval: float) -> "Instant":
        """
        Advance to the next multiple of ``interval`` days within the day.

        An instant that is already aligned moves forward a full interval.

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        increment = interval - math.fmod(self.fraction, interval)
        return Instant(self.day_number, self.fraction + increment)

    def days_since(self, other: "Instant") -> float:
        """Elapsed days from ``other`` to this instant."""
        return (self.day_number - other.day_number) + (self.fraction - other.fraction)

    def isoformat(self) -> str:
        year, month, day, hour, minute, second = self.to_calendar()
        return f"{year:4d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}:{second:02d}"

    def __str__(self) -> str:
        return self.isoformat()
