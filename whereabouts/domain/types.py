"""Canonical whereabouts enums and wall-clock helpers.

Weekday replaces any "day index" arithmetic: a date's weekday always comes
from Weekday.from_date, Monday first (ISO ordering).
"""

from __future__ import annotations

import re
from datetime import date
from enum import StrEnum

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
END_OF_DAY = "24:00"


class Weekday(StrEnum):
    """Day of the week, used as the key into a weekly pattern."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def label(self) -> str:
        """Display name ("Monday")."""
        return self.value.capitalize()

    @property
    def is_weekend(self) -> bool:
        return self in WEEKEND_DAYS

    @classmethod
    def from_date(cls, d: date) -> Weekday:
        return ALL_DAYS[d.weekday()]


ALL_DAYS: tuple[Weekday, ...] = tuple(Weekday)
WORK_DAYS: tuple[Weekday, ...] = ALL_DAYS[:5]
WEEKEND_DAYS: tuple[Weekday, ...] = ALL_DAYS[5:]


class LocationType(StrEnum):
    """Kind of registered place an athlete can be found at."""

    HOME = "home"
    TRAINING = "training"
    GYM = "gym"
    COMPETITION = "competition"
    WORK = "work"
    SCHOOL = "school"
    HOTEL = "hotel"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.capitalize()


# Location types a weekly pattern can point at
PATTERN_LOCATION_TYPES: tuple[LocationType, ...] = (
    LocationType.HOME,
    LocationType.TRAINING,
    LocationType.GYM,
)


class QuarterName(StrEnum):
    """Calendar quarter of a filing year."""

    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"
    Q4 = "Q4"


class QuarterStatus(StrEnum):
    """Filing status of a quarter."""

    DRAFT = "draft"
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"
    SUBMITTED = "submitted"
    LOCKED = "locked"

    @property
    def is_sticky(self) -> bool:
        """Sticky statuses are never replaced by a recomputed one."""
        return self in {QuarterStatus.SUBMITTED, QuarterStatus.LOCKED}


class ApplyMode(StrEnum):
    """How a weekly pattern is laid over a quarter."""

    FILL_ONLY = "fill_only"  # "fill remaining days"
    OVERWRITE = "overwrite"  # "apply pattern to all"


def parse_hhmm(value: str | None, *, allow_end_of_day: bool = False) -> int | None:
    """Parse an HH:mm wall-clock time into minutes from midnight.

    Args:
        value: Time string, e.g. "06:00"
        allow_end_of_day: Accept "24:00" (1440), only meaningful for end times

    Returns:
        Minutes from midnight, or None if the string is empty or malformed
    """
    if not value:
        return None
    value = value.strip()
    if allow_end_of_day and value == END_OF_DAY:
        return 24 * 60
    match = _HHMM.match(value)
    if match is None:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def format_hhmm(minutes: int) -> str:
    """Format minutes from midnight as HH:mm (1440 -> "24:00")."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
