"""Whereabouts value types.

These are plain values handed into and returned from the engine. The engine
never stores them anywhere; callers (service layer, HTTP layer) own the
collections and pass them in explicitly.

Field names follow the persisted document shapes so stored data round-trips:
- DailySlot.slot_60min.{start_time,end_time,location_id,location_name,location_address}
- Quarter.{days_completed,total_days,completion_percentage,filing_deadline,...}
- Template.{usage_count,is_default}
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from datetime import date as date_type
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, model_validator

from whereabouts.domain.errors import PatternIntegrityError
from whereabouts.domain.invariants import DEFAULT_LOCATION_TYPE, DEFAULT_TIME_END, DEFAULT_TIME_START
from whereabouts.domain.types import (
    ALL_DAYS,
    PATTERN_LOCATION_TYPES,
    LocationType,
    QuarterName,
    QuarterStatus,
    Weekday,
    parse_hhmm,
)


class OpenWindow(BaseModel):
    """Opening hours of a location on one weekday. Empty start or end means closed.

    Given times must be HH:mm ("24:00" allowed as the end), and an open
    window must close after it opens.
    """

    model_config = ConfigDict(frozen=True)

    start: str | None = None
    end: str | None = None

    @property
    def is_open(self) -> bool:
        return bool(self.start) and bool(self.end)

    @model_validator(mode="after")
    def validate_times(self) -> OpenWindow:
        start_minutes = parse_hhmm(self.start)
        end_minutes = parse_hhmm(self.end, allow_end_of_day=True)
        if self.start and start_minutes is None:
            raise ValueError(f"Invalid start time format: {self.start}. Expected HH:mm")
        if self.end and end_minutes is None:
            raise ValueError(f"Invalid end time format: {self.end}. Expected HH:mm")
        if start_minutes is not None and end_minutes is not None and end_minutes <= start_minutes:
            raise ValueError(f"End time ({self.end}) must be after start time ({self.start})")
        return self


class Location(BaseModel):
    """A registered place with weekly availability.

    Attributes:
        id: Opaque location identifier (never parsed)
        athlete_id: Owning athlete
        type: Kind of place
        name: Display name, copied onto generated slots
        address: Display address, copied onto generated slots
        weekly_hours: Open window per weekday; a missing weekday is closed
    """

    model_config = ConfigDict(frozen=True)

    id: str
    athlete_id: str
    type: LocationType
    name: str
    address: str | None = None
    weekly_hours: dict[Weekday, OpenWindow] = Field(default_factory=dict)

    def hours_on(self, day: Weekday) -> OpenWindow:
        return self.weekly_hours.get(day, OpenWindow())


class LocationSet(BaseModel):
    """The athlete's home, training and gym locations (any may be missing)."""

    model_config = ConfigDict(frozen=True)

    home: Location | None = None
    training: Location | None = None
    gym: Location | None = None

    def for_type(self, location_type: LocationType | None) -> Location | None:
        """Location registered for a pattern slot type, or None."""
        if location_type is None or location_type not in PATTERN_LOCATION_TYPES:
            return None
        return getattr(self, LocationType(location_type).value)

    @classmethod
    def from_locations(cls, locations: Iterable[Location]) -> LocationSet:
        """Build from a flat list; the last location of each pattern type wins."""
        picked: dict[str, Location] = {}
        for location in locations:
            if location.type in PATTERN_LOCATION_TYPES:
                picked[location.type.value] = location
        return cls(**picked)


class DaySlotPattern(BaseModel):
    """Recurring intent for one weekday: where, and which hour.

    Both times empty is the "unset" state.
    """

    model_config = ConfigDict(frozen=True)

    location_type: LocationType | None = None
    time_start: str = ""
    time_end: str = ""

    @property
    def has_times(self) -> bool:
        return bool(self.time_start) and bool(self.time_end)

    def as_key(self) -> tuple[LocationType | None, str, str]:
        return (self.location_type, self.time_start, self.time_end)

    @classmethod
    def default(cls) -> DaySlotPattern:
        return cls(
            location_type=LocationType(DEFAULT_LOCATION_TYPE),
            time_start=DEFAULT_TIME_START,
            time_end=DEFAULT_TIME_END,
        )

    @classmethod
    def unset(cls) -> DaySlotPattern:
        return cls()


class WeeklyPattern(BaseModel):
    """Seven-day recurring pattern. Always holds all seven weekdays."""

    model_config = ConfigDict(frozen=True)

    monday: DaySlotPattern
    tuesday: DaySlotPattern
    wednesday: DaySlotPattern
    thursday: DaySlotPattern
    friday: DaySlotPattern
    saturday: DaySlotPattern
    sunday: DaySlotPattern

    def __getitem__(self, day: Weekday) -> DaySlotPattern:
        return getattr(self, Weekday(day).value)

    def days(self) -> Iterator[tuple[Weekday, DaySlotPattern]]:
        for day in ALL_DAYS:
            yield day, self[day]

    def with_days(self, updates: Mapping[Weekday, DaySlotPattern]) -> WeeklyPattern:
        """Copy of this pattern with some days replaced (deep-copied)."""
        return self.model_copy(
            update={Weekday(day).value: pattern.model_copy(deep=True) for day, pattern in updates.items()}
        )

    def with_day(self, day: Weekday, pattern: DaySlotPattern) -> WeeklyPattern:
        return self.with_days({day: pattern})

    def to_days(self) -> dict[Weekday, DaySlotPattern]:
        return dict(self.days())

    @classmethod
    def default(cls) -> WeeklyPattern:
        return cls(**{day.value: DaySlotPattern.default() for day in ALL_DAYS})

    @classmethod
    def from_days(cls, days: Mapping[Weekday | str, DaySlotPattern]) -> WeeklyPattern:
        """Build from a weekday mapping.

        Raises:
            PatternIntegrityError: If any weekday is missing
        """
        keyed = {Weekday(day).value: pattern for day, pattern in days.items()}
        missing = [day.value for day in ALL_DAYS if day.value not in keyed]
        if missing:
            raise PatternIntegrityError(f"Weekly pattern missing days: {', '.join(missing)}")
        return cls(**keyed)


class Slot60Min(BaseModel):
    """The declared 60-minute window of one concrete date."""

    model_config = ConfigDict(frozen=True)

    start_time: str = ""
    end_time: str = ""
    location_type: LocationType | None = None
    location_id: str | None = None
    location_name: str | None = None
    location_address: str | None = None

    def as_pattern(self) -> DaySlotPattern:
        return DaySlotPattern(
            location_type=self.location_type,
            time_start=self.start_time,
            time_end=self.end_time,
        )


class DailySlot(BaseModel):
    """Persisted whereabouts record for one date of a quarter (keyed by date)."""

    model_config = ConfigDict(frozen=True)

    quarter_id: str
    date: date_type
    slot_60min: Slot60Min
    overnight_location_id: str | None = None
    is_complete: bool = False
    modification_count: int = 0
    notes: str | None = None
    is_competition: bool = False
    competition_id: str | None = None


class Competition(BaseModel):
    """A competition the athlete attends; its dates override the pattern's location."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    start_date: date_type
    end_date: date_type
    athlete_id: str | None = None
    location_address: str | None = None
    city: str | None = None
    country: str | None = None
    additional_info: str | None = None

    @model_validator(mode="after")
    def validate_competition(self) -> Competition:
        if not self.name.strip():
            raise ValueError("Competition name is required")
        if self.end_date < self.start_date:
            raise ValueError(f"End date ({self.end_date}) must be on or after start date ({self.start_date})")
        return self

    def covers(self, d: date_type) -> bool:
        return self.start_date <= d <= self.end_date


class Quarter(BaseModel):
    """One athlete's filing period.

    days_completed / completion_percentage / status are derived from the
    quarter's slots by the completion tracker and lifecycle; they are stored
    for display only.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    athlete_id: str
    year: int
    quarter: QuarterName
    start_date: date_type
    end_date: date_type
    filing_deadline: date_type
    status: QuarterStatus = QuarterStatus.DRAFT
    days_completed: int = 0
    total_days: int
    completion_percentage: int = 0
    submitted_at: datetime | None = None
    locked_at: datetime | None = None
    copied_from_quarter_id: str | None = None

    def iter_dates(self) -> Iterator[date_type]:
        """Every date from start_date to end_date inclusive."""
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)

    def contains(self, d: date_type) -> bool:
        return self.start_date <= d <= self.end_date


class Template(BaseModel):
    """Named, reusable weekly pattern."""

    model_config = ConfigDict(frozen=True)

    id: str
    athlete_id: str
    name: str
    description: str | None = None
    pattern: WeeklyPattern
    usage_count: int = 0
    is_default: bool = False
