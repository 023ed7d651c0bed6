"""Weekly pattern editing and statistics.

PatternEngine owns one WeeklyPattern plus the athlete's home/training/gym
locations. Edits never validate; validation is derived on read through
validate_day_slot so the UI can always show the current state of every day.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from whereabouts.domain.invariants import DAYS_PER_PATTERN
from whereabouts.domain.models import DaySlotPattern, LocationSet, WeeklyPattern
from whereabouts.domain.types import ALL_DAYS, WEEKEND_DAYS, WORK_DAYS, LocationType, Weekday
from whereabouts.engine.slot_validator import SlotValidation, validate_day_slot


@dataclass(frozen=True)
class PatternStats:
    """Aggregate view of a weekly pattern.

    Attributes:
        completed_days: Days with both times set (valid or not)
        valid_days: Days passing slot validation
        invalid_days: Days failing slot validation
        home_count: Days pointing at home
        training_count: Days pointing at the training facility
        gym_count: Days pointing at the gym
    """

    completed_days: int
    valid_days: int
    invalid_days: int
    home_count: int
    training_count: int
    gym_count: int

    @property
    def is_fully_valid(self) -> bool:
        return self.valid_days == DAYS_PER_PATTERN


def validate_pattern_day(pattern: WeeklyPattern, day: Weekday, locations: LocationSet) -> SlotValidation:
    """Validate one day of a pattern against the matching registered location."""
    day_pattern = pattern[day]
    return validate_day_slot(day, day_pattern, locations.for_type(day_pattern.location_type))


def compute_pattern_stats(pattern: WeeklyPattern, locations: LocationSet) -> PatternStats:
    """Count completed, valid and per-location days of a pattern."""
    completed_days = 0
    valid_days = 0
    counts = {LocationType.HOME: 0, LocationType.TRAINING: 0, LocationType.GYM: 0}

    for day, day_pattern in pattern.days():
        if day_pattern.has_times:
            completed_days += 1
        if day_pattern.location_type in counts:
            counts[day_pattern.location_type] += 1
        if validate_pattern_day(pattern, day, locations).valid:
            valid_days += 1

    return PatternStats(
        completed_days=completed_days,
        valid_days=valid_days,
        invalid_days=DAYS_PER_PATTERN - valid_days,
        home_count=counts[LocationType.HOME],
        training_count=counts[LocationType.TRAINING],
        gym_count=counts[LocationType.GYM],
    )


def is_uniform_location(pattern: WeeklyPattern) -> bool:
    """True when every day points at the same location type."""
    first = pattern[Weekday.MONDAY].location_type
    if first is None:
        return False
    return all(day_pattern.location_type == first for _, day_pattern in pattern.days())


def has_uniform_weekdays(pattern: WeeklyPattern) -> bool:
    """True when Monday-Friday are identical."""
    monday = pattern[Weekday.MONDAY].as_key()
    return all(pattern[day].as_key() == monday for day in WORK_DAYS)


def has_uniform_weekends(pattern: WeeklyPattern) -> bool:
    """True when Saturday and Sunday are identical."""
    return pattern[Weekday.SATURDAY].as_key() == pattern[Weekday.SUNDAY].as_key()


class PatternEngine:
    """Editable weekly pattern bound to the athlete's locations."""

    def __init__(self, locations: LocationSet | None = None, pattern: WeeklyPattern | None = None):
        self.locations = locations or LocationSet()
        self.pattern = pattern or WeeklyPattern.default()

    def day(self, day: Weekday) -> DaySlotPattern:
        return self.pattern[day]

    def set_day(self, day: Weekday, pattern: DaySlotPattern) -> None:
        """Replace one day's pattern. No validation."""
        self.pattern = self.pattern.with_day(day, pattern)

    def copy_day_to(self, source_day: Weekday, target_days: Iterable[Weekday]) -> None:
        """Overwrite each target day with a copy of source_day.

        Raises:
            ValueError: If source_day is among target_days (callers filter self-copies)
        """
        targets = set(target_days)
        if source_day in targets:
            raise ValueError(f"Cannot copy {source_day.value} onto itself")
        if not targets:
            return
        source = self.pattern[source_day]
        self.pattern = self.pattern.with_days({day: source for day in targets})
        logger.debug(f"[PATTERN] Copied {source_day.value} to {sorted(d.value for d in targets)}")

    def _copy_excluding_source(self, source_day: Weekday, days: Iterable[Weekday]) -> None:
        self.copy_day_to(source_day, [day for day in days if day != source_day])

    def copy_to_weekdays(self, source_day: Weekday = Weekday.MONDAY) -> None:
        self._copy_excluding_source(source_day, WORK_DAYS)

    def copy_to_weekends(self, source_day: Weekday = Weekday.SATURDAY) -> None:
        self._copy_excluding_source(source_day, WEEKEND_DAYS)

    def copy_all_from_monday(self) -> None:
        self._copy_excluding_source(Weekday.MONDAY, ALL_DAYS)

    def clear_all(self) -> None:
        """Reset every day to the default home 06:00-07:00 slot."""
        self.pattern = WeeklyPattern.default()

    def validate_day(self, day: Weekday) -> SlotValidation:
        return validate_pattern_day(self.pattern, day, self.locations)

    def day_validations(self) -> dict[Weekday, SlotValidation]:
        return {day: self.validate_day(day) for day in ALL_DAYS}

    def compute_stats(self) -> PatternStats:
        return compute_pattern_stats(self.pattern, self.locations)

    @property
    def is_fully_valid(self) -> bool:
        return self.compute_stats().is_fully_valid
