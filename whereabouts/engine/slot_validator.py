"""Slot validation - single source of truth for "is this day filed correctly".

Pure function, no I/O, no exceptions for bad input. The same result drives
per-day UI feedback, pattern statistics, template gating, and the
is_complete flag of every generated DailySlot.

Checks run in order and stop at the first failure:
1. a location type is selected
2. both times present and HH:mm
3. exactly 60 minutes long
4. inside the 05:00-24:00 daily window
5. the location is registered
6. the location is open that weekday
7. the slot sits inside the location's open hours
"""

from __future__ import annotations

from dataclasses import dataclass

from whereabouts.domain.invariants import (
    EARLIEST_SLOT_START_MINUTES,
    LATEST_SLOT_END_MINUTES,
    SLOT_DURATION_MINUTES,
)
from whereabouts.domain.models import DaySlotPattern, Location
from whereabouts.domain.types import LocationType, Weekday, format_hhmm, parse_hhmm


@dataclass(frozen=True)
class SlotValidation:
    """Result of validating one day's slot.

    Attributes:
        valid: Whether the slot passes every check
        reason: Human-readable failure reason (None when valid)
    """

    valid: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> SlotValidation:
        return cls(valid=True)

    @classmethod
    def invalid(cls, reason: str) -> SlotValidation:
        return cls(valid=False, reason=reason)


def _within(minutes: int, open_minutes: int, close_minutes: int) -> bool:
    return open_minutes <= minutes <= close_minutes


def validate_day_slot(
    day: Weekday,
    pattern: DaySlotPattern,
    location: Location | None,
) -> SlotValidation:
    """Validate one day's declared slot against global rules and a location's hours.

    Args:
        day: Weekday the slot falls on
        pattern: Declared location type and times
        location: Registered location for pattern.location_type, or None if not set up

    Returns:
        SlotValidation.ok() or SlotValidation.invalid(reason)
    """
    if not pattern.location_type:
        return SlotValidation.invalid("Select a location")

    if not pattern.has_times:
        return SlotValidation.invalid("Enter time")

    start_minutes = parse_hhmm(pattern.time_start)
    end_minutes = parse_hhmm(pattern.time_end, allow_end_of_day=True)
    if start_minutes is None or end_minutes is None:
        return SlotValidation.invalid("Invalid time format")

    duration = end_minutes - start_minutes
    if duration != SLOT_DURATION_MINUTES:
        return SlotValidation.invalid(
            f"Slot must be exactly {SLOT_DURATION_MINUTES} minutes (currently {duration} minutes)"
        )

    if start_minutes < EARLIEST_SLOT_START_MINUTES:
        return SlotValidation.invalid(f"Time must be after {format_hhmm(EARLIEST_SLOT_START_MINUTES)}")
    if end_minutes > LATEST_SLOT_END_MINUTES:
        return SlotValidation.invalid("Time must be before midnight")

    if location is None:
        return SlotValidation.invalid(f"{LocationType(pattern.location_type).label} location not set up")

    hours = location.hours_on(day)
    if not hours.is_open:
        return SlotValidation.invalid(f"Location not available on {day.label}s")

    open_minutes = parse_hhmm(hours.start)
    close_minutes = parse_hhmm(hours.end, allow_end_of_day=True)
    if (
        open_minutes is None
        or close_minutes is None
        or not _within(start_minutes, open_minutes, close_minutes)
        or not _within(end_minutes, open_minutes, close_minutes)
    ):
        return SlotValidation.invalid(f"Location available {hours.start}-{hours.end} on {day.label}s")

    return SlotValidation.ok()
