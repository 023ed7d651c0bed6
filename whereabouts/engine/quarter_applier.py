"""Lay a weekly pattern over a quarter's dates.

Two modes:
- FILL_ONLY: only dates with no record receive one; existing records are
  returned as the very same objects (never touched, never removed).
- OVERWRITE: every date in the quarter receives a freshly derived record.
  Applying the same pattern twice yields the same result.

Invalid pattern days still produce a record (is_complete=False) so the
quarter shows a concrete, correctable entry for that date.

The whole result is computed in memory before the caller writes anything;
callers persist it in a single transaction.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

from loguru import logger

from whereabouts.domain.models import (
    Competition,
    DailySlot,
    DaySlotPattern,
    LocationSet,
    Quarter,
    Slot60Min,
    WeeklyPattern,
)
from whereabouts.domain.types import ApplyMode, Weekday
from whereabouts.engine.slot_validator import validate_day_slot


@dataclass(frozen=True)
class ApplyOutcome:
    """What an application changed, for logging and API responses.

    Attributes:
        created: Dates that had no record before
        updated: Dates whose record changed
        unchanged: Dates whose record is identical to before
    """

    created: int
    updated: int
    unchanged: int


def _competition_on(d: date, competitions: Iterable[Competition]) -> Competition | None:
    for competition in competitions:
        if competition.covers(d):
            return competition
    return None


def derive_daily_slot(
    quarter_id: str,
    slot_date: date,
    day_pattern: DaySlotPattern,
    locations: LocationSet,
    competition: Competition | None = None,
) -> DailySlot:
    """Build the DailySlot a pattern day produces on a concrete date.

    is_complete is the slot validator's verdict for that weekday.
    """
    weekday = Weekday.from_date(slot_date)
    location = locations.for_type(day_pattern.location_type)
    validation = validate_day_slot(weekday, day_pattern, location)

    location_name = location.name if location else None
    notes = None
    if competition is not None:
        location_name = competition.location_address or location_name
        notes = f"Competition: {competition.name}"

    return DailySlot(
        quarter_id=quarter_id,
        date=slot_date,
        slot_60min=Slot60Min(
            start_time=day_pattern.time_start,
            end_time=day_pattern.time_end,
            location_type=day_pattern.location_type,
            location_id=location.id if location else None,
            location_name=location_name,
            location_address=location.address if location else None,
        ),
        is_complete=validation.valid,
        notes=notes,
        is_competition=competition is not None,
        competition_id=competition.id if competition else None,
    )


def apply_pattern(
    pattern: WeeklyPattern,
    quarter: Quarter,
    existing_slots: Mapping[date, DailySlot],
    mode: ApplyMode,
    locations: LocationSet,
    competitions: Iterable[Competition] = (),
) -> dict[date, DailySlot]:
    """Expand a weekly pattern across every date of a quarter.

    Args:
        pattern: Seven-day pattern to apply
        quarter: Quarter whose [start_date, end_date] is filled
        existing_slots: Records already saved for the quarter, keyed by date
        mode: FILL_ONLY or OVERWRITE
        locations: Athlete's registered home/training/gym
        competitions: Competitions overriding the location name on their dates

    Returns:
        Full slot map for the quarter (existing plus derived), ordered by date
    """
    competitions = list(competitions)
    result: dict[date, DailySlot] = dict(existing_slots)

    for slot_date in quarter.iter_dates():
        if mode == ApplyMode.FILL_ONLY and slot_date in existing_slots:
            continue
        day_pattern = pattern[Weekday.from_date(slot_date)]
        result[slot_date] = derive_daily_slot(
            quarter.id,
            slot_date,
            day_pattern,
            locations,
            _competition_on(slot_date, competitions),
        )

    logger.debug(f"[APPLY] quarter={quarter.id} mode={mode.value} slots={len(result)} (was {len(existing_slots)})")
    return dict(sorted(result.items()))


def summarize_application(before: Mapping[date, DailySlot], after: Mapping[date, DailySlot]) -> ApplyOutcome:
    """Count created, updated and unchanged dates between two slot maps."""
    created = updated = unchanged = 0
    for slot_date, slot in after.items():
        previous = before.get(slot_date)
        if previous is None:
            created += 1
        elif previous == slot:
            unchanged += 1
        else:
            updated += 1
    return ApplyOutcome(created=created, updated=updated, unchanged=unchanged)
