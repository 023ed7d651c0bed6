"""Recover a weekly pattern from a quarter's saved days.

Inverse of apply_pattern: for each weekday, the (location_type, start, end)
triple held by a strict majority of that weekday's records becomes the
pattern day. Weekdays with no clear majority, or no records at all, fall
back to the default home 06:00-07:00 day instead of failing the whole
extraction.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Mapping
from datetime import date

from loguru import logger

from whereabouts.domain.models import DailySlot, DaySlotPattern, WeeklyPattern
from whereabouts.domain.types import ALL_DAYS, LocationType, Weekday

SlotKey = tuple[LocationType | None, str, str]


def _majority_key(keys: list[SlotKey]) -> SlotKey | None:
    if not keys:
        return None
    key, count = Counter(keys).most_common(1)[0]
    if count * 2 <= len(keys):
        return None
    return key


def extract_pattern(existing_slots: Mapping[date, DailySlot]) -> WeeklyPattern | None:
    """Infer the recurring weekly pattern behind a quarter's records.

    Args:
        existing_slots: Saved records keyed by date

    Returns:
        Reconstructed WeeklyPattern, or None when there are no records at all
    """
    if not existing_slots:
        return None

    keys_by_day: dict[Weekday, list[SlotKey]] = defaultdict(list)
    for slot_date, slot in existing_slots.items():
        keys_by_day[Weekday.from_date(slot_date)].append(slot.slot_60min.as_pattern().as_key())

    days: dict[Weekday, DaySlotPattern] = {}
    fallback_days: list[str] = []
    for day in ALL_DAYS:
        key = _majority_key(keys_by_day.get(day, []))
        if key is None:
            days[day] = DaySlotPattern.default()
            fallback_days.append(day.value)
            continue
        location_type, time_start, time_end = key
        days[day] = DaySlotPattern(location_type=location_type, time_start=time_start, time_end=time_end)

    if fallback_days:
        logger.debug(f"[EXTRACT] No majority for {fallback_days}, using default day")
    return WeeklyPattern.from_days(days)
