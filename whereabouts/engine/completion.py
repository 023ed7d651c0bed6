"""Quarter completion tracking.

Derived, never stored as a source of truth: the counters on a Quarter are
recomputed from its DailySlots after every slot mutation.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date

from whereabouts.domain.invariants import MAX_COMPLETION_PCT, MIN_COMPLETION_PCT
from whereabouts.domain.models import DailySlot, Quarter


@dataclass(frozen=True)
class QuarterCompletion:
    """Completion snapshot of one quarter.

    Attributes:
        total_days: Days in the quarter
        days_completed: In-range dates whose record is complete
        completion_percentage: round(100 * days_completed / total_days), 0-100
        missing_dates: In-range dates without a complete record, ascending
    """

    total_days: int
    days_completed: int
    completion_percentage: int
    missing_dates: list[date] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_dates


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_completion(quarter: Quarter, slots: Mapping[date, DailySlot]) -> QuarterCompletion | None:
    """Compute days completed, percentage and missing dates for a quarter.

    Args:
        quarter: Quarter whose date range is checked
        slots: Saved records keyed by date (out-of-range dates are ignored)

    Returns:
        QuarterCompletion, or None when the quarter has no days (total_days <= 0)
    """
    if quarter.total_days <= 0:
        return None

    missing_dates: list[date] = []
    days_completed = 0
    for slot_date in quarter.iter_dates():
        slot = slots.get(slot_date)
        if slot is not None and slot.is_complete:
            days_completed += 1
        else:
            missing_dates.append(slot_date)

    days_completed = min(days_completed, quarter.total_days)
    percentage = _round_half_up(100 * days_completed / quarter.total_days)
    percentage = max(MIN_COMPLETION_PCT, min(MAX_COMPLETION_PCT, percentage))
    if missing_dates and percentage == MAX_COMPLETION_PCT:
        percentage = MAX_COMPLETION_PCT - 1

    return QuarterCompletion(
        total_days=quarter.total_days,
        days_completed=days_completed,
        completion_percentage=percentage,
        missing_dates=missing_dates,
    )


def remaining_missing_dates(completion: QuarterCompletion, today: date) -> list[date]:
    """Missing dates from today onwards (the ones an athlete can still fix in time)."""
    return [d for d in completion.missing_dates if d >= today]
