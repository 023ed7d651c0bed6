"""Quarter status state machine.

    draft -> incomplete -> complete -> submitted -> locked
      ^__________|____________|            (time)     ^
                                                       |
    any non-locked status --------- end_date passed ---+

draft / incomplete / complete are derived from completion and recomputed on
every slot mutation. submitted and locked are sticky: once set, recomputing
never replaces them. submitted_at and locked_at never change once set.
"""

from __future__ import annotations

from datetime import date, datetime

from loguru import logger

from whereabouts.domain.errors import QuarterLockedError, QuarterTransitionError
from whereabouts.domain.models import Quarter
from whereabouts.domain.types import QuarterStatus
from whereabouts.engine.completion import QuarterCompletion


def derive_status(days_completed: int, total_days: int) -> QuarterStatus:
    """Derived status for a completion count."""
    if days_completed <= 0:
        return QuarterStatus.DRAFT
    if days_completed < total_days:
        return QuarterStatus.INCOMPLETE
    return QuarterStatus.COMPLETE


def is_past_end(quarter: Quarter, today: date) -> bool:
    return today > quarter.end_date


def refresh_quarter(
    quarter: Quarter,
    completion: QuarterCompletion | None,
    today: date,
    now: datetime,
) -> Quarter:
    """Recompute counters and status of a quarter.

    Args:
        quarter: Current quarter value
        completion: Fresh completion snapshot (None for a zero-day quarter)
        today: Athlete's local date
        now: Timestamp recorded if the quarter locks

    Returns:
        Updated quarter (a new value; the input is not modified)
    """
    days_completed = completion.days_completed if completion else 0
    percentage = completion.completion_percentage if completion else 0
    update: dict[str, object] = {
        "days_completed": days_completed,
        "completion_percentage": percentage,
    }

    if quarter.status != QuarterStatus.LOCKED and is_past_end(quarter, today):
        update["status"] = QuarterStatus.LOCKED
        update["locked_at"] = quarter.locked_at or now
        logger.info(f"[LIFECYCLE] Quarter {quarter.id} locked (end_date {quarter.end_date} passed)")
    elif not quarter.status.is_sticky:
        update["status"] = derive_status(days_completed, quarter.total_days)

    return quarter.model_copy(update=update)


def submit_quarter(quarter: Quarter, completion: QuarterCompletion | None, now: datetime) -> Quarter:
    """Mark a complete quarter as submitted.

    Raises:
        QuarterTransitionError: If the quarter is already submitted or locked,
            or if not every day is complete
    """
    if quarter.status == QuarterStatus.LOCKED:
        raise QuarterTransitionError("QUARTER_LOCKED", [f"Quarter {quarter.id} is locked"])
    if quarter.status == QuarterStatus.SUBMITTED:
        raise QuarterTransitionError("QUARTER_ALREADY_SUBMITTED", [f"Quarter {quarter.id} was submitted at {quarter.submitted_at}"])

    days_completed = completion.days_completed if completion else 0
    if derive_status(days_completed, quarter.total_days) != QuarterStatus.COMPLETE:
        missing = len(completion.missing_dates) if completion else quarter.total_days
        raise QuarterTransitionError(
            "QUARTER_NOT_COMPLETE",
            [f"{missing} day{'s' if missing != 1 else ''} still missing a valid slot"],
        )

    return quarter.model_copy(
        update={
            "status": QuarterStatus.SUBMITTED,
            "submitted_at": quarter.submitted_at or now,
            "days_completed": days_completed,
            "completion_percentage": completion.completion_percentage if completion else 0,
        }
    )


def ensure_editable(quarter: Quarter) -> None:
    """Raise if the quarter's slots may no longer change.

    Raises:
        QuarterLockedError: If the quarter is submitted or locked
    """
    if quarter.status.is_sticky:
        raise QuarterLockedError(quarter.id, quarter.status.value)
