"""Quarter calendar helpers.

Standard calendar quarters (Q1 Jan-Mar ... Q4 Oct-Dec). A quarter's filing
is due on a fixed day of the month before it starts, so Q1 is due in
December of the previous year.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from whereabouts.domain.models import Quarter
from whereabouts.domain.types import QuarterName, QuarterStatus

QUARTER_START_MONTH: dict[QuarterName, int] = {
    QuarterName.Q1: 1,
    QuarterName.Q2: 4,
    QuarterName.Q3: 7,
    QuarterName.Q4: 10,
}

DEFAULT_FILING_DEADLINE_DAY = 15


@dataclass(frozen=True)
class QuarterDates:
    """Date range and deadline of a calendar quarter."""

    start_date: date
    end_date: date
    filing_deadline: date
    total_days: int


def inclusive_day_count(start: date, end: date) -> int:
    """Number of dates in [start, end]; zero or negative when end precedes start."""
    return (end - start).days + 1


def quarter_dates(start: date, end: date) -> list[date]:
    """Every date in [start, end], ascending."""
    return [start + timedelta(days=offset) for offset in range(max(inclusive_day_count(start, end), 0))]


def calculate_quarter_dates(
    year: int,
    quarter: QuarterName,
    filing_deadline_day: int = DEFAULT_FILING_DEADLINE_DAY,
) -> QuarterDates:
    """Compute start, end, filing deadline and length of a quarter.

    Args:
        year: Filing year
        quarter: Quarter name
        filing_deadline_day: Day of the month before the quarter on which filing is due

    Returns:
        QuarterDates for the quarter
    """
    start_month = QUARTER_START_MONTH[QuarterName(quarter)]
    end_month = start_month + 2
    start_date = date(year, start_month, 1)
    end_date = date(year, end_month, calendar.monthrange(year, end_month)[1])

    if start_month == 1:
        filing_deadline = date(year - 1, 12, filing_deadline_day)
    else:
        filing_deadline = date(year, start_month - 1, filing_deadline_day)

    return QuarterDates(
        start_date=start_date,
        end_date=end_date,
        filing_deadline=filing_deadline,
        total_days=inclusive_day_count(start_date, end_date),
    )


def quarter_for_date(d: date) -> tuple[int, QuarterName]:
    """Year and quarter containing d."""
    return d.year, list(QuarterName)[(d.month - 1) // 3]


def next_quarter(year: int, quarter: QuarterName) -> tuple[int, QuarterName]:
    """Year and quarter following the given one."""
    names = list(QuarterName)
    index = names.index(QuarterName(quarter))
    if index == len(names) - 1:
        return year + 1, QuarterName.Q1
    return year, names[index + 1]


def days_until_deadline(quarter: Quarter, today: date) -> int:
    """Days left before the filing deadline (negative once it has passed)."""
    return (quarter.filing_deadline - today).days


def new_quarter(
    quarter_id: str,
    athlete_id: str,
    year: int,
    quarter: QuarterName,
    filing_deadline_day: int = DEFAULT_FILING_DEADLINE_DAY,
    copied_from_quarter_id: str | None = None,
) -> Quarter:
    """Create a fresh draft quarter with computed dates."""
    dates = calculate_quarter_dates(year, quarter, filing_deadline_day)
    return Quarter(
        id=quarter_id,
        athlete_id=athlete_id,
        year=year,
        quarter=QuarterName(quarter),
        start_date=dates.start_date,
        end_date=dates.end_date,
        filing_deadline=dates.filing_deadline,
        status=QuarterStatus.DRAFT,
        days_completed=0,
        total_days=dates.total_days,
        completion_percentage=0,
        copied_from_quarter_id=copied_from_quarter_id,
    )
