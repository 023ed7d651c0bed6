"""Date/time source for whereabouts filing.

"Today" is always the athlete's local calendar date, never the UTC date,
so that a quarter does not lock (or a day count as missing) one day early
or late around midnight.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger


class Clock(Protocol):
    """Anything that can answer "what day is it for this athlete"."""

    def today(self) -> date: ...

    def now(self) -> datetime: ...


class AthleteClock:
    """Wall clock in the athlete's timezone."""

    def __init__(self, timezone_name: str = "UTC"):
        try:
            self.tz = ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"[WHEREABOUTS] Unknown timezone '{timezone_name}', using UTC for athlete dates")
            self.tz = ZoneInfo("UTC")

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a single instant (tests, replays)."""

    def __init__(self, today: date, now: datetime | None = None):
        self._today = today
        self._now = now or datetime.combine(today, datetime.min.time()).replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._today


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC.

    Args:
        dt: Datetime (timezone-aware or naive)

    Returns:
        Datetime in UTC timezone
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
