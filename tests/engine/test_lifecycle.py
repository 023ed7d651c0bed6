"""Tests for the quarter status state machine."""

from datetime import UTC, date, datetime, timedelta

import pytest

from whereabouts.domain.errors import QuarterLockedError, QuarterTransitionError
from whereabouts.domain.models import DaySlotPattern, WeeklyPattern
from whereabouts.domain.types import ApplyMode, QuarterStatus
from whereabouts.engine.completion import compute_completion
from whereabouts.engine.lifecycle import derive_status, ensure_editable, refresh_quarter, submit_quarter
from whereabouts.engine.quarter_applier import apply_pattern, derive_daily_slot

NOW = datetime(2025, 2, 10, 9, 30, tzinfo=UTC)
TODAY = date(2025, 2, 10)


@pytest.fixture
def full_slots(q1_2025, locations):
    return apply_pattern(WeeklyPattern.default(), q1_2025, {}, ApplyMode.OVERWRITE, locations)


class TestDerivedStatus:
    """draft / incomplete / complete follow completion."""

    @pytest.mark.parametrize(
        ("days", "expected"),
        [(0, QuarterStatus.DRAFT), (1, QuarterStatus.INCOMPLETE), (89, QuarterStatus.INCOMPLETE), (90, QuarterStatus.COMPLETE)],
    )
    def test_derive_status(self, days, expected):
        """Test status thresholds."""
        assert derive_status(days, 90) == expected

    def test_refresh_updates_counters(self, q1_2025, locations):
        """Test refresh writes days_completed, percentage and status."""
        slot = derive_daily_slot(q1_2025.id, date(2025, 1, 1), DaySlotPattern.default(), locations)
        refreshed = refresh_quarter(q1_2025, compute_completion(q1_2025, {slot.date: slot}), TODAY, NOW)
        assert refreshed.days_completed == 1
        assert refreshed.completion_percentage == 1
        assert refreshed.status == QuarterStatus.INCOMPLETE
        assert q1_2025.status == QuarterStatus.DRAFT

    def test_complete_goes_back_to_incomplete(self, q1_2025, full_slots, locations):
        """Test derived statuses move both ways as slots change."""
        complete = refresh_quarter(q1_2025, compute_completion(q1_2025, full_slots), TODAY, NOW)
        assert complete.status == QuarterStatus.COMPLETE

        broken = dict(full_slots)
        broken[date(2025, 3, 1)] = broken[date(2025, 3, 1)].model_copy(update={"is_complete": False})
        again = refresh_quarter(complete, compute_completion(complete, broken), TODAY, NOW)
        assert again.status == QuarterStatus.INCOMPLETE


class TestStickyStatuses:
    """submitted and locked are never replaced by derived statuses."""

    def test_submit_complete_quarter(self, q1_2025, full_slots):
        """Test a complete quarter can be submitted."""
        completion = compute_completion(q1_2025, full_slots)
        submitted = submit_quarter(q1_2025, completion, NOW)
        assert submitted.status == QuarterStatus.SUBMITTED
        assert submitted.submitted_at == NOW

    def test_submit_incomplete_rejected(self, q1_2025, locations):
        """Test submitting with missing days raises before any change."""
        completion = compute_completion(q1_2025, {})
        with pytest.raises(QuarterTransitionError) as exc_info:
            submit_quarter(q1_2025, completion, NOW)
        assert exc_info.value.code == "QUARTER_NOT_COMPLETE"
        assert exc_info.value.details == ["90 days still missing a valid slot"]

    def test_submit_twice_rejected(self, q1_2025, full_slots):
        """Test a submitted quarter cannot be submitted again."""
        completion = compute_completion(q1_2025, full_slots)
        submitted = submit_quarter(q1_2025, completion, NOW)
        with pytest.raises(QuarterTransitionError) as exc_info:
            submit_quarter(submitted, completion, NOW + timedelta(hours=1))
        assert exc_info.value.code == "QUARTER_ALREADY_SUBMITTED"

    def test_submitted_survives_refresh(self, q1_2025, full_slots):
        """Test recomputing completion keeps submitted and submitted_at."""
        completion = compute_completion(q1_2025, full_slots)
        submitted = submit_quarter(q1_2025, completion, NOW)
        refreshed = refresh_quarter(submitted, compute_completion(submitted, {}), TODAY, NOW + timedelta(days=1))
        assert refreshed.status == QuarterStatus.SUBMITTED
        assert refreshed.submitted_at == NOW

    def test_lock_after_end_date(self, q1_2025, full_slots):
        """Test a quarter locks the day after its end date."""
        completion = compute_completion(q1_2025, full_slots)
        on_last_day = refresh_quarter(q1_2025, completion, date(2025, 3, 31), NOW)
        assert on_last_day.status == QuarterStatus.COMPLETE

        lock_time = datetime(2025, 4, 1, 0, 5, tzinfo=UTC)
        locked = refresh_quarter(q1_2025, completion, date(2025, 4, 1), lock_time)
        assert locked.status == QuarterStatus.LOCKED
        assert locked.locked_at == lock_time

    def test_submitted_quarter_locks_later(self, q1_2025, full_slots):
        """Test submission does not prevent the time-based lock."""
        completion = compute_completion(q1_2025, full_slots)
        submitted = submit_quarter(q1_2025, completion, NOW)
        locked = refresh_quarter(submitted, completion, date(2025, 4, 2), NOW)
        assert locked.status == QuarterStatus.LOCKED
        assert locked.submitted_at == NOW

    def test_locked_is_final(self, q1_2025, full_slots):
        """Test a locked quarter keeps its status and lock time."""
        completion = compute_completion(q1_2025, full_slots)
        locked = refresh_quarter(q1_2025, completion, date(2025, 4, 1), NOW)
        again = refresh_quarter(locked, compute_completion(locked, {}), date(2025, 5, 1), NOW + timedelta(days=30))
        assert again.status == QuarterStatus.LOCKED
        assert again.locked_at == NOW

        with pytest.raises(QuarterTransitionError) as exc_info:
            submit_quarter(locked, completion, NOW)
        assert exc_info.value.code == "QUARTER_LOCKED"

    @pytest.mark.parametrize("status", [QuarterStatus.SUBMITTED, QuarterStatus.LOCKED])
    def test_sticky_statuses_not_editable(self, q1_2025, status):
        """Test slot edits are refused once submitted or locked."""
        with pytest.raises(QuarterLockedError):
            ensure_editable(q1_2025.model_copy(update={"status": status}))

    @pytest.mark.parametrize("status", [QuarterStatus.DRAFT, QuarterStatus.INCOMPLETE, QuarterStatus.COMPLETE])
    def test_derived_statuses_editable(self, q1_2025, status):
        """Test draft, incomplete and complete quarters can be edited."""
        ensure_editable(q1_2025.model_copy(update={"status": status}))
