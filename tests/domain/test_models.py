"""Tests for whereabouts value types that validate themselves."""

from datetime import date

import pytest
from pydantic import ValidationError

from whereabouts.domain.models import Competition, Location, LocationSet, OpenWindow
from whereabouts.domain.types import LocationType, Weekday


class TestOpenWindow:
    """Opening hours are checked when they are built."""

    def test_valid_window(self):
        window = OpenWindow(start="06:00", end="24:00")
        assert window.is_open

    @pytest.mark.parametrize(
        ("start", "end"),
        [
            ("25:99", "03:00"),
            ("6am", "10:00"),
            ("06:00", "24:30"),
        ],
    )
    def test_malformed_time_rejected(self, start, end):
        """Test a window with an unreadable time is refused."""
        with pytest.raises(ValidationError):
            OpenWindow(start=start, end=end)

    @pytest.mark.parametrize(("start", "end"), [("20:00", "06:00"), ("09:00", "09:00")])
    def test_window_must_close_after_opening(self, start, end):
        with pytest.raises(ValidationError, match="must be after start time"):
            OpenWindow(start=start, end=end)

    def test_missing_end_means_closed(self):
        """Test a half-filled window is accepted and treated as closed."""
        assert not OpenWindow(start="07:00", end=None).is_open
        assert not OpenWindow().is_open

    def test_bad_hours_rejected_inside_location(self, athlete_id):
        with pytest.raises(ValidationError):
            Location(
                id="loc-bad",
                athlete_id=athlete_id,
                type=LocationType.HOME,
                name="Home",
                weekly_hours={Weekday.MONDAY: {"start": "25:99", "end": "03:00"}},
            )


class TestLocationSet:
    def test_latest_location_of_a_type_wins(self, home_location):
        newer = home_location.model_copy(update={"id": "loc-home-2"})
        assert LocationSet.from_locations([home_location, newer]).home.id == "loc-home-2"


class TestCompetition:
    """Competition dates and name."""

    def test_covers_inclusive_range(self):
        competition = Competition(id="c1", name="Nationals", start_date=date(2025, 3, 8), end_date=date(2025, 3, 9))
        assert competition.covers(date(2025, 3, 8))
        assert competition.covers(date(2025, 3, 9))
        assert not competition.covers(date(2025, 3, 10))

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError, match="on or after start date"):
            Competition(id="c1", name="Nationals", start_date=date(2025, 3, 9), end_date=date(2025, 3, 8))

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError, match="Competition name is required"):
            Competition(id="c1", name="  ", start_date=date(2025, 3, 8), end_date=date(2025, 3, 8))
