"""Tests for the whereabouts HTTP API.

The service dependency is overridden with one bound to the in-memory test
database and a fixed clock.
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from whereabouts.api.dependencies import get_service
from whereabouts.core.clock import FixedClock
from whereabouts.db.repository import WhereaboutsRepository
from whereabouts.domain.models import WeeklyPattern
from whereabouts.main import app
from whereabouts.services.whereabouts_service import WhereaboutsService


@pytest.fixture
def client(db_session, home_location, training_location):
    service = WhereaboutsService(WhereaboutsRepository(), FixedClock(date(2025, 2, 10)))
    service.save_location(home_location)
    service.save_location(training_location)
    app.dependency_overrides[get_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _pattern_json(**overrides) -> dict:
    data = WeeklyPattern.default().model_dump(mode="json")
    data.update(overrides)
    return data


def _start(client, athlete_id, quarter="Q1") -> dict:
    response = client.post("/quarters", json={"athlete_id": athlete_id, "year": 2025, "quarter": quarter})
    assert response.status_code == 201
    return response.json()


class TestQuarterEndpoints:
    """Quarter lifecycle over HTTP."""

    def test_start_and_fetch(self, client, athlete_id):
        quarter = _start(client, athlete_id)
        assert quarter["status"] == "draft"
        assert quarter["total_days"] == 90

        response = client.get(f"/quarters/{quarter['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == quarter["id"]

        listed = client.get("/quarters", params={"athlete_id": athlete_id}).json()
        assert [q["id"] for q in listed] == [quarter["id"]]

    def test_duplicate_is_conflict(self, client, athlete_id):
        _start(client, athlete_id)
        response = client.post("/quarters", json={"athlete_id": athlete_id, "year": 2025, "quarter": "Q1"})
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "QUARTER_EXISTS"

    def test_unknown_quarter_is_not_found(self, client):
        assert client.get("/quarters/missing").status_code == 404

    def test_apply_complete_and_submit(self, client, athlete_id):
        """Test fill, completion and submission through the API."""
        quarter = _start(client, athlete_id)

        response = client.post(
            f"/quarters/{quarter['id']}/apply-pattern",
            json={"pattern": _pattern_json(), "mode": "fill_only"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["created"] == 90
        assert body["quarter"]["status"] == "complete"

        completion = client.get(f"/quarters/{quarter['id']}/completion").json()
        assert completion["completion_percentage"] == 100
        assert completion["missing_dates"] == []
        assert completion["days_until_deadline"] == (date(2024, 12, 15) - date(2025, 2, 10)).days

        submitted = client.post(f"/quarters/{quarter['id']}/submit")
        assert submitted.status_code == 200
        assert submitted.json()["status"] == "submitted"

        locked = client.post(
            f"/quarters/{quarter['id']}/apply-pattern",
            json={"pattern": _pattern_json(), "mode": "overwrite"},
        )
        assert locked.status_code == 409
        assert locked.json()["detail"]["code"] == "QUARTER_LOCKED"

    def test_submit_incomplete_is_conflict(self, client, athlete_id):
        quarter = _start(client, athlete_id)
        response = client.post(f"/quarters/{quarter['id']}/submit")
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "QUARTER_NOT_COMPLETE"

    def test_update_day(self, client, athlete_id):
        """Test a hand edit returns the validated slot."""
        quarter = _start(client, athlete_id)
        response = client.put(
            f"/quarters/{quarter['id']}/days/2025-01-05",
            json={"location_type": "training", "time_start": "09:00", "time_end": "10:00"},
        )
        assert response.status_code == 200
        slot = response.json()
        assert slot["is_complete"] is False  # training closed on Sundays
        assert slot["modification_count"] == 1

        outside = client.put(
            f"/quarters/{quarter['id']}/days/2025-04-05",
            json={"location_type": "home", "time_start": "06:00", "time_end": "07:00"},
        )
        assert outside.status_code == 422

    def test_pattern_and_copy(self, client, athlete_id):
        quarter = _start(client, athlete_id)
        assert client.get(f"/quarters/{quarter['id']}/pattern").json() is None

        client.post(f"/quarters/{quarter['id']}/apply-pattern", json={"pattern": _pattern_json(), "mode": "overwrite"})
        assert client.get(f"/quarters/{quarter['id']}/pattern").json() == _pattern_json()

        copied = client.post(f"/quarters/{quarter['id']}/copy", json={"year": 2025, "quarter": "Q2"})
        assert copied.status_code == 201
        assert copied.json()["quarter"]["copied_from_quarter_id"] == quarter["id"]


class TestPatternAndTemplateEndpoints:
    """Pattern validation and templates over HTTP."""

    def test_validate_pattern(self, client, athlete_id):
        """Test per-day reasons come back verbatim."""
        sunday_training = {"location_type": "training", "time_start": "09:00", "time_end": "10:00"}
        response = client.post(
            "/patterns/validate",
            json={"athlete_id": athlete_id, "pattern": _pattern_json(sunday=sunday_training)},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["days"]["sunday"] == {"valid": False, "reason": "Location not available on Sundays"}
        assert body["days"]["monday"]["valid"] is True
        assert body["valid_days"] == 6
        assert body["training_count"] == 1
        assert body["is_fully_valid"] is False

    def test_malformed_pattern_rejected(self, client, athlete_id):
        data = _pattern_json()
        del data["friday"]
        response = client.post("/patterns/validate", json={"athlete_id": athlete_id, "pattern": data})
        assert response.status_code == 422

    def test_template_lifecycle(self, client, athlete_id):
        quarter = _start(client, athlete_id)

        created = client.post("/templates", json={"athlete_id": athlete_id, "name": "Home", "pattern": _pattern_json()})
        assert created.status_code == 201
        template_id = created.json()["id"]

        applied = client.post(f"/templates/{template_id}/apply", json={"quarter_id": quarter["id"], "mode": "fill_only"})
        assert applied.status_code == 200
        assert applied.json()["created"] == 90

        default = client.post(f"/templates/{template_id}/default", params={"athlete_id": athlete_id})
        assert default.json()["is_default"] is True

        listed = client.get("/templates", params={"athlete_id": athlete_id}).json()
        assert listed["default_template_id"] == template_id
        assert listed["templates"][0]["usage_count"] == 1

        assert client.delete(f"/templates/{template_id}", params={"athlete_id": athlete_id}).status_code == 204
        assert client.delete(f"/templates/{template_id}", params={"athlete_id": athlete_id}).status_code == 404

    def test_invalid_template_rejected(self, client, athlete_id):
        sunday_training = {"location_type": "training", "time_start": "09:00", "time_end": "10:00"}
        response = client.post(
            "/templates",
            json={"athlete_id": athlete_id, "name": "Broken", "pattern": _pattern_json(sunday=sunday_training)},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["details"] == ["Sunday: Location not available on Sundays"]

    def test_locations(self, client, athlete_id):
        listed = client.get("/locations", params={"athlete_id": athlete_id}).json()
        assert {loc["type"] for loc in listed} == {"home", "training"}

    def test_location_with_bad_hours_rejected(self, client, athlete_id):
        """Test impossible opening hours are refused with 422."""
        body = {
            "id": "loc-home-2",
            "athlete_id": athlete_id,
            "type": "home",
            "name": "New flat",
            "weekly_hours": {"monday": {"start": "25:99", "end": "03:00"}},
        }
        assert client.put("/locations", json=body).status_code == 422

    def test_putting_a_new_home_replaces_the_old_one(self, client, athlete_id):
        body = {
            "id": "loc-home-2",
            "athlete_id": athlete_id,
            "type": "home",
            "name": "New flat",
            "weekly_hours": {"monday": {"start": "06:00", "end": "22:00"}},
        }
        assert client.put("/locations", json=body).status_code == 200

        listed = client.get("/locations", params={"athlete_id": athlete_id}).json()
        assert [loc["id"] for loc in listed if loc["type"] == "home"] == ["loc-home-2"]


class TestCompetitionEndpoints:
    """Competition registration over HTTP."""

    def test_competition_lifecycle(self, client, athlete_id):
        body = {
            "athlete_id": athlete_id,
            "name": "Nationals",
            "start_date": "2025-03-08",
            "end_date": "2025-03-09",
            "location_address": "Olympic Stadium",
            "city": "Madrid",
            "country": "ES",
        }
        created = client.post("/competitions", json=body)
        assert created.status_code == 201
        competition_id = created.json()["id"]

        listed = client.get("/competitions", params={"athlete_id": athlete_id}).json()
        assert [c["id"] for c in listed] == [competition_id]

        update = {key: value for key, value in body.items() if key != "athlete_id"}
        renamed = client.put(f"/competitions/{competition_id}", json={**update, "name": "National Finals"})
        assert renamed.status_code == 200
        assert renamed.json()["name"] == "National Finals"
        assert renamed.json()["athlete_id"] == athlete_id

        assert client.delete(f"/competitions/{competition_id}").status_code == 204
        assert client.delete(f"/competitions/{competition_id}").status_code == 404

    def test_inverted_dates_rejected(self, client, athlete_id):
        body = {"athlete_id": athlete_id, "name": "Nationals", "start_date": "2025-03-09", "end_date": "2025-03-08"}
        assert client.post("/competitions", json=body).status_code == 422

    def test_saved_competition_marks_applied_days(self, client, athlete_id):
        """Test a stored competition shows up on days filled by apply-pattern."""
        client.post(
            "/competitions",
            json={"athlete_id": athlete_id, "name": "Nationals", "start_date": "2025-03-08", "end_date": "2025-03-08"},
        )
        quarter = _start(client, athlete_id)
        client.post(f"/quarters/{quarter['id']}/apply-pattern", json={"pattern": _pattern_json(), "mode": "fill_only"})

        slots = client.get(f"/quarters/{quarter['id']}/slots").json()["slots"]
        by_date = {slot["date"]: slot for slot in slots}
        assert by_date["2025-03-08"]["is_competition"] is True
        assert by_date["2025-03-08"]["notes"] == "Competition: Nationals"
