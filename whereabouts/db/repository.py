"""Persistence for quarters, daily slots, locations, templates and competitions.

Converts between the SQLAlchemy rows in whereabouts.db.models and the
domain values in whereabouts.domain.models. Each public method runs in its
own get_session() block, so a call either fully commits or changes nothing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime

from loguru import logger
from sqlalchemy import select

from whereabouts.core.clock import to_utc
from whereabouts.db.models import (
    WhereaboutsCompetition,
    WhereaboutsDailySlot,
    WhereaboutsLocation,
    WhereaboutsQuarter,
    WhereaboutsTemplate,
)
from whereabouts.db.session import get_session
from whereabouts.domain.errors import NotFoundError
from whereabouts.domain.models import (
    Competition,
    DailySlot,
    DaySlotPattern,
    Location,
    OpenWindow,
    Quarter,
    Slot60Min,
    Template,
    WeeklyPattern,
)
from whereabouts.domain.types import PATTERN_LOCATION_TYPES, QuarterName, QuarterStatus, Weekday


def _as_utc(dt: datetime | None) -> datetime | None:
    return to_utc(dt) if dt is not None else None


def _quarter_from_row(row: WhereaboutsQuarter) -> Quarter:
    return Quarter(
        id=row.id,
        athlete_id=row.athlete_id,
        year=row.year,
        quarter=QuarterName(row.quarter),
        start_date=row.start_date,
        end_date=row.end_date,
        filing_deadline=row.filing_deadline,
        status=QuarterStatus(row.status),
        days_completed=row.days_completed,
        total_days=row.total_days,
        completion_percentage=row.completion_percentage,
        submitted_at=_as_utc(row.submitted_at),
        locked_at=_as_utc(row.locked_at),
        copied_from_quarter_id=row.copied_from_quarter_id,
    )


def _copy_quarter_to_row(quarter: Quarter, row: WhereaboutsQuarter) -> None:
    row.athlete_id = quarter.athlete_id
    row.year = quarter.year
    row.quarter = quarter.quarter.value
    row.start_date = quarter.start_date
    row.end_date = quarter.end_date
    row.filing_deadline = quarter.filing_deadline
    row.status = quarter.status.value
    row.days_completed = quarter.days_completed
    row.total_days = quarter.total_days
    row.completion_percentage = quarter.completion_percentage
    row.submitted_at = _as_utc(quarter.submitted_at)
    row.locked_at = _as_utc(quarter.locked_at)
    row.copied_from_quarter_id = quarter.copied_from_quarter_id


def _slot_from_row(row: WhereaboutsDailySlot) -> DailySlot:
    return DailySlot(
        quarter_id=row.quarter_id,
        date=row.date,
        slot_60min=Slot60Min.model_validate(row.slot_60min),
        overnight_location_id=row.overnight_location_id,
        is_complete=row.is_complete,
        modification_count=row.modification_count,
        notes=row.notes,
        is_competition=row.is_competition,
        competition_id=row.competition_id,
    )


def _copy_slot_to_row(slot: DailySlot, row: WhereaboutsDailySlot) -> None:
    row.quarter_id = slot.quarter_id
    row.date = slot.date
    row.slot_60min = slot.slot_60min.model_dump(mode="json")
    row.overnight_location_id = slot.overnight_location_id
    row.is_complete = slot.is_complete
    row.modification_count = slot.modification_count
    row.notes = slot.notes
    row.is_competition = slot.is_competition
    row.competition_id = slot.competition_id


def _location_from_row(row: WhereaboutsLocation) -> Location:
    return Location(
        id=row.id,
        athlete_id=row.athlete_id,
        type=row.type,
        name=row.name,
        address=row.address,
        weekly_hours={Weekday(day): OpenWindow.model_validate(window) for day, window in (row.weekly_hours or {}).items()},
    )


def pattern_to_json(pattern: WeeklyPattern) -> dict[str, dict]:
    """Per-weekday JSON encoding used by the templates table."""
    return {day.value: day_pattern.model_dump(mode="json") for day, day_pattern in pattern.days()}


def pattern_from_json(data: Mapping[str, Mapping]) -> WeeklyPattern:
    """Decode a stored pattern.

    Raises:
        PatternIntegrityError: If a weekday is missing from the stored document
    """
    return WeeklyPattern.from_days({Weekday(day): DaySlotPattern.model_validate(value) for day, value in data.items()})


def _template_from_row(row: WhereaboutsTemplate) -> Template:
    return Template(
        id=row.id,
        athlete_id=row.athlete_id,
        name=row.name,
        description=row.description,
        pattern=pattern_from_json(row.pattern),
        usage_count=row.usage_count,
        is_default=row.is_default,
    )


def _copy_template_to_row(template: Template, row: WhereaboutsTemplate) -> None:
    row.athlete_id = template.athlete_id
    row.name = template.name
    row.description = template.description
    row.pattern = pattern_to_json(template.pattern)
    row.usage_count = template.usage_count
    row.is_default = template.is_default


def _competition_from_row(row: WhereaboutsCompetition) -> Competition:
    return Competition(
        id=row.id,
        athlete_id=row.athlete_id,
        name=row.name,
        start_date=row.start_date,
        end_date=row.end_date,
        location_address=row.location_address,
        city=row.city,
        country=row.country,
        additional_info=row.additional_info,
    )


class WhereaboutsRepository:
    """SQLAlchemy-backed store for the whereabouts service."""

    # Quarters

    def load_quarter(self, quarter_id: str) -> Quarter:
        """Load a quarter by id.

        Raises:
            NotFoundError: If no quarter has that id
        """
        with get_session() as db:
            row = db.get(WhereaboutsQuarter, quarter_id)
            if row is None:
                raise NotFoundError(f"Quarter {quarter_id} not found")
            return _quarter_from_row(row)

    def find_quarter(self, athlete_id: str, year: int, quarter: QuarterName) -> Quarter | None:
        with get_session() as db:
            row = db.execute(
                select(WhereaboutsQuarter).where(
                    WhereaboutsQuarter.athlete_id == athlete_id,
                    WhereaboutsQuarter.year == year,
                    WhereaboutsQuarter.quarter == QuarterName(quarter).value,
                )
            ).scalar_one_or_none()
            return _quarter_from_row(row) if row is not None else None

    def list_quarters(self, athlete_id: str) -> list[Quarter]:
        """All quarters of an athlete, oldest first."""
        with get_session() as db:
            rows = db.execute(
                select(WhereaboutsQuarter)
                .where(WhereaboutsQuarter.athlete_id == athlete_id)
                .order_by(WhereaboutsQuarter.year, WhereaboutsQuarter.quarter)
            ).scalars()
            return [_quarter_from_row(row) for row in rows]

    def list_unlocked_quarters_ending_before(self, today: date) -> list[Quarter]:
        """Quarters of any athlete that are not locked although end_date < today."""
        with get_session() as db:
            rows = db.execute(
                select(WhereaboutsQuarter).where(
                    WhereaboutsQuarter.status != QuarterStatus.LOCKED.value,
                    WhereaboutsQuarter.end_date < today,
                )
            ).scalars()
            return [_quarter_from_row(row) for row in rows]

    def save_quarter(self, quarter: Quarter) -> Quarter:
        with get_session() as db:
            self._upsert_quarter(db, quarter)
        logger.debug(f"[WHEREABOUTS] Saved quarter {quarter.id} status={quarter.status.value}")
        return quarter

    @staticmethod
    def _upsert_quarter(db, quarter: Quarter) -> None:
        row = db.get(WhereaboutsQuarter, quarter.id)
        if row is None:
            row = WhereaboutsQuarter(id=quarter.id)
            db.add(row)
        _copy_quarter_to_row(quarter, row)

    # Daily slots

    def load_slots(self, quarter_id: str) -> dict[date, DailySlot]:
        """All saved records of a quarter keyed by date, ascending."""
        with get_session() as db:
            rows = db.execute(
                select(WhereaboutsDailySlot)
                .where(WhereaboutsDailySlot.quarter_id == quarter_id)
                .order_by(WhereaboutsDailySlot.date)
            ).scalars()
            return {row.date: _slot_from_row(row) for row in rows}

    def save_slots(self, quarter_id: str, slots: Mapping[date, DailySlot], quarter: Quarter | None = None) -> int:
        """Upsert records by (quarter_id, date) in one transaction.

        Args:
            quarter_id: Quarter the records belong to
            slots: Records to write, keyed by date
            quarter: Optional quarter value written in the same transaction
                (refreshed counters and status)

        Returns:
            Number of records written
        """
        written = 0
        with get_session() as db:
            existing = {
                row.date: row
                for row in db.execute(
                    select(WhereaboutsDailySlot).where(WhereaboutsDailySlot.quarter_id == quarter_id)
                ).scalars()
            }
            for slot_date, slot in slots.items():
                if slot.quarter_id != quarter_id:
                    raise ValueError(f"Slot for {slot_date} belongs to quarter {slot.quarter_id}, not {quarter_id}")
                row = existing.get(slot_date)
                if row is None:
                    row = WhereaboutsDailySlot()
                    db.add(row)
                _copy_slot_to_row(slot, row)
                written += 1
            if quarter is not None:
                self._upsert_quarter(db, quarter)
        logger.debug(f"[WHEREABOUTS] Saved {written} slots for quarter {quarter_id}")
        return written

    # Locations

    def load_locations(self, athlete_id: str) -> list[Location]:
        with get_session() as db:
            rows = db.execute(
                select(WhereaboutsLocation)
                .where(WhereaboutsLocation.athlete_id == athlete_id)
                .order_by(WhereaboutsLocation.created_at)
            ).scalars()
            return [_location_from_row(row) for row in rows]

    def save_location(self, location: Location) -> Location:
        """Create or update a location.

        An athlete has at most one home, one training and one gym location:
        saving one of those types replaces any other location of the same
        type in the same transaction.
        """
        with get_session() as db:
            if location.type in PATTERN_LOCATION_TYPES:
                replaced = db.execute(
                    select(WhereaboutsLocation).where(
                        WhereaboutsLocation.athlete_id == location.athlete_id,
                        WhereaboutsLocation.type == location.type.value,
                        WhereaboutsLocation.id != location.id,
                    )
                ).scalars().all()
                for old in replaced:
                    db.delete(old)
                    logger.info(
                        f"[WHEREABOUTS] Replacing {location.type.value} location {old.id} with {location.id} "
                        f"for athlete {location.athlete_id}"
                    )
                if replaced:
                    # Deletes must reach the unique index before the insert
                    db.flush()

            row = db.get(WhereaboutsLocation, location.id)
            if row is None:
                row = WhereaboutsLocation(id=location.id)
                db.add(row)
            row.athlete_id = location.athlete_id
            row.type = location.type.value
            row.name = location.name
            row.address = location.address
            row.weekly_hours = {day.value: window.model_dump() for day, window in location.weekly_hours.items()}
        return location

    # Templates

    def load_templates(self, athlete_id: str) -> list[Template]:
        with get_session() as db:
            rows = db.execute(select(WhereaboutsTemplate).where(WhereaboutsTemplate.athlete_id == athlete_id)).scalars()
            return [_template_from_row(row) for row in rows]

    def save_template(self, template: Template) -> Template:
        with get_session() as db:
            row = db.get(WhereaboutsTemplate, template.id)
            if row is None:
                row = WhereaboutsTemplate(id=template.id)
                db.add(row)
            _copy_template_to_row(template, row)
        return template

    def save_templates(self, templates: Iterable[Template]) -> list[Template]:
        """Write several templates in one transaction (all or none).

        Used for default switches, where clearing the old default and
        setting the new one must land together.
        """
        templates = list(templates)
        with get_session() as db:
            for template in templates:
                row = db.get(WhereaboutsTemplate, template.id)
                if row is None:
                    row = WhereaboutsTemplate(id=template.id)
                    db.add(row)
                _copy_template_to_row(template, row)
        logger.debug(f"[WHEREABOUTS] Saved {len(templates)} templates in one transaction")
        return templates

    def increment_template_usage(self, template_id: str) -> Template:
        """Add one to a template's usage_count.

        Raises:
            NotFoundError: If no template has that id
        """
        with get_session() as db:
            row = db.get(WhereaboutsTemplate, template_id)
            if row is None:
                raise NotFoundError(f"Template {template_id} not found")
            row.usage_count = row.usage_count + 1
            return _template_from_row(row)

    def delete_template(self, template_id: str) -> None:
        """Delete a template.

        Raises:
            NotFoundError: If no template has that id
        """
        with get_session() as db:
            row = db.get(WhereaboutsTemplate, template_id)
            if row is None:
                raise NotFoundError(f"Template {template_id} not found")
            db.delete(row)
        logger.info(f"[WHEREABOUTS] Deleted template {template_id}")

    # Competitions

    def load_competitions(self, athlete_id: str) -> list[Competition]:
        """Competitions of an athlete, earliest first."""
        with get_session() as db:
            rows = db.execute(
                select(WhereaboutsCompetition)
                .where(WhereaboutsCompetition.athlete_id == athlete_id)
                .order_by(WhereaboutsCompetition.start_date, WhereaboutsCompetition.name)
            ).scalars()
            return [_competition_from_row(row) for row in rows]

    def get_competition(self, competition_id: str) -> Competition:
        """Load a competition by id.

        Raises:
            NotFoundError: If no competition has that id
        """
        with get_session() as db:
            row = db.get(WhereaboutsCompetition, competition_id)
            if row is None:
                raise NotFoundError(f"Competition {competition_id} not found")
            return _competition_from_row(row)

    def save_competition(self, competition: Competition) -> Competition:
        """Create or update a competition.

        Raises:
            ValueError: If the competition has no athlete_id
        """
        if not competition.athlete_id:
            raise ValueError(f"Competition {competition.id} has no athlete_id")
        with get_session() as db:
            row = db.get(WhereaboutsCompetition, competition.id)
            if row is None:
                row = WhereaboutsCompetition(id=competition.id)
                db.add(row)
            row.athlete_id = competition.athlete_id
            row.name = competition.name
            row.start_date = competition.start_date
            row.end_date = competition.end_date
            row.location_address = competition.location_address
            row.city = competition.city
            row.country = competition.country
            row.additional_info = competition.additional_info
        return competition

    def delete_competition(self, competition_id: str) -> None:
        """Delete a competition.

        Raises:
            NotFoundError: If no competition has that id
        """
        with get_session() as db:
            row = db.get(WhereaboutsCompetition, competition_id)
            if row is None:
                raise NotFoundError(f"Competition {competition_id} not found")
            db.delete(row)
        logger.info(f"[WHEREABOUTS] Deleted competition {competition_id}")
