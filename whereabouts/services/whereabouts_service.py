"""Whereabouts filing workflow.

Orchestrates the pure engine (validation, application, completion,
lifecycle, templates) around a repository and a clock:

1. load quarter, slots and locations
2. reject the change if the quarter is submitted or locked (or has just
   expired and is locked now)
3. compute the new slot map in memory
4. recompute completion and status
5. persist slots and quarter in one transaction

Precondition failures are logged with log_precondition_failure and
re-raised unchanged.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import date

from loguru import logger

from whereabouts.core.clock import Clock
from whereabouts.db.repository import WhereaboutsRepository
from whereabouts.domain.errors import (
    DuplicateQuarterError,
    QuarterLockedError,
    QuarterTransitionError,
    WhereaboutsPreconditionError,
)
from whereabouts.domain.logging import log_precondition_failure
from whereabouts.domain.models import (
    Competition,
    DailySlot,
    DaySlotPattern,
    Location,
    LocationSet,
    Quarter,
    Template,
    WeeklyPattern,
)
from whereabouts.domain.types import ApplyMode, QuarterName, QuarterStatus
from whereabouts.engine.completion import QuarterCompletion, compute_completion
from whereabouts.engine.lifecycle import ensure_editable, is_past_end, refresh_quarter, submit_quarter
from whereabouts.engine.pattern_extractor import extract_pattern
from whereabouts.engine.quarter_applier import ApplyOutcome, apply_pattern, derive_daily_slot, summarize_application
from whereabouts.engine.quarters import DEFAULT_FILING_DEADLINE_DAY, new_quarter
from whereabouts.engine.template_store import TemplateSaveResult, TemplateStore


def _resolve_notes(notes: str | None, previous: DailySlot | None) -> str | None:
    if notes is None:
        return previous.notes if previous else None
    return notes.strip() or None


class WhereaboutsService:
    """Quarter filing operations for any athlete."""

    def __init__(
        self,
        repository: WhereaboutsRepository,
        clock: Clock,
        filing_deadline_day: int = DEFAULT_FILING_DEADLINE_DAY,
    ):
        self.repository = repository
        self.clock = clock
        self.filing_deadline_day = filing_deadline_day

    # Lookups

    def get_quarter(self, quarter_id: str) -> Quarter:
        return self.repository.load_quarter(quarter_id)

    def list_quarters(self, athlete_id: str) -> list[Quarter]:
        return self.repository.list_quarters(athlete_id)

    def get_slots(self, quarter_id: str) -> dict[date, DailySlot]:
        self.repository.load_quarter(quarter_id)
        return self.repository.load_slots(quarter_id)

    def get_completion(self, quarter_id: str) -> QuarterCompletion | None:
        quarter = self.repository.load_quarter(quarter_id)
        return compute_completion(quarter, self.repository.load_slots(quarter_id))

    def location_set(self, athlete_id: str) -> LocationSet:
        return LocationSet.from_locations(self.repository.load_locations(athlete_id))

    def list_locations(self, athlete_id: str) -> list[Location]:
        return self.repository.load_locations(athlete_id)

    def save_location(self, location: Location) -> Location:
        saved = self.repository.save_location(location)
        logger.info(f"[WHEREABOUTS] Saved {location.type.value} location {location.id} for athlete {location.athlete_id}")
        return saved

    # Quarter lifecycle

    def start_quarter(
        self,
        athlete_id: str,
        year: int,
        quarter: QuarterName,
        copied_from_quarter_id: str | None = None,
    ) -> Quarter:
        """Create an empty draft quarter.

        Raises:
            DuplicateQuarterError: If the athlete already has this year/quarter
        """
        if self.repository.find_quarter(athlete_id, year, quarter) is not None:
            err = DuplicateQuarterError(athlete_id, year, QuarterName(quarter).value)
            log_precondition_failure(err, {"athlete_id": athlete_id, "year": year, "quarter": QuarterName(quarter).value})
            raise err

        created = new_quarter(
            str(uuid.uuid4()),
            athlete_id,
            year,
            quarter,
            filing_deadline_day=self.filing_deadline_day,
            copied_from_quarter_id=copied_from_quarter_id,
        )
        self.repository.save_quarter(created)
        logger.info(
            f"[WHEREABOUTS] Started {created.quarter.value} {year} for athlete {athlete_id} "
            f"({created.start_date} to {created.end_date}, due {created.filing_deadline})"
        )
        return created

    def refresh_completion(self, quarter_id: str) -> Quarter:
        """Recompute counters and status from the saved slots and persist them."""
        quarter = self.repository.load_quarter(quarter_id)
        refreshed = self._refresh(quarter, self.repository.load_slots(quarter_id))
        if refreshed != quarter:
            self.repository.save_quarter(refreshed)
        return refreshed

    def submit(self, quarter_id: str) -> Quarter:
        """Submit a complete quarter.

        Raises:
            QuarterTransitionError: If the quarter is incomplete, already
                submitted, or locked
        """
        quarter = self.refresh_completion(quarter_id)
        completion = compute_completion(quarter, self.repository.load_slots(quarter_id))
        try:
            submitted = submit_quarter(quarter, completion, self.clock.now())
        except QuarterTransitionError as err:
            log_precondition_failure(err, {"quarter_id": quarter_id, "status": quarter.status.value})
            raise
        self.repository.save_quarter(submitted)
        logger.info(f"[WHEREABOUTS] Quarter {quarter_id} submitted at {submitted.submitted_at}")
        return submitted

    def lock_expired_quarters(self, athlete_id: str) -> list[Quarter]:
        """Lock every quarter of the athlete whose end date has passed.

        Returns:
            Quarters that were locked by this call
        """
        today = self.clock.today()
        locked: list[Quarter] = []
        for quarter in self.repository.list_quarters(athlete_id):
            if quarter.status == QuarterStatus.LOCKED or not is_past_end(quarter, today):
                continue
            refreshed = self._refresh(quarter, self.repository.load_slots(quarter.id))
            self.repository.save_quarter(refreshed)
            locked.append(refreshed)
        if locked:
            logger.info(f"[WHEREABOUTS] Locked {len(locked)} expired quarter(s) for athlete {athlete_id}")
        return locked

    def lock_all_expired_quarters(self) -> int:
        """Lock expired quarters of every athlete (periodic sweep).

        Returns:
            Number of quarters locked
        """
        today = self.clock.today()
        count = 0
        for quarter in self.repository.list_unlocked_quarters_ending_before(today):
            refreshed = self._refresh(quarter, self.repository.load_slots(quarter.id))
            self.repository.save_quarter(refreshed)
            count += 1
        logger.info(f"[SCHEDULER] Lock sweep for {today}: locked {count} quarter(s)")
        return count

    # Slot mutations

    def apply_pattern(
        self,
        quarter_id: str,
        pattern: WeeklyPattern,
        mode: ApplyMode,
        competitions: Iterable[Competition] = (),
    ) -> tuple[Quarter, ApplyOutcome]:
        """Apply a weekly pattern to a quarter and persist the result.

        The athlete's saved competitions are always laid over the pattern;
        competitions passed in add to them (and win on the same id).

        Raises:
            QuarterLockedError: If the quarter is submitted or locked
        """
        quarter = self._load_editable(quarter_id)
        existing = self.repository.load_slots(quarter_id)
        locations = self.location_set(quarter.athlete_id)

        competitions = self._competitions_for(quarter.athlete_id, competitions)
        slots = apply_pattern(pattern, quarter, existing, mode, locations, competitions)
        return self._persist_application(quarter, existing, slots, mode)

    def update_day(
        self,
        quarter_id: str,
        slot_date: date,
        day_pattern: DaySlotPattern,
        notes: str | None = None,
        overnight_location_id: str | None = None,
    ) -> DailySlot:
        """Edit the slot of a single date by hand.

        The new record is validated like any generated one; modification_count
        goes up by one for every edit. notes=None keeps the previous note and
        an empty string clears it.

        Raises:
            QuarterLockedError: If the quarter is submitted or locked
            ValueError: If slot_date lies outside the quarter
        """
        quarter = self._load_editable(quarter_id)
        if not quarter.contains(slot_date):
            raise ValueError(f"{slot_date} is outside quarter {quarter.start_date} to {quarter.end_date}")

        existing = self.repository.load_slots(quarter_id)
        previous = existing.get(slot_date)
        derived = derive_daily_slot(quarter_id, slot_date, day_pattern, self.location_set(quarter.athlete_id))
        updated = derived.model_copy(
            update={
                "modification_count": (previous.modification_count if previous else 0) + 1,
                "notes": _resolve_notes(notes, previous),
                "overnight_location_id": overnight_location_id
                if overnight_location_id is not None
                else (previous.overnight_location_id if previous else None),
                "is_competition": previous.is_competition if previous else False,
                "competition_id": previous.competition_id if previous else None,
            }
        )

        slots = {**existing, slot_date: updated}
        refreshed = self._refresh(quarter, slots)
        self.repository.save_slots(quarter_id, {slot_date: updated}, quarter=refreshed)
        logger.info(
            f"[WHEREABOUTS] Updated {slot_date} of quarter {quarter_id} "
            f"(complete={updated.is_complete}, edits={updated.modification_count})"
        )
        return updated

    # Patterns

    def extract_pattern(self, quarter_id: str) -> WeeklyPattern | None:
        self.repository.load_quarter(quarter_id)
        return extract_pattern(self.repository.load_slots(quarter_id))

    def copy_pattern_to_new_quarter(
        self,
        source_quarter_id: str,
        year: int,
        quarter: QuarterName,
    ) -> tuple[Quarter, ApplyOutcome]:
        """Start a new quarter pre-filled with the pattern of an existing one.

        Raises:
            WhereaboutsPreconditionError: SOURCE_QUARTER_EMPTY if the source has no slots
            DuplicateQuarterError: If the target quarter already exists
        """
        source = self.repository.load_quarter(source_quarter_id)
        pattern = extract_pattern(self.repository.load_slots(source_quarter_id))
        if pattern is None:
            err = WhereaboutsPreconditionError(
                "SOURCE_QUARTER_EMPTY",
                [f"Quarter {source_quarter_id} has no saved days to copy"],
            )
            log_precondition_failure(err, {"quarter_id": source_quarter_id})
            raise err

        target = self.start_quarter(source.athlete_id, year, quarter, copied_from_quarter_id=source.id)
        result = self.apply_pattern(target.id, pattern, ApplyMode.OVERWRITE)
        logger.info(f"[WHEREABOUTS] Copied pattern of quarter {source.id} into {target.id}")
        return result

    # Templates

    def template_store(self, athlete_id: str) -> TemplateStore:
        return TemplateStore(athlete_id, self.repository.load_templates(athlete_id))

    def list_templates(self, athlete_id: str) -> list[Template]:
        return self.template_store(athlete_id).list_templates()

    def save_template(
        self,
        athlete_id: str,
        pattern: WeeklyPattern,
        name: str,
        description: str | None = None,
    ) -> TemplateSaveResult:
        """Save a fully valid pattern as a named template (rejections are returned, not raised)."""
        store = self.template_store(athlete_id)
        result = store.save(pattern, name, self.location_set(athlete_id), description)
        if result.template is not None:
            self.repository.save_template(result.template)
        return result

    def apply_template(self, template_id: str, quarter_id: str, mode: ApplyMode) -> tuple[Quarter, ApplyOutcome]:
        """Apply a template to a quarter and count the use.

        Raises:
            NotFoundError: If the quarter's athlete has no such template
            QuarterLockedError: If the quarter is submitted or locked
        """
        quarter = self._load_editable(quarter_id)
        store = self.template_store(quarter.athlete_id)
        existing = self.repository.load_slots(quarter_id)

        slots = store.apply_to_quarter(
            template_id,
            quarter,
            existing,
            mode,
            self.location_set(quarter.athlete_id),
            self._competitions_for(quarter.athlete_id),
        )
        result = self._persist_application(quarter, existing, slots, mode)
        self.repository.increment_template_usage(template_id)
        return result

    def set_default_template(self, athlete_id: str, template_id: str) -> Template:
        """Make one template the athlete's default.

        The previous default is cleared in the same transaction, so a failed
        write leaves the old default in place.

        Raises:
            NotFoundError: If the athlete has no such template
        """
        store = self.template_store(athlete_id)
        changed = store.set_default(template_id)
        if changed:
            self.repository.save_templates(changed)
        return store.get(template_id)

    def delete_template(self, athlete_id: str, template_id: str) -> None:
        """Delete one of the athlete's templates.

        Raises:
            NotFoundError: If the athlete has no such template
        """
        self.template_store(athlete_id).delete(template_id)
        self.repository.delete_template(template_id)

    # Competitions

    def list_competitions(self, athlete_id: str) -> list[Competition]:
        return self.repository.load_competitions(athlete_id)

    def add_competition(self, athlete_id: str, competition: Competition) -> Competition:
        """Register a competition under a fresh id.

        It takes effect on the next pattern or template application; days
        already saved are not rewritten.
        """
        created = competition.model_copy(update={"id": str(uuid.uuid4()), "athlete_id": athlete_id})
        self.repository.save_competition(created)
        logger.info(
            f"[WHEREABOUTS] Added competition '{created.name}' ({created.start_date} to {created.end_date}) "
            f"for athlete {athlete_id}"
        )
        return created

    def update_competition(self, competition_id: str, competition: Competition) -> Competition:
        """Replace a competition's details, keeping its id and owner.

        Raises:
            NotFoundError: If no competition has that id
        """
        current = self.repository.get_competition(competition_id)
        updated = competition.model_copy(update={"id": current.id, "athlete_id": current.athlete_id})
        self.repository.save_competition(updated)
        logger.info(f"[WHEREABOUTS] Updated competition {competition_id}")
        return updated

    def delete_competition(self, competition_id: str) -> None:
        self.repository.delete_competition(competition_id)

    # Internals

    def _competitions_for(self, athlete_id: str, extra: Iterable[Competition] = ()) -> list[Competition]:
        extra = list(extra)
        given_ids = {competition.id for competition in extra}
        saved = [c for c in self.repository.load_competitions(athlete_id) if c.id not in given_ids]
        return [*extra, *saved]

    def _refresh(self, quarter: Quarter, slots: dict[date, DailySlot]) -> Quarter:
        return refresh_quarter(quarter, compute_completion(quarter, slots), self.clock.today(), self.clock.now())

    def _load_editable(self, quarter_id: str) -> Quarter:
        quarter = self.repository.load_quarter(quarter_id)
        if quarter.status != QuarterStatus.LOCKED and is_past_end(quarter, self.clock.today()):
            quarter = self.refresh_completion(quarter_id)
        try:
            ensure_editable(quarter)
        except QuarterLockedError as err:
            log_precondition_failure(err, {"quarter_id": quarter_id, "status": quarter.status.value})
            raise
        return quarter

    def _persist_application(
        self,
        quarter: Quarter,
        existing: dict[date, DailySlot],
        slots: dict[date, DailySlot],
        mode: ApplyMode,
    ) -> tuple[Quarter, ApplyOutcome]:
        outcome = summarize_application(existing, slots)
        changed = {d: slot for d, slot in slots.items() if existing.get(d) != slot}
        refreshed = self._refresh(quarter, slots)
        self.repository.save_slots(quarter.id, changed, quarter=refreshed)
        logger.info(
            f"[WHEREABOUTS] Applied pattern to quarter {quarter.id} ({mode.value}): "
            f"created={outcome.created} updated={outcome.updated} unchanged={outcome.unchanged} "
            f"completion={refreshed.completion_percentage}% status={refreshed.status.value}"
        )
        return refreshed, outcome
