"""Named, reusable weekly patterns for one athlete.

The store works on a collection the caller loads and persists; it keeps no
module-level state. Rules:
- only fully valid patterns can be saved (no invalid day);
- every successful application to a quarter bumps usage_count by exactly one,
  even when FILL_ONLY had nothing to fill;
- at most one template is the default; choosing a new one clears the old one
  in the same call.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date

from loguru import logger

from whereabouts.domain.errors import NotFoundError
from whereabouts.domain.models import Competition, DailySlot, LocationSet, Quarter, Template, WeeklyPattern
from whereabouts.domain.types import ApplyMode
from whereabouts.engine.pattern_engine import compute_pattern_stats, validate_pattern_day
from whereabouts.engine.quarter_applier import apply_pattern


@dataclass(frozen=True)
class TemplateSaveResult:
    """Outcome of saving a pattern as a template.

    Attributes:
        template: The stored template, or None when rejected
        errors: Reasons for rejection ("Monday: Enter time", ...)
    """

    template: Template | None
    errors: list[str] = field(default_factory=list)

    @property
    def saved(self) -> bool:
        return self.template is not None


def _new_template_id() -> str:
    return str(uuid.uuid4())


class TemplateStore:
    """An athlete's templates, keyed by id."""

    def __init__(
        self,
        athlete_id: str,
        templates: Iterable[Template] = (),
        id_factory: Callable[[], str] = _new_template_id,
    ):
        self.athlete_id = athlete_id
        self._templates: dict[str, Template] = {t.id: t for t in templates}
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def get(self, template_id: str) -> Template:
        """Look up a template.

        Raises:
            NotFoundError: If the athlete has no template with that id
        """
        template = self._templates.get(template_id)
        if template is None:
            raise NotFoundError(f"Template {template_id} not found")
        return template

    def list_templates(self) -> list[Template]:
        """Templates ordered by usage (most used first), then name."""
        return sorted(self._templates.values(), key=lambda t: (-t.usage_count, t.name.lower()))

    @property
    def default_template(self) -> Template | None:
        return next((t for t in self._templates.values() if t.is_default), None)

    def save(
        self,
        pattern: WeeklyPattern,
        name: str,
        locations: LocationSet,
        description: str | None = None,
    ) -> TemplateSaveResult:
        """Store a pattern under a name if every day is valid.

        Args:
            pattern: Pattern to store
            name: Template name (required)
            locations: Locations the pattern is validated against
            description: Optional free text

        Returns:
            TemplateSaveResult with the new template, or with errors and nothing stored
        """
        errors: list[str] = []
        if not name or not name.strip():
            errors.append("Template name is required")

        stats = compute_pattern_stats(pattern, locations)
        if stats.invalid_days > 0:
            for day, _ in pattern.days():
                validation = validate_pattern_day(pattern, day, locations)
                if not validation.valid:
                    errors.append(f"{day.label}: {validation.reason}")

        if errors:
            logger.info(f"[TEMPLATES] Rejected template '{name}' for athlete {self.athlete_id}: {errors}")
            return TemplateSaveResult(template=None, errors=errors)

        template = Template(
            id=self._id_factory(),
            athlete_id=self.athlete_id,
            name=name.strip(),
            description=description,
            pattern=pattern.model_copy(deep=True),
            usage_count=0,
            is_default=False,
        )
        self._templates[template.id] = template
        logger.info(f"[TEMPLATES] Saved template '{template.name}' ({template.id}) for athlete {self.athlete_id}")
        return TemplateSaveResult(template=template)

    def apply_to_quarter(
        self,
        template_id: str,
        quarter: Quarter,
        existing_slots: Mapping[date, DailySlot],
        mode: ApplyMode,
        locations: LocationSet,
        competitions: Iterable[Competition] = (),
    ) -> dict[date, DailySlot]:
        """Apply a template's pattern to a quarter and count the use.

        Returns:
            Full slot map for the quarter, as apply_pattern returns it
        """
        template = self.get(template_id)
        slots = apply_pattern(template.pattern, quarter, existing_slots, mode, locations, competitions)
        self._templates[template_id] = template.model_copy(update={"usage_count": template.usage_count + 1})
        logger.info(f"[TEMPLATES] Applied template {template_id} to quarter {quarter.id} ({mode.value})")
        return slots

    def set_default(self, template_id: str) -> list[Template]:
        """Make one template the default and clear any previous default.

        Returns:
            Every template whose is_default flag changed
        """
        self.get(template_id)
        changed: list[Template] = []
        for tid, template in self._templates.items():
            should_be_default = tid == template_id
            if template.is_default != should_be_default:
                updated = template.model_copy(update={"is_default": should_be_default})
                self._templates[tid] = updated
                changed.append(updated)
        return changed

    def delete(self, template_id: str) -> Template:
        """Remove a template.

        Raises:
            NotFoundError: If the athlete has no template with that id
        """
        template = self.get(template_id)
        del self._templates[template_id]
        return template
