"""Request and response bodies for the whereabouts HTTP API.

Domain values (WeeklyPattern, Quarter, DailySlot, Template) are pydantic
models already and are used directly where their shape is the wire shape.
"""

from datetime import date

from pydantic import BaseModel, Field

from whereabouts.domain.models import Competition, DailySlot, Quarter, Template, WeeklyPattern
from whereabouts.domain.types import ApplyMode, LocationType, QuarterName, Weekday


class StartQuarterRequest(BaseModel):
    athlete_id: str = Field(description="Athlete filing the quarter")
    year: int = Field(description="Filing year", ge=2000, le=2100)
    quarter: QuarterName = Field(description="Q1, Q2, Q3 or Q4")


class ApplyPatternRequest(BaseModel):
    pattern: WeeklyPattern
    mode: ApplyMode = Field(default=ApplyMode.FILL_ONLY, description="fill_only keeps saved days, overwrite replaces all")
    competitions: list[Competition] = Field(default_factory=list)


class ApplyResponse(BaseModel):
    quarter: Quarter
    created: int
    updated: int
    unchanged: int


class UpdateDayRequest(BaseModel):
    location_type: LocationType | None = None
    time_start: str = ""
    time_end: str = ""
    notes: str | None = Field(default=None, max_length=500)
    overnight_location_id: str | None = None


class CompletionResponse(BaseModel):
    quarter_id: str
    status: str
    total_days: int
    days_completed: int
    completion_percentage: int
    missing_dates: list[date]
    days_until_deadline: int


class CopyPatternRequest(BaseModel):
    year: int = Field(ge=2000, le=2100)
    quarter: QuarterName


class DayValidationResponse(BaseModel):
    valid: bool
    reason: str | None = None


class PatternValidateRequest(BaseModel):
    athlete_id: str
    pattern: WeeklyPattern


class PatternValidateResponse(BaseModel):
    days: dict[Weekday, DayValidationResponse]
    completed_days: int
    valid_days: int
    invalid_days: int
    home_count: int
    training_count: int
    gym_count: int
    is_fully_valid: bool


class SaveTemplateRequest(BaseModel):
    athlete_id: str
    name: str = Field(max_length=120)
    description: str | None = Field(default=None, max_length=500)
    pattern: WeeklyPattern


class ApplyTemplateRequest(BaseModel):
    quarter_id: str
    mode: ApplyMode = ApplyMode.FILL_ONLY


class SlotsResponse(BaseModel):
    quarter_id: str
    slots: list[DailySlot]


class TemplateListResponse(BaseModel):
    templates: list[Template]
    default_template_id: str | None = None


class CompetitionRequest(BaseModel):
    name: str = Field(max_length=200)
    start_date: date
    end_date: date
    location_address: str | None = Field(default=None, max_length=500)
    city: str | None = None
    country: str | None = None
    additional_info: str | None = Field(default=None, max_length=1000)

    def to_competition(self, competition_id: str = "", athlete_id: str | None = None) -> Competition:
        """Domain value; raises ValueError for a blank name or an inverted date range."""
        return Competition(id=competition_id, athlete_id=athlete_id, **self.model_dump(exclude={"athlete_id"}))


class CreateCompetitionRequest(CompetitionRequest):
    athlete_id: str
