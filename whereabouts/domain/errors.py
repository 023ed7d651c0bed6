"""Canonical whereabouts error types.

Validation failures are NOT errors: SlotValidator returns them as values so
callers can render inline feedback. The types below are for the two other
kinds of failure:

- Precondition errors: the caller asked for a state change that is not
  allowed right now (submitting an incomplete quarter, filing a second Q2 for
  the same year). Raised before anything is mutated.
- Integrity errors: a programming error, e.g. a WeeklyPattern missing a
  weekday. These must fail loudly.

Standard precondition codes:
- QUARTER_NOT_COMPLETE: Submission attempted before every day is complete
- QUARTER_ALREADY_SUBMITTED: Submission attempted twice
- QUARTER_LOCKED: Edit or submission attempted after the quarter locked
- QUARTER_EXISTS: Athlete already has a quarter for that year/quarter
- PATTERN_NOT_VALID: Template save attempted with invalid days
"""


class WhereaboutsPreconditionError(RuntimeError):
    """Raised when an operation is rejected before any mutation.

    Attributes:
        code: Error code (e.g., "QUARTER_NOT_COMPLETE", "QUARTER_LOCKED")
        details: List of error detail strings
    """

    def __init__(self, code: str, details: list[str]):
        self.code = code
        self.details = details
        super().__init__(f"{code}: {details}")


class QuarterTransitionError(WhereaboutsPreconditionError):
    """Raised when a quarter status transition is not permitted."""


class QuarterLockedError(WhereaboutsPreconditionError):
    """Raised when slots of a submitted or locked quarter would change."""

    def __init__(self, quarter_id: str, status: str):
        super().__init__("QUARTER_LOCKED", [f"Quarter {quarter_id} is {status} and can no longer be edited"])


class DuplicateQuarterError(WhereaboutsPreconditionError):
    """Raised when an athlete already has a quarter for the year/quarter pair."""

    def __init__(self, athlete_id: str, year: int, quarter: str):
        super().__init__("QUARTER_EXISTS", [f"Athlete {athlete_id} already has {quarter} {year}"])


class NotFoundError(LookupError):
    """Raised when a referenced quarter, template or competition does not exist."""


class PatternIntegrityError(ValueError):
    """Raised when a weekly pattern breaks its structural invariant."""
