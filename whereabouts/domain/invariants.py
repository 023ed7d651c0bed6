"""Global Whereabouts Invariants - Single Source of Truth.

Every validator, applier, and template check reads its constants from here.

All times are wall-clock minutes from the athlete's local midnight.
"24:00" is accepted as an end time and means end of day (1440).
"""

# Slot length (whereabouts rules require exactly one hour)
SLOT_DURATION_MINUTES = 60

# Daily window in which a slot may sit
EARLIEST_SLOT_START_MINUTES = 5 * 60  # 05:00
LATEST_SLOT_END_MINUTES = 24 * 60  # 24:00

# Default day used for new patterns, cleared patterns, and extraction fallback
DEFAULT_LOCATION_TYPE = "home"
DEFAULT_TIME_START = "06:00"
DEFAULT_TIME_END = "07:00"

# Days in a pattern
DAYS_PER_PATTERN = 7

# Percentage bounds
MIN_COMPLETION_PCT = 0
MAX_COMPLETION_PCT = 100
