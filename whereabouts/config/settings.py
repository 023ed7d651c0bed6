import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues.

    SQLite is for local development only. Set DATABASE_URL to a PostgreSQL
    connection string for anything shared between devices.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "whereabouts.db"
    db_url = f"sqlite:///{db_path.resolve()}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_rotation: str = Field(default="10 MB", validation_alias="LOG_ROTATION", description="When LOG_FILE rolls over")
    log_retention: str = Field(default="7 days", validation_alias="LOG_RETENTION", description="How long rolled log files are kept")
    athlete_timezone: str = Field(
        default="UTC",
        validation_alias="ATHLETE_TIMEZONE",
        description="IANA timezone used to decide the athlete's local calendar date",
    )
    filing_deadline_day: int = Field(
        default=15,
        validation_alias="FILING_DEADLINE_DAY",
        description="Day of the month before a quarter starts on which its filing is due",
    )

    lock_sweep_interval_minutes: int = Field(
        default=60,
        validation_alias="LOCK_SWEEP_INTERVAL_MINUTES",
        description="How often expired quarters are locked in the background (0 disables the sweep)",
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("athlete_timezone")
    @classmethod
    def validate_athlete_timezone(cls, value: str) -> str:
        """Fall back to UTC when the configured timezone is unknown."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown ATHLETE_TIMEZONE '{value}'. Defaulting to UTC.")
            return "UTC"
        return value

    @field_validator("filing_deadline_day")
    @classmethod
    def validate_filing_deadline_day(cls, value: int) -> int:
        """Keep the deadline on a day every month has."""
        if not 1 <= value <= 28:
            logger.warning(f"FILING_DEADLINE_DAY must be between 1 and 28, got {value}. Defaulting to 15.")
            return 15
        return value


settings = Settings()
