from __future__ import annotations

import uuid
from datetime import date as date_type
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_PATTERN_TYPES_CLAUSE = "type IN ('home', 'training', 'gym')"


class WhereaboutsLocation(Base):
    """Registered place an athlete can be found at.

    Stores:
    - type: home / training / gym / competition / travel / work / school / other
    - weekly_hours: JSON mapping weekday -> {"start": "HH:MM", "end": "HH:MM"}
      (a missing weekday, or empty start/end, means closed)
    """

    __tablename__ = "whereabouts_locations"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    athlete_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    weekly_hours: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_whereabouts_locations_athlete_type", "athlete_id", "type"),
        # One home, one training and one gym location per athlete
        Index(
            "uq_whereabouts_locations_athlete_pattern_type",
            "athlete_id",
            "type",
            unique=True,
            sqlite_where=text(_PATTERN_TYPES_CLAUSE),
            postgresql_where=text(_PATTERN_TYPES_CLAUSE),
        ),
    )


class WhereaboutsQuarter(Base):
    """One athlete's filing period.

    days_completed / completion_percentage / status are recomputed from the
    quarter's daily slots after every slot mutation; they are stored for
    listing without loading every slot.
    """

    __tablename__ = "whereabouts_quarters"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    athlete_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    quarter: Mapped[str] = mapped_column(String, nullable=False)  # Q1..Q4
    start_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    end_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    filing_deadline: Mapped[date_type] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    days_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_days: Mapped[int] = mapped_column(Integer, nullable=False)
    completion_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    copied_from_quarter_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("athlete_id", "year", "quarter", name="uq_whereabouts_quarter_athlete_year_quarter"),
        Index("idx_whereabouts_quarters_athlete_status", "athlete_id", "status"),
    )


class WhereaboutsDailySlot(Base):
    """Whereabouts record for one date of a quarter.

    slot_60min is stored as JSON with the keys start_time, end_time,
    location_type, location_id, location_name, location_address.
    At most one row per (quarter_id, date).
    """

    __tablename__ = "whereabouts_daily_slots"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    quarter_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("whereabouts_quarters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    slot_60min: Mapped[dict] = mapped_column(JSON, nullable=False)
    overnight_location_id: Mapped[str | None] = mapped_column(String, nullable=True)
    is_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    modification_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_competition: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    competition_id: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (UniqueConstraint("quarter_id", "date", name="uq_whereabouts_daily_slot_quarter_date"),)


class WhereaboutsTemplate(Base):
    """Named weekly pattern.

    pattern is stored as JSON keyed by weekday ("monday" ... "sunday"), each
    value {"location_type": ..., "time_start": "HH:MM", "time_end": "HH:MM"}.
    """

    __tablename__ = "whereabouts_templates"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    athlete_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    pattern: Mapped[dict] = mapped_column(JSON, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


class WhereaboutsCompetition(Base):
    """Competition an athlete attends.

    Applying a pattern over start_date..end_date marks those days as
    competition days at location_address.
    """

    __tablename__ = "whereabouts_competitions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    athlete_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    end_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    location_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    country: Mapped[str | None] = mapped_column(String, nullable=True)
    additional_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (Index("idx_whereabouts_competitions_athlete_start", "athlete_id", "start_date"),)
