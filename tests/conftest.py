"""Root conftest for all tests.

This file makes shared fixtures available across all test modules.
"""

from contextlib import contextmanager
from datetime import date

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from whereabouts.core.clock import FixedClock
from whereabouts.domain.models import Location, LocationSet, OpenWindow, Quarter
from whereabouts.domain.types import ALL_DAYS, LocationType, QuarterName, Weekday
from whereabouts.engine.quarters import new_quarter

ATHLETE_ID = "athlete-1"


# Enable foreign key constraints for SQLite
@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints in SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def athlete_id() -> str:
    """Stable athlete ID used across tests."""
    return ATHLETE_ID


@pytest.fixture
def home_location() -> Location:
    """Home, available all day every day."""
    return Location(
        id="loc-home",
        athlete_id=ATHLETE_ID,
        type=LocationType.HOME,
        name="Home",
        address="1 Main Street",
        weekly_hours={day: OpenWindow(start="00:00", end="24:00") for day in ALL_DAYS},
    )


@pytest.fixture
def training_location() -> Location:
    """Training centre, 06:00-20:00 Monday to Saturday, closed on Sunday."""
    hours = {day: OpenWindow(start="06:00", end="20:00") for day in ALL_DAYS if day != Weekday.SUNDAY}
    return Location(
        id="loc-training",
        athlete_id=ATHLETE_ID,
        type=LocationType.TRAINING,
        name="National Training Centre",
        address="2 Stadium Road",
        weekly_hours=hours,
    )


@pytest.fixture
def gym_location() -> Location:
    """Gym, 07:00-22:00 on weekdays only."""
    return Location(
        id="loc-gym",
        athlete_id=ATHLETE_ID,
        type=LocationType.GYM,
        name="City Gym",
        address="3 Iron Lane",
        weekly_hours={day: OpenWindow(start="07:00", end="22:00") for day in ALL_DAYS if not day.is_weekend},
    )


@pytest.fixture
def locations(home_location, training_location, gym_location) -> LocationSet:
    """All three pattern locations registered."""
    return LocationSet(home=home_location, training=training_location, gym=gym_location)


@pytest.fixture
def q1_2025() -> Quarter:
    """Q1 2025: Jan 1 - Mar 31, 90 days."""
    return new_quarter("quarter-q1", ATHLETE_ID, 2025, QuarterName.Q1)


@pytest.fixture
def fixed_clock() -> FixedClock:
    """Clock pinned inside Q1 2025."""
    return FixedClock(date(2025, 2, 10))


@pytest.fixture(scope="function")
def db_session(monkeypatch):
    """
    Provides a transactional in-memory SQLite DB session for tests.

    This fixture:
    - Creates an isolated in-memory SQLite database per test
    - Patches the engine getter to use it
    - Patches get_session() to return the test session
    - Uses transaction rollback for cleanup

    Usage:
        def test_something(db_session):
            repo = WhereaboutsRepository()
            repo.save_quarter(quarter)
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    def mock_get_engine():
        return engine

    monkeypatch.setattr("whereabouts.db.session._get_engine", mock_get_engine)

    from whereabouts.db.models import Base

    Base.metadata.create_all(engine)

    connection = engine.connect()
    transaction = connection.begin()

    test_session_local = sessionmaker(bind=connection, autocommit=False, autoflush=False)
    session = test_session_local()

    # The real get_session commits on exit; flushing keeps later queries
    # in the same test seeing the writes.
    @contextmanager
    def mock_get_session():
        yield session
        session.flush()

    import whereabouts.db.session as session_module

    monkeypatch.setattr(session_module, "get_session", mock_get_session)

    # Patch where it's imported/used (not just where it's defined)
    import whereabouts.db.repository as repo_module

    monkeypatch.setattr(repo_module, "get_session", mock_get_session)

    try:
        yield session
    finally:
        session.rollback()
        if transaction.is_active:
            transaction.rollback()
        session.close()
        connection.close()


@pytest.fixture(scope="function")
def committing_db(monkeypatch):
    """
    In-memory SQLite database behind the real get_session().

    Unlike db_session, every repository call commits, or rolls back on
    error, exactly as it does in production. Use it to check that a
    failed write leaves no partial state behind.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    from whereabouts.db.models import Base

    Base.metadata.create_all(engine)

    monkeypatch.setattr("whereabouts.db.session._get_engine", lambda: engine)
    monkeypatch.setattr("whereabouts.db.session._SessionLocal", None)

    try:
        yield engine
    finally:
        engine.dispose()
