from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager, suppress

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from whereabouts.config.settings import settings
from whereabouts.domain.errors import NotFoundError, WhereaboutsPreconditionError


def _is_postgresql(url: str) -> bool:
    return "postgresql" in url.lower() or "postgres" in url.lower()


def _validate_postgresql_driver() -> None:
    """Validate PostgreSQL driver is installed when using PostgreSQL.

    Must actually import psycopg2 (not just find the module) because SQLAlchemy
    will try to import it when creating the engine.
    """
    if _is_postgresql(settings.database_url):
        try:
            import psycopg2  # noqa: F401

            logger.info("PostgreSQL driver (psycopg2) is available")
        except ImportError as e:
            logger.error("PostgreSQL driver (psycopg2) is not installed. Install it with: pip install 'whereabouts-engine[postgres]'")
            raise ImportError("PostgreSQL driver required. Install with: pip install psycopg2-binary") from e


def check_database_connection() -> None:
    """Run a trivial query against the configured database."""
    try:
        with _get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection test successful")
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        raise


# Lazy initialization to avoid import-time database connections
_engine = None
_SessionLocal = None


def _get_engine():
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        logger.info(f"Initializing database engine: {settings.database_url}")

        connect_args = {}
        if _is_postgresql(settings.database_url):
            _validate_postgresql_driver()
            connect_args = {
                "connect_timeout": 10,
                "application_name": "whereabouts-engine",
            }
        elif "sqlite" in settings.database_url.lower():
            logger.warning("Using SQLite database (local development only)")
            connect_args = {"check_same_thread": False}

        _engine = create_engine(
            settings.database_url,
            connect_args=connect_args,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        logger.info("Database engine initialized")
    return _engine


def _get_session_local():
    """Get or create the session factory (lazy initialization)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
        logger.info("Database session factory initialized")
    return _SessionLocal


def init_db() -> None:
    """Create all whereabouts tables that do not exist yet."""
    from whereabouts.db.models import Base

    Base.metadata.create_all(bind=_get_engine())
    logger.info("Whereabouts tables ensured")


def _handle_session_commit(session: Session) -> None:
    """Commit only when the session holds changes."""
    if session.dirty or session.new or session.deleted:
        with suppress(Exception):
            logger.debug(f"Committing: dirty={len(session.dirty)}, new={len(session.new)}, deleted={len(session.deleted)}")
        session.commit()
    else:
        logger.debug("No changes to commit, skipping commit")


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get database session context manager.

    Everything done inside one `with get_session()` block is committed
    together or rolled back together:
    - HTTPException, precondition and not-found errors: rolled back and re-raised
      without database error logging (expected outcomes)
    - Other exceptions: logged as database errors, rolled back, re-raised
    """
    session = _get_session_local()()
    try:
        yield session
        _handle_session_commit(session)
    except (HTTPException, WhereaboutsPreconditionError, NotFoundError):
        logger.debug("Expected error in session, rolling back")
        session.rollback()
        raise
    except Exception as e:
        logger.error(
            f"Database session error, rolling back: {e}. "
            f"Error type: {type(e).__name__}, session state: "
            f"dirty={len(session.dirty)}, new={len(session.new)}, deleted={len(session.deleted)}"
        )
        session.rollback()
        raise
    finally:
        session.close()
