import asyncio
from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from loguru import logger

from whereabouts.api.competitions import router as competitions_router
from whereabouts.api.dependencies import get_service
from whereabouts.api.locations import router as locations_router
from whereabouts.api.patterns import router as patterns_router
from whereabouts.api.quarters import router as quarters_router
from whereabouts.api.templates import router as templates_router
from whereabouts.config.settings import settings
from whereabouts.core.logger import setup_logger
from whereabouts.db.session import check_database_connection, init_db

setup_logger(
    level=settings.log_level,
    log_file=settings.log_file,
    rotation=settings.log_rotation,
    retention=settings.log_retention,
)


def lock_sweep_tick() -> None:
    """Scheduler job: lock every quarter whose end date has passed."""
    try:
        get_service().lock_all_expired_quarters()
    except Exception as e:
        logger.exception(f"[SCHEDULER] Lock sweep failed: {e}")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Create tables and start the lock sweep on startup.

    Note: FastAPI requires async for lifespan context manager,
    even if no await operations are used.
    """
    check_database_connection()
    init_db()

    scheduler = None
    if settings.lock_sweep_interval_minutes > 0:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            lock_sweep_tick,
            trigger=IntervalTrigger(minutes=settings.lock_sweep_interval_minutes),
            id="whereabouts_lock_sweep",
            name="Whereabouts quarter lock sweep",
            replace_existing=True,
        )
        scheduler.start()
        logger.info(f"[SCHEDULER] Started lock sweep (every {settings.lock_sweep_interval_minutes} minutes)")
        lock_sweep_tick()

    await asyncio.sleep(0)
    yield

    if scheduler is not None:
        scheduler.shutdown()
        logger.info("[SCHEDULER] Stopped lock sweep")


app = FastAPI(title="Whereabouts Compliance Engine", lifespan=lifespan)

app.include_router(competitions_router)
app.include_router(locations_router)
app.include_router(patterns_router)
app.include_router(quarters_router)
app.include_router(templates_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
