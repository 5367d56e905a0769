"""
APScheduler jobs for background contact sync.

One interval job runs a full Salesforce sync every SYNC_INTERVAL_MINUTES
(default 30), starting as soon as the scheduler starts. Manual triggers
through the API are independent of this schedule.

Each run gets its own DB session and HTTP client; nothing but the cached
Salesforce credential is shared between runs. A failed run is logged and
the schedule carries on.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from crmsync.config import get_settings
from crmsync.db.engine import session_scope
from crmsync.sync.service import run_contact_sync

logger = logging.getLogger(__name__)

JOB_ID = "contact_sync"


def build_scheduler(
    engine,
    job: Optional[Callable] = None,
    run_immediately: bool = True,
) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        engine: SQLAlchemy engine passed to every run.
        job: Coroutine function to schedule. Defaults to _scheduled_sync.
        run_immediately: Fire the first run on start instead of after
            one full interval.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()

    extra: Dict[str, Any] = {}
    if run_immediately:
        extra["next_run_time"] = datetime.now(timezone.utc)

    scheduler.add_job(
        job or _scheduled_sync,
        trigger="interval",
        minutes=settings.sync_interval_minutes,
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,  # a slow run makes the next tick skip, not overlap
        coalesce=True,
        kwargs={"engine": engine},
        **extra,
    )

    return scheduler


async def _scheduled_sync(engine) -> None:
    """Scheduled job: one full contact sync in a fresh session."""
    logger.info("Automatic sync triggered at %s", datetime.utcnow().isoformat())

    try:
        with session_scope(engine) as session:
            count = await run_contact_sync(session)
        logger.info("Automatic sync completed: %d contacts synced", count)
    except Exception:
        logger.exception("Automatic sync failed")


class SyncScheduler:
    """
    Start/stop wrapper around the APScheduler instance.

    stop() is cooperative: the pending job is removed so no new run can
    start, in-flight runs are awaited to completion, and only then is the
    scheduler shut down. AsyncIOExecutor.shutdown() cancels job tasks, so
    each run executes in its own shielded task that outlives its job wrapper.

    Usage:
        scheduler = SyncScheduler(engine)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(self, engine, run_immediately: bool = True):
        self._running = False
        self._in_flight: Set[asyncio.Task] = set()
        self._scheduler = build_scheduler(
            engine, job=self._run, run_immediately=run_immediately
        )

    @property
    def state(self) -> str:
        return "running" if self._running else "idle"

    @property
    def scheduler(self) -> AsyncIOScheduler:
        return self._scheduler

    def start(self) -> None:
        """Start the schedule. Must be called from within a running event loop."""
        if self._running:
            return
        self._scheduler.start()
        self._running = True
        logger.info(
            "Sync scheduler started. Running every %d minutes.",
            get_settings().sync_interval_minutes,
        )

    async def stop(self) -> None:
        """Stop scheduling new runs, wait for in-flight runs, shut down."""
        if not self._running:
            return
        self._running = False
        self._scheduler.remove_all_jobs()
        # A job task already handed to the loop registers its run on its first step.
        await asyncio.sleep(0)
        await self._wait_in_flight()
        # AsyncIOScheduler.shutdown() is queued on the loop; yield so it runs.
        self._scheduler.shutdown(wait=False)
        await asyncio.sleep(0)
        await self._wait_in_flight()
        logger.info("Sync scheduler stopped.")

    async def _wait_in_flight(self) -> None:
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def _run(self, engine) -> None:
        run = asyncio.ensure_future(_scheduled_sync(engine))
        self._in_flight.add(run)
        run.add_done_callback(self._in_flight.discard)
        await asyncio.shield(run)
