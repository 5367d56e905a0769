"""
Main entrypoint: runs the background contact sync scheduler.

FastAPI runs separately under uvicorn (manual triggers and contact edits).
Set API_RUNS_SCHEDULER=true to run the schedule inside the API process
instead, so both share one Salesforce credential.

Usage:
    python -m crmsync               # starts the sync scheduler
    python -m crmsync once          # runs a single sync and exits
    uvicorn crmsync.api.main:app --host 0.0.0.0 --port 8000  # starts API
"""
import asyncio
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


async def _run_once() -> int:
    from crmsync.db.engine import get_engine, session_scope
    from crmsync.sync.service import run_contact_sync

    with session_scope(get_engine()) as session:
        return await run_contact_sync(session)


async def _run_scheduler() -> None:
    from crmsync.config import get_settings
    from crmsync.db.engine import get_engine
    from crmsync.scheduler.jobs import SyncScheduler

    settings = get_settings()
    if not settings.salesforce_client_id or not settings.salesforce_client_secret:
        logger.error(
            "SALESFORCE_CLIENT_ID / SALESFORCE_CLIENT_SECRET are not set. "
            "Every sync will fail authentication."
        )

    scheduler = SyncScheduler(get_engine())
    scheduler.start()
    logger.info("Press Ctrl+C to stop.")

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Shutting down...")
        await scheduler.stop()
        logger.info("Goodbye.")


if __name__ == "__main__":
    # Dispatch on first argument: `python -m crmsync once` or just `python -m crmsync`
    if len(sys.argv) > 1 and sys.argv[1] == "once":
        count = asyncio.run(_run_once())
        print(f"Synced {count} contacts from Salesforce")
    else:
        try:
            asyncio.run(_run_scheduler())
        except KeyboardInterrupt:
            pass
