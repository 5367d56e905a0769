"""
FastAPI application factory.

Tables are created by get_engine() on first use, so startup does no DB work
of its own. With API_RUNS_SCHEDULER=true the app also hosts the background
sync schedule: manual triggers and scheduled runs then live in one process
and share a single Salesforce credential.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from crmsync.api.routes import contacts, sync as sync_routes
from crmsync.config import Settings, get_settings
from crmsync.db.engine import get_engine
from crmsync.scheduler.jobs import SyncScheduler

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, engine=None) -> FastAPI:
    """
    Build the CRM sync API.

    Args:
        settings: Overrides get_settings(); only api_runs_scheduler is read here.
        engine: Engine for the hosted scheduler. Defaults to get_engine().
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler: Optional[SyncScheduler] = None
        if settings.api_runs_scheduler:
            scheduler = SyncScheduler(engine if engine is not None else get_engine())
            scheduler.start()
            logger.info("Background sync hosted by the API process")
        app.state.scheduler = scheduler
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()

    app = FastAPI(
        title="CRM Sync API",
        description="Salesforce contact sync: manual triggers, run history and contact edits",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
    app.include_router(sync_routes.router, prefix="/sync", tags=["sync"])

    return app


app = create_app()
