"""Sync trigger, status and history routes."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, select

from crmsync.db.engine import get_session
from crmsync.models.sync import SyncRun
from crmsync.sync.service import run_contact_sync

router = APIRouter()


class SyncTriggerResponse(BaseModel):
    message: str
    count: int


class SyncStatusResponse(BaseModel):
    status: str
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    records_synced: Optional[int]
    error_message: Optional[str]


async def _run_sync(session: Session) -> int:
    return await run_contact_sync(session)


@router.post("/contacts", response_model=SyncTriggerResponse)
async def trigger_sync(session: Session = Depends(get_session)):
    """
    Run a Salesforce contact sync now and report how many contacts it touched.
    Independent of the background schedule; the attempt is audited like any other run.
    """
    count = await _run_sync(session)
    return SyncTriggerResponse(
        message=f"Synced {count} contacts from Salesforce", count=count
    )


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(session: Session = Depends(get_session)):
    """Return the status of the most recent sync run."""
    run = session.exec(
        select(SyncRun).order_by(SyncRun.started_at.desc(), SyncRun.id.desc())
    ).first()
    if not run:
        return SyncStatusResponse(
            status="never_run",
            started_at=None,
            completed_at=None,
            records_synced=None,
            error_message=None,
        )
    return SyncStatusResponse(
        status=run.status,
        started_at=run.started_at,
        completed_at=run.completed_at,
        records_synced=run.records_synced,
        error_message=run.error_message,
    )


@router.get("/history", response_model=List[SyncRun])
def sync_history(
    limit: int = 20,
    offset: int = 0,
    session: Session = Depends(get_session),
):
    """List sync runs, newest first."""
    return session.exec(
        select(SyncRun)
        .order_by(SyncRun.started_at.desc(), SyncRun.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()
