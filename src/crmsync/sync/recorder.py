"""Sync run audit trail: begin / succeed / fail, each committed immediately."""
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from crmsync.models.sync import STATUS_FAILED, STATUS_RUNNING, STATUS_SUCCESS, SyncRun


class InvalidTransitionError(RuntimeError):
    """Raised when finishing a run that is no longer running."""


class SyncRunRecorder:
    """Persists the lifecycle of one SyncRun row: running -> success | failed."""

    def __init__(self, session: Session):
        self.session = session

    def begin(self) -> SyncRun:
        """Insert a running row and commit it so it survives a crashed run."""
        run = SyncRun(started_at=datetime.utcnow(), status=STATUS_RUNNING)
        self.session.add(run)
        self.session.commit()
        self.session.refresh(run)
        return run

    def succeed(self, run: SyncRun, records_synced: int) -> SyncRun:
        return self._finish(run, status=STATUS_SUCCESS, records_synced=records_synced)

    def fail(self, run: SyncRun, error_message: str) -> SyncRun:
        """Mark failed. records_synced keeps whatever value it already had."""
        return self._finish(run, status=STATUS_FAILED, error_message=error_message)

    def _finish(
        self,
        run: SyncRun,
        *,
        status: str,
        records_synced: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> SyncRun:
        db_run = self.session.get(SyncRun, run.id)
        if db_run is None:
            raise InvalidTransitionError(f"Sync run {run.id} does not exist")
        if db_run.status != STATUS_RUNNING:
            raise InvalidTransitionError(
                f"Sync run {run.id} is already {db_run.status}"
            )

        db_run.status = status
        db_run.completed_at = datetime.utcnow()
        if records_synced is not None:
            db_run.records_synced = records_synced
        db_run.error_message = error_message
        self.session.add(db_run)
        self.session.commit()
        self.session.refresh(db_run)
        return db_run
