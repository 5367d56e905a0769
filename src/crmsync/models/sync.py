"""Sync run audit model."""
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

STATUS_RUNNING = "running"
STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


class SyncRun(SQLModel, table=True):
    """Records each sync attempt for audit and debugging. Never deleted by the engine."""

    id: Optional[int] = Field(default=None, primary_key=True)
    started_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    completed_at: Optional[datetime] = None
    status: str = STATUS_RUNNING  # "running" -> "success" | "failed"
    records_synced: int = 0
    error_message: Optional[str] = None  # set only when status == "failed"
