"""Local contact model mirrored from Salesforce."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class Contact(SQLModel, table=True):
    """One row per contact. remote_id links the row to its Salesforce record."""

    id: Optional[int] = Field(default=None, primary_key=True)

    # Salesforce Contact.Id; NULL until the record exists remotely
    remote_id: Optional[str] = Field(default=None, unique=True, index=True)

    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None  # local only, Salesforce Contact has no such field

    # Stored for reference; not used for conflict detection (remote always wins)
    last_modified_remote: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None


class ContactCreate(BaseModel):
    """Payload for the manual create flow (local row + Salesforce record)."""

    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None


class ContactUpdate(BaseModel):
    """Manual local edit. Only fields that are set are applied; remote_id is not editable."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
