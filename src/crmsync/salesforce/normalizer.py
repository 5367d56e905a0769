"""
Salesforce Contact record normalizer.

Converts query records into RemoteContact values and local contacts into
Salesforce field maps. No DB or network access here.

A query record looks like:

    {
        "attributes": {"type": "Contact", "url": "/services/data/v59.0/sobjects/Contact/003..."},
        "Id": "0035g00000AbCdEAAV",
        "FirstName": "John",
        "LastName": "Doe",
        "Email": null,
        "Phone": "+1 555 0100"
    }

Salesforce sends null for blank fields; we map those to "" so downstream
code never sees None for a fetched field.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from crmsync.salesforce.errors import SalesforceApiError

CONTACT_QUERY = "SELECT Id, FirstName, LastName, Email, Phone FROM Contact"


@dataclass(frozen=True)
class RemoteContact:
    """One fetched Salesforce contact, ready for reconciliation."""

    remote_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    last_synced_at: datetime


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def normalize_contact_record(record: Dict[str, Any], synced_at: datetime) -> RemoteContact:
    """Map one query record to a RemoteContact.

    Raises:
        SalesforceApiError: if the record is not a dict or has no Id.
    """
    if not isinstance(record, dict):
        raise SalesforceApiError(f"Unexpected contact record: {record!r}")
    remote_id = record.get("Id")
    if not remote_id:
        raise SalesforceApiError("Salesforce contact record has no Id")

    return RemoteContact(
        remote_id=str(remote_id),
        first_name=_text(record.get("FirstName")),
        last_name=_text(record.get("LastName")),
        email=_text(record.get("Email")),
        phone=_text(record.get("Phone")),
        last_synced_at=synced_at,
    )


def contact_to_remote_fields(contact: Any) -> Dict[str, str]:
    """Build the sobject field map for creating a Contact.

    Accepts anything with first_name/last_name/email/phone attributes
    (ContactCreate or Contact). Blank values are left out; company stays
    local because the Contact sobject has no matching field.
    """
    fields: Dict[str, Optional[str]] = {
        "FirstName": contact.first_name,
        "LastName": contact.last_name,
        "Email": contact.email,
        "Phone": contact.phone,
    }
    return {key: value for key, value in fields.items() if value}
