"""
Upsert a fetched batch of Salesforce contacts into the local store.

Matching is by exact remote_id. Matched rows get first/last name, email,
phone and last_synced_at overwritten (remote wins); remote_id and company
are never touched. Unmatched records become new rows. Nothing is deleted.

The whole batch is committed once at the end. Autoflush makes a remote_id
that appears twice in one batch match the row inserted for its first
occurrence, so the unique constraint on remote_id holds.
"""
import logging
from typing import Sequence

from sqlmodel import Session, select

from crmsync.models.contact import Contact
from crmsync.salesforce.normalizer import RemoteContact

logger = logging.getLogger(__name__)


class ContactReconciler:
    def __init__(self, session: Session):
        self.session = session

    def reconcile(self, batch: Sequence[RemoteContact]) -> int:
        """
        Merge `batch` into the contact table.

        Returns:
            Number of records processed (created + updated).

        Raises:
            Any SQLAlchemy error from the flush/commit; the caller rolls back.
        """
        created = 0
        for remote in batch:
            existing = self.session.exec(
                select(Contact).where(Contact.remote_id == remote.remote_id)
            ).first()

            if existing:
                existing.first_name = remote.first_name
                existing.last_name = remote.last_name
                existing.email = remote.email
                existing.phone = remote.phone
                existing.last_synced_at = remote.last_synced_at
                self.session.add(existing)
            else:
                self.session.add(
                    Contact(
                        remote_id=remote.remote_id,
                        first_name=remote.first_name,
                        last_name=remote.last_name,
                        email=remote.email,
                        phone=remote.phone,
                        last_synced_at=remote.last_synced_at,
                    )
                )
                created += 1

        self.session.commit()
        logger.debug(
            "Reconciled %d contacts (%d new, %d updated)",
            len(batch), created, len(batch) - created,
        )
        return len(batch)
