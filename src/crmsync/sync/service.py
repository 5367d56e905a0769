"""
ContactSyncService — one Salesforce -> DB synchronization attempt.

Flow for run_sync():
  1. Create SyncRun (status="running")
  2. Authenticate; on failure mark the run failed and return 0
  3. Fetch all contacts; on an empty batch mark the run successful with 0
  4. Reconcile the batch into the contact table
  5. Mark the run successful with the reconciled count

Auth and fetch report trouble as values (False / []). Anything raised in
steps 2-4 is caught once here: the session is rolled back, the run is marked
failed (best effort), and the exception is re-raised to the caller.

create_contact() is the narrower manual path: authenticate, create the
record in Salesforce, then store it locally with the new remote_id. It does
not reconcile and does not write a SyncRun.
"""
import logging
from datetime import datetime
from typing import Optional

import httpx
from sqlmodel import Session

from crmsync.config import get_settings
from crmsync.models.contact import Contact, ContactCreate
from crmsync.models.sync import SyncRun
from crmsync.salesforce.auth import SalesforceAuth, get_auth
from crmsync.salesforce.client import SalesforceClient
from crmsync.salesforce.normalizer import contact_to_remote_fields
from crmsync.sync.reconciler import ContactReconciler
from crmsync.sync.recorder import SyncRunRecorder

logger = logging.getLogger(__name__)

AUTH_FAILED_MESSAGE = "authentication failed"


class ContactSyncService:
    """Orchestrates Salesforce -> DB contact sync within one session."""

    def __init__(self, auth: SalesforceAuth, client: SalesforceClient, session: Session):
        """
        Args:
            auth: credential provider (or AsyncMock in tests).
            client: SalesforceClient reading with auth's credential.
            session: DB session owned by the caller for the duration of the run.
        """
        self.auth = auth
        self.client = client
        self.session = session
        self.recorder = SyncRunRecorder(session)
        self.reconciler = ContactReconciler(session)

    async def run_sync(self) -> int:
        """
        Run one full sync attempt.

        Returns:
            Number of contacts created or updated (0 on auth failure or
            an empty fetch).

        Raises:
            Any exception from fetch/reconcile, after the run is marked failed.
        """
        run = self.recorder.begin()
        logger.info("Contact sync %s started", run.id)

        try:
            if not await self.auth.authenticate():
                logger.warning("Contact sync %s: cannot sync, authentication failed", run.id)
                self.recorder.fail(run, AUTH_FAILED_MESSAGE)
                return 0

            batch = await self.client.fetch_all()
            if not batch:
                logger.warning("Contact sync %s: no contacts found in Salesforce", run.id)
                self.recorder.succeed(run, 0)
                return 0

            count = self.reconciler.reconcile(batch)
            self.recorder.succeed(run, count)

        except Exception as exc:
            logger.error("Contact sync %s failed: %s", run.id, exc)
            self._record_failure(run, exc)
            raise

        logger.info("Contact sync %s completed: %d contacts synced", run.id, count)
        return count

    async def create_contact(self, data: ContactCreate) -> Optional[Contact]:
        """
        Create a contact in Salesforce, then store it locally.

        Returns:
            The persisted Contact, or None if authentication or the remote
            create failed (nothing is stored in that case).
        """
        if not await self.auth.authenticate():
            logger.warning("Cannot create contact, authentication failed")
            return None

        remote_id = await self.client.create_contact(contact_to_remote_fields(data))
        if remote_id is None:
            return None

        contact = Contact(
            remote_id=remote_id,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            phone=data.phone,
            company=data.company,
            last_synced_at=datetime.utcnow(),
        )
        self.session.add(contact)
        self.session.commit()
        self.session.refresh(contact)
        return contact

    def _record_failure(self, run: SyncRun, exc: Exception) -> None:
        try:
            self.session.rollback()
            self.recorder.fail(run, str(exc) or type(exc).__name__)
        except Exception:
            # The original fault is re-raised by run_sync; this one is only logged.
            logger.exception("Could not record failure of contact sync %s", run.id)


async def run_contact_sync(session: Session) -> int:
    """Build a client for one run and sync. Shared by the scheduler, API and CLI."""
    settings = get_settings()
    auth = get_auth()
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http:
        client = SalesforceClient(auth=auth, http_client=http)
        service = ContactSyncService(auth=auth, client=client, session=session)
        return await service.run_sync()


async def create_salesforce_contact(session: Session, data: ContactCreate) -> Optional[Contact]:
    """Manual create flow entry point used by the API."""
    settings = get_settings()
    auth = get_auth()
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http:
        client = SalesforceClient(auth=auth, http_client=http)
        service = ContactSyncService(auth=auth, client=client, session=session)
        return await service.create_contact(data)
