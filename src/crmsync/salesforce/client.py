"""
Async Salesforce REST client for Contact records.

Reading: one SOQL query per call (CONTACT_QUERY), no pagination.
Writing: one sobject create per call.

Both calls require a credential from SalesforceAuth; the caller must run
authenticate() first.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from crmsync.config import Settings, get_settings
from crmsync.salesforce.auth import SalesforceAuth, SalesforceCredential, get_auth
from crmsync.salesforce.errors import (
    NotAuthenticatedError,
    SalesforceApiError,
    SalesforceTransportError,
)
from crmsync.salesforce.normalizer import (
    CONTACT_QUERY,
    RemoteContact,
    normalize_contact_record,
)
from crmsync.salesforce.transport import send

logger = logging.getLogger(__name__)


class SalesforceClient:
    """Reads and creates Salesforce contacts using the current credential."""

    def __init__(
        self,
        auth: Optional[SalesforceAuth] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Args:
            auth: SalesforceAuth holding the credential. Defaults to the
                  process-wide get_auth().
            http_client: Optional AsyncClient to send through.
            settings: Defaults to get_settings().
        """
        self.auth = auth or get_auth()
        self._http = http_client
        self._settings = settings or get_settings()

    def _require_credential(self) -> SalesforceCredential:
        credential = self.auth.credential
        if credential is None:
            raise NotAuthenticatedError("Salesforce client used before authenticate()")
        return credential

    def _data_url(self, credential: SalesforceCredential, path: str) -> str:
        return (
            f"{credential.instance_url}/services/data/"
            f"{self._settings.salesforce_api_version}/{path}"
        )

    async def fetch_all(self) -> List[RemoteContact]:
        """
        Fetch every Salesforce contact.

        A non-2xx answer is logged and reported as an empty list, so callers
        cannot tell it apart from "no contacts" without the logs.

        Raises:
            NotAuthenticatedError: if authenticate() has not succeeded yet.
            SalesforceTransportError: if the request failed below HTTP.
            SalesforceApiError: if a 2xx body has no usable records list.
        """
        credential = self._require_credential()
        try:
            response = await send(
                self._http,
                "GET",
                self._data_url(credential, "query"),
                timeout=self._settings.http_timeout_seconds,
                params={"q": CONTACT_QUERY},
                headers=_bearer(credential),
            )
        except httpx.HTTPError as exc:
            raise SalesforceTransportError(f"Contact query failed: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "Failed to fetch contacts (HTTP %s): %s",
                response.status_code,
                response.text,
            )
            return []

        try:
            payload = response.json()
        except ValueError as exc:
            raise SalesforceApiError("Contact query returned invalid JSON") from exc

        records = payload.get("records") if isinstance(payload, dict) else None
        if not isinstance(records, list):
            raise SalesforceApiError("Contact query response has no records list")

        synced_at = datetime.utcnow()
        contacts = [normalize_contact_record(record, synced_at) for record in records]
        logger.info("Fetched %d contacts from Salesforce", len(contacts))
        return contacts

    async def create_contact(self, fields: Dict[str, Any]) -> Optional[str]:
        """
        Create one Contact in Salesforce.

        Args:
            fields: sobject field map, e.g. {"FirstName": "Ada", "LastName": "Lovelace"}.

        Returns:
            The new Salesforce Id, or None if the create did not happen.

        Raises:
            NotAuthenticatedError: if authenticate() has not succeeded yet.
        """
        credential = self._require_credential()
        try:
            response = await send(
                self._http,
                "POST",
                self._data_url(credential, "sobjects/Contact"),
                timeout=self._settings.http_timeout_seconds,
                json=fields,
                headers=_bearer(credential),
            )
        except httpx.HTTPError as exc:
            logger.error("Salesforce contact create error: %s", exc)
            return None

        if not response.is_success:
            logger.warning(
                "Salesforce contact create failed (HTTP %s): %s",
                response.status_code,
                response.text,
            )
            return None

        try:
            body = response.json()
        except ValueError:
            logger.error("Salesforce contact create returned invalid JSON")
            return None

        if not isinstance(body, dict) or body.get("success") is False or not body.get("id"):
            logger.warning("Salesforce contact create returned no id: %s", body)
            return None

        remote_id = str(body["id"])
        logger.info("Created Salesforce contact %s", remote_id)
        return remote_id


def _bearer(credential: SalesforceCredential) -> Dict[str, str]:
    return {"Authorization": f"Bearer {credential.access_token}"}
