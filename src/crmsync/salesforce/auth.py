"""
Salesforce OAuth client-credentials authentication.

The token endpoint is `{login_url}/services/oauth2/token`. A successful
response looks like:

    {
        "access_token": "00D...!AQ...",
        "instance_url": "https://yourorg.my.salesforce.com",
        "token_type": "Bearer",
        ...
    }

The resulting credential lives only in process memory. One SalesforceAuth is
shared by every sync run in the process (see get_auth()), so the credential
sits in a lock-guarded cell and is swapped as a single immutable value.
Every orchestration run re-authenticates; there is no expiry tracking.

authenticate() never raises: rejection, transport and parse faults all come
back as False and leave the previously cached credential in place. Retrying
is the caller's decision.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional

import httpx

from crmsync.config import Settings, get_settings
from crmsync.salesforce.transport import send

logger = logging.getLogger(__name__)

TOKEN_PATH = "/services/oauth2/token"


@dataclass(frozen=True)
class SalesforceCredential:
    access_token: str
    instance_url: str


class CredentialCell:
    """Thread-safe holder for the current credential."""

    def __init__(self, value: Optional[SalesforceCredential] = None):
        self._lock = threading.Lock()
        self._value = value

    def get(self) -> Optional[SalesforceCredential]:
        with self._lock:
            return self._value

    def set(self, value: SalesforceCredential) -> None:
        with self._lock:
            self._value = value


class SalesforceAuth:
    """
    Obtains and caches a bearer token + instance URL.

    Usage:
        auth = SalesforceAuth()
        if await auth.authenticate():
            auth.credential.instance_url
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            settings: Settings with login URL and client id/secret.
                      Defaults to get_settings().
            http_client: Optional AsyncClient to send through (tests inject
                         one backed by httpx.MockTransport).
        """
        self._settings = settings or get_settings()
        self._http = http_client
        self._cell = CredentialCell()

    @property
    def credential(self) -> Optional[SalesforceCredential]:
        return self._cell.get()

    @property
    def access_token(self) -> Optional[str]:
        credential = self._cell.get()
        return credential.access_token if credential else None

    @property
    def instance_url(self) -> Optional[str]:
        credential = self._cell.get()
        return credential.instance_url if credential else None

    async def authenticate(self) -> bool:
        """
        Exchange client credentials for an access token.

        Returns:
            True if a fresh credential was stored, False otherwise.
        """
        url = self._settings.salesforce_login_url.rstrip("/") + TOKEN_PATH
        form = {
            "grant_type": "client_credentials",
            "client_id": self._settings.salesforce_client_id,
            "client_secret": self._settings.salesforce_client_secret,
        }

        try:
            response = await send(
                self._http,
                "POST",
                url,
                timeout=self._settings.http_timeout_seconds,
                data=form,
            )
        except httpx.HTTPError as exc:
            logger.error("Salesforce authentication error: %s", exc)
            return False

        if not response.is_success:
            logger.warning(
                "Salesforce authentication failed (HTTP %s): %s",
                response.status_code,
                response.text,
            )
            return False

        try:
            body = response.json()
            credential = SalesforceCredential(
                access_token=body["access_token"],
                instance_url=body["instance_url"].rstrip("/"),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error("Salesforce token response could not be parsed: %r", exc)
            return False

        if not credential.access_token or not credential.instance_url:
            logger.error("Salesforce token response is missing access_token or instance_url")
            return False

        self._cell.set(credential)
        logger.info("Salesforce authenticated successfully (instance %s)", credential.instance_url)
        return True


_auth: Optional[SalesforceAuth] = None


def get_auth() -> SalesforceAuth:
    """Return the process-wide SalesforceAuth shared by all sync runs."""
    global _auth
    if _auth is None:
        _auth = SalesforceAuth()
    return _auth
