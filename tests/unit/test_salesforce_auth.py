"""Tests for SalesforceAuth client-credentials exchange and the credential cell."""
import threading
from urllib.parse import parse_qs

import httpx
import pytest

from crmsync.salesforce.auth import (
    CredentialCell,
    SalesforceAuth,
    SalesforceCredential,
    TOKEN_PATH,
)

TOKEN_RESPONSE = {
    "access_token": "00Dxx0000001gEH!AQ4AQ.token",
    "instance_url": "https://acme.my.salesforce.com",
    "token_type": "Bearer",
}


def make_auth(settings, handler) -> SalesforceAuth:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SalesforceAuth(settings=settings, http_client=http)


def ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=TOKEN_RESPONSE)


# ─── Tests: authenticate ──────────────────────────────────────────────────────

class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_success_returns_true(self, settings):
        auth = make_auth(settings, ok_handler)
        assert await auth.authenticate() is True

    @pytest.mark.asyncio
    async def test_success_stores_token_and_instance_url(self, settings):
        auth = make_auth(settings, ok_handler)
        await auth.authenticate()
        assert auth.access_token == TOKEN_RESPONSE["access_token"]
        assert auth.instance_url == "https://acme.my.salesforce.com"

    @pytest.mark.asyncio
    async def test_posts_client_credentials_grant(self, settings):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=TOKEN_RESPONSE)

        auth = make_auth(settings, handler)
        await auth.authenticate()

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://login.example.com" + TOKEN_PATH
        form = parse_qs(request.content.decode())
        assert form == {
            "grant_type": ["client_credentials"],
            "client_id": ["client-id"],
            "client_secret": ["client-secret"],
        }

    @pytest.mark.asyncio
    async def test_trailing_slash_on_login_url(self, settings):
        settings.salesforce_login_url = "https://login.example.com/"
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json=TOKEN_RESPONSE)

        await make_auth(settings, handler).authenticate()
        assert seen == ["https://login.example.com/services/oauth2/token"]

    @pytest.mark.asyncio
    async def test_rejected_credentials_return_false(self, settings):
        auth = make_auth(
            settings,
            lambda request: httpx.Response(400, json={"error": "invalid_client"}),
        )
        assert await auth.authenticate() is False
        assert auth.credential is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_false(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        auth = make_auth(settings, handler)
        assert await auth.authenticate() is False

    @pytest.mark.asyncio
    async def test_invalid_json_returns_false(self, settings):
        auth = make_auth(settings, lambda request: httpx.Response(200, text="<html>"))
        assert await auth.authenticate() is False

    @pytest.mark.asyncio
    async def test_missing_instance_url_returns_false(self, settings):
        auth = make_auth(
            settings, lambda request: httpx.Response(200, json={"access_token": "t"})
        )
        assert await auth.authenticate() is False

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_credential(self, settings):
        """A failed refresh must not wipe a credential obtained earlier."""
        responses = [
            httpx.Response(200, json=TOKEN_RESPONSE),
            httpx.Response(401, json={"error": "invalid_grant"}),
        ]
        auth = make_auth(settings, lambda request: responses.pop(0))

        assert await auth.authenticate() is True
        assert await auth.authenticate() is False
        assert auth.access_token == TOKEN_RESPONSE["access_token"]

    @pytest.mark.asyncio
    async def test_success_overwrites_previous_credential(self, settings):
        responses = [
            httpx.Response(200, json=TOKEN_RESPONSE),
            httpx.Response(200, json={**TOKEN_RESPONSE, "access_token": "second"}),
        ]
        auth = make_auth(settings, lambda request: responses.pop(0))

        await auth.authenticate()
        await auth.authenticate()
        assert auth.access_token == "second"

    def test_no_credential_before_authenticate(self, settings):
        auth = SalesforceAuth(settings=settings)
        assert auth.credential is None
        assert auth.access_token is None
        assert auth.instance_url is None


# ─── Tests: CredentialCell ────────────────────────────────────────────────────

class TestCredentialCell:
    def test_starts_empty(self):
        assert CredentialCell().get() is None

    def test_set_then_get(self):
        cell = CredentialCell()
        credential = SalesforceCredential("tok", "https://x.my.salesforce.com")
        cell.set(credential)
        assert cell.get() is credential

    def test_concurrent_writers_leave_a_whole_credential(self):
        """Readers never see a token from one write paired with a URL from another."""
        cell = CredentialCell()

        def writer(n):
            for _ in range(200):
                cell.set(SalesforceCredential(f"tok-{n}", f"https://org{n}.example.com"))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        final = cell.get()
        n = final.access_token.split("-")[1]
        assert final.instance_url == f"https://org{n}.example.com"
