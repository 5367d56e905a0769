"""Shared httpx plumbing for the Salesforce auth and data clients."""
from typing import Any, Optional

import httpx


async def send(
    http: Optional[httpx.AsyncClient],
    method: str,
    url: str,
    *,
    timeout: float,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send one request, reusing `http` when given.

    Without an injected client a short-lived AsyncClient is opened for the
    call, so objects shared across runs never hold a connection pool bound
    to a particular event loop.

    Raises:
        httpx.HTTPError: on transport failures (status codes are not checked).
    """
    if http is not None:
        return await http.request(method, url, **kwargs)
    async with httpx.AsyncClient(timeout=timeout) as client:
        return await client.request(method, url, **kwargs)
