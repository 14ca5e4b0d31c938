from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

import requests

from gmail_common.errors import (
    AuthRequired,
    ResponseDecodeError,
    TransportUnreachable,
    UpstreamError,
)
from gmail_mcp.credentials import CredentialCell
from gmail_mcp.http_client import HttpClient


logger = logging.getLogger(__name__)


def api_url(base_url: str, endpoint: str) -> str:
    """Join base and endpoint without doubling or dropping the slash."""
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


class ProxyClient:
    """
    Issues authenticated calls against the backend on behalf of one session.

    One logical attempt per call, no retry or backoff. The blocking `requests`
    call runs in a worker thread so the event loop stays free.
    """

    def __init__(self, base_url: str, credentials: CredentialCell, *, http: HttpClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.http = http or HttpClient()

    async def call(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        json: Any | None = None,
    ) -> Any:
        token = self.credentials.get()
        if not token:
            raise AuthRequired()

        url = api_url(self.base_url, endpoint)
        merged = dict(headers or {})
        # Drop any caller-supplied variant so the bearer header always wins
        for k in [k for k in merged if k.lower() == "authorization"]:
            del merged[k]
        merged["Authorization"] = f"Bearer {token}"

        try:
            resp = await asyncio.to_thread(self.http.request, method, url, headers=merged, json=json)
        except requests.RequestException as e:
            raise TransportUnreachable(f"Could not reach backend at {url}: {e}") from e

        if not 200 <= resp.status_code < 300:
            body = resp.text
            raise UpstreamError(resp.status_code, resp.reason or "", body)

        try:
            return resp.json()
        except ValueError as e:
            raise ResponseDecodeError(
                f"Backend returned a non-JSON response (status {resp.status_code}) for {method.upper()} {endpoint}"
            ) from e
