"""
Lightweight HTTP client for the Google backend.

Goals:
- Centralize timeouts, the User-Agent and error logging.
- Keep dependencies limited to `requests`.
- Single attempt per request: the agent reports every failure once and immediately.

This module intentionally avoids any MCP coupling.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Mapping

import requests
from requests import Response


logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


DEFAULT_CONNECT_TIMEOUT_S = 3.05
DEFAULT_READ_TIMEOUT_S = 20.0


def default_timeout() -> tuple[float, float]:
    return (
        _env_float("GMAIL_MCP_HTTP_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT_S),
        _env_float("GMAIL_MCP_HTTP_READ_TIMEOUT", DEFAULT_READ_TIMEOUT_S),
    )


@dataclass(frozen=True)
class HttpClientConfig:
    timeout: tuple[float, float] = (DEFAULT_CONNECT_TIMEOUT_S, DEFAULT_READ_TIMEOUT_S)
    user_agent: str = "gmail-mcp-agent/0.1"

    @classmethod
    def from_env(cls) -> "HttpClientConfig":
        return cls(
            timeout=default_timeout(),
            user_agent=os.getenv("GMAIL_MCP_HTTP_USER_AGENT", cls.user_agent),
        )


class HttpClient:
    """A small wrapper around `requests.Session` with sane defaults.

    Unlike `requests.Response.raise_for_status`, non-2xx responses are returned
    to the caller untouched; only network-level failures raise.
    """

    def __init__(self, *, config: HttpClientConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or HttpClientConfig.from_env()
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", self.config.user_agent)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        json: Any | None = None,
        data: Any | None = None,
        timeout: tuple[float, float] | float | None = None,
        **kwargs: Any,
    ) -> Response:
        t0 = time.perf_counter()
        try:
            resp = self.session.request(
                method=method,
                url=url,
                headers=dict(headers) if headers else None,
                json=json,
                data=data,
                timeout=timeout or self.config.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            ms = int((time.perf_counter() - t0) * 1000)
            logger.warning("HTTP %s %s failed (ms=%s): %s", method.upper(), url, ms, str(e))
            raise

        ms = int((time.perf_counter() - t0) * 1000)
        logger.debug("HTTP %s %s -> %s (ms=%s)", method.upper(), url, resp.status_code, ms)
        return resp

    def close(self) -> None:
        self.session.close()
