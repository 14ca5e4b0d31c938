from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping

from gmail_config.settings import backend_base_url, strict_arguments
from gmail_mcp.credentials import CredentialCell
from gmail_mcp.http_client import HttpClient
from gmail_mcp.proxy import ProxyClient
from gmail_mcp.registry import ToolRegistry
from gmail_mcp.tools import register_tools


logger = logging.getLogger(__name__)

# Client-chosen and transport-assigned identities never share a key space
CLIENT_PREFIX = "client:"
TRANSPORT_PREFIX = "session:"


def client_identity(value: str) -> str:
    return f"{CLIENT_PREFIX}{value}"


def transport_identity(session_id: str) -> str:
    return f"{TRANSPORT_PREFIX}{session_id}"


class GmailSession:
    """
    Long-lived per-identity instance.

    Owns exactly one credential cell; every tool invocation on the session goes
    through the same cell, proxy client and tool table.
    """

    def __init__(
        self,
        client_id: str,
        *,
        base_url: str | None = None,
        http: HttpClient | None = None,
        strict: bool | None = None,
    ) -> None:
        self.client_id = client_id
        self.base_url = (base_url or backend_base_url()).rstrip("/")
        self.credentials = CredentialCell()
        self.proxy = ProxyClient(self.base_url, self.credentials, http=http)
        self.registry = register_tools(
            ToolRegistry(client_id=client_id, strict=strict_arguments() if strict is None else strict),
            self,
        )

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None = None) -> dict:
        return await self.registry.invoke(name, arguments)

    def close(self) -> None:
        self.proxy.http.close()

    def __repr__(self) -> str:
        return f"GmailSession(client_id={self.client_id!r}, credentials={self.credentials!r})"


class SessionStore:
    """
    Identity -> session namespace.

    Sessions are created on first contact. Transport-scoped sessions are
    released by the transport binding when its stream or session ends.
    """

    def __init__(self, factory: Callable[[str], GmailSession] | None = None) -> None:
        self._factory = factory or GmailSession
        self._sessions: dict[str, GmailSession] = {}
        self._lock = threading.Lock()

    def get(self, client_id: str) -> GmailSession:
        with self._lock:
            session = self._sessions.get(client_id)
            if session is None:
                session = self._factory(client_id)
                self._sessions[client_id] = session
                logger.info("created session for client %s", client_id)
            return session

    def drop(self, client_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(client_id, None)
        if session is None:
            return False
        session.close()
        logger.info("released session for client %s", client_id)
        return True

    def release_transport(self, session_id: str) -> bool:
        """Drop the anonymous session bound to a finished transport session."""
        return self.drop(transport_identity(session_id))

    def __len__(self) -> int:
        return len(self._sessions)
