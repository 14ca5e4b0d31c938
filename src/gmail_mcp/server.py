from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server

from gmail_config.settings import (
    default_client_id,
    identity_header,
    init_runtime,
    server_host,
    server_port,
)
from gmail_mcp.session import GmailSession, SessionStore, client_identity, transport_identity


logger = logging.getLogger(__name__)

SERVER_NAME = "Gmail MCP"
SERVER_VERSION = "0.1.0"


def resolve_identity(request: Any | None) -> str:
    """
    Map an inbound HTTP request to a session identity.

    Precedence: explicit identity header (`client:<value>`), then the
    transport's own session id (`session:<id>`, from the streamable HTTP header
    or the SSE query parameter), then the default client id.
    """
    if request is None:
        return default_client_id()

    headers = getattr(request, "headers", None) or {}
    explicit = (headers.get(identity_header()) or "").strip()
    if explicit:
        return client_identity(explicit)

    query = getattr(request, "query_params", None) or {}
    sid = headers.get("mcp-session-id") or query.get("session_id")
    if sid:
        return transport_identity(sid)
    return default_client_id()


def _current_request(server: Server) -> Any | None:
    try:
        ctx = server.request_context
    except LookupError:
        return None
    return getattr(ctx, "request", None)


def _to_content(envelope: dict) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=block["text"]) for block in envelope.get("content", [])]


def _to_tool(definition) -> types.Tool:
    return types.Tool(
        name=definition.name,
        description=definition.description,
        inputSchema=definition.input_schema(),
    )


def create_server(store: SessionStore | None = None) -> Server:
    """
    Build the MCP server shared by every transport.

    Each request is routed to the session of its identity; UnknownTool and
    InvalidArguments propagate so the SDK reports them as error results.
    """
    store = store or SessionStore()
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    def _session() -> GmailSession:
        return store.get(resolve_identity(_current_request(server)))

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [_to_tool(d) for d in _session().registry.list_tools()]

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        envelope = await _session().call_tool(name, arguments)
        return _to_content(envelope)

    return server


async def run_stdio(server: Server) -> None:
    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read, write):
        await server.run(read, write, server.create_initialization_options())


def main() -> None:
    # Entry points (console_scripts) call main() directly, so we must perform
    # runtime initialization here (dotenv + logging).
    init_runtime()
    transport = os.environ.get("MCP_TRANSPORT", "http").strip().lower()
    store = SessionStore()
    server = create_server(store)

    if transport == "stdio":
        asyncio.run(run_stdio(server))
        return

    import uvicorn

    from gmail_mcp.transports import create_app

    host, port = server_host(), server_port()
    logger.info("serving %s on http://%s:%s (/sse, /mcp)", SERVER_NAME, host, port)
    uvicorn.run(create_app(server, store), host=host, port=port)


if __name__ == "__main__":
    main()
