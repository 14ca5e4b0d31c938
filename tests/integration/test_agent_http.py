from __future__ import annotations

from contextlib import asynccontextmanager

import pytest

from tests.helpers.mcp_runtime import build_test_env, call_tool_text, mcp_http_server

pytest.importorskip("mcp.client.sse")
pytest.importorskip("mcp.client.streamable_http")

from mcp import ClientSession  # noqa: E402
from mcp.client.sse import sse_client  # noqa: E402
from mcp.client.streamable_http import streamablehttp_client  # noqa: E402


@pytest.fixture
def agent_url(tmp_path):
    env = build_test_env(tmp_path, transport="http", extra={"GMAIL_MCP_BASE_URL": "http://127.0.0.1:9"})
    with mcp_http_server("gmail_mcp.server", env=env) as url:
        yield url


@asynccontextmanager
async def _sse_session(url, headers=None):
    async with sse_client(f"{url}/sse", headers=headers) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            yield session


@asynccontextmanager
async def _streamable_session(url, headers=None):
    async with streamablehttp_client(f"{url}/mcp", headers=headers) as (read, write, _):
        async with ClientSession(read, write) as session:
            await session.initialize()
            yield session


@pytest.mark.integration
@pytest.mark.asyncio
async def test_authentication_is_shared_across_transports_for_one_client_id(agent_url):
    alice = {"X-MCP-Client-Id": "alice"}

    async with _sse_session(agent_url, alice) as sse:
        text = await call_tool_text(sse, "authenticate", {"token": "T"})
        assert text == "Authentication successful! You can now use Gmail tools."

    async with _streamable_session(agent_url, alice) as exchange:
        # Authenticated: the call gets as far as the (unreachable) backend
        text = await call_tool_text(exchange, "list_labels", {})
        assert text.startswith("Error: Could not reach backend")


@pytest.mark.integration
@pytest.mark.asyncio
async def test_anonymous_transport_sessions_are_isolated(agent_url):
    async with _sse_session(agent_url) as sse:
        await call_tool_text(sse, "authenticate", {"token": "T"})

        async with _streamable_session(agent_url) as exchange:
            text = await call_tool_text(exchange, "list_labels", {})
            assert text.startswith("Error: Authentication required")

        async with _streamable_session(agent_url, {"X-MCP-Client-Id": "alice"}) as exchange:
            text = await call_tool_text(exchange, "list_labels", {})
            assert text.startswith("Error: Authentication required")
