from __future__ import annotations

import pytest

from gmail_mcp.http_client import HttpClient
from gmail_mcp.session import GmailSession
from tests.helpers.fakes import BASE_URL, FakeHttpSession
from tests.helpers.mcp_runtime import build_test_env, mcp_stdio_session


@pytest.fixture
def backend():
    """Fake backend; tests add routes through `backend.routes[...]`."""
    return FakeHttpSession()


@pytest.fixture
def gmail_session(backend):
    return GmailSession("tester", base_url=BASE_URL, http=HttpClient(session=backend))


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def agent_session(tmp_path):
    """Initialized session for the agent MCP server (stdio transport)."""
    env = build_test_env(tmp_path, extra={"GMAIL_MCP_BASE_URL": "http://127.0.0.1:9"})
    async with mcp_stdio_session("gmail_mcp.server", env=env) as session:
        yield session
