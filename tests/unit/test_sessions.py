import pytest
from starlette.requests import Request

from gmail_mcp.http_client import HttpClient
from gmail_mcp.server import resolve_identity
from gmail_mcp.session import GmailSession, SessionStore
from tests.helpers.fakes import BASE_URL, FakeHttpSession, FakeResponse, text_of


def _request(headers=(), query=b""):
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/mcp",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers],
        "query_string": query,
    })


def test_identity_prefers_explicit_header():
    req = _request([("X-MCP-Client-Id", "alice"), ("mcp-session-id", "s1")])
    assert resolve_identity(req) == "client:alice"


def test_identity_falls_back_to_transport_session_ids():
    assert resolve_identity(_request([("mcp-session-id", "s1")])) == "session:s1"
    assert resolve_identity(_request(query=b"session_id=abc")) == "session:abc"


def test_identity_header_cannot_claim_a_transport_session():
    transport = resolve_identity(_request(query=b"session_id=abc"))
    claimed = resolve_identity(_request([("X-MCP-Client-Id", "session:abc")]))

    assert transport == "session:abc"
    assert claimed == "client:session:abc"
    assert claimed != transport


def test_identity_default_without_request(monkeypatch):
    assert resolve_identity(None) == "default"
    monkeypatch.setenv("MCP_CLIENT_ID", "desktop")
    assert resolve_identity(None) == "desktop"
    assert resolve_identity(_request()) == "desktop"


def test_identity_header_is_configurable(monkeypatch):
    monkeypatch.setenv("GMAIL_MCP_IDENTITY_HEADER", "X-User")
    assert resolve_identity(_request([("X-User", "bob")])) == "client:bob"


def test_store_returns_same_session_per_identity():
    store = SessionStore()
    a = store.get("alice")
    assert store.get("alice") is a
    assert store.get("bob") is not a
    assert len(store) == 2
    assert store.drop("alice")
    assert len(store) == 1
    assert not store.drop("alice")
    assert store.get("alice") is not a


@pytest.mark.asyncio
async def test_credentials_do_not_leak_across_identities():
    fake = FakeHttpSession({"GET /gmail/labels": FakeResponse({"labels": []})})
    store = SessionStore(lambda cid: GmailSession(cid, base_url=BASE_URL, http=HttpClient(session=fake)))

    await store.get("alice").call_tool("authenticate", {"token": "A"})

    out = await store.get("bob").call_tool("list_labels", {})
    assert text_of(out).startswith("Error: Authentication required")
    assert fake.calls == []

    out = await store.get("alice").call_tool("list_labels", {})
    assert text_of(out) == "No labels found."
    assert fake.last["headers"]["Authorization"] == "Bearer A"


def test_session_uses_configured_base_url(monkeypatch):
    monkeypatch.setenv("GMAIL_MCP_BASE_URL", "https://other.test/")
    session = GmailSession("x")
    assert session.base_url == "https://other.test"
    assert session.proxy.base_url == "https://other.test"


class _ClosingHttpSession(FakeHttpSession):
    def __init__(self, routes=None):
        super().__init__(routes)
        self.closed = False

    def close(self):
        self.closed = True


def test_releasing_a_transport_session_closes_it_and_forgets_the_token():
    fakes = {}

    def factory(cid):
        fakes[cid] = _ClosingHttpSession()
        return GmailSession(cid, base_url=BASE_URL, http=HttpClient(session=fakes[cid]))

    store = SessionStore(factory)
    first = store.get("session:abc")
    first.credentials.set("T")
    store.get("client:alice")

    assert store.release_transport("abc")
    assert fakes["session:abc"].closed
    assert not fakes["client:alice"].closed
    assert len(store) == 1
    assert not store.release_transport("abc")

    assert store.get("session:abc").credentials.get() is None
