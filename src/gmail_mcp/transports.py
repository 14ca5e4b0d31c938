"""
ASGI transport router.

Two bindings of the same MCP server:
- /sse (event stream) and /sse/message (client POSTs): persistent SSE channel
- /mcp and /: streamable HTTP request/response exchange
Anything else gets a plain 404.
"""

from __future__ import annotations

import logging
import re
from contextlib import AsyncExitStack
from typing import Any, AsyncContextManager, Awaitable, Callable, Iterable

from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager

from gmail_mcp.session import SessionStore


logger = logging.getLogger(__name__)

Scope = dict[str, Any]
ASGIApp = Callable[[Scope, Callable[[], Awaitable[dict]], Callable[[dict], Awaitable[None]]], Awaitable[None]]

SSE_PATH = "/sse"
SSE_MESSAGE_PATH = "/sse/message"
EXCHANGE_PATHS = ("/mcp", "/")

SessionEnded = Callable[[str], Any]

_ENDPOINT_SESSION_ID = re.compile(rb"session_id=([0-9A-Za-z_-]+)")


async def send_text_response(send, status: int, text: str, headers: Iterable[tuple[bytes, bytes]] = ()) -> None:
    body = text.encode("utf-8")
    await send({
        "type": "http.response.start",
        "status": status,
        "headers": [
            [b"content-type", b"text/plain; charset=utf-8"],
            [b"content-length", str(len(body)).encode("ascii")],
            *[[k, v] for k, v in headers],
        ],
    })
    await send({"type": "http.response.body", "body": body})


async def method_not_allowed(send, allowed: str) -> None:
    await send_text_response(send, 405, "Method not allowed", [(b"allow", allowed.encode("ascii"))])


def _header(scope: Scope, name: str) -> str | None:
    key = name.lower().encode("latin-1")
    for k, v in scope.get("headers") or ():
        if k.lower() == key:
            return v.decode("latin-1")
    return None


class SseBinding:
    """
    Persistent streaming channel: GET opens the stream, POSTs deliver messages.

    When a stream closes, `on_close` receives the transport session id that was
    announced to the client in the endpoint event.
    """

    def __init__(
        self,
        server: Server,
        *,
        stream_path: str = SSE_PATH,
        message_path: str = SSE_MESSAGE_PATH,
        on_close: SessionEnded | None = None,
    ) -> None:
        self.server = server
        self.stream_path = stream_path
        self.message_path = message_path
        self.on_close = on_close
        self.transport = SseServerTransport(message_path)

    @property
    def paths(self) -> tuple[str, ...]:
        return (self.stream_path, self.message_path)

    async def __call__(self, scope, receive, send) -> None:
        method = scope.get("method", "GET").upper()
        if _normalize(scope.get("path", "")) == self.message_path:
            if method != "POST":
                await method_not_allowed(send, "POST")
                return
            await self.transport.handle_post_message(scope, receive, send)
            return

        if method != "GET":
            await method_not_allowed(send, "GET")
            return

        announced: list[str] = []

        async def watch_endpoint(message: dict) -> None:
            # The first body chunk is the endpoint event carrying ?session_id=
            if not announced and message.get("type") == "http.response.body":
                m = _ENDPOINT_SESSION_ID.search(message.get("body") or b"")
                if m:
                    announced.append(m.group(1).decode("ascii"))
            await send(message)

        try:
            async with self.transport.connect_sse(scope, receive, watch_endpoint) as (read, write):
                await self.server.run(read, write, self.server.create_initialization_options())
        finally:
            if announced and self.on_close is not None:
                logger.debug("sse stream %s closed", announced[0])
                self.on_close(announced[0])


class StreamableHttpBinding:
    """
    Single-exchange channel backed by the SDK's streamable HTTP session manager.

    A successful DELETE terminates the session named by its mcp-session-id
    header; `on_close` receives that id.
    """

    def __init__(
        self,
        server: Server,
        *,
        paths: Iterable[str] = EXCHANGE_PATHS,
        on_close: SessionEnded | None = None,
    ) -> None:
        self.paths = tuple(paths)
        self.on_close = on_close
        self.manager = StreamableHTTPSessionManager(
            app=server,
            event_store=None,
            json_response=False,
            stateless=False,
        )

    def lifespan(self) -> AsyncContextManager[None]:
        return self.manager.run()

    async def __call__(self, scope, receive, send) -> None:
        sid = _header(scope, "mcp-session-id")
        if scope.get("method", "").upper() != "DELETE" or not sid:
            await self.manager.handle_request(scope, receive, send)
            return

        status: list[int] = []

        async def watch_status(message: dict) -> None:
            if message.get("type") == "http.response.start":
                status.append(message["status"])
            await send(message)

        await self.manager.handle_request(scope, receive, watch_status)
        if status and 200 <= status[0] < 300 and self.on_close is not None:
            self.on_close(sid)


def _normalize(path: str) -> str:
    return path.rstrip("/") or "/"


class TransportRouter:
    """Stateless path dispatcher; all state lives in the sessions behind the server."""

    def __init__(
        self,
        streaming: ASGIApp,
        streaming_paths: Iterable[str],
        exchange: ASGIApp,
        exchange_paths: Iterable[str],
        *,
        lifespans: Iterable[Callable[[], AsyncContextManager[Any]]] = (),
    ) -> None:
        self.streaming = streaming
        self.exchange = exchange
        self.streaming_paths = frozenset(_normalize(p) for p in streaming_paths)
        self.exchange_paths = frozenset(_normalize(p) for p in exchange_paths)
        self._lifespans = list(lifespans)

    def route(self, path: str) -> ASGIApp | None:
        p = _normalize(path)
        if p in self.streaming_paths:
            return self.streaming
        if p in self.exchange_paths:
            return self.exchange
        return None

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return

        if scope["type"] != "http":
            logger.warning("unsupported ASGI scope type: %s", scope["type"])
            return

        app = self.route(scope.get("path", ""))
        if app is None:
            await send_text_response(send, 404, "Not found")
            return
        await app(scope, receive, send)

    async def _lifespan(self, receive, send) -> None:
        message = await receive()
        if message["type"] != "lifespan.startup":
            return

        async with AsyncExitStack() as stack:
            try:
                for factory in self._lifespans:
                    await stack.enter_async_context(factory())
            except Exception as e:
                logger.exception("transport startup failed")
                await send({"type": "lifespan.startup.failed", "message": str(e)})
                return

            await send({"type": "lifespan.startup.complete"})
            await receive()  # lifespan.shutdown

        await send({"type": "lifespan.shutdown.complete"})


def create_app(server: Server, store: SessionStore | None = None) -> TransportRouter:
    """Bind both transports to one MCP server; finished transport sessions are released from `store`."""
    on_close = store.release_transport if store is not None else None
    sse = SseBinding(server, on_close=on_close)
    exchange = StreamableHttpBinding(server, on_close=on_close)
    return TransportRouter(
        sse,
        sse.paths,
        exchange,
        exchange.paths,
        lifespans=[exchange.lifespan],
    )
