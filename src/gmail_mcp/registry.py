from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from pydantic import ValidationError

from gmail_common.errors import InvalidArguments, UnknownTool
from gmail_common.tooling import InstrumentConfig, instrument_async_tool
from gmail_mcp.schemas import ToolArgs


logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[dict]]


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    args_model: type[ToolArgs]
    handler: Handler

    def input_schema(self) -> dict:
        return self.args_model.model_json_schema(by_alias=True)


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


@dataclass
class ToolRegistry:
    """
    Static table of tools for one session, built once at session start.

    `invoke` is the dispatch boundary: unknown names and bad arguments are
    rejected here (UnknownTool / InvalidArguments), everything a handler raises
    is turned into an ``"Error: ..."`` envelope by the instrumentation wrapper.
    """

    client_id: str = "default"
    strict: bool = False
    _tools: dict[str, ToolDefinition] = field(default_factory=dict)
    _runners: dict[str, Handler] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def register(self, name: str, description: str, args_model: type[ToolArgs], handler: Handler) -> ToolDefinition:
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")
        definition = ToolDefinition(name=name, description=description, args_model=args_model, handler=handler)
        self._tools[name] = definition
        cfg = InstrumentConfig(kind="tool", name=name, client_id=self.client_id)
        self._runners[name] = instrument_async_tool(cfg)(handler)
        return definition

    def tool(self, name: str, description: str, args_model: type[ToolArgs]):
        """Decorator form of `register`."""

        def decorator(fn: Handler) -> Handler:
            self.register(name, description, args_model, fn)
            return fn

        return decorator

    def get(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name) from None

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def validate(self, name: str, arguments: Mapping[str, Any] | None) -> ToolArgs:
        definition = self.get(name)
        raw = dict(arguments or {})

        if self.strict:
            unknown = sorted(set(raw) - definition.args_model.wire_names())
            if unknown:
                raise InvalidArguments(name, f"unexpected parameter(s): {', '.join(unknown)}")

        try:
            return definition.args_model.model_validate(raw)
        except ValidationError as e:
            raise InvalidArguments(name, _describe_validation_error(e)) from None

    async def invoke(self, name: str, arguments: Mapping[str, Any] | None = None) -> dict:
        args = self.validate(name, arguments)
        async with self._lock:
            logger.debug("invoking tool %s for client %s", name, self.client_id)
            return await self._runners[name](args)
