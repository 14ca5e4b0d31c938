from __future__ import annotations

import functools
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from gmail_common.errors import GmailMCPError, typed_error
from gmail_common.telemetry import TELEMETRY_FILE, begin_call, log_event


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result envelopes shared by every tool handler
# ---------------------------------------------------------------------------


def text_result(*texts: str) -> dict:
    """Build the `{"content": [{"type": "text", "text": ...}, ...]}` envelope."""
    return {"content": [{"type": "text", "text": t} for t in texts]}


def error_result(message: str) -> dict:
    return text_result(f"Error: {message}")


def is_error_result(payload: Any) -> bool:
    try:
        return payload["content"][0]["text"].startswith("Error:")
    except (KeyError, IndexError, TypeError, AttributeError):
        return False


# ---------------------------------------------------------------------------
# Instrumentation
# ---------------------------------------------------------------------------


_REDACTION_KEYS = {"auth_bearer", "authorization", "token", "access_token", "api_key", "apikey"}


def _plain(v: Any) -> Any:
    # pydantic argument models are logged by their wire names
    if hasattr(v, "model_dump"):
        return v.model_dump(by_alias=True, exclude_none=True)
    return v


def sanitize_args_for_log(args: dict | None) -> dict:
    """Remove obvious secrets from args (telemetry layer also redacts)."""
    out: dict[str, Any] = {}
    for k, v in (args or {}).items():
        v = _plain(v)
        if str(k).lower() in _REDACTION_KEYS and v is not None:
            out[str(k)] = "***redacted***"
        elif isinstance(v, dict):
            out[str(k)] = sanitize_args_for_log(v)
        else:
            out[str(k)] = v
    return out


@dataclass(frozen=True)
class InstrumentConfig:
    kind: str
    name: str
    client_id: str
    telemetry_file: str = TELEMETRY_FILE


def instrument_async_tool(cfg: InstrumentConfig):
    """
    Decorator for async tool handlers.

    Every exception raised by the handler is turned into an ``"Error: ..."``
    envelope here, so a handler fault never surfaces as a transport fault.
    """

    def decorator(fn: Callable[..., Awaitable[dict]]):
        fn_sig = inspect.signature(fn)

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> dict:
            corr_id = begin_call()

            t0 = time.perf_counter()
            bound = fn_sig.bind_partial(*args, **kwargs)
            args_for_log: dict[str, Any] = {"args": sanitize_args_for_log(dict(bound.arguments))}

            try:
                payload = await fn(*args, **kwargs)
                ok = not is_error_result(payload)
            except GmailMCPError as e:
                logger.info("tool %s failed (%s): %s", cfg.name, e.code, e.message)
                args_for_log.update(typed_error(e.code, e.message))
                payload = error_result(e.message)
                ok = False
            except Exception as e:
                # Formatting defects and anything unexpected still yield an envelope
                logger.exception("tool %s raised unexpectedly", cfg.name)
                args_for_log.update(typed_error("internal", str(e)))
                payload = error_result(str(e) or e.__class__.__name__)
                ok = False

            ms = int((time.perf_counter() - t0) * 1000)
            log_event(
                cfg.kind,
                cfg.name,
                args_for_log,
                ok=ok,
                ms=ms,
                client_id=cfg.client_id,
                corr_id=corr_id,
                telemetry_file=cfg.telemetry_file,
            )
            return payload

        wrapper.__signature__ = fn_sig  # type: ignore[attr-defined]
        return wrapper

    return decorator
