from __future__ import annotations

import datetime as _dt
import json
import logging
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from gmail_config.settings import telemetry_dir, telemetry_disabled
from gmail_common.errors import REDACT_TOKEN

logger = logging.getLogger(__name__)

TELEMETRY_FILE = "mcp-telemetry.jsonl"

# Correlation id of the tool call currently running in this task
_call_id: ContextVar[str | None] = ContextVar("gmail_mcp_call_id", default=None)


def begin_call() -> str:
    """Start a fresh correlation id for one tool invocation and bind it to the current task."""
    call_id = uuid.uuid4().hex
    _call_id.set(call_id)
    return call_id


def current_call_id() -> str | None:
    return _call_id.get()


_SECRET_KEYS = {"authorization", "auth_bearer", "access_token", "token", "api_key", "apikey"}

# Mail and calendar content the agent relays on behalf of the user
_PII_KEYS = {
    "email",
    "query",
    "attendees",
    "description",
}


def _redact_secrets(obj: Any) -> Any:
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.strip().lower() in _SECRET_KEYS:
                if isinstance(v, str) and v.strip().lower().startswith("bearer "):
                    out[k] = "Bearer " + REDACT_TOKEN
                elif v is None:
                    out[k] = None
                else:
                    out[k] = REDACT_TOKEN
            else:
                out[k] = _redact_secrets(v)
        return out
    if isinstance(obj, list):
        return [_redact_secrets(x) for x in obj]
    return obj


def _redact_pii(obj: Any) -> Any:
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.strip().lower() in _PII_KEYS:
                out[k] = REDACT_TOKEN
            else:
                out[k] = _redact_pii(v)
        return out
    if isinstance(obj, list):
        return [_redact_pii(x) for x in obj]
    return obj


def _telemetry_path(telemetry_file: str) -> Path:
    d = telemetry_dir()
    d.mkdir(parents=True, exist_ok=True)
    return d / telemetry_file


def log_event(
    kind: str,
    name: str,
    args: dict | None = None,
    ok: bool = True,
    ms: int = 0,
    *,
    client_id: str | None = None,
    corr_id: str | None = None,
    telemetry_file: str = TELEMETRY_FILE,
) -> None:
    """
    Append JSONL telemetry for tool invocations.
    """
    if telemetry_disabled():
        return

    rid = current_call_id() or begin_call()
    payload = {} if args is None else dict(args)

    rec = {
        "ts": _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "name": name,
        "client_id": client_id,
        "request_id": rid,
        "corr_id": corr_id or rid,
        "args": payload,
        "ok": bool(ok),
        "ms": int(ms),
    }

    safe = _redact_pii(_redact_secrets(rec))
    try:
        p = _telemetry_path(telemetry_file)
        with p.open("a", encoding="utf-8") as f:
            f.write(json.dumps(safe, ensure_ascii=False, default=str) + "\n")
    except OSError as e:
        # Telemetry must never break a tool call
        logger.warning("telemetry write failed: %s", e)

