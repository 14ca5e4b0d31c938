from __future__ import annotations

from typing import Any

REDACT_TOKEN = "***redacted***"

AUTH_REQUIRED_MESSAGE = (
    "Authentication required. Please use the authenticate tool first with no parameters "
    "to get the authorization URL. After visiting that URL and completing authentication, "
    "call authenticate again with the token you receive."
)


class GmailMCPError(Exception):
    """Base class for every error the agent reports to tool callers."""

    code = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthRequired(GmailMCPError):
    code = "auth_required"

    def __init__(self, message: str = AUTH_REQUIRED_MESSAGE) -> None:
        super().__init__(message)


class UpstreamError(GmailMCPError):
    """Backend answered with a non-2xx status."""

    code = "upstream_error"

    def __init__(self, status: int, reason: str, body: str) -> None:
        self.status = status
        self.reason = reason
        self.body = body
        super().__init__(f"API request failed ({status}): {reason}. {body}")


class TransportUnreachable(GmailMCPError):
    """Backend could not be reached at all (DNS, connect, timeout)."""

    code = "transport_unreachable"


class ResponseDecodeError(GmailMCPError):
    code = "decode_error"


class UnknownTool(GmailMCPError):
    code = "unknown_tool"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class InvalidArguments(GmailMCPError):
    code = "invalid_arguments"

    def __init__(self, tool: str, cause: str) -> None:
        self.tool = tool
        self.cause = cause
        super().__init__(f"Invalid arguments for tool {tool}: {cause}")


def typed_error(code: str, message: str, *, details: dict | None = None, **extra: Any) -> dict:
    """
    Standard error record used in telemetry:
      {"error": {"code": code, "message": message, "details": {...}}, ...extra}
    """
    err: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        err["error"]["details"] = details
    if extra:
        err.update(extra)
    return err
