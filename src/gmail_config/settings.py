from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_BASE_URL = "https://googleauth.ishikabhoyar2005.workers.dev"
DEFAULT_IDENTITY_HEADER = "X-MCP-Client-Id"
DEFAULT_CLIENT_ID = "default"


def _find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward until we find pyproject.toml or .git.
    """
    start = start.resolve()
    for p in (start, *start.parents):
        if (p / "pyproject.toml").exists() or (p / ".git").exists():
            return p
    return None


@lru_cache(maxsize=1)
def repo_root() -> Path:
    """Best-effort repository root discovery.

    Order of precedence:
      1) GMAIL_MCP_REPO_ROOT (explicit override)
      2) walk upward from current working directory
      3) walk upward from this module file's directory
    """
    explicit = os.getenv("GMAIL_MCP_REPO_ROOT")
    if explicit:
        p = Path(explicit).expanduser()
        try:
            p = p.resolve()
        except OSError:
            p = p.absolute()

        if not p.exists() or not p.is_dir():
            raise RuntimeError(f"GMAIL_MCP_REPO_ROOT does not exist or is not a directory: {p}")
        return p

    cwd = Path.cwd().resolve()
    root = _find_repo_root(cwd)
    if root:
        return root

    here_dir = Path(__file__).resolve().parent
    root = _find_repo_root(here_dir)
    if root:
        return root

    # Fallback: typical layout (repo/src/gmail_config/settings.py)
    if len(here_dir.parents) >= 2:
        return here_dir.parents[1]

    return cwd


@lru_cache(maxsize=1)
def load_env_once() -> Optional[Path]:
    """
    Load dotenv exactly once. Precedence:
      1) GMAIL_MCP_ENV_FILE (explicit path)
      2) repo-root/.env
      3) repo-root/config/.env
    """
    explicit = os.getenv("GMAIL_MCP_ENV_FILE")
    candidates = []

    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(repo_root() / ".env")
    candidates.append(repo_root() / "config" / ".env")

    for p in candidates:
        try:
            p = p.resolve()
        except OSError:
            continue
        if p.exists() and p.is_file():
            # Do NOT override already-set environment variables
            load_dotenv(dotenv_path=str(p), override=False)
            return p

    return None


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


def backend_base_url() -> str:
    """
    Base URL of the Google backend service. Override with GMAIL_MCP_BASE_URL.
    A trailing slash is stripped so endpoints can always start with "/".
    """
    return os.getenv("GMAIL_MCP_BASE_URL", DEFAULT_BASE_URL).strip().rstrip("/")


def identity_header() -> str:
    """Request header naming the caller identity. Override with GMAIL_MCP_IDENTITY_HEADER."""
    return os.getenv("GMAIL_MCP_IDENTITY_HEADER", DEFAULT_IDENTITY_HEADER)


def default_client_id() -> str:
    """Identity used when a transport carries none (e.g. stdio)."""
    return os.getenv("MCP_CLIENT_ID", DEFAULT_CLIENT_ID)


def strict_arguments() -> bool:
    """Reject unknown tool arguments instead of ignoring them."""
    return _env_flag("GMAIL_MCP_STRICT_ARGS")


def telemetry_disabled() -> bool:
    return _env_flag("GMAIL_MCP_DISABLE_TELEMETRY")


def telemetry_dir() -> Path:
    """
    Default telemetry dir. Override with GMAIL_MCP_TELEMETRY_DIR.
    """
    p = os.getenv("GMAIL_MCP_TELEMETRY_DIR")
    if p:
        return Path(p).expanduser().resolve()
    return (repo_root() / "artifacts" / "telemetry").resolve()


def server_host() -> str:
    return os.getenv("GMAIL_MCP_HOST", "127.0.0.1")


def server_port() -> int:
    try:
        return int(os.getenv("GMAIL_MCP_PORT", "8787"))
    except ValueError:
        return 8787


def configure_logging() -> None:
    """
    Configure logging explicitly. No import-time side effects.
    Idempotent: if logging is already configured, do nothing.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = os.getenv("GMAIL_MCP_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = os.getenv(
        "GMAIL_MCP_LOG_FORMAT",
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logging.basicConfig(level=level, format=fmt)


def init_runtime(*, configure_logs: bool = True, load_env: bool = True) -> None:
    """
    Call this from entrypoints only (servers, scripts).
    """
    if load_env:
        load_env_once()
    if configure_logs:
        configure_logging()
