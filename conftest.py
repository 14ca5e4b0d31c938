"""Pytest configuration and shared fixtures."""
import os
import sys

import pytest

# Ensure project root and src/ are on sys.path for absolute imports
ROOT = os.path.dirname(os.path.abspath(__file__))
for p in (ROOT, os.path.join(ROOT, "src")):
    if p not in sys.path:
        sys.path.insert(0, p)


TEST_BASE_URL = "https://backend.test"


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Keep telemetry out of the repo and pin the backend URL for every test."""
    monkeypatch.setenv("GMAIL_MCP_TELEMETRY_DIR", str(tmp_path / "telemetry"))
    monkeypatch.setenv("GMAIL_MCP_BASE_URL", TEST_BASE_URL)
    monkeypatch.delenv("GMAIL_MCP_STRICT_ARGS", raising=False)
    monkeypatch.delenv("GMAIL_MCP_DISABLE_TELEMETRY", raising=False)
    monkeypatch.delenv("GMAIL_MCP_IDENTITY_HEADER", raising=False)
    monkeypatch.delenv("MCP_CLIENT_ID", raising=False)
    yield
