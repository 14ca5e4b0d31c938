"""
Smoke script for MCP reachability (no backend required).

It performs:
 1) Spawns the agent over stdio
 2) Lists tools
 3) Calls authenticate without a token and prints the authorization URL
 4) Optionally (GMAIL_SMOKE_TOKEN set) authenticates and calls list_labels
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import Any

_REPO_ROOT = Path(__file__).resolve().parents[1]


def _unwrap_tool_result(res: Any) -> Any:
    content = getattr(res, "content", None)
    if not content:
        return res
    c0 = content[0]
    if isinstance(c0, dict) and "text" in c0:
        return c0["text"]
    return getattr(c0, "text", c0)


async def demo_mcp() -> bool:
    from mcp import ClientSession
    from mcp.client.stdio import StdioServerParameters, stdio_client

    python_cmd = os.getenv("MCP_PYTHON") or sys.executable
    token = os.getenv("GMAIL_SMOKE_TOKEN")

    env = dict(os.environ, MCP_TRANSPORT="stdio")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(_REPO_ROOT / "src"), env.get("PYTHONPATH", "")) if p)

    print(f"[smoke] Repo root: {_REPO_ROOT}")
    print(f"[smoke] Python: {python_cmd}")

    server = StdioServerParameters(command=python_cmd, args=["-m", "gmail_mcp.server"], env=env)

    async with stdio_client(server) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            print("[smoke] Tools:", ", ".join(t.name for t in tools.tools))

            res = await session.call_tool("authenticate", {})
            print("[smoke] authenticate ->")
            print(_unwrap_tool_result(res))

            if not token:
                print("[smoke] GMAIL_SMOKE_TOKEN not set; skipping authenticated calls")
                return True

            await session.call_tool("authenticate", {"token": token})
            res = await session.call_tool("list_labels", {})
            text = _unwrap_tool_result(res)
            print("[smoke] list_labels ->")
            print(text)
            return not str(text).startswith("Error:")


def main() -> int:
    ok = asyncio.run(demo_mcp())
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
