#!/usr/bin/env python3
"""End-to-end smoke test: launch the server over stdio and call one tool.

Usage:
    python scripts/smoke_client.py "hello from MCP smoke test" [extra cli args...]
    TEST_TOOL=cursor_agent_raw TEST_ARGV='["--help"]' python scripts/smoke_client.py

Environment:
    TEST_TOOL         tool to call (default cursor_agent_chat)
    TEST_PROMPT       prompt text
    TEST_FORMAT       output format (default text)
    TEST_CWD          working directory passed to the tool
    TEST_FILE / TEST_INSTRUCTION / TEST_APPLY / TEST_DRY_RUN   edit_file
    TEST_PATHS        analyze_files paths (JSON array or comma-separated)
    TEST_QUERY / TEST_INCLUDE / TEST_EXCLUDE                    search_repo
    TEST_GOAL / TEST_CONSTRAINTS                                plan_task
    TEST_ARGV / TEST_PRINT                                      raw
    TEST_TIMEOUT_MS   client-side guard for the call (default 90000)
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client


def _list_env(name: str) -> list[str] | None:
    """Read a JSON array, falling back to a comma-separated list."""
    value = os.environ.get(name)
    if not value:
        return None
    try:
        parsed = json.loads(value)
        if isinstance(parsed, list):
            return [str(v) for v in parsed]
    except json.JSONDecodeError:
        pass
    return [part.strip() for part in value.split(",") if part.strip()]


def _build_args(tool: str, prompt_default: str, extra_args: list[str]) -> dict[str, Any]:
    env = os.environ
    common: dict[str, Any] = {"output_format": env.get("TEST_FORMAT") or "text"}
    if env.get("TEST_CWD"):
        common["cwd"] = env["TEST_CWD"]

    if tool in ("cursor_agent_chat", "cursor_agent_run"):
        return {
            "prompt": env.get("TEST_PROMPT") or prompt_default,
            "extra_args": extra_args,
            **common,
        }
    if tool == "cursor_agent_edit_file":
        args = {
            "file": env.get("TEST_FILE") or "README.md",
            "instruction": env.get("TEST_INSTRUCTION")
            or "Summarize the file and suggest one improvement.",
            "apply": env.get("TEST_APPLY") == "1",
            "dry_run": env.get("TEST_DRY_RUN") == "1",
            "extra_args": extra_args,
            **common,
        }
        if env.get("TEST_PROMPT"):
            args["prompt"] = env["TEST_PROMPT"]
        return args
    if tool == "cursor_agent_analyze_files":
        return {
            "paths": _list_env("TEST_PATHS") or ["."],
            "prompt": env.get("TEST_PROMPT") or "Provide a brief analysis of these paths.",
            "extra_args": extra_args,
            **common,
        }
    if tool == "cursor_agent_search_repo":
        args = {"query": env.get("TEST_QUERY") or "TODO", "extra_args": extra_args, **common}
        for key, var in (("include", "TEST_INCLUDE"), ("exclude", "TEST_EXCLUDE")):
            values = _list_env(var)
            if values:
                args[key] = values
        return args
    if tool == "cursor_agent_plan_task":
        args = {
            "goal": env.get("TEST_GOAL") or "Set up CI to lint and test this repo.",
            "extra_args": extra_args,
            **common,
        }
        constraints = _list_env("TEST_CONSTRAINTS")
        if constraints:
            args["constraints"] = constraints
        return args
    if tool == "cursor_agent_raw":
        return {
            "argv": json.loads(env["TEST_ARGV"]) if env.get("TEST_ARGV") else ["--help"],
            "print": env.get("TEST_PRINT") == "1",
            **common,
        }
    raise SystemExit(f"Unknown test tool {tool}")


async def _run(prompt_default: str, extra_args: list[str]) -> int:
    server_env = dict(os.environ)
    server_env.setdefault("CURSOR_AGENT_TIMEOUT_MS", "8000")
    params = StdioServerParameters(
        command=sys.executable,
        args=["-m", "cursor_agent_mcp.mcp_server.stdio_server"],
        env=server_env,
    )

    async with stdio_client(params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            listed = await session.list_tools()
            names = [tool.name for tool in listed.tools]
            print("Tools:", ", ".join(names))

            preferred = os.environ.get("TEST_TOOL")
            tool = preferred if preferred in names else "cursor_agent_chat"
            print("Using tool:", tool)

            call_timeout = int(os.environ.get("TEST_TIMEOUT_MS") or "90000") / 1000
            result = await asyncio.wait_for(
                session.call_tool(tool, _build_args(tool, prompt_default, extra_args)),
                timeout=call_timeout,
            )

            text = "\n".join(
                item.text for item in result.content if getattr(item, "type", "") == "text"
            )
            print("Tool call output (first 500 chars):")
            print(text[:500])
            return 1 if result.isError else 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("prompt", nargs="?", default="hello from MCP smoke test")
    parser.add_argument("extra_args", nargs=argparse.REMAINDER)
    args = parser.parse_args()
    try:
        code = asyncio.run(_run(args.prompt, args.extra_args))
    except asyncio.TimeoutError:
        print("E2E test failed: tool call timed out", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
