"""Stdio MCP server wrapping the cursor-agent CLI.

Exposes chat/edit/analyze/search/plan/raw tools plus the legacy
cursor_agent_run. Each tool call runs one cursor-agent subprocess.

Usage:
    # Via the host's MCP config (stdio)
    cursor-agent-mcp
    python -m cursor_agent_mcp.mcp_server.stdio_server \
        --config cursor-agent-mcp.yaml --verbose
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from ..engine.config import AgentSettings, parse_bool
from ..engine.invoker import AgentInvoker
from .tools import AgentTools

logger = logging.getLogger(__name__)

# Parsed CLI args, set in main() before the server starts
_parsed_args: argparse.Namespace | None = None


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI args for the MCP server process."""
    parser = argparse.ArgumentParser(
        prog="cursor-agent-mcp",
        description="MCP wrapper server for the cursor-agent CLI",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=(
            "YAML file with an 'agent:' section of defaults. "
            "Also reads CURSOR_AGENT_MCP_CONFIG env var."
        ),
    )
    parser.add_argument(
        "--cwd",
        default=None,
        help="Working directory for calls that don't pass cwd",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Also write a per-process log file into this directory",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging (same as DEBUG_CURSOR_MCP=1)",
    )
    return parser.parse_args(argv)


def _setup_file_logging(log_dir: str) -> None:
    """Add a per-process log file; stdio stream closures are otherwise invisible."""
    path = Path(log_dir).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(
        path / f"cursor-agent-mcp-{os.getpid()}.log", encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.getLogger().addHandler(file_handler)


@asynccontextmanager
async def agent_lifespan(server: FastMCP):
    """Build settings, invoker and tool catalogue for the server lifetime.

    Yields context dict accessible via ctx.request_context.lifespan_context
    in tool handlers.
    """
    args = _parsed_args if _parsed_args is not None else _parse_args([])

    # Logging goes to stderr (stdout is the stdio transport) and is set up
    # ahead of AgentSettings.from_env, which logs the effective settings
    verbose = args.verbose or parse_bool(os.environ.get("DEBUG_CURSOR_MCP"))
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("cursor_agent_mcp").setLevel(level)

    settings = AgentSettings.from_env(config_file=args.config)
    if settings.debug and not verbose:
        # debug: true from the YAML file
        logging.getLogger("cursor_agent_mcp").setLevel(logging.DEBUG)

    # Override cwd from CLI if provided
    if args.cwd:
        settings = replace(settings, default_cwd=args.cwd)

    invoker = AgentInvoker(settings)
    agent_tools = AgentTools(invoker, settings)

    logger.info(
        "cursor-agent MCP server initialized (executable=%s, model=%s, "
        "timeout_ms=%d, idle_exit_ms=%d, cwd=%s)",
        settings.executable_path or "cursor-agent",
        settings.model,
        settings.hard_timeout_ms,
        settings.idle_timeout_ms,
        settings.default_cwd or os.getcwd(),
    )
    try:
        yield {
            "settings": settings,
            "invoker": invoker,
            "agent_tools": agent_tools,
        }
    finally:
        logger.info("cursor-agent MCP server shut down")


# Create the FastMCP instance
mcp = FastMCP(
    name="cursor-agent",
    instructions=" ".join([
        "Tools:",
        "- cursor_agent_chat: chat with a prompt; optional model/force/format.",
        "- cursor_agent_edit_file: prompt-based file edit wrapper; you provide file and instruction.",
        "- cursor_agent_analyze_files: prompt-based analysis of one or more paths.",
        "- cursor_agent_search_repo: prompt-based code search with include/exclude globs.",
        "- cursor_agent_plan_task: prompt-based planning given a goal and optional constraints.",
        "- cursor_agent_raw: pass raw argv directly to cursor-agent; set print=true to add --print.",
        "- cursor_agent_run: legacy single-shot chat (prompt as positional).",
    ]),
    lifespan=agent_lifespan,
)

# Register tools
from .catalog import register_tools  # noqa: E402

register_tools(mcp)


def main() -> None:
    """Entry point for the MCP server."""
    global _parsed_args
    _parsed_args = _parse_args()
    if _parsed_args.log_dir:
        _setup_file_logging(_parsed_args.log_dir)
        logging.getLogger().setLevel(logging.INFO)
        logger.info(
            "Starting stdio MCP server (pid=%s, argv=%s)", os.getpid(), sys.argv
        )

    try:
        mcp.run(transport="stdio")
    except Exception:
        logger.exception("Fatal stdio MCP server error (pid=%s)", os.getpid())
        raise


if __name__ == "__main__":
    main()
