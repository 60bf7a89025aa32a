"""Exception hierarchy for cursor-agent-mcp.

Process failures are never raised: the invoker reports them as
error-flagged InvocationResults. These exceptions cover the paths
that happen before any process exists.
"""
from __future__ import annotations


class CursorMcpError(Exception):
    """Base exception for all cursor-agent-mcp errors."""


class InvalidParamsError(CursorMcpError):
    """Tool input failed its declared shape."""
    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        self.message = message
        super().__init__(message)


class ConfigError(CursorMcpError):
    """Configuration file could not be read or parsed."""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid config file {path}: {reason}")
