"""Core data models for the invocation engine.

Requests, resolved configuration and results. Single source of truth
to avoid circular imports.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

AGENT_NAME = "cursor-agent"
NO_OUTPUT = "(no output)"


class OutputFormat(str, Enum):
    """Values accepted by cursor-agent's --output-format flag."""
    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


class Outcome(str, Enum):
    """How an invocation settled."""
    SUCCESS = "success"
    PARTIAL = "partial"  # idle-killed after producing stdout
    START_FAILURE = "start_failure"
    HARD_TIMEOUT = "hard_timeout"
    IDLE_TIMEOUT = "idle_timeout"
    NONZERO_EXIT = "nonzero_exit"


@dataclass(frozen=True)
class InvocationRequest:
    """One call into cursor-agent, built fresh by the tool catalogue."""
    argv: tuple[str, ...] = ()
    output_format: OutputFormat = OutputFormat.TEXT
    cwd: str | None = None
    executable: str | None = None
    model: str | None = None
    force: bool | None = None
    emit_print_flags: bool = True
    # Per-call overrides; None defers to settings.
    hard_timeout_ms: int | None = None
    idle_timeout_ms: int | None = None


@dataclass(frozen=True)
class EffectiveConfig:
    """Per-call configuration after merging call values with defaults."""
    executable: str
    model: str | None
    force: bool
    hard_timeout_ms: int
    idle_timeout_ms: int = 0
    max_output_chars: int = 0


@dataclass(frozen=True)
class InvocationResult:
    """Terminal value of an invocation."""
    text: str
    is_error: bool = False
    outcome: Outcome = Outcome.SUCCESS

    def to_response(self) -> dict[str, Any]:
        """Format as a tool response."""
        return {
            "content": [{"type": "text", "text": self.text}],
            "is_error": self.is_error,
        }
