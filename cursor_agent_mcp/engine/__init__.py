"""Invocation engine for the cursor-agent CLI."""
from .argv import assemble_argv
from .config import AgentSettings, resolve_config
from .errors import ConfigError, CursorMcpError, InvalidParamsError
from .invoker import AgentInvoker
from .models import (
    EffectiveConfig,
    InvocationRequest,
    InvocationResult,
    Outcome,
    OutputFormat,
)
from .normalize import CallShape, detect_call_shape, normalize_call

__all__ = [
    "AgentInvoker",
    "AgentSettings",
    "CallShape",
    "ConfigError",
    "CursorMcpError",
    "EffectiveConfig",
    "InvalidParamsError",
    "InvocationRequest",
    "InvocationResult",
    "Outcome",
    "OutputFormat",
    "assemble_argv",
    "detect_call_shape",
    "normalize_call",
    "resolve_config",
]
