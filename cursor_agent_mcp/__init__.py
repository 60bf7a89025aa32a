"""cursor-agent-mcp: MCP stdio server wrapping the cursor-agent CLI."""
from .engine import (
    AgentInvoker,
    AgentSettings,
    InvocationRequest,
    InvocationResult,
    OutputFormat,
)

__version__ = "1.1.0"

__all__ = [
    "AgentInvoker",
    "AgentSettings",
    "InvocationRequest",
    "InvocationResult",
    "OutputFormat",
    "__version__",
]
