"""MCP server surface: tool catalogue and stdio entry point."""
