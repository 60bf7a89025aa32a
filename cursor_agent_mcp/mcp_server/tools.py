"""Tool catalogue for the cursor-agent MCP server.

Each method takes the raw parameter mapping a host sent, normalizes
the calling convention, validates it, composes a prompt (or passes
raw argv through) and delegates to the AgentInvoker.

All methods return {"content": [{"type": "text", "text": ...}], "is_error": bool}.
Validation failures are reported as error responses; they never
propagate out of the catalogue.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..engine.config import AgentSettings
from ..engine.errors import InvalidParamsError
from ..engine.invoker import AgentInvoker
from ..engine.models import InvocationRequest
from ..engine.normalize import normalize_call
from .prompts import (
    compose_analyze_prompt,
    compose_edit_prompt,
    compose_plan_prompt,
    compose_search_prompt,
)
from .schemas import (
    AnalyzeFilesParams,
    ChatParams,
    CommonParams,
    EditFileParams,
    PlanTaskParams,
    RawParams,
    RunParams,
    SearchRepoParams,
    format_validation_error,
)

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 400

P = TypeVar("P", bound=BaseModel)


def _text(text: str) -> dict[str, Any]:
    """Format a successful text response."""
    return {"content": [{"type": "text", "text": text}], "is_error": False}


def _error(text: str) -> dict[str, Any]:
    """Format an error response."""
    return {"content": [{"type": "text", "text": text}], "is_error": True}


def validate_params(
    tool_name: str,
    schema: type[P],
    raw: Mapping[str, Any] | None,
    primary_field: str,
) -> P:
    """Normalize and validate raw tool params, raising InvalidParamsError."""
    if raw is not None and not isinstance(raw, Mapping):
        raise InvalidParamsError(tool_name, "params must be an object")
    try:
        return schema.model_validate(normalize_call(raw, primary_field))
    except ValidationError as exc:
        raise InvalidParamsError(tool_name, format_validation_error(exc)) from exc


class AgentTools:
    """cursor-agent tools bound to one invoker."""

    def __init__(
        self,
        invoker: AgentInvoker,
        settings: AgentSettings | None = None,
    ) -> None:
        self._invoker = invoker
        self._settings = settings or invoker.settings

    # ── prompt-oriented tools ──────────────────────────────────

    async def chat(self, raw: Mapping[str, Any] | None) -> dict[str, Any]:
        """Chat with a prompt; optional model/force/format."""
        return await self._prompt_tool(
            "cursor_agent_chat", ChatParams, raw, "prompt", lambda p: p.prompt,
        )

    async def run(self, raw: Mapping[str, Any] | None) -> dict[str, Any]:
        """Legacy single-shot run (prompt as positional)."""
        return await self._prompt_tool(
            "cursor_agent_run", RunParams, raw, "prompt", lambda p: p.prompt,
        )

    async def edit_file(self, raw: Mapping[str, Any] | None) -> dict[str, Any]:
        return await self._prompt_tool(
            "cursor_agent_edit_file", EditFileParams, raw, "file", compose_edit_prompt,
        )

    async def analyze_files(self, raw: Mapping[str, Any] | None) -> dict[str, Any]:
        return await self._prompt_tool(
            "cursor_agent_analyze_files", AnalyzeFilesParams, raw, "paths",
            compose_analyze_prompt,
        )

    async def search_repo(self, raw: Mapping[str, Any] | None) -> dict[str, Any]:
        return await self._prompt_tool(
            "cursor_agent_search_repo", SearchRepoParams, raw, "query",
            compose_search_prompt,
        )

    async def plan_task(self, raw: Mapping[str, Any] | None) -> dict[str, Any]:
        return await self._prompt_tool(
            "cursor_agent_plan_task", PlanTaskParams, raw, "goal", compose_plan_prompt,
        )

    # ── escape hatch ───────────────────────────────────────────

    async def raw(self, raw: Mapping[str, Any] | None) -> dict[str, Any]:
        """Pass argv straight to cursor-agent.

        --print is off unless print=true so commands like --help work.
        extra_args is ignored; argv is the whole argument list.
        """
        tool_name = "cursor_agent_raw"
        try:
            params = validate_params(tool_name, RawParams, raw, "argv")
        except InvalidParamsError as exc:
            logger.info("%s rejected: %s", tool_name, exc.message)
            return _error(f"Invalid params: {exc.message}")

        request = self._request(params, params.argv, emit_print_flags=params.print is True)
        result = await self._invoker.invoke(request)
        return self._echo(
            params, f"Arguments used:\n{json.dumps(params.argv)}", result.to_response(),
        )

    # ── internals ──────────────────────────────────────────────

    async def _prompt_tool(
        self,
        tool_name: str,
        schema: type[P],
        raw: Mapping[str, Any] | None,
        primary_field: str,
        compose: Callable[[P], str],
    ) -> dict[str, Any]:
        try:
            params = validate_params(tool_name, schema, raw, primary_field)
        except InvalidParamsError as exc:
            logger.info("%s rejected: %s", tool_name, exc.message)
            return _error(f"Invalid params: {exc.message}")

        prompt = compose(params)
        extra_args = params.extra_args or []
        self._log_call(tool_name, prompt, params)

        request = self._request(params, [*extra_args, prompt])
        result = await self._invoker.invoke(request)
        return self._echo(params, f"Prompt used:\n{prompt}", result.to_response())

    def _request(
        self,
        params: CommonParams,
        argv: list[str],
        *,
        emit_print_flags: bool = True,
    ) -> InvocationRequest:
        return InvocationRequest(
            argv=tuple(argv),
            output_format=params.output_format,
            cwd=params.cwd,
            executable=params.executable,
            model=params.model,
            force=params.force,
            emit_print_flags=emit_print_flags,
        )

    def _echo(
        self,
        params: CommonParams,
        text: str,
        response: dict[str, Any],
    ) -> dict[str, Any]:
        if not (params.echo_prompt is True or self._settings.echo_prompt):
            return response
        return {**response, "content": [{"type": "text", "text": text}, *response["content"]]}

    def _log_call(self, tool_name: str, prompt: str, params: CommonParams) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        preview = prompt[:_PREVIEW_CHARS].replace("\n", "\\n")
        logger.debug("%s prompt: %s", tool_name, preview)
        if params.extra_args:
            logger.debug("%s extra_args: %s", tool_name, json.dumps(params.extra_args))
        if params.model:
            logger.debug("%s model: %s", tool_name, params.model)
        if params.force is not None:
            logger.debug("%s force: %s", tool_name, params.force)
