"""MCP tool definitions for the cursor-agent server.

Exposed:
    cursor_agent_chat, cursor_agent_edit_file, cursor_agent_analyze_files,
    cursor_agent_search_repo, cursor_agent_plan_task, cursor_agent_raw,
    cursor_agent_run (legacy)

Every field is optional at this layer, plus an ``arguments`` object,
so hosts that nest parameters one level down still reach AgentTools,
which normalizes and validates them.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal

from mcp.server.fastmcp import Context, FastMCP
from mcp.types import TextContent
from pydantic import Field

OutputFormatArg = Annotated[
    Literal["text", "json", "markdown"] | None,
    Field(description="cursor-agent --output-format (default: text)"),
]
ExtraArgsArg = Annotated[
    list[str] | None,
    Field(description="Extra CLI arguments placed before the prompt"),
]
CwdArg = Annotated[str | None, Field(description="Working directory for cursor-agent")]
ExecutableArg = Annotated[
    str | None, Field(description="Path to cursor-agent if it is not on PATH"),
]
ModelArg = Annotated[str | None, Field(description="Model name passed as -m")]
ForceArg = Annotated[
    bool | None,
    Field(description="Pass -f; false suppresses CURSOR_AGENT_FORCE"),
]
EchoArg = Annotated[
    bool | None,
    Field(description="Prepend the effective prompt to the tool output"),
]
WrappedArg = Annotated[
    dict[str, Any] | None,
    Field(description="Alternative calling convention: all parameters nested here"),
]


def _to_content(result: dict[str, Any]) -> list[TextContent]:
    """Convert an AgentTools response to MCP content.

    If is_error is set, raise ValueError so FastMCP marks it as error.
    """
    texts = [item["text"] for item in result["content"]]
    if result.get("is_error"):
        raise ValueError("\n\n".join(texts))
    return [TextContent(type="text", text=text) for text in texts]


def _params(**kwargs: Any) -> dict[str, Any]:
    """Drop unset fields so normalization sees only what the host sent."""
    return {k: v for k, v in kwargs.items() if v is not None}


def _get_tools(ctx: Context):
    """Get AgentTools from lifespan context."""
    return ctx.request_context.lifespan_context["agent_tools"]


def register_tools(mcp: FastMCP) -> None:
    """Register all cursor-agent tools with the FastMCP instance."""

    @mcp.tool(
        name="cursor_agent_chat",
        description=(
            "Chat with cursor-agent using a prompt and optional "
            "model/force/output_format."
        ),
        structured_output=False,
    )
    async def cursor_agent_chat(
        prompt: Annotated[str | None, Field(description="Prompt text (required)")] = None,
        output_format: OutputFormatArg = None,
        extra_args: ExtraArgsArg = None,
        cwd: CwdArg = None,
        executable: ExecutableArg = None,
        model: ModelArg = None,
        force: ForceArg = None,
        echo_prompt: EchoArg = None,
        arguments: WrappedArg = None,
        ctx: Context = None,
    ) -> list[TextContent]:
        result = await _get_tools(ctx).chat(_params(
            prompt=prompt, output_format=output_format, extra_args=extra_args,
            cwd=cwd, executable=executable, model=model, force=force,
            echo_prompt=echo_prompt, arguments=arguments,
        ))
        return _to_content(result)

    @mcp.tool(
        name="cursor_agent_edit_file",
        description=(
            "Edit a file with an instruction. Prompt-based wrapper; "
            "no CLI subcommand required."
        ),
        structured_output=False,
    )
    async def cursor_agent_edit_file(
        file: Annotated[str | None, Field(description="File to edit (required)")] = None,
        instruction: Annotated[
            str | None, Field(description="What to change (required)"),
        ] = None,
        apply: Annotated[bool | None, Field(description="Apply changes if safe")] = None,
        dry_run: Annotated[bool | None, Field(description="Do not write to disk")] = None,
        prompt: Annotated[str | None, Field(description="Additional context")] = None,
        output_format: OutputFormatArg = None,
        extra_args: ExtraArgsArg = None,
        cwd: CwdArg = None,
        executable: ExecutableArg = None,
        model: ModelArg = None,
        force: ForceArg = None,
        echo_prompt: EchoArg = None,
        arguments: WrappedArg = None,
        ctx: Context = None,
    ) -> list[TextContent]:
        result = await _get_tools(ctx).edit_file(_params(
            file=file, instruction=instruction, apply=apply, dry_run=dry_run,
            prompt=prompt, output_format=output_format, extra_args=extra_args,
            cwd=cwd, executable=executable, model=model, force=force,
            echo_prompt=echo_prompt, arguments=arguments,
        ))
        return _to_content(result)

    @mcp.tool(
        name="cursor_agent_analyze_files",
        description="Analyze one or more paths; optional prompt. Prompt-based wrapper.",
        structured_output=False,
    )
    async def cursor_agent_analyze_files(
        paths: Annotated[
            str | list[str] | None,
            Field(description="Path or list of paths (required)"),
        ] = None,
        prompt: Annotated[str | None, Field(description="Additional prompt")] = None,
        output_format: OutputFormatArg = None,
        extra_args: ExtraArgsArg = None,
        cwd: CwdArg = None,
        executable: ExecutableArg = None,
        model: ModelArg = None,
        force: ForceArg = None,
        echo_prompt: EchoArg = None,
        arguments: WrappedArg = None,
        ctx: Context = None,
    ) -> list[TextContent]:
        result = await _get_tools(ctx).analyze_files(_params(
            paths=paths, prompt=prompt, output_format=output_format,
            extra_args=extra_args, cwd=cwd, executable=executable, model=model,
            force=force, echo_prompt=echo_prompt, arguments=arguments,
        ))
        return _to_content(result)

    @mcp.tool(
        name="cursor_agent_search_repo",
        description=(
            "Search repository code with include/exclude patterns. "
            "Prompt-based wrapper."
        ),
        structured_output=False,
    )
    async def cursor_agent_search_repo(
        query: Annotated[str | None, Field(description="What to look for (required)")] = None,
        include: Annotated[
            str | list[str] | None, Field(description="Include glob(s)"),
        ] = None,
        exclude: Annotated[
            str | list[str] | None, Field(description="Exclude glob(s)"),
        ] = None,
        output_format: OutputFormatArg = None,
        extra_args: ExtraArgsArg = None,
        cwd: CwdArg = None,
        executable: ExecutableArg = None,
        model: ModelArg = None,
        force: ForceArg = None,
        echo_prompt: EchoArg = None,
        arguments: WrappedArg = None,
        ctx: Context = None,
    ) -> list[TextContent]:
        result = await _get_tools(ctx).search_repo(_params(
            query=query, include=include, exclude=exclude,
            output_format=output_format, extra_args=extra_args, cwd=cwd,
            executable=executable, model=model, force=force,
            echo_prompt=echo_prompt, arguments=arguments,
        ))
        return _to_content(result)

    @mcp.tool(
        name="cursor_agent_plan_task",
        description=(
            "Generate a plan for a goal with optional constraints. "
            "Prompt-based wrapper."
        ),
        structured_output=False,
    )
    async def cursor_agent_plan_task(
        goal: Annotated[str | None, Field(description="Goal to plan for (required)")] = None,
        constraints: Annotated[
            list[str] | None, Field(description="Constraints the plan must respect"),
        ] = None,
        output_format: OutputFormatArg = None,
        extra_args: ExtraArgsArg = None,
        cwd: CwdArg = None,
        executable: ExecutableArg = None,
        model: ModelArg = None,
        force: ForceArg = None,
        echo_prompt: EchoArg = None,
        arguments: WrappedArg = None,
        ctx: Context = None,
    ) -> list[TextContent]:
        result = await _get_tools(ctx).plan_task(_params(
            goal=goal, constraints=constraints, output_format=output_format,
            extra_args=extra_args, cwd=cwd, executable=executable, model=model,
            force=force, echo_prompt=echo_prompt, arguments=arguments,
        ))
        return _to_content(result)

    @mcp.tool(
        name="cursor_agent_raw",
        description=(
            "Advanced: provide raw argv array to pass to cursor-agent "
            '(e.g., ["--help"] or ["search","--query","foo"]). '
            "Set print=true to add --print/--output-format."
        ),
        structured_output=False,
    )
    async def cursor_agent_raw(
        argv: Annotated[
            list[str] | None, Field(description="Arguments for cursor-agent (required)"),
        ] = None,
        print: Annotated[
            bool | None, Field(description="Inject --print/--output-format (default false)"),
        ] = None,
        output_format: OutputFormatArg = None,
        cwd: CwdArg = None,
        executable: ExecutableArg = None,
        model: ModelArg = None,
        force: ForceArg = None,
        echo_prompt: EchoArg = None,
        arguments: WrappedArg = None,
        ctx: Context = None,
    ) -> list[TextContent]:
        result = await _get_tools(ctx).raw(_params(
            argv=argv, print=print, output_format=output_format, cwd=cwd,
            executable=executable, model=model, force=force,
            echo_prompt=echo_prompt, arguments=arguments,
        ))
        return _to_content(result)

    @mcp.tool(
        name="cursor_agent_run",
        description=(
            "Run cursor-agent with a prompt and desired output format "
            "(legacy single-shot)."
        ),
        structured_output=False,
    )
    async def cursor_agent_run(
        prompt: Annotated[str | None, Field(description="Prompt text (required)")] = None,
        output_format: OutputFormatArg = None,
        extra_args: ExtraArgsArg = None,
        cwd: CwdArg = None,
        executable: ExecutableArg = None,
        model: ModelArg = None,
        force: ForceArg = None,
        echo_prompt: EchoArg = None,
        arguments: WrappedArg = None,
        ctx: Context = None,
    ) -> list[TextContent]:
        result = await _get_tools(ctx).run(_params(
            prompt=prompt, output_format=output_format, extra_args=extra_args,
            cwd=cwd, executable=executable, model=model, force=force,
            echo_prompt=echo_prompt, arguments=arguments,
        ))
        return _to_content(result)
