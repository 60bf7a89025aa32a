"""Prompt composition for the prompt-oriented tools.

cursor-agent has no edit/analyze/search/plan subcommands; these tools
turn structured fields into a single natural-language instruction.
"""
from __future__ import annotations

from .schemas import AnalyzeFilesParams, EditFileParams, PlanTaskParams, SearchRepoParams


def _as_list(value: str | list[str] | None) -> list[str]:
    if value is None:
        return []
    return [value] if isinstance(value, str) else list(value)


def _bullets(items: list[str], indent: str = "") -> str:
    return "\n".join(f"{indent}- {item}" for item in items)


def compose_edit_prompt(params: EditFileParams) -> str:
    lines = [
        "Edit the repository file:",
        f"- File: {params.file}",
        f"- Instruction: {params.instruction}",
        "- Apply changes if safe." if params.apply
        else "- Propose a patch/diff without applying.",
    ]
    if params.dry_run:
        lines.append("- Treat as dry-run; do not write to disk.")
    if params.prompt:
        lines.append(f"- Additional context: {params.prompt}")
    return "\n".join(lines) + "\n"


def compose_analyze_prompt(params: AnalyzeFilesParams) -> str:
    text = (
        "Analyze the following paths in the repository:\n"
        f"{_bullets(params.path_list)}\n"
    )
    if params.prompt:
        text += f"Additional prompt: {params.prompt}\n"
    return text


def compose_search_prompt(params: SearchRepoParams) -> str:
    include = _as_list(params.include)
    exclude = _as_list(params.exclude)
    text = (
        "Search the repository for occurrences relevant to:\n"
        f"- Query: {params.query}\n"
    )
    if include:
        text += f"- Include globs:\n{_bullets(include, '  ')}\n"
    if exclude:
        text += f"- Exclude globs:\n{_bullets(exclude, '  ')}\n"
    return text + "Return concise findings with file paths and line references."


def compose_plan_prompt(params: PlanTaskParams) -> str:
    constraints = params.constraints or []
    text = (
        "Create a step-by-step plan to accomplish the following goal:\n"
        f"- Goal: {params.goal}\n"
    )
    if constraints:
        text += f"- Constraints:\n{_bullets(constraints, '  ')}\n"
    return text + "Provide a numbered list of actions."
