"""Argument vector assembly for cursor-agent.

Caller-supplied flags win: a force or model flag already present in the
caller's arguments is never duplicated from configuration.
"""
from __future__ import annotations

from collections.abc import Sequence

from .models import OutputFormat

PRINT_FLAG = "--print"
OUTPUT_FORMAT_FLAG = "--output-format"
FORCE_FLAG = "-f"
MODEL_FLAG = "-m"

_FORCE_FLAGS = frozenset({"-f", "--force"})
_MODEL_FLAGS = frozenset({"-m", "--model"})
_MODEL_PREFIXES = ("-m=", "--model=")


def has_force_flag(args: Sequence[str]) -> bool:
    return any(a in _FORCE_FLAGS for a in args)


def has_model_flag(args: Sequence[str]) -> bool:
    return any(a in _MODEL_FLAGS or a.startswith(_MODEL_PREFIXES) for a in args)


def assemble_argv(
    caller_args: Sequence[str],
    output_format: OutputFormat | str = OutputFormat.TEXT,
    *,
    emit_print_flags: bool = True,
    model: str | None = None,
    force: bool = False,
) -> list[str]:
    """Build the final argv (without the executable).

    Order is fixed: print/format flags, caller args, force, model.
    """
    user_args = [str(a) for a in caller_args]
    argv: list[str] = []

    if emit_print_flags:
        fmt = OutputFormat(output_format).value
        argv.extend([PRINT_FLAG, OUTPUT_FORMAT_FLAG, fmt])

    argv.extend(user_args)

    if force and not has_force_flag(user_args):
        argv.append(FORCE_FLAG)
    if model and not has_model_flag(user_args):
        argv.extend([MODEL_FLAG, model])

    return argv
