"""Input models for the tool catalogue.

Every tool shares CommonParams. Unknown fields are ignored so hosts
that forward extra keys are not rejected.
"""
from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..engine.models import OutputFormat

NonEmptyStr = Annotated[str, Field(min_length=1)]


class CommonParams(BaseModel):
    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    output_format: OutputFormat = OutputFormat.TEXT
    extra_args: list[str] | None = None
    cwd: str | None = None
    # Optional override for the executable path if not on PATH
    executable: str | None = None
    model: str | None = None
    force: bool | None = None
    # Prepend the effective prompt to the tool output
    echo_prompt: bool | None = None


class ChatParams(CommonParams):
    prompt: NonEmptyStr


class RunParams(ChatParams):
    """Legacy single-shot run; same shape as chat."""


class EditFileParams(CommonParams):
    file: NonEmptyStr
    instruction: NonEmptyStr
    apply: bool | None = None
    dry_run: bool | None = None
    # Additional free-form context
    prompt: str | None = None


class AnalyzeFilesParams(CommonParams):
    paths: NonEmptyStr | Annotated[list[NonEmptyStr], Field(min_length=1)]
    prompt: str | None = None

    @property
    def path_list(self) -> list[str]:
        return [self.paths] if isinstance(self.paths, str) else list(self.paths)


class SearchRepoParams(CommonParams):
    query: NonEmptyStr
    include: str | list[str] | None = None
    exclude: str | list[str] | None = None


class PlanTaskParams(CommonParams):
    goal: NonEmptyStr
    constraints: list[str] | None = None


class RawParams(CommonParams):
    # Raw argv passed through unmodified, e.g. ["--help"]
    argv: Annotated[list[str], Field(min_length=1)]
    # Inject --print/--output-format; off by default for raw calls
    print: bool | None = None


def format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into one line per field."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "params"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)
