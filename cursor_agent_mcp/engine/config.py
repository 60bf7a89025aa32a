"""Configuration loaded from environment variables and an optional YAML file.

Process-wide defaults live in AgentSettings. Per-call values are merged
on top of them by resolve_config(). Precedence (highest wins):

1. Explicit call parameter
2. CURSOR_AGENT_* environment variable
3. ``agent:`` section of the YAML config file
4. Hardcoded fallback

Example YAML:
    agent:
      path: /opt/cursor/bin/cursor-agent
      model: gpt-5
      force: false
      timeout_ms: 120000
      idle_exit_ms: 15000
      max_output_chars: 0
      echo_prompt: false
      debug: false
      cwd: /path/to/project
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .models import AGENT_NAME, EffectiveConfig

logger = logging.getLogger(__name__)

DEFAULT_HARD_TIMEOUT_MS = 30000

_TRUTHY = {"1", "true", "yes", "on"}

# YAML key -> (env var, AgentSettings field)
_KNOBS: dict[str, tuple[str, str]] = {
    "path": ("CURSOR_AGENT_PATH", "executable_path"),
    "model": ("CURSOR_AGENT_MODEL", "model"),
    "force": ("CURSOR_AGENT_FORCE", "force"),
    "timeout_ms": ("CURSOR_AGENT_TIMEOUT_MS", "hard_timeout_ms"),
    "idle_exit_ms": ("CURSOR_AGENT_IDLE_EXIT_MS", "idle_timeout_ms"),
    "max_output_chars": ("CURSOR_AGENT_MAX_OUTPUT_CHARS", "max_output_chars"),
    "echo_prompt": ("CURSOR_AGENT_ECHO_PROMPT", "echo_prompt"),
    "debug": ("DEBUG_CURSOR_MCP", "debug"),
    "cwd": ("CURSOR_AGENT_CWD", "default_cwd"),
}

CONFIG_FILE_ENV = "CURSOR_AGENT_MCP_CONFIG"

# Knobs where 0 means disabled or unbounded
_ZERO_DISABLES = frozenset({"idle_timeout_ms", "max_output_chars"})


def parse_bool(value: Any) -> bool:
    """Truthy-string semantics: 1/true/yes/on, case-insensitive."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


def parse_positive_int(value: Any) -> int | None:
    """Return value as a positive int, or None if it isn't one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _is_zero(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    return str(value).strip() == "0"


def _non_empty(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class AgentSettings:
    """Process-wide defaults for cursor-agent invocations."""

    executable_path: str | None = None
    model: str | None = None
    force: bool = False
    hard_timeout_ms: int = DEFAULT_HARD_TIMEOUT_MS
    # 0 disables the idle timer
    idle_timeout_ms: int = 0
    # 0 keeps stdout/stderr unbounded
    max_output_chars: int = 0
    echo_prompt: bool = False
    debug: bool = False
    # Used when a call doesn't pass cwd; None inherits the server's cwd
    default_cwd: str | None = None

    def with_values(self, values: Mapping[str, Any]) -> AgentSettings:
        """Layer raw knob values (keyed by field name) over these settings.

        Unparseable or empty values are ignored so the lower layer wins.
        """
        updates: dict[str, Any] = {}
        for name, raw in values.items():
            if name in ("executable_path", "model", "default_cwd"):
                text = _non_empty(raw)
                if text is not None:
                    updates[name] = text
            elif name in ("force", "echo_prompt", "debug"):
                if raw is not None and str(raw).strip() != "":
                    updates[name] = parse_bool(raw)
            elif name in ("hard_timeout_ms", "idle_timeout_ms", "max_output_chars"):
                parsed = parse_positive_int(raw)
                if parsed is None and name in _ZERO_DISABLES and _is_zero(raw):
                    parsed = 0
                if parsed is not None:
                    updates[name] = parsed
                elif raw is not None and str(raw).strip() != "":
                    logger.warning(
                        "Ignoring %s=%r (expected a positive integer)", name, raw,
                    )
        return replace(self, **updates)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        config_file: str | Path | None = None,
    ) -> AgentSettings:
        """Load settings from the YAML file (if any) and CURSOR_AGENT_* vars."""
        env = os.environ if environ is None else environ
        settings = cls()

        config_file = config_file or env.get(CONFIG_FILE_ENV) or None
        if config_file:
            settings = settings.with_values(load_yaml_defaults(config_file))

        env_values = {
            field_name: env.get(env_name)
            for env_name, field_name in _KNOBS.values()
        }
        set_vars = sorted(
            env_name for env_name, _ in _KNOBS.values() if env.get(env_name)
        )
        if set_vars:
            logger.info("AgentSettings.from_env: env overrides: %s", ", ".join(set_vars))
        else:
            logger.debug("AgentSettings.from_env: no CURSOR_AGENT_* env vars set")

        settings = settings.with_values(env_values)
        logger.info(
            "AgentSettings: executable=%s model=%s force=%s timeout_ms=%d idle_exit_ms=%d",
            settings.executable_path or AGENT_NAME,
            settings.model,
            settings.force,
            settings.hard_timeout_ms,
            settings.idle_timeout_ms,
        )
        return settings


def load_yaml_defaults(path: str | Path) -> dict[str, Any]:
    """Read the ``agent:`` section of a YAML config file.

    Returns values keyed by AgentSettings field name.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(str(path), str(exc)) from exc
    except yaml.YAMLError as exc:
        raise ConfigError(str(path), f"YAML parse error: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping")
    section = data.get("agent") or {}
    if not isinstance(section, dict):
        raise ConfigError(str(path), "'agent' must be a mapping")

    unknown = sorted(set(section) - set(_KNOBS))
    if unknown:
        logger.warning("load_yaml_defaults: unknown keys in %s: %s", path, ", ".join(unknown))

    logger.info("load_yaml_defaults: loaded %d setting(s) from %s", len(section), path)
    return {
        _KNOBS[key][1]: value for key, value in section.items() if key in _KNOBS
    }


def resolve_config(
    settings: AgentSettings,
    *,
    executable: str | None = None,
    model: str | None = None,
    force: bool | None = None,
    hard_timeout_ms: int | None = None,
    idle_timeout_ms: int | None = None,
) -> EffectiveConfig:
    """Merge explicit call values over process-wide settings. No I/O."""
    effective_force = force if isinstance(force, bool) else settings.force

    hard = parse_positive_int(hard_timeout_ms)
    if hard is None:
        hard = parse_positive_int(settings.hard_timeout_ms) or DEFAULT_HARD_TIMEOUT_MS

    # An explicit 0 disables the idle timer for this call
    idle = 0 if _is_zero(idle_timeout_ms) else parse_positive_int(idle_timeout_ms)
    if idle is None:
        idle = parse_positive_int(settings.idle_timeout_ms) or 0

    return EffectiveConfig(
        executable=(
            _non_empty(executable)
            or _non_empty(settings.executable_path)
            or AGENT_NAME
        ),
        model=_non_empty(model) or _non_empty(settings.model),
        force=effective_force,
        hard_timeout_ms=hard,
        idle_timeout_ms=idle,
        max_output_chars=parse_positive_int(settings.max_output_chars) or 0,
    )
