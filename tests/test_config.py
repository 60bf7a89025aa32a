"""Tests for AgentSettings loading and per-call config resolution."""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from cursor_agent_mcp.engine.config import (
    DEFAULT_HARD_TIMEOUT_MS,
    AgentSettings,
    load_yaml_defaults,
    parse_bool,
    parse_positive_int,
    resolve_config,
)
from cursor_agent_mcp.engine.errors import ConfigError


# ── env parsing ─────────────────────────────────────────────────


@pytest.mark.parametrize("value", ["1", "true", "TRUE", "Yes", "on", " on "])
def test_parse_bool_truthy_forms(value):
    assert parse_bool(value) is True


@pytest.mark.parametrize("value", ["0", "false", "no", "off", "", "enabled", None])
def test_parse_bool_everything_else_is_false(value):
    assert parse_bool(value) is False


def test_parse_positive_int():
    assert parse_positive_int("5000") == 5000
    assert parse_positive_int(" 42 ") == 42
    assert parse_positive_int(250) == 250
    assert parse_positive_int("0") is None
    assert parse_positive_int("-5") is None
    assert parse_positive_int("abc") is None
    assert parse_positive_int("12.5") is None
    assert parse_positive_int(True) is None
    assert parse_positive_int(None) is None


def test_settings_defaults_with_empty_env():
    settings = AgentSettings.from_env(environ={})
    assert settings.executable_path is None
    assert settings.model is None
    assert settings.force is False
    assert settings.hard_timeout_ms == DEFAULT_HARD_TIMEOUT_MS == 30000
    assert settings.idle_timeout_ms == 0
    assert settings.max_output_chars == 0
    assert settings.echo_prompt is False
    assert settings.debug is False


def test_settings_from_env_reads_all_knobs():
    settings = AgentSettings.from_env(environ={
        "CURSOR_AGENT_PATH": "  /opt/cursor/cursor-agent  ",
        "CURSOR_AGENT_MODEL": "gpt-5",
        "CURSOR_AGENT_FORCE": "YES",
        "CURSOR_AGENT_TIMEOUT_MS": "5000",
        "CURSOR_AGENT_IDLE_EXIT_MS": "250",
        "CURSOR_AGENT_MAX_OUTPUT_CHARS": "1000",
        "CURSOR_AGENT_ECHO_PROMPT": "1",
        "DEBUG_CURSOR_MCP": "1",
    })
    assert settings.executable_path == "/opt/cursor/cursor-agent"
    assert settings.model == "gpt-5"
    assert settings.force is True
    assert settings.hard_timeout_ms == 5000
    assert settings.idle_timeout_ms == 250
    assert settings.max_output_chars == 1000
    assert settings.echo_prompt is True
    assert settings.debug is True


@pytest.mark.parametrize("bad", ["abc", "0", "-5", "   "])
def test_settings_invalid_timeouts_fall_back(bad):
    settings = AgentSettings.from_env(environ={
        "CURSOR_AGENT_TIMEOUT_MS": bad,
        "CURSOR_AGENT_IDLE_EXIT_MS": bad,
    })
    assert settings.hard_timeout_ms == 30000
    assert settings.idle_timeout_ms == 0


@pytest.mark.parametrize("name", ["CURSOR_AGENT_IDLE_EXIT_MS", "CURSOR_AGENT_MAX_OUTPUT_CHARS"])
def test_settings_zero_disables_without_warning(tmp_path, caplog, name):
    path = _write(tmp_path, "agent:\n  idle_exit_ms: 15000\n  max_output_chars: 500\n")
    with caplog.at_level(logging.WARNING, logger="cursor_agent_mcp"):
        settings = AgentSettings.from_env(environ={name: "0"}, config_file=path)
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
    if name == "CURSOR_AGENT_IDLE_EXIT_MS":
        assert (settings.idle_timeout_ms, settings.max_output_chars) == (0, 500)
    else:
        assert (settings.idle_timeout_ms, settings.max_output_chars) == (15000, 0)


def test_settings_zero_hard_timeout_still_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="cursor_agent_mcp"):
        settings = AgentSettings.from_env(environ={"CURSOR_AGENT_TIMEOUT_MS": "0"})
    assert settings.hard_timeout_ms == 30000
    assert "hard_timeout_ms" in caplog.text


def test_settings_blank_path_is_ignored():
    settings = AgentSettings.from_env(environ={"CURSOR_AGENT_PATH": "   "})
    assert settings.executable_path is None


# ── YAML defaults ───────────────────────────────────────────────


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "cursor-agent-mcp.yaml"
    path.write_text(text)
    return path


def test_yaml_config_supplies_defaults(tmp_path):
    path = _write(tmp_path, (
        "agent:\n"
        "  path: /usr/local/bin/cursor-agent\n"
        "  model: sonnet-4\n"
        "  force: true\n"
        "  timeout_ms: 120000\n"
        "  idle_exit_ms: 15000\n"
        "  cwd: /srv/repo\n"
    ))
    settings = AgentSettings.from_env(environ={}, config_file=path)
    assert settings.executable_path == "/usr/local/bin/cursor-agent"
    assert settings.model == "sonnet-4"
    assert settings.force is True
    assert settings.hard_timeout_ms == 120000
    assert settings.idle_timeout_ms == 15000
    assert settings.default_cwd == "/srv/repo"


def test_env_overrides_yaml(tmp_path):
    path = _write(tmp_path, "agent:\n  model: from-yaml\n  force: true\n")
    settings = AgentSettings.from_env(
        environ={"CURSOR_AGENT_MODEL": "from-env", "CURSOR_AGENT_FORCE": "0"},
        config_file=path,
    )
    assert settings.model == "from-env"
    assert settings.force is False


def test_config_file_from_env_var(tmp_path):
    path = _write(tmp_path, "agent:\n  timeout_ms: 7000\n")
    settings = AgentSettings.from_env(environ={"CURSOR_AGENT_MCP_CONFIG": str(path)})
    assert settings.hard_timeout_ms == 7000


def test_yaml_without_agent_section_is_empty(tmp_path):
    path = _write(tmp_path, "other: 1\n")
    assert load_yaml_defaults(path) == {}


def test_yaml_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_yaml_defaults(tmp_path / "nope.yaml")


def test_yaml_malformed_raises(tmp_path):
    path = _write(tmp_path, "agent: [unclosed\n")
    with pytest.raises(ConfigError, match="YAML parse error"):
        load_yaml_defaults(path)


def test_yaml_agent_section_must_be_mapping(tmp_path):
    path = _write(tmp_path, "agent:\n  - a\n  - b\n")
    with pytest.raises(ConfigError, match="'agent' must be a mapping"):
        load_yaml_defaults(path)


# ── resolve_config ──────────────────────────────────────────────


def test_resolve_uses_literal_name_when_nothing_set():
    config = resolve_config(AgentSettings())
    assert config.executable == "cursor-agent"
    assert config.model is None
    assert config.force is False
    assert config.hard_timeout_ms == 30000
    assert config.idle_timeout_ms == 0


def test_resolve_explicit_executable_wins_and_is_trimmed():
    settings = AgentSettings(executable_path="/env/cursor-agent")
    assert resolve_config(settings, executable="  /call/agent ").executable == "/call/agent"
    assert resolve_config(settings, executable="   ").executable == "/env/cursor-agent"
    assert resolve_config(settings).executable == "/env/cursor-agent"


def test_resolve_model_precedence():
    settings = AgentSettings(model="env-model")
    assert resolve_config(settings, model="call-model").model == "call-model"
    assert resolve_config(settings, model="").model == "env-model"
    assert resolve_config(AgentSettings()).model is None


def test_resolve_explicit_false_force_suppresses_env_default():
    settings = AgentSettings(force=True)
    assert resolve_config(settings, force=False).force is False
    assert resolve_config(settings, force=None).force is True
    assert resolve_config(AgentSettings(), force=True).force is True


def test_resolve_timeouts():
    settings = AgentSettings(hard_timeout_ms=9000, idle_timeout_ms=400)
    config = resolve_config(settings)
    assert (config.hard_timeout_ms, config.idle_timeout_ms) == (9000, 400)

    config = resolve_config(settings, hard_timeout_ms=5, idle_timeout_ms=50)
    assert (config.hard_timeout_ms, config.idle_timeout_ms) == (5, 50)

    # Invalid call values defer to settings
    config = resolve_config(settings, hard_timeout_ms=0, idle_timeout_ms=-1)
    assert (config.hard_timeout_ms, config.idle_timeout_ms) == (9000, 400)


def test_resolve_explicit_zero_idle_disables_timer():
    settings = AgentSettings(idle_timeout_ms=400)
    assert resolve_config(settings, idle_timeout_ms=0).idle_timeout_ms == 0
    assert resolve_config(settings, idle_timeout_ms=None).idle_timeout_ms == 400
