"""
plugframe — unit tests for config loader

File: tests/unit/config/test_loader.py

Purpose
- Validate deterministic config loading from defaults, TOML, env overrides, and explicit overrides.

What this test file should cover
- Precedence: overrides > env > file > defaults.
- Env var path mapping and type coercion.
- Load errors for missing files and invalid TOML.
- Deterministic effective config dumping.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from plugframe.config.loader import (
    ConfigLoadError,
    dump_effective_config,
    load_config,
    load_runtime_config,
)
from plugframe.config.schema import ConfigValidationError
from plugframe.constants import TraceMode, UnregisterPolicy


def _write_config(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_loader_precedence_file_env_overrides(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path / "plugframe.toml",
        """
[runtime]
trace_mode = "SINGLETON"
unregister_policy = "ALL"

[observability]
log_level = "DEBUG"
""".strip(),
    )

    from_file = load_config(config_path, environ={})
    assert from_file["runtime"] == {"trace_mode": "SINGLETON", "unregister_policy": "ALL"}
    assert from_file["observability"] == {"log_level": "DEBUG", "log_format": "json"}

    env = {
        "PLUG_RUNTIME_TRACE_MODE": "off",
        "PLUG_OBSERVABILITY_LOG_FORMAT": "text",
    }
    from_env = load_config(config_path, environ=env)
    assert from_env["runtime"]["trace_mode"] == "DISABLED"
    assert from_env["observability"]["log_format"] == "text"

    overridden = load_config(
        config_path,
        environ=env,
        overrides={"runtime.trace_mode": "ALL", "runtime.unregister_policy": "ALL_INSTANCES"},
    )
    assert overridden["runtime"] == {"trace_mode": "ALL", "unregister_policy": "ALL_INSTANCES"}
    assert overridden["observability"]["log_format"] == "text"


def test_toml_false_disables_tracing(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "plugframe.toml", "[runtime]\ntrace_mode = false\n")

    runtime_config = load_runtime_config(config_path, environ={})

    assert runtime_config.trace_mode is TraceMode.DISABLED
    assert runtime_config.unregister_policy is UnregisterPolicy.CLASS_INSTANCES


def test_missing_default_file_falls_back_to_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    loaded = load_config(environ={})

    assert loaded["runtime"] == {"trace_mode": "ALL", "unregister_policy": "CLASS_INSTANCES"}


def test_missing_explicit_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_config(tmp_path / "absent.toml", environ={})


def test_invalid_toml_raises(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "plugframe.toml", "[runtime\ntrace_mode = 1")

    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(config_path, environ={})


def test_invalid_values_raise_validation_error(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "plugframe.toml", "[runtime]\nunregister_policy = 'SOME'\n")

    with pytest.raises(ConfigValidationError, match="runtime.unregister_policy"):
        load_config(config_path, environ={})

    config_path = _write_config(tmp_path / "empty.toml", "")
    with pytest.raises(ConfigValidationError, match="observability.log_level"):
        load_config(config_path, environ={}, overrides={"observability.log_level": "LOUD"})


def test_schema_version_env_must_be_integer(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "plugframe.toml", "")

    with pytest.raises(ConfigLoadError, match="PLUG_META_SCHEMA_VERSION"):
        load_config(config_path, environ={"PLUG_META_SCHEMA_VERSION": "one"})


def test_invalid_override_key_raises(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "plugframe.toml", "")

    with pytest.raises(ConfigLoadError, match="invalid override key"):
        load_config(config_path, environ={}, overrides={".": "x"})


def test_dump_effective_config_is_deterministic(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "plugframe.toml", "")
    loaded = load_config(config_path, environ={})

    dumped = dump_effective_config(loaded)

    assert dumped == dump_effective_config(load_config(config_path, environ={}))
    assert json.loads(dumped) == loaded
    assert dumped.startswith('{"meta":{"schema_version":1}')


def test_env_names_cover_every_default_setting(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "plugframe.toml", "")
    env = {
        "PLUG_META_SCHEMA_VERSION": " 1 ",
        "PLUG_RUNTIME_UNREGISTER_POLICY": "classes_only",
        "PLUG_OBSERVABILITY_LOG_LEVEL": "debug",
        "PLUG_UNRELATED": "ignored",
    }

    loaded = load_config(config_path, environ=env)

    assert loaded["meta"] == {"schema_version": 1}
    assert loaded["runtime"]["unregister_policy"] == "CLASSES_ONLY"
    assert loaded["observability"]["log_level"] == "DEBUG"


@pytest.mark.parametrize("key", ["runtime", "runtime.", ".trace_mode", "runtime.trace_mode.extra"])
def test_override_keys_must_name_section_and_key(tmp_path: Path, key: str) -> None:
    config_path = _write_config(tmp_path / "plugframe.toml", "")

    with pytest.raises(ConfigLoadError, match="expected 'section.key'"):
        load_config(config_path, environ={}, overrides={key: "ALL"})
