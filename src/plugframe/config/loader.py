"""
plugframe — runtime config loader.

File: src/plugframe/config/loader.py

Purpose
- Load effective runtime config from defaults, TOML file, env vars, and explicit overrides.

What is included in this file
- Precedence logic: overrides > env (PLUG_) > file > defaults.
- TOML loading via ``tomllib``.
- One ``PLUG_<SECTION>_<KEY>`` variable per default setting, integers coerced.
- Deterministic JSON dump of the effective config.

Non-functional requirements
- Keep loading deterministic and reproducible.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Final

from plugframe.config.schema import (
    DEFAULT_CONFIG,
    RuntimeConfig,
    assert_valid_config,
    default_config,
    merge_config,
)
from plugframe.errors import ConfigurationError

DEFAULT_CONFIG_FILE: Final[str] = "plugframe.toml"
ENV_PREFIX: Final[str] = "PLUG_"


class ConfigLoadError(ConfigurationError, ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective config with deterministic precedence: overrides > env > file > defaults."""

    resolved_path = _resolve_config_path(config_path)
    explicit_path = config_path is not None
    env_map = os.environ if environ is None else environ

    file_payload = _load_toml_file(resolved_path, required=explicit_path)

    merged = merge_config(default_config(), file_payload)
    merged = assert_valid_config(merged)

    env_overrides = _collect_env_overrides(env_map)
    override_payload = _materialize_overrides(overrides or {})

    merged = merge_config(merged, env_overrides)
    merged = merge_config(merged, override_payload)
    return assert_valid_config(merged)


def load_runtime_config(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> RuntimeConfig:
    """Load config and return the ``[runtime]`` table as a ``RuntimeConfig``."""

    loaded = load_config(config_path, overrides=overrides, environ=environ)
    return RuntimeConfig.from_mapping(loaded["runtime"])


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return deterministic JSON dump of the effective config."""

    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _resolve_config_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    return parsed


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, dict[str, object]]:
    overrides: dict[str, dict[str, object]] = {}
    for env_name, (section, key, convert) in _ENV_BINDINGS.items():
        raw = environ.get(env_name)
        if raw is None:
            continue
        try:
            value = convert(raw.strip())
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} -> {section}.{key} must be an integer") from exc
        overrides.setdefault(section, {})[key] = value
    return overrides


def _materialize_overrides(overrides: Mapping[str, object]) -> dict[str, dict[str, object]]:
    payload: dict[str, dict[str, object]] = {}
    for dotted, value in overrides.items():
        section, _, key = dotted.partition(".")
        if not section or not key or "." in key:
            raise ConfigLoadError(f"invalid override key {dotted!r}; expected 'section.key'")
        payload.setdefault(section, {})[key] = value
    return payload


def _env_bindings() -> dict[str, tuple[str, str, Callable[[str], object]]]:
    bindings: dict[str, tuple[str, str, Callable[[str], object]]] = {}
    for section, values in DEFAULT_CONFIG.items():
        for key, default in values.items():
            convert: Callable[[str], object] = int if isinstance(default, int) else str
            bindings[f"{ENV_PREFIX}{section.upper()}_{key.upper()}"] = (section, key, convert)
    return dict(sorted(bindings.items()))


# PLUG_<SECTION>_<KEY> -> (section, key, converter), one per default setting.
_ENV_BINDINGS: Final[Mapping[str, tuple[str, str, Callable[[str], object]]]] = _env_bindings()


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "dump_effective_config",
    "load_config",
    "load_runtime_config",
]
