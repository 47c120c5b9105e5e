"""
plugframe — configuration schema and validation.

File: src/plugframe/config/schema.py

Purpose
- Define authoritative configuration defaults and strict validation rules.

What is included in this file
- Schema versioning and migration guidance.
- Validation rules for required fields, types and enums.
- Section-wise merge of layered config tables.
- The frozen ``RuntimeConfig`` consumed by ``PlugRuntime``.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Accept ``false`` / ``"off"`` / ``"disabled"`` spellings for disabled modes.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict, TypeVar

from plugframe.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_TRACE_MODE,
    DEFAULT_UNREGISTER_POLICY,
    DISABLED_ALIASES,
    TraceMode,
    UnregisterPolicy,
)
from plugframe.errors import ConfigurationError

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

_ModeT = TypeVar("_ModeT", TraceMode, UnregisterPolicy)


class MetaConfig(TypedDict):
    schema_version: int


class RuntimeSection(TypedDict):
    trace_mode: str
    unregister_policy: str


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]


class PlugConfig(TypedDict):
    meta: MetaConfig
    runtime: RuntimeSection
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[PlugConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "runtime": {
        "trace_mode": DEFAULT_TRACE_MODE.value,
        "unregister_policy": DEFAULT_UNREGISTER_POLICY.value,
    },
    "observability": {
        "log_level": "INFO",
        "log_format": "json",
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ConfigurationError, ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Process-wide settings fixed when a runtime is initialized."""

    trace_mode: TraceMode = DEFAULT_TRACE_MODE
    unregister_policy: UnregisterPolicy = DEFAULT_UNREGISTER_POLICY

    def __post_init__(self) -> None:
        object.__setattr__(self, "trace_mode", parse_trace_mode(self.trace_mode))
        object.__setattr__(
            self, "unregister_policy", parse_unregister_policy(self.unregister_policy)
        )

    @property
    def allows_singletons(self) -> bool:
        return self.trace_mode is not TraceMode.DISABLED

    def traces(self, *, is_singleton: bool) -> bool:
        """Return whether descriptors with this singleton flag are tracked."""

        if self.trace_mode is TraceMode.ALL:
            return True
        return self.trace_mode is TraceMode.SINGLETON and is_singleton

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object] | None) -> RuntimeConfig:
        """Build from a ``[runtime]`` table or a full config mapping."""

        if payload is None:
            return cls()
        section = payload.get("runtime", payload)
        if not isinstance(section, Mapping):
            raise ConfigValidationError(
                (ConfigValidationIssue("runtime", "expected object"),)
            )
        issues = _IssueCollector()
        validated = _validate_runtime(section, "runtime", issues, partial=True)
        if issues.has_issues:
            raise ConfigValidationError(issues.items())
        return cls(
            trace_mode=validated.get("trace_mode", DEFAULT_TRACE_MODE),
            unregister_policy=validated.get("unregister_policy", DEFAULT_UNREGISTER_POLICY),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "trace_mode": self.trace_mode.value,
            "unregister_policy": self.unregister_policy.value,
        }


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def parse_trace_mode(value: object) -> TraceMode:
    """Coerce a raw trace-mode spelling (``"ALL"``, ``False``...) into ``TraceMode``."""

    parsed = _parse_mode(value, TraceMode)
    if parsed is None:
        expected = ", ".join(mode.value for mode in TraceMode)
        raise ConfigValidationError(
            (ConfigValidationIssue("runtime.trace_mode", f"expected one of: {expected}"),)
        )
    return parsed


def parse_unregister_policy(value: object) -> UnregisterPolicy:
    """Coerce a raw unregister-policy spelling into ``UnregisterPolicy``."""

    parsed = _parse_mode(value, UnregisterPolicy)
    if parsed is None:
        expected = ", ".join(policy.value for policy in UnregisterPolicy)
        raise ConfigValidationError(
            (ConfigValidationIssue("runtime.unregister_policy", f"expected one of: {expected}"),)
        )
    return parsed


def default_config() -> PlugConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    """Return deterministic migration guidance for schema version mismatch."""

    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade plugframe.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade the plugframe package"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Overlay ``overlay`` onto ``base`` one section at a time; inputs are left untouched."""

    merged: dict[str, Any] = {
        name: dict(section) if isinstance(section, Mapping) else section
        for name, section in base.items()
    }
    for name, section in overlay.items():
        current = merged.get(name)
        if isinstance(section, Mapping) and isinstance(current, dict):
            current.update(section)
        else:
            merged[name] = dict(section) if isinstance(section, Mapping) else section
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    if not isinstance(config, Mapping):
        issues.add("<root>", f"expected object, got {type(config).__name__}")
        return ConfigValidationResult(config=None, issues=issues.items())

    _check_keys(config, _SECTION_VALIDATORS.keys(), "", issues, partial=False)
    normalized: dict[str, Any] = {}
    for name, validator in _SECTION_VALIDATORS.items():
        if name not in config:
            continue
        section = config[name]
        if not isinstance(section, Mapping):
            issues.add(name, f"expected object, got {type(section).__name__}")
            continue
        normalized[name] = validator(section, name, issues, partial=False)

    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_meta(
    section: Mapping[object, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    _check_keys(section, ("schema_version",), path, issues, partial=partial)
    if "schema_version" not in section:
        return {}

    version = section["schema_version"]
    version_path = f"{path}.schema_version"
    if isinstance(version, bool) or not isinstance(version, int):
        issues.add(version_path, f"expected integer, got {type(version).__name__}")
        return {}
    if version != ConfigSchemaVersion:
        issues.add(version_path, migration_guidance(version))
    return {"schema_version": version}


def _validate_runtime(
    section: Mapping[object, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    _check_keys(section, _RUNTIME_MODES.keys(), path, issues, partial=partial)

    out: dict[str, Any] = {}
    for key, mode_type in _RUNTIME_MODES.items():
        if key not in section:
            continue
        parsed = _parse_mode(section[key], mode_type)
        if parsed is None:
            expected = ", ".join(member.value for member in mode_type)
            issues.add(
                f"{path}.{key}",
                f"invalid value {section[key]!r}; expected one of: {expected}",
            )
        else:
            out[key] = parsed.value
    return out


def _validate_observability(
    section: Mapping[object, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    _check_keys(section, _LOGGING_CHOICES.keys(), path, issues, partial=partial)

    out: dict[str, Any] = {}
    for key, (normalize, choices) in _LOGGING_CHOICES.items():
        if key not in section:
            continue
        raw = section[key]
        value = normalize(raw.strip()) if isinstance(raw, str) else raw
        if value in choices:
            out[key] = value
        else:
            issues.add(
                f"{path}.{key}",
                f"invalid value {raw!r}; expected one of: {', '.join(choices)}",
            )
    return out


def _parse_mode(value: object, enum_type: type[_ModeT]) -> _ModeT | None:
    if isinstance(value, enum_type):
        return value
    if value is False or value is None:
        return enum_type("DISABLED")
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if normalized.lower() in DISABLED_ALIASES:
        return enum_type("DISABLED")
    try:
        return enum_type(normalized.upper())
    except ValueError:
        return None


def _check_keys(
    payload: Mapping[object, object],
    allowed: Iterable[str],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> None:
    allowed_keys = set(allowed)
    for key in sorted(str(key) for key in payload if key not in allowed_keys):
        issues.add(f"{path}.{key}" if path else key, "unknown field")
    if partial:
        return
    for key in sorted(allowed_keys.difference(payload)):
        issues.add(f"{path}.{key}" if path else key, "missing required field")


_SectionValidator = Callable[..., dict[str, Any]]

_RUNTIME_MODES: Final[Mapping[str, type[TraceMode] | type[UnregisterPolicy]]] = {
    "trace_mode": TraceMode,
    "unregister_policy": UnregisterPolicy,
}

_LOGGING_CHOICES: Final[Mapping[str, tuple[Callable[[str], str], tuple[str, ...]]]] = {
    "log_level": (str.upper, ("DEBUG", "INFO", "WARNING", "ERROR")),
    "log_format": (str.lower, ("json", "text")),
}

_SECTION_VALIDATORS: Final[Mapping[str, _SectionValidator]] = {
    "meta": _validate_meta,
    "runtime": _validate_runtime,
    "observability": _validate_observability,
}


__all__ = [
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "PlugConfig",
    "RuntimeConfig",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "parse_trace_mode",
    "parse_unregister_policy",
    "validate_config",
]
