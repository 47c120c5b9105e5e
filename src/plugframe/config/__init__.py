"""
plugframe config package public API.

File: src/plugframe/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``plugframe.toml`` + ``PLUG_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from plugframe.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    load_config,
    load_runtime_config,
)
from plugframe.config.schema import (
    DEFAULT_CONFIG,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    PlugConfig,
    RuntimeConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    parse_trace_mode,
    parse_unregister_policy,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PlugConfig",
    "RuntimeConfig",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "load_config",
    "load_runtime_config",
    "merge_config",
    "migration_guidance",
    "parse_trace_mode",
    "parse_unregister_policy",
    "validate_config",
]
