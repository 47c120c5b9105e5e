"""Stable constants shared across the runtime, config, and components."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class TraceMode(StrEnum):
    """Which descriptors and instances the registry keeps track of."""

    ALL = "ALL"
    SINGLETON = "SINGLETON"
    DISABLED = "DISABLED"


class UnregisterPolicy(StrEnum):
    """What ``unregister()`` is allowed to drop from the registry."""

    ALL = "ALL"
    CLASSES_ONLY = "CLASSES_ONLY"
    ALL_INSTANCES = "ALL_INSTANCES"
    CLASS_INSTANCES = "CLASS_INSTANCES"
    DISABLED = "DISABLED"


class ConstructionStatus(StrEnum):
    """Per-descriptor construction phase mirrored into trace records."""

    IDLE = "IDLE"
    EXTENDING = "EXTENDING"
    REFLECTING = "REFLECTING"


class InvocationKind(StrEnum):
    """How a descriptor level is being initialized."""

    NORMAL = "normal"
    REFLECTIVE = "reflective"
    EXTENSION = "extension"


# Schema version for persisted config.
CONFIG_SCHEMA_VERSION: Final[int] = 1

DEFAULT_TRACE_MODE: Final[TraceMode] = TraceMode.ALL
DEFAULT_UNREGISTER_POLICY: Final[UnregisterPolicy] = UnregisterPolicy.CLASS_INSTANCES

# Instance attributes owned by the construction protocol.
INITIALIZER_ATTRIBUTE: Final[str] = "init"
PARENT_ATTRIBUTE: Final[str] = "parent"
CONSTRUCTOR_ATTRIBUTE: Final[str] = "constructor"
RESERVED_INSTANCE_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    {PARENT_ATTRIBUTE, CONSTRUCTOR_ATTRIBUTE}
)

# Raw config spellings accepted for a disabled trace mode / unregister policy.
DISABLED_ALIASES: Final[frozenset[str]] = frozenset(
    {"disabled", "false", "off", "none", "no", "0"}
)

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "CONSTRUCTOR_ATTRIBUTE",
    "DEFAULT_TRACE_MODE",
    "DEFAULT_UNREGISTER_POLICY",
    "DISABLED_ALIASES",
    "INITIALIZER_ATTRIBUTE",
    "PARENT_ATTRIBUTE",
    "RESERVED_INSTANCE_ATTRIBUTES",
    "ConstructionStatus",
    "InvocationKind",
    "TraceMode",
    "UnregisterPolicy",
]
