"""Error taxonomy raised by the class-construction runtime."""

from __future__ import annotations


class PlugError(RuntimeError):
    """Base class for runtime failures."""


class ArgumentError(PlugError, TypeError):
    """Raised when a value supplied as a factory function is not callable."""


class ConfigurationError(PlugError):
    """Raised when the active runtime configuration forbids an operation."""


class IllegalConstructionError(PlugError):
    """Raised when a singleton is built outside of ``get_instance``."""


__all__ = [
    "ArgumentError",
    "ConfigurationError",
    "IllegalConstructionError",
    "PlugError",
]
