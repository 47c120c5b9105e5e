"""
plugframe — class-construction and instance-registry runtime.

File: src/plugframe/__init__.py

Purpose
- Package root. Builds extensible class descriptors from plain factory
  functions, chains them with constructor stealing, serves singletons through
  ``get_instance`` and keeps a queryable registry of descriptors and instances.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
  The default runtime is created lazily on first use.
"""

from plugframe.constants import (
    ConstructionStatus,
    InvocationKind,
    TraceMode,
    UnregisterPolicy,
)
from plugframe.errors import (
    ArgumentError,
    ConfigurationError,
    IllegalConstructionError,
    PlugError,
)
from plugframe.runtime import (
    Class,
    Descriptor,
    Instance,
    PlugRuntime,
    Singleton,
    define_class,
    define_singleton,
    get_runtime,
    init_runtime,
    list_registered_descriptors,
    shutdown_runtime,
)

__version__ = "0.1.0"

__all__ = [
    "ArgumentError",
    "Class",
    "ConfigurationError",
    "ConstructionStatus",
    "Descriptor",
    "IllegalConstructionError",
    "Instance",
    "InvocationKind",
    "PlugError",
    "PlugRuntime",
    "Singleton",
    "TraceMode",
    "UnregisterPolicy",
    "__version__",
    "define_class",
    "define_singleton",
    "get_runtime",
    "init_runtime",
    "list_registered_descriptors",
    "shutdown_runtime",
]
