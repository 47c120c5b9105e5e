"""
plugframe runtime package public API.

File: src/plugframe/runtime/__init__.py

Purpose
- Export the registry, descriptor builder, construction protocol, and the
  runtime service with its root factories.
"""

from plugframe.runtime.construction import (
    ConstructionContext,
    Instance,
    SingletonCell,
    construct_instance,
)
from plugframe.runtime.descriptor import (
    ClassDescriptor,
    Descriptor,
    Factory,
    SingletonDescriptor,
    build_descriptor,
)
from plugframe.runtime.registry import ProtectedState, Registry, TraceRecord
from plugframe.runtime.service import (
    Class,
    PlugRuntime,
    RootFactory,
    Singleton,
    define_class,
    define_singleton,
    get_runtime,
    init_runtime,
    list_registered_descriptors,
    shutdown_runtime,
)

__all__ = [
    "Class",
    "ClassDescriptor",
    "ConstructionContext",
    "Descriptor",
    "Factory",
    "Instance",
    "PlugRuntime",
    "ProtectedState",
    "Registry",
    "RootFactory",
    "Singleton",
    "SingletonCell",
    "SingletonDescriptor",
    "TraceRecord",
    "build_descriptor",
    "construct_instance",
    "define_class",
    "define_singleton",
    "get_runtime",
    "init_runtime",
    "list_registered_descriptors",
    "shutdown_runtime",
]
