"""
plugframe — runtime service and root factories.

File: src/plugframe/runtime/service.py

Purpose
- Own the process-scoped registry and configuration behind an explicit
  init/shutdown lifecycle.
- Expose the ``Class`` and ``Singleton`` root factories that define top-level
  descriptors.

What is included in this file
- ``PlugRuntime``: one registry, one ``RuntimeConfig``, and the root factories.
- ``RootFactory``: entry point usable as a call or as a decorator.
- Module-level helpers bound to the active runtime: ``init_runtime``,
  ``get_runtime``, ``shutdown_runtime``, ``define_class``,
  ``define_singleton``, ``list_registered_descriptors``.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any, overload

import structlog

from plugframe.config.schema import RuntimeConfig
from plugframe.errors import ConfigurationError
from plugframe.runtime.descriptor import Descriptor, Factory, build_descriptor
from plugframe.runtime.registry import Registry

_ACTIVE_RUNTIME_LOCK = threading.Lock()
_ACTIVE_RUNTIME: PlugRuntime | None = None


class RootFactory:
    """``Class`` / ``Singleton`` entry point.

    ``Class(factory)`` defines a top-level descriptor on the resolved runtime.
    Called without a factory it returns itself. It is its own ``parent`` and
    ``construct()`` returns it unchanged.
    """

    def __init__(
        self,
        name: str,
        *,
        is_singleton: bool,
        resolve: Callable[[], PlugRuntime],
    ) -> None:
        self.__name__ = name
        self._is_singleton = is_singleton
        self._resolve = resolve

    @overload
    def __call__(self, factory: None = None) -> RootFactory: ...

    @overload
    def __call__(self, factory: Factory) -> Descriptor: ...

    def __call__(self, factory: Factory | None = None) -> RootFactory | Descriptor:
        if factory is None:
            return self
        return self._resolve().define(factory, is_singleton=self._is_singleton, root=self)

    def __repr__(self) -> str:
        return f"<root {self.__name__}>"

    @property
    def parent(self) -> RootFactory:
        return self

    def extend(self, factory: Factory) -> Descriptor:
        return self(factory)

    def construct(self, *args: Any, **kwargs: Any) -> RootFactory:
        return self

    def is_singleton(self) -> bool:
        return self._is_singleton

    def get_registered_classes(self) -> tuple[Descriptor, ...]:
        return self._resolve().list_registered_descriptors()


class PlugRuntime:
    """Explicit owner of one registry and its configuration."""

    def __init__(
        self,
        config: RuntimeConfig | Mapping[str, object] | None = None,
        *,
        logger: Any | None = None,
    ) -> None:
        self._config = _coerce_config(config)
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._registry = Registry(self._config, logger=self._logger)
        self._lock = threading.Lock()
        self._is_shutdown = False
        self.Class = RootFactory("Class", is_singleton=False, resolve=lambda: self)
        self.Singleton = RootFactory("Singleton", is_singleton=True, resolve=lambda: self)

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def logger(self) -> Any:
        return self._logger

    @property
    def is_shutdown(self) -> bool:
        with self._lock:
            return self._is_shutdown

    def define(
        self,
        factory: Factory,
        *,
        is_singleton: bool = False,
        root: RootFactory | None = None,
    ) -> Descriptor:
        """Build a top-level descriptor; ``root`` becomes its ``parent``."""

        if self.is_shutdown:
            raise ConfigurationError("runtime is shut down; call init_runtime() first")
        if root is None:
            root = self.Singleton if is_singleton else self.Class
        return build_descriptor(
            self._registry,
            factory,
            parent=None,
            root=root,
            is_singleton=is_singleton,
        )

    def define_class(self, factory: Factory) -> Descriptor:
        return self.define(factory, is_singleton=False)

    def define_singleton(self, factory: Factory) -> Descriptor:
        return self.define(factory, is_singleton=True)

    def list_registered_descriptors(self) -> tuple[Descriptor, ...]:
        return self._registry.list_descriptors()

    def shutdown(self) -> None:
        """Drop every trace record; later definitions raise ``ConfigurationError``."""

        with self._lock:
            if self._is_shutdown:
                return
            self._is_shutdown = True
        dropped = len(self._registry.list_descriptors())
        self._registry.clear()
        self._logger.info(
            "plug_runtime_shutdown",
            descriptors_dropped=dropped,
            trace_mode=self._config.trace_mode.value,
        )


def init_runtime(
    config: RuntimeConfig | Mapping[str, object] | None = None,
    *,
    logger: Any | None = None,
) -> PlugRuntime:
    """Create the active runtime, shutting down the previous one."""

    runtime = PlugRuntime(config, logger=logger)
    with _ACTIVE_RUNTIME_LOCK:
        global _ACTIVE_RUNTIME
        previous = _ACTIVE_RUNTIME
        _ACTIVE_RUNTIME = runtime
    if previous is not None:
        previous.shutdown()
    return runtime


def get_runtime() -> PlugRuntime:
    """Return the active runtime, initializing one with defaults when none exists."""

    with _ACTIVE_RUNTIME_LOCK:
        global _ACTIVE_RUNTIME
        if _ACTIVE_RUNTIME is None:
            _ACTIVE_RUNTIME = PlugRuntime()
        return _ACTIVE_RUNTIME


def shutdown_runtime(runtime: PlugRuntime | None = None) -> None:
    """Shut down ``runtime`` (default: the active one) and clear the active slot."""

    with _ACTIVE_RUNTIME_LOCK:
        global _ACTIVE_RUNTIME
        resolved = runtime if runtime is not None else _ACTIVE_RUNTIME
        if resolved is not None and resolved is _ACTIVE_RUNTIME:
            _ACTIVE_RUNTIME = None
    if resolved is not None:
        resolved.shutdown()


def define_class(factory: Factory) -> Descriptor:
    return get_runtime().define(factory, is_singleton=False, root=Class)


def define_singleton(factory: Factory) -> Descriptor:
    return get_runtime().define(factory, is_singleton=True, root=Singleton)


def list_registered_descriptors() -> tuple[Descriptor, ...]:
    return get_runtime().list_registered_descriptors()


def _coerce_config(config: RuntimeConfig | Mapping[str, object] | None) -> RuntimeConfig:
    if isinstance(config, RuntimeConfig):
        return config
    return RuntimeConfig.from_mapping(config)


Class = RootFactory("Class", is_singleton=False, resolve=get_runtime)
Singleton = RootFactory("Singleton", is_singleton=True, resolve=get_runtime)


__all__ = [
    "Class",
    "PlugRuntime",
    "RootFactory",
    "Singleton",
    "define_class",
    "define_singleton",
    "get_runtime",
    "init_runtime",
    "list_registered_descriptors",
    "shutdown_runtime",
]
