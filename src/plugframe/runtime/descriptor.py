"""
plugframe — descriptor builder.

File: src/plugframe/runtime/descriptor.py

Purpose
- Turn a factory function (and optionally a parent descriptor) into a class
  descriptor with the public contract: ``extend``, ``construct`` or
  ``get_instance``, ``is_singleton``, ``is_registered`` and ``unregister``.

Functional requirements
- Reject non-callable factories with ``ArgumentError`` before anything is registered.
- Refuse singleton descriptors when the trace mode is ``DISABLED``.
- Generate one instance type per descriptor, subclassing the parent's, so
  ``isinstance`` and class-level attribute lookup follow the chain.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from plugframe.constants import InvocationKind
from plugframe.errors import ArgumentError, ConfigurationError
from plugframe.runtime.construction import Instance, SingletonCell, construct_instance

if TYPE_CHECKING:
    from plugframe.runtime.registry import Registry

Factory = Callable[..., Any]


class Descriptor:
    """Identity of a class built from a factory function.

    Calling the descriptor is the normal construction path. ``parent`` is the
    ancestor descriptor, or the root factory that created a top-level one.
    """

    _is_singleton: bool = False

    def __init__(
        self,
        registry: Registry,
        factory: Factory,
        *,
        parent: Descriptor | None,
        root: Any,
    ) -> None:
        self._registry = registry
        self._factory = factory
        self._parent_descriptor = parent
        self._root = root
        self._lock = threading.RLock()
        self.__name__ = getattr(factory, "__name__", type(factory).__name__)
        self.__qualname__ = getattr(factory, "__qualname__", self.__name__)
        self.__doc__ = getattr(factory, "__doc__", None)
        base = parent.prototype if parent is not None else Instance
        self._prototype: type[Instance] = type(
            self.__name__,
            (base,),
            {
                "__module__": getattr(factory, "__module__", __name__),
                "__qualname__": self.__qualname__,
            },
        )

    def __call__(self, *args: Any, **kwargs: Any) -> Instance:
        return construct_instance(self, args, kwargs, InvocationKind.NORMAL)

    def __instancecheck__(self, instance: object) -> bool:
        return isinstance(instance, self._prototype)

    def __repr__(self) -> str:
        kind = "Singleton" if self._is_singleton else "Class"
        return f"<{kind} {self.__qualname__}>"

    @property
    def factory(self) -> Factory:
        return self._factory

    @property
    def parent(self) -> Any:
        if self._parent_descriptor is not None:
            return self._parent_descriptor
        return self._root

    @property
    def parent_descriptor(self) -> Descriptor | None:
        return self._parent_descriptor

    @property
    def lineage_root(self) -> Descriptor:
        node = self
        while node._parent_descriptor is not None:
            node = node._parent_descriptor
        return node

    @property
    def prototype(self) -> type[Instance]:
        return self._prototype

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def extend(self, factory: Factory) -> Descriptor:
        """Return a subclass descriptor whose instances run this chain first."""

        return build_descriptor(
            self._registry,
            factory,
            parent=self,
            root=self._root,
            is_singleton=self._is_singleton,
        )

    def is_singleton(self) -> bool:
        return self._is_singleton

    def is_registered(self) -> bool:
        return self._registry.get_trace(self) is not None

    def unregister(self) -> bool:
        return self._registry.unregister(self)

    def instances(self) -> tuple[Any, ...]:
        """Live tracked instances; empty when the descriptor is not traced."""

        return self._registry.get_instances(self) or ()


class ClassDescriptor(Descriptor):
    """Descriptor of an ordinary class."""

    def construct(self, *args: Any, **kwargs: Any) -> Instance:
        """Reflective construction: same result as calling the descriptor."""

        return construct_instance(self, args, kwargs, InvocationKind.REFLECTIVE)


class SingletonDescriptor(Descriptor):
    """Descriptor whose single instance is served by ``get_instance``."""

    _is_singleton = True

    def __init__(
        self,
        registry: Registry,
        factory: Factory,
        *,
        parent: Descriptor | None,
        root: Any,
    ) -> None:
        super().__init__(registry, factory, parent=parent, root=root)
        self._cell: SingletonCell[Instance] = SingletonCell(self.__name__)

    def get_instance(self, *args: Any, **kwargs: Any) -> Instance:
        """Return the instance, building it with ``args`` on the first call only."""

        return self._cell.get_or_create(
            lambda: construct_instance(self, args, kwargs, InvocationKind.REFLECTIVE)
        )

    def unregister(self) -> bool:
        """Apply the unregister policy; a cleared record also resets the memoized instance."""

        return self._cell.clear_when(super().unregister)


def build_descriptor(
    registry: Registry,
    factory: Factory,
    *,
    parent: Descriptor | None = None,
    root: Any = None,
    is_singleton: bool = False,
) -> Descriptor:
    """Create, register and return a descriptor for ``factory``."""

    if not callable(factory):
        raise ArgumentError(
            f"factory must be callable, got {type(factory).__name__}: {factory!r}"
        )
    if is_singleton and not registry.config.allows_singletons:
        raise ConfigurationError(
            f"singleton descriptors require trace mode ALL or SINGLETON, "
            f"got {registry.config.trace_mode.value}"
        )

    descriptor_type = SingletonDescriptor if is_singleton else ClassDescriptor
    descriptor = descriptor_type(registry, factory, parent=parent, root=root)

    if registry.traces(is_singleton=is_singleton):
        registry.trace(descriptor, None, is_singleton)
    registry.logger.debug(
        "plug_descriptor_defined",
        descriptor=descriptor.__name__,
        parent=parent.__name__ if parent is not None else None,
        is_singleton=is_singleton,
        registered=descriptor.is_registered(),
    )
    return descriptor


__all__ = [
    "ClassDescriptor",
    "Descriptor",
    "Factory",
    "SingletonDescriptor",
    "build_descriptor",
]
