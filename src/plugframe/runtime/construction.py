"""
plugframe — construction protocol.

File: src/plugframe/runtime/construction.py

Purpose
- Produce an instance from a descriptor by running every level of its chain
  against one shared instance (constructor stealing made explicit).

What is included in this file
- ``Instance``: base type of every generated prototype.
- ``ConstructionContext``: invocation kind threaded through the recursion.
- ``SingletonCell``: guarded lazy cell memoizing a singleton instance.
- ``construct_instance``: the per-leaf entry point used by descriptors.

Concurrency
- Each level holds its descriptor lock while it runs. Locks are taken
  leaf first, so independent chains sharing an ancestor cannot deadlock.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from plugframe.constants import (
    CONSTRUCTOR_ATTRIBUTE,
    INITIALIZER_ATTRIBUTE,
    PARENT_ATTRIBUTE,
    RESERVED_INSTANCE_ATTRIBUTES,
    ConstructionStatus,
    InvocationKind,
)
from plugframe.errors import IllegalConstructionError

if TYPE_CHECKING:
    from plugframe.runtime.descriptor import Descriptor

_T = TypeVar("_T")

_EMPTY_PARENT: Mapping[str, Any] = MappingProxyType({})


class Instance:
    """Base type of every object built by a descriptor."""

    parent: Mapping[str, Any]
    constructor: Callable[..., Any] | None

    def __init__(self) -> None:
        self.parent = _EMPTY_PARENT
        self.constructor = None

    def __repr__(self) -> str:
        fields = ", ".join(
            f"{key}={value!r}"
            for key, value in vars(self).items()
            if key not in RESERVED_INSTANCE_ATTRIBUTES and not callable(value)
        )
        return f"<{type(self).__qualname__} {fields}>" if fields else f"<{type(self).__qualname__}>"


@dataclass(frozen=True, slots=True)
class ConstructionContext:
    """How the current construction was requested and which descriptor is the leaf."""

    kind: InvocationKind
    leaf: Descriptor

    def for_ancestor(self) -> ConstructionContext:
        return replace(self, kind=InvocationKind.EXTENSION)

    def is_leaf(self, descriptor: Descriptor) -> bool:
        return descriptor is self.leaf


class SingletonCell(Generic[_T]):
    """Once-only cell: the first ``get_or_create`` builds the value, later calls reuse it.

    Creation is serialized on the cell lock. A call that re-enters the cell while
    its own creation is still running raises ``IllegalConstructionError`` rather
    than building a second value.
    """

    __slots__ = ("_creating", "_filled", "_lock", "_name", "_value")

    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = threading.RLock()
        self._creating = False
        self._filled = False
        self._value: _T | None = None

    @property
    def filled(self) -> bool:
        with self._lock:
            return self._filled

    def peek(self) -> _T | None:
        with self._lock:
            return self._value if self._filled else None

    def get_or_create(self, create: Callable[[], _T]) -> _T:
        with self._lock:
            if self._filled:
                return self._value  # type: ignore[return-value]
            if self._creating:
                raise IllegalConstructionError(
                    f"{self._name}.get_instance() re-entered while its instance is being built"
                )
            self._creating = True
            try:
                value = create()
            finally:
                self._creating = False
            self._value = value
            self._filled = True
            return value

    def clear(self) -> None:
        with self._lock:
            self._value = None
            self._filled = False

    def clear_when(self, action: Callable[[], bool]) -> bool:
        """Run ``action`` under the cell lock and reset the cell when it reports a change."""

        with self._lock:
            changed = action()
            if changed:
                self._value = None
                self._filled = False
            return changed


def construct_instance(
    descriptor: Descriptor,
    args: tuple[Any, ...],
    kwargs: Mapping[str, Any],
    kind: InvocationKind,
) -> Instance:
    """Build one instance of ``descriptor`` and return it fully initialized."""

    kind = InvocationKind(kind)
    if descriptor.is_singleton() and kind is InvocationKind.NORMAL:
        raise IllegalConstructionError(
            f"singleton {descriptor.__name__} must be obtained through get_instance()"
        )

    context = ConstructionContext(kind=kind, leaf=descriptor)
    instance = descriptor.prototype()
    registry = descriptor.registry

    if kind is InvocationKind.REFLECTIVE:
        with registry.status_scope(descriptor, ConstructionStatus.REFLECTING):
            _initialize_level(descriptor, instance, args, kwargs, context)
    else:
        _initialize_level(descriptor, instance, args, kwargs, context)
    return instance


def _initialize_level(
    descriptor: Descriptor,
    instance: Instance,
    args: tuple[Any, ...],
    kwargs: Mapping[str, Any],
    context: ConstructionContext,
) -> None:
    registry = descriptor.registry
    with descriptor.lock:
        protected_state = registry.get_protected_state(descriptor)

        ancestor = descriptor.parent_descriptor
        if ancestor is not None:
            with registry.status_scope(ancestor, ConstructionStatus.EXTENDING):
                _initialize_level(ancestor, instance, (), {}, context.for_ancestor())
                setattr(instance, PARENT_ATTRIBUTE, _snapshot(instance))

        # Each level supplies its own initializer or none.
        vars(instance).pop(INITIALIZER_ATTRIBUTE, None)

        descriptor.factory(instance, protected_state, *args, **kwargs)

        if context.is_leaf(descriptor) and context.kind is not InvocationKind.EXTENSION:
            initializer = vars(instance).get(INITIALIZER_ATTRIBUTE)
            if callable(initializer):
                initializer(*args, **kwargs)
            if registry.traces(is_singleton=descriptor.is_singleton()):
                registry.trace(descriptor, instance, descriptor.is_singleton())

        setattr(instance, CONSTRUCTOR_ATTRIBUTE, descriptor.factory)


def _snapshot(instance: Instance) -> Mapping[str, Any]:
    return MappingProxyType(
        {
            key: value
            for key, value in vars(instance).items()
            if key not in RESERVED_INSTANCE_ATTRIBUTES
        }
    )


__all__ = [
    "ConstructionContext",
    "Instance",
    "SingletonCell",
    "construct_instance",
]
