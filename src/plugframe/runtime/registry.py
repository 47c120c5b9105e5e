"""Process-scoped registry of descriptors, their live instances, and lineage state."""

from __future__ import annotations

import threading
import weakref
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from plugframe.constants import ConstructionStatus, UnregisterPolicy

if TYPE_CHECKING:
    from plugframe.config.schema import RuntimeConfig
    from plugframe.runtime.descriptor import Descriptor


class ProtectedState(MutableMapping[str, Any]):
    """Mutable field bag shared by every instance of one inheritance lineage.

    The same object is handed to each factory level as its second positional
    argument. Single operations are serialized on the lineage lock; hold
    ``lock`` for read-modify-write sequences.
    """

    __slots__ = ("_data", "_lock", "lineage")

    def __init__(self, lineage: str) -> None:
        self.lineage = lineage
        self._data: dict[str, Any] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def __getitem__(self, key: str) -> Any:
        with self._lock:
            return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def __delitem__(self, key: str) -> None:
        with self._lock:
            del self._data[key]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(tuple(self._data))

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __repr__(self) -> str:
        with self._lock:
            return f"ProtectedState({self.lineage!r}, {self._data!r})"


@dataclass(slots=True)
class TraceRecord:
    """Registry bookkeeping for one descriptor."""

    descriptor: Descriptor
    is_singleton: bool
    protected_state: ProtectedState
    status: ConstructionStatus = ConstructionStatus.IDLE
    # Classes are held weakly; a singleton record owns its memoized instance.
    _refs: list[Any] = field(default_factory=list, repr=False)

    @property
    def instances(self) -> tuple[Any, ...]:
        """Live instances in registration order."""

        live: list[Any] = []
        kept: list[Any] = []
        for ref in self._refs:
            instance = ref() if isinstance(ref, weakref.ref) else ref
            if instance is None:
                continue
            live.append(instance)
            kept.append(ref)
        self._refs[:] = kept
        return tuple(live)

    def add(self, instance: object) -> bool:
        if self.is_singleton:
            if self.instances:
                return False
            self._refs.append(instance)
            return True
        try:
            self._refs.append(weakref.ref(instance))
        except TypeError:
            self._refs.append(instance)
        return True

    def clear_instances(self) -> None:
        self._refs.clear()


class Registry:
    """Table mapping each traced descriptor to its ``TraceRecord``.

    The trace mode decides which descriptors get a record; the unregister policy
    decides what ``unregister`` may drop. Protected state is held weakly per lineage
    root descriptor, so it works when tracing is disabled and goes away with the
    root.
    """

    def __init__(self, config: RuntimeConfig, *, logger: Any | None = None) -> None:
        self._config = config
        self._lock = threading.RLock()
        self._records: dict[int, TraceRecord] = {}
        self._lineages: weakref.WeakKeyDictionary[Descriptor, ProtectedState] = (
            weakref.WeakKeyDictionary()
        )
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    @property
    def logger(self) -> Any:
        return self._logger

    def traces(self, *, is_singleton: bool) -> bool:
        """Return whether the trace mode tracks descriptors with this singleton flag."""

        return self._config.traces(is_singleton=is_singleton)

    def trace(
        self,
        descriptor: Descriptor,
        instance: object | None = None,
        is_singleton: bool = False,
    ) -> TraceRecord:
        """Create the record for ``descriptor`` if absent, then track ``instance``."""

        with self._lock:
            record = self._records.get(id(descriptor))
            if record is None:
                record = TraceRecord(
                    descriptor=descriptor,
                    is_singleton=is_singleton,
                    protected_state=self._lineage_state(descriptor),
                )
                self._records[id(descriptor)] = record
            if instance is not None and record.add(instance):
                self._logger.debug(
                    "plug_instance_traced",
                    descriptor=descriptor.__name__,
                    is_singleton=record.is_singleton,
                    instance_count=len(record.instances),
                )
            return record

    def get_trace(self, descriptor: Descriptor) -> TraceRecord | None:
        with self._lock:
            record = self._records.get(id(descriptor))
            if record is not None and record.descriptor is descriptor:
                return record
            return None

    def get_instances(self, descriptor: Descriptor) -> tuple[Any, ...] | None:
        record = self.get_trace(descriptor)
        if record is None:
            return None
        with self._lock:
            return record.instances

    def set_status(self, descriptor: Descriptor, status: ConstructionStatus) -> bool:
        """Set the construction status; untracked descriptors are left untouched."""

        record = self.get_trace(descriptor)
        if record is None:
            return False
        with self._lock:
            record.status = ConstructionStatus(status)
        return True

    def get_status(self, descriptor: Descriptor) -> ConstructionStatus:
        record = self.get_trace(descriptor)
        if record is None:
            return ConstructionStatus.IDLE
        return record.status

    @contextmanager
    def status_scope(
        self, descriptor: Descriptor, status: ConstructionStatus
    ) -> Iterator[None]:
        """Hold ``status`` for the duration of the block, then restore ``IDLE``."""

        self.set_status(descriptor, status)
        try:
            yield
        finally:
            self.set_status(descriptor, ConstructionStatus.IDLE)

    def get_protected_state(self, descriptor: Descriptor) -> ProtectedState:
        """Return the lineage state of ``descriptor``, creating it on first access."""

        with self._lock:
            return self._lineage_state(descriptor)

    def lineage_count(self) -> int:
        """Number of lineages whose root descriptor is still alive."""

        with self._lock:
            return len(self._lineages)

    def _lineage_state(self, descriptor: Descriptor) -> ProtectedState:
        root = descriptor.lineage_root
        state = self._lineages.get(root)
        if state is None:
            state = ProtectedState(root.__name__)
            self._lineages[root] = state
        return state

    def list_descriptors(self) -> tuple[Descriptor, ...]:
        """Tracked descriptors in definition order."""

        with self._lock:
            return tuple(record.descriptor for record in self._records.values())

    def unregister(self, descriptor: Descriptor) -> bool:
        """Apply the unregister policy to ``descriptor``; ``True`` when something changed."""

        policy = self._config.unregister_policy
        with self._lock:
            record = self.get_trace(descriptor)
            if record is None:
                return False

            if policy is UnregisterPolicy.ALL or (
                policy is UnregisterPolicy.CLASSES_ONLY and not record.is_singleton
            ):
                record.clear_instances()
                del self._records[id(descriptor)]
                action = "record_deleted"
            elif policy is UnregisterPolicy.ALL_INSTANCES or (
                policy is UnregisterPolicy.CLASS_INSTANCES and not record.is_singleton
            ):
                record.clear_instances()
                action = "instances_cleared"
            else:
                return False

        self._logger.debug(
            "plug_descriptor_unregistered",
            descriptor=descriptor.__name__,
            policy=policy.value,
            action=action,
        )
        return True

    def clear(self) -> None:
        """Drop every record and lineage state."""

        with self._lock:
            for record in self._records.values():
                record.clear_instances()
            self._records.clear()
            self._lineages.clear()

    def snapshot(self) -> list[dict[str, object]]:
        """JSON-friendly summary of the tracked descriptors."""

        with self._lock:
            return [
                {
                    "descriptor": record.descriptor.__name__,
                    "is_singleton": record.is_singleton,
                    "status": record.status.value,
                    "instances": len(record.instances),
                }
                for record in self._records.values()
            ]


__all__ = ["ProtectedState", "Registry", "TraceRecord"]
