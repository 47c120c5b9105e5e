"""
plugframe — shared pytest fixtures

File: tests/conftest.py

Purpose
- Give every test a fresh active runtime and a logger that records events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest

from plugframe.runtime.service import PlugRuntime, init_runtime, shutdown_runtime

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass
class RecordingLogger:
    events: list[tuple[str, str, dict[str, object]]] = field(default_factory=list)

    def debug(self, event: str, **kwargs: object) -> None:
        self.events.append(("debug", event, dict(kwargs)))

    def info(self, event: str, **kwargs: object) -> None:
        self.events.append(("info", event, dict(kwargs)))

    def error(self, event: str, **kwargs: object) -> None:
        self.events.append(("error", event, dict(kwargs)))

    def named(self, event: str) -> list[dict[str, object]]:
        return [fields for _, name, fields in self.events if name == event]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def runtime(recording_logger: RecordingLogger) -> Iterator[PlugRuntime]:
    active = init_runtime(logger=recording_logger)
    yield active
    shutdown_runtime(active)
