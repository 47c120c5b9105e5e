"""
plugframe — unit tests for observability logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate structlog-backed JSON/text logging, correlation fields, and handle lifecycle.

What this test file should cover
- JSON line validity and standard fields.
- Level filtering.
- Correlation field propagation.
- Runtime events reaching the configured handler.
- Shutdown detaching handlers.

Non-functional requirements
- Deterministic and non-flaky.
"""

from __future__ import annotations

import io
import json
import logging
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
import structlog

from plugframe.observability.logging import (
    LoggingConfig,
    correlation_scope,
    get_active_logging_handle,
    get_correlation_context,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)
from plugframe.runtime.service import PlugRuntime

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _cleanup_logging() -> Iterator[None]:
    yield
    shutdown_logging()


def _logger_name() -> str:
    return f"plugframe.tests.logging.{uuid4().hex}"


def _json_lines(stream: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


def test_json_logging_emits_one_object_per_event() -> None:
    stream = io.StringIO()
    logger_name = _logger_name()
    setup_structured_logging(LoggingConfig(logger_name=logger_name, level="INFO", stream=stream))
    logger = structlog.stdlib.get_logger(logger_name)

    logger.info("descriptor_ready", descriptor="Widget", instances=2)
    logger.debug("hidden_event")

    records = _json_lines(stream)
    assert len(records) == 1
    record = records[0]
    assert record["event"] == "descriptor_ready"
    assert record["descriptor"] == "Widget"
    assert record["instances"] == 2
    assert record["level"] == "info"
    assert record["logger"] == logger_name
    assert isinstance(record["timestamp"], str)


def test_correlation_scope_binds_fields_temporarily() -> None:
    stream = io.StringIO()
    logger_name = _logger_name()
    setup_structured_logging(LoggingConfig(logger_name=logger_name, stream=stream))
    logger = structlog.stdlib.get_logger(logger_name)

    with correlation_scope(request_id="req-1", session_id=None):
        assert get_correlation_context() == {"request_id": "req-1"}
        logger.info("inside")
    logger.info("outside")

    inside, outside = _json_lines(stream)
    assert inside["request_id"] == "req-1"
    assert "session_id" not in inside
    assert "request_id" not in outside
    assert get_correlation_context() == {}


def test_text_format_renders_event_name() -> None:
    stream = io.StringIO()
    logger = setup_logging(
        {"log_level": "DEBUG", "log_format": "text"},
        logger_name=_logger_name(),
        stream=stream,
    )

    logger.debug("plain_text_event", answer=42)

    output = stream.getvalue()
    assert "plain_text_event" in output
    assert "answer=42" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.splitlines()[0])


def test_runtime_events_reach_configured_handler() -> None:
    stream = io.StringIO()
    setup_logging({"log_level": "DEBUG", "log_format": "json"}, stream=stream)

    runtime = PlugRuntime()
    widget = runtime.define_class(lambda self, protected: None)
    keep = widget()
    runtime.shutdown()

    assert keep is not None
    events = [record["event"] for record in _json_lines(stream)]
    assert events == ["plug_descriptor_defined", "plug_instance_traced", "plug_runtime_shutdown"]


def test_shutdown_detaches_handler_and_clears_active_handle() -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(LoggingConfig(logger_name=logger_name, stream=io.StringIO()))

    assert get_active_logging_handle() is handle
    shutdown_logging(handle)

    assert handle.is_shutdown is True
    assert get_active_logging_handle() is None
    assert handle.handler not in logging.getLogger(logger_name).handlers


def test_invalid_level_and_logger_name_rejected() -> None:
    with pytest.raises(ValueError, match="unsupported logging level"):
        setup_structured_logging(LoggingConfig(logger_name=_logger_name(), level="LOUD"))
    with pytest.raises(ValueError, match="must not be empty"):
        setup_structured_logging(LoggingConfig(logger_name="   "))
