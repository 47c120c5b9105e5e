"""
plugframe — error manager component.

File: src/plugframe/components/error_manager.py

Purpose
- Report caught exceptions to the client log and, optionally, to a server
  endpoint through an injected transport.

Options (applied with ``set_options`` on top of the defaults)
- ``client_logging`` (default ``True``): emit a human-readable description.
- ``server_logging`` (default ``False``): hand ``endpoint?query`` to ``transport``.
- ``endpoint`` (default ``None``): base URL of the error collector.

Non-functional requirements
- No network I/O here. A failing transport is reported through client logging
  and never propagates to the caller of ``log``.
"""

from __future__ import annotations

import platform
import traceback
from collections.abc import Callable, Mapping
from typing import Any, Final
from urllib.parse import urlencode

import structlog

from plugframe.runtime.construction import Instance
from plugframe.runtime.registry import ProtectedState

Transport = Callable[[str], object]

ERROR_PROPERTIES: Final[tuple[str, ...]] = (
    "name",
    "message",
    "description",
    "file_name",
    "line_number",
    "number",
    "stack",
)

DEFAULT_ERROR_OPTIONS: Final[Mapping[str, object]] = {
    "client_logging": True,
    "server_logging": False,
    "endpoint": None,
}


def user_agent() -> str:
    """Identify the running interpreter the way a browser user agent would."""

    return (
        f"{platform.python_implementation()}/{platform.python_version()} "
        f"({platform.system()} {platform.release()}; {platform.machine()})"
    )


def error_properties(error: BaseException) -> list[tuple[str, str]]:
    """Known properties of ``error`` in a fixed order, skipping the ones it lacks."""

    frames = traceback.extract_tb(error.__traceback__) if error.__traceback__ else []
    derived: dict[str, object] = {
        "name": type(error).__name__,
        "message": str(error),
    }
    if frames:
        derived["file_name"] = frames[-1].filename
        derived["line_number"] = frames[-1].lineno
        derived["stack"] = "".join(traceback.format_exception(error)).rstrip()

    pairs: list[tuple[str, str]] = []
    for prop in ERROR_PROPERTIES:
        value = getattr(error, prop, None)
        if value is None:
            value = derived.get(prop)
        if value is None or value == "":
            continue
        pairs.append((prop, str(value)))
    return pairs


def client_description(error: BaseException, *, agent: str | None = None) -> str:
    pairs = error_properties(error)
    if not pairs:
        return ""
    lines = [f"User-Agent: {agent or user_agent()}"]
    lines.extend(f"{prop}: {value}" for prop, value in pairs)
    return "\n".join(lines)


def server_description(error: BaseException, *, agent: str | None = None) -> str:
    pairs = error_properties(error)
    if not pairs:
        return ""
    return urlencode([("User-Agent", agent or user_agent()), *pairs])


def error_manager_factory(
    self: Instance,
    protected: ProtectedState,
    options: Mapping[str, Any] | None = None,
    *,
    transport: Transport | None = None,
    logger: Any | None = None,
    agent: str | None = None,
) -> None:
    """Extension of the base component; keeps its settings private to the closure."""

    settings: dict[str, object] = {}
    log_sink = logger if logger is not None else structlog.get_logger(__name__)

    def init(options: Mapping[str, Any] | None = None, *_: Any, **__: Any) -> None:
        settings.clear()
        settings.update(DEFAULT_ERROR_OPTIONS)
        self.set_options(options if isinstance(options, Mapping) else {}, settings)

    def log_client(error: BaseException) -> None:
        description = client_description(error, agent=agent)
        if description:
            log_sink.error(
                "plug_error_logged",
                target="client",
                error_type=type(error).__name__,
                description=description,
            )

    def log(error: object) -> None:
        if not isinstance(error, BaseException):
            return

        endpoint = settings.get("endpoint")
        if settings.get("server_logging") and endpoint and transport is not None:
            try:
                query = server_description(error, agent=agent)
                if query:
                    transport(f"{endpoint}?{query}")
                    log_sink.info(
                        "plug_error_logged",
                        target="server",
                        error_type=type(error).__name__,
                        endpoint=endpoint,
                    )
            except Exception as exc:
                if settings.get("client_logging"):
                    log_client(exc)

        if settings.get("client_logging"):
            log_client(error)

    def get_settings() -> dict[str, object]:
        return dict(settings)

    self.init = init
    self.log = log
    self.get_settings = get_settings


__all__ = [
    "DEFAULT_ERROR_OPTIONS",
    "ERROR_PROPERTIES",
    "Transport",
    "client_description",
    "error_manager_factory",
    "error_properties",
    "server_description",
    "user_agent",
]
