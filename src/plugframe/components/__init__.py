"""
plugframe components: ordinary consumers of the runtime.

File: src/plugframe/components/__init__.py

Purpose
- Define the options-holder base, the error manager built on it, and the
  sub-controller singleton on a given runtime.
"""

from __future__ import annotations

from dataclasses import dataclass

from plugframe.components.base import base_factory
from plugframe.components.controller import controller_factory
from plugframe.components.error_manager import (
    DEFAULT_ERROR_OPTIONS,
    ERROR_PROPERTIES,
    client_description,
    error_manager_factory,
    error_properties,
    server_description,
    user_agent,
)
from plugframe.runtime.descriptor import Descriptor
from plugframe.runtime.service import PlugRuntime, get_runtime


@dataclass(frozen=True, slots=True)
class Components:
    """Descriptors defined by ``build_components``."""

    base: Descriptor
    error_manager: Descriptor
    controller: Descriptor


def build_components(runtime: PlugRuntime | None = None) -> Components:
    """Define ``Base``, ``ErrorManager`` (extends ``Base``) and ``Controller`` on ``runtime``."""

    resolved = runtime if runtime is not None else get_runtime()
    base = resolved.define_class(base_factory)
    return Components(
        base=base,
        error_manager=base.extend(error_manager_factory),
        controller=resolved.define_singleton(controller_factory),
    )


__all__ = [
    "Components",
    "DEFAULT_ERROR_OPTIONS",
    "ERROR_PROPERTIES",
    "base_factory",
    "build_components",
    "client_description",
    "controller_factory",
    "error_manager_factory",
    "error_properties",
    "server_description",
    "user_agent",
]
