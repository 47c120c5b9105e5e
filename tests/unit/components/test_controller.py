"""Unit tests for components.controller."""

from __future__ import annotations

import pytest

from plugframe.components import build_components
from plugframe.errors import ConfigurationError, IllegalConstructionError
from plugframe.runtime.service import PlugRuntime


def test_controller_registers_sub_controllers() -> None:
    runtime = PlugRuntime()
    components = build_components(runtime)
    controller = components.controller.get_instance()

    Menu = runtime.define_class(lambda self, protected: None)
    Session = runtime.define_singleton(lambda self, protected: None)

    menu = controller.add_sub_controller("menu", Menu)
    session = controller.add_sub_controller("session", Session)

    assert controller.get_sub_controller("menu") is menu
    assert controller.get_sub_controller("session") is Session.get_instance()
    assert session is Session.get_instance()
    assert controller.get_sub_controller("missing") is None
    assert controller.sub_controller_names() == ("menu", "session")
    assert components.controller.get_instance() is controller


def test_controller_is_a_singleton() -> None:
    components = build_components(PlugRuntime())

    with pytest.raises(IllegalConstructionError):
        components.controller()


def test_components_need_singleton_tracing() -> None:
    with pytest.raises(ConfigurationError):
        build_components(PlugRuntime({"trace_mode": "DISABLED"}))


def test_build_components_uses_active_runtime(runtime: PlugRuntime) -> None:
    components = build_components()

    assert runtime.list_registered_descriptors() == (
        components.base,
        components.error_manager,
        components.controller,
    )
    assert components.error_manager.parent is components.base
