"""Unit tests for runtime.descriptor."""

from __future__ import annotations

import pytest

from plugframe.errors import ArgumentError, ConfigurationError, PlugError
from plugframe.runtime.construction import Instance
from plugframe.runtime.descriptor import ClassDescriptor, SingletonDescriptor, build_descriptor
from plugframe.runtime.service import PlugRuntime


def widget(self, protected, size: int = 1) -> None:
    """A widget with a size."""

    self.size = size


def button(self, protected, size: int = 1) -> None:
    self.pressed = False


def test_build_rejects_non_callable_without_registering() -> None:
    runtime = PlugRuntime()
    Widget = runtime.define_class(widget)

    with pytest.raises(ArgumentError, match="callable"):
        runtime.define_class(42)  # type: ignore[arg-type]
    with pytest.raises(ArgumentError):
        Widget.extend("not a factory")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        build_descriptor(runtime.registry, None)  # type: ignore[arg-type]

    assert runtime.list_registered_descriptors() == (Widget,)


def test_singleton_requires_tracing() -> None:
    runtime = PlugRuntime({"trace_mode": "DISABLED"})

    with pytest.raises(ConfigurationError, match="trace mode"):
        runtime.define_singleton(widget)
    assert isinstance(ConfigurationError("x"), PlugError)

    Widget = runtime.define_class(widget)
    assert Widget.is_registered() is False
    assert Widget(3).size == 3
    assert Widget.instances() == ()


def test_descriptor_contract_and_identity() -> None:
    runtime = PlugRuntime()
    Widget = runtime.define_class(widget)
    Button = Widget.extend(button)

    assert isinstance(Widget, ClassDescriptor)
    assert isinstance(Button, ClassDescriptor)
    assert Widget.is_singleton() is False
    assert Button.parent is Widget
    assert Widget.parent is runtime.Class
    assert Button.lineage_root is Widget
    assert Widget.__name__ == "widget"
    assert Widget.__doc__ == "A widget with a size."
    assert repr(Button) == "<Class button>"
    assert not hasattr(Widget, "get_instance")


def test_isinstance_and_prototype_follow_the_chain() -> None:
    runtime = PlugRuntime()
    Widget = runtime.define_class(widget)
    Button = Widget.extend(button)
    Other = runtime.define_class(widget)

    pressed = Button(size=4)
    plain = Widget()

    assert isinstance(pressed, Button)
    assert isinstance(pressed, Widget)
    assert isinstance(pressed, Instance)
    assert not isinstance(plain, Button)
    assert not isinstance(pressed, Other)
    assert issubclass(Button.prototype, Widget.prototype)

    Widget.prototype.kind = "widget"
    assert pressed.kind == "widget"
    assert pressed.size == 1
    assert pressed.pressed is False


def test_extend_keeps_singleton_flag() -> None:
    runtime = PlugRuntime()
    Service = runtime.define_singleton(widget)
    Special = Service.extend(button)

    assert isinstance(Special, SingletonDescriptor)
    assert Special.is_singleton() is True
    assert Special.parent is Service
    assert Service.parent is runtime.Singleton
    assert repr(Special) == "<Singleton button>"
    assert Special.get_instance() is not Service.get_instance()


def test_construct_matches_normal_call() -> None:
    runtime = PlugRuntime()
    Widget = runtime.define_class(widget)

    reflected = Widget.construct(size=7)
    called = Widget(7)

    assert reflected.size == called.size == 7
    assert reflected is not called
    assert Widget.instances() == (reflected, called)


def test_definition_is_logged(recording_logger) -> None:
    runtime = PlugRuntime(logger=recording_logger)
    Widget = runtime.define_class(widget)
    Widget.extend(button)

    assert recording_logger.named("plug_descriptor_defined") == [
        {"descriptor": "widget", "parent": None, "is_singleton": False, "registered": True},
        {"descriptor": "button", "parent": "widget", "is_singleton": False, "registered": True},
    ]
