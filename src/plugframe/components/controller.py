"""Singleton controller holding named sub-controller instances."""

from __future__ import annotations

from typing import Any

from plugframe.runtime.construction import Instance
from plugframe.runtime.descriptor import Descriptor
from plugframe.runtime.registry import ProtectedState


def controller_factory(self: Instance, protected: ProtectedState, *_: Any, **__: Any) -> None:
    sub_controllers: dict[str, Instance] = {}

    def init(*_: Any, **__: Any) -> None:
        sub_controllers.clear()

    def add_sub_controller(name: str, descriptor: Descriptor) -> Instance:
        """Instantiate ``descriptor`` and register the instance under ``name``."""

        if descriptor.is_singleton():
            sub_controller = descriptor.get_instance()  # type: ignore[attr-defined]
        else:
            sub_controller = descriptor()
        sub_controllers[name] = sub_controller
        return sub_controller

    def get_sub_controller(name: str) -> Instance | None:
        return sub_controllers.get(name)

    def sub_controller_names() -> tuple[str, ...]:
        return tuple(sub_controllers)

    self.init = init
    self.add_sub_controller = add_sub_controller
    self.get_sub_controller = get_sub_controller
    self.sub_controller_names = sub_controller_names


__all__ = ["controller_factory"]
