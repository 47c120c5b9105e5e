"""Options-holder base class: every component keeps its settings in ``config``."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any

from plugframe.runtime.construction import Instance
from plugframe.runtime.registry import ProtectedState


def base_factory(
    self: Instance,
    protected: ProtectedState,
    options: Mapping[str, Any] | None = None,
) -> None:
    """Declare the option accessors; ``init`` seeds ``config`` from ``defaults`` and applies ``options``.

    Subclasses override ``defaults`` in their own factory and reuse this initializer
    through ``self.parent["init"]``.
    """

    def init(options: Mapping[str, Any] | None = None, *_: Any, **__: Any) -> None:
        self.config = dict(getattr(self, "defaults", {}))
        self.set_options(options)

    def get_option(option: str, context: Mapping[str, Any] | None = None) -> Any:
        target = _resolve_context(self, context)
        if target is not None and option in target:
            return target[option]
        return None

    def set_option(
        option: str,
        value: Any,
        context: MutableMapping[str, Any] | None = None,
    ) -> Instance:
        # Only keys declared up front may be overwritten.
        target = _resolve_context(self, context)
        if target is not None and option in target:
            target[option] = value
        return self

    def set_options(
        options: Mapping[str, Any] | None,
        context: MutableMapping[str, Any] | None = None,
    ) -> Instance:
        if isinstance(options, Mapping):
            for key, value in options.items():
                set_option(key, value, context)
        return self

    self.defaults = {}
    self.init = init
    self.get_option = get_option
    self.set_option = set_option
    self.set_options = set_options


def _resolve_context(self: Instance, context: Any) -> Any:
    if context is not None:
        return context
    return getattr(self, "config", None)


__all__ = ["base_factory"]
