"""Observable models and kida views.

``Model`` is a mutable mapping that announces every change on its own
``EventBus``. ``View`` renders a kida template from a model into a host
element::

    model = Model({"name": "Ada"})
    view = View(host, "<p>Hello {{ name }}</p>", model)
    view.render()
    model["name"] = "Grace"   # re-renders (live views only)

Components bind their templated fragments to a non-live view and drive
re-rendering themselves, so nested components can be rebuilt in step.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, MutableMapping
from typing import Any

from bs4 import Tag
from kida import Environment

from perch.dom import set_markup
from perch.events import EventBus
from perch.templating.integration import create_environment


class Model(MutableMapping[str, Any]):
    """Observable data. Emits ``change`` with ``{"key", "value", "model"}``.

    ``update()`` emits a single ``change`` with ``key=None``.
    """

    __slots__ = ("_bus", "_data")

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._bus = EventBus()

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._bus.emit("change", {"key": key, "value": value, "model": self})

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._bus.emit("change", {"key": key, "value": None, "model": self})

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Model({self._data!r})"

    def update(self, other: Any = (), /, **kwargs: Any) -> None:
        self._data.update(other, **kwargs)
        self._bus.emit("change", {"key": None, "value": None, "model": self})

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def on(self, event: str, fn: Callable[[Any], Any]) -> None:
        self._bus.subscribe(event, fn)

    def off(self, event: str, fn: Callable[[Any], Any]) -> None:
        self._bus.unsubscribe(event, fn)

    def clear_listeners(self) -> None:
        self._bus.clear()


class View:
    """A kida template bound to a host element and a model."""

    __slots__ = ("_destroyed", "_live", "_template", "host", "model")

    def __init__(
        self,
        host: Tag,
        source: str,
        model: Model,
        *,
        env: Environment | None = None,
        live: bool = True,
        lifecycle: Any = None,
    ) -> None:
        self.host = host
        self.model = model
        self._template = (env or create_environment()).from_string(source)
        self._destroyed = False
        self._live = live
        if live:
            model.on("change", self._changed)
        if lifecycle is not None:
            lifecycle.on_destroy(lambda _ctx: self.destroy())

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def render_markup(self) -> str:
        return self._template.render(self.model.to_dict())

    def render(self) -> None:
        """Render the model into the host, replacing its children."""
        if self._destroyed:
            return
        set_markup(self.host, self.render_markup())

    def _changed(self, _payload: Any) -> None:
        self.render()

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        if self._live:
            self.model.off("change", self._changed)
