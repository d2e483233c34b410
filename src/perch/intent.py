"""Intent — a headless component.

Runs the same fetch -> parse -> init pipeline as ``Component`` but has no
host and renders nothing. The parsed fragment is kept in ``fragment`` for
the caller to place (or ignore). An intent with a parent is part of that
parent's branch and is destroyed with it::

    async def init_modal(component, data):
        intent = await manager.intent("modal.html|id=1").data(source="list").send(
            parent=component
        )
        intent.fragment  # detached copy of the fetched markup
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from bs4 import BeautifulSoup

from perch.context import State
from perch.options import IntentOptions
from perch.tree import Branch

if TYPE_CHECKING:
    from perch.manager import Manager

logger = logging.getLogger("perch.intent")


class Intent(Branch):
    """A fetched payload whose init runs without a host."""

    __slots__ = ("fragment",)

    def __init__(self, manager: Manager, options: IntentOptions) -> None:
        super().__init__(manager, options.url, options.data, options.parent)
        self.fragment: BeautifulSoup | None = None

    @property
    def host(self) -> None:
        return None

    async def run(self) -> Intent:
        """Fetch, parse and init. Never raises; failures end in ``error``."""
        if self._destroyed:
            return self

        manager = self.manager
        ctx = self.context
        if not self.url:
            ctx.state = State.ERROR
            logger.warning("intent has no url")
            return self

        ctx.state = State.LOADING
        manager.log("intent run %s", self.url)
        try:
            text = await ctx.request_text(manager.resolve_url(self.url))
            if text is None:
                return self
            payload = manager.parse_payload(text)
            self.fragment = copy.copy(payload.fragment)

            ctx.state = State.INIT
            if payload.init is not None:
                manager.log("init %s for %s", payload.init_name, self.url)
                await self._run_init(payload.init)
                if self._destroyed:
                    return self

            ctx.ready = True
            ctx.state = State.READY
        except Exception as exc:
            if self._destroyed:
                return self
            ctx.state = State.ERROR
            manager.log_failure(self, exc)
        return self


class IntentBuilder:
    """Fluent intent request: ``manager.intent(url).data(...).send(parent=...)``."""

    __slots__ = ("_data", "_manager", "_url")

    def __init__(self, manager: Manager, options: IntentOptions) -> None:
        self._manager = manager
        self._url = options.url
        self._data: dict[str, Any] = dict(options.data)

    def data(self, obj_or_key: Mapping[str, Any] | str | None = None, value: Any = None, **kwargs: Any) -> IntentBuilder:
        """Merge a mapping (or set one key) into the intent's data."""
        if isinstance(obj_or_key, Mapping):
            self._data.update(obj_or_key)
        elif obj_or_key is not None:
            self._data[obj_or_key] = value
        self._data.update(kwargs)
        return self

    async def send(self, parent: Branch | None = None) -> Intent:
        intent = Intent(
            self._manager,
            IntentOptions(url=self._url, data=dict(self._data), parent=parent),
        )
        await intent.run()
        return intent
