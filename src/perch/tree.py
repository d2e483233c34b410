"""Shared tree behaviour of components and intents.

A ``Branch`` is one node of the live tree. It owns exactly one
``Context``; the context reads its parent/children through the branch, so
there is a single tree to keep consistent. Destroying a branch tears down
its context, which destroys every child branch first.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from perch._internal.invoke import invoke_init
from perch.context import Context, State
from perch.errors import ConfigurationError
from perch.templating.views import Model

if TYPE_CHECKING:
    from perch.manager import Manager
    from perch.payload import InitCallback


class Branch:
    """Base for ``Component`` and ``Intent``."""

    __slots__ = ("_destroyed", "children", "context", "data", "manager", "parent", "url")

    def __init__(
        self,
        manager: Manager,
        url: str,
        data: Mapping[str, Any] | None,
        parent: Branch | None,
    ) -> None:
        if parent is not None:
            if not isinstance(parent, Branch):
                msg = f"Parent must be a Component or Intent, got {type(parent).__name__}"
                raise ConfigurationError(msg)
            if parent.destroyed:
                msg = f"Parent {parent!r} is destroyed"
                raise ConfigurationError(msg)

        self.manager = manager
        self.url = url
        self.data = Model(data)
        self.parent = parent
        self.children: list[Branch] = []
        self._destroyed = False
        self.context = Context(self, manager)

        if parent is not None:
            parent.children.append(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.url!r} {self.context.state}>"

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def state(self) -> State:
        return self.context.state

    @property
    def ready(self) -> bool:
        return self.context.ready

    def walk(self) -> list[Branch]:
        """This branch and every live descendant, depth first."""
        out: list[Branch] = [self]
        for child in self.children:
            out.extend(child.walk())
        return out

    async def _run_init(self, init: InitCallback) -> None:
        await invoke_init(init, self, self.data)

    def destroy(self) -> None:
        """Tear down this branch and everything below it. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True
        self.context._teardown()
        self.data.clear_listeners()
        self._release()
        if self.parent is not None and self in self.parent.children:
            self.parent.children.remove(self)

    def _release(self) -> None:
        """Release resources held outside the context (hosts, overlays)."""
