"""Component — a mounted unit bound to one host element.

Lifecycle::

    Component.attach()   bind to host, lock it, link into the parent
    mount()              fetch -> parse -> render -> init -> ready -> scan
    scan()               mount nested markers (once, unless replace_existing)
    remount()            destroy, then mount a fresh instance on the host
    destroy()            children first, then context, then host cleanup

``mount()`` never raises. Fetch, parse and init failures move the
component to ``error`` and render the configured fallback into the host;
the rest of the tree is unaffected.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from bs4.element import PageElement, Tag

from perch.context import State
from perch.dom import parse_fragment, swap_nodes
from perch.errors import ConcurrencyError
from perch.options import MountOptions
from perch.templating.views import View
from perch.tree import Branch

if TYPE_CHECKING:
    from perch.manager import Manager


class Component(Branch):
    """A fetched fragment rendered into one host element."""

    __slots__ = ("_rendered", "_scanned", "_task", "host", "options", "view")

    def __init__(self, manager: Manager, host: Tag, options: MountOptions) -> None:
        super().__init__(manager, options.url, options.data, options.parent)
        self.host = host
        self.options = options
        self.view: View | None = None
        self._scanned = False
        self._task: asyncio.Task[Component] | None = None
        self._rendered: list[PageElement] = []

        # Ownership is taken before the first await of mount().
        manager._bind(host, self)
        self.context.on_destroy(lambda _ctx: manager._unbind(self.host, self))

    @classmethod
    def attach(cls, manager: Manager, host: Tag | str, options: MountOptions) -> Component:
        """Create a component on ``host``, honouring an in-flight mount.

        If ``host`` is already mounting, the component bound to it is
        returned; with ``debug`` on a ``ConcurrencyError`` is raised instead.
        """
        element = manager.resolve_host(host)
        if manager.is_mounting(element):
            if manager.config.debug:
                msg = f"Host {element.name!r} is already mounting (concurrent mount detected)"
                raise ConcurrencyError(msg)
            existing = manager.instance_for(element)
            if existing is not None:
                return existing
        return cls(manager, element, options)

    @property
    def scanned(self) -> bool:
        return self._scanned

    def find(self, selector: str) -> Tag | None:
        return self.host.select_one(selector)

    def find_all(self, selector: str) -> list[Tag]:
        return list(self.host.select(selector))

    async def wait(self) -> Component:
        """Wait for the mount started by ``Manager.mount()`` to settle."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return self

    async def mount(self) -> Component:
        """Run the fetch -> parse -> render -> init pipeline once."""
        if self._destroyed:
            return self

        manager = self.manager
        ctx = self.context
        ctx.state = State.LOADING

        try:
            if self.options.overlay:
                manager.overlay.show(self)

            url = manager.resolve_url(self.url)
            manager.log("mount %s", url)
            text = await ctx.request_text(url)
            if text is None:
                return self

            payload = manager.parse_payload(text)
            ctx.state = State.RENDERING
            manager.render_into_host(self, payload.fragment)

            ctx.state = State.INIT
            if payload.init is not None:
                manager.log("init %s for %s", payload.init_name, url)
                await self._run_init(payload.init)
                if self._destroyed:
                    return self
            if payload.templated:
                self._bind_view(payload.source)

            ctx.ready = True
            ctx.state = State.READY

            if self.options.autoload:
                self.scan(replace_existing=self.options.replace_existing_children)

        except Exception as exc:
            if self._destroyed:
                return self
            ctx.state = State.ERROR
            manager.render_error(self, exc)
            manager.log_failure(self, exc)

        finally:
            manager.overlay.hide(self)
            manager._unlock(self.host, self)

        return self

    def scan(self, *, replace_existing: bool = False) -> Component:
        """Mount the markers inside this component's host."""
        if self._destroyed:
            return self
        if self._scanned and not replace_existing:
            return self
        self._scanned = True
        self.manager.scan(self.host, parent=self, replace_existing=replace_existing)
        return self

    def remount(self, host: Tag | str | None = None) -> Component:
        """Destroy this component and mount a fresh one in its place.

        With ``replace_host`` the old host is detached by ``destroy()``;
        pass ``host`` to mount somewhere else.
        """
        if self._destroyed:
            return self
        target = host if host is not None else self.host
        options = self.options.merged(replace=True)
        self.destroy()
        return self.manager.mount(target, options)

    # -- Views ---------------------------------------------------------------

    def _bind_view(self, source: str) -> None:
        self.view = View(
            self.host,
            source,
            self.data,
            env=self.manager.templates,
            live=False,
            lifecycle=self.context,
        )
        self._render_view()
        self.data.on("change", self._data_changed)

    def _render_view(self) -> None:
        if self.view is None:
            return
        fragment = parse_fragment(self.view.render_markup())
        if self.options.replace_host:
            self.manager.render_into_host(self, fragment)
        else:
            self._rendered = swap_nodes(self.host, self._rendered, fragment)

    def _data_changed(self, _payload: Any) -> None:
        if self._destroyed or not self.context.ready:
            return
        # Re-rendering replaces the markers, so nested components are rebuilt.
        for child in list(self.children):
            if isinstance(child, Component):
                child.destroy()
        self._render_view()
        self.scan(replace_existing=True)

    # -- Teardown --------------------------------------------------------------

    def _release(self) -> None:
        self.manager.overlay.hide(self)
        if self.options.replace_host:
            if self.host.parent is not None:
                self.host.extract()
        else:
            self.host.clear()
        self._rendered = []
