"""Manager — the public surface of perch.

Owns the document, the fetcher, the init registry, the overlay, the
host -> component identity map and the router. Creates components and
intents and coordinates their rendering.

Usage::

    registry = InitRegistry()
    manager = Manager(PerchConfig(base_url="https://example.com"), registry=registry)
    manager.document = BeautifulSoup('<div id="app"></div>', "html.parser")

    root = manager.root("#app", "/pages/home.html|tab=recent")
    await manager.settle()
    print(manager.document)

Identity map:
    Every host element maps to at most one live component, and a host that
    is mid-mount carries a lock. Both are updated synchronously, before any
    await, so check-then-set is atomic under the single-threaded loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Mapping
from typing import Any

from bs4 import BeautifulSoup
from bs4.element import Tag
from kida import Environment

from perch.component import Component
from perch.config import PerchConfig
from perch.context import Context
from perch.dom import (
    data_attributes,
    find_markers,
    render_children,
    replace_host,
    resolve_host,
    set_markup,
)
from perch.fetch import Fetcher, HttpxFetcher
from perch.intent import Intent, IntentBuilder
from perch.options import (
    MountOptions,
    normalize_intent_options,
    normalize_options,
    parse_marker,
)
from perch.overlay import Overlay
from perch.payload import InitRegistry, Payload, parse_payload
from perch.routing.location import LocationSource
from perch.routing.router import HashRouter, RouteTable
from perch.templating.integration import create_environment
from perch.tree import Branch

logger = logging.getLogger("perch.manager")


class Manager:
    """Coordinates component mounting, scanning, routing and intents."""

    __slots__ = (
        "_instances",
        "_locks",
        "_root",
        "_tasks",
        "config",
        "document",
        "fetcher",
        "overlay",
        "registry",
        "router",
        "templates",
    )

    def __init__(
        self,
        config: PerchConfig | None = None,
        *,
        document: BeautifulSoup | None = None,
        fetcher: Fetcher | None = None,
        registry: InitRegistry | None = None,
        location: LocationSource | None = None,
        templates: Environment | None = None,
    ) -> None:
        self.config: PerchConfig = config or PerchConfig()
        self.document: BeautifulSoup = (
            document if document is not None else BeautifulSoup("<body></body>", "html.parser")
        )
        self.fetcher: Fetcher = fetcher if fetcher is not None else HttpxFetcher()
        self.registry: InitRegistry = registry if registry is not None else InitRegistry()
        self.templates: Environment = templates if templates is not None else create_environment()
        self.overlay = Overlay(self.config)
        self.router = HashRouter(self, location)

        # Identity map and mounting locks, keyed by id() of the host element.
        # Entries hold the component, which keeps the host alive.
        self._instances: dict[int, Component] = {}
        self._locks: dict[int, Component] = {}

        self._root: Component | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    async def __aenter__(self) -> Manager:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # -- Logging ---------------------------------------------------------------

    def log(self, msg: str, *args: Any) -> None:
        """Debug line, only emitted when ``config.debug`` is on."""
        if self.config.debug:
            logger.debug(msg, *args)

    def log_failure(self, owner: Branch, exc: BaseException) -> None:
        logger.warning(
            "%s %r failed: %s",
            type(owner).__name__.lower(),
            owner.url,
            exc,
            exc_info=exc if self.config.debug else None,
        )

    # -- Root ------------------------------------------------------------------

    @property
    def root_component(self) -> Component | None:
        if self._root is not None and self._root.destroyed:
            self._root = None
        return self._root

    @property
    def root_context(self) -> Context | None:
        root = self.root_component
        return root.context if root is not None else None

    # -- Identity map ------------------------------------------------------------

    def resolve_host(self, host: Tag | str | None) -> Tag:
        return resolve_host(self.document, host)

    def instance_for(self, host: Tag | str) -> Component | None:
        """The live component bound to ``host``, if any."""
        return self._instances.get(id(self.resolve_host(host)))

    def is_mounting(self, host: Tag) -> bool:
        return id(host) in self._locks

    def _bind(self, host: Tag, component: Component) -> None:
        self._locks[id(host)] = component
        self._instances[id(host)] = component

    def _unlock(self, host: Tag, component: Component) -> None:
        if self._locks.get(id(host)) is component:
            del self._locks[id(host)]

    def _unbind(self, host: Tag, component: Component) -> None:
        self._unlock(host, component)
        if self._instances.get(id(host)) is component:
            del self._instances[id(host)]

    def _rebind(self, old: Tag, new: Tag, component: Component) -> None:
        locked = self._locks.get(id(old)) is component
        self._unbind(old, component)
        self._instances[id(new)] = component
        if locked:
            self._locks[id(new)] = component

    # -- Pipeline steps ----------------------------------------------------------

    def resolve_url(self, url: str) -> str:
        """Prefix root-relative urls with ``config.base_url``."""
        if url and self.config.base_url and url.startswith("/"):
            return self.config.base_url.rstrip("/") + url
        return url

    def parse_payload(self, text: str) -> Payload:
        return parse_payload(text, self.registry)

    def render_into_host(self, component: Component, fragment: Tag) -> None:
        """Render ``fragment`` per the component's host policy."""
        host = component.host
        if component.options.replace_host:
            if host.parent is None:
                self.log("replace_host: host has no parent, rendering into it")
                component._rendered = render_children(host, fragment)
                return
            new_root = replace_host(host, fragment)
            self._rebind(host, new_root, component)
            component.host = new_root
            component._rendered = [new_root]
            return
        component._rendered = render_children(host, fragment, append=component.options.append)

    def render_error(self, component: Component, exc: BaseException) -> None:
        try:
            component._rendered = set_markup(component.host, self.config.error_html(component.url, exc))
        except Exception:
            logger.exception("rendering error fallback for %r failed", component.url)

    # -- Tasks -------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def settle(self) -> None:
        """Wait until no mount is in flight, including mounts started meanwhile."""
        await asyncio.sleep(0)
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await asyncio.sleep(0)

    # -- Public API --------------------------------------------------------------

    def mount(
        self,
        host: Tag | str,
        opts: str | Mapping[str, Any] | MountOptions | None = None,
    ) -> Component:
        """Mount a component on ``host`` and return it right away.

        Without ``replace`` an existing live component on ``host`` is
        returned untouched. With ``replace`` it is destroyed first. The
        mount itself runs as a task; ``await component.wait()`` or
        ``await manager.settle()`` to wait for it.
        """
        element = self.resolve_host(host)
        options = normalize_options(opts)

        existing = self._instances.get(id(element))
        if existing is not None:
            if not options.replace:
                return existing
            existing.destroy()

        component = Component.attach(self, element, options)
        if component._task is None:
            component._task = self._spawn(component.mount())
        return component

    def root(
        self,
        host: Tag | str,
        opts: str | Mapping[str, Any] | MountOptions | None = None,
    ) -> Component:
        """Mount the tree root, destroying any previous root."""
        previous, self._root = self._root, None
        if previous is not None:
            previous.destroy()
        options = normalize_options(opts).merged(replace=True, parent=None)
        self._root = self.mount(host, options)
        return self._root

    def scan(
        self,
        container: Tag | str | None = None,
        *,
        parent: Branch | None = None,
        replace_existing: bool = False,
    ) -> list[Component]:
        """Mount every marker directly inside ``container``.

        Marker data comes first, then the marker element's own ``data-*``
        attributes override it. Markers that already own a component are
        skipped unless ``replace_existing``.
        """
        root = self.document if container is None else self.resolve_host(container)
        attr = self.config.marker_attr
        mounted: list[Component] = []
        for marker in find_markers(root, attr):
            url, marker_data = parse_marker(marker.get(attr) or "")
            data = {**marker_data, **data_attributes(marker, exclude=attr)}

            existing = self._instances.get(id(marker))
            if existing is not None:
                if not replace_existing:
                    continue
                existing.destroy()

            mounted.append(
                self.mount(marker, MountOptions(url=url, data=data, parent=parent, replace=True))
            )
        return mounted

    def route(
        self,
        outlet: Tag | str = "#app",
        routes: RouteTable | None = None,
        not_found: str | None = None,
    ) -> HashRouter:
        """Configure the router and route the current location."""
        self.router.configure(outlet=outlet, routes=routes, not_found=not_found)
        if self.router.started:
            self.router.handle()
        else:
            self.router.start()
        return self.router

    def navigate(self, hash_: str) -> None:
        self.router.navigate(hash_)

    def intent(self, url_or_opts: str | Mapping[str, Any]) -> IntentBuilder:
        return IntentBuilder(self, normalize_intent_options(url_or_opts))

    async def run_intent(
        self,
        url: str,
        data: Mapping[str, Any] | None = None,
        *,
        parent: Branch | None = None,
    ) -> Intent:
        options = normalize_intent_options({"url": url, "data": data, "parent": parent})
        intent = Intent(self, options)
        await intent.run()
        return intent

    async def close(self) -> None:
        """Stop routing, destroy the tree and close the default fetcher."""
        self.router.stop()
        root, self._root = self._root, None
        if root is not None:
            root.destroy()
        for component in list(self._instances.values()):
            component.destroy()
        await self.settle()
        aclose = getattr(self.fetcher, "aclose", None)
        if aclose is not None:
            await aclose()
