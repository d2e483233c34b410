"""Hash router — remounts an outlet when the location changes.

Routes are kept in registration order and matched first-match-wins: a
pattern registered earlier beats a more specific one registered later::

    router.configure(
        outlet="#app",
        routes={"/users/:id": "user.html", "/users/new": "new-user.html"},
    )
    router.match("#/users/new").url   # "user.html", params {"id": "new"}

On every location change the outlet is remounted with ``replace=True``
and ``{"route": {"hash": ..., "params": ...}}`` merged into its data.
``navigate()`` only writes the location; the change notification it
triggers is what remounts the outlet.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from bs4.element import Tag

from perch.errors import ConfigurationError
from perch.routing.location import LocationSource, MemoryLocation, normalize_hash
from perch.routing.route import Route, RouteMatch

if TYPE_CHECKING:
    from perch.component import Component
    from perch.manager import Manager

logger = logging.getLogger("perch.router")

RouteTable = Mapping[str, str] | Iterable[Route | Mapping[str, str] | tuple[str, str]]


class HashRouter:
    """Ordered route table driving ``Manager.mount`` on one outlet."""

    __slots__ = ("_unsubscribe", "location", "manager", "not_found", "outlet", "routes")

    def __init__(self, manager: Manager, location: LocationSource | None = None) -> None:
        self.manager = manager
        self.location: LocationSource = location if location is not None else MemoryLocation()
        self.routes: list[Route] = []
        self.outlet: Tag | str = "#app"
        self.not_found: str | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def configure(
        self,
        outlet: Tag | str = "#app",
        routes: RouteTable | None = None,
        not_found: str | None = None,
    ) -> HashRouter:
        """Replace the route table, outlet and not-found target."""
        self.outlet = outlet
        self.not_found = not_found
        self.routes = []
        if routes is None:
            return self
        if isinstance(routes, Mapping):
            for pattern, url in routes.items():
                self.add(pattern, url)
            return self
        for entry in routes:
            if isinstance(entry, Route):
                self.routes.append(entry)
            elif isinstance(entry, Mapping):
                self.add(entry["path"], entry["url"])
            elif isinstance(entry, tuple) and len(entry) == 2:
                self.add(*entry)
            else:
                msg = f"Invalid route entry: {entry!r}"
                raise ConfigurationError(msg)
        return self

    def add(self, pattern: str, url: str) -> HashRouter:
        self.routes.append(Route.compile(pattern, url))
        return self

    def match(self, hash_: str) -> RouteMatch | None:
        """First route (in registration order) matching ``hash_``."""
        for route in self.routes:
            matched = route.match(hash_)
            if matched is not None:
                return matched
        return None

    def start(self) -> HashRouter:
        """Listen for location changes and route the current location."""
        if self.started:
            return self
        self._unsubscribe = self.location.subscribe(self._changed)
        self.handle()
        return self

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def navigate(self, hash_: str) -> None:
        self.location.set_hash(hash_)

    def _changed(self, _hash: str) -> None:
        self.handle()

    def handle(self) -> Component | None:
        """Route the current location onto the outlet."""
        hash_ = normalize_hash(self.location.hash)
        matched = self.match(hash_)
        if matched is not None:
            url = matched.url
            data: dict[str, Any] = {"route": matched.as_data()}
        elif self.not_found:
            url = self.not_found
            data = {"route": {"hash": hash_, "params": {}}}
        else:
            logger.debug("no route for %s", hash_)
            return None

        self.manager.log("route %s -> %s", hash_, url)
        outlet = self.manager.resolve_host(self.outlet)
        return self.manager.mount(
            outlet,
            {"url": url, "data": data, "replace": True, "parent": None},
        )
