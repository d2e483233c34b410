"""Perch — a lifecycle engine for trees of remotely loaded HTML components.

Components are fetched, rendered into a live BeautifulSoup document,
initialized, scanned for nested components and torn down as a unit.
A hash router remounts an outlet when the location changes.

Basic usage::

    from bs4 import BeautifulSoup
    from perch import Manager, PerchConfig

    doc = BeautifulSoup('<div id="app"></div>', "html.parser")
    async with Manager(PerchConfig(base_url="https://example.com"), document=doc) as manager:
        manager.root("#app", "/pages/home.html")
        await manager.settle()
        print(doc)

Markers inside fetched markup request child components::

    <div data-komponent="/widgets/clock.html|tz=UTC"></div>
"""

__version__ = "0.1.0-dev"
__all__ = [
    "Component",
    "ConcurrencyError",
    "ConfigurationError",
    "Context",
    "EventBus",
    "HashRouter",
    "HttpxFetcher",
    "InitError",
    "InitRegistry",
    "Intent",
    "Manager",
    "MemoryLocation",
    "Model",
    "MountOptions",
    "NetworkError",
    "ParseError",
    "PerchConfig",
    "PerchError",
    "State",
    "View",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "Manager":
        from perch.manager import Manager

        return Manager

    if name == "PerchConfig":
        from perch.config import PerchConfig

        return PerchConfig

    if name == "Component":
        from perch.component import Component

        return Component

    if name == "Intent":
        from perch.intent import Intent

        return Intent

    if name in ("Context", "State"):
        from perch import context as _ctx

        return getattr(_ctx, name)

    if name == "EventBus":
        from perch.events import EventBus

        return EventBus

    if name == "HttpxFetcher":
        from perch.fetch import HttpxFetcher

        return HttpxFetcher

    if name == "InitRegistry":
        from perch.payload import InitRegistry

        return InitRegistry

    if name == "MountOptions":
        from perch.options import MountOptions

        return MountOptions

    if name in ("HashRouter", "MemoryLocation"):
        from perch import routing as _routing

        return getattr(_routing, name)

    if name in ("Model", "View"):
        from perch.templating import views as _views

        return getattr(_views, name)

    if name in (
        "ConcurrencyError",
        "ConfigurationError",
        "InitError",
        "NetworkError",
        "ParseError",
        "PerchError",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
