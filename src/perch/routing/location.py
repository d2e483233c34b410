"""Location sources for the hash router.

The router never touches a process-wide location. It reads and writes a
``LocationSource``, so tests and embedders can drive navigation directly.

``MemoryLocation`` delivers change notifications on the next loop
iteration (like a browser's ``hashchange``). Several changes made in the
same iteration are coalesced into one notification carrying the latest
hash.
"""

import asyncio
from collections.abc import Callable
from typing import Any, Protocol

from perch.events import EventBus

DEFAULT_HASH = "#/"


def normalize_hash(value: str | None) -> str:
    """``""``/``None`` -> ``"#/"``; ``"/a"`` -> ``"#/a"``."""
    if not value or value == "#":
        return DEFAULT_HASH
    return value if value.startswith("#") else f"#{value}"


class LocationSource(Protocol):
    @property
    def hash(self) -> str: ...

    def set_hash(self, value: str) -> None: ...

    def subscribe(self, fn: Callable[[str], Any]) -> Callable[[], None]:
        """Register a change listener and return its unsubscribe function."""
        ...


class MemoryLocation:
    """In-memory location with asynchronous change events."""

    __slots__ = ("_bus", "_hash", "_pending")

    def __init__(self, initial: str = DEFAULT_HASH) -> None:
        self._hash = normalize_hash(initial)
        self._bus = EventBus()
        self._pending = False

    @property
    def hash(self) -> str:
        return self._hash

    def set_hash(self, value: str) -> None:
        value = normalize_hash(value)
        if value == self._hash:
            return
        self._hash = value
        self._schedule()

    def subscribe(self, fn: Callable[[str], Any]) -> Callable[[], None]:
        self._bus.subscribe("change", fn)
        return lambda: self._bus.unsubscribe("change", fn)

    def _schedule(self) -> None:
        if self._pending:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (plain sync code): notify right away.
            self._notify()
            return
        self._pending = True
        loop.call_soon(self._notify)

    def _notify(self) -> None:
        self._pending = False
        self._bus.emit("change", self._hash)
