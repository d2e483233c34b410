"""Scoped publish/subscribe.

Every ``Context`` owns one ``EventBus``. Subscribers are kept per event
name in registration order. ``emit()`` dispatches over a snapshot so a
handler that subscribes or unsubscribes only affects the next round.

Handlers are plain callables taking the payload. The ctx a handler was
registered with (or the ``default_ctx`` passed to ``emit()``) is available
to the running handler through ``current_ctx``::

    from perch.events import current_ctx

    def on_ready(payload):
        ctx = current_ctx.get()
"""

import logging
from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("perch.events")

current_ctx: ContextVar[Any] = ContextVar("perch_current_ctx", default=None)
"""The ctx of the handler currently being dispatched."""


@dataclass(frozen=True, slots=True)
class Subscriber:
    """A single registration on the bus."""

    fn: Callable[[Any], Any]
    ctx: Any = None


class EventBus:
    """Insertion-ordered, exception-isolating event bus.

    Usage::

        bus = EventBus()
        bus.subscribe("state:ready", on_ready)
        bus.emit("state:ready", ctx)
    """

    __slots__ = ("_subscribers",)

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = {}

    def subscribe(self, event: str, fn: Callable[[Any], Any], ctx: Any = None) -> None:
        """Register ``fn`` for ``event``. Non-callables are ignored."""
        if not callable(fn):
            return
        self._subscribers.setdefault(event, []).append(Subscriber(fn, ctx))

    def unsubscribe(self, event: str, fn: Callable[[Any], Any], ctx: Any = None) -> None:
        """Remove registrations of ``fn``.

        With ``ctx`` only the registrations made with that same ctx go away.
        """
        subs = self._subscribers.get(event)
        if not subs:
            return
        self._subscribers[event] = [
            s for s in subs if not (s.fn == fn and (ctx is None or s.ctx is ctx))
        ]

    def emit(self, event: str, payload: Any = None, default_ctx: Any = None) -> None:
        """Call every handler of ``event`` with ``payload``.

        A handler that raises is logged and skipped; it never stops the
        remaining handlers or propagates to the caller.
        """
        subs = self._subscribers.get(event)
        if not subs:
            return
        for sub in list(subs):
            token = current_ctx.set(sub.ctx if sub.ctx is not None else default_ctx)
            try:
                sub.fn(payload)
            except Exception:
                logger.exception("handler for %r failed", event)
            finally:
                current_ctx.reset(token)

    def listeners(self, event: str) -> int:
        """Number of handlers registered for ``event``."""
        return len(self._subscribers.get(event, ()))

    def clear(self) -> None:
        self._subscribers.clear()
