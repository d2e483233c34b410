"""Per-component kernel: state machine, event relay, request guard, teardown.

A ``Context`` is the lifecycle facet of a component (or intent). It does
not keep its own parent/children lists: both are read through the owner,
so the component tree and the context tree can never drift apart.

State machine::

    initial -> loading -> rendering -> init -> ready
    (any state before ready) -> error
    (any) -> destroying -> destroyed

Request guard:
    Each ``request_text()`` call bumps a token and cancels the previous
    in-flight fetch. When a fetch completes or fails, the outcome is dropped
    (``None``) if the context was destroyed meanwhile or a newer request was
    issued.
    Cancellation is advisory; the token comparison is what guarantees that
    only the latest request is ever observed.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from perch.errors import NetworkError
from perch.events import EventBus

if TYPE_CHECKING:
    from perch.manager import Manager

logger = logging.getLogger("perch.context")


class State(StrEnum):
    INITIAL = "initial"
    LOADING = "loading"
    RENDERING = "rendering"
    INIT = "init"
    READY = "ready"
    ERROR = "error"
    DESTROYING = "destroying"
    DESTROYED = "destroyed"


@dataclass(slots=True)
class _Request:
    """The single request slot of a context."""

    token: int = 0
    handle: asyncio.Future[Any] | None = None


class Context:
    """Lifecycle kernel owned by exactly one component or intent."""

    __slots__ = (
        "_bus",
        "_destroyed",
        "_destroyers",
        "_request",
        "_state",
        "id",
        "manager",
        "owner",
        "ready",
    )

    def __init__(self, owner: Any = None, manager: Manager | None = None) -> None:
        self.id = f"k_{uuid.uuid4().hex[:12]}"
        self.owner = owner
        self.manager = manager
        self.ready = False
        self._destroyed = False
        self._state = State.INITIAL
        self._bus = EventBus()
        self._destroyers: list[Callable[[Context], Any]] = []
        self._request = _Request()

    def __repr__(self) -> str:
        return f"<Context {self.id} {self._state}>"

    # -- State ---------------------------------------------------------------

    @property
    def state(self) -> State:
        return self._state

    @state.setter
    def state(self, value: State) -> None:
        # Once teardown has started only the teardown states may follow.
        if self._destroyed and value not in (State.DESTROYING, State.DESTROYED):
            return
        self._state = State(value)
        self.trigger("state:change", {"state": self._state, "context": self})
        self.trigger(f"state:{self._state}", self)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    # -- Tree (read through the owner) ----------------------------------------

    @property
    def parent(self) -> Context | None:
        parent = getattr(self.owner, "parent", None)
        return parent.context if parent is not None else None

    @property
    def children(self) -> list[Context]:
        return [child.context for child in getattr(self.owner, "children", ())]

    # -- Events ----------------------------------------------------------------

    def on(self, event: str, fn: Callable[[Any], Any], ctx: Any = None) -> Context:
        self._bus.subscribe(event, fn, ctx if ctx is not None else self)
        return self

    def off(self, event: str, fn: Callable[[Any], Any], ctx: Any = None) -> Context:
        self._bus.unsubscribe(event, fn, ctx if ctx is not None else self)
        return self

    def trigger(self, event: str, payload: Any = None) -> Context:
        self._bus.emit(event, payload, self)
        return self

    def emit_up(self, event: str, payload: Any = None) -> Context:
        """Trigger ``event`` on every ancestor, nearest first."""
        parent = self.parent
        while parent is not None:
            parent.trigger(event, payload)
            parent = parent.parent
        return self

    def emit_root(self, event: str, payload: Any = None) -> Context:
        """Trigger ``event`` on the tree root's context only."""
        root = self.manager.root_context if self.manager is not None else None
        if root is not None:
            root.trigger(event, payload)
        return self

    def on_destroy(self, fn: Callable[[Context], Any]) -> Context:
        """Register a teardown callback. Callbacks run last-registered first."""
        if callable(fn):
            self._destroyers.append(fn)
        return self

    # -- Requests --------------------------------------------------------------

    def abort_request(self) -> None:
        handle = self._request.handle
        self._request.handle = None
        if handle is None:
            return
        try:
            handle.cancel()
        except Exception:
            logger.debug("cancelling request of %s failed", self.id, exc_info=True)

    def _is_stale(self, token: int) -> bool:
        return self._destroyed or token != self._request.token

    async def request_text(self, url: str, **options: Any) -> str | None:
        """Fetch ``url`` and return its body, or ``None`` if superseded.

        Raises ``NetworkError`` for a non-success status.
        """
        if self.manager is None:
            msg = "Context has no manager to fetch with"
            raise RuntimeError(msg)

        self._request.token += 1
        token = self._request.token
        self.abort_request()

        fetch_options = {**self.manager.config.fetch_options, **options}
        task = asyncio.ensure_future(self.manager.fetcher(url, **fetch_options))
        self._request.handle = task
        try:
            result = await task
        except asyncio.CancelledError:
            # Our own fetch was cancelled by a newer request or a destroy.
            if task.cancelled() and self._is_stale(token):
                return None
            raise
        except Exception:
            if self._is_stale(token):
                return None
            raise
        finally:
            if self._request.handle is task:
                self._request.handle = None

        if self._is_stale(token):
            return None
        if not result.ok:
            raise NetworkError(result.status, result.reason)
        return result.text

    # -- Teardown --------------------------------------------------------------

    def destroy(self) -> None:
        """Destroy this context together with its owner. Idempotent."""
        if self._destroyed:
            return
        owner = self.owner
        if owner is not None and not owner.destroyed:
            # The owner tears down its host and calls back into _teardown().
            owner.destroy()
            return
        self._teardown()

    def _teardown(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True

        self.state = State.DESTROYING
        self.trigger("context:destroy", self)

        self.abort_request()

        for child in list(getattr(self.owner, "children", ())):
            try:
                child.destroy()
            except Exception:
                logger.exception("destroying child of %s failed", self.id)

        destroyers = self._destroyers[::-1]
        self._destroyers = []
        for fn in destroyers:
            try:
                fn(self)
            except Exception:
                logger.exception("teardown callback of %s failed", self.id)

        self._bus.clear()
        self.ready = False
        self.state = State.DESTROYED
