"""Fetched payload -> fragment + init callback.

Fetched markup is never executed. Every ``<script>`` block is stripped from
the fragment; a block carrying ``data-init`` names the init callback to run,
and that name is looked up in an ``InitRegistry``::

    <div class="card">{{ title }}</div>
    <script data-init="cards.detail"></script>

    registry = InitRegistry()

    @registry.register("cards.detail")
    async def init_card(component, data):
        data["title"] = await load_title(data["id"])

Init callbacks may be sync or async and are called as ``init(owner, data)``.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup

from perch.dom import parse_fragment
from perch.errors import ParseError

InitCallback = Callable[[Any, Any], Any]

_TEMPLATE_MARKERS = ("{{", "{%")
_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)


class InitRegistry:
    """Named init callbacks, resolved by ``<script data-init="name">``."""

    __slots__ = ("_inits",)

    def __init__(self) -> None:
        self._inits: dict[str, InitCallback] = {}

    def register(self, name: str, fn: InitCallback | None = None) -> Any:
        """Register ``fn`` under ``name``. Usable as a decorator."""
        if fn is None:

            def decorator(func: InitCallback) -> InitCallback:
                self._inits[name] = func
                return func

            return decorator
        self._inits[name] = fn
        return fn

    def get(self, name: str) -> InitCallback | None:
        return self._inits.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._inits

    def __len__(self) -> int:
        return len(self._inits)


@dataclass(frozen=True, slots=True)
class Payload:
    """A parsed component payload.

    ``source`` is the fetched text with script blocks removed and otherwise
    unchanged. Templated views compile it, not the parsed fragment.
    """

    fragment: BeautifulSoup
    source: str = ""
    init: InitCallback | None = None
    init_name: str | None = None

    @property
    def templated(self) -> bool:
        """Whether the markup carries kida expressions to bind."""
        source = self.source
        return any(marker in source for marker in _TEMPLATE_MARKERS)


def parse_payload(text: str, registry: InitRegistry) -> Payload:
    """Strip script blocks and resolve the declared init callback.

    Raises ``ParseError`` when the markup cannot be parsed, when two
    different init names are declared, or when the name is not registered.
    """
    text = str(text)
    try:
        fragment = parse_fragment(text)
    except Exception as exc:
        msg = f"Could not parse payload: {exc}"
        raise ParseError(msg) from exc

    init_name: str | None = None
    for script in fragment.find_all("script"):
        name = script.get("data-init")
        if name:
            if init_name is not None and name != init_name:
                msg = f"Payload declares two init callbacks: {init_name!r} and {name!r}"
                raise ParseError(msg)
            init_name = name
        script.decompose()

    init = None
    if init_name is not None:
        init = registry.get(init_name)
        if init is None:
            msg = f"Unknown init callback: {init_name!r}"
            raise ParseError(msg)

    return Payload(
        fragment=fragment,
        source=_SCRIPT_RE.sub("", text),
        init=init,
        init_name=init_name,
    )
