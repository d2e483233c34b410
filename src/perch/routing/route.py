"""Route and RouteMatch frozen dataclasses, plus the pattern compiler."""

import re
from dataclasses import dataclass, field
from typing import Any

_PARAM_RE = re.compile(r":([A-Za-z0-9_]+)")


def strip_hash(text: str) -> str:
    return text[1:] if text.startswith("#") else text


def compile_pattern(pattern: str) -> tuple[re.Pattern[str], tuple[str, ...]]:
    """Compile a route pattern into an anchored regex and its parameter names.

    ``:name`` segments capture a run of non-``/`` characters; everything
    else matches literally. A leading ``#`` is ignored::

        "#/users/:id"        -> ^/users/([^/]+)$, ("id",)
        "/files/:dir/:name"  -> ^/files/([^/]+)/([^/]+)$, ("dir", "name")
    """
    path = strip_hash(pattern)
    keys: list[str] = []
    parts = ["^"]
    pos = 0
    for m in _PARAM_RE.finditer(path):
        parts.append(re.escape(path[pos : m.start()]))
        parts.append("([^/]+)")
        keys.append(m.group(1))
        pos = m.end()
    parts.append(re.escape(path[pos:]))
    parts.append("$")
    return re.compile("".join(parts)), tuple(keys)


@dataclass(frozen=True, slots=True)
class Route:
    """A compiled route. Created with ``Route.compile(pattern, url)``."""

    pattern: str
    url: str
    regex: re.Pattern[str] = field(repr=False)
    keys: tuple[str, ...] = ()

    @classmethod
    def compile(cls, pattern: str, url: str) -> "Route":
        regex, keys = compile_pattern(pattern)
        return cls(pattern=pattern, url=url, regex=regex, keys=keys)

    def match(self, hash_: str) -> "RouteMatch | None":
        m = self.regex.match(strip_hash(hash_))
        if m is None:
            return None
        return RouteMatch(route=self, hash=hash_, params=dict(zip(self.keys, m.groups(), strict=True)))


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    hash: str
    params: dict[str, str]

    @property
    def url(self) -> str:
        return self.route.url

    def as_data(self) -> dict[str, Any]:
        """The ``route`` entry injected into the mounted component's data."""
        return {"hash": self.hash, "params": dict(self.params)}
