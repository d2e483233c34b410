"""Mount option normalization.

Components can be requested three ways, all normalized to ``MountOptions``:

- a marker string: ``"/users/card.html|id=5|compact"``
- a mapping: ``{"url": "/users/card.html|id=5", "data": {"id": 7}}``
- a ``MountOptions`` instance

Marker values are strings (a bare key maps to ``None``). Explicit ``data``
always wins over values embedded in the url.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from perch.errors import ConfigurationError


def parse_marker(text: str | None) -> tuple[str, dict[str, str | None]]:
    """Split a marker string into its url and key/value data.

    Examples::

        "a.html"            -> ("a.html", {})
        "a.html|x=1|y="     -> ("a.html", {"x": "1", "y": ""})
        "a.html|flag"       -> ("a.html", {"flag": None})
    """
    if not text:
        return "", {}
    url, *pairs = str(text).split("|")
    data: dict[str, str | None] = {}
    for pair in pairs:
        if not pair:
            continue
        key, sep, value = pair.partition("=")
        data[key] = value if sep else None
    return url, data


@dataclass(slots=True)
class MountOptions:
    """Normalized options of one component mount."""

    url: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    parent: Any = None
    replace: bool = False
    # Swap the host element itself for the component's root element
    replace_host: bool = False
    # Append the fragment after the host's existing children
    append: bool = False
    # Scan for nested markers once ready
    autoload: bool = True
    overlay: bool = True
    replace_existing_children: bool = False

    def merged(self, **changes: Any) -> MountOptions:
        """Return a copy with ``changes`` applied (data is copied too)."""
        changes.setdefault("data", dict(self.data))
        return dataclasses.replace(self, **changes)


_FIELDS = frozenset(f.name for f in dataclasses.fields(MountOptions))


def normalize_options(opts: str | Mapping[str, Any] | MountOptions | None) -> MountOptions:
    """Normalize any accepted mount request into ``MountOptions``."""
    if isinstance(opts, MountOptions):
        return opts.merged()
    if opts is None:
        return MountOptions()
    if isinstance(opts, str):
        url, data = parse_marker(opts)
        return MountOptions(url=url, data=data)
    if not isinstance(opts, Mapping):
        msg = f"Mount options must be a string, mapping or MountOptions, got {type(opts).__name__}"
        raise ConfigurationError(msg)

    unknown = set(opts) - _FIELDS
    if unknown:
        msg = f"Unknown mount option(s): {', '.join(sorted(unknown))}"
        raise ConfigurationError(msg)

    values = dict(opts)
    url, marker_data = parse_marker(values.pop("url", "") or "")
    explicit = values.pop("data", None) or {}
    return MountOptions(url=url, data={**marker_data, **explicit}, **values)


@dataclass(slots=True)
class IntentOptions:
    url: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    parent: Any = None


def normalize_intent_options(opts: str | Mapping[str, Any] | None) -> IntentOptions:
    """Intents only take a url, data and an optional parent."""
    if isinstance(opts, str):
        url, data = parse_marker(opts)
        return IntentOptions(url=url, data=data)
    if isinstance(opts, Mapping):
        url, marker_data = parse_marker(opts.get("url") or "")
        return IntentOptions(
            url=url,
            data={**marker_data, **(opts.get("data") or {})},
            parent=opts.get("parent"),
        )
    return IntentOptions()
