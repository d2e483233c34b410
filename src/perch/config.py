"""Manager configuration.

PerchConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

import html
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any


def default_error_html(url: str, error: BaseException) -> str:
    """Fallback markup rendered into a host whose mount failed."""
    return (
        '<div class="perch-error" style="padding:8px;border:1px solid #c00;background:#fee">'
        f"Failed to load <b>{html.escape(url)}</b></div>"
    )


@dataclass(frozen=True, slots=True)
class PerchConfig:
    """Manager configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = PerchConfig(debug=True, base_url="https://cdn.example.com")
    """

    # Verbose logging + strict concurrency errors
    debug: bool = False

    # Prefix applied to root-relative urls ("/a.html")
    base_url: str | None = None

    # Busy marker
    overlay_class: str = "perch-overlay"
    overlay_html: str = "<div class='perch-overlay-label'>Loading</div>"

    # Scanning
    marker_attr: str = "data-komponent"

    # Error fallback: (url, error) -> markup
    error_html: Callable[[str, BaseException], str] = default_error_html

    # Extra keyword arguments forwarded to every fetch (headers, timeout, ...)
    fetch_options: Mapping[str, Any] = field(default_factory=dict)
