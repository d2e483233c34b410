"""Document helpers over BeautifulSoup.

The live document is a ``bs4.BeautifulSoup`` tree and every host slot is
a ``bs4.Tag``. These helpers keep the tree manipulation the rest of perch
needs in one place: host lookup, fragment parsing and cloning, the three
render policies, and marker discovery.
"""

import copy
import re

from bs4 import BeautifulSoup
from bs4.element import PageElement, Tag

from perch.errors import ConfigurationError

_HYPHEN_RE = re.compile(r"-+")


def parse_fragment(markup: str) -> BeautifulSoup:
    """Parse markup into a detached fragment."""
    return BeautifulSoup(markup, "html.parser")


def new_element(name: str) -> Tag:
    return BeautifulSoup("", "html.parser").new_tag(name)


def resolve_host(document: Tag, host: Tag | str | None) -> Tag:
    """Resolve a host target to exactly one element.

    Strings are CSS selectors evaluated against ``document``.
    Raises ``ConfigurationError`` for missing, ambiguous or invalid targets.
    """
    if host is None:
        msg = "Invalid host: None"
        raise ConfigurationError(msg)
    if isinstance(host, Tag):
        return host
    if isinstance(host, str):
        matches = document.select(host)
        if not matches:
            msg = f"Host not found: {host!r}"
            raise ConfigurationError(msg)
        if len(matches) > 1:
            msg = f"Host selector {host!r} matched {len(matches)} elements, expected one"
            raise ConfigurationError(msg)
        return matches[0]
    msg = f"Invalid host type: {type(host).__name__}"
    raise ConfigurationError(msg)


def render_children(host: Tag, fragment: Tag, *, append: bool = False) -> list[PageElement]:
    """Copy the fragment into ``host``, replacing its children unless ``append``.

    Returns the inserted nodes.
    """
    clone = copy.copy(fragment)
    if not append:
        host.clear()
    inserted = list(clone.contents)
    for node in inserted:
        host.append(node.extract())
    return inserted


def swap_nodes(host: Tag, old: list[PageElement], fragment: Tag) -> list[PageElement]:
    """Put a copy of the fragment where ``old`` sits in ``host`` and drop ``old``.

    Nodes of ``old`` that were already moved out of ``host`` are ignored.
    Returns the inserted nodes.
    """
    clone = copy.copy(fragment)
    inserted = [node.extract() for node in list(clone.contents)]
    anchor = next((node for node in old if node.parent is host), None)
    for node in inserted:
        if anchor is None:
            host.append(node)
        else:
            anchor.insert_before(node)
    for node in old:
        if node.parent is host:
            node.extract()
    return inserted


def replace_host(host: Tag, fragment: Tag) -> Tag:
    """Swap ``host`` for the fragment's root element and return the new root.

    A fragment with a single top-level element uses it as the root;
    anything else is wrapped in a ``<div>``. The host's ``id`` carries over
    so selectors such as ``#app`` keep working.
    """
    clone = copy.copy(fragment)
    elements = [node for node in clone.contents if isinstance(node, Tag)]
    if len(elements) == 1:
        new_root = elements[0].extract()
    else:
        new_root = new_element("div")
        for node in list(clone.contents):
            new_root.append(node.extract())
    if host.get("id"):
        new_root["id"] = host["id"]
    host.replace_with(new_root)
    return new_root


def set_markup(host: Tag, markup: str) -> list[PageElement]:
    """Replace the children of ``host`` with parsed ``markup``."""
    return render_children(host, parse_fragment(markup))


def find_markers(container: Tag, attr: str) -> list[Tag]:
    """Markers below ``container`` that are not nested inside another marker.

    Nested markers belong to the component mounted on their enclosing
    marker and are found by that component's own scan.
    """
    found: list[Tag] = []
    for child in container.children:
        if not isinstance(child, Tag):
            continue
        if child.has_attr(attr):
            found.append(child)
        else:
            found.extend(find_markers(child, attr))
    return found


def data_attributes(element: Tag, exclude: str | None = None) -> dict[str, str]:
    """``data-*`` attributes as snake_case keys (``data-user-id`` -> ``user_id``)."""
    out: dict[str, str] = {}
    for name, value in element.attrs.items():
        if name == exclude or not name.startswith("data-"):
            continue
        key = _HYPHEN_RE.sub("_", name[5:]).lower()
        out[key] = " ".join(value) if isinstance(value, list) else value
    return out
