"""Busy marker shown inside a host while its component loads."""

from typing import Any

from bs4 import Tag

from perch.config import PerchConfig
from perch.dom import new_element, parse_fragment


class Overlay:
    """Inserts ``<div class="{overlay_class}">{overlay_html}</div>`` as the
    first child of a loading component's host and removes it again."""

    __slots__ = ("_config", "_elements")

    def __init__(self, config: PerchConfig) -> None:
        self._config = config
        self._elements: dict[int, Tag] = {}

    def show(self, component: Any) -> None:
        host = component.host
        if host is None:
            return
        current = self._elements.get(id(component))
        if current is not None and current.parent is not None:
            return
        element = new_element("div")
        element["class"] = self._config.overlay_class
        for node in list(parse_fragment(self._config.overlay_html).contents):
            element.append(node.extract())
        host.insert(0, element)
        self._elements[id(component)] = element

    def hide(self, component: Any) -> None:
        element = self._elements.pop(id(component), None)
        if element is not None and element.parent is not None:
            element.extract()

    def is_shown(self, component: Any) -> bool:
        element = self._elements.get(id(component))
        return element is not None and element.parent is not None
