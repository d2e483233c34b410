"""Hash routing: ordered patterns, an injectable location, outlet remounts."""

from perch.routing.location import LocationSource, MemoryLocation
from perch.routing.route import Route, RouteMatch, compile_pattern
from perch.routing.router import HashRouter

__all__ = [
    "HashRouter",
    "LocationSource",
    "MemoryLocation",
    "Route",
    "RouteMatch",
    "compile_pattern",
]
