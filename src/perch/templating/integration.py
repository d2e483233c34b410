"""Kida environment setup.

One environment is created per ``Manager`` and shared by every view it
binds. Fragments are compiled with ``Environment.from_string``.
"""

from collections.abc import Callable
from typing import Any

from kida import Environment


def create_environment(
    filters: dict[str, Callable[..., Any]] | None = None,
    globals_: dict[str, Any] | None = None,
    *,
    autoescape: bool = True,
) -> Environment:
    """Create the kida Environment used to render component views."""
    env = Environment(autoescape=autoescape)

    if filters:
        env.update_filters(filters)

    for name, value in (globals_ or {}).items():
        env.add_global(name, value)

    return env
