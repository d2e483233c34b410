"""Perch exception hierarchy.

Shared across the manager, components, intents and the router so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when a host target or an option is invalid.

    Typically a selector that matches no element, or more than one.
    """


@dataclass(frozen=True, slots=True)
class NetworkError(PerchError):
    """A fetch that completed with a non-success status.

    Raised by ``Context.request_text()``. The component pipeline catches
    it and renders the error fallback into the host.
    """

    status: int
    reason: str = ""

    def __str__(self) -> str:
        if self.reason:
            return f"HTTP {self.status} {self.reason}"
        return f"HTTP {self.status}"


class ParseError(PerchError):
    """Fetched markup could not be turned into a fragment + init pair.

    Raised for unparseable payloads and for init names that are not
    registered in the ``InitRegistry``.
    """


class InitError(PerchError):
    """An init callback raised while a component or intent was starting."""

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"init failed for {url!r}: {cause}")
        self.url = url
        self.cause = cause


class ConcurrencyError(PerchError):
    """A host is already mounting. Only raised when ``debug`` is on."""
