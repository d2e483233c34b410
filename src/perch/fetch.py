"""Cancellable text fetching.

A fetcher is any async callable ``fetcher(url, **options) -> FetchResult``.
``Context.request_text()`` runs it inside its own asyncio task so a newer
request (or a destroy) can cancel it.

The default ``HttpxFetcher`` wraps an ``httpx.AsyncClient``. Pass your own
client to share connection pools, set a ``base_url`` or plug in a
``MockTransport`` for tests::

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    manager = Manager(fetcher=HttpxFetcher(client))
"""

from dataclasses import dataclass
from typing import Any, Protocol

import httpx


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Status line and body of a completed fetch."""

    status: int
    reason: str
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Fetcher(Protocol):
    async def __call__(self, url: str, **options: Any) -> FetchResult: ...


class HttpxFetcher:
    """Fetch component markup over HTTP with httpx.

    When no client is given one is created lazily and owned by the
    fetcher; ``aclose()`` closes it. A client passed in is left alone.
    """

    __slots__ = ("_client", "_client_options", "_owns_client")

    def __init__(self, client: httpx.AsyncClient | None = None, **client_options: Any) -> None:
        self._client = client
        self._client_options = client_options
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True, **self._client_options)
        return self._client

    async def __call__(self, url: str, **options: Any) -> FetchResult:
        response = await self.client.get(url, **options)
        return FetchResult(
            status=response.status_code,
            reason=response.reason_phrase,
            text=response.text,
        )

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
