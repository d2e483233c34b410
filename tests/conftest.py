"""Shared fixtures for perch tests.

``site`` serves component markup through ``httpx.MockTransport`` so the
real ``HttpxFetcher`` is exercised end to end. ``scripted`` hands out one
future per request so tests control completion order exactly.
"""

import asyncio
from collections import Counter

import httpx
import pytest
from bs4 import BeautifulSoup

from perch.config import PerchConfig
from perch.fetch import FetchResult, HttpxFetcher
from perch.manager import Manager
from perch.payload import InitRegistry


class FakeSite:
    """In-memory pages keyed by url path, with optional gates."""

    def __init__(self) -> None:
        self.pages: dict[str, tuple[int, str]] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: Counter[str] = Counter()

    def add(self, path: str, markup: str, status: int = 200) -> None:
        self.pages["/" + path.lstrip("/")] = (status, markup)

    def hold(self, path: str) -> asyncio.Event:
        """Block responses for ``path`` until the returned event is set."""
        gate = asyncio.Event()
        self.gates["/" + path.lstrip("/")] = gate
        return gate

    def count(self, path: str) -> int:
        return self.calls["/" + path.lstrip("/")]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] += 1
        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()
        if path not in self.pages:
            return httpx.Response(404, text="not found")
        status, markup = self.pages[path]
        return httpx.Response(status, text=markup)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url="http://test",
            transport=httpx.MockTransport(self.handler),
        )


class ScriptedFetcher:
    """Fetcher whose requests complete only when a test resolves or fails them.

    With ``ignore_cancel`` the fetch keeps waiting after being cancelled,
    so outcomes of superseded requests still arrive.
    """

    def __init__(self, *, ignore_cancel: bool = False) -> None:
        self.ignore_cancel = ignore_cancel
        self.requests: list[tuple[str, asyncio.Future[FetchResult]]] = []
        self.cancelled: list[str] = []
        self.options: dict[str, dict[str, object]] = {}

    async def __call__(self, url: str, **options: object) -> FetchResult:
        future: asyncio.Future[FetchResult] = asyncio.get_running_loop().create_future()
        self.requests.append((url, future))
        self.options[url] = options
        if not self.ignore_cancel:
            return await future
        while True:
            try:
                return await asyncio.shield(future)
            except asyncio.CancelledError:
                self.cancelled.append(url)

    def _pending(self, url: str) -> asyncio.Future[FetchResult]:
        for requested, future in self.requests:
            if requested == url and not future.done():
                return future
        msg = f"no pending request for {url!r}"
        raise AssertionError(msg)

    def resolve(self, url: str, text: str, status: int = 200, reason: str = "OK") -> None:
        self._pending(url).set_result(FetchResult(status=status, reason=reason, text=text))

    def fail(self, url: str, exc: BaseException) -> None:
        self._pending(url).set_exception(exc)


@pytest.fixture
def site() -> FakeSite:
    return FakeSite()


@pytest.fixture
def scripted():
    """Factory for ``ScriptedFetcher`` instances."""
    return ScriptedFetcher


@pytest.fixture
def registry() -> InitRegistry:
    return InitRegistry()


@pytest.fixture
def document() -> BeautifulSoup:
    return BeautifulSoup(
        '<html><body><div id="app"></div><div id="side"></div></body></html>',
        "html.parser",
    )


@pytest.fixture
def config() -> PerchConfig:
    return PerchConfig()


@pytest.fixture
def manager(
    site: FakeSite,
    registry: InitRegistry,
    document: BeautifulSoup,
    config: PerchConfig,
) -> Manager:
    return Manager(
        config,
        document=document,
        fetcher=HttpxFetcher(site.client()),
        registry=registry,
    )
