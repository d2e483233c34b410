"""Tests for perch.manager — mounting, roots, scanning and shutdown."""

import pytest
from bs4 import BeautifulSoup

from perch.config import PerchConfig
from perch.context import State
from perch.errors import ConfigurationError
from perch.fetch import HttpxFetcher
from perch.manager import Manager
from perch.payload import InitRegistry


class TestMount:
    def test_missing_host_raises(self, manager: Manager) -> None:
        with pytest.raises(ConfigurationError):
            manager.mount("#nowhere", "a.html")

    def test_unknown_option_raises(self, manager: Manager) -> None:
        with pytest.raises(ConfigurationError):
            manager.mount("#app", {"url": "a.html", "colour": "red"})

    @pytest.mark.asyncio
    async def test_mount_by_tag(self, manager: Manager, site) -> None:
        site.add("a.html", "<p>a</p>")
        host = manager.document.find(id="side")
        component = await manager.mount(host, "a.html").wait()
        assert component.host is host
        assert manager.instance_for(host) is component

    @pytest.mark.asyncio
    async def test_replace_destroys_previous(self, manager: Manager, site) -> None:
        site.add("a.html", "<p>a</p>")
        site.add("b.html", "<p>b</p>")
        first = await manager.mount("#app", "a.html").wait()
        second = await manager.mount("#app", {"url": "b.html", "replace": True}).wait()

        assert first.destroyed
        assert second.ready
        assert manager.document.find(id="app").decode_contents() == "<p>b</p>"


class TestRoot:
    @pytest.mark.asyncio
    async def test_root_is_tracked(self, manager: Manager, site) -> None:
        site.add("a.html", "<p>a</p>")
        root = manager.root("#app", "a.html")
        assert manager.root_component is root
        assert manager.root_context is root.context
        await manager.settle()

    @pytest.mark.asyncio
    async def test_new_root_destroys_previous(self, manager: Manager, site) -> None:
        site.add("a.html", "<p>a</p>")
        site.add("b.html", "<p>b</p>")
        first = manager.root("#app", "a.html")
        await manager.settle()
        second = manager.root("#side", "b.html")
        await manager.settle()

        assert first.destroyed
        assert manager.root_component is second
        assert manager.document.find(id="app").decode_contents() == ""

    @pytest.mark.asyncio
    async def test_destroyed_root_is_forgotten(self, manager: Manager, site) -> None:
        site.add("a.html", "<p>a</p>")
        root = await manager.root("#app", "a.html").wait()
        root.destroy()
        assert manager.root_component is None
        assert manager.root_context is None


class TestScan:
    @pytest.mark.asyncio
    async def test_marker_data_then_attributes(self, site, registry: InitRegistry) -> None:
        document = BeautifulSoup(
            '<div id="app"><div data-komponent="w.html|x=1|y=1" data-x="2" data-user-id="7"></div></div>',
            "html.parser",
        )
        manager = Manager(document=document, fetcher=HttpxFetcher(site.client()), registry=registry)
        site.add("w.html", "<p>w</p>")

        mounted = manager.scan()
        await manager.settle()

        assert len(mounted) == 1
        assert dict(mounted[0].data) == {"x": "2", "y": "1", "user_id": "7"}
        assert mounted[0].url == "w.html"
        assert mounted[0].parent is None

    @pytest.mark.asyncio
    async def test_scan_twice_mounts_once(self, site) -> None:
        document = BeautifulSoup(
            '<div data-komponent="a.html"></div><div data-komponent="b.html"></div>',
            "html.parser",
        )
        manager = Manager(document=document, fetcher=HttpxFetcher(site.client()))
        site.add("a.html", "<p>a</p>")
        site.add("b.html", "<p>b</p>")

        first = manager.scan()
        second = manager.scan()
        await manager.settle()

        assert len(first) == 2
        assert second == []
        assert site.count("a.html") == 1
        assert site.count("b.html") == 1

    @pytest.mark.asyncio
    async def test_custom_marker_attr(self, site) -> None:
        document = BeautifulSoup('<div data-widget="a.html"></div>', "html.parser")
        manager = Manager(
            PerchConfig(marker_attr="data-widget"),
            document=document,
            fetcher=HttpxFetcher(site.client()),
        )
        site.add("a.html", "<p>a</p>")
        [component] = manager.scan()
        await component.wait()
        assert component.ready


class TestUrls:
    def test_relative_url_untouched(self) -> None:
        manager = Manager(PerchConfig(base_url="http://test/sub"))
        assert manager.resolve_url("a.html") == "a.html"
        assert manager.resolve_url("http://other/a.html") == "http://other/a.html"

    def test_root_relative_url_prefixed(self) -> None:
        manager = Manager(PerchConfig(base_url="http://test/sub/"))
        assert manager.resolve_url("/a.html") == "http://test/sub/a.html"

    @pytest.mark.asyncio
    async def test_base_url_used_for_fetch(self, site, document: BeautifulSoup) -> None:
        site.add("sub/a.html", "<p>sub</p>")
        manager = Manager(
            PerchConfig(base_url="http://test/sub"),
            document=document,
            fetcher=HttpxFetcher(site.client()),
        )
        component = await manager.mount("#app", "/a.html").wait()
        assert component.ready
        assert site.count("sub/a.html") == 1


class TestSettleAndClose:
    @pytest.mark.asyncio
    async def test_settle_without_work(self, manager: Manager) -> None:
        await manager.settle()

    @pytest.mark.asyncio
    async def test_settle_waits_for_nested_mounts(self, manager: Manager, site) -> None:
        site.add("root.html", '<div data-komponent="a.html"></div>')
        site.add("a.html", '<div data-komponent="b.html"></div>')
        site.add("b.html", "<p>deep</p>")
        root = manager.root("#app", "root.html")
        await manager.settle()
        assert [branch.state for branch in root.walk()] == [State.READY] * 3

    @pytest.mark.asyncio
    async def test_close_destroys_everything(self, site, document: BeautifulSoup) -> None:
        site.add("a.html", "<p>a</p>")
        site.add("b.html", "<p>b</p>")
        async with Manager(document=document, fetcher=HttpxFetcher(site.client())) as manager:
            root = manager.root("#app", "a.html")
            other = manager.mount("#side", "b.html")
            await manager.settle()

        assert root.destroyed
        assert other.destroyed
        assert manager.root_component is None
        assert manager._instances == {}

    @pytest.mark.asyncio
    async def test_close_stops_router(self, manager: Manager, site) -> None:
        site.add("home.html", "<p>home</p>")
        manager.route("#app", {"/": "home.html"})
        await manager.settle()
        await manager.close()
        assert not manager.router.started
