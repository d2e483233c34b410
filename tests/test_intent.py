"""Tests for perch.intent — headless components."""

import pytest

from perch.component import Component
from perch.context import State
from perch.errors import ConfigurationError
from perch.intent import Intent
from perch.manager import Manager
from perch.payload import InitRegistry


class TestRunIntent:
    @pytest.mark.asyncio
    async def test_runs_init_without_touching_document(
        self, manager: Manager, site, registry: InitRegistry
    ) -> None:
        seen: list[tuple[object, str]] = []

        @registry.register("modal")
        def init_modal(intent: Intent, data: dict) -> None:
            seen.append((intent.host, data["id"]))

        site.add("modal.html", '<div class="modal">hi</div><script data-init="modal"></script>')
        before = manager.document.decode()

        intent = await manager.run_intent("modal.html", {"id": "1"})

        assert intent.state == State.READY
        assert intent.ready
        assert seen == [(None, "1")]
        assert manager.document.decode() == before
        assert intent.fragment is not None
        assert intent.fragment.find(class_="modal") is not None
        assert intent.fragment.find("script") is None

    @pytest.mark.asyncio
    async def test_fetch_failure_ends_in_error(self, manager: Manager) -> None:
        intent = await manager.run_intent("missing.html")
        assert intent.state == State.ERROR
        assert intent.fragment is None

    @pytest.mark.asyncio
    async def test_missing_url_ends_in_error(self, manager: Manager, site) -> None:
        intent = await manager.intent({"data": {"a": 1}}).send()
        assert intent.state == State.ERROR
        assert sum(site.calls.values()) == 0


class TestIntentBuilder:
    @pytest.mark.asyncio
    async def test_data_merging(self, manager: Manager, site) -> None:
        site.add("m.html", "<p>m</p>")
        intent = await (
            manager.intent("m.html|id=1|source=url")
            .data({"source": "list"})
            .data("extra", 3)
            .data(flag=True)
            .send()
        )
        assert intent.data.to_dict() == {"id": "1", "source": "list", "extra": 3, "flag": True}

    @pytest.mark.asyncio
    async def test_parent_cascade(self, manager: Manager, site) -> None:
        site.add("page.html", "<p>page</p>")
        site.add("m.html", "<p>m</p>")
        page = await manager.mount("#app", "page.html").wait()

        intent = await manager.intent("m.html").send(parent=page)
        assert intent.parent is page
        assert intent in page.children
        assert intent.context.parent is page.context

        page.destroy()
        assert intent.destroyed
        assert intent.state == State.DESTROYED

    @pytest.mark.asyncio
    async def test_intent_events_bubble_to_component(
        self, manager: Manager, site, registry: InitRegistry
    ) -> None:
        @registry.register("notify")
        def init_notify(intent: Intent, data: dict) -> None:
            intent.context.emit_up("saved", data["id"])

        site.add("page.html", "<p>page</p>")
        site.add("n.html", '<script data-init="notify"></script>')
        page = await manager.mount("#app", "page.html").wait()
        received: list[object] = []
        page.context.on("saved", received.append)

        await manager.intent("n.html|id=9").send(parent=page)
        assert received == ["9"]

    @pytest.mark.asyncio
    async def test_destroyed_parent_rejected(self, manager: Manager, site) -> None:
        site.add("page.html", "<p>page</p>")
        page: Component = await manager.mount("#app", "page.html").wait()
        page.destroy()
        with pytest.raises(ConfigurationError):
            await manager.intent("m.html").send(parent=page)

    @pytest.mark.asyncio
    async def test_non_branch_parent_rejected(self, manager: Manager) -> None:
        with pytest.raises(ConfigurationError):
            await manager.intent("m.html").send(parent=object())  # type: ignore[arg-type]
