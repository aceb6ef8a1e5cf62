"""Tests for the pause/stop session glue."""

from __future__ import annotations

import pytest

from debugctx.core.collector import DebugContextCollector
from debugctx.core.models import ContextKind
from debugctx.session import DebugContextSession
from tests.fakes import FakeBackend
from tests.fakes import FakeFrame
from tests.fakes import FakeStack
from tests.fakes import FakeValue
from tests.fakes import Scheduler
from tests.fakes import leaf


def paused_backend(scheduler=None) -> FakeBackend:
    exc = FakeValue("Boom", "BoomException", [("message", leaf("boom", scheduler=scheduler))], scheduler=scheduler)
    frame = FakeFrame([("e", exc)], file="/src/Main.java", line=3, scheduler=scheduler)
    return FakeBackend(FakeStack([frame], scheduler=scheduler), frame)


class TestPaused:
    def test_emits_all_three_items(self, scheduler: Scheduler) -> None:
        session = DebugContextSession()
        received = []
        session.on_context.add_listener(received.append)

        session.paused(paused_backend(scheduler))
        scheduler.settle()

        assert sorted(item.kind.value for item in received) == ["EXCEPTION", "SNAPSHOT", "STACK"]
        assert all(item.success for item in received)
        assert session.collector.latest_exception().message == "boom"

    def test_without_active_frame(self) -> None:
        session = DebugContextSession()
        received = []
        session.on_context.add_listener(received.append)

        session.paused(FakeBackend(FakeStack([FakeFrame()])))

        by_kind = {item.kind: item for item in received}
        assert by_kind[ContextKind.STACK].success
        assert not by_kind[ContextKind.SNAPSHOT].success
        assert by_kind[ContextKind.EXCEPTION].payload is None

    def test_listener_errors_do_not_stop_collection(self) -> None:
        session = DebugContextSession()
        received = []

        def broken(item) -> None:
            raise RuntimeError("listener bug")

        session.on_context.add_listener(broken)
        session.on_context.add_listener(received.append)

        session.paused(paused_backend())

        assert len(received) == 3

    def test_stopped_clears_results(self) -> None:
        collector = DebugContextCollector()
        session = DebugContextSession(collector)
        session.paused(paused_backend())

        session.stopped()

        assert collector.latest_stack() == []
        assert collector.latest_snapshot() == []
        assert collector.latest_exception() is None


class TestCollectAll:
    @pytest.mark.asyncio
    async def test_collect_all(self) -> None:
        session = DebugContextSession()

        stack, snapshot, exception = await session.collect_all(paused_backend(Scheduler("threaded")))

        assert stack.kind is ContextKind.STACK
        assert snapshot.payload[0].name == "e"
        assert exception.payload.message == "boom"

    @pytest.mark.asyncio
    async def test_collect_all_without_frame(self) -> None:
        session = DebugContextSession()

        stack, snapshot, exception = await session.collect_all(FakeBackend())

        assert not stack.success
        assert not snapshot.success
        assert exception.payload is None
