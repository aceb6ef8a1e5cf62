"""Tests for the latest-result store."""

import threading
import typing

from debugctx.core import models
from debugctx.core.models import ContextKind
from debugctx.core.models import ExceptionDetail
from debugctx.core.models import SnapshotItem
from debugctx.core.models import StackItem
from debugctx.core.result_store import LatestResultStore


class TestLatestResultStore:
    def test_starts_empty(self) -> None:
        store = LatestResultStore()
        assert store.latest_snapshot() == []
        assert store.latest_stack() == []
        assert store.latest_exception() is None

    def test_accessors_declare_model_types(self) -> None:
        def returns(method):
            return typing.get_type_hints(method, localns=vars(models))["return"]

        assert set(typing.get_args(returns(LatestResultStore.latest_exception))) == {ExceptionDetail, type(None)}
        assert returns(LatestResultStore.latest_snapshot) == list[SnapshotItem]
        assert returns(LatestResultStore.latest_stack) == list[StackItem]

    def test_publish_replaces_slot(self) -> None:
        store = LatestResultStore()
        ticket = store.begin(ContextKind.STACK)

        assert store.publish(ContextKind.STACK, ticket, [StackItem("/a.py", 1)])
        assert store.latest_stack() == [StackItem("/a.py", 1)]
        assert store.latest_snapshot() == []

    def test_stale_ticket_is_dropped(self) -> None:
        store = LatestResultStore()
        older = store.begin(ContextKind.SNAPSHOT)
        newer = store.begin(ContextKind.SNAPSHOT)

        assert store.publish(ContextKind.SNAPSHOT, newer, [SnapshotItem("new")])
        assert not store.publish(ContextKind.SNAPSHOT, older, [SnapshotItem("old")])
        assert [i.name for i in store.latest_snapshot()] == ["new"]

    def test_kinds_have_independent_slots(self) -> None:
        store = LatestResultStore()
        snapshot_ticket = store.begin(ContextKind.SNAPSHOT)
        exception_ticket = store.begin(ContextKind.EXCEPTION)

        assert store.publish(ContextKind.EXCEPTION, exception_ticket, ExceptionDetail("boom"))
        assert store.publish(ContextKind.SNAPSHOT, snapshot_ticket, [SnapshotItem("v")])
        assert store.latest_exception().message == "boom"

    def test_clear_invalidates_outstanding_tickets(self) -> None:
        store = LatestResultStore()
        in_flight = store.begin(ContextKind.STACK)
        done = store.begin(ContextKind.EXCEPTION)
        store.publish(ContextKind.EXCEPTION, done, ExceptionDetail("boom"))

        store.clear()

        assert store.latest_exception() is None
        assert not store.publish(ContextKind.STACK, in_flight, [StackItem("/a.py", 1)])
        assert store.latest_stack() == []
        assert store.publish(ContextKind.STACK, store.begin(ContextKind.STACK), [StackItem("/b.py", 2)])

    def test_published_and_returned_lists_are_copies(self) -> None:
        store = LatestResultStore()
        items = [SnapshotItem("v")]
        store.publish(ContextKind.SNAPSHOT, store.begin(ContextKind.SNAPSHOT), items)

        items.append(SnapshotItem("late"))
        store.latest_snapshot().append(SnapshotItem("caller"))

        assert [i.name for i in store.latest_snapshot()] == ["v"]

    def test_concurrent_publish_keeps_newest(self) -> None:
        store = LatestResultStore()
        tickets = [store.begin(ContextKind.STACK) for _ in range(20)]
        threads = [
            threading.Thread(target=store.publish, args=(ContextKind.STACK, t, [StackItem("/a.py", t)]))
            for t in reversed(tickets)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)

        assert store.latest_stack()[0].line_number == tickets[-1]
