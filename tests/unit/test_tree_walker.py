"""Tests for the bounded snapshot tree walker."""

from __future__ import annotations

import pytest

from debugctx.config import CollectorConfig
from debugctx.core.budget import serialized_size
from debugctx.core.languages import GENERIC
from debugctx.core.languages import LanguageSupport
from debugctx.core.models import ItemKind
from debugctx.core.tree_walker import walk_snapshot
from tests.fakes import FakeFrame
from tests.fakes import FakeValue
from tests.fakes import Scheduler
from tests.fakes import Sink
from tests.fakes import leaf
from tests.fakes import nested_tree


def run_walk(frame, config=None, scheduler=None, language=GENERIC):
    sink = Sink()
    walk_snapshot(frame, config or CollectorConfig(), language, sink)
    if scheduler is not None:
        scheduler.settle()
    items, success = sink.wait()
    assert len(sink.calls) == 1
    return items, success


def max_height(items) -> int:
    return max((item.depth() for item in items), default=0)


class TestSnapshotShape:
    def test_locals_and_fields(self, scheduler: Scheduler) -> None:
        point = FakeValue(
            "Point(1, 2)",
            "Point",
            [("x", leaf("1", "int", scheduler=scheduler)), ("y", leaf("2", "int", scheduler=scheduler))],
            scheduler=scheduler,
        )
        frame = FakeFrame([("a", leaf("'hi'", scheduler=scheduler)), ("p", point)], scheduler=scheduler)

        items, success = run_walk(frame, scheduler=scheduler)

        assert success
        assert [(i.name, i.type, i.value, i.kind) for i in items] == [
            ("a", "str", "'hi'", ItemKind.LOCAL),
            ("p", "Point", "Point(1, 2)", ItemKind.LOCAL),
        ]
        assert [(c.name, c.value, c.kind) for c in items[1].children] == [
            ("x", "1", ItemKind.FIELD),
            ("y", "2", ItemKind.FIELD),
        ]

    def test_zero_children_frame(self) -> None:
        items, success = run_walk(FakeFrame([]))
        assert items == []
        assert success

    def test_order_survives_out_of_order_delivery(self) -> None:
        scheduler = Scheduler("deferred")
        frame = FakeFrame([(f"v{i}", leaf(str(i), scheduler=scheduler)) for i in range(8)], scheduler=scheduler)
        sink = Sink()

        walk_snapshot(frame, CollectorConfig(), GENERIC, sink)
        scheduler.drain(shuffle=True)

        items, success = sink.result
        assert success
        assert [i.name for i in items] == [f"v{i}" for i in range(8)]

    def test_children_in_several_batches(self, scheduler: Scheduler) -> None:
        values = [(f"v{i}", leaf(str(i), scheduler=scheduler)) for i in range(7)]
        frame = FakeFrame(values, scheduler=scheduler, batches=3)

        items, _ = run_walk(frame, scheduler=scheduler)

        assert [i.value for i in items] == [str(i) for i in range(7)]

    def test_missing_type_stays_unknown(self) -> None:
        items, _ = run_walk(FakeFrame([("v", FakeValue("x", None))]))
        assert items[0].type == "unknown"


class TestBudgets:
    @pytest.mark.parametrize("depth", [0, 1, 2, 3])
    def test_depth_bound(self, depth: int, scheduler: Scheduler) -> None:
        frame = FakeFrame(nested_tree(5, 2, scheduler=scheduler), scheduler=scheduler)
        config = CollectorConfig(max_nested_depth=depth, max_debugger_calls=10_000, max_snapshot_bytes=10_000_000)

        items, success = run_walk(frame, config, scheduler)

        assert success
        assert len(items) == 2
        assert max_height(items) == depth

    def test_node_at_depth_limit_is_leaf(self) -> None:
        deep = FakeValue("d", "node", [("inner", leaf("1"))])
        items, _ = run_walk(FakeFrame([("top", deep)]), CollectorConfig(max_nested_depth=0))

        assert items[0].children == ()
        assert deep.children_requests == 0

    def test_call_budget_is_a_soft_stop(self, scheduler: Scheduler) -> None:
        values = [leaf(str(i), scheduler=scheduler) for i in range(20)]
        frame = FakeFrame([(f"v{i}", v) for i, v in enumerate(values)], scheduler=scheduler)

        items, success = run_walk(frame, CollectorConfig(max_debugger_calls=5), scheduler)

        assert success
        assert [i.name for i in items] == ["v0", "v1", "v2", "v3", "v4"]
        assert sum(v.presentation_requests for v in values) == 5

    def test_call_budget_counts_nested_requests(self) -> None:
        frame = FakeFrame(nested_tree(3, 3))
        items, success = run_walk(frame, CollectorConfig(max_debugger_calls=7))

        def count(nodes) -> int:
            return sum(1 + count(n.children) for n in nodes)

        assert success
        assert count(items) == 7

    def test_byte_budget(self, scheduler: Scheduler) -> None:
        frame = FakeFrame(
            [(f"s{i}", leaf("x" * 200, scheduler=scheduler)) for i in range(30)],
            scheduler=scheduler,
        )

        items, success = run_walk(frame, CollectorConfig(max_snapshot_bytes=1000), scheduler)

        assert success
        assert 0 < len(items) < 30
        assert serialized_size(items) <= 1000
        assert [i.name for i in items] == [f"s{i}" for i in range(len(items))]

    def test_tiny_byte_budget_yields_empty_success(self) -> None:
        frame = FakeFrame([("s", leaf("value"))])
        items, success = run_walk(frame, CollectorConfig(max_snapshot_bytes=10))
        assert items == []
        assert success

    def test_children_per_node_limit(self) -> None:
        frame = FakeFrame([(f"v{i}", leaf(str(i))) for i in range(10)])
        items, _ = run_walk(frame, CollectorConfig(max_children_per_node=3))
        assert [i.name for i in items] == ["v0", "v1", "v2"]


class TestFailures:
    def test_root_structural_error(self, scheduler: Scheduler) -> None:
        frame = FakeFrame(children_error="frame is gone", scheduler=scheduler)

        items, success = run_walk(frame, scheduler=scheduler)

        assert items == []
        assert success is False

    def test_root_request_raising(self) -> None:
        frame = FakeFrame(raise_on_children=RuntimeError("backend died"))
        assert run_walk(frame) == ([], False)

    def test_nested_structural_error_is_partial_success(self, scheduler: Scheduler) -> None:
        broken = FakeValue("obj", "Obj", children_error="cannot list", scheduler=scheduler)
        frame = FakeFrame([("ok", leaf("1", scheduler=scheduler)), ("broken", broken)], scheduler=scheduler)

        items, success = run_walk(frame, scheduler=scheduler)

        assert success
        assert [i.name for i in items] == ["ok", "broken"]
        assert items[1].value == "obj"
        assert items[1].children == ()

    def test_render_failures_use_fallback_text(self) -> None:
        frame = FakeFrame(
            [
                ("bad", FakeValue("x", "int", render_error=RuntimeError("kaboom"))),
                ("pending", FakeValue("x", "int", render_error=RuntimeError("not yet calculated"))),
                ("raising", FakeValue("x", raise_on_presentation=RuntimeError("gone"))),
            ]
        )

        items, success = run_walk(frame)

        assert success
        assert [i.value for i in items] == ["Value not available", "Calculating...", "Value not available"]

    def test_repeated_presentation_is_ignored(self, scheduler: Scheduler) -> None:
        value = FakeValue("first", "str", repeat_presentation=True, scheduler=scheduler)
        frame = FakeFrame([("v", value)], scheduler=scheduler)

        items, _ = run_walk(frame, scheduler=scheduler)

        assert items[0].value == "first"


def test_language_fallback_text_for_empty_values() -> None:
    language = LanguageSupport(name="test", fallback_text=lambda name, value: f"<{name}>")
    frame = FakeFrame([("empty", FakeValue("", "str")), ("full", FakeValue("x", "str"))])

    items, _ = run_walk(frame, language=language)

    assert [i.value for i in items] == ["<empty>", "x"]
