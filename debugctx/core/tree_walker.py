"""Bounded, asynchronous walk of a frame's bindings into a snapshot tree.

The walk fans out one presentation request per binding and, for
expandable bindings within the depth budget, one children request; every
fan-out level joins on a :class:`CompletionBarrier`. Budgets never fail a
walk: once the call or size budget is spent no new request is issued, and
the bindings not yet reached are simply left out.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from debugctx.core.budget import PLACEHOLDER_OVERHEAD
from debugctx.core.budget import WalkBudget
from debugctx.core.budget import trim
from debugctx.core.join import CompletionBarrier
from debugctx.core.join import Once
from debugctx.core.listeners import request_children
from debugctx.core.listeners import request_presentation
from debugctx.core.models import ItemKind
from debugctx.core.models import SnapshotItem
from debugctx.core.models import SnapshotItemBuilder
from debugctx.core.rendering import presentation_type
from debugctx.core.rendering import render_or_fallback
from debugctx.errors import RenderError

if TYPE_CHECKING:
    from collections.abc import Callable

    from debugctx.backend.protocol import DebugValue
    from debugctx.backend.protocol import ValuePresentation
    from debugctx.config import CollectorConfig
    from debugctx.core.languages import LanguageSupport
    from debugctx.errors import BackendError

    Children = list[tuple[str, DebugValue]]

logger = logging.getLogger(__name__)


def _text_size(text: str) -> int:
    return len(text.encode("utf-8", errors="replace"))


class SnapshotWalk:
    """One snapshot collection over the bindings of a frame (or any value).

    ``on_done(items, success)`` is called exactly once with the frozen,
    size-trimmed top-level items. ``success`` is ``False`` only when the
    backend could not list the root's children.
    """

    def __init__(
        self,
        config: CollectorConfig,
        language: LanguageSupport,
        on_done: Callable[[list[SnapshotItem], bool], None],
    ) -> None:
        self._config = config
        self._language = language
        self._on_done = on_done
        self._budget = WalkBudget(config.max_debugger_calls, config.max_snapshot_bytes)
        self._finished = Once()
        self._roots: list[SnapshotItemBuilder] = []

    @property
    def budget(self) -> WalkBudget:
        return self._budget

    def start(self, root: DebugValue) -> None:
        request_children(
            root,
            self._on_root_children,
            self._on_root_error,
            operation="snapshot.children",
        )

    def start_with_children(self, children: Children) -> None:
        """Walk an already-listed set of root bindings."""
        self._on_root_children(children)

    # ------------------------------------------------------------------
    # Root level
    # ------------------------------------------------------------------
    def _on_root_children(self, children: Children) -> None:
        barrier = CompletionBarrier(len(children), self._complete, label="snapshot")
        self._expand(children, self._roots, 0, ItemKind.LOCAL, barrier)

    def _on_root_error(self, error: BackendError) -> None:
        logger.warning("Snapshot collection failed: %s", error)
        self._finish([], success=False)

    def _complete(self) -> None:
        items = [builder.finalize() for builder in self._roots]
        kept = trim(items, self._config.max_snapshot_bytes)
        if len(kept) < len(items):
            logger.debug(
                "Snapshot trimmed from %d to %d item(s) to fit %d bytes",
                len(items),
                len(kept),
                self._config.max_snapshot_bytes,
            )
        self._finish(kept, success=True)

    def _finish(self, items: list[SnapshotItem], *, success: bool) -> None:
        if self._finished.claim():
            self._on_done(items, success)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------
    def _expand(
        self,
        children: Children,
        out: list[SnapshotItemBuilder],
        depth: int,
        kind: ItemKind,
        barrier: CompletionBarrier,
    ) -> None:
        limit = self._config.max_children_per_node
        for index, (name, value) in enumerate(children):
            if index >= limit or not self._budget.try_acquire_call(PLACEHOLDER_OVERHEAD + _text_size(name)):
                skipped = len(children) - index
                logger.debug(
                    "Snapshot budget reached at depth %d: %d of %d binding(s) left out",
                    depth,
                    skipped,
                    len(children),
                )
                barrier.arrive(skipped)
                return
            builder = SnapshotItemBuilder(name=name, kind=kind)
            out.append(builder)
            self._resolve(value, builder, depth, barrier)

    def _resolve(
        self,
        value: DebugValue,
        builder: SnapshotItemBuilder,
        depth: int,
        barrier: CompletionBarrier,
    ) -> None:
        done = Once()

        def complete() -> None:
            if done.claim():
                barrier.arrive()

        def on_presentation(presentation: ValuePresentation, has_children: bool) -> None:
            self._apply_presentation(builder, value, presentation)
            if has_children and depth < self._config.max_nested_depth and not self._budget.exhausted:
                request_children(
                    value,
                    lambda kids: self._on_nested_children(kids, builder, depth + 1, complete),
                    lambda error: self._on_nested_error(error, builder, complete),
                    operation="snapshot.children",
                )
            else:
                complete()

        def on_error(error: BackendError) -> None:
            logger.debug("Presentation of %r failed: %s", builder.name, error)
            builder.value = RenderError.fallback_text
            complete()

        request_presentation(value, on_presentation, on_error, operation="snapshot.presentation")

    def _apply_presentation(
        self,
        builder: SnapshotItemBuilder,
        value: DebugValue,
        presentation: ValuePresentation,
    ) -> None:
        type_name = presentation_type(presentation)
        if type_name:
            builder.type = type_name
        text = render_or_fallback(presentation)
        if not text and self._language.fallback_text is not None:
            try:
                text = self._language.fallback_text(builder.name, value) or ""
            except Exception:
                logger.debug("Fallback text for %r failed", builder.name, exc_info=True)
        builder.value = text
        self._budget.charge(_text_size(text) + _text_size(type_name or ""))

    def _on_nested_children(
        self,
        children: Children,
        builder: SnapshotItemBuilder,
        depth: int,
        complete: Callable[[], None],
    ) -> None:
        barrier = CompletionBarrier(len(children), complete, label=f"snapshot:{builder.name}")
        self._expand(children, builder.children, depth, ItemKind.FIELD, barrier)

    def _on_nested_error(
        self,
        error: BackendError,
        builder: SnapshotItemBuilder,
        complete: Callable[[], None],
    ) -> None:
        logger.debug("Children of %r unavailable: %s", builder.name, error)
        complete()


def walk_snapshot(
    root: DebugValue,
    config: CollectorConfig,
    language: LanguageSupport,
    on_done: Callable[[list[SnapshotItem], bool], None],
) -> SnapshotWalk:
    """Start a snapshot walk over *root* and return it."""
    walk = SnapshotWalk(config, language, on_done)
    walk.start(root)
    return walk


__all__ = ["SnapshotWalk", "walk_snapshot"]
