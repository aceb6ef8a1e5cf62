"""Caller-facing entry point for debug context collection.

:class:`DebugContextCollector` starts stack, snapshot and exception
collections against a paused backend, publishes successful results to its
:class:`LatestResultStore` and reports each collection to the caller
exactly once.

Example:
    >>> collector = DebugContextCollector()
    >>> collector.collect_snapshot(frame, lambda item: print(item.to_dict()))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from debugctx.config import get_config
from debugctx.core.exception_collector import ExceptionCollection
from debugctx.core.join import Once
from debugctx.core.languages import default_registry
from debugctx.core.models import ContextItem
from debugctx.core.models import ContextKind
from debugctx.core.result_store import LatestResultStore
from debugctx.core.stack_collector import StackCollection
from debugctx.core.tree_walker import SnapshotWalk
from debugctx.errors import BackendUnavailableError
from debugctx.errors import log_backend_failure
from debugctx.utils.threadsafe_async import future_callback

if TYPE_CHECKING:
    from collections.abc import Callable

    from debugctx.backend.protocol import DebugBackend
    from debugctx.backend.protocol import DebugFrame
    from debugctx.backend.protocol import ExecutionStack
    from debugctx.backend.protocol import SourceNavigator
    from debugctx.config import CollectorConfig
    from debugctx.core.languages import LanguageRegistry
    from debugctx.core.languages import LanguageSupport
    from debugctx.core.models import ExceptionDetail
    from debugctx.core.models import SnapshotItem
    from debugctx.core.models import StackItem

    OnDone = Callable[[ContextItem], None]

logger = logging.getLogger(__name__)


class DebugContextCollector:
    """Collects bounded stack, snapshot and exception context.

    Args:
        config: Budgets to use; defaults to a copy of the current global
            configuration at construction time.
        navigator: Source navigator used for function excerpts.
        store: Result store; a private one is created when omitted.
        languages: Language registry; defaults to the built-in languages.
    """

    def __init__(
        self,
        config: CollectorConfig | None = None,
        navigator: SourceNavigator | None = None,
        store: LatestResultStore | None = None,
        languages: LanguageRegistry | None = None,
    ) -> None:
        self.config = (config or get_config()).copy()
        self.config.validate()
        self.navigator = navigator
        self.store = store if store is not None else LatestResultStore()
        self.languages = languages if languages is not None else default_registry()

    # ------------------------------------------------------------------
    # Callback API
    # ------------------------------------------------------------------
    def collect_stack(self, backend: DebugBackend, on_done: OnDone) -> None:
        """Collect the innermost frames of *backend*'s active stack."""
        deliver = self._delivery(ContextKind.STACK, on_done)
        try:
            stack: ExecutionStack | None = backend.active_stack()
        except Exception as e:
            log_backend_failure(e, operation="stack.active")
            stack = None
        if stack is None:
            logger.warning("%s", BackendUnavailableError("No active execution stack", operation="stack.active"))
            deliver(ContextItem([], False, ContextKind.STACK))
            return

        def done(items: list[StackItem], success: bool) -> None:
            deliver(ContextItem(items, success, ContextKind.STACK))

        StackCollection(self.config, self.navigator, done).start(stack)

    def collect_snapshot(self, frame: DebugFrame, on_done: OnDone) -> None:
        """Collect the bounded tree of *frame*'s bindings."""
        deliver = self._delivery(ContextKind.SNAPSHOT, on_done)

        def done(items: list[SnapshotItem], success: bool) -> None:
            deliver(ContextItem(items, success, ContextKind.SNAPSHOT))

        SnapshotWalk(self.config, self.language_for(frame), done).start(frame)

    def collect_exception(self, frame: DebugFrame, on_done: OnDone) -> None:
        """Collect the exception bound in *frame*, or a snapshot if none is."""
        ExceptionCollection(
            frame,
            self.config,
            self.language_for(frame),
            self._delivery(ContextKind.EXCEPTION, on_done),
        ).start()

    def language_for(self, frame: DebugFrame) -> LanguageSupport:
        try:
            position = frame.source_position()
        except Exception:
            position = None
        return self.languages.for_hint(position.extension if position is not None else None)

    def _delivery(self, kind: ContextKind, on_done: OnDone) -> OnDone:
        """Wrap *on_done*: publish on success, call once, never raise."""
        ticket = self.store.begin(kind)
        once = Once()

        def deliver(item: ContextItem) -> None:
            if not once.claim():
                logger.warning("Duplicate %s result ignored", kind.value)
                return
            if item.success:
                # The exception request can fall back to a snapshot.
                self.store.publish(item.kind, ticket, item.payload)
            try:
                on_done(item)
            except Exception:
                logger.exception("%s result callback failed", kind.value)

        return deliver

    # ------------------------------------------------------------------
    # Latest results
    # ------------------------------------------------------------------
    def latest_stack(self) -> list[StackItem]:
        return self.store.latest_stack()

    def latest_snapshot(self) -> list[SnapshotItem]:
        return self.store.latest_snapshot()

    def latest_exception(self) -> ExceptionDetail | None:
        return self.store.latest_exception()

    def clear(self) -> None:
        self.store.clear()

    # ------------------------------------------------------------------
    # Awaitable API
    # ------------------------------------------------------------------
    async def stack(self, backend: DebugBackend) -> ContextItem:
        future, callback = future_callback()
        self.collect_stack(backend, callback)
        return await future

    async def snapshot(self, frame: DebugFrame) -> ContextItem:
        future, callback = future_callback()
        self.collect_snapshot(frame, callback)
        return await future

    async def exception(self, frame: DebugFrame) -> ContextItem:
        future, callback = future_callback()
        self.collect_exception(frame, callback)
        return await future


__all__ = ["DebugContextCollector"]
