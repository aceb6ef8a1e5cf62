"""Pause/stop glue between a debugger session and the collector."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from debugctx.core.collector import DebugContextCollector
from debugctx.core.models import ContextItem
from debugctx.core.models import ContextKind
from debugctx.errors import log_backend_failure
from debugctx.utils.events import EventEmitter

if TYPE_CHECKING:
    from debugctx.backend.protocol import DebugBackend
    from debugctx.backend.protocol import DebugFrame

logger = logging.getLogger(__name__)


class DebugContextSession:
    """Runs the three collections whenever the debugger pauses.

    Every finished collection is emitted on :attr:`on_context` as a
    :class:`ContextItem`. Stopping the debugger clears the latest results.
    """

    def __init__(self, collector: DebugContextCollector | None = None) -> None:
        self.collector = collector if collector is not None else DebugContextCollector()
        self.on_context = EventEmitter("context")

    def _active_frame(self, backend: DebugBackend) -> DebugFrame | None:
        try:
            return backend.active_frame()
        except Exception as e:
            log_backend_failure(e, operation="frame.active")
            return None

    def paused(self, backend: DebugBackend) -> None:
        """Start stack, snapshot and exception collection for *backend*."""
        emit = self.on_context.emit
        self.collector.collect_stack(backend, emit)
        frame = self._active_frame(backend)
        if frame is None:
            logger.warning("Debugger paused without an active frame")
            emit(ContextItem([], False, ContextKind.SNAPSHOT))
            emit(ContextItem(None, False, ContextKind.EXCEPTION))
            return
        self.collector.collect_snapshot(frame, emit)
        self.collector.collect_exception(frame, emit)

    def stopped(self) -> None:
        logger.debug("Debugger stopped; clearing collected context")
        self.collector.clear()

    async def collect_all(self, backend: DebugBackend) -> tuple[ContextItem, ContextItem, ContextItem]:
        """Collect and return ``(stack, snapshot, exception)`` items."""
        frame = self._active_frame(backend)
        if frame is None:
            stack = await self.collector.stack(backend)
            return stack, ContextItem([], False, ContextKind.SNAPSHOT), ContextItem(None, False, ContextKind.EXCEPTION)
        stack, snapshot, exception = await asyncio.gather(
            self.collector.stack(backend),
            self.collector.snapshot(frame),
            self.collector.exception(frame),
        )
        return stack, snapshot, exception


__all__ = ["DebugContextSession"]
