"""Listener adapters that turn backend callbacks into single-shot calls.

Backends may deliver children in several batches, may call a presentation
listener more than once, and may raise while a request is being issued.
The adapters here absorb all of that: each request resolves exactly once,
either with its result or with a :class:`~debugctx.errors.BackendError`.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from debugctx.core.join import Once
from debugctx.errors import StructuralError
from debugctx.errors import log_backend_failure

if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Sequence

    from debugctx.backend.protocol import DebugValue
    from debugctx.backend.protocol import ValuePresentation
    from debugctx.errors import BackendError

    Children = list[tuple[str, DebugValue]]

logger = logging.getLogger(__name__)


class ChildrenCollector:
    """``ChildrenListener`` that buffers batches until the last one."""

    def __init__(
        self,
        on_children: Callable[[Children], None],
        on_error: Callable[[BackendError], None],
        *,
        operation: str,
    ) -> None:
        self._lock = threading.Lock()
        self._buffer: Children = []
        self._once = Once()
        self._on_children = on_children
        self._on_error = on_error
        self.operation = operation

    def add_children(self, children: Sequence[tuple[str, DebugValue]], last: bool) -> None:
        with self._lock:
            self._buffer.extend(children)
            if not last:
                return
            batch = list(self._buffer)
        if self._once.claim():
            self._on_children(batch)

    def error_occurred(self, message: str) -> None:
        self.fail(StructuralError(message, operation=self.operation))

    def fail(self, error: BackendError) -> None:
        if self._once.claim():
            logger.debug("%s failed: %s", self.operation, error)
            self._on_error(error)


class PresentationCollector:
    """``PresentationListener`` that only honours the first presentation."""

    def __init__(
        self,
        on_presentation: Callable[[ValuePresentation, bool], None],
        on_error: Callable[[BackendError], None],
        *,
        operation: str,
    ) -> None:
        self._once = Once()
        self._on_presentation = on_presentation
        self._on_error = on_error
        self.operation = operation

    def set_presentation(self, presentation: ValuePresentation, has_children: bool) -> None:
        if self._once.claim():
            self._on_presentation(presentation, has_children)

    def fail(self, error: BackendError) -> None:
        if self._once.claim():
            self._on_error(error)


def request_children(
    value: DebugValue,
    on_children: Callable[[Children], None],
    on_error: Callable[[BackendError], None],
    *,
    operation: str,
) -> None:
    """Ask *value* for its children; exactly one callback will run."""
    collector = ChildrenCollector(on_children, on_error, operation=operation)
    try:
        value.compute_children(collector)
    except Exception as e:
        collector.fail(log_backend_failure(e, operation=operation))


def request_presentation(
    value: DebugValue,
    on_presentation: Callable[[ValuePresentation, bool], None],
    on_error: Callable[[BackendError], None],
    *,
    operation: str,
) -> None:
    """Ask *value* for its presentation; exactly one callback will run."""
    collector = PresentationCollector(on_presentation, on_error, operation=operation)
    try:
        value.compute_presentation(collector)
    except Exception as e:
        collector.fail(log_backend_failure(e, operation=operation))


__all__ = [
    "ChildrenCollector",
    "PresentationCollector",
    "request_children",
    "request_presentation",
]
