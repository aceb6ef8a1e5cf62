"""Collect the innermost frames of the paused call stack."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from debugctx.core.budget import serialized_size
from debugctx.core.budget import trim
from debugctx.core.join import Once
from debugctx.core.models import StackItem
from debugctx.errors import StructuralError
from debugctx.errors import log_backend_failure

if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Sequence

    from debugctx.backend.protocol import DebugFrame
    from debugctx.backend.protocol import ExecutionStack
    from debugctx.backend.protocol import SourceNavigator
    from debugctx.backend.protocol import SourcePosition
    from debugctx.config import CollectorConfig
    from debugctx.errors import BackendError

logger = logging.getLogger(__name__)


def clip_excerpt(text: str, start_line: int, target_line: int, prefix: int, suffix: int) -> str:
    """Clip a function's *text* to the lines around *target_line*.

    *start_line* is the line the function starts on; both lines are 1-based.
    Functions of at most ``prefix + suffix`` lines are returned verbatim.
    Otherwise lines ``[t - prefix, t + suffix]`` are kept, where ``t`` is
    the target's offset in the function (clamped to its bounds), and the
    result is stripped.
    """
    lines = text.split("\n")
    if len(lines) <= prefix + suffix:
        return text
    offset = min(max(target_line - start_line, 0), len(lines) - 1)
    first = max(offset - prefix, 0)
    last = min(offset + suffix, len(lines) - 1)
    return "\n".join(lines[first : last + 1]).strip()


class StackCollection:
    """Collect up to ``max_stack_items`` frames that have a source position.

    Frames may arrive in several batches. ``on_done(items, success)`` runs
    exactly once: as soon as enough frames were kept, or when the final
    batch arrives.
    """

    def __init__(
        self,
        config: CollectorConfig,
        navigator: SourceNavigator | None,
        on_done: Callable[[list[StackItem], bool], None],
    ) -> None:
        self._config = config
        self._navigator = navigator
        self._on_done = on_done
        self._lock = threading.Lock()
        self._items: list[StackItem] = []
        self._finished = Once()

    def start(self, stack: ExecutionStack) -> None:
        try:
            stack.compute_frames(0, self)
        except Exception as e:
            self._fail(log_backend_failure(e, operation="stack.frames"))

    # FrameListener -------------------------------------------------------
    def add_frames(self, frames: Sequence[DebugFrame], last: bool) -> None:
        if self._finished.done:
            return
        limit = self._config.max_stack_items
        with self._lock:
            for frame in frames:
                if len(self._items) >= limit:
                    break
                item = self._build_item(frame)
                if item is not None:
                    self._items.append(item)
            full = len(self._items) >= limit
            items = list(self._items)
        if full or last:
            self._deliver(items)

    def error_occurred(self, message: str) -> None:
        self._fail(StructuralError(message, operation="stack.frames"))

    # ---------------------------------------------------------------------
    def _build_item(self, frame: DebugFrame) -> StackItem | None:
        try:
            position = frame.source_position()
        except Exception:
            logger.debug("Skipping frame without a readable position", exc_info=True)
            return None
        if position is None:
            return None
        return StackItem(
            file_path=position.file,
            line_number=position.line,
            enclosing_function_text=self._excerpt(position),
            language_hint=position.extension,
        )

    def _excerpt(self, position: SourcePosition) -> str:
        if self._navigator is None:
            return ""
        try:
            found = self._navigator.enclosing_function_text(position.file, position.line)
        except Exception:
            logger.debug("Source navigator failed for %s:%d", position.file, position.line, exc_info=True)
            return ""
        if found is None:
            return ""
        return clip_excerpt(
            found.text,
            found.start_line,
            position.line,
            self._config.enclosing_prefix_lines,
            self._config.enclosing_suffix_lines,
        )

    def _deliver(self, items: list[StackItem]) -> None:
        if not self._finished.claim():
            return
        kept = trim(items, self._config.max_stack_bytes)
        if len(kept) < len(items):
            logger.debug(
                "Stack trimmed from %d to %d frame(s) (%d bytes)",
                len(items),
                len(kept),
                serialized_size(kept),
            )
        self._on_done(kept, True)

    def _fail(self, error: BackendError) -> None:
        if self._finished.claim():
            logger.warning("Stack collection failed: %s", error)
            self._on_done([], False)


__all__ = ["StackCollection", "clip_excerpt"]
