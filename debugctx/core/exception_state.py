"""Order-independent assembly of an :class:`ExceptionDetail`.

An exception's message and its stack trace are resolved by two independent
fan-outs whose completions may arrive on different threads in either
order. :class:`ExceptionState` records both and reports completion exactly
once, to whichever setter performs the final transition.
"""

from __future__ import annotations

import enum
import threading
from typing import TYPE_CHECKING

from debugctx.core.models import UNKNOWN_TYPE
from debugctx.core.models import ExceptionDetail
from debugctx.core.rendering import is_pending_text

if TYPE_CHECKING:
    from debugctx.backend.protocol import SourcePosition

DETAIL_SEPARATOR = " | detailMessage: "


class ExceptionPhase(enum.Enum):
    INIT = "init"
    MESSAGE_READY = "message_ready"
    STACK_READY = "stack_ready"
    COMPLETE = "complete"


def combine_message(message: str, detail: str | None) -> str:
    """Append a distinct, non-empty *detail* to *message*."""
    if not detail or is_pending_text(detail) or detail == message:
        return message
    if not message:
        return detail
    return f"{message}{DETAIL_SEPARATOR}{detail}"


def clip_trace(trace: str, max_lines: int) -> str:
    """Keep the first *max_lines* lines of *trace*."""
    lines = trace.splitlines()
    if len(lines) <= max_lines:
        return trace.rstrip("\n")
    return "\n".join(lines[:max_lines])


class ExceptionState:
    """Lock-protected ``INIT -> MESSAGE_READY | STACK_READY -> COMPLETE`` machine.

    Example:
        >>> state = ExceptionState(max_stack_trace_lines=30)
        >>> state.set_stack_trace("at Foo.bar(Foo.java:3)")
        False
        >>> state.set_message("boom")
        True
    """

    def __init__(self, *, max_stack_trace_lines: int = 30) -> None:
        self._lock = threading.Lock()
        self._phase = ExceptionPhase.INIT
        self._max_lines = max_stack_trace_lines
        self._type = UNKNOWN_TYPE
        self._message: str | None = None
        self._stack_trace: str | None = None

    @property
    def phase(self) -> ExceptionPhase:
        with self._lock:
            return self._phase

    @property
    def complete(self) -> bool:
        return self.phase is ExceptionPhase.COMPLETE

    def set_type(self, type_name: str | None) -> None:
        if not type_name:
            return
        with self._lock:
            self._type = type_name

    def set_message(self, message: str, detail: str | None = None) -> bool:
        """Record the message; ``True`` if this completed the state."""
        with self._lock:
            if self._message is not None:
                return False
            self._message = combine_message(message or "", detail)
            return self._advance(ExceptionPhase.MESSAGE_READY)

    def set_stack_trace(self, trace: str) -> bool:
        """Record the stack trace; ``True`` if this completed the state."""
        with self._lock:
            if self._stack_trace is not None:
                return False
            self._stack_trace = clip_trace(trace or "", self._max_lines)
            return self._advance(ExceptionPhase.STACK_READY)

    def _advance(self, ready: ExceptionPhase) -> bool:
        if self._phase is ExceptionPhase.INIT:
            self._phase = ready
            return False
        if self._phase is not ExceptionPhase.COMPLETE and self._phase is not ready:
            self._phase = ExceptionPhase.COMPLETE
            return True
        return False

    def build_detail(self, position: SourcePosition | None) -> ExceptionDetail:
        """Build the detail for a frame at *position* (``None`` if unknown)."""
        with self._lock:
            return ExceptionDetail(
                message=self._message or "",
                type=self._type,
                stack_trace=self._stack_trace or "",
                file_path=position.file if position is not None else "unknown",
                line_number=position.line if position is not None else -1,
            )


__all__ = [
    "DETAIL_SEPARATOR",
    "ExceptionPhase",
    "ExceptionState",
    "clip_trace",
    "combine_message",
]
