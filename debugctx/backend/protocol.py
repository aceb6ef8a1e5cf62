"""Interfaces of the live debugger backend and the source navigator.

The backend is callback driven: every ``compute_*`` call returns immediately
and the backend later calls the supplied listener, on a thread of its own
choosing and in no particular order among siblings. A listener may receive
children or frames in several batches; the final batch has ``last=True``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import TYPE_CHECKING
from typing import NamedTuple
from typing import Protocol
from typing import runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True)
class SourcePosition:
    """A position in a source file. ``line`` is 1-based."""

    file: str
    line: int

    @property
    def extension(self) -> str:
        """File extension without the leading dot (``"py"``, ``"java"``)."""
        return PurePath(self.file).suffix.lstrip(".")


class EnclosingFunction(NamedTuple):
    """Source text of a function and the 1-based line it starts on."""

    text: str
    start_line: int


class TextRenderer(Protocol):
    """Receives the typed text fragments of a value presentation."""

    def render_value(self, value: str | None) -> None: ...

    def render_string_value(self, value: str | None) -> None: ...

    def render_numeric_value(self, value: str | None) -> None: ...

    def render_keyword_value(self, value: str | None) -> None: ...

    def render_special_symbol(self, symbol: str) -> None: ...

    def render_comment(self, comment: str) -> None: ...

    def render_error(self, error: str) -> None: ...


class ValuePresentation(Protocol):
    """How the backend displays a value: an optional type and its text."""

    @property
    def type_name(self) -> str | None: ...

    def render(self, renderer: TextRenderer) -> None: ...


class PresentationListener(Protocol):
    def set_presentation(self, presentation: ValuePresentation, has_children: bool) -> None: ...


class ChildrenListener(Protocol):
    def add_children(self, children: Sequence[tuple[str, DebugValue]], last: bool) -> None: ...

    def error_occurred(self, message: str) -> None: ...


@runtime_checkable
class DebugValue(Protocol):
    """A value (or frame) that can be presented and expanded asynchronously."""

    def compute_presentation(self, listener: PresentationListener) -> None: ...

    def compute_children(self, listener: ChildrenListener) -> None: ...


@runtime_checkable
class DebugFrame(DebugValue, Protocol):
    """A stack frame; its children are the visible local bindings."""

    def source_position(self) -> SourcePosition | None: ...


class FrameListener(Protocol):
    def add_frames(self, frames: Sequence[DebugFrame], last: bool) -> None: ...

    def error_occurred(self, message: str) -> None: ...


class ExecutionStack(Protocol):
    def compute_frames(self, first_index: int, listener: FrameListener) -> None: ...


@runtime_checkable
class DebugBackend(Protocol):
    """A paused debugger session."""

    def active_stack(self) -> ExecutionStack | None: ...

    def active_frame(self) -> DebugFrame | None: ...


class SourceNavigator(Protocol):
    """Maps a source position to the text of the function enclosing it."""

    def enclosing_function_text(self, path: str, line: int) -> EnclosingFunction | None: ...


__all__ = [
    "ChildrenListener",
    "DebugBackend",
    "DebugFrame",
    "DebugValue",
    "EnclosingFunction",
    "ExecutionStack",
    "FrameListener",
    "PresentationListener",
    "SourceNavigator",
    "SourcePosition",
    "TextRenderer",
    "ValuePresentation",
]
