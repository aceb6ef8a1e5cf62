"""In-process debugger backend over live CPython frames.

Implements the callback-driven backend interfaces for frames and objects
of the running interpreter, typically the frames of a traceback caught
post mortem. Every request is handed to a dispatcher:
:class:`ImmediateDispatcher` answers synchronously on the caller's thread,
:class:`ThreadPoolDispatcher` answers on worker threads in no particular
order, which is how a remote debugger behaves.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable
from typing import Protocol

from debugctx.backend.protocol import SourcePosition
from debugctx.backend.value_children import DEFAULT_MAX_STRING_LENGTH
from debugctx.backend.value_children import format_value
from debugctx.backend.value_children import fragment_kind
from debugctx.backend.value_children import has_children
from debugctx.backend.value_children import type_label
from debugctx.backend.value_children import value_children

if TYPE_CHECKING:
    from concurrent.futures import Future
    import types

    from debugctx.backend.protocol import ChildrenListener
    from debugctx.backend.protocol import FrameListener
    from debugctx.backend.protocol import PresentationListener
    from debugctx.backend.protocol import TextRenderer

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHILDREN = 100
DEFAULT_BATCH_SIZE = 50
EXCEPTION_MARKER = "__exception__"


# ---------------------------------------------------------------------------
# Dispatchers
# ---------------------------------------------------------------------------


class Dispatcher(Protocol):
    def submit(self, fn: Callable[..., Any], *args: Any) -> None: ...


class ImmediateDispatcher:
    """Run every backend request synchronously."""

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        fn(*args)


class ThreadPoolDispatcher:
    """Run backend requests on a pool of worker threads."""

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="debugctx-backend")

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(future: Future[Any]) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Backend task failed", exc_info=exc)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> ThreadPoolDispatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


class PythonPresentation:
    """Type label and ``repr()`` text of a Python object."""

    def __init__(self, type_name: str, text: str, kind: str = "value") -> None:
        self._type_name = type_name
        self.text = text
        self.kind = kind

    @classmethod
    def of(cls, value: Any, max_string_length: int = DEFAULT_MAX_STRING_LENGTH) -> PythonPresentation:
        return cls(type_label(value), format_value(value, max_string_length), fragment_kind(value))

    @property
    def type_name(self) -> str | None:
        return self._type_name

    def render(self, renderer: TextRenderer) -> None:
        if self.kind == "string":
            renderer.render_string_value(self.text)
        elif self.kind == "numeric":
            renderer.render_numeric_value(self.text)
        elif self.kind == "keyword":
            renderer.render_keyword_value(self.text)
        elif self.kind == "error":
            renderer.render_error(self.text)
        else:
            renderer.render_value(self.text)


class BackendOptions:
    """Display limits shared by all values of one backend."""

    def __init__(
        self,
        dispatcher: Dispatcher | None = None,
        *,
        max_string_length: int = DEFAULT_MAX_STRING_LENGTH,
        max_children: int = DEFAULT_MAX_CHILDREN,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self.dispatcher = dispatcher if dispatcher is not None else ImmediateDispatcher()
        self.max_string_length = max_string_length
        self.max_children = max_children
        self.batch_size = max(batch_size, 1)


def _deliver_batches(items: list[Any], batch_size: int, add: Callable[[list[Any], bool], None]) -> None:
    if not items:
        add([], True)
        return
    for start in range(0, len(items), batch_size):
        end = start + batch_size
        add(items[start:end], end >= len(items))


class PythonValue:
    """A live Python object exposed as a ``DebugValue``."""

    def __init__(self, value: Any, options: BackendOptions | None = None) -> None:
        self.value = value
        self.options = options if options is not None else BackendOptions()

    def __repr__(self) -> str:
        return f"PythonValue({format_value(self.value, 60)})"

    def compute_presentation(self, listener: PresentationListener) -> None:
        self.options.dispatcher.submit(self._present, listener)

    def compute_children(self, listener: ChildrenListener) -> None:
        self.options.dispatcher.submit(self._expand, listener)

    def presentation(self) -> PythonPresentation:
        return PythonPresentation.of(self.value, self.options.max_string_length)

    def expandable(self) -> bool:
        return has_children(self.value)

    def children(self) -> list[tuple[str, Any]]:
        return value_children(self.value, self.options.max_children)

    def _present(self, listener: PresentationListener) -> None:
        try:
            presentation = self.presentation()
            expandable = self.expandable()
        except Exception as e:
            logger.debug("Presenting %r failed", self, exc_info=True)
            # type() does not consult a proxy's __class__.
            presentation = PythonPresentation(type(self.value).__name__, f"<error: {e!s}>", "error")
            expandable = False
        listener.set_presentation(presentation, expandable)

    def _expand(self, listener: ChildrenListener) -> None:
        try:
            pairs = self.children()
        except Exception as e:
            logger.debug("Listing children of %r failed", self, exc_info=True)
            listener.error_occurred(f"Unable to list children: {e!s}")
            return
        wrapped = [(name, PythonValue(child, self.options)) for name, child in pairs]
        _deliver_batches(wrapped, self.options.batch_size, listener.add_children)


class PythonFrame(PythonValue):
    """A live frame; its children are its locals.

    When ``exc_info`` is given the frame also exposes it as an
    ``__exception__`` binding holding the ``(type, value, traceback)``
    triple.
    """

    def __init__(
        self,
        frame: types.FrameType,
        options: BackendOptions | None = None,
        *,
        lineno: int | None = None,
        exc_info: tuple[type[BaseException], BaseException, types.TracebackType | None] | None = None,
    ) -> None:
        super().__init__(frame, options)
        self.frame = frame
        self.lineno = lineno if lineno is not None else frame.f_lineno
        self.exc_info = exc_info

    def __repr__(self) -> str:
        code = self.frame.f_code
        return f"PythonFrame({code.co_name} at {code.co_filename}:{self.lineno})"

    def source_position(self) -> SourcePosition | None:
        filename = self.frame.f_code.co_filename
        if not filename or filename.startswith("<"):
            return None
        return SourcePosition(filename, self.lineno)

    def presentation(self) -> PythonPresentation:
        code = self.frame.f_code
        return PythonPresentation("frame", f"{code.co_name} ({code.co_filename}:{self.lineno})")

    def expandable(self) -> bool:
        return True

    def children(self) -> list[tuple[str, Any]]:
        pairs = [
            (name, value)
            for name, value in self.frame.f_locals.items()
            if not (name.startswith("__") and name.endswith("__"))
        ]
        if self.exc_info is not None:
            pairs.append((EXCEPTION_MARKER, self.exc_info))
        return pairs[: self.options.max_children]


# ---------------------------------------------------------------------------
# Stack and backend
# ---------------------------------------------------------------------------


class PythonStack:
    """Frames of a paused Python stack, innermost first."""

    def __init__(self, frames: list[PythonFrame], options: BackendOptions) -> None:
        self.frames = frames
        self.options = options

    def compute_frames(self, first_index: int, listener: FrameListener) -> None:
        self.options.dispatcher.submit(self._deliver, first_index, listener)

    def _deliver(self, first_index: int, listener: FrameListener) -> None:
        _deliver_batches(self.frames[first_index:], self.options.batch_size, listener.add_frames)


class PythonBackend:
    """A paused view of Python frames, built from a frame or a traceback."""

    def __init__(self, frames: list[PythonFrame], options: BackendOptions | None = None) -> None:
        self.options = options if options is not None else BackendOptions()
        self.frames = frames

    def active_stack(self) -> PythonStack | None:
        if not self.frames:
            return None
        return PythonStack(self.frames, self.options)

    def active_frame(self) -> PythonFrame | None:
        return self.frames[0] if self.frames else None

    @classmethod
    def from_frame(
        cls,
        frame: types.FrameType,
        *,
        exc_info: tuple[type[BaseException], BaseException, types.TracebackType | None] | None = None,
        options: BackendOptions | None = None,
    ) -> PythonBackend:
        """Pause at *frame*; its callers become the rest of the stack."""
        options = options if options is not None else BackendOptions()
        frames: list[PythonFrame] = []
        current: types.FrameType | None = frame
        while current is not None:
            frames.append(PythonFrame(current, options, exc_info=exc_info if not frames else None))
            current = current.f_back
        return cls(frames, options)

    @classmethod
    def from_traceback(
        cls,
        tb: types.TracebackType,
        *,
        exc: BaseException | None = None,
        options: BackendOptions | None = None,
    ) -> PythonBackend:
        """Pause post mortem at the innermost frame of *tb*.

        With *exc* given, the innermost frame carries the exception triple.
        """
        options = options if options is not None else BackendOptions()
        links: list[tuple[types.FrameType, int]] = []
        current: types.TracebackType | None = tb
        while current is not None:
            links.append((current.tb_frame, current.tb_lineno))
            current = current.tb_next
        exc_info = (type(exc), exc, tb) if exc is not None else None
        frames = [
            PythonFrame(frame, options, lineno=lineno, exc_info=exc_info if index == 0 else None)
            for index, (frame, lineno) in enumerate(reversed(links))
        ]
        return cls(frames, options)

    @classmethod
    def from_exception(cls, exc: BaseException, *, options: BackendOptions | None = None) -> PythonBackend:
        if exc.__traceback__ is None:
            msg = "exception has no traceback"
            raise ValueError(msg)
        return cls.from_traceback(exc.__traceback__, exc=exc, options=options)


__all__ = [
    "EXCEPTION_MARKER",
    "BackendOptions",
    "Dispatcher",
    "ImmediateDispatcher",
    "PythonBackend",
    "PythonFrame",
    "PythonPresentation",
    "PythonStack",
    "PythonValue",
    "ThreadPoolDispatcher",
]
