"""Detect the exception bound in a paused frame and assemble its details.

Detection runs an ordered list of predicates over the frame's bindings;
the first predicate that matches any binding wins. Name-based predicates
are checked before the type-based one, which needs every binding's
presentation resolved first. When nothing matches, the collection falls
back to an ordinary snapshot of the same frame.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from debugctx.core.exception_state import ExceptionState
from debugctx.core.join import CompletionBarrier
from debugctx.core.join import Once
from debugctx.core.listeners import request_children
from debugctx.core.listeners import request_presentation
from debugctx.core.models import ContextItem
from debugctx.core.models import ContextKind
from debugctx.core.rendering import presentation_type
from debugctx.core.rendering import render_or_fallback
from debugctx.core.tree_walker import SnapshotWalk
from debugctx.errors import RenderError

if TYPE_CHECKING:
    from collections.abc import Callable

    from debugctx.backend.protocol import DebugFrame
    from debugctx.backend.protocol import DebugValue
    from debugctx.backend.protocol import SourcePosition
    from debugctx.backend.protocol import ValuePresentation
    from debugctx.config import CollectorConfig
    from debugctx.core.languages import LanguageSupport
    from debugctx.core.models import SnapshotItem
    from debugctx.errors import BackendError

    Children = list[tuple[str, DebugValue]]
    NamePredicate = Callable[[str, LanguageSupport], bool]

logger = logging.getLogger(__name__)

_CLASS_REPR = re.compile(r"^<class '([^']+)'>$")
_NULL_TEXTS = frozenset({"None", "null"})


# ----------------------------------------------------------------------
# Detection
# ----------------------------------------------------------------------
def is_triple_marker(name: str, language: LanguageSupport) -> bool:
    return name in language.triple_markers


def mentions_exception(name: str, language: LanguageSupport) -> bool:
    return "exception" in name.lower()


def mentions_throwable(name: str, language: LanguageSupport) -> bool:
    return "throwable" in name.lower()


def is_conventional_name(name: str, language: LanguageSupport) -> bool:
    return name in language.exception_names


# Declared priority: the first predicate matching any binding wins.
NAME_PREDICATES: tuple[NamePredicate, ...] = (
    is_triple_marker,
    mentions_exception,
    mentions_throwable,
    is_conventional_name,
)


def is_exception_type(type_name: str | None) -> bool:
    return bool(type_name) and "exception" in type_name.lower()


def find_candidate_by_name(
    children: Children,
    language: LanguageSupport,
) -> tuple[str, DebugValue] | None:
    """Return the first binding matched by the name predicates, in order."""
    for predicate in NAME_PREDICATES:
        for name, value in children:
            if predicate(name, language):
                logger.debug("Exception candidate %r matched by %s", name, predicate.__name__)
                return name, value
    return None


# ----------------------------------------------------------------------
# Small resolution helpers
# ----------------------------------------------------------------------
def _resolve_text(value: DebugValue, on_text: Callable[[str], None], *, operation: str) -> None:
    request_presentation(
        value,
        lambda presentation, _has_children: on_text(render_or_fallback(presentation)),
        lambda _error: on_text(RenderError.fallback_text),
        operation=operation,
    )


def _type_from_presentation(presentation: ValuePresentation) -> str | None:
    """Name of the class a presentation shows, or its own type name."""
    match = _CLASS_REPR.match(render_or_fallback(presentation).strip())
    if match:
        return match.group(1)
    return presentation_type(presentation)


class TracebackChainWalk:
    """Render a linked ``tb_frame``/``tb_lineno``/``tb_next`` chain.

    Each link becomes one ``"<code> : <line>"`` line; the walk stops at the
    end of the chain, at *max_lines* lines, or on the first backend error.
    """

    def __init__(self, max_lines: int, on_done: Callable[[str], None]) -> None:
        self._max_lines = max_lines
        self._on_done = on_done
        self._lines: list[str] = []
        self._finished = Once()

    def start(self, traceback_value: DebugValue) -> None:
        self._step(traceback_value)

    def _step(self, link: DebugValue) -> None:
        request_children(link, self._on_link, self._on_error, operation="exception.traceback")

    def _on_link(self, children: Children) -> None:
        fields = dict(children)
        frame = fields.get("tb_frame")
        if frame is None:
            self._finish()
            return
        parts = {"code": "<code>", "line": "?"}
        next_link = fields.get("tb_next")
        barrier = CompletionBarrier(2, lambda: self._after_link(parts, next_link), label="exception.traceback")

        def line_done(text: str) -> None:
            parts["line"] = text
            barrier.arrive()

        def code_done(text: str) -> None:
            parts["code"] = text
            barrier.arrive()

        lineno = fields.get("tb_lineno")
        if lineno is not None:
            _resolve_text(lineno, line_done, operation="exception.traceback")
        else:
            barrier.arrive()
        self._resolve_code(frame, code_done)

    def _resolve_code(self, frame: DebugValue, on_text: Callable[[str], None]) -> None:
        def on_frame_children(children: Children) -> None:
            code = dict(children).get("f_code")
            if code is None:
                on_text("<code>")
            else:
                _resolve_text(code, on_text, operation="exception.traceback")

        request_children(frame, on_frame_children, lambda _error: on_text("<code>"), operation="exception.traceback")

    def _after_link(self, parts: dict[str, str], next_link: DebugValue | None) -> None:
        self._lines.append(f"{parts['code']} : {parts['line']}")
        if next_link is None or len(self._lines) >= self._max_lines:
            self._finish()
        else:
            self._step(next_link)

    def _on_error(self, error: BackendError) -> None:
        logger.debug("Traceback walk stopped: %s", error)
        self._finish()

    def _finish(self) -> None:
        if self._finished.claim():
            self._on_done("\n".join(self._lines))


# ----------------------------------------------------------------------
# Collection
# ----------------------------------------------------------------------
class ExceptionCollection:
    """One exception collection against a paused frame.

    ``on_done`` receives exactly one :class:`ContextItem`: an ``EXCEPTION``
    item when a candidate was found, or the ``SNAPSHOT`` fallback.
    """

    def __init__(
        self,
        frame: DebugFrame,
        config: CollectorConfig,
        language: LanguageSupport,
        on_done: Callable[[ContextItem], None],
    ) -> None:
        self._frame = frame
        self._config = config
        self._language = language
        self._on_done = on_done
        self._delivered = Once()
        self._state = ExceptionState(max_stack_trace_lines=config.max_stack_trace_lines)
        self._candidate_text = ""

    def start(self) -> None:
        request_children(
            self._frame,
            self._on_frame_children,
            self._on_frame_error,
            operation="exception.children",
        )

    def _deliver(self, item: ContextItem) -> None:
        if self._delivered.claim():
            self._on_done(item)

    def _on_frame_error(self, error: BackendError) -> None:
        logger.warning("Exception collection failed: %s", error)
        self._deliver(ContextItem(None, False, ContextKind.EXCEPTION))

    def _on_frame_children(self, children: Children) -> None:
        candidate = find_candidate_by_name(children, self._language)
        if candidate is not None:
            name, value = candidate
            request_presentation(
                value,
                lambda presentation, has_children: self._on_candidate(name, value, presentation, has_children),
                lambda error: self._on_candidate(name, value, None, True),
                operation="exception.presentation",
            )
            return
        self._detect_by_type(children)

    # Type-based detection ---------------------------------------------
    def _detect_by_type(self, children: Children) -> None:
        scanned = children[: self._config.max_children_per_node]
        resolved: list[tuple[ValuePresentation, bool] | None] = [None] * len(scanned)
        barrier = CompletionBarrier(
            len(scanned),
            lambda: self._after_type_scan(children, scanned, resolved),
            label="exception.detect",
        )

        for index, (_name, value) in enumerate(scanned):

            def on_presentation(presentation: ValuePresentation, has_children: bool, index: int = index) -> None:
                resolved[index] = (presentation, has_children)
                barrier.arrive()

            request_presentation(
                value,
                on_presentation,
                lambda _error: barrier.arrive(),
                operation="exception.detect",
            )

    def _after_type_scan(
        self,
        children: Children,
        scanned: Children,
        resolved: list[tuple[ValuePresentation, bool] | None],
    ) -> None:
        for (name, value), entry in zip(scanned, resolved):
            if entry is not None and is_exception_type(presentation_type(entry[0])):
                logger.debug("Exception candidate %r matched by its type", name)
                self._on_candidate(name, value, entry[0], entry[1])
                return
        logger.debug("No exception candidate among %d binding(s); collecting snapshot", len(children))
        walk = SnapshotWalk(self._config, self._language, self._on_snapshot_done)
        walk.start_with_children(children)

    def _on_snapshot_done(self, items: list[SnapshotItem], success: bool) -> None:
        self._deliver(ContextItem(items, success, ContextKind.SNAPSHOT))

    # Assembly ----------------------------------------------------------
    def _on_candidate(
        self,
        name: str,
        value: DebugValue,
        presentation: ValuePresentation | None,
        has_children: bool,
    ) -> None:
        if presentation is not None:
            self._candidate_text = render_or_fallback(presentation)
        else:
            self._candidate_text = RenderError.fallback_text
        if name in self._language.triple_markers:
            request_children(
                value,
                self._on_triple_members,
                self._on_candidate_children_error,
                operation="exception.triple",
            )
            return
        if presentation is not None:
            self._state.set_type(presentation_type(presentation))
        if not has_children:
            self._fallback_to_candidate_text()
            return
        request_children(
            value,
            self._on_candidate_fields,
            self._on_candidate_children_error,
            operation="exception.fields",
        )

    def _on_candidate_children_error(self, error: BackendError) -> None:
        logger.debug("Exception fields unavailable: %s", error)
        self._fallback_to_candidate_text()

    def _fallback_to_candidate_text(self) -> None:
        self._set_message(self._candidate_text)
        self._set_stack_trace("")

    def _on_candidate_fields(self, fields: Children) -> None:
        language = self._language
        message_value = next((v for n, v in fields if language.is_message_field(n)), None)
        detail_value = next((v for n, v in fields if language.is_detail_field(n)), None)
        trace_value = next((v for n, v in fields if language.is_trace_field(n)), None)

        texts: dict[str, str] = {}

        def store(key: str) -> Callable[[str], None]:
            def on_text(text: str) -> None:
                texts[key] = text
                message_barrier.arrive()

            return on_text

        def message_ready() -> None:
            message = texts.get("message") or self._candidate_text
            self._set_message(message, texts.get("detail"))

        pending = [(key, v) for key, v in (("message", message_value), ("detail", detail_value)) if v is not None]
        message_barrier = CompletionBarrier(len(pending), message_ready, label="exception.message")
        for key, v in pending:
            _resolve_text(v, store(key), operation="exception.message")

        if trace_value is None:
            self._set_stack_trace("")
        else:
            self._render_trace(trace_value)

    def _on_triple_members(self, members: Children) -> None:
        if len(members) != 3:
            logger.debug("Exception triple has %d member(s); using its own text", len(members))
            self._fallback_to_candidate_text()
            return
        (_, type_value), (_, exc_value), (_, tb_value) = members
        texts: dict[str, str] = {}
        message_barrier = CompletionBarrier(
            2,
            lambda: self._set_message(texts.get("message") or self._candidate_text),
            label="exception.triple",
        )

        def on_type(presentation: ValuePresentation, _has_children: bool) -> None:
            self._state.set_type(_type_from_presentation(presentation))
            message_barrier.arrive()

        request_presentation(type_value, on_type, lambda _error: message_barrier.arrive(), operation="exception.triple")

        def on_message(text: str) -> None:
            texts["message"] = text
            message_barrier.arrive()

        self._resolve_triple_message(exc_value, on_message)
        self._render_trace(tb_value)

    def _resolve_triple_message(self, exc_value: DebugValue, on_text: Callable[[str], None]) -> None:
        def on_presentation(presentation: ValuePresentation, has_children: bool) -> None:
            own_text = render_or_fallback(presentation)
            if not has_children:
                on_text(own_text)
                return

            def on_fields(fields: Children) -> None:
                message_field = next((v for n, v in fields if self._language.is_message_field(n)), None)
                if message_field is None:
                    on_text(own_text)
                else:
                    _resolve_text(message_field, on_text, operation="exception.message")

            request_children(exc_value, on_fields, lambda _error: on_text(own_text), operation="exception.message")

        request_presentation(
            exc_value,
            on_presentation,
            lambda _error: on_text(RenderError.fallback_text),
            operation="exception.message",
        )

    def _render_trace(self, trace_value: DebugValue) -> None:
        max_lines = self._config.max_stack_trace_lines

        def on_presentation(presentation: ValuePresentation, has_children: bool) -> None:
            text = render_or_fallback(presentation)
            if not has_children:
                self._set_stack_trace("" if text.strip() in _NULL_TEXTS else text)
            elif self._language.walks_traceback_chain:
                TracebackChainWalk(max_lines, self._set_stack_trace).start(trace_value)
            else:
                request_children(
                    trace_value,
                    self._render_trace_elements,
                    lambda _error: self._set_stack_trace(text),
                    operation="exception.trace",
                )

        request_presentation(
            trace_value,
            on_presentation,
            lambda _error: self._set_stack_trace(""),
            operation="exception.trace",
        )

    def _render_trace_elements(self, elements: Children) -> None:
        shown = elements[: self._config.max_stack_trace_lines]
        lines = [""] * len(shown)
        barrier = CompletionBarrier(
            len(shown),
            lambda: self._set_stack_trace("\n".join(line for line in lines if line)),
            label="exception.trace",
        )
        for index, (_name, element) in enumerate(shown):

            def on_text(text: str, index: int = index) -> None:
                lines[index] = text
                barrier.arrive()

            _resolve_text(element, on_text, operation="exception.trace")

    # State transitions -------------------------------------------------
    def _set_message(self, message: str, detail: str | None = None) -> None:
        if self._state.set_message(message, detail):
            self._complete()

    def _set_stack_trace(self, trace: str) -> None:
        if self._state.set_stack_trace(trace):
            self._complete()

    def _complete(self) -> None:
        detail = self._state.build_detail(_frame_position(self._frame))
        logger.debug("Exception detail assembled: type=%s", detail.type)
        self._deliver(ContextItem(detail, True, ContextKind.EXCEPTION))


def _frame_position(frame: DebugFrame) -> SourcePosition | None:
    try:
        return frame.source_position()
    except Exception:
        logger.debug("Frame position unavailable", exc_info=True)
        return None


__all__ = [
    "NAME_PREDICATES",
    "ExceptionCollection",
    "TracebackChainWalk",
    "find_candidate_by_name",
    "is_conventional_name",
    "is_exception_type",
    "is_triple_marker",
    "mentions_exception",
    "mentions_throwable",
]
