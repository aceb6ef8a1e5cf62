"""Flatten a backend value presentation into a single string."""

from __future__ import annotations

from typing import TYPE_CHECKING

from debugctx.errors import RenderError
from debugctx.errors import UnresolvedValueError
from debugctx.errors import classify_render_error

if TYPE_CHECKING:
    from debugctx.backend.protocol import ValuePresentation

# Texts some backends render while a value is still being computed.
PENDING_TEXTS = frozenset({"Collecting data...", "Calculating..."})


class TextCollector:
    """A ``TextRenderer`` that concatenates every visible fragment.

    Comments are dropped; ``None`` fragments are skipped.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []

    def _append(self, value: str | None) -> None:
        if value is not None:
            self._parts.append(value)

    def render_value(self, value: str | None) -> None:
        self._append(value)

    def render_string_value(self, value: str | None) -> None:
        self._append(value)

    def render_numeric_value(self, value: str | None) -> None:
        self._append(value)

    def render_keyword_value(self, value: str | None) -> None:
        self._append(value)

    def render_special_symbol(self, symbol: str) -> None:
        self._append(symbol)

    def render_comment(self, comment: str) -> None:
        pass

    def render_error(self, error: str) -> None:
        self._append(error)

    @property
    def text(self) -> str:
        return "".join(self._parts)


def render_presentation(presentation: ValuePresentation) -> str:
    """Render *presentation* to text.

    Raises:
        UnresolvedValueError: The backend has not computed the value yet.
        RenderError: Rendering raised.
    """
    collector = TextCollector()
    try:
        presentation.render(collector)
    except Exception as e:
        raise classify_render_error(e) from e
    return collector.text


def presentation_type(presentation: ValuePresentation) -> str | None:
    """Return the presentation's type name, or ``None`` if it has none."""
    try:
        type_name = presentation.type_name
    except Exception:
        return None
    return type_name or None


def render_or_fallback(presentation: ValuePresentation) -> str:
    """Render *presentation*, substituting the fallback text on failure."""
    try:
        text = render_presentation(presentation)
    except RenderError as e:
        return e.fallback_text
    if is_pending_text(text):
        return UnresolvedValueError.fallback_text
    return text


def is_pending_text(text: str) -> bool:
    """Return ``True`` if *text* is a "still computing" placeholder."""
    return text.strip() in PENDING_TEXTS


__all__ = [
    "PENDING_TEXTS",
    "TextCollector",
    "is_pending_text",
    "presentation_type",
    "render_or_fallback",
    "render_presentation",
]
