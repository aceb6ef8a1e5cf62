"""Per-language conventions used by exception detection and rendering.

Each supported source language registers a :class:`LanguageSupport` at
startup. Collectors look one up by the language hint of the paused frame
(its file extension) instead of probing the backend for language-specific
value classes.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from debugctx.backend.protocol import DebugValue


@dataclass(frozen=True)
class LanguageSupport:
    """Names and hooks describing how a language exposes exceptions.

    Attributes:
        name: Language name, e.g. ``"python"``.
        extensions: File extensions (without dot) mapped to this language.
        triple_markers: Binding names holding a ``(type, value, traceback)``
            triple, e.g. Python's ``__exception__``.
        exception_names: Conventional short names of exception bindings.
        message_fields: Fields of an exception holding its primary message.
        detail_fields: Fields holding a secondary detail message.
        trace_fields: Exact field names holding the stack trace; any field
            whose name contains ``"traceback"`` also qualifies.
        walks_traceback_chain: Trace values are linked ``tb_next`` chains.
        fallback_text: Optional hook returning display text for a binding
            whose presentation rendered as empty text.
    """

    name: str
    extensions: frozenset[str] = frozenset()
    triple_markers: frozenset[str] = frozenset()
    exception_names: frozenset[str] = frozenset({"e", "ex", "exc", "err"})
    message_fields: tuple[str, ...] = ("message",)
    detail_fields: tuple[str, ...] = ("detailMessage",)
    trace_fields: tuple[str, ...] = ("stackTrace",)
    walks_traceback_chain: bool = False
    fallback_text: Callable[[str, DebugValue], str | None] | None = field(default=None, compare=False)

    def is_message_field(self, name: str) -> bool:
        return name in self.message_fields or name.lower() == "message"

    def is_detail_field(self, name: str) -> bool:
        return name in self.detail_fields

    def is_trace_field(self, name: str) -> bool:
        return name in self.trace_fields or "traceback" in name.lower()


GENERIC = LanguageSupport(name="generic")

JAVA = LanguageSupport(
    name="java",
    extensions=frozenset({"java"}),
)

KOTLIN = LanguageSupport(
    name="kotlin",
    extensions=frozenset({"kt", "kts"}),
)

_MISSING = object()


def _python_fallback_text(name: str, value: DebugValue) -> str | None:
    """Name the type of a live object whose ``repr()`` came back empty."""
    obj = getattr(value, "value", _MISSING)
    if obj is _MISSING:
        return None
    return f"<{type(obj).__name__} object>"


PYTHON = LanguageSupport(
    name="python",
    extensions=frozenset({"py", "pyw"}),
    triple_markers=frozenset({"__exception__"}),
    exception_names=frozenset({"e", "ex", "exc", "err", "error"}),
    message_fields=("args", "msg", "message"),
    detail_fields=(),
    trace_fields=("__traceback__",),
    walks_traceback_chain=True,
    fallback_text=_python_fallback_text,
)


class LanguageRegistry:
    """Typed lookup of :class:`LanguageSupport` by name or file extension."""

    def __init__(self, default: LanguageSupport = GENERIC) -> None:
        self._lock = threading.Lock()
        self._default = default
        self._by_name: dict[str, LanguageSupport] = {}
        self._by_extension: dict[str, LanguageSupport] = {}

    def register(self, support: LanguageSupport) -> None:
        """Register *support*, replacing any provider with the same keys."""
        with self._lock:
            self._by_name[support.name.lower()] = support
            for ext in support.extensions:
                self._by_extension[ext.lower()] = support

    def for_hint(self, hint: str | None) -> LanguageSupport:
        """Return the provider for a language name or file extension."""
        if not hint:
            return self._default
        key = hint.lower().lstrip(".")
        with self._lock:
            return self._by_extension.get(key) or self._by_name.get(key) or self._default

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._by_name)


def default_registry() -> LanguageRegistry:
    """Return a registry populated with the built-in languages."""
    registry = LanguageRegistry()
    for support in (JAVA, KOTLIN, PYTHON):
        registry.register(support)
    return registry


__all__ = [
    "GENERIC",
    "JAVA",
    "KOTLIN",
    "PYTHON",
    "LanguageRegistry",
    "LanguageSupport",
    "default_registry",
]
