"""Locate the Python function enclosing a source line.

Sources are read through :mod:`linecache`, so files compiled from strings
that registered themselves there resolve as well. Parsed function spans
are cached per path and recomputed when the source text changes.
"""

from __future__ import annotations

import ast
import linecache
import logging
import threading
from typing import NamedTuple

from debugctx.backend.protocol import EnclosingFunction

logger = logging.getLogger(__name__)


class FunctionSpan(NamedTuple):
    """1-based, inclusive line span of a function (decorators included)."""

    name: str
    start_line: int
    end_line: int


def function_spans(source: str) -> list[FunctionSpan]:
    """Return the spans of every function and method defined in *source*.

    Raises:
        SyntaxError: *source* does not parse.
    """
    tree = ast.parse(source)
    spans: list[FunctionSpan] = []
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            start = min([node.lineno] + [d.lineno for d in node.decorator_list])
            end = node.end_lineno or node.lineno
            spans.append(FunctionSpan(node.name, start, end))
    return spans


def innermost_span(spans: list[FunctionSpan], line: int) -> FunctionSpan | None:
    containing = [span for span in spans if span.start_line <= line <= span.end_line]
    if not containing:
        return None
    return max(containing, key=lambda span: span.start_line)


class PythonSourceNavigator:
    """``SourceNavigator`` for Python files."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cache: dict[str, tuple[list[str], list[FunctionSpan]]] = {}

    def enclosing_function_text(self, path: str, line: int) -> EnclosingFunction | None:
        parsed = self._parse(path)
        if parsed is None:
            return None
        lines, spans = parsed
        span = innermost_span(spans, line)
        if span is None:
            return None
        text = "".join(lines[span.start_line - 1 : span.end_line]).rstrip("\n")
        return EnclosingFunction(text, span.start_line)

    def _parse(self, path: str) -> tuple[list[str], list[FunctionSpan]] | None:
        linecache.checkcache(path)
        lines = linecache.getlines(path)
        if not lines:
            logger.debug("No source available for %s", path)
            return None
        with self._lock:
            cached = self._cache.get(path)
        if cached is not None and cached[0] == lines:
            return cached
        try:
            spans = function_spans("".join(lines))
        except SyntaxError as e:
            logger.debug("Cannot parse %s: %s", path, e)
            return None
        parsed = (lines, spans)
        with self._lock:
            self._cache[path] = parsed
        return parsed

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


__all__ = ["FunctionSpan", "PythonSourceNavigator", "function_spans", "innermost_span"]
