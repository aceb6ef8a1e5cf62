"""Error hierarchy for the debug context collector.

Collection never raises these out of a backend callback: they are raised
at the edge of a single operation (rendering one value, listing one set of
children, locating the active stack) and converted into a fallback value or
an unsuccessful :class:`~debugctx.core.models.ContextItem` by the caller.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Messages backends use for presentations that have not been computed yet.
_UNRESOLVED_MARKERS = ("not yet calculated", "collecting data")


class DebugCtxError(Exception):
    """Base exception for all debugctx errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a dictionary for logging or payloads."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause!s})"
        return self.message


class ConfigurationError(DebugCtxError):
    """Raised when a collector budget or option is invalid."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, error_code="ConfigurationError", details=details, **kwargs)
        self.config_key = config_key


class BackendError(DebugCtxError):
    """Raised when the debugger backend fails while a request is issued."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        super().__init__(message, error_code=kwargs.pop("error_code", "BackendError"), details=details, **kwargs)
        self.operation = operation


class BackendUnavailableError(BackendError):
    """Raised when there is no active stack or frame to collect from."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, error_code="BackendUnavailable", **kwargs)


class StructuralError(BackendError):
    """The backend reported an error instead of children or frames."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, error_code="StructuralFailure", **kwargs)


class RenderError(DebugCtxError):
    """Raised when a value presentation cannot be rendered to text."""

    fallback_text = "Value not available"

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "RenderFailure")
        super().__init__(message, **kwargs)


class UnresolvedValueError(RenderError):
    """The backend has not computed the value's presentation yet."""

    fallback_text = "Calculating..."

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, error_code="UnresolvedValue", **kwargs)


def is_unresolved_message(text: str | None) -> bool:
    """Return ``True`` if *text* is a backend "value not computed yet" marker."""
    if not text:
        return False
    lowered = text.lower()
    return any(marker in lowered for marker in _UNRESOLVED_MARKERS)


def classify_render_error(e: BaseException) -> RenderError:
    """Wrap a foreign exception raised while rendering a presentation."""
    if isinstance(e, RenderError):
        return e
    if is_unresolved_message(str(e)):
        return UnresolvedValueError(f"Value not resolved: {e!s}", cause=e)
    return RenderError(f"Error rendering value: {e!s}", cause=e)


def classify_backend_error(e: BaseException, *, operation: str) -> BackendError:
    """Wrap a foreign exception raised by the backend for *operation*."""
    if isinstance(e, BackendError):
        return e
    return BackendError(f"Error in backend operation {operation}: {e!s}", operation=operation, cause=e)


def log_backend_failure(e: BaseException, *, operation: str, level: int = logging.WARNING) -> BackendError:
    """Classify *e*, log it at *level* and return the wrapped error."""
    wrapped = classify_backend_error(e, operation=operation)
    logger.log(level, str(wrapped), exc_info=not isinstance(e, DebugCtxError))
    return wrapped


__all__ = [
    "BackendError",
    "BackendUnavailableError",
    "ConfigurationError",
    "DebugCtxError",
    "RenderError",
    "StructuralError",
    "UnresolvedValueError",
    "classify_backend_error",
    "classify_render_error",
    "is_unresolved_message",
    "log_backend_failure",
]
