"""Error handling for the debug context collector."""

from debugctx.errors.collector_errors import BackendError
from debugctx.errors.collector_errors import BackendUnavailableError
from debugctx.errors.collector_errors import ConfigurationError
from debugctx.errors.collector_errors import DebugCtxError
from debugctx.errors.collector_errors import RenderError
from debugctx.errors.collector_errors import StructuralError
from debugctx.errors.collector_errors import UnresolvedValueError
from debugctx.errors.collector_errors import classify_backend_error
from debugctx.errors.collector_errors import classify_render_error
from debugctx.errors.collector_errors import is_unresolved_message
from debugctx.errors.collector_errors import log_backend_failure

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
