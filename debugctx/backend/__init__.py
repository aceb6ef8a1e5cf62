"""Debugger backend interfaces and the in-process Python backend."""

from debugctx.backend.protocol import DebugBackend
from debugctx.backend.protocol import DebugFrame
from debugctx.backend.protocol import DebugValue
from debugctx.backend.protocol import EnclosingFunction
from debugctx.backend.protocol import SourceNavigator
from debugctx.backend.protocol import SourcePosition
from debugctx.backend.python_backend import BackendOptions
from debugctx.backend.python_backend import ImmediateDispatcher
from debugctx.backend.python_backend import PythonBackend
from debugctx.backend.python_backend import PythonFrame
from debugctx.backend.python_backend import PythonValue
from debugctx.backend.python_backend import ThreadPoolDispatcher

__all__ = [
    "BackendOptions",
    "DebugBackend",
    "DebugFrame",
    "DebugValue",
    "EnclosingFunction",
    "ImmediateDispatcher",
    "PythonBackend",
    "PythonFrame",
    "PythonValue",
    "SourceNavigator",
    "SourcePosition",
    "ThreadPoolDispatcher",
]
