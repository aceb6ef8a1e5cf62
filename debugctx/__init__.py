"""debugctx - Bounded debug context collection for paused programs."""

from debugctx.config import CollectorConfig
from debugctx.core.collector import DebugContextCollector
from debugctx.core.models import ContextItem
from debugctx.core.models import ContextKind
from debugctx.core.models import ExceptionDetail
from debugctx.core.models import SnapshotItem
from debugctx.core.models import StackItem
from debugctx.session import DebugContextSession

__all__ = [
    "CollectorConfig",
    "ContextItem",
    "ContextKind",
    "DebugContextCollector",
    "DebugContextSession",
    "ExceptionDetail",
    "SnapshotItem",
    "StackItem",
    "__version__",
    "main",
]
__version__ = "0.1.0"


def main() -> int:
    """Entry point that mirrors :func:`debugctx.cli.main`."""
    from debugctx.cli import main as _cli_main

    return _cli_main()
