"""
debugctx.core - Collection engine.

Bounded snapshot walking, exception detection and assembly, stack
collection and the store of latest results.
"""

from debugctx.core.budget import WalkBudget
from debugctx.core.budget import serialized_size
from debugctx.core.budget import trim
from debugctx.core.collector import DebugContextCollector
from debugctx.core.exception_collector import ExceptionCollection
from debugctx.core.exception_state import ExceptionPhase
from debugctx.core.exception_state import ExceptionState
from debugctx.core.join import CompletionBarrier
from debugctx.core.languages import LanguageRegistry
from debugctx.core.languages import LanguageSupport
from debugctx.core.languages import default_registry
from debugctx.core.models import ContextItem
from debugctx.core.models import ContextKind
from debugctx.core.models import ExceptionDetail
from debugctx.core.models import ItemKind
from debugctx.core.models import SnapshotItem
from debugctx.core.models import SnapshotItemBuilder
from debugctx.core.models import StackItem
from debugctx.core.result_store import LatestResultStore
from debugctx.core.stack_collector import StackCollection
from debugctx.core.stack_collector import clip_excerpt
from debugctx.core.tree_walker import SnapshotWalk

__all__ = [
    # Join
    "CompletionBarrier",
    # Results
    "ContextItem",
    "ContextKind",
    # Facade
    "DebugContextCollector",
    # Exceptions
    "ExceptionCollection",
    "ExceptionDetail",
    "ExceptionPhase",
    "ExceptionState",
    "ItemKind",
    # Languages
    "LanguageRegistry",
    "LanguageSupport",
    # Store
    "LatestResultStore",
    "SnapshotItem",
    "SnapshotItemBuilder",
    # Walkers
    "SnapshotWalk",
    "StackCollection",
    "StackItem",
    # Budgets
    "WalkBudget",
    "clip_excerpt",
    "default_registry",
    "serialized_size",
    "trim",
]
