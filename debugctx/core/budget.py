"""Size and call budgets for collected results."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING
from typing import TypeVar

from debugctx.core.models import serialize_items

if TYPE_CHECKING:
    from collections.abc import Sequence

    from debugctx.core.models import SnapshotItem
    from debugctx.core.models import StackItem

T = TypeVar("T", "SnapshotItem", "StackItem")

# Rough JSON overhead of one placeholder snapshot item:
# {"name":"","type":"unknown","value":"unavailable","kind":"Local","children":[]},
PLACEHOLDER_OVERHEAD = 80


def serialized_size(items: Sequence[SnapshotItem | StackItem]) -> int:
    """Return the UTF-8 byte length of the serialized form of *items*."""
    return len(serialize_items(items).encode("utf-8"))


def trim(items: Sequence[T], max_bytes: int) -> list[T]:
    """Drop trailing elements until the serialized list fits *max_bytes*.

    Returns a new list; *items* is left untouched.
    """
    result = list(items)
    while result and serialized_size(result) > max_bytes:
        result.pop()
    return result


class WalkBudget:
    """Call counter and running size estimate shared by one snapshot walk.

    Safe to use from any backend callback thread.
    """

    def __init__(self, max_calls: int, max_bytes: int) -> None:
        self._lock = threading.Lock()
        self.max_calls = max_calls
        self.max_bytes = max_bytes
        self.calls = 0
        self.estimated_bytes = 2  # "[]"

    def try_acquire_call(self, estimated_bytes: int = PLACEHOLDER_OVERHEAD) -> bool:
        """Reserve one backend call and charge *estimated_bytes*.

        Returns ``False`` (reserving nothing) when either budget is spent.
        """
        with self._lock:
            if self.calls >= self.max_calls:
                return False
            if self.estimated_bytes + estimated_bytes > self.max_bytes:
                return False
            self.calls += 1
            self.estimated_bytes += estimated_bytes
            return True

    def charge(self, nbytes: int) -> None:
        """Account for text resolved after the call was issued."""
        if nbytes <= 0:
            return
        with self._lock:
            self.estimated_bytes += nbytes

    @property
    def exhausted(self) -> bool:
        with self._lock:
            return self.calls >= self.max_calls or self.estimated_bytes >= self.max_bytes


__all__ = ["PLACEHOLDER_OVERHEAD", "WalkBudget", "serialized_size", "trim"]
