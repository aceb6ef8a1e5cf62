"""Fan-out/join barrier for asynchronous backend callbacks."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class CompletionBarrier:
    """Invoke a continuation once ``count`` child operations have arrived.

    Every child operation must call :meth:`arrive` exactly once, whether it
    succeeded, failed to render, or the backend reported an error for it.
    Children that are never issued (a budget stopped the fan-out) are
    accounted for with ``arrive(n)``. Arrivals may come from any thread and
    in any order; the decrement-and-check is atomic, and the continuation
    runs exactly once, on the thread of the final arrival.

    With ``count == 0`` the continuation runs synchronously in the
    constructor.
    """

    def __init__(self, count: int, on_complete: Callable[[], None], *, label: str = "join") -> None:
        if count < 0:
            msg = "count must not be negative"
            raise ValueError(msg)
        self._lock = threading.Lock()
        self._remaining = count
        self._fired = False
        self._on_complete = on_complete
        self.label = label
        if count == 0:
            self._fire()

    @property
    def remaining(self) -> int:
        with self._lock:
            return self._remaining

    @property
    def fired(self) -> bool:
        with self._lock:
            return self._fired

    def arrive(self, n: int = 1) -> None:
        """Record *n* completed child operations."""
        if n <= 0:
            return
        with self._lock:
            if self._fired or n > self._remaining:
                logger.warning(
                    "%s: ignoring %d unexpected arrival(s) (%d remaining)",
                    self.label,
                    n,
                    self._remaining,
                )
                if self._fired:
                    return
                n = self._remaining
            self._remaining -= n
            if self._remaining:
                return
        self._fire()

    def _fire(self) -> None:
        with self._lock:
            if self._fired:
                return
            self._fired = True
        try:
            self._on_complete()
        except Exception:
            logger.exception("%s: continuation failed", self.label)


class Once:
    """Thread-safe guard that lets exactly one caller through."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = False

    def claim(self) -> bool:
        """Return ``True`` for the first caller only."""
        with self._lock:
            if self._done:
                return False
            self._done = True
            return True

    @property
    def done(self) -> bool:
        with self._lock:
            return self._done


__all__ = ["CompletionBarrier", "Once"]
