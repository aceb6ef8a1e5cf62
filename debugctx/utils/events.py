"""Minimal thread-safe event emitter used by the debug session.

Listeners are plain callables; emitting never raises into the caller,
which is usually a backend callback thread.
"""

from __future__ import annotations

import logging
import threading
from typing import Any
from typing import Callable

logger = logging.getLogger(__name__)


class EventEmitter:
    """Tiny synchronous event emitter.

    API:
    - add_listener(callable) -> callable that removes it again
    - remove_listener(callable)
    - emit(*args, **kwargs)
    """

    def __init__(self, name: str = "event") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._listeners: list[Callable[..., Any]] = []

    def add_listener(self, fn: Callable[..., Any]) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(fn)
        return lambda: self.remove_listener(fn)

    def remove_listener(self, fn: Callable[..., Any]) -> None:
        with self._lock:
            if fn in self._listeners:
                self._listeners.remove(fn)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def emit(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for fn in listeners:
            try:
                fn(*args, **kwargs)
            except Exception:
                logger.exception("error in %s listener", self.name)
