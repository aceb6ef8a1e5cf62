"""Latest result of each collection kind."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import TYPE_CHECKING
from typing import Any

from debugctx.core.models import ContextKind

if TYPE_CHECKING:
    from debugctx.core.models import ExceptionDetail
    from debugctx.core.models import SnapshotItem
    from debugctx.core.models import StackItem

logger = logging.getLogger(__name__)


class _Slot:
    def __init__(self, empty: Any) -> None:
        self.lock = threading.Lock()
        self.empty = empty
        self.value = empty
        self.published_ticket = 0


class LatestResultStore:
    """Holds the most recent snapshot, stack and exception results.

    Each collection takes a ticket with :meth:`begin` before it starts and
    hands it back to :meth:`publish`. A publish carrying a ticket older than
    the one already published for that kind is dropped, so a slow, stale
    collection can never overwrite a newer result. :meth:`clear` empties
    every slot and invalidates all tickets issued so far.
    """

    def __init__(self) -> None:
        self._tickets = itertools.count(1)
        self._ticket_lock = threading.Lock()
        self._slots = {
            ContextKind.SNAPSHOT: _Slot([]),
            ContextKind.STACK: _Slot([]),
            ContextKind.EXCEPTION: _Slot(None),
        }

    def begin(self, kind: ContextKind) -> int:
        """Return a new ticket for a collection of *kind*."""
        with self._ticket_lock:
            return next(self._tickets)

    def publish(self, kind: ContextKind, ticket: int, value: Any) -> bool:
        """Replace the slot for *kind* unless a newer ticket already did."""
        slot = self._slots[kind]
        with slot.lock:
            if ticket <= slot.published_ticket:
                logger.debug("Dropping stale %s result (ticket %d <= %d)", kind.value, ticket, slot.published_ticket)
                return False
            slot.published_ticket = ticket
            slot.value = list(value) if isinstance(value, list) else value
            return True

    def clear(self) -> None:
        with self._ticket_lock:
            # Every ticket handed out so far becomes stale.
            horizon = next(self._tickets)
        for slot in self._slots.values():
            with slot.lock:
                slot.value = list(slot.empty) if isinstance(slot.empty, list) else slot.empty
                slot.published_ticket = max(slot.published_ticket, horizon)

    def _get(self, kind: ContextKind) -> Any:
        slot = self._slots[kind]
        with slot.lock:
            return list(slot.value) if isinstance(slot.value, list) else slot.value

    def latest_snapshot(self) -> list[SnapshotItem]:
        return self._get(ContextKind.SNAPSHOT)

    def latest_stack(self) -> list[StackItem]:
        return self._get(ContextKind.STACK)

    def latest_exception(self) -> ExceptionDetail | None:
        return self._get(ContextKind.EXCEPTION)


__all__ = ["LatestResultStore"]
