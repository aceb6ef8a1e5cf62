from __future__ import annotations

import asyncio
import logging
from typing import Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def set_result_threadsafe(future: asyncio.Future[T], value: T) -> bool:
    """Resolve ``future`` with ``value`` from any thread.

    Returns ``False`` when the future's loop is closed and the value could
    not be delivered.
    """
    loop = future.get_loop()
    if loop.is_closed():
        logger.debug("Dropping result for a future whose loop is closed")
        return False

    def _set() -> None:
        if not future.done():
            future.set_result(value)

    try:
        loop.call_soon_threadsafe(_set)
    except RuntimeError:
        # Loop closed between the check and the call.
        return False
    return True


def future_callback(loop: asyncio.AbstractEventLoop | None = None) -> tuple[asyncio.Future[T], Callable[[T], None]]:
    """Return a future on ``loop`` and a callback that resolves it.

    The callback may be invoked on any thread; only its first invocation
    has an effect.
    """
    if loop is None:
        loop = asyncio.get_running_loop()
    future: asyncio.Future[T] = loop.create_future()

    def callback(value: T) -> None:
        set_result_threadsafe(future, value)

    return future, callback
