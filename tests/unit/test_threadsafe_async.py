"""Tests for resolving asyncio futures from backend threads."""

import asyncio
import threading

import pytest

from debugctx.utils.threadsafe_async import future_callback
from debugctx.utils.threadsafe_async import set_result_threadsafe


@pytest.mark.asyncio
async def test_callback_from_other_thread() -> None:
    future, callback = future_callback()

    threading.Thread(target=callback, args=("done",)).start()

    assert await asyncio.wait_for(future, 5) == "done"


@pytest.mark.asyncio
async def test_only_first_result_counts() -> None:
    future, callback = future_callback()

    callback(1)
    callback(2)

    assert await future == 1


@pytest.mark.asyncio
async def test_explicit_loop() -> None:
    loop = asyncio.get_running_loop()
    future, callback = future_callback(loop)

    callback("x")

    assert future.get_loop() is loop
    assert await future == "x"


def test_closed_loop_drops_result() -> None:
    loop = asyncio.new_event_loop()
    future = loop.create_future()
    loop.close()

    assert set_result_threadsafe(future, 1) is False
    assert not future.done()
