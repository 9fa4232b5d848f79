"""
Tests for the asyncio bridge.
"""
import asyncio
import threading

import pytest

from blakebot.utils.async_helpers import AsyncBridge


@pytest.fixture
def bridge():
    bridge = AsyncBridge()
    bridge.start()
    yield bridge
    bridge.stop()


def test_run_sync(bridge):
    """Coroutines run on the bridge loop and return their result."""
    async def add(a, b):
        await asyncio.sleep(0)
        return a + b

    assert bridge.run_sync(add(2, 3), timeout=5) == 5


def test_callbacks(bridge):
    """Result and error callbacks are called."""
    results = []
    errors = []
    done = threading.Event()
    ok_done = threading.Event()

    async def ok():
        return "ok"

    async def fail():
        raise ValueError("bad")

    def on_result(result):
        results.append(result)
        ok_done.set()

    def on_error(e):
        errors.append(e)
        done.set()

    bridge.run_async(ok(), callback=on_result)
    bridge.run_async(fail(), error_callback=on_error)

    assert done.wait(5)
    assert ok_done.wait(5)
    assert isinstance(errors[0], ValueError)
    assert results == ["ok"]


def test_gui_callback_is_scheduled(bridge):
    """GUI callbacks go through the scheduling function."""
    scheduled = []
    done = threading.Event()

    def schedule(delay_ms, callback):
        scheduled.append(delay_ms)
        callback()

    async def value():
        return 42

    bridge.run_async_with_gui_callback(value(), schedule, callback=lambda result: done.set())

    assert done.wait(5)
    assert scheduled == [0]


def test_not_running_returns_none():
    """Nothing is scheduled when the bridge is stopped."""
    bridge = AsyncBridge()

    async def noop():
        return None

    assert bridge.run_async(noop()) is None
    with pytest.raises(RuntimeError):
        bridge.run_sync(noop())


def test_stop_is_idempotent():
    """Stopping twice is harmless."""
    bridge = AsyncBridge()
    bridge.start()

    bridge.stop()
    bridge.stop()

    assert not bridge.is_running
