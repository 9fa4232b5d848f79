"""Utilities for bridging the bot's asyncio loop with tkinter's main thread."""

import asyncio
import threading
from typing import Callable, Coroutine, Any, Optional
from concurrent.futures import Future
import logging

logger = logging.getLogger(__name__)


class AsyncBridge:
    """Runs an asyncio event loop in a background thread.

    The Discord client lives on this loop, so the console stays responsive
    while the bot is connected.
    """

    def __init__(self, stop_timeout: float = 5.0):
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._stop_timeout = stop_timeout

    @property
    def is_running(self) -> bool:
        """Check if the loop is running."""
        return self._running and self._loop is not None

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    def start(self) -> None:
        """Start the event loop in a background thread."""
        if self._running:
            return

        self._loop = asyncio.new_event_loop()
        self._running = True
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name="AsyncBridge")
        self._thread.start()
        logger.info("AsyncBridge started")

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()
            logger.info("AsyncBridge event loop closed")

    def run_async(
        self,
        coro: Coroutine[Any, Any, Any],
        callback: Optional[Callable[[Any], None]] = None,
        error_callback: Optional[Callable[[Exception], None]] = None,
    ) -> Optional[Future]:
        """Schedule a coroutine to run in the loop.

        Args:
            coro: The coroutine to run
            callback: Optional callback for the result (called in the loop thread)
            error_callback: Optional callback for exceptions (called in the loop thread)

        Returns:
            A Future for the result, or None if the loop is not running
        """
        if not self._loop or not self._running:
            logger.warning("AsyncBridge not running, cannot schedule coroutine")
            coro.close()
            return None

        future = asyncio.run_coroutine_threadsafe(coro, self._loop)

        if callback or error_callback:

            def handle_result(f: Future):
                try:
                    result = f.result()
                except Exception as e:
                    logger.error(f"Error in async operation: {e}")
                    if error_callback:
                        error_callback(e)
                    return
                if callback:
                    callback(result)

            future.add_done_callback(handle_result)

        return future

    def run_async_with_gui_callback(
        self,
        coro: Coroutine[Any, Any, Any],
        gui_schedule: Callable[[int, Callable], None],
        callback: Optional[Callable[[Any], None]] = None,
        error_callback: Optional[Callable[[Exception], None]] = None,
    ) -> Optional[Future]:
        """Schedule a coroutine and call back on the GUI thread.

        Args:
            coro: The coroutine to run
            gui_schedule: Schedules a callback on the GUI thread, with the
                          (delay_ms, callback) signature of tkinter's after()
            callback: Optional callback for the result (called on the GUI thread)
            error_callback: Optional callback for exceptions (called on the GUI thread)

        Returns:
            A Future for the result, or None if the loop is not running
        """
        return self.run_async(
            coro,
            callback=(lambda result: gui_schedule(0, lambda: callback(result))) if callback else None,
            error_callback=(lambda e: gui_schedule(0, lambda: error_callback(e))) if error_callback else None,
        )

    def run_sync(self, coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
        """Run a coroutine in the loop and wait for its result.

        Must not be called from the loop thread.

        Raises:
            RuntimeError: If the loop is not running
        """
        future = self.run_async(coro)
        if future is None:
            raise RuntimeError("AsyncBridge not running")
        return future.result(timeout)

    def stop(self) -> None:
        """Stop the event loop."""
        if not self._running:
            return

        self._running = False

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=self._stop_timeout)

        logger.info("AsyncBridge stopped")

    def __enter__(self) -> "AsyncBridge":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
