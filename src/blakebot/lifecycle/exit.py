"""Terminates the program only after every cleanup task has finished."""

from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor, wait
import sys
import threading
from typing import Callable, Optional
import logging

from ..core.errors import ExitAborted

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0


class ExitHandler(ABC):
    """A component that must clean up before the program terminates."""

    @abstractmethod
    def handle(self) -> None:
        """Perform the cleanup tasks."""


class ExitCoordinator:
    """Runs all registered exit handlers, then terminates the program.

    Handlers run concurrently on a bounded worker pool and must not depend on
    each other. The program is only terminated once every handler has
    returned; if waiting for them is interrupted, the exit is aborted and the
    program keeps running.
    """

    def __init__(
        self,
        max_workers: int = 4,
        terminate: Callable[[int], None] = sys.exit,
    ):
        """Initialize the coordinator.

        Args:
            max_workers: Maximum number of handlers run at the same time
            terminate: Called with the exit code once all handlers finished
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self._max_workers = max_workers
        self._terminate = terminate
        self._handlers: list[ExitHandler] = []
        self._lock = threading.Lock()
        self._exit_lock = threading.Lock()
        self._exited = False
        # Handlers left running by an aborted request.
        self._in_flight: list[tuple[ExitHandler, Future]] = []

    @property
    def handlers(self) -> list[ExitHandler]:
        """Get a snapshot of the registered handlers."""
        with self._lock:
            return list(self._handlers)

    @property
    def has_exited(self) -> bool:
        """Check if a previous exit request completed."""
        return self._exited

    def register(self, handler: ExitHandler) -> bool:
        """Register a handler to be run before exiting.

        Returns:
            True if it was added, False if it was already registered
        """
        with self._lock:
            if any(h is handler for h in self._handlers):
                return False
            self._handlers.append(handler)

        logger.debug(f"Registered exit handler {handler!r}")
        return True

    def unregister(self, handler: ExitHandler) -> bool:
        """Unregister a handler.

        Returns:
            True if it was removed, False if it was not registered
        """
        with self._lock:
            for i, h in enumerate(self._handlers):
                if h is handler:
                    del self._handlers[i]
                    break
            else:
                return False

        logger.debug(f"Unregistered exit handler {handler!r}")
        return True

    def request_exit(self, timeout: Optional[float] = None) -> None:
        """Run every exit handler, then terminate the program.

        Blocks until all handlers have finished.

        Args:
            timeout: Maximum time to wait for the handlers, in seconds.
                None waits indefinitely.

        Raises:
            ExitAborted: If waiting was interrupted or timed out. The
                program is not terminated and the request may be retried.
                Handlers still running at that point keep running; a retry
                waits for them instead of starting them again.
        """
        with self._exit_lock:
            if self._exited:
                logger.warning("Exit already performed, ignoring request")
                return

            logger.info("Exit request received")
            self._run_handlers(timeout)
            logger.debug("Exit queue finished")

            self._exited = True

        self._terminate(EXIT_SUCCESS)

    def _run_handlers(self, timeout: Optional[float]) -> None:
        """Run the current handlers and wait for all of them."""
        handlers = self.handlers
        if not handlers:
            return

        executor = ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(handlers)),
            thread_name_prefix="ExitCoordinator",
        )
        futures: list[Future] = []
        try:
            for handler in handlers:
                running = self._still_running(handler)
                if running is not None:
                    logger.debug(f"Exit handler {handler!r} still running, waiting for it")
                    futures.append(running)
                else:
                    futures.append(executor.submit(self._run_handler, handler))

            try:
                _, pending = wait(futures, timeout=timeout)
            except KeyboardInterrupt as e:
                logger.error("Exit queue interrupted. Aborting.")
                raise ExitAborted("Exit queue interrupted") from e

            if pending:
                logger.error(f"{len(pending)} exit handler(s) did not finish in time. Aborting.")
                raise ExitAborted(f"{len(pending)} exit handler(s) did not finish in time")
        finally:
            # Queued handlers are dropped; running ones keep going.
            executor.shutdown(wait=False, cancel_futures=True)
            self._in_flight = [(h, f) for h, f in zip(handlers, futures) if not f.done()]

    def _still_running(self, handler: ExitHandler) -> Optional[Future]:
        """Get the future of a handler left running by an aborted request."""
        for h, future in self._in_flight:
            if h is handler and not future.done():
                return future
        return None

    @staticmethod
    def _run_handler(handler: ExitHandler) -> None:
        """Run a single handler, logging any error it raises."""
        try:
            handler.handle()
        except Exception as e:
            logger.error(f"Error in exit handler {handler!r}: {e}", exc_info=True)
