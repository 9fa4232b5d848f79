"""Periodic autosave of all registered saveables."""

from enum import Enum
import threading
import time
from typing import TYPE_CHECKING, Callable, Optional
import logging

from ..core.errors import SettingNotFound, SettingTypeMismatch
from .exit import ExitHandler
from .saving import SaveRegistry

if TYPE_CHECKING:
    from ..storage.settings import LayeredSettings

logger = logging.getLogger(__name__)

DELAY_SETTING = "Auto-save delay"

# Minimum delay between autosaves, in minutes. Smaller delays disable autosave.
MIN_DELAY = 10

# Longest single wait of a repeating task; longer periods are waited in steps.
MAX_WAIT_SECONDS = 3600.0


class AutosaveState(Enum):
    """States of the autosave scheduler."""

    DISABLED = "disabled"
    ARMED = "armed"


class RepeatingTask:
    """Runs a function at a fixed period on a background thread.

    Cancelling the task prevents further runs but never interrupts a run
    that is already in progress.
    """

    def __init__(self, period: float, function: Callable[[], None], name: str = "RepeatingTask"):
        if period <= 0:
            raise ValueError("period must be positive")

        self.period = period
        self._function = function
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True, name=name)
        self.runs = 0

    @property
    def cancelled(self) -> bool:
        """Check if the task was cancelled."""
        return self._cancelled.is_set()

    @property
    def is_alive(self) -> bool:
        """Check if the worker thread is still running."""
        return self._thread.is_alive()

    def start(self) -> None:
        """Start the task. The first run happens one period from now."""
        self._thread.start()

    def cancel(self) -> None:
        """Cancel all future runs."""
        self._cancelled.set()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the worker thread to finish."""
        if self._thread.is_alive():
            self._thread.join(timeout)

    def _wait_period(self) -> bool:
        """Wait one period.

        Returns:
            True if the task was cancelled meanwhile
        """
        deadline = time.monotonic() + self.period
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            if self._cancelled.wait(min(remaining, MAX_WAIT_SECONDS)):
                return True

    def _run(self) -> None:
        while not self._wait_period():
            self.runs += 1
            self._function()


class AutosaveScheduler(ExitHandler):
    """Saves all registered saveables at a configured interval.

    The interval is read from the ``Auto-save delay`` setting, in minutes.
    It is also an exit handler: before the program ends, it stops the timer
    and performs a final save.
    """

    def __init__(
        self,
        settings: "LayeredSettings",
        registry: SaveRegistry,
        unit_seconds: float = 60.0,
    ):
        """Initialize the scheduler.

        Args:
            settings: Settings store the delay is read from and written to
            registry: Registry of objects to save
            unit_seconds: Length of one delay unit, in seconds
        """
        self._settings = settings
        self._registry = registry
        self._unit_seconds = unit_seconds
        self._task: Optional[RepeatingTask] = None
        self._delay: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> AutosaveState:
        """Get the current scheduler state."""
        with self._lock:
            return AutosaveState.ARMED if self._task is not None else AutosaveState.DISABLED

    @property
    def delay(self) -> Optional[int]:
        """Get the active delay between autosaves, or None if disabled."""
        with self._lock:
            return self._delay

    @property
    def task(self) -> Optional[RepeatingTask]:
        """Get the handle of the active autosave task, if any."""
        with self._lock:
            return self._task

    def start(self) -> None:
        """Arm the autosave timer from the configured delay.

        A missing or malformed delay setting leaves autosave disabled.
        """
        try:
            delay = self._settings.get_long(DELAY_SETTING)
        except SettingNotFound:
            logger.warning(f"No '{DELAY_SETTING}' setting found. Auto-save disabled.")
            self.reschedule(0)
            return
        except SettingTypeMismatch as e:
            logger.error(f"Invalid auto-save delay, auto-save disabled: {e}")
            self.reschedule(0)
            return

        self.reschedule(delay)

    def reschedule(self, delay: int) -> None:
        """Replace the autosave task.

        The current task, if any, is cancelled first. If the delay is smaller
        than ``MIN_DELAY`` autosave is disabled.

        Args:
            delay: The time between autosaves, in minutes
        """
        with self._lock:
            if self._task is not None:
                self._task.cancel()
                self._task = None

            if delay >= MIN_DELAY:
                self._task = RepeatingTask(
                    delay * self._unit_seconds,
                    self._autosave,
                    name="AutosaveScheduler",
                )
                self._task.start()
                self._delay = delay
                logger.info(f"Auto-save delay set to {delay} minutes.")
            else:
                self._delay = None
                logger.info("Auto-save disabled.")

    def set_delay(self, delay: int) -> None:
        """Change the time between autosaves and store it in the settings.

        Args:
            delay: The time between autosaves, in minutes
        """
        self.reschedule(delay)
        self._settings.set(DELAY_SETTING, delay)

    def stop(self) -> None:
        """Cancel the autosave task without saving."""
        with self._lock:
            if self._task is not None:
                self._task.cancel()
                self._task = None
            self._delay = None

    def _autosave(self) -> None:
        """Run one autosave cycle."""
        logger.info("Auto-saving.")
        try:
            self._registry.save_all()
        except Exception as e:
            logger.error(f"Uncaught exception thrown while autosaving: {e}", exc_info=True)

    def handle(self) -> None:
        """Stop autosaving and perform a final save before exit."""
        logger.info("Received program end signal. Stopping auto-save.")
        self.stop()
        logger.info("Performing final save.")
        self._registry.save_all()
