"""Registry of objects that persist their state on demand."""

from abc import ABC, abstractmethod
import threading
import logging

logger = logging.getLogger(__name__)


class Saveable(ABC):
    """An object that can save its current state to durable storage."""

    @abstractmethod
    def save(self) -> None:
        """Save the object state.

        Raises:
            PersistenceFailure: If the state could not be written
        """


class SaveRegistry:
    """Holds the saveable objects of the application.

    The registry only decides *what* gets saved; when saves happen is up to
    its callers (the autosave scheduler and the exit handlers).
    """

    def __init__(self):
        self._saveables: list[Saveable] = []
        self._lock = threading.Lock()

    @property
    def saveables(self) -> list[Saveable]:
        """Get a snapshot of the registered saveables, in registration order."""
        with self._lock:
            return list(self._saveables)

    def register(self, saveable: Saveable) -> bool:
        """Register an object to be saved.

        Args:
            saveable: The object to register

        Returns:
            True if it was added, False if it was already registered
        """
        with self._lock:
            if any(s is saveable for s in self._saveables):
                return False
            self._saveables.append(saveable)

        logger.debug(f"Registered saveable {saveable!r}")
        return True

    def unregister(self, saveable: Saveable) -> bool:
        """Unregister an object.

        Returns:
            True if it was removed, False if it was not registered
        """
        with self._lock:
            for i, s in enumerate(self._saveables):
                if s is saveable:
                    del self._saveables[i]
                    break
            else:
                return False

        logger.debug(f"Unregistered saveable {saveable!r}")
        return True

    def save_all(self) -> list[tuple[Saveable, Exception]]:
        """Save every registered object, in registration order.

        A failing object does not stop the others from being saved.

        Returns:
            The objects that failed, with the error each one raised
        """
        saveables = self.saveables
        failures: list[tuple[Saveable, Exception]] = []

        logger.debug(f"Saving {len(saveables)} saveables...")
        for saveable in saveables:
            try:
                saveable.save()
            except Exception as e:
                logger.error(f"Failed to save {saveable!r}: {e}", exc_info=True)
                failures.append((saveable, e))

        if failures:
            logger.warning(f"Save completed with {len(failures)} failure(s)")
        else:
            logger.debug("Save completed")
        return failures

    def __contains__(self, saveable: Saveable) -> bool:
        with self._lock:
            return any(s is saveable for s in self._saveables)

    def __len__(self) -> int:
        with self._lock:
            return len(self._saveables)
