"""Event system for decoupled communication between components."""

from enum import Enum
from dataclasses import dataclass
import threading
from typing import Any, Callable
import logging

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can be emitted."""

    # Connection events
    CONNECTION_CHANGED = "connection_changed"
    LOGOUT_SUCCEEDED = "logout_succeeded"
    LOGOUT_FAILED = "logout_failed"

    # Application events
    SETTINGS_CHANGED = "settings_changed"


@dataclass
class Event:
    """An event with type and associated data."""

    type: EventType
    data: Any = None


class EventBus:
    """Simple event bus for publish/subscribe communication.

    Events may be published from any thread; callbacks run on the
    publishing thread.
    """

    def __init__(self):
        self._subscribers: dict[EventType, list[Callable[[Event], None]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> None:
        """Subscribe to events of a specific type.

        Args:
            event_type: The type of event to subscribe to
            callback: Function to call when event is published
        """
        with self._lock:
            callbacks = self._subscribers.setdefault(event_type, [])
            if callback not in callbacks:
                callbacks.append(callback)

    def unsubscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> None:
        """Unsubscribe from events of a specific type.

        Args:
            event_type: The type of event to unsubscribe from
            callback: The callback to remove
        """
        with self._lock:
            if event_type in self._subscribers:
                try:
                    self._subscribers[event_type].remove(callback)
                except ValueError:
                    pass

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        Args:
            event: The event to publish
        """
        with self._lock:
            callbacks = list(self._subscribers.get(event.type, []))

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.type}: {e}")

