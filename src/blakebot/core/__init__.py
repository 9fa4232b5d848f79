"""Core modules for BlakeBot."""

from .events import EventBus, Event, EventType

__all__ = ["EventBus", "Event", "EventType"]
