"""Saving, autosaving and shutdown coordination."""

from .saving import Saveable, SaveRegistry
from .autosave import AutosaveScheduler, AutosaveState, MIN_DELAY
from .exit import ExitCoordinator, ExitHandler

__all__ = [
    "Saveable",
    "SaveRegistry",
    "AutosaveScheduler",
    "AutosaveState",
    "MIN_DELAY",
    "ExitCoordinator",
    "ExitHandler",
]
