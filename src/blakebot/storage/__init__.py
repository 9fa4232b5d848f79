"""Storage and persistence layer."""

from .settings import LayeredSettings, Layer

__all__ = ["LayeredSettings", "Layer"]
