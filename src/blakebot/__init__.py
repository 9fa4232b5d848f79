"""BlakeBot - a Discord bot with a desktop console."""

__version__ = "1.0.0"
