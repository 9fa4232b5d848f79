"""Discord bot client and command modules."""

from .client import BlakeBotClient, IMAGE_TYPES, detect_image_type

__all__ = ["BlakeBotClient", "IMAGE_TYPES", "detect_image_type"]
