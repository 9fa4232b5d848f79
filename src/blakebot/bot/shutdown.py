"""Disconnects the bot before the program exits."""

from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional
import logging

from ..lifecycle.exit import ExitHandler
from ..utils.async_helpers import AsyncBridge
from .client import BlakeBotClient

logger = logging.getLogger(__name__)


class BotShutdownHandler(ExitHandler):
    """Logs the bot out, then stops the loop it runs on.

    Both steps live in one handler since the loop must outlive the logout.
    """

    def __init__(self, client: BlakeBotClient, bridge: AsyncBridge, timeout: Optional[float] = 30.0):
        self.client = client
        self.bridge = bridge
        self.timeout = timeout

    def handle(self) -> None:
        try:
            if self.bridge.is_running and not self.client.is_closed():
                logger.info("Logging out before exit.")
                try:
                    self.bridge.run_sync(self.client.logout(), self.timeout)
                except FutureTimeoutError:
                    logger.error("Timed out logging out before exit.")
        finally:
            self.bridge.stop()
