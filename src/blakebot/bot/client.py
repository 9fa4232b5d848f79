"""Discord client for BlakeBot.

Wraps ``discord.ext.commands.Bot`` with the settings-driven setup, the
connection status notifications the console listens to, and the profile
operations the console exposes.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Awaitable, Callable, Optional
import logging

import aiohttp
import discord
from discord.ext import commands

from ..core.context import PREFIX_SETTING, RESOURCES_DIR, TOKEN_SETTING
from ..core.events import Event, EventBus, EventType
from ..storage.settings import LayeredSettings
from .modules.info import InfoCog, load_bot_info
from .modules.module_info import ModuleInfoManager
from .modules.status import StatusCog

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "?"
IMAGE_TYPES = ("png", "jpeg", "jpg", "bmp", "gif")

LogoutHook = Callable[[], Awaitable[None]]


def detect_image_type(url: str) -> str:
    """Identify the type of an image from its URL.

    Raises:
        ValueError: If no known image type appears in the URL
    """
    for candidate in IMAGE_TYPES:
        if f".{candidate}" in url:
            return candidate
    raise ValueError(f"Could not identify image type from URL {url}")


def build_intents() -> discord.Intents:
    """Build the gateway intents the bot needs."""
    intents = discord.Intents.default()
    intents.messages = True
    intents.message_content = True
    intents.guilds = True
    return intents


class BlakeBotClient(commands.Bot):
    """The bot client that connects to Discord and runs the command modules."""

    def __init__(self, settings: LayeredSettings, event_bus: EventBus):
        """Initialize the client.

        Args:
            settings: Settings store (prefix, token)
            event_bus: Bus connection status changes are published on
        """
        prefix = settings.get(PREFIX_SETTING) if settings.has(PREFIX_SETTING) else DEFAULT_PREFIX
        super().__init__(command_prefix=prefix, intents=build_intents())
        logger.info(f"Using prefix {prefix}.")

        self.settings = settings
        self.event_bus = event_bus
        self._logout_hooks: list[LogoutHook] = []
        self._connected_at: Optional[datetime] = None

    # ----------------------------------------------------------- lifecycle

    async def setup_hook(self) -> None:
        """Load the command modules (called by discord.py on login)."""
        # Called again on every login; cogs stay loaded across reconnects.
        if self.get_cog("Info") is None:
            info_text = load_bot_info(RESOURCES_DIR / "bot.info", self.settings)
            modules = ModuleInfoManager.from_directory(RESOURCES_DIR / "modules")
            await self.add_cog(InfoCog(self, info_text, modules))
        if self.get_cog("Status") is None:
            await self.add_cog(StatusCog(self))
        logger.info(f"Loaded {len(self.cogs)} command modules")

    async def login_and_run(self) -> None:
        """Log in with the stored token and stay connected until closed."""
        token = self.settings.get(TOKEN_SETTING)
        if self.is_closed():
            # A closed client must be reset before it can reconnect.
            self.clear()
        await self.start(token)

    def register_logout_hook(self, hook: LogoutHook) -> None:
        """Register a coroutine function to run before logging out."""
        if hook not in self._logout_hooks:
            self._logout_hooks.append(hook)

    def unregister_logout_hook(self, hook: LogoutHook) -> None:
        """Unregister a logout hook."""
        try:
            self._logout_hooks.remove(hook)
        except ValueError:
            pass

    async def logout(self) -> bool:
        """Run the logout hooks, then disconnect from Discord.

        Returns:
            True if the bot disconnected successfully
        """
        logger.info("Logout request received.")

        results = await asyncio.gather(
            *(hook() for hook in list(self._logout_hooks)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Error in logout hook: {result}", exc_info=result)
        logger.debug("Logout queue finished.")

        try:
            await self.close()
        except (discord.DiscordException, OSError) as e:
            logger.error(f"Logout failed: {e}", exc_info=True)
            self.event_bus.publish(Event(EventType.LOGOUT_FAILED, e))
            return False

        logger.info("===[ Bot LOGGED OUT! ]===")
        self._set_connected(False)
        self.event_bus.publish(Event(EventType.LOGOUT_SUCCEEDED))
        return True

    # --------------------------------------------------------- connection

    @property
    def is_connected(self) -> bool:
        """Check if the bot is currently connected to Discord."""
        return self.is_ready() and not self.is_closed()

    @property
    def uptime(self) -> timedelta:
        """Get how long the current connection has been up."""
        if self._connected_at is None:
            return timedelta(0)
        return datetime.now(timezone.utc) - self._connected_at

    def _set_connected(self, connected: bool) -> None:
        if connected:
            if self._connected_at is None:
                self._connected_at = datetime.now(timezone.utc)
        else:
            self._connected_at = None
        self.event_bus.publish(Event(EventType.CONNECTION_CHANGED, connected))

    async def on_ready(self) -> None:
        logger.info("===[ Bot READY! ]===")
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        self._set_connected(True)

    async def on_resumed(self) -> None:
        logger.info("===[ Bot RECONNECTED! ]===")
        self._set_connected(True)

    async def on_disconnect(self) -> None:
        logger.info("===[ Bot DISCONNECTED! ]===")
        self._set_connected(False)

    # ------------------------------------------------------------ profile

    @property
    def username(self) -> str:
        """Get the current username of the bot."""
        return self.user.name if self.user else ""

    @property
    def status_text(self) -> str:
        """Get the current activity text of the bot."""
        activity = self.activity
        return activity.name if activity is not None and activity.name else ""

    async def set_username(self, new_name: str) -> None:
        await self.user.edit(username=new_name)
        logger.info(f"Changed bot name to {new_name}.")

    async def set_playing_text(self, new_text: str) -> None:
        await self.change_presence(status=discord.Status.online, activity=discord.Game(new_text))
        logger.info(f"Changed bot playing text to {new_text}")

    async def set_idle(self) -> None:
        await self.change_presence(status=discord.Status.idle, activity=self.activity)
        logger.info("Changed bot presence to idle.")

    async def set_online(self) -> None:
        await self.change_presence(status=discord.Status.online, activity=self.activity)
        logger.info("Changed bot presence to online.")

    async def set_streaming(self, playing_text: str, url: str) -> None:
        await self.change_presence(
            status=discord.Status.online,
            activity=discord.Streaming(name=playing_text, url=url),
        )
        logger.info(f"Changed bot presence to streaming {playing_text} @ {url}.")

    async def set_avatar_from_file(self, path: Path) -> bool:
        """Change the profile image to that of a local file.

        Returns:
            True if the image was changed
        """
        logger.debug(f"Changing bot image to {path}.")
        try:
            avatar = Path(path).read_bytes()
            await self.user.edit(avatar=avatar)
        except (OSError, discord.HTTPException, ValueError) as e:
            logger.warning(f"Failed to change bot image: {e}")
            return False

        logger.info(f"Changed bot image to {path}.")
        return True

    async def set_avatar_from_url(self, url: str) -> bool:
        """Change the profile image to that of a URL.

        Returns:
            True if the image was changed

        Raises:
            ValueError: If the image type cannot be identified from the URL
        """
        logger.debug(f"Changing bot image to {url}")
        try:
            image_type = detect_image_type(url)
        except ValueError:
            logger.warning("Image type not recognized.")
            raise
        logger.debug(f"Detected type {image_type}.")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url) as response:
                    response.raise_for_status()
                    avatar = await response.read()
            await self.user.edit(avatar=avatar)
        except (aiohttp.ClientError, discord.HTTPException, ValueError) as e:
            logger.warning(f"Failed to change bot image: {e}")
            return False

        logger.info(f"Changed bot image to {url} of type {image_type}.")
        return True

    def update_prefix(self) -> None:
        """Apply the current prefix setting."""
        if self.settings.has(PREFIX_SETTING):
            self.command_prefix = self.settings.get(PREFIX_SETTING)
            logger.info(f"Using prefix {self.command_prefix}.")
