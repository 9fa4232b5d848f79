"""Commands that show information about the bot and its modules."""

from pathlib import Path
import re
from typing import TYPE_CHECKING, Iterable, Optional
import logging

import discord
from discord.ext import commands

from .module_info import MAX_MESSAGE_LENGTH, ModuleInfoManager, code_block, format_list, format_long

if TYPE_CHECKING:
    from ...storage.settings import LayeredSettings

logger = logging.getLogger(__name__)

INFO_ERROR = "```\nERROR\n```"
UNKNOWN_MODULE = "Sorry, I don't recognize that module."

SETTING_PLACEHOLDER = re.compile(r"\$\[(.*?)]")


def process_placeholders(content: str, settings: "LayeredSettings") -> str:
    """Replace ``$[setting]`` placeholders with the values of the settings.

    Settings that do not exist are replaced with an empty string.
    """

    def replace(match: re.Match) -> str:
        name = match.group(1)
        return settings.get(name) if settings.has(name) else ""

    return SETTING_PLACEHOLDER.sub(replace, content)


def load_bot_info(path: Path, settings: "LayeredSettings") -> str:
    """Load the bot information message.

    Returns:
        The information as a code block, or an error block if the file is
        missing or the result does not fit in a message
    """
    logger.info("Loading bot info file.")
    try:
        content = path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.error(f"Could not find bot info file: {e}")
        return INFO_ERROR

    info = code_block(process_placeholders(content, settings))
    if len(info) > MAX_MESSAGE_LENGTH:
        logger.error("Bot info file too long.")
        return INFO_ERROR

    logger.info("Finished loading bot info file.")
    return info


async def send_blocks(destination: discord.abc.Messageable, blocks: Iterable[str]) -> None:
    """Send messages one after the other, in order."""
    for block in blocks:
        await destination.send(block)


def reply_target(ctx: commands.Context, here: bool) -> discord.abc.Messageable:
    """Get where a reply goes: the invoking channel, or the author's DMs."""
    return ctx.channel if here else ctx.author


class InfoCog(commands.Cog, name="Info"):
    """Bot and module information commands."""

    def __init__(self, bot: commands.Bot, info_text: str, modules: ModuleInfoManager):
        self.bot = bot
        self.info_text = info_text
        self.modules = modules

    def module_blocks(self, alias: Optional[str]) -> Optional[list[str]]:
        """Get the messages for the module list or a module's information.

        Returns:
            The messages, or None if there is no module with the alias
        """
        if alias is None:
            return format_list(self.modules.infos)

        info = self.modules.get(alias)
        if info is None:
            return None
        return format_long(info)

    async def _send_info(self, ctx: commands.Context, here: bool) -> None:
        await reply_target(ctx, here).send(self.info_text)

    async def _send_module(self, ctx: commands.Context, alias: Optional[str], here: bool) -> None:
        target = reply_target(ctx, here)
        blocks = self.module_blocks(alias)
        if blocks is None:
            await target.send(UNKNOWN_MODULE)
            return
        await send_blocks(target, blocks)

    @commands.group(
        name="info",
        invoke_without_command=True,
        help="Shows information about the bot.",
        usage="[here]",
    )
    async def info(self, ctx: commands.Context) -> None:
        await self._send_info(ctx, here=False)

    @info.command(
        name="here",
        help="Sends the information to the channel where the command was called, "
        "instead of always sending a private message.",
    )
    async def info_here(self, ctx: commands.Context) -> None:
        await self._send_info(ctx, here=True)

    @commands.group(
        name="module",
        invoke_without_command=True,
        help="Shows the modules installed on this bot. If a module is specified "
        "as an argument (using the name shown in the module list), shows the "
        "information of that module.",
        usage="[here] [module]",
    )
    async def module(self, ctx: commands.Context, alias: Optional[str] = None) -> None:
        await self._send_module(ctx, alias, here=False)

    @module.command(
        name="here",
        help="Sends the requested information to the channel where the command "
        "was called, instead of always sending a private message.",
    )
    async def module_here(self, ctx: commands.Context, alias: Optional[str] = None) -> None:
        await self._send_module(ctx, alias, here=True)
