"""Commands that report the state of the bot."""

from datetime import timedelta
import threading
import time
from typing import TYPE_CHECKING, Optional
import logging

import discord
from discord.ext import commands

if TYPE_CHECKING:
    from ..client import BlakeBotClient

logger = logging.getLogger(__name__)

PONG = "\u200bpong!"
OWNER_ERROR = "\u200bSorry, I could not retrieve my owner's data."
NO_NICKNAME = "None found in this server"

_UNITS = (
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def format_duration(duration: timedelta) -> str:
    """Format a duration as e.g. ``1 day, 2 hours, 0 minutes, 5 seconds``.

    Leading zero units are omitted; a zero duration is ``0 seconds``.
    """
    remaining = max(int(duration.total_seconds()), 0)

    parts = []
    for name, size in _UNITS:
        amount, remaining = divmod(remaining, size)
        if parts or amount or size == 1:
            parts.append(f"{amount} {name}{'' if amount == 1 else 's'}")
    return ", ".join(parts)


class MessageStats:
    """Counts the messages and commands the bot received since it started."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._started = clock()
        self._lock = threading.Lock()
        self.public_messages = 0
        self.private_messages = 0
        self.commands = 0

    @property
    def total_messages(self) -> int:
        return self.public_messages + self.private_messages

    @property
    def minutes(self) -> float:
        """Get the minutes elapsed since counting started."""
        return (self._clock() - self._started) / 60

    def count_message(self, private: bool) -> None:
        with self._lock:
            if private:
                self.private_messages += 1
            else:
                self.public_messages += 1

    def count_command(self) -> None:
        with self._lock:
            self.commands += 1

    def per_minute(self, amount: int) -> float:
        minutes = self.minutes
        return amount / minutes if minutes > 0 else 0.0


def build_status_embed(channels: int, servers: int) -> discord.Embed:
    embed = discord.Embed(color=discord.Color.red())
    embed.add_field(name="Public channels", value=f"{channels} channels", inline=False)
    embed.add_field(name="Servers", value=f"{servers} servers", inline=False)
    return embed


def build_stats_embed(channels: int, servers: int, stats: MessageStats) -> discord.Embed:
    """Build the embed of the ``stats`` command."""
    embed = discord.Embed(color=discord.Color.red())
    embed.add_field(name="Public Channels", value=f"{channels} channels")
    embed.add_field(name="Servers", value=f"{servers} servers")

    total = stats.total_messages
    embed.add_field(name="Public Messages Received", value=f"{stats.public_messages} messages")
    embed.add_field(name="Private Messages Received", value=f"{stats.private_messages} messages")
    embed.add_field(name="Total Messages Received", value=f"{total} messages")
    embed.add_field(
        name="Average Messages Received",
        value=f"{stats.per_minute(total):.4f} messages/min",
    )

    embed.add_field(name="Commands Executed", value=f"{stats.commands} commands")
    embed.add_field(
        name="Average Commands Executed",
        value=f"{stats.per_minute(stats.commands):.4f} commands/min",
    )
    return embed


def build_owner_embed(name: str, nickname: Optional[str], image_url: Optional[str]) -> discord.Embed:
    """Build the embed of the ``owner`` command.

    Args:
        name: Username of the owner
        nickname: Nickname of the owner in the current server, if any
        image_url: Avatar of the owner
    """
    embed = discord.Embed(color=discord.Color.red())
    if image_url:
        embed.set_thumbnail(url=image_url)
    embed.add_field(name="Username", value=name, inline=False)
    embed.add_field(name="Nickname", value=nickname or NO_NICKNAME, inline=False)
    return embed


class StatusCog(commands.Cog, name="Status"):
    """Commands that report on the bot and its owner."""

    def __init__(self, bot: "BlakeBotClient"):
        self.bot = bot
        self.stats = MessageStats()

    def _counts(self) -> tuple[int, int]:
        """Get the number of channels and servers the bot can see."""
        channels = sum(1 for _ in self.bot.get_all_channels())
        return channels, len(self.bot.guilds)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        self.stats.count_message(private=message.guild is None)

    @commands.Cog.listener()
    async def on_command_completion(self, ctx: commands.Context) -> None:
        self.stats.count_command()

    @commands.command(name="ping", help="Pings the bot, and gets a pong response.")
    async def ping(self, ctx: commands.Context) -> None:
        await ctx.send(PONG)

    @commands.command(
        name="uptime",
        aliases=["up"],
        help="Displays how long the bot has been up.",
    )
    async def uptime(self, ctx: commands.Context) -> None:
        embed = discord.Embed(color=discord.Color.red())
        embed.add_field(name="Connection uptime", value=format_duration(self.bot.uptime), inline=False)
        await ctx.send(embed=embed)

    @commands.command(name="status", help="Retrieves advanced information on bot status.")
    @commands.is_owner()
    async def status(self, ctx: commands.Context) -> None:
        await ctx.send(embed=build_status_embed(*self._counts()))

    @commands.command(name="stats", help="Retrieves bot statistics.")
    async def stats_command(self, ctx: commands.Context) -> None:
        channels, servers = self._counts()
        await ctx.send(embed=build_stats_embed(channels, servers, self.stats))

    @commands.command(name="owner", help="Displays the information of the owner of this bot account.")
    async def owner(self, ctx: commands.Context) -> None:
        await self._send_owner(ctx)

    async def _send_owner(self, ctx) -> None:
        try:
            app_info = await self.bot.application_info()
        except discord.HTTPException as e:
            logger.warning(f"Could not retrieve the bot owner: {e}")
            await ctx.send(OWNER_ERROR)
            return

        owner = app_info.owner
        member = ctx.guild.get_member(owner.id) if ctx.guild is not None else None
        nickname = member.nick if member is not None else None
        await ctx.send(embed=build_owner_embed(owner.name, nickname, owner.display_avatar.url))
