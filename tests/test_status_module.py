"""
Tests for the status commands.
"""
import asyncio
from datetime import timedelta
from types import SimpleNamespace

import discord
import pytest

from blakebot.bot.modules.status import (
    NO_NICKNAME,
    OWNER_ERROR,
    PONG,
    MessageStats,
    StatusCog,
    build_owner_embed,
    build_stats_embed,
    format_duration,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class FakeContext:
    """Collects replies."""

    def __init__(self, guild=None):
        self.guild = guild
        self.sent = []

    async def send(self, content=None, embed=None):
        self.sent.append(content if embed is None else embed)


class FakeBot:
    def __init__(self, channels=3, guilds=2, owner=None, error=None):
        self._channels = channels
        self.guilds = [object()] * guilds
        self.uptime = timedelta(minutes=5)
        self._owner = owner
        self._error = error

    def get_all_channels(self):
        return iter(range(self._channels))

    async def application_info(self):
        if self._error is not None:
            raise self._error
        return SimpleNamespace(owner=self._owner)


def make_owner():
    return SimpleNamespace(
        id=42,
        name="thiago",
        display_avatar=SimpleNamespace(url="https://cdn.example.com/owner.png"),
    )


def fields(embed):
    return {field.name: field.value for field in embed.fields}


@pytest.mark.parametrize("duration, expected", [
    (timedelta(0), "0 seconds"),
    (timedelta(seconds=1), "1 second"),
    (timedelta(minutes=2, seconds=5), "2 minutes, 5 seconds"),
    (timedelta(days=1, hours=2, seconds=5), "1 day, 2 hours, 0 minutes, 5 seconds"),
    (timedelta(days=3), "3 days, 0 hours, 0 minutes, 0 seconds"),
])
def test_format_duration(duration, expected):
    """Durations are spelled out from the largest non-zero unit."""
    assert format_duration(duration) == expected


def test_negative_duration_is_zero():
    """Negative durations are shown as zero."""
    assert format_duration(timedelta(seconds=-5)) == "0 seconds"


def test_message_stats_counts():
    """Public and private messages are counted separately."""
    clock = FakeClock()
    stats = MessageStats(clock)

    stats.count_message(private=False)
    stats.count_message(private=False)
    stats.count_message(private=True)
    stats.count_command()
    clock.now += 120

    assert (stats.public_messages, stats.private_messages, stats.total_messages) == (2, 1, 3)
    assert stats.per_minute(stats.total_messages) == pytest.approx(1.5)
    assert stats.per_minute(stats.commands) == pytest.approx(0.5)


def test_message_stats_rate_at_start():
    """No time elapsed gives a rate of zero."""
    stats = MessageStats(FakeClock())
    stats.count_message(private=True)

    assert stats.per_minute(stats.total_messages) == 0.0


def test_stats_embed():
    """The stats embed lists counts and per-minute averages."""
    clock = FakeClock()
    stats = MessageStats(clock)
    for _ in range(3):
        stats.count_message(private=False)
    stats.count_command()
    clock.now += 60

    values = fields(build_stats_embed(7, 2, stats))

    assert values["Public Channels"] == "7 channels"
    assert values["Servers"] == "2 servers"
    assert values["Total Messages Received"] == "3 messages"
    assert values["Average Messages Received"] == "3.0000 messages/min"
    assert values["Commands Executed"] == "1 commands"
    assert values["Average Commands Executed"] == "1.0000 commands/min"


def test_owner_embed_without_nickname():
    """A missing nickname is reported as such."""
    embed = build_owner_embed("thiago", None, "https://cdn.example.com/owner.png")

    assert fields(embed) == {"Username": "thiago", "Nickname": NO_NICKNAME}
    assert embed.thumbnail.url == "https://cdn.example.com/owner.png"


def test_ping_and_status_commands():
    """ping answers pong; status reports channel and server counts."""
    cog = StatusCog(FakeBot(channels=4, guilds=1))
    ctx = FakeContext()

    asyncio.run(cog.ping.callback(cog, ctx))
    asyncio.run(cog.status.callback(cog, ctx))

    assert ctx.sent[0] == PONG
    assert fields(ctx.sent[1]) == {"Public channels": "4 channels", "Servers": "1 servers"}


def test_status_is_owner_only():
    """The status command carries an owner check."""
    cog = StatusCog(FakeBot())

    assert len(cog.status.checks) == 1


def test_listeners_feed_stats():
    """Received messages and completed commands are counted."""
    cog = StatusCog(FakeBot())

    asyncio.run(cog.on_message(SimpleNamespace(guild=None)))
    asyncio.run(cog.on_message(SimpleNamespace(guild=object())))
    asyncio.run(cog.on_command_completion(FakeContext()))

    assert (cog.stats.public_messages, cog.stats.private_messages) == (1, 1)
    assert cog.stats.commands == 1


def test_owner_with_nickname():
    """The owner's nickname in the current server is shown."""
    owner = make_owner()
    guild = SimpleNamespace(get_member=lambda user_id: SimpleNamespace(nick="Boss"))
    cog = StatusCog(FakeBot(owner=owner))
    ctx = FakeContext(guild=guild)

    asyncio.run(cog._send_owner(ctx))

    assert fields(ctx.sent[0]) == {"Username": "thiago", "Nickname": "Boss"}


def test_owner_in_private_chat():
    """Outside a server there is no nickname."""
    cog = StatusCog(FakeBot(owner=make_owner()))
    ctx = FakeContext()

    asyncio.run(cog._send_owner(ctx))

    assert fields(ctx.sent[0])["Nickname"] == NO_NICKNAME


def test_owner_lookup_failure():
    """A Discord error while fetching the owner gets an apology."""
    error = discord.HTTPException(SimpleNamespace(status=500, reason="Server Error"), "down")
    cog = StatusCog(FakeBot(error=error))
    ctx = FakeContext()

    asyncio.run(cog._send_owner(ctx))

    assert ctx.sent == [OWNER_ERROR]
