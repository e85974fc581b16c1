from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from modsentry.datatypes.action_datatypes import ModerationAlert
from modsentry.datatypes.moderation_datatypes import MessageRef
from modsentry.errors import PlatformError
from modsentry.platform.alert_embed import build_alert_embed
from modsentry.platform.discord_platform import MAX_DELETE_MESSAGE_SECONDS, DiscordPlatform


def not_found() -> discord.NotFound:
    return discord.NotFound(MagicMock(status=404, reason="Not Found"), "missing")


@pytest.fixture()
def guild():
    guild = MagicMock()
    guild.id = 100
    guild.name = "Test Server"
    guild.kick = AsyncMock()
    guild.ban = AsyncMock()
    return guild


@pytest.fixture()
def channel():
    channel = MagicMock(spec=discord.TextChannel)
    channel.send = AsyncMock()
    channel.get_partial_message.return_value.delete = AsyncMock()
    return channel


@pytest.fixture()
def bot(guild, channel):
    bot = MagicMock()
    bot.get_guild.return_value = guild
    bot.get_channel.return_value = channel
    bot.fetch_channel = AsyncMock(side_effect=not_found())
    bot.fetch_user = AsyncMock(side_effect=not_found())
    return bot


@pytest.mark.asyncio
async def test_kick_targets_user_by_id(bot, guild) -> None:
    await DiscordPlatform(bot).kick("100", "400", "Automated moderation: spam")

    bot.get_guild.assert_called_once_with(100)
    target = guild.kick.await_args.args[0]
    assert target.id == 400
    assert guild.kick.await_args.kwargs["reason"] == "Automated moderation: spam"


@pytest.mark.asyncio
async def test_timed_ban_schedules_unban(bot, guild) -> None:
    scheduler = MagicMock()
    scheduler.schedule = AsyncMock()

    await DiscordPlatform(bot, scheduler).ban("100", "400", "reason", 24, 86400)

    assert guild.ban.await_args.kwargs["delete_message_seconds"] == 86400
    scheduler.schedule.assert_awaited_once_with("100", "400", 24 * 3600)


@pytest.mark.asyncio
async def test_permanent_ban_schedules_nothing(bot, guild) -> None:
    scheduler = MagicMock()
    scheduler.schedule = AsyncMock()

    await DiscordPlatform(bot, scheduler).ban("100", "400", "reason", None, 10**9)

    assert guild.ban.await_args.kwargs["delete_message_seconds"] == MAX_DELETE_MESSAGE_SECONDS
    scheduler.schedule.assert_not_awaited()


@pytest.mark.asyncio
async def test_ban_survives_scheduler_failure(bot, guild) -> None:
    scheduler = MagicMock()
    scheduler.schedule = AsyncMock(side_effect=RuntimeError("db locked"))

    await DiscordPlatform(bot, scheduler).ban("100", "400", "reason", 1, 0)

    guild.ban.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_server_raises_platform_error(bot) -> None:
    bot.get_guild.return_value = None

    with pytest.raises(PlatformError):
        await DiscordPlatform(bot).kick("999", "400", "reason")


@pytest.mark.asyncio
async def test_unknown_channel_raises_platform_error(bot) -> None:
    bot.get_channel.return_value = None

    with pytest.raises(PlatformError):
        await DiscordPlatform(bot).send_channel_message("999", "hello")


@pytest.mark.asyncio
async def test_unknown_user_raises_platform_error(bot) -> None:
    bot.get_user.return_value = None

    with pytest.raises(PlatformError):
        await DiscordPlatform(bot).send_direct_message("999", "hello")


@pytest.mark.asyncio
async def test_direct_message_is_sent_to_user(bot) -> None:
    user = MagicMock()
    user.send = AsyncMock()
    bot.get_user.return_value = user

    await DiscordPlatform(bot).send_direct_message("400", "Please follow the rules")

    user.send.assert_awaited_once_with("Please follow the rules")


@pytest.mark.asyncio
async def test_alert_is_sent_as_embed(bot, channel) -> None:
    alert = ModerationAlert("spammer", "400", "general", "spam", 95, "Repeated links")

    await DiscordPlatform(bot).send_channel_message("900", alert)

    embed = channel.send.await_args.kwargs["embed"]
    assert embed.title == "🚨 Moderation Alert"
    assert "**Violation:** spam" in embed.description


@pytest.mark.asyncio
async def test_delete_message_uses_partial_message(bot, channel) -> None:
    await DiscordPlatform(bot).delete_message(MessageRef("100", "200", "300"))

    channel.get_partial_message.assert_called_once_with(300)
    channel.get_partial_message.return_value.delete.assert_awaited_once()


def test_list_servers(bot, guild) -> None:
    text_channel = MagicMock()
    text_channel.id = 200
    text_channel.name = "general"
    guild.icon = None
    guild.text_channels = [text_channel]
    bot.guilds = [guild]

    assert DiscordPlatform(bot).list_servers() == [
        {
            "id": "100",
            "name": "Test Server",
            "icon": None,
            "channels": [{"id": "200", "name": "general", "type": "text"}],
        }
    ]


def test_alert_embed_describes_violation() -> None:
    embed = build_alert_embed(ModerationAlert("spammer", "400", "general", "harassment", 81, "Insults"))

    assert embed.color == discord.Color.red()
    assert embed.timestamp is not None
    assert "**Violation:** harassment" in embed.description
    assert "**Confidence:** 81%" in embed.description
    assert "<@400>" in embed.description
