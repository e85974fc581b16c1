"""
Discord implementation of `ChatPlatform` on top of py-cord.

Ids cross this boundary as strings and are converted to ints here. Targets
that cannot be resolved raise `PlatformError`; Discord HTTP errors
(``Forbidden``, ``NotFound``, ``HTTPException``) propagate unchanged.
"""

from __future__ import annotations

from typing import Any, Dict, List

import discord

from modsentry.datatypes.action_datatypes import ModerationAlert
from modsentry.datatypes.moderation_datatypes import MessageRef
from modsentry.errors import PlatformError
from modsentry.platform.alert_embed import build_alert_embed
from modsentry.scheduler.unban_scheduler import UnbanScheduler
from modsentry.util.logger import get_logger

logger = get_logger("discord_platform")

SECONDS_PER_HOUR = 60 * 60
# Discord caps delete_message_seconds at seven days
MAX_DELETE_MESSAGE_SECONDS = 7 * 24 * SECONDS_PER_HOUR


class DiscordPlatform:
    """Borrowed view of a connected bot, exposing only what moderation needs."""

    def __init__(self, bot: discord.Client, unban_scheduler: UnbanScheduler | None = None) -> None:
        self.bot = bot
        self.unban_scheduler = unban_scheduler

    # ========== Resolution helpers ==========

    def _guild(self, server_id: str) -> discord.Guild:
        guild = self.bot.get_guild(int(server_id))
        if guild is None:
            raise PlatformError(f"Server {server_id} is not available")
        return guild

    async def _messageable_channel(self, channel_id: str) -> discord.abc.Messageable:
        channel = self.bot.get_channel(int(channel_id))
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(int(channel_id))
            except discord.NotFound as exc:
                raise PlatformError(f"Channel {channel_id} not found") from exc

        if not isinstance(channel, discord.abc.Messageable):
            raise PlatformError(f"Channel {channel_id} cannot receive messages")
        return channel

    async def _user(self, user_id: str) -> discord.User:
        user = self.bot.get_user(int(user_id))
        if user is None:
            try:
                user = await self.bot.fetch_user(int(user_id))
            except discord.NotFound as exc:
                raise PlatformError(f"User {user_id} not found") from exc
        return user

    # ========== ChatPlatform ==========

    async def send_direct_message(self, user_id: str, text: str) -> None:
        user = await self._user(user_id)
        await user.send(text)

    async def send_channel_message(self, channel_id: str, payload: str | ModerationAlert) -> None:
        channel = await self._messageable_channel(channel_id)
        if isinstance(payload, ModerationAlert):
            await channel.send(embed=build_alert_embed(payload))
        else:
            await channel.send(payload)

    async def kick(self, server_id: str, user_id: str, reason: str) -> None:
        guild = self._guild(server_id)
        await guild.kick(discord.Object(id=int(user_id)), reason=reason)

    async def ban(
        self,
        server_id: str,
        user_id: str,
        reason: str,
        duration_hours: int | None,
        history_lookback_seconds: int,
    ) -> None:
        """
        Ban a user and purge their recent history.

        With ``duration_hours`` set the ban is lifted later by the unban
        scheduler; without it the ban is permanent.
        """
        guild = self._guild(server_id)
        await guild.ban(
            discord.Object(id=int(user_id)),
            reason=reason,
            delete_message_seconds=min(max(0, history_lookback_seconds), MAX_DELETE_MESSAGE_SECONDS),
        )

        if duration_hours:
            if self.unban_scheduler is None:
                logger.warning(
                    "[DISCORD PLATFORM] No unban scheduler; ban of %s in %s will be permanent",
                    user_id, server_id,
                )
                return
            try:
                await self.unban_scheduler.schedule(server_id, user_id, duration_hours * SECONDS_PER_HOUR)
            except Exception as exc:
                # The ban itself went through; only the automatic unban is lost
                logger.error("[DISCORD PLATFORM] Failed to schedule unban for user %s: %s", user_id, exc)

    async def delete_message(self, ref: MessageRef) -> None:
        channel = await self._messageable_channel(ref.channel_id)
        if not hasattr(channel, "get_partial_message"):
            raise PlatformError(f"Channel {ref.channel_id} does not support message deletion")
        await channel.get_partial_message(int(ref.message_id)).delete()

    def list_servers(self) -> List[Dict[str, Any]]:
        """Servers the bot is in, with their text channels."""
        return [
            {
                "id": str(guild.id),
                "name": guild.name,
                "icon": guild.icon.url if guild.icon else None,
                "channels": [
                    {"id": str(channel.id), "name": channel.name, "type": "text"}
                    for channel in guild.text_channels
                ],
            }
            for guild in self.bot.guilds
        ]
