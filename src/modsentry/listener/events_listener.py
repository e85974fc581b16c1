"""Event listener Cog for Modsentry.

Handles bot lifecycle events: sets presence and restores persisted unbans once
the gateway session is ready.
"""

import discord
from discord.ext import commands

from modsentry.scheduler.unban_scheduler import UnbanScheduler
from modsentry.util.logger import get_logger

logger = get_logger("events_listener")


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle handlers."""

    def __init__(self, discord_bot_instance, unban_scheduler: UnbanScheduler):
        self.bot = discord_bot_instance
        self.unban_scheduler = unban_scheduler
        self._unbans_restored = False
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    @commands.Cog.listener(name='on_ready')
    async def on_ready(self):
        """
        Handle bot startup.

        on_ready fires again after every reconnect; pending unbans are only
        restored the first time.
        """
        if self.bot.user:
            await self.bot.change_presence(
                status=discord.Status.online,
                activity=discord.Activity(type=discord.ActivityType.watching, name="for rule violations"),
            )
            logger.info("[EVENTS LISTENER] Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)
        else:
            logger.warning("[EVENTS LISTENER] Bot partially connected, but user information not yet available.")

        if not self._unbans_restored:
            self._unbans_restored = True
            try:
                await self.unban_scheduler.restore()
            except Exception as exc:
                logger.error("[EVENTS LISTENER] Failed to restore scheduled unbans: %s", exc)

    @commands.Cog.listener(name='on_guild_join')
    async def on_guild_join(self, guild: discord.Guild):
        logger.info("[EVENTS LISTENER] Joined server %s (ID: %s); unmonitored until configured", guild.name, guild.id)


def setup(discord_bot_instance, unban_scheduler: UnbanScheduler):
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, unban_scheduler))
