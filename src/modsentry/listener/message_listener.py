"""Message listener Cog for Modsentry.

Turns every guild message into a `MessageEvent` and hands it to the
moderation pipeline, which processes it in its own task so a slow
classification never delays the gateway.
"""

import discord
from discord.ext import commands

from modsentry.datatypes.moderation_datatypes import MessageEvent
from modsentry.moderation.moderation_pipeline import ModerationPipeline
from modsentry.util.logger import get_logger

logger = get_logger("message_listener_cog")


def to_message_event(message: discord.Message, bot_user: discord.abc.User | None) -> MessageEvent:
    """Detach a guild message from py-cord into a platform-neutral event."""
    author = message.author
    return MessageEvent(
        server_id=str(message.guild.id),
        server_name=message.guild.name,
        channel_id=str(message.channel.id),
        channel_name=getattr(message.channel, "name", None) or str(message.channel.id),
        message_id=str(message.id),
        user_id=str(author.id),
        username=str(author),
        user_avatar_url=author.display_avatar.url if author.display_avatar else None,
        text=message.content,
        is_self=bot_user is not None and author.id == bot_user.id,
    )


class MessageListenerCog(commands.Cog):
    """Cog responsible for handling message creation events."""

    def __init__(self, discord_bot_instance, pipeline: ModerationPipeline):
        """
        Initialize the message listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        pipeline:
            Pipeline that moderates each message.
        """
        self.bot = discord_bot_instance
        self.pipeline = pipeline
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    @commands.Cog.listener(name='on_message')
    async def on_message(self, message: discord.Message):
        """Skip DMs, bot accounts and empty messages; submit everything else."""
        if message.guild is None or message.author.bot:
            return
        if not message.content or not message.content.strip():
            return

        event = to_message_event(message, self.bot.user)
        if event.is_self:
            return

        logger.debug("[MESSAGE LISTENER] Received message %s from %s", event.message_id, event.username)
        self.pipeline.submit(event)


def setup(discord_bot_instance, pipeline: ModerationPipeline):
    """Register the MessageListenerCog with the bot."""
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, pipeline))
