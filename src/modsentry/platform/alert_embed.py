"""Embed posted to a server's log channel when a violation is detected."""

import datetime

import discord

from modsentry.datatypes.action_datatypes import ModerationAlert

ALERT_TITLE = "🚨 Moderation Alert"


def build_alert_embed(alert: ModerationAlert) -> discord.Embed:
    """
    Create the log-channel embed for a violation.

    Args:
        alert: Violation details to show.

    Returns:
        discord.Embed: Red embed stamped with the current time.
    """
    description = "\n".join([
        f"**User:** {alert.username} (<@{alert.user_id}>)",
        f"**Channel:** #{alert.channel_name}",
        f"**Violation:** {alert.violation_type}",
        f"**Confidence:** {alert.confidence_score}%",
        f"**Reasoning:** {alert.reasoning}",
    ])
    return discord.Embed(
        title=ALERT_TITLE,
        description=description,
        color=discord.Color.red(),
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
