"""
Enforcement action execution.

`ActionExecutor.plan` turns a verdict and a server config into the fixed
sequence warn -> log -> kick -> ban -> custom, one `EnforcementAction` per
step. `ActionExecutor.execute` attempts every enabled step in that order,
each under its own timeout and its own error handling, and returns the labels
of the steps that succeeded. A failing step is logged and skipped; it never
stops the steps after it and never fails the executor as a whole.
"""

from __future__ import annotations

import asyncio
import re
from typing import List

from modsentry.datatypes.action_datatypes import ActionType, EnforcementAction, ModerationAlert
from modsentry.datatypes.enforcement_config import EnforcementConfig
from modsentry.datatypes.moderation_datatypes import MessageEvent, Verdict
from modsentry.platform.chat_platform import ChatPlatform
from modsentry.util.logger import get_logger

logger = get_logger("action_executor")

# Whole-word only: "@username" and "@channels" are left alone
USER_PLACEHOLDER = re.compile(r"@user\b")
CHANNEL_PLACEHOLDER = re.compile(r"@channel\b")


def render_custom_command(command: str, user_id: str, channel_id: str) -> str:
    """Substitute every ``@user`` and ``@channel`` placeholder with a mention."""
    rendered = USER_PLACEHOLDER.sub(lambda _: f"<@{user_id}>", command)
    return CHANNEL_PLACEHOLDER.sub(lambda _: f"<#{channel_id}>", rendered)


def moderation_reason(verdict: Verdict) -> str:
    return f"Automated moderation: {verdict.violation_type}"


class ActionExecutor:
    """Run the enabled enforcement actions for one violation."""

    def __init__(
        self,
        platform: ChatPlatform,
        action_timeout_seconds: float = 10.0,
        ban_history_lookback_seconds: int = 24 * 60 * 60,
    ) -> None:
        self._platform = platform
        self._timeout = action_timeout_seconds
        self._ban_history_lookback = ban_history_lookback_seconds

    def plan(self, verdict: Verdict, config: EnforcementConfig, event: MessageEvent) -> List[EnforcementAction]:
        """
        Build the ordered action list for a violation.

        Every action type appears exactly once; ``enabled`` says whether it
        will be attempted.
        """
        platform = self._platform
        reason = moderation_reason(verdict)

        async def warn() -> None:
            await platform.send_direct_message(event.user_id, config.warn_message)

        async def log_to_channel() -> None:
            alert = ModerationAlert(
                username=event.username,
                user_id=event.user_id,
                channel_name=event.channel_name,
                violation_type=verdict.violation_type.value,
                confidence_score=verdict.confidence_score,
                reasoning=verdict.reasoning,
            )
            await platform.send_channel_message(config.log_channel_id, alert)

        async def kick() -> None:
            await platform.kick(event.server_id, event.user_id, reason)

        async def ban() -> None:
            await platform.ban(
                event.server_id,
                event.user_id,
                reason,
                config.ban_duration_hours,
                self._ban_history_lookback,
            )

        async def custom() -> None:
            text = render_custom_command(config.custom_command, event.user_id, event.channel_id)
            await platform.send_channel_message(event.channel_id, text)

        return [
            EnforcementAction(ActionType.WARN, config.warn_enabled and bool(config.warn_message), warn),
            EnforcementAction(ActionType.LOG, config.log_enabled and bool(config.log_channel_id), log_to_channel),
            EnforcementAction(ActionType.KICK, config.kick_enabled, kick),
            EnforcementAction(ActionType.BAN, config.ban_enabled, ban),
            EnforcementAction(ActionType.CUSTOM, bool(config.custom_command and config.custom_command.strip()), custom),
        ]

    async def execute(self, verdict: Verdict, config: EnforcementConfig, event: MessageEvent) -> List[str]:
        """
        Attempt every enabled action in order.

        Returns:
            Labels of the actions that succeeded, in attempt order.
        """
        succeeded: List[str] = []
        for action in self.plan(verdict, config, event):
            if not action.enabled:
                continue
            if await self._attempt(action, event):
                succeeded.append(action.action_type.label)
        return succeeded

    async def _attempt(self, action: EnforcementAction, event: MessageEvent) -> bool:
        try:
            await asyncio.wait_for(action.attempt(), timeout=self._timeout)
        except TimeoutError:
            logger.warning(
                "[EXECUTOR] %s against user %s in server %s timed out after %.1fs",
                action.name, event.user_id, event.server_id, self._timeout,
            )
            return False
        except Exception as exc:
            logger.error(
                "[EXECUTOR] %s against user %s in server %s failed: %s",
                action.name, event.user_id, event.server_id, exc,
            )
            return False

        logger.info("[EXECUTOR] %s applied to user %s in server %s", action.name, event.user_id, event.server_id)
        return True
