"""
Enforcement action types.

Every action the executor can take is described by an `EnforcementAction`:
a tag, an enabled flag and a coroutine factory that performs it. The executor
walks a fixed list of these instead of a chain of conditionals.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable


class ActionType(Enum):
    """Enumeration of supported enforcement actions, in attempt order."""

    WARN = "warn"
    LOG = "log"
    KICK = "kick"
    BAN = "ban"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Label recorded in the audit log when the action succeeds."""
        return ACTION_LABELS[self]


ACTION_LABELS = {
    ActionType.WARN: "warned",
    ActionType.LOG: "logged",
    ActionType.KICK: "kicked",
    ActionType.BAN: "banned",
    ActionType.CUSTOM: "custom",
}

# Provisional actionTaken value written before enforcement has run
PROVISIONAL_ACTION_LABEL = "logged"


@dataclass(slots=True)
class EnforcementAction:
    """One step of the enforcement plan.

    Attributes:
        action_type: Which action this is.
        enabled: False when the server has it switched off or is missing the
            data it needs (no warn message, no log channel, empty command).
        attempt: Zero-argument coroutine factory that performs the action.
    """

    action_type: ActionType
    enabled: bool
    attempt: Callable[[], Awaitable[None]]

    @property
    def name(self) -> str:
        return self.action_type.value


@dataclass(frozen=True, slots=True)
class ModerationAlert:
    """Structured notification posted to a server's log channel."""

    username: str
    user_id: str
    channel_name: str
    violation_type: str
    confidence_score: int
    reasoning: str
