"""
Message and verdict types for moderation.

This module defines the platform-neutral data structures that flow through the
moderation pipeline:

- `SensitivityLevel`: the four strictness tiers a server can choose.
- `ViolationType`: the fixed violation categories plus ``none``.
- `Verdict`: the classifier's judgement of one message.
- `MessageRef` / `MessageEvent`: an inbound chat message, detached from the
  platform library that produced it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SensitivityLevel(Enum):
    """How aggressively the classifier should flag content."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    STRICT = "strict"

    def __str__(self) -> str:
        return self.value


class ViolationType(Enum):
    """Violation categories the classifier may return."""

    TOXICITY = "toxicity"
    HARASSMENT = "harassment"
    SPAM = "spam"
    INAPPROPRIATE = "inappropriate"
    HATE_SPEECH = "hate_speech"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Verdict:
    """Result of classifying a single message.

    Attributes:
        is_violation: Whether the message breaches the configured policy.
        violation_type: Category of the violation, ``NONE`` when clean.
        confidence_score: Integer confidence between 0 and 100.
        reasoning: Short explanation returned by the classifier.
    """

    is_violation: bool
    violation_type: ViolationType
    confidence_score: int
    reasoning: str

    @classmethod
    def fail_open(cls, reasoning: str) -> Verdict:
        """Verdict used whenever classification cannot be completed."""
        return cls(
            is_violation=False,
            violation_type=ViolationType.NONE,
            confidence_score=0,
            reasoning=reasoning,
        )


@dataclass(frozen=True, slots=True)
class MessageRef:
    """Enough identity to locate a message on the platform again."""

    server_id: str
    channel_id: str
    message_id: str


@dataclass(frozen=True, slots=True)
class MessageEvent:
    """A message-creation event as seen by the pipeline."""

    server_id: str
    server_name: str
    channel_id: str
    channel_name: str
    message_id: str
    user_id: str
    username: str
    user_avatar_url: str | None
    text: str
    is_self: bool = False

    @property
    def ref(self) -> MessageRef:
        return MessageRef(self.server_id, self.channel_id, self.message_id)
