"""
Audit log entry and reporting types.

An `AuditEntry` is written once when a violation is detected, with the
provisional ``logged`` label, and replaced exactly once by its finalized copy
after enforcement has run. Entries are frozen; finalizing produces a new one.
"""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Sequence, Tuple

from modsentry.datatypes.action_datatypes import PROVISIONAL_ACTION_LABEL
from modsentry.datatypes.moderation_datatypes import MessageEvent, Verdict

ACTION_SEPARATOR = ", "


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """Record of one detected violation and what was done about it."""

    id: str
    server_id: str
    server_name: str
    user_id: str
    username: str
    user_avatar: str | None
    channel_id: str
    channel_name: str
    message_content: str
    violation_type: str
    confidence_score: int
    reasoning: str
    actions_taken: Tuple[str, ...]
    timestamp: datetime

    @classmethod
    def create(cls, event: MessageEvent, verdict: Verdict) -> AuditEntry:
        """Provisional entry for a violating message, stamped now (UTC)."""
        return cls(
            id=str(uuid.uuid4()),
            server_id=event.server_id,
            server_name=event.server_name,
            user_id=event.user_id,
            username=event.username,
            user_avatar=event.user_avatar_url,
            channel_id=event.channel_id,
            channel_name=event.channel_name,
            message_content=event.text,
            violation_type=verdict.violation_type.value,
            confidence_score=verdict.confidence_score,
            reasoning=verdict.reasoning,
            actions_taken=(PROVISIONAL_ACTION_LABEL,),
            timestamp=datetime.now(timezone.utc),
        )

    def finalized(self, actions: Sequence[str]) -> AuditEntry:
        """Copy carrying the executor's result; an empty result keeps the sentinel."""
        return dataclasses.replace(self, actions_taken=finalized_actions(actions))

    @property
    def action_taken(self) -> str:
        return ACTION_SEPARATOR.join(self.actions_taken)

    def to_wire_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "serverId": self.server_id,
            "serverName": self.server_name,
            "userId": self.user_id,
            "username": self.username,
            "userAvatar": self.user_avatar,
            "channelId": self.channel_id,
            "channelName": self.channel_name,
            "messageContent": self.message_content,
            "violationType": self.violation_type,
            "confidenceScore": self.confidence_score,
            "aiReasoning": self.reasoning,
            "actionTaken": self.action_taken,
            "timestamp": self.timestamp.isoformat(),
        }


def finalized_actions(actions: Sequence[str]) -> Tuple[str, ...]:
    return tuple(actions) if actions else (PROVISIONAL_ACTION_LABEL,)


@dataclass(frozen=True, slots=True)
class DashboardStats:
    """Summary figures shown on the dashboard landing page."""

    total_violations: int
    actions_taken: int
    servers_monitored: int
    detection_accuracy: int

    def to_wire_dict(self) -> Dict[str, int]:
        return {
            "totalViolations": self.total_violations,
            "actionsTaken": self.actions_taken,
            "serversMonitored": self.servers_monitored,
            "detectionAccuracy": self.detection_accuracy,
        }
