"""
Operations the moderation core needs from a chat platform.

Every operation may raise; callers decide how a failure is contained.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol

from modsentry.datatypes.action_datatypes import ModerationAlert
from modsentry.datatypes.moderation_datatypes import MessageRef


class ChatPlatform(Protocol):
    async def send_direct_message(self, user_id: str, text: str) -> None: ...

    async def send_channel_message(self, channel_id: str, payload: str | ModerationAlert) -> None: ...

    async def kick(self, server_id: str, user_id: str, reason: str) -> None: ...

    async def ban(
        self,
        server_id: str,
        user_id: str,
        reason: str,
        duration_hours: int | None,
        history_lookback_seconds: int,
    ) -> None: ...

    async def delete_message(self, ref: MessageRef) -> None: ...

    def list_servers(self) -> List[Dict[str, Any]]: ...
