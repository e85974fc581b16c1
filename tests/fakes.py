"""Hand-written stand-ins for the collaborators of the moderation pipeline."""

import asyncio
from typing import Any, Dict, List

from modsentry.datatypes.audit_datatypes import AuditEntry
from modsentry.errors import AuditStoreError


class FakePlatform:
    """Records every call; ``fail`` and ``hang`` select operations that misbehave."""

    def __init__(self, timeline: List[str] | None = None, fail: set | None = None, hang: set | None = None):
        self.timeline = timeline if timeline is not None else []
        self.calls: List[tuple] = []
        self.fail = fail or set()
        self.hang = hang or set()

    async def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        self.timeline.append(f"platform.{name}")
        if name in self.hang:
            await asyncio.Event().wait()
        if name in self.fail:
            raise RuntimeError(f"{name} failed")

    async def send_direct_message(self, user_id, text):
        await self._record("send_direct_message", user_id, text)

    async def send_channel_message(self, channel_id, payload):
        await self._record("send_channel_message", channel_id, payload)

    async def kick(self, server_id, user_id, reason):
        await self._record("kick", server_id, user_id, reason)

    async def ban(self, server_id, user_id, reason, duration_hours, history_lookback_seconds):
        await self._record("ban", server_id, user_id, reason, duration_hours, history_lookback_seconds)

    async def delete_message(self, ref):
        await self._record("delete_message", ref)

    def list_servers(self):
        return []

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeConfigStore:
    def __init__(self, *configs):
        self.configs = {config.server_id: config for config in configs}

    def get(self, server_id):
        return self.configs.get(server_id)

    async def upsert(self, config):
        self.configs[config.server_id] = config
        return config

    def count(self):
        return len(self.configs)


class FakeClassifier:
    def __init__(self, verdict, delay: float = 0.0):
        self.verdict = verdict
        self.delay = delay
        self.calls: List[tuple] = []
        self.active = 0
        self.max_active = 0

    async def classify(self, text, sensitivity):
        self.calls.append((text, sensitivity))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self.verdict
        finally:
            self.active -= 1


class FakeAuditStore:
    def __init__(self, timeline: List[str] | None = None, fail_append: bool = False, fail_update: bool = False):
        self.timeline = timeline if timeline is not None else []
        self.entries: Dict[str, AuditEntry] = {}
        self.updates: List[tuple] = []
        self.fail_append = fail_append
        self.fail_update = fail_update

    async def append(self, entry):
        self.timeline.append("audit.append")
        if self.fail_append:
            raise AuditStoreError("disk full")
        self.entries[entry.id] = entry
        return entry.id

    async def update(self, entry_id, actions_taken):
        self.timeline.append("audit.update")
        if self.fail_update:
            raise AuditStoreError("disk full")
        self.updates.append((entry_id, list(actions_taken)))


class FakeHub:
    def __init__(self, timeline: List[str] | None = None):
        self.timeline = timeline if timeline is not None else []
        self.published: List[AuditEntry] = []

    async def publish(self, entry):
        self.timeline.append("hub.publish")
        self.published.append(entry)
        return 1


class FakeObserver:
    def __init__(self, open_: bool = True, fail: bool = False, hang: bool = False):
        self.open = open_
        self.fail = fail
        self.hang = hang
        self.sent: List[str] = []

    def is_open(self) -> bool:
        return self.open

    async def send_text(self, payload: str) -> None:
        if self.hang:
            await asyncio.Event().wait()
        if self.fail:
            raise ConnectionError("socket closed")
        self.sent.append(payload)
