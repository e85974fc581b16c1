"""
Scheduled unbans for timed bans.

A min-heap keyed on the unban time drives a single runner task. Every pending
unban is also written to the ``temporary_bans`` table so that a restart does
not turn a timed ban into a permanent one; `restore` reloads those rows once
the bot is ready, and rows whose time already passed are executed right away.
"""

from __future__ import annotations

import asyncio
import heapq
import time
from dataclasses import dataclass
from typing import Dict, Tuple

import discord

from modsentry.database.database import Database
from modsentry.repositories.temporary_ban_repo import TemporaryBanRepo
from modsentry.util.logger import get_logger

logger = get_logger("unban_scheduler")

DEFAULT_UNBAN_REASON = "Ban duration expired."


@dataclass
class UnbanData:
    """
    Everything needed to lift one ban.

    Attributes:
        server_id: Server holding the ban.
        user_id: Banned user.
        unban_at: Unix seconds at which the ban should be lifted.
        reason: Audit log reason for the unban.
    """
    server_id: str
    user_id: str
    unban_at: int
    reason: str = DEFAULT_UNBAN_REASON

    @property
    def key(self) -> Tuple[str, str]:
        return (self.server_id, self.user_id)


class UnbanScheduler:
    """
    Heap-based scheduler for delayed unbans.

    Attributes:
        heap: Min-heap of ``(unban_at, job_id, payload)`` tuples.
        pending_keys: Maps ``(server_id, user_id)`` to the live job id.
        cancelled_ids: Job ids superseded by a newer schedule but still in the heap.
    """

    def __init__(self, bot: discord.Client, database: Database) -> None:
        self.bot = bot
        self.database = database
        self.heap: list[tuple[int, int, UnbanData]] = []
        self.pending_keys: Dict[Tuple[str, str], int] = {}
        self.cancelled_ids: set[int] = set()
        self.counter: int = 0
        self.runner_task: asyncio.Task[None] | None = None
        self.condition: asyncio.Condition = asyncio.Condition()

    def ensure_runner(self) -> None:
        """Start the background runner task if it is not already running."""
        if self.runner_task is None or self.runner_task.done():
            loop = asyncio.get_running_loop()
            self.runner_task = loop.create_task(self.run(), name="modsentry-unban-scheduler")

    async def schedule(
        self,
        server_id: str,
        user_id: str,
        duration_seconds: float,
        *,
        reason: str = DEFAULT_UNBAN_REASON,
    ) -> None:
        """
        Persist and schedule an unban ``duration_seconds`` from now.

        A newer schedule for the same user replaces the older one.
        """
        payload = UnbanData(
            server_id=str(server_id),
            user_id=str(user_id),
            unban_at=int(time.time() + max(0.0, duration_seconds)),
            reason=reason,
        )

        async with self.database.transaction() as conn:
            await TemporaryBanRepo.upsert(conn, payload.server_id, payload.user_id, payload.unban_at, payload.reason)

        await self._push(payload)
        logger.info(
            "[UNBAN SCHEDULER] Scheduled unban of user %s in server %s at %d",
            payload.user_id, payload.server_id, payload.unban_at,
        )

    async def restore(self) -> int:
        """Reload persisted unbans. Returns the number of jobs restored."""
        async with self.database.read() as conn:
            records = await TemporaryBanRepo.get_all(conn)

        for record in records:
            await self._push(UnbanData(record.server_id, record.user_id, record.unban_at, record.reason))

        if records:
            logger.info("[UNBAN SCHEDULER] Restored %d pending unban(s)", len(records))
        return len(records)

    async def _push(self, payload: UnbanData) -> None:
        async with self.condition:
            self.ensure_runner()
            if payload.key in self.pending_keys:
                self.cancelled_ids.add(self.pending_keys[payload.key])

            self.counter += 1
            job_id = self.counter
            heapq.heappush(self.heap, (payload.unban_at, job_id, payload))
            self.pending_keys[payload.key] = job_id
            self.condition.notify_all()

    async def shutdown(self) -> None:
        """Stop the runner. Persisted rows are kept for the next start."""
        async with self.condition:
            if self.runner_task:
                self.runner_task.cancel()
            self.heap.clear()
            self.pending_keys.clear()
            self.cancelled_ids.clear()
            self.condition.notify_all()

        if self.runner_task:
            try:
                await self.runner_task
            except asyncio.CancelledError:
                pass
            finally:
                self.runner_task = None

    async def run(self) -> None:
        """Pop and execute jobs as they come due, until cancelled."""
        while True:
            async with self.condition:
                while self.heap and self.heap[0][1] in self.cancelled_ids:
                    _, job_id, _ = heapq.heappop(self.heap)
                    self.cancelled_ids.discard(job_id)

                if not self.heap:
                    await self.condition.wait()
                    continue

                unban_at, _, _ = self.heap[0]
                delay = unban_at - time.time()

                if delay > 0:
                    try:
                        await asyncio.wait_for(self.condition.wait(), timeout=delay)
                    except TimeoutError:
                        pass
                    continue

                _, _, payload = heapq.heappop(self.heap)
                self.pending_keys.pop(payload.key, None)

            try:
                await self.execute(payload)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error("[UNBAN SCHEDULER] Failed to auto-unban user %s: %s", payload.user_id, exc)

    async def execute(self, payload: UnbanData) -> None:
        """
        Lift the ban and remove the persisted row.

        The row is removed even when the user is no longer banned; a missing
        server leaves it in place for the next restore.
        """
        guild = self.bot.get_guild(int(payload.server_id))
        if guild is None:
            logger.warning(
                "[UNBAN SCHEDULER] Server %s not available; keeping unban of %s for later",
                payload.server_id, payload.user_id,
            )
            return

        try:
            await guild.unban(discord.Object(id=int(payload.user_id)), reason=payload.reason)
            logger.info("[UNBAN SCHEDULER] Unbanned user %s in server %s", payload.user_id, payload.server_id)
        except discord.NotFound:
            logger.warning("[UNBAN SCHEDULER] User %s was not in the ban list of %s", payload.user_id, payload.server_id)

        async with self.database.transaction() as conn:
            await TemporaryBanRepo.delete(conn, payload.server_id, payload.user_id)
