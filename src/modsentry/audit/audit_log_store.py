"""
Audit log store.

Wraps the audit_log table with the two-phase write the pipeline relies on:
``append`` stores a provisional entry, ``update`` finalizes its action list
exactly once. Writes are retried with exponential backoff; when every attempt
fails the error is logged at CRITICAL and raised as `AuditStoreError`, since a
lost audit write breaks the guarantee that every enforcement is recorded.

Concurrent appends are safe: each entry carries its own UUID and writes are
serialised by the database connection.
"""

from __future__ import annotations

import asyncio
import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Sequence, TypeVar

import aiosqlite

from modsentry.database.database import Database
from modsentry.datatypes.audit_datatypes import (
    ACTION_SEPARATOR,
    AuditEntry,
    DashboardStats,
    finalized_actions,
)
from modsentry.errors import AuditEntryFinalizedError, AuditStoreError
from modsentry.repositories.audit_log_repo import AuditLogRepository
from modsentry.util.logger import get_logger

logger = get_logger("audit_log_store")

T = TypeVar("T")

TIME_RANGES: Dict[str, timedelta | None] = {
    "24h": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "all": None,
}

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
TOP_VIOLATORS_LIMIT = 5


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (``round`` uses banker's rounding)."""
    return int(math.floor(value + 0.5))


class AuditLogStore:
    """Append, finalize and query audit entries."""

    def __init__(
        self,
        database: Database,
        write_attempts: int = 3,
        retry_backoff_seconds: float = 0.25,
    ):
        self._database = database
        self._repo = AuditLogRepository()
        self._write_attempts = max(1, write_attempts)
        self._retry_backoff = retry_backoff_seconds

    # ========== Writes ==========

    async def append(self, entry: AuditEntry) -> str:
        """
        Persist a provisional entry.

        Returns:
            The entry id.

        Raises:
            AuditStoreError: If every write attempt failed.
        """
        async def _insert() -> None:
            async with self._database.transaction() as conn:
                await self._repo.insert(conn, entry)

        await self._with_retry("append", entry.id, _insert)
        logger.debug("[AUDIT] Appended entry %s (%s, %d%%)", entry.id, entry.violation_type, entry.confidence_score)
        return entry.id

    async def update(self, entry_id: str, actions_taken: Sequence[str]) -> None:
        """
        Finalize an entry's action list. An empty list keeps the provisional label.

        Raises:
            AuditEntryFinalizedError: If the entry is unknown or already finalized.
            AuditStoreError: If every write attempt failed.
        """
        actions = ACTION_SEPARATOR.join(finalized_actions(actions_taken))

        async def _finalize() -> bool:
            async with self._database.transaction() as conn:
                return await self._repo.finalize(conn, entry_id, actions)

        if not await self._with_retry("update", entry_id, _finalize):
            raise AuditEntryFinalizedError(f"Audit entry {entry_id} is unknown or already finalized")
        logger.debug("[AUDIT] Finalized entry %s with [%s]", entry_id, actions)

    async def _with_retry(self, operation: str, entry_id: str, write: Callable[[], Awaitable[T]]) -> T:
        delay = self._retry_backoff
        for attempt in range(1, self._write_attempts + 1):
            try:
                return await write()
            except aiosqlite.Error as exc:
                if attempt == self._write_attempts:
                    logger.critical(
                        "[AUDIT] %s of entry %s failed after %d attempt(s): %s",
                        operation, entry_id, attempt, exc,
                    )
                    raise AuditStoreError(f"Audit {operation} failed for entry {entry_id}") from exc
                logger.warning(
                    "[AUDIT] %s of entry %s failed (attempt %d/%d): %s; retrying in %.2fs",
                    operation, entry_id, attempt, self._write_attempts, exc, delay,
                )
                await asyncio.sleep(delay)
                delay *= 2
        raise AssertionError("unreachable")

    # ========== Reads ==========

    async def get(self, entry_id: str) -> AuditEntry | None:
        async with self._database.read() as conn:
            return await self._repo.get(conn, entry_id)

    async def list_all(self) -> List[AuditEntry]:
        """All entries ordered by timestamp, newest first."""
        async with self._database.read() as conn:
            return await self._repo.list_entries(conn)

    async def list_recent(self, n: int) -> List[AuditEntry]:
        """The first ``n`` entries of `list_all`; ``n <= 0`` yields an empty list."""
        if n <= 0:
            return []
        async with self._database.read() as conn:
            return await self._repo.list_entries(conn, limit=n)

    async def dashboard_stats(self, servers_monitored: int) -> DashboardStats:
        """
        Summary for the dashboard.

        ``actions_taken`` equals the entry count: every entry records at least
        the provisional label. ``detection_accuracy`` is the mean confidence,
        rounded half up, or 0 with no entries.
        """
        async with self._database.read() as conn:
            count, mean_confidence = await self._repo.summary(conn)

        return DashboardStats(
            total_violations=count,
            actions_taken=count,
            servers_monitored=servers_monitored,
            detection_accuracy=round_half_up(mean_confidence) if count else 0,
        )

    async def statistics(self, server_id: str | None = None, time_range: str = "all") -> Dict[str, Any]:
        """Aggregate entries for the statistics page.

        Unknown ``time_range`` values behave like ``"all"``.
        """
        window = TIME_RANGES.get(time_range)
        since = datetime.now(timezone.utc) - window if window else None

        async with self._database.read() as conn:
            entries = await self._repo.list_for_server_since(conn, server_id, since)

        violations_by_type: Counter[str] = Counter()
        actions_by_type: Counter[str] = Counter()
        violators: Dict[str, Dict[str, Any]] = {}
        daily: Counter[str] = Counter()

        for entry in entries:
            violations_by_type[entry.violation_type] += 1
            actions_by_type.update(entry.actions_taken)
            violator = violators.setdefault(entry.user_id, {"username": entry.username, "count": 0})
            violator["count"] += 1
            daily[WEEKDAYS[entry.timestamp.astimezone(timezone.utc).weekday()]] += 1

        top = sorted(violators.items(), key=lambda item: item[1]["count"], reverse=True)
        return {
            "totalViolations": len(entries),
            "violationsByType": dict(violations_by_type),
            "actionsByType": dict(actions_by_type),
            "topViolators": [
                {"userId": user_id, "username": data["username"], "count": data["count"]}
                for user_id, data in top[:TOP_VIOLATORS_LIMIT]
            ],
            "dailyTrends": [{"date": day, "violations": daily.get(day, 0)} for day in WEEKDAYS],
        }
