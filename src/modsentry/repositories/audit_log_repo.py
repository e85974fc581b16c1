"""
Repository for the audit_log table.

Timestamps are stored as fixed-width ISO-8601 UTC strings; they sort lexically in
chronological order, so ``ORDER BY timestamp DESC`` needs no parsing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

import aiosqlite

from modsentry.datatypes.audit_datatypes import ACTION_SEPARATOR, AuditEntry

_SELECT_COLUMNS = """
    SELECT id, server_id, server_name, user_id, username, user_avatar,
           channel_id, channel_name, message_content, violation_type,
           confidence_score, reasoning, actions_taken, timestamp
    FROM audit_log
"""

# rowid breaks ties between entries stamped within the same microsecond
_NEWEST_FIRST = " ORDER BY timestamp DESC, rowid DESC"


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


class AuditLogRepository:
    """Insert, finalize and query audit entries."""

    async def insert(self, conn: aiosqlite.Connection, entry: AuditEntry) -> None:
        await conn.execute(
            """
            INSERT INTO audit_log (
                id, server_id, server_name, user_id, username, user_avatar,
                channel_id, channel_name, message_content, violation_type,
                confidence_score, reasoning, actions_taken, finalized, timestamp
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
            """,
            (
                entry.id,
                entry.server_id,
                entry.server_name,
                entry.user_id,
                entry.username,
                entry.user_avatar,
                entry.channel_id,
                entry.channel_name,
                entry.message_content,
                entry.violation_type,
                entry.confidence_score,
                entry.reasoning,
                entry.action_taken,
                _iso(entry.timestamp),
            ),
        )

    async def finalize(
        self, conn: aiosqlite.Connection, entry_id: str, actions_taken: str
    ) -> bool:
        """Overwrite actions_taken on a provisional entry.

        Returns:
            False if the entry does not exist or was already finalized.
        """
        cursor = await conn.execute(
            "UPDATE audit_log SET actions_taken = ?, finalized = 1 WHERE id = ? AND finalized = 0",
            (actions_taken, entry_id),
        )
        return cursor.rowcount == 1

    async def get(self, conn: aiosqlite.Connection, entry_id: str) -> AuditEntry | None:
        async with conn.execute(_SELECT_COLUMNS + " WHERE id = ?", (entry_id,)) as cursor:
            row = await cursor.fetchone()
        return self._row_to_entry(row) if row else None

    async def list_entries(self, conn: aiosqlite.Connection, limit: int | None = None) -> List[AuditEntry]:
        """Entries newest first, optionally capped at ``limit``."""
        query = _SELECT_COLUMNS + _NEWEST_FIRST
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)

        async with conn.execute(query, params) as cursor:
            rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    async def list_for_server_since(
        self, conn: aiosqlite.Connection, server_id: str | None, since: datetime | None
    ) -> List[AuditEntry]:
        clauses = []
        params = []
        if server_id:
            clauses.append("server_id = ?")
            params.append(server_id)
        if since is not None:
            clauses.append("timestamp >= ?")
            params.append(_iso(since))

        query = _SELECT_COLUMNS
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += _NEWEST_FIRST

        async with conn.execute(query, params) as cursor:
            rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    async def summary(self, conn: aiosqlite.Connection) -> tuple[int, float | None]:
        """Return ``(entry count, mean confidence)``; the mean is None when empty."""
        async with conn.execute("SELECT COUNT(*), AVG(confidence_score) FROM audit_log") as cursor:
            row = await cursor.fetchone()
        return int(row[0]), row[1]

    @staticmethod
    def _row_to_entry(row) -> AuditEntry:
        return AuditEntry(
            id=row[0],
            server_id=row[1],
            server_name=row[2],
            user_id=row[3],
            username=row[4],
            user_avatar=row[5],
            channel_id=row[6],
            channel_name=row[7],
            message_content=row[8],
            violation_type=row[9],
            confidence_score=int(row[10]),
            reasoning=row[11],
            actions_taken=tuple(row[12].split(ACTION_SEPARATOR)) if row[12] else (),
            timestamp=datetime.fromisoformat(row[13]),
        )
