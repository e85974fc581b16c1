"""
Persistent storage for scheduled unbans.

``unban_at`` is stored as INTEGER unix seconds so due rows can be compared
without parsing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import aiosqlite


@dataclass
class TemporaryBanRecord:
    """A single row from the ``temporary_bans`` table."""
    server_id: str
    user_id: str
    unban_at: int
    reason: str


class TemporaryBanRepo:
    """Low-level CRUD for the ``temporary_bans`` table."""

    @staticmethod
    async def upsert(
        conn: aiosqlite.Connection,
        server_id: str,
        user_id: str,
        unban_at: int,
        reason: str,
    ) -> None:
        """Insert or replace a row (primary key = server_id + user_id)."""
        await conn.execute(
            """
            INSERT INTO temporary_bans (server_id, user_id, unban_at, reason)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(server_id, user_id) DO UPDATE SET
                unban_at = excluded.unban_at,
                reason   = excluded.reason
            """,
            (server_id, user_id, unban_at, reason),
        )

    @staticmethod
    async def delete(conn: aiosqlite.Connection, server_id: str, user_id: str) -> None:
        await conn.execute(
            "DELETE FROM temporary_bans WHERE server_id = ? AND user_id = ?",
            (server_id, user_id),
        )

    @staticmethod
    async def get_all(conn: aiosqlite.Connection) -> List[TemporaryBanRecord]:
        """Every pending unban, soonest first."""
        async with conn.execute(
            "SELECT server_id, user_id, unban_at, reason FROM temporary_bans ORDER BY unban_at"
        ) as cursor:
            rows = await cursor.fetchall()
        return [
            TemporaryBanRecord(server_id=row[0], user_id=row[1], unban_at=row[2], reason=row[3])
            for row in rows
        ]
