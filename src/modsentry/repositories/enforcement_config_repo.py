"""
Repository for the enforcement_configs and monitored_channels tables.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Set

import aiosqlite

from modsentry.datatypes.action_datatypes import ActionType
from modsentry.datatypes.enforcement_config import EnforcementConfig
from modsentry.datatypes.moderation_datatypes import SensitivityLevel
from modsentry.util.logger import get_logger

logger = get_logger("enforcement_config_repo")

_SELECT_COLUMNS = """
    SELECT server_id, server_name, sensitivity, primary_action,
           warn_enabled, warn_message, log_enabled, log_channel_id,
           kick_enabled, ban_enabled, ban_duration_hours, custom_command,
           monitor_all_channels
    FROM enforcement_configs
"""


class EnforcementConfigRepository:
    """CRUD for enforcement configs and their monitored channel rows."""

    async def get_all(self, conn: aiosqlite.Connection) -> Dict[str, EnforcementConfig]:
        """Fetch every stored config keyed by server id."""
        channels = await self._get_all_channels(conn)

        async with conn.execute(_SELECT_COLUMNS) as cursor:
            rows = await cursor.fetchall()

        return {row[0]: self._row_to_config(row, channels.get(row[0], set())) for row in rows}

    async def get(self, conn: aiosqlite.Connection, server_id: str) -> EnforcementConfig | None:
        async with conn.execute(_SELECT_COLUMNS + " WHERE server_id = ?", (server_id,)) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None

        async with conn.execute(
            "SELECT channel_id FROM monitored_channels WHERE server_id = ?",
            (server_id,),
        ) as cursor:
            channel_rows = await cursor.fetchall()

        return self._row_to_config(row, {r[0] for r in channel_rows})

    async def count(self, conn: aiosqlite.Connection) -> int:
        async with conn.execute("SELECT COUNT(*) FROM enforcement_configs") as cursor:
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def upsert(self, conn: aiosqlite.Connection, config: EnforcementConfig) -> None:
        """Insert or update a config and replace its monitored channel set.

        Must run inside a transaction so the two tables stay consistent.
        """
        await conn.execute(
            """
            INSERT INTO enforcement_configs (
                server_id, server_name, sensitivity, primary_action,
                warn_enabled, warn_message, log_enabled, log_channel_id,
                kick_enabled, ban_enabled, ban_duration_hours, custom_command,
                monitor_all_channels
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(server_id) DO UPDATE SET
                server_name          = excluded.server_name,
                sensitivity          = excluded.sensitivity,
                primary_action       = excluded.primary_action,
                warn_enabled         = excluded.warn_enabled,
                warn_message         = excluded.warn_message,
                log_enabled          = excluded.log_enabled,
                log_channel_id       = excluded.log_channel_id,
                kick_enabled         = excluded.kick_enabled,
                ban_enabled          = excluded.ban_enabled,
                ban_duration_hours   = excluded.ban_duration_hours,
                custom_command       = excluded.custom_command,
                monitor_all_channels = excluded.monitor_all_channels
            """,
            (
                config.server_id,
                config.server_name,
                config.sensitivity.value,
                config.primary_action.value,
                1 if config.warn_enabled else 0,
                config.warn_message,
                1 if config.log_enabled else 0,
                config.log_channel_id,
                1 if config.kick_enabled else 0,
                1 if config.ban_enabled else 0,
                config.ban_duration_hours,
                config.custom_command,
                1 if config.monitor_all_channels else 0,
            ),
        )
        await self._replace_channels(conn, config.server_id, config.monitored_channels)

    async def _replace_channels(
        self, conn: aiosqlite.Connection, server_id: str, channel_ids: Iterable[str]
    ) -> None:
        await conn.execute("DELETE FROM monitored_channels WHERE server_id = ?", (server_id,))
        await conn.executemany(
            "INSERT INTO monitored_channels (server_id, channel_id) VALUES (?, ?)",
            [(server_id, channel_id) for channel_id in channel_ids],
        )

    async def _get_all_channels(self, conn: aiosqlite.Connection) -> Dict[str, Set[str]]:
        async with conn.execute("SELECT server_id, channel_id FROM monitored_channels") as cursor:
            rows = await cursor.fetchall()

        channels: Dict[str, Set[str]] = defaultdict(set)
        for server_id, channel_id in rows:
            channels[server_id].add(channel_id)
        return channels

    @staticmethod
    def _row_to_config(row, channel_ids: Set[str]) -> EnforcementConfig:
        return EnforcementConfig(
            server_id=row[0],
            server_name=row[1],
            sensitivity=SensitivityLevel(row[2]),
            primary_action=ActionType(row[3]),
            warn_enabled=bool(row[4]),
            warn_message=row[5],
            log_enabled=bool(row[6]),
            log_channel_id=row[7],
            kick_enabled=bool(row[8]),
            ban_enabled=bool(row[9]),
            ban_duration_hours=row[10],
            custom_command=row[11],
            monitor_all_channels=bool(row[12]),
            monitored_channels=frozenset(channel_ids),
        )
