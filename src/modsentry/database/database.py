"""
Database coordinator.

`Database` owns the connection manager and the schema. Repositories and
stores receive the `Database` instance and go through its ``read()`` and
``transaction()`` helpers rather than opening their own connections.

Lifecycle:
    1. ``await database.initialize()`` at startup
    2. stores use ``read()`` / ``transaction()``
    3. ``await database.shutdown()`` at exit
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from pathlib import Path

import aiosqlite

from modsentry.database.db_connection import ConnectionManager
from modsentry.database.db_schema import SchemaManager
from modsentry.util.logger import get_logger

logger = get_logger("database")

DB_PATH = Path("./data/app.db").resolve()


class Database:
    """Central database coordinator."""

    def __init__(self, db_path: Path = DB_PATH):
        self.db_path = db_path
        self._connection = ConnectionManager()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> bool:
        """
        Open the connection and create the schema.

        Returns:
            True if initialization succeeded, False otherwise
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return True

        try:
            await self._connection.open(self.db_path)
            await SchemaManager.initialize_schema(self._connection.connection)
        except (aiosqlite.Error, OSError) as e:
            logger.error("[DATABASE] Database initialization failed: %s", e)
            await self._connection.close()
            return False

        self._initialized = True
        logger.info("[DATABASE] Database initialized at %s", self.db_path)
        return True

    async def shutdown(self) -> None:
        if not self._initialized:
            return

        await self._connection.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")

    def read(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        return self._connection.read()

    def transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        return self._connection.transaction()
