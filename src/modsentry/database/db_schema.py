"""
Database schema initialization.

Creates the tables, indexes and schema version row used by Modsentry.
"""

import aiosqlite

from modsentry.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates and versions the database schema."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all tables, indexes and triggers if they do not exist.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._create_triggers(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized")

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS enforcement_configs (
                server_id TEXT PRIMARY KEY,
                server_name TEXT,
                sensitivity TEXT NOT NULL DEFAULT 'medium',
                primary_action TEXT NOT NULL DEFAULT 'log',
                warn_enabled INTEGER NOT NULL DEFAULT 0,
                warn_message TEXT,
                log_enabled INTEGER NOT NULL DEFAULT 1,
                log_channel_id TEXT,
                kick_enabled INTEGER NOT NULL DEFAULT 0,
                ban_enabled INTEGER NOT NULL DEFAULT 0,
                ban_duration_hours INTEGER,
                custom_command TEXT,
                monitor_all_channels INTEGER NOT NULL DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS monitored_channels (
                server_id TEXT NOT NULL,
                channel_id TEXT NOT NULL,
                PRIMARY KEY (server_id, channel_id),
                FOREIGN KEY (server_id) REFERENCES enforcement_configs(server_id) ON DELETE CASCADE
            )
        """)

        # finalized flips to 1 exactly once, when actions_taken is overwritten
        await db.execute("""
            CREATE TABLE IF NOT EXISTS audit_log (
                id TEXT PRIMARY KEY,
                server_id TEXT NOT NULL,
                server_name TEXT NOT NULL,
                user_id TEXT NOT NULL,
                username TEXT NOT NULL,
                user_avatar TEXT,
                channel_id TEXT NOT NULL,
                channel_name TEXT NOT NULL,
                message_content TEXT NOT NULL,
                violation_type TEXT NOT NULL,
                confidence_score INTEGER NOT NULL,
                reasoning TEXT NOT NULL,
                actions_taken TEXT NOT NULL,
                finalized INTEGER NOT NULL DEFAULT 0,
                timestamp TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS temporary_bans (
                server_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                unban_at INTEGER NOT NULL,
                reason TEXT NOT NULL DEFAULT '',
                PRIMARY KEY (server_id, user_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute("CREATE INDEX IF NOT EXISTS idx_audit_log_timestamp ON audit_log(timestamp DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_audit_log_server ON audit_log(server_id, timestamp DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_monitored_channels_server ON monitored_channels(server_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_temporary_bans_due ON temporary_bans(unban_at)")

    @staticmethod
    async def _create_triggers(db: aiosqlite.Connection) -> None:
        await db.execute("""
            CREATE TRIGGER IF NOT EXISTS update_enforcement_configs_timestamp
            AFTER UPDATE ON enforcement_configs
            FOR EACH ROW
            BEGIN
                UPDATE enforcement_configs SET updated_at = CURRENT_TIMESTAMP
                WHERE server_id = NEW.server_id;
            END
        """)

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
