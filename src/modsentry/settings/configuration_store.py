"""
Persistent per-server enforcement configuration.

The pipeline reads configs on every message, so lookups are served from an
in-memory cache that is loaded once at startup and refreshed on every write:

- async_init(): load all stored configs
- get(server_id): cached config or None (server unmonitored)
- upsert(config): persist and refresh the cache
- count(): number of configured servers
"""

from typing import Dict

from modsentry.database.database import Database
from modsentry.datatypes.enforcement_config import EnforcementConfig
from modsentry.repositories.enforcement_config_repo import EnforcementConfigRepository
from modsentry.util.logger import get_logger

logger = get_logger("configuration_store")


class ConfigurationStore:
    """Cache-backed store for `EnforcementConfig` rows."""

    def __init__(self, database: Database):
        self._database = database
        self._repo = EnforcementConfigRepository()
        self._configs: Dict[str, EnforcementConfig] = {}
        self._loaded = False

    async def async_init(self) -> None:
        """Load every stored config into the cache."""
        if self._loaded:
            return

        async with self._database.read() as conn:
            loaded = await self._repo.get_all(conn)
        self._configs = loaded
        self._loaded = True
        logger.info("[CONFIGURATION STORE] Loaded %d server configuration(s)", len(loaded))

    def get(self, server_id: str) -> EnforcementConfig | None:
        """
        Return the config for a server.

        Args:
            server_id: Server to look up.

        Returns:
            The stored config, or None when the server has never been configured.
        """
        return self._configs.get(str(server_id))

    async def upsert(self, config: EnforcementConfig) -> EnforcementConfig:
        """Persist ``config`` (config row and monitored channels atomically) and cache it."""
        async with self._database.transaction() as conn:
            await self._repo.upsert(conn, config)

        self._configs[config.server_id] = config
        logger.info(
            "[CONFIGURATION STORE] Saved configuration for server %s (sensitivity=%s)",
            config.server_id,
            config.sensitivity,
        )
        return config

    def count(self) -> int:
        return len(self._configs)
