from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from modsentry.configuration.ai_settings import AISettings
from modsentry.configuration.runtime_settings import (
    AuditSettings,
    DashboardSettings,
    DatabaseSettings,
    EnforcementSettings,
)
from modsentry.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    each top-level section through a typed helper. Uses fcntl file locks for
    safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found; using defaults.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping; using defaults.", self.config_path)
            return {}
        return data

    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file, replace the cache and return the new mapping."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """The cached configuration mapping. Callers must not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def _section(self, key: str) -> Dict[str, Any]:
        section = self._data.get(key, {})
        return section if isinstance(section, dict) else {}

    @property
    def ai_settings(self) -> AISettings:
        return AISettings(self._section("ai_settings"))

    @property
    def enforcement(self) -> EnforcementSettings:
        return EnforcementSettings(self._section("enforcement"))

    @property
    def audit(self) -> AuditSettings:
        return AuditSettings(self._section("audit"))

    @property
    def dashboard(self) -> DashboardSettings:
        return DashboardSettings(self._section("dashboard"))

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings(self._section("database"))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
