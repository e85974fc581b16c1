"""Typed accessors for the non-AI sections of ``config/app_config.yml``."""

from pathlib import Path
from typing import Any, Dict


class _Section:
    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


class EnforcementSettings(_Section):
    """``enforcement`` section: bounds on platform calls made by the executor."""

    @property
    def action_timeout_seconds(self) -> float:
        return float(self.data.get("action_timeout_seconds", 10.0))

    @property
    def ban_history_lookback_seconds(self) -> int:
        return int(self.data.get("ban_history_lookback_seconds", 24 * 60 * 60))


class AuditSettings(_Section):
    """``audit`` section: retry policy for audit log writes."""

    @property
    def write_attempts(self) -> int:
        return max(1, int(self.data.get("write_attempts", 3)))

    @property
    def retry_backoff_seconds(self) -> float:
        return float(self.data.get("retry_backoff_seconds", 0.25))


class DashboardSettings(_Section):
    """``dashboard`` section: the read API / WebSocket server."""

    @property
    def enabled(self) -> bool:
        return bool(self.data.get("enabled", True))

    @property
    def host(self) -> str:
        return str(self.data.get("host", "0.0.0.0"))

    @property
    def port(self) -> int:
        return int(self.data.get("port", 5000))

    @property
    def send_timeout_seconds(self) -> float:
        return float(self.data.get("send_timeout_seconds", 2.0))

    @property
    def recent_logs_default_limit(self) -> int:
        return int(self.data.get("recent_logs_default_limit", 5))


class DatabaseSettings(_Section):
    """``database`` section."""

    @property
    def path(self) -> Path:
        return Path(self.data.get("path") or "./data/app.db").resolve()
