"""
Per-server enforcement configuration.

`EnforcementConfig` is the pipeline's read-only view of what a server wants
done with violations. The dashboard speaks camelCase JSON, so the class knows
how to convert itself to and from that wire shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable

from modsentry.datatypes.action_datatypes import ActionType
from modsentry.datatypes.moderation_datatypes import SensitivityLevel


@dataclass(frozen=True, slots=True)
class EnforcementConfig:
    """Enforcement settings for one server.

    Attributes:
        server_id: Unique server identifier.
        server_name: Display name of the server, if known.
        sensitivity: Strictness tier passed to the classifier.
        primary_action: Label chosen in the dashboard. Stored and returned but
            not consulted when deciding which actions run.
        warn_enabled: Send ``warn_message`` to the user by direct message.
        warn_message: Text of the warning.
        log_enabled: Post an alert to ``log_channel_id``.
        log_channel_id: Channel receiving alerts.
        kick_enabled: Kick the user.
        ban_enabled: Ban the user.
        ban_duration_hours: Ban length in hours; ``None`` means permanent.
        custom_command: Text posted to the originating channel, with ``@user``
            and ``@channel`` placeholders.
        monitor_all_channels: When False only ``monitored_channels`` are read.
        monitored_channels: Channel ids consulted when not monitoring all.
    """

    server_id: str
    server_name: str | None = None
    sensitivity: SensitivityLevel = SensitivityLevel.MEDIUM
    primary_action: ActionType = ActionType.LOG
    warn_enabled: bool = False
    warn_message: str | None = None
    log_enabled: bool = True
    log_channel_id: str | None = None
    kick_enabled: bool = False
    ban_enabled: bool = False
    ban_duration_hours: int | None = None
    custom_command: str | None = None
    monitor_all_channels: bool = True
    monitored_channels: FrozenSet[str] = field(default_factory=frozenset)

    def monitors_channel(self, channel_id: str) -> bool:
        """Return True if messages from ``channel_id`` should be classified."""
        return self.monitor_all_channels or str(channel_id) in self.monitored_channels

    def to_wire_dict(self) -> Dict[str, Any]:
        return {
            "serverId": self.server_id,
            "serverName": self.server_name,
            "sensitivity": self.sensitivity.value,
            "primaryAction": self.primary_action.value,
            "enableWarn": self.warn_enabled,
            "warnMessage": self.warn_message,
            "enableLog": self.log_enabled,
            "logChannelId": self.log_channel_id,
            "enableKick": self.kick_enabled,
            "enableBan": self.ban_enabled,
            "banDuration": self.ban_duration_hours,
            "customCommand": self.custom_command,
            "monitoredChannels": sorted(self.monitored_channels),
            "monitorAllChannels": self.monitor_all_channels,
        }

    @classmethod
    def from_wire_dict(cls, data: Dict[str, Any]) -> EnforcementConfig:
        """Build a config from its camelCase JSON form.

        Missing keys take the dataclass defaults.

        Raises:
            KeyError: If ``serverId`` is missing.
            ValueError: If ``sensitivity`` or ``primaryAction`` is not a known value.
        """
        return cls(
            server_id=str(data["serverId"]),
            server_name=data.get("serverName"),
            sensitivity=SensitivityLevel(data.get("sensitivity") or "medium"),
            primary_action=ActionType(data.get("primaryAction") or "log"),
            warn_enabled=bool(data.get("enableWarn", False)),
            warn_message=data.get("warnMessage"),
            log_enabled=bool(data.get("enableLog", True)),
            log_channel_id=_optional_str(data.get("logChannelId")),
            kick_enabled=bool(data.get("enableKick", False)),
            ban_enabled=bool(data.get("enableBan", False)),
            ban_duration_hours=data.get("banDuration"),
            custom_command=data.get("customCommand"),
            monitor_all_channels=bool(data.get("monitorAllChannels", True)),
            monitored_channels=_channel_set(data.get("monitoredChannels") or ()),
        )

    @staticmethod
    def default_wire_dict(server_id: str) -> Dict[str, Any]:
        """Shape returned to the dashboard for a server that has no config yet."""
        return {
            "serverId": server_id,
            "sensitivity": SensitivityLevel.MEDIUM.value,
            "primaryAction": ActionType.LOG.value,
            "enableLog": True,
            "monitorAllChannels": True,
        }


def _optional_str(value: Any) -> str | None:
    return None if value is None or value == "" else str(value)


def _channel_set(values: Iterable[Any]) -> FrozenSet[str]:
    return frozenset(str(v) for v in values)
