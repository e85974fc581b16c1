import pytest

from modsentry.datatypes.action_datatypes import ActionType, PROVISIONAL_ACTION_LABEL
from modsentry.datatypes.audit_datatypes import AuditEntry
from modsentry.datatypes.enforcement_config import EnforcementConfig
from modsentry.datatypes.moderation_datatypes import SensitivityLevel, Verdict, ViolationType


def test_action_labels() -> None:
    assert [action.label for action in ActionType] == ["warned", "logged", "kicked", "banned", "custom"]
    assert PROVISIONAL_ACTION_LABEL == "logged"


def test_fail_open_verdict() -> None:
    verdict = Verdict.fail_open("Error analyzing message")

    assert verdict.is_violation is False
    assert verdict.violation_type is ViolationType.NONE
    assert verdict.confidence_score == 0


def test_audit_entry_lifecycle(make_event) -> None:
    event = make_event()
    entry = AuditEntry.create(event, Verdict(True, ViolationType.SPAM, 95, "spam"))

    assert entry.actions_taken == ("logged",)
    assert entry.message_content == event.text
    assert entry.timestamp.tzinfo is not None

    finalized = entry.finalized(["warned", "banned"])
    assert finalized.id == entry.id
    assert finalized.action_taken == "warned, banned"
    assert entry.actions_taken == ("logged",)
    assert entry.finalized([]).actions_taken == ("logged",)


def test_audit_entry_wire_shape(make_event) -> None:
    wire = AuditEntry.create(make_event(), Verdict(True, ViolationType.HATE_SPEECH, 70, "slur")).to_wire_dict()

    assert set(wire) == {
        "id", "serverId", "serverName", "userId", "username", "userAvatar", "channelId",
        "channelName", "messageContent", "violationType", "confidenceScore", "aiReasoning",
        "actionTaken", "timestamp",
    }
    assert wire["violationType"] == "hate_speech"
    assert wire["actionTaken"] == "logged"


def test_enforcement_config_defaults_from_wire() -> None:
    config = EnforcementConfig.from_wire_dict({"serverId": 123})

    assert config.server_id == "123"
    assert config.sensitivity is SensitivityLevel.MEDIUM
    assert config.primary_action is ActionType.LOG
    assert config.log_enabled is True
    assert config.monitor_all_channels is True
    assert not (config.warn_enabled or config.kick_enabled or config.ban_enabled)
    assert config.ban_duration_hours is None


def test_enforcement_config_rejects_unknown_sensitivity() -> None:
    with pytest.raises(ValueError):
        EnforcementConfig.from_wire_dict({"serverId": "1", "sensitivity": "extreme"})


def test_monitors_channel() -> None:
    everything = EnforcementConfig(server_id="1")
    selected = EnforcementConfig(server_id="1", monitor_all_channels=False, monitored_channels=frozenset({"5"}))

    assert everything.monitors_channel("anything")
    assert selected.monitors_channel("5")
    assert not selected.monitors_channel("6")
