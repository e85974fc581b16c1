import pytest

from modsentry.datatypes.action_datatypes import ActionType
from modsentry.datatypes.moderation_datatypes import SensitivityLevel
from modsentry.settings.configuration_store import ConfigurationStore


@pytest.mark.asyncio
async def test_unknown_server_is_unconfigured(database) -> None:
    store = ConfigurationStore(database)
    await store.async_init()

    assert store.get("nope") is None
    assert store.count() == 0


@pytest.mark.asyncio
async def test_upsert_is_visible_immediately_and_after_reload(database, make_config) -> None:
    store = ConfigurationStore(database)
    await store.async_init()
    config = make_config(
        sensitivity=SensitivityLevel.HIGH,
        primary_action=ActionType.BAN,
        warn_enabled=True,
        warn_message="Be nice",
        log_channel_id="900",
        ban_enabled=True,
        ban_duration_hours=24,
        custom_command="!note @user",
        monitor_all_channels=False,
        monitored_channels=frozenset({"1", "2"}),
    )

    assert await store.upsert(config) == config
    assert store.get("100") == config

    reloaded = ConfigurationStore(database)
    await reloaded.async_init()
    assert reloaded.get("100") == config
    assert reloaded.count() == 1


@pytest.mark.asyncio
async def test_upsert_replaces_existing_config(database, make_config) -> None:
    store = ConfigurationStore(database)
    await store.async_init()
    await store.upsert(make_config(monitor_all_channels=False, monitored_channels=frozenset({"1", "2"})))

    await store.upsert(make_config(kick_enabled=True, monitored_channels=frozenset({"3"})))

    reloaded = ConfigurationStore(database)
    await reloaded.async_init()
    config = reloaded.get("100")
    assert config.kick_enabled is True
    assert config.monitor_all_channels is True
    assert config.monitored_channels == frozenset({"3"})
    assert reloaded.count() == 1
