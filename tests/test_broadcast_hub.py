import json
from datetime import datetime, timezone

import pytest

from fakes import FakeObserver
from modsentry.dashboard.broadcast_hub import BroadcastHub
from modsentry.datatypes.audit_datatypes import AuditEntry


def _entry() -> AuditEntry:
    return AuditEntry(
        id="entry-1",
        server_id="100",
        server_name="Test Server",
        user_id="400",
        username="spammer",
        user_avatar=None,
        channel_id="200",
        channel_name="general",
        message_content="BUY CRYPTO",
        violation_type="spam",
        confidence_score=95,
        reasoning="Spam",
        actions_taken=("logged",),
        timestamp=datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc),
    )


@pytest.mark.asyncio
async def test_publish_with_no_observers() -> None:
    assert await BroadcastHub().publish(_entry()) == 0


@pytest.mark.asyncio
async def test_publish_sends_new_log_event_to_open_observers() -> None:
    hub = BroadcastHub()
    open_observer, closed_observer = FakeObserver(), FakeObserver(open_=False)
    await hub.register(open_observer)
    await hub.register(closed_observer)

    delivered = await hub.publish(_entry())

    assert delivered == 1
    assert closed_observer.sent == []
    message = json.loads(open_observer.sent[0])
    assert message["type"] == "new_log"
    assert message["data"]["id"] == "entry-1"
    assert message["data"]["actionTaken"] == "logged"
    assert message["data"]["aiReasoning"] == "Spam"


@pytest.mark.asyncio
async def test_failing_observer_does_not_affect_others() -> None:
    hub = BroadcastHub()
    broken, healthy = FakeObserver(fail=True), FakeObserver()
    await hub.register(broken)
    await hub.register(healthy)

    delivered = await hub.publish(_entry())

    assert delivered == 1
    assert len(healthy.sent) == 1
    # Connections leave only by unregistering themselves
    assert hub.connection_count == 2


@pytest.mark.asyncio
async def test_stalled_observer_is_bounded_by_send_timeout() -> None:
    hub = BroadcastHub(send_timeout_seconds=0.05)
    stalled, healthy = FakeObserver(hang=True), FakeObserver()
    await hub.register(stalled)
    await hub.register(healthy)

    assert await hub.publish(_entry()) == 1
    assert len(healthy.sent) == 1


@pytest.mark.asyncio
async def test_closed_observer_is_not_buffered() -> None:
    hub = BroadcastHub()
    observer = FakeObserver(open_=False)
    await hub.register(observer)

    await hub.publish(_entry())
    observer.open = True
    await hub.publish(_entry())

    assert len(observer.sent) == 1


@pytest.mark.asyncio
async def test_register_and_unregister() -> None:
    hub = BroadcastHub()
    observer = FakeObserver()

    await hub.register(observer)
    await hub.register(observer)
    assert hub.connection_count == 1

    await hub.unregister(observer)
    await hub.unregister(observer)
    assert hub.connection_count == 0
    assert await hub.publish(_entry()) == 0
