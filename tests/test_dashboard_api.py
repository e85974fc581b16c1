import time
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from fakes import FakeConfigStore
from modsentry.dashboard.app import WebSocketObserver, create_dashboard_app
from modsentry.dashboard.broadcast_hub import BroadcastHub
from modsentry.datatypes.audit_datatypes import AuditEntry, DashboardStats
from modsentry.datatypes.moderation_datatypes import Verdict, ViolationType


class ReportingAuditStore:
    def __init__(self, entries=None, broken: bool = False):
        self.entries = entries or []
        self.broken = broken
        self.recent_limits = []

    async def list_all(self):
        if self.broken:
            raise RuntimeError("database is locked")
        return list(self.entries)

    async def list_recent(self, n):
        self.recent_limits.append(n)
        return self.entries[:max(0, n)]

    async def dashboard_stats(self, servers_monitored):
        return DashboardStats(len(self.entries), len(self.entries), servers_monitored, 100)

    async def statistics(self, server_id=None, time_range="all"):
        return {"totalViolations": len(self.entries), "serverId": server_id, "timeRange": time_range}


@pytest.fixture()
def entries(make_event):
    return [
        AuditEntry.create(make_event(message_id=str(300 + i)), Verdict(True, ViolationType.SPAM, 90, "spam"))
        for i in range(3)
    ]


@pytest.fixture()
def hub():
    return BroadcastHub()


@pytest.fixture()
def client_for(hub):
    def _client(audit_store=None, config_store=None, platform=None) -> TestClient:
        app = create_dashboard_app(
            config_store or FakeConfigStore(),
            audit_store or ReportingAuditStore(),
            hub,
            platform=platform,
            recent_logs_default_limit=5,
        )
        return TestClient(app)

    return _client


def test_unconfigured_server_gets_default_config(client_for) -> None:
    response = client_for().get("/api/config/123")

    assert response.status_code == 200
    assert response.json() == {
        "serverId": "123",
        "sensitivity": "medium",
        "primaryAction": "log",
        "enableLog": True,
        "monitorAllChannels": True,
    }


def test_save_config_round_trips_through_store(client_for) -> None:
    store = FakeConfigStore()
    client = client_for(config_store=store)

    response = client.post("/api/config", json={
        "serverId": 123,
        "serverName": "Test Server",
        "sensitivity": "high",
        "enableBan": True,
        "banDuration": 24,
        "monitorAllChannels": False,
        "monitoredChannels": ["200", "201"],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["serverId"] == "123"
    assert body["banDuration"] == 24
    assert body["monitoredChannels"] == ["200", "201"]
    assert store.get("123").ban_enabled is True
    assert client.get("/api/config/123").json() == body


@pytest.mark.parametrize("payload", [{}, {"serverId": "1", "sensitivity": "extreme"}, {"serverId": "1", "banDuration": -1}])
def test_save_config_rejects_invalid_payload(client_for, payload) -> None:
    response = client_for().post("/api/config", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid config data"}


def test_save_config_rejects_non_json_body(client_for) -> None:
    response = client_for().post("/api/config", content=b"not json", headers={"content-type": "application/json"})

    assert response.status_code == 400


def test_logs_are_returned_in_wire_shape(client_for, entries) -> None:
    response = client_for(audit_store=ReportingAuditStore(entries)).get("/api/logs")

    assert response.status_code == 200
    assert [log["id"] for log in response.json()] == [entry.id for entry in entries]
    assert response.json()[0]["actionTaken"] == "logged"


def test_recent_logs_limit(client_for, entries) -> None:
    store = ReportingAuditStore(entries)
    client = client_for(audit_store=store)

    assert len(client.get("/api/logs/recent", params={"limit": 2}).json()) == 2
    assert len(client.get("/api/logs/recent").json()) == 3
    assert store.recent_limits == [2, 5]


def test_store_failure_is_reported_as_500(client_for) -> None:
    response = client_for(audit_store=ReportingAuditStore(broken=True)).get("/api/logs")

    assert response.status_code == 500
    assert "error" in response.json()


def test_dashboard_stats_counts_configured_servers(client_for, entries, make_config) -> None:
    client = client_for(audit_store=ReportingAuditStore(entries), config_store=FakeConfigStore(make_config()))

    assert client.get("/api/stats/dashboard").json() == {
        "totalViolations": 3,
        "actionsTaken": 3,
        "serversMonitored": 1,
        "detectionAccuracy": 100,
    }


def test_statistics_passes_filters(client_for) -> None:
    response = client_for().get("/api/stats", params={"serverId": "100", "timeRange": "7d"})

    assert response.json() == {"totalViolations": 0, "serverId": "100", "timeRange": "7d"}


def test_servers_listing(client_for) -> None:
    platform = MagicMock()
    platform.list_servers.return_value = [{"id": "100", "name": "Test Server", "icon": None, "channels": []}]

    assert client_for(platform=platform).get("/api/servers").json()[0]["id"] == "100"
    assert client_for().get("/api/servers").json() == []


def test_websocket_registers_with_hub_while_open(client_for, hub) -> None:
    client = client_for()

    with client.websocket_connect("/ws") as websocket:
        deadline = time.monotonic() + 2
        while hub.connection_count == 0 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert hub.connection_count == 1
        websocket.send_text("hello")

    assert hub.connection_count == 0


def test_websocket_observer_is_open_tracks_state() -> None:
    websocket = MagicMock()
    websocket.client_state = WebSocketState.CONNECTED
    websocket.application_state = WebSocketState.CONNECTED
    observer = WebSocketObserver(websocket)

    assert observer.is_open()

    websocket.application_state = WebSocketState.DISCONNECTED
    assert not observer.is_open()
