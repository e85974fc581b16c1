"""
FastAPI application for the dashboard.

Serves the read API under ``/api`` and the observer WebSocket at ``/ws``.
Each WebSocket connection registers itself with the broadcast hub on accept
and unregisters when it closes.
"""

from __future__ import annotations

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from modsentry.audit.audit_log_store import AuditLogStore
from modsentry.dashboard.broadcast_hub import BroadcastHub
from modsentry.dashboard.routes import router
from modsentry.platform.chat_platform import ChatPlatform
from modsentry.settings.configuration_store import ConfigurationStore
from modsentry.util.logger import get_logger

logger = get_logger("dashboard_app")


class WebSocketObserver:
    """Adapts a Starlette WebSocket to the hub's observer interface."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, payload: str) -> None:
        await self.websocket.send_text(payload)


def create_dashboard_app(
    config_store: ConfigurationStore,
    audit_store: AuditLogStore,
    hub: BroadcastHub,
    platform: ChatPlatform | None = None,
    recent_logs_default_limit: int = 5,
) -> FastAPI:
    """
    Build the dashboard application around the given collaborators.

    Args:
        config_store: Source and sink for per-server configs.
        audit_store: Audit log to report from.
        hub: Hub that WebSocket observers register with.
        platform: Connected chat platform, used to list servers. May be None
            before the bot connects.
        recent_logs_default_limit: ``limit`` used by ``/api/logs/recent``
            when the query omits it.
    """
    app = FastAPI(title="Modsentry Dashboard")
    app.state.config_store = config_store
    app.state.audit_store = audit_store
    app.state.hub = hub
    app.state.platform = platform
    app.state.recent_logs_default_limit = recent_logs_default_limit

    app.include_router(router)

    @app.websocket("/ws")
    async def observer_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        observer = WebSocketObserver(websocket)
        await hub.register(observer)
        try:
            while True:
                message = await websocket.receive_text()
                logger.debug("[DASHBOARD] Received observer message: %s", message)
        except WebSocketDisconnect:
            pass
        finally:
            await hub.unregister(observer)

    return app
