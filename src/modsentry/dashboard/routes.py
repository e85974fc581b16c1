"""
Dashboard read API.

Collaborators are taken from ``request.app.state`` (see `create_dashboard_app`).
Unexpected failures are logged and answered with 500 and an ``error`` body.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from modsentry.dashboard.models import ConfigPayload
from modsentry.datatypes.enforcement_config import EnforcementConfig
from modsentry.util.logger import get_logger

logger = get_logger("dashboard_routes")

router = APIRouter(prefix="/api", tags=["dashboard"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/servers")
async def list_servers(request: Request):
    try:
        platform = request.app.state.platform
        return platform.list_servers() if platform is not None else []
    except Exception:
        logger.exception("[DASHBOARD] Error fetching servers")
        return _error(500, "Failed to fetch servers")


@router.get("/config/{server_id}")
async def get_config(server_id: str, request: Request):
    try:
        config = request.app.state.config_store.get(server_id)
        if config is None:
            return EnforcementConfig.default_wire_dict(server_id)
        return config.to_wire_dict()
    except Exception:
        logger.exception("[DASHBOARD] Error fetching config for %s", server_id)
        return _error(500, "Failed to fetch config")


@router.post("/config")
async def save_config(request: Request):
    try:
        payload = ConfigPayload.model_validate(await request.json())
    except (ValidationError, ValueError) as exc:
        logger.warning("[DASHBOARD] Rejected config payload: %s", exc)
        return _error(400, "Invalid config data")

    try:
        config = EnforcementConfig.from_wire_dict(payload.model_dump())
        saved = await request.app.state.config_store.upsert(config)
        return saved.to_wire_dict()
    except Exception:
        logger.exception("[DASHBOARD] Error saving config for %s", payload.serverId)
        return _error(500, "Failed to save config")


@router.get("/logs")
async def list_logs(request: Request):
    try:
        entries = await request.app.state.audit_store.list_all()
        return [entry.to_wire_dict() for entry in entries]
    except Exception:
        logger.exception("[DASHBOARD] Error fetching logs")
        return _error(500, "Failed to fetch logs")


@router.get("/logs/recent")
async def list_recent_logs(request: Request, limit: Optional[int] = None):
    try:
        if limit is None:
            limit = request.app.state.recent_logs_default_limit
        entries = await request.app.state.audit_store.list_recent(limit)
        return [entry.to_wire_dict() for entry in entries]
    except Exception:
        logger.exception("[DASHBOARD] Error fetching recent logs")
        return _error(500, "Failed to fetch recent logs")


@router.get("/stats/dashboard")
async def dashboard_stats(request: Request):
    try:
        state = request.app.state
        stats = await state.audit_store.dashboard_stats(state.config_store.count())
        return stats.to_wire_dict()
    except Exception:
        logger.exception("[DASHBOARD] Error fetching dashboard stats")
        return _error(500, "Failed to fetch stats")


@router.get("/stats")
async def statistics(request: Request, serverId: Optional[str] = None, timeRange: str = "all"):
    try:
        return await request.app.state.audit_store.statistics(serverId, timeRange)
    except Exception:
        logger.exception("[DASHBOARD] Error fetching statistics")
        return _error(500, "Failed to fetch statistics")
