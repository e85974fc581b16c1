"""Runs the dashboard app with uvicorn inside the bot's event loop."""

from __future__ import annotations

import asyncio

import uvicorn
from fastapi import FastAPI

from modsentry.util.logger import get_logger

logger = get_logger("dashboard_server")


class DashboardServer:
    """Start and stop a uvicorn server as a background task."""

    def __init__(self, app: FastAPI, host: str = "0.0.0.0", port: int = 5000):
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="warning",
            log_config=None,
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._task: asyncio.Task | None = None
        self.host = host
        self.port = port

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._serve(), name="modsentry-dashboard")
        return self._task

    async def _serve(self) -> None:
        logger.info("[DASHBOARD] Serving on http://%s:%d", self.host, self.port)
        try:
            await self._server.serve()
        except asyncio.CancelledError:
            raise
        except SystemExit:
            # uvicorn exits when it cannot bind; the bot keeps running without a dashboard
            logger.error("[DASHBOARD] Server failed to start on %s:%d", self.host, self.port)
        except Exception:
            logger.exception("[DASHBOARD] Server stopped with an error")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._server.should_exit = True
        try:
            await asyncio.wait_for(self._task, timeout=10)
        except TimeoutError:
            self._task.cancel()
            logger.warning("[DASHBOARD] Server did not stop in time; cancelled")
        finally:
            self._task = None
        logger.info("[DASHBOARD] Server stopped")
