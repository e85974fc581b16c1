"""
Broadcast hub for live dashboard observers.

Observers register when their transport connects and unregister when it
closes; the hub never removes a connection on its own. `publish` sends one
``new_log`` event to every connection that reports itself open at that
moment. Delivery is best effort: no retry, no buffering, no acknowledgement,
and each send is bounded by a timeout so a stalled observer cannot hold up
the pipeline.
"""

from __future__ import annotations

import asyncio
import json
from typing import List, Protocol

from modsentry.datatypes.audit_datatypes import AuditEntry
from modsentry.util.logger import get_logger

logger = get_logger("broadcast_hub")

NEW_LOG_EVENT = "new_log"


class ObserverConnection(Protocol):
    """Transport of one live observer."""

    def is_open(self) -> bool: ...

    async def send_text(self, payload: str) -> None: ...


def new_log_message(entry: AuditEntry) -> str:
    return json.dumps({"type": NEW_LOG_EVENT, "data": entry.to_wire_dict()})


class BroadcastHub:
    """Owns and synchronizes the set of live observer connections."""

    def __init__(self, send_timeout_seconds: float = 2.0):
        self._connections: List[ObserverConnection] = []
        self._lock = asyncio.Lock()
        self._send_timeout = send_timeout_seconds

    async def register(self, connection: ObserverConnection) -> None:
        async with self._lock:
            if connection not in self._connections:
                self._connections.append(connection)
            total = len(self._connections)
        logger.info("[HUB] Observer connected (total: %d)", total)

    async def unregister(self, connection: ObserverConnection) -> None:
        async with self._lock:
            if connection in self._connections:
                self._connections.remove(connection)
            total = len(self._connections)
        logger.info("[HUB] Observer disconnected (remaining: %d)", total)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def publish(self, entry: AuditEntry) -> int:
        """
        Send ``{"type": "new_log", "data": entry}`` to every open observer.

        Returns:
            Number of observers the message was delivered to.
        """
        async with self._lock:
            targets = [conn for conn in self._connections if conn.is_open()]

        if not targets:
            return 0

        message = new_log_message(entry)
        results = await asyncio.gather(*(self._send(conn, message) for conn in targets))
        delivered = sum(results)
        logger.debug("[HUB] Published entry %s to %d/%d observer(s)", entry.id, delivered, len(targets))
        return delivered

    async def _send(self, connection: ObserverConnection, message: str) -> bool:
        try:
            await asyncio.wait_for(connection.send_text(message), timeout=self._send_timeout)
            return True
        except TimeoutError:
            logger.warning("[HUB] Observer send timed out after %.1fs", self._send_timeout)
        except Exception as exc:
            logger.warning("[HUB] Observer send failed: %s", exc)
        return False
