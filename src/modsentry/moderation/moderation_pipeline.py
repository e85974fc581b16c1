"""
Per-message moderation pipeline.

Each inbound message becomes one independent task that runs, in order:

1. filter   - unconfigured servers and unmonitored channels are dropped
2. classify - bounded by a semaphore shared by all tasks
3. decide   - clean messages stop here with no side effects
4. record   - a provisional audit entry is written
5. notify   - the entry is published to live observers
6. act      - enabled enforcement actions are attempted
7. finalize - the entry's action list is overwritten once
8. delete   - the offending message is removed, best effort

Failures are contained per message. If the audit entry cannot be written the
message is abandoned before any enforcement so that nothing is ever enforced
without a record.
"""

from __future__ import annotations

import asyncio
from typing import Set

from modsentry.ai.classification_client import ClassificationClient
from modsentry.audit.audit_log_store import AuditLogStore
from modsentry.dashboard.broadcast_hub import BroadcastHub
from modsentry.datatypes.audit_datatypes import AuditEntry
from modsentry.datatypes.moderation_datatypes import MessageEvent
from modsentry.errors import AuditStoreError
from modsentry.moderation.action_executor import ActionExecutor
from modsentry.platform.chat_platform import ChatPlatform
from modsentry.settings.configuration_store import ConfigurationStore
from modsentry.util.logger import get_logger

logger = get_logger("moderation_pipeline")


class ModerationPipeline:
    """
    Orchestrates classification, enforcement, audit and notification.

    All collaborators are injected; the pipeline borrows the platform client
    and never owns its lifecycle.

    Attributes:
        in_flight: Tasks started by `submit` that have not finished yet.
    """

    def __init__(
        self,
        platform: ChatPlatform,
        config_store: ConfigurationStore,
        classifier: ClassificationClient,
        executor: ActionExecutor,
        audit_store: AuditLogStore,
        hub: BroadcastHub,
        max_concurrent_classifications: int = 8,
    ) -> None:
        self._platform = platform
        self._config_store = config_store
        self._classifier = classifier
        self._executor = executor
        self._audit_store = audit_store
        self._hub = hub
        self._classification_slots = asyncio.Semaphore(max(1, max_concurrent_classifications))
        self.in_flight: Set[asyncio.Task] = set()

    def submit(self, event: MessageEvent) -> asyncio.Task:
        """Start processing ``event`` in its own task and return the task."""
        task = asyncio.get_running_loop().create_task(
            self.process_event(event),
            name=f"modsentry-moderate-{event.message_id}",
        )
        self.in_flight.add(task)
        task.add_done_callback(self.in_flight.discard)
        return task

    async def process_event(self, event: MessageEvent) -> AuditEntry | None:
        """
        Run the full protocol for one message.

        Returns:
            The finalized audit entry for a violation, otherwise None. Never
            raises except on cancellation.
        """
        try:
            return await self._run_protocol(event)
        except asyncio.CancelledError:
            raise
        except AuditStoreError:
            logger.critical(
                "[PIPELINE] Abandoned message %s from user %s in server %s: audit entry could not be written",
                event.message_id, event.user_id, event.server_id,
            )
        except Exception:
            logger.exception("[PIPELINE] Unexpected error while moderating message %s", event.message_id)
        return None

    async def _run_protocol(self, event: MessageEvent) -> AuditEntry | None:
        if event.is_self:
            return None

        config = self._config_store.get(event.server_id)
        if config is None:
            return None
        if not config.monitors_channel(event.channel_id):
            logger.debug("[PIPELINE] Channel %s of server %s is not monitored", event.channel_id, event.server_id)
            return None

        async with self._classification_slots:
            verdict = await self._classifier.classify(event.text, config.sensitivity)

        if not verdict.is_violation:
            return None

        logger.info(
            "[PIPELINE] Violation in server %s by user %s: %s (%d%%)",
            event.server_id, event.user_id, verdict.violation_type, verdict.confidence_score,
        )

        entry = AuditEntry.create(event, verdict)
        await self._audit_store.append(entry)

        await self._notify(entry)

        actions = await self._executor.execute(verdict, config, event)
        entry = entry.finalized(actions)

        try:
            await self._audit_store.update(entry.id, actions)
        except AuditStoreError as exc:
            logger.critical("[PIPELINE] Audit entry %s keeps provisional actions: %s", entry.id, exc)

        await self._delete_message(event)
        return entry

    async def _notify(self, entry: AuditEntry) -> None:
        try:
            await self._hub.publish(entry)
        except Exception as exc:
            logger.error("[PIPELINE] Broadcast of entry %s failed: %s", entry.id, exc)

    async def _delete_message(self, event: MessageEvent) -> None:
        try:
            await self._platform.delete_message(event.ref)
        except Exception as exc:
            logger.warning("[PIPELINE] Could not delete message %s: %s", event.message_id, exc)

    async def shutdown(self, timeout: float = 30.0) -> None:
        """Wait for in-flight tasks, cancelling whatever is still running after ``timeout``."""
        if not self.in_flight:
            return

        pending_tasks = list(self.in_flight)
        logger.info("[PIPELINE] Waiting for %d in-flight message(s)", len(pending_tasks))
        _, still_running = await asyncio.wait(pending_tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning("[PIPELINE] Cancelled %d message(s) still running at shutdown", len(still_running))
