"""
Wiring for a running notification store.

Builds the SQL document store, the expiry scheduler and the alert sink, binds
the scheduler back to the store and restores timers for stored notifications.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from camnotify.notifications.alerts import AlertSink, LogAlertSink
from camnotify.notifications.store import NotificationStore
from camnotify.notifications.timer import NotificationExpiryScheduler
from camnotify.storage.base import NOTIFICATIONS, DocumentStore
from camnotify.storage.sql import SQLDocumentStore

logger = structlog.get_logger(__name__)


@dataclass
class NotificationRuntime:
    """A wired store together with the resources it owns."""

    store: NotificationStore
    documents: DocumentStore
    scheduler: NotificationExpiryScheduler

    async def close(self) -> None:
        self.scheduler.shutdown()
        await self.documents.close()


async def create_runtime(
    documents: Optional[DocumentStore] = None,
    alert_sink: Optional[AlertSink] = None,
    scheduler: Optional[NotificationExpiryScheduler] = None,
    database_url: Optional[str] = None,
    start_timers: bool = True,
) -> NotificationRuntime:
    """
    Build a notification store with its collaborators.

    Args:
        documents: Document store (SQLDocumentStore on database_url if omitted)
        alert_sink: Alert sink (LogAlertSink if omitted)
        scheduler: Expiry scheduler (created from settings if omitted)
        database_url: Connection string used when documents is omitted
        start_timers: Restore timers for stored notifications and start the
            scheduler

    Returns:
        NotificationRuntime holding the store and its resources
    """
    if documents is None:
        documents = await SQLDocumentStore.connect(database_url)
    scheduler = scheduler or NotificationExpiryScheduler()

    store = NotificationStore(
        documents=documents,
        timer=scheduler,
        alert_sink=alert_sink or LogAlertSink(),
    )
    scheduler.bind(store.remove_by_id)

    if start_timers:
        stored = await documents.all(NOTIFICATIONS)
        await scheduler.restore((document["id"], document["timestamp"]) for document in stored)
        scheduler.start()

    logger.info("notification_runtime_ready", limit=store.limit, default_room=store.default_room)
    return NotificationRuntime(store=store, documents=documents, scheduler=scheduler)
