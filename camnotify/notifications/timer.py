"""
Notification expiry timers.

Each stored notification gets a one-shot APScheduler job that removes it
from the store once it is older than `notification_remove_after_hours`.
The store informs the timer on every create and delete so that scheduled
jobs always mirror the stored records.
"""

from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Optional, Protocol

import structlog
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from camnotify.config import settings

logger = structlog.get_logger(__name__)

JOB_PREFIX = "notification-expiry-"

ExpireCallback = Callable[[str], Awaitable[object]]


class NotificationTimer(Protocol):
    """Port used by NotificationStore to keep expiry timers in sync."""

    def set_notification(self, notification_id: str, timestamp: int) -> None: ...

    def remove_notification_timer(self, notification_id: str) -> None: ...

    def stop_notifications(self) -> None: ...


class NotificationExpiryScheduler:
    """
    Expiry timers backed by APScheduler's AsyncIOScheduler.

    The expire callback (normally NotificationStore.remove_by_id) is bound
    after construction because the store itself owns the timer.
    """

    def __init__(
        self,
        remove_after_hours: Optional[int] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
        on_expire: Optional[ExpireCallback] = None,
    ):
        """
        Initialize the expiry scheduler.

        Args:
            remove_after_hours: Notification lifetime (0 disables expiry,
                defaults to settings.notification_remove_after_hours)
            scheduler: Optional scheduler instance (created if omitted)
            on_expire: Coroutine called with the id of an expired notification
        """
        self.remove_after_hours = (
            settings.notification_remove_after_hours
            if remove_after_hours is None
            else remove_after_hours
        )
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._on_expire = on_expire

    @property
    def enabled(self) -> bool:
        return self.remove_after_hours > 0

    def bind(self, on_expire: ExpireCallback) -> None:
        """Set the coroutine that removes an expired notification."""
        self._on_expire = on_expire

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("notification_expiry_scheduler_started", remove_after_hours=self.remove_after_hours)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("notification_expiry_scheduler_stopped")

    def expires_at(self, timestamp: int) -> datetime:
        return datetime.fromtimestamp(timestamp, tz=UTC) + timedelta(hours=self.remove_after_hours)

    def set_notification(self, notification_id: str, timestamp: int) -> None:
        """Schedule removal of a notification relative to its timestamp."""
        if not self.enabled:
            return

        run_date = self.expires_at(timestamp)
        self.scheduler.add_job(
            self._expire,
            trigger=DateTrigger(run_date=run_date),
            args=[notification_id],
            id=_job_id(notification_id),
            name=f"Expire notification {notification_id}",
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.debug(
            "notification_timer_set",
            notification_id=notification_id,
            expires_at=run_date.isoformat(),
        )

    def remove_notification_timer(self, notification_id: str) -> None:
        """Cancel a pending expiry; unknown ids are ignored."""
        try:
            self.scheduler.remove_job(_job_id(notification_id))
        except JobLookupError:
            return
        logger.debug("notification_timer_removed", notification_id=notification_id)

    def stop_notifications(self) -> None:
        """Cancel every pending notification expiry."""
        removed = 0
        for job in self.scheduler.get_jobs():
            if job.id.startswith(JOB_PREFIX):
                self.scheduler.remove_job(job.id)
                removed += 1
        logger.info("notification_timers_stopped", removed=removed)

    def pending(self) -> list[str]:
        """Ids of notifications with a scheduled expiry."""
        return [
            job.id[len(JOB_PREFIX):]
            for job in self.scheduler.get_jobs()
            if job.id.startswith(JOB_PREFIX)
        ]

    async def restore(self, notifications: Iterable[tuple[str, int]]) -> int:
        """
        Re-create timers for stored notifications after a restart.

        Overdue notifications are expired immediately.

        Args:
            notifications: (id, timestamp) pairs of stored notifications

        Returns:
            Number of notifications expired during restore
        """
        if not self.enabled:
            return 0

        now = datetime.now(UTC)
        expired = 0
        for notification_id, timestamp in notifications:
            if self.expires_at(timestamp) <= now:
                await self._expire(notification_id)
                expired += 1
            else:
                self.set_notification(notification_id, timestamp)

        logger.info("notification_timers_restored", expired=expired, scheduled=len(self.pending()))
        return expired

    async def _expire(self, notification_id: str) -> None:
        if self._on_expire is None:
            logger.warning("notification_expiry_unbound", notification_id=notification_id)
            return

        logger.info("notification_expired", notification_id=notification_id)
        await self._on_expire(notification_id)


def _job_id(notification_id: str) -> str:
    return f"{JOB_PREFIX}{notification_id}"
