"""
Notification Store

Owns the lifecycle of notification records:
- Field derivation from raw camera/system events
- Persistence with a bounded retention window
- Filtered, most-recent-first retrieval
- Deletion, kept in sync with expiry timers

The store is the only writer of the notifications collection and only reads
the cameras and camera settings collections.
"""

from __future__ import annotations

import time
from datetime import date, datetime
from typing import Any, Optional, Union

import pytz
import structlog

from camnotify.config import settings
from camnotify.models.notification import (
    DATE_FORMAT,
    DEFAULT_LABEL,
    AlertPayload,
    Camera,
    CameraNotification,
    CameraSetting,
    NotificationEvent,
    NotificationFilters,
    RecordType,
    SystemNotification,
    build_file_name,
    file_extension,
    generate_notification_id,
    is_record_storing,
    parse_notification,
)
from camnotify.notifications.alerts import AlertSink
from camnotify.notifications.timer import NotificationTimer
from camnotify.storage.base import CAMERA_SETTINGS, CAMERAS, NOTIFICATIONS, Document, DocumentStore

logger = structlog.get_logger(__name__)

AnyNotification = Union[SystemNotification, CameraNotification]

# Filter name -> notification attribute it restricts
ALLOW_LIST_FILTERS = (
    ("cameras", "camera"),
    ("labels", "label"),
    ("rooms", "room"),
    ("types", "record_type"),
)


class NotificationError(Exception):
    """Base class for notification store errors."""

    pass


class CameraNotFoundError(NotificationError):
    """Raised when a camera event references an unknown camera."""

    def __init__(self, camera_name: Optional[str]):
        self.camera_name = camera_name
        super().__init__(f"Can not assign notification to camera {camera_name!r}: camera not found")


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD string, returning None when it does not parse."""
    if not value:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        return None


def event_text(trigger: Optional[str]) -> str:
    """Capitalize the first letter of a trigger ("motion" -> "Motion")."""
    trigger = trigger or ""
    return trigger[:1].upper() + trigger[1:]


class NotificationStore:
    """
    Notification persistence and query service.

    Collaborators are injected: the document store for persistence, the
    timer for expiry scheduling and the alert sink for delivery.
    """

    def __init__(
        self,
        documents: DocumentStore,
        timer: NotificationTimer,
        alert_sink: AlertSink,
        limit: Optional[int] = None,
        default_room: Optional[str] = None,
    ):
        """
        Initialize the notification store.

        Args:
            documents: Document store holding the collections
            timer: Expiry timer collaborator
            alert_sink: Delivery channel for notification payloads
            limit: Retention bound (defaults to settings.notifications_limit)
            default_room: Room for cameras without settings
                (defaults to settings.default_room)

        Raises:
            ValueError: If limit is below 1
        """
        self.documents = documents
        self.timer = timer
        self.alert_sink = alert_sink
        self.limit = settings.notifications_limit if limit is None else limit
        if self.limit < 1:
            raise ValueError(f"Notification limit must be at least 1, got {self.limit}")
        self.default_room = settings.default_room if default_room is None else default_room

    # =============================
    # Queries
    # =============================

    async def list(
        self, filters: Optional[Union[NotificationFilters, dict[str, Any]]] = None
    ) -> list[AnyNotification]:
        """
        List notifications, most recent first.

        Every active filter restricts the result further (AND). An unparsable
        `from` date disables the date filter instead of failing the query.

        Args:
            filters: NotificationFilters or a mapping with from/to/cameras/
                labels/rooms/types keys

        Returns:
            Matching notifications, newest first
        """
        if filters is None:
            filters = NotificationFilters()
        elif not isinstance(filters, NotificationFilters):
            filters = NotificationFilters.model_validate(filters)

        notifications = await self._load_recent_first()

        date_range = self._date_range(filters)
        if date_range is not None:
            start, end = date_range
            notifications = [n for n in notifications if start < n.day <= end]

        for filter_name, attribute in ALLOW_LIST_FILTERS:
            allowed = NotificationFilters.split(getattr(filters, filter_name))
            if allowed is not None:
                notifications = [n for n in notifications if getattr(n, attribute) in allowed]

        return notifications

    async def list_by_camera_name(self, name: str) -> list[AnyNotification]:
        """Notifications of one camera (exact name match), newest first."""
        return [
            notification
            for notification in await self._load_recent_first()
            if notification.camera == name
        ]

    async def find_by_id(self, notification_id: str) -> Optional[AnyNotification]:
        """Return the notification with this id, or None."""
        document = await self.documents.find(NOTIFICATIONS, id=notification_id)
        if document is None:
            return None
        return parse_notification(document)

    # =============================
    # Creation
    # =============================

    async def create(self, event: Union[NotificationEvent, dict[str, Any]]) -> AnyNotification:
        """
        Create, persist and announce a notification.

        Args:
            event: Raw event; `system=True` selects a system notification,
                otherwise `camera` must name an existing camera

        Returns:
            The stored notification with all derived fields

        Raises:
            CameraNotFoundError: If a camera event references an unknown camera
                (nothing is written, scheduled or sent in that case)
        """
        if not isinstance(event, NotificationEvent):
            event = NotificationEvent.model_validate(event)

        notification_id = event.id or await self._generate_id()
        label = event.label or DEFAULT_LABEL
        timestamp = event.timestamp or int(time.time())

        if event.system:
            notification, payload = self._build_system_notification(
                event, notification_id, label, timestamp
            )
        else:
            notification, payload = await self._build_camera_notification(
                event, notification_id, label, timestamp
            )

        await self._persist(notification, replace=event.id is not None)
        self.timer.set_notification(notification.id, notification.timestamp)
        self.alert_sink.notify(payload)

        logger.info(
            "notification_created",
            notification_id=notification.id,
            kind=notification.kind,
            label=notification.label,
            camera=notification.camera,
        )

        return notification

    def _build_system_notification(
        self, event: NotificationEvent, notification_id: str, label: str, timestamp: int
    ) -> tuple[SystemNotification, AlertPayload]:
        notification = SystemNotification(
            id=notification_id,
            label=label,
            timestamp=timestamp,
            title=event.title,
            message=event.message,
        )
        payload = AlertPayload(
            **notification.model_dump(exclude={"kind"}),
            subtxt=event.subtxt or False,
            media_source=False,
            count=True,
            is_notification=False,
        )
        return notification, payload

    async def _build_camera_notification(
        self, event: NotificationEvent, notification_id: str, label: str, timestamp: int
    ) -> tuple[CameraNotification, AlertPayload]:
        camera_document = (
            await self.documents.find(CAMERAS, name=event.camera) if event.camera else None
        )
        if camera_document is None:
            logger.warning("notification_camera_not_found", camera=event.camera)
            raise CameraNotFoundError(event.camera)

        camera = Camera.model_validate(camera_document)
        room = await self._room_for(camera.name)

        name = build_file_name(camera.name, notification_id, timestamp, event.trigger)
        extension = file_extension(event.type)

        notification = CameraNotification(
            id=notification_id,
            label=label,
            timestamp=timestamp,
            camera=camera.name,
            room=room,
            trigger=event.trigger,
            record_type=event.type,
            record_storing=is_record_storing(event.type),
            file_name=f"{name}.{extension}",
            name=name,
            extension=extension,
        )
        payload = AlertPayload(
            **notification.model_dump(exclude={"kind"}),
            title=camera.name,
            message=f"{event_text(event.trigger)} Event - {notification.time}",
            subtxt=room,
            media_source=self._media_source(notification),
            count=True,
            is_notification=True,
        )
        return notification, payload

    async def _room_for(self, camera_name: str) -> str:
        document = await self.documents.find(CAMERA_SETTINGS, name=camera_name)
        if document is None:
            return self.default_room
        return CameraSetting.model_validate(document).room or self.default_room

    @staticmethod
    def _media_source(notification: CameraNotification) -> Union[str, bool]:
        if not notification.record_storing:
            return False
        if notification.record_type == RecordType.VIDEO.value:
            # Videos are announced with their alternate thumbnail
            return f"/files/{notification.name}@2.jpeg"
        return f"/files/{notification.file_name}"

    async def _generate_id(self) -> str:
        existing = {document.get("id") for document in await self.documents.all(NOTIFICATIONS)}
        notification_id = generate_notification_id()
        while notification_id in existing:
            notification_id = generate_notification_id()
        return notification_id

    async def _persist(self, notification: AnyNotification, replace: bool) -> None:
        evicted = await self.documents.append(
            NOTIFICATIONS,
            notification.to_document(),
            max_size=self.limit,
            replace_key="id" if replace else None,
        )
        self._release(evicted)

    # =============================
    # Retention
    # =============================

    async def enforce_retention(self) -> list[AnyNotification]:
        """
        Evict the oldest notifications beyond the retention bound.

        create() applies the same trim atomically with its append; this is
        the standalone form (e.g. after lowering the limit).

        Returns:
            Evicted notifications, oldest first
        """
        evicted = await self.documents.trim(NOTIFICATIONS, self.limit)
        self._release(evicted)
        return [parse_notification(document) for document in evicted]

    def _release(self, evicted: list[Document]) -> None:
        if not evicted:
            return
        for document in evicted:
            self.timer.remove_notification_timer(document["id"])
        logger.info(
            "notifications_evicted",
            count=len(evicted),
            limit=self.limit,
            notification_ids=[document["id"] for document in evicted],
        )

    # =============================
    # Deletion
    # =============================

    async def remove_by_id(self, notification_id: str) -> bool:
        """
        Cancel the expiry timer and remove one notification.

        Returns:
            True if a notification was removed, False if the id was unknown
        """
        self.timer.remove_notification_timer(notification_id)
        removed = await self.documents.remove(NOTIFICATIONS, id=notification_id)

        logger.info(
            "notification_removed",
            notification_id=notification_id,
            found=bool(removed),
        )
        return bool(removed)

    async def remove_all(self) -> int:
        """
        Cancel every expiry timer and clear the collection.

        Returns:
            Number of notifications removed
        """
        self.timer.stop_notifications()
        removed = await self.documents.clear(NOTIFICATIONS)

        logger.info("notifications_cleared", count=removed)
        return removed

    # =============================
    # Helpers
    # =============================

    async def _load_recent_first(self) -> list[AnyNotification]:
        documents = await self.documents.all(NOTIFICATIONS)
        return [parse_notification(document) for document in reversed(documents)]

    def _date_range(self, filters: NotificationFilters) -> Optional[tuple[date, date]]:
        if filters.from_date is None:
            return None

        start = parse_date(filters.from_date)
        if start is None:
            logger.warning(
                "notification_date_filter_ignored",
                from_date=filters.from_date,
                reason="unparsable_from_date",
            )
            return None

        end = parse_date(filters.to_date)
        if end is None:
            if filters.to_date:
                logger.info("notification_date_filter_to_defaulted", to_date=filters.to_date)
            end = datetime.now(pytz.timezone(settings.timezone)).date()

        return start, end
