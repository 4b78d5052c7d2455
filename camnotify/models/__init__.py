"""Pydantic models for notifications, raw events, filters and alert payloads."""

from camnotify.models.notification import (
    AlertPayload,
    Camera,
    CameraNotification,
    CameraSetting,
    Notification,
    NotificationEvent,
    NotificationFilters,
    NotificationKind,
    SystemNotification,
    parse_notification,
)

__all__ = [
    "AlertPayload",
    "Camera",
    "CameraNotification",
    "CameraSetting",
    "Notification",
    "NotificationEvent",
    "NotificationFilters",
    "NotificationKind",
    "SystemNotification",
    "parse_notification",
]
