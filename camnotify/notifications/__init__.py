"""
Notification store for camera and system events.

This package provides:
- NotificationStore: creation, retention, filtered queries and deletion
- NotificationExpiryScheduler: APScheduler-backed expiry timers
- Alert sinks: log, in-memory recording and fan-out delivery
"""

from camnotify.notifications.alerts import (
    AlertSink,
    CompositeAlertSink,
    LogAlertSink,
    RecordingAlertSink,
)
from camnotify.notifications.factory import NotificationRuntime, create_runtime
from camnotify.notifications.store import (
    CameraNotFoundError,
    NotificationError,
    NotificationStore,
)
from camnotify.notifications.timer import NotificationExpiryScheduler, NotificationTimer

__all__ = [
    "AlertSink",
    "CameraNotFoundError",
    "CompositeAlertSink",
    "LogAlertSink",
    "NotificationError",
    "NotificationExpiryScheduler",
    "NotificationRuntime",
    "NotificationStore",
    "NotificationTimer",
    "RecordingAlertSink",
    "create_runtime",
]
