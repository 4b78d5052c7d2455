"""
Alert sinks for human-facing notification payloads.

The store hands every created notification to an AlertSink as an
AlertPayload. Delivery is fire-and-forget: sinks return nothing and the
store does not wait on delivery.
"""

from collections.abc import Iterable
from typing import Protocol

import structlog

from camnotify.models.notification import AlertPayload

logger = structlog.get_logger(__name__)


class AlertSink(Protocol):
    """Port for push/log delivery of notification payloads."""

    def notify(self, payload: AlertPayload) -> None: ...


class LogAlertSink:
    """Writes each payload to the structured log under its wire field names."""

    def __init__(self, event: str = "notification_alert"):
        self.event = event

    def notify(self, payload: AlertPayload) -> None:
        logger.info(self.event, **payload.to_message())


class RecordingAlertSink:
    """Keeps payloads in memory (dry runs and tests)."""

    def __init__(self) -> None:
        self.payloads: list[AlertPayload] = []

    def notify(self, payload: AlertPayload) -> None:
        self.payloads.append(payload)

    def clear(self) -> None:
        self.payloads.clear()


class CompositeAlertSink:
    """Fans a payload out to several sinks in order."""

    def __init__(self, sinks: Iterable[AlertSink]):
        self.sinks = list(sinks)

    def notify(self, payload: AlertPayload) -> None:
        for sink in self.sinks:
            sink.notify(payload)
