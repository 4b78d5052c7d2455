"""Notification event store for camera monitoring."""

__version__ = "0.1.0"
