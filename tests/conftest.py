"""
Pytest configuration and fixtures for notification store tests.

Provides seeded document stores and mocked collaborators.
"""

from unittest.mock import MagicMock

import pytest
import structlog

from camnotify.notifications.alerts import RecordingAlertSink
from camnotify.notifications.store import NotificationStore
from camnotify.storage.base import CAMERA_SETTINGS, CAMERAS
from camnotify.storage.memory import MemoryDocumentStore

# =============================
# Logging
# =============================


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo structlog configuration done by CLI tests."""
    yield
    structlog.reset_defaults()


# =============================
# Collaborator Fixtures
# =============================


@pytest.fixture
def seed_cameras():
    """Cameras and per-camera settings used across store tests."""
    return {
        CAMERAS: [
            {"name": "Front Door", "model": "doorbell"},
            {"name": "front"},
            {"name": "back"},
            {"name": "garage"},
        ],
        CAMERA_SETTINGS: [
            {"name": "Front Door", "room": "Entrance"},
            {"name": "front", "room": "Garden"},
            {"name": "back", "room": "Garden"},
        ],
    }


@pytest.fixture
def documents(seed_cameras):
    """In-memory document store seeded with cameras."""
    return MemoryDocumentStore(seed_cameras)


@pytest.fixture
def mock_timer():
    """Mock expiry timer collaborator."""
    return MagicMock()


@pytest.fixture
def alert_sink():
    """Alert sink recording every payload."""
    return RecordingAlertSink()


@pytest.fixture
def store(documents, mock_timer, alert_sink):
    """NotificationStore with in-memory storage and mocked collaborators."""
    return NotificationStore(
        documents=documents,
        timer=mock_timer,
        alert_sink=alert_sink,
        limit=100,
        default_room="Standard",
    )
