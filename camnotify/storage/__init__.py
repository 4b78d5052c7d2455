"""
Document store adapters.

- DocumentStore: abstract contract over named JSON document collections
- MemoryDocumentStore: in-process store (tests, dry runs)
- SQLDocumentStore: SQLAlchemy-backed store (SQLite by default)
"""

from camnotify.storage.base import (
    CAMERA_SETTINGS,
    CAMERAS,
    NOTIFICATIONS,
    Document,
    DocumentStore,
)
from camnotify.storage.memory import MemoryDocumentStore
from camnotify.storage.sql import SQLDocumentStore

__all__ = [
    "CAMERA_SETTINGS",
    "CAMERAS",
    "NOTIFICATIONS",
    "Document",
    "DocumentStore",
    "MemoryDocumentStore",
    "SQLDocumentStore",
]
