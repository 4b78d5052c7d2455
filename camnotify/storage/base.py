"""
Document store contract.

A document store holds named collections of JSON-like documents kept in
insertion order. Every method is one atomic unit: implementations serialize
calls on the same collection so that append-then-trim cannot interleave with
another writer.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

# Collection names
NOTIFICATIONS = "notifications"
CAMERAS = "cameras"
CAMERA_SETTINGS = "settings.cameras"

Document = dict[str, Any]


def matches(document: Document, criteria: dict[str, Any]) -> bool:
    """True if every criteria key equals the document's value."""
    return all(document.get(key) == value for key, value in criteria.items())


class DocumentStore(ABC):
    """Abstract read/query/write access to named document collections."""

    @abstractmethod
    async def all(self, collection: str) -> list[Document]:
        """Return every document of a collection, oldest first."""

    @abstractmethod
    async def find(self, collection: str, **criteria: Any) -> Optional[Document]:
        """Return the first document whose fields equal `criteria`, or None."""

    @abstractmethod
    async def append(
        self,
        collection: str,
        document: Document,
        max_size: Optional[int] = None,
        replace_key: Optional[str] = None,
    ) -> list[Document]:
        """
        Append a document, then trim the collection to `max_size`.

        With `replace_key`, documents sharing that field value with `document`
        are removed first, in the same atomic unit, so the key stays unique.

        Returns:
            Evicted documents, oldest first (empty when nothing was trimmed;
            replaced documents are not included)
        """

    @abstractmethod
    async def trim(self, collection: str, max_size: int) -> list[Document]:
        """Drop the oldest documents beyond `max_size` and return them."""

    @abstractmethod
    async def remove(self, collection: str, **criteria: Any) -> list[Document]:
        """Remove every document matching `criteria` and return them."""

    @abstractmethod
    async def clear(self, collection: str) -> int:
        """Remove every document of a collection and return the count."""

    @abstractmethod
    async def replace(self, collection: str, documents: list[Document]) -> None:
        """Replace the whole collection content (seeding and migrations)."""

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
