"""
In-memory document store.

Collections live in a dict of lists; one asyncio.Lock serializes every
operation. Documents are deep-copied on the way in and out so callers never
share state with the store.
"""

import asyncio
import copy
from collections import defaultdict
from typing import Any, Optional

from camnotify.storage.base import Document, DocumentStore, matches


class MemoryDocumentStore(DocumentStore):
    """Document store kept in process memory."""

    def __init__(self, initial: Optional[dict[str, list[Document]]] = None):
        """
        Initialize the store.

        Args:
            initial: Optional collection name -> documents mapping to seed with
        """
        self._collections: dict[str, list[Document]] = defaultdict(list)
        self._lock = asyncio.Lock()
        for name, documents in (initial or {}).items():
            self._collections[name] = copy.deepcopy(documents)

    async def all(self, collection: str) -> list[Document]:
        async with self._lock:
            return copy.deepcopy(self._collections[collection])

    async def find(self, collection: str, **criteria: Any) -> Optional[Document]:
        async with self._lock:
            for document in self._collections[collection]:
                if matches(document, criteria):
                    return copy.deepcopy(document)
            return None

    async def append(
        self,
        collection: str,
        document: Document,
        max_size: Optional[int] = None,
        replace_key: Optional[str] = None,
    ) -> list[Document]:
        async with self._lock:
            if replace_key is not None:
                self._collections[collection] = [
                    existing
                    for existing in self._collections[collection]
                    if existing.get(replace_key) != document.get(replace_key)
                ]
            self._collections[collection].append(copy.deepcopy(document))
            if max_size is None:
                return []
            return self._trim(collection, max_size)

    async def trim(self, collection: str, max_size: int) -> list[Document]:
        async with self._lock:
            return self._trim(collection, max_size)

    async def remove(self, collection: str, **criteria: Any) -> list[Document]:
        async with self._lock:
            kept, removed = [], []
            for document in self._collections[collection]:
                (removed if matches(document, criteria) else kept).append(document)
            self._collections[collection] = kept
            return removed

    async def clear(self, collection: str) -> int:
        async with self._lock:
            removed = len(self._collections[collection])
            self._collections[collection] = []
            return removed

    async def replace(self, collection: str, documents: list[Document]) -> None:
        async with self._lock:
            self._collections[collection] = copy.deepcopy(documents)

    def _trim(self, collection: str, max_size: int) -> list[Document]:
        documents = self._collections[collection]
        excess = len(documents) - max_size
        if excess <= 0:
            return []
        evicted = documents[:excess]
        self._collections[collection] = documents[excess:]
        return evicted
