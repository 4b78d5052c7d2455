"""Shared helpers for notification store tests."""

from datetime import UTC, datetime


def epoch(year: int, month: int, day: int, hour: int = 12) -> int:
    """Epoch seconds for a UTC date (notification times render in UTC in tests)."""
    return int(datetime(year, month, day, hour, tzinfo=UTC).timestamp())


async def count(documents, collection: str) -> int:
    """Number of documents currently stored in a collection."""
    return len(await documents.all(collection))
