"""
Shared fixtures for integration tests.

Provides a SQLDocumentStore on a temporary SQLite file.
"""

import pytest_asyncio

from camnotify.database import create_engine, drop_db, init_db
from camnotify.storage.sql import SQLDocumentStore


@pytest_asyncio.fixture(scope="function")
async def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}"


@pytest_asyncio.fixture(scope="function")
async def sql_documents(database_url):
    """
    Provide a SQL document store with a fresh schema.

    Tables are dropped and the engine disposed after each test.
    """
    engine = create_engine(database_url)
    await init_db(engine)

    store = SQLDocumentStore(engine)
    yield store

    await drop_db(engine)
    await engine.dispose()
