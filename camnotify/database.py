"""
Database connection and session management.

This module provides the SQLAlchemy async engine and session factory backing
the SQL document store. The default URL points at a local SQLite file through
aiosqlite; any async SQLAlchemy URL works.
"""

from typing import Any, Optional

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from camnotify.config import settings

logger = structlog.get_logger(__name__)

# SQLAlchemy declarative base for ORM models
Base = declarative_base()


def create_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """
    Create the async SQLAlchemy engine.

    Args:
        database_url: Connection string (defaults to settings.database_url)
        echo: Echo SQL statements (defaults to settings.db_echo)

    Returns:
        AsyncEngine: Configured async database engine
    """
    engine = create_async_engine(
        database_url or settings.database_url,
        echo=settings.db_echo if echo is None else echo,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def receive_connect(dbapi_conn: Any, connection_record: Any) -> None:
        """Log successful database connections."""
        logger.debug("database_connection_established")

    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory used by the SQL document store."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Prevent lazy-loading issues after commit
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize database schema.

    Creates the documents table if it does not exist yet.
    """
    # Register ORM models with Base before create_all
    from camnotify.orm import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_schema_initialized")


async def drop_db(engine: AsyncEngine) -> None:
    """
    Drop all database tables.

    WARNING: This destroys all data. Only use for testing or development.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("database_schema_dropped")
