"""
SQLAlchemy ORM Models for the camera notification store.

Models:
-------
- DocumentORM: One JSON document of a named collection
"""

from typing import Any

from sqlalchemy import JSON, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from camnotify.database import Base


class DocumentORM(Base):
    """
    JSON document belonging to a named collection.

    Table: documents
    Primary Key: pk (autoincrement)
    Indexes: idx_documents_collection_position

    `position` grows with every insert, so ordering by it gives insertion
    order within a collection.
    """

    __tablename__ = "documents"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (Index("idx_documents_collection_position", "collection", "position"),)
