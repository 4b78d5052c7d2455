"""SQLAlchemy ORM models."""

from camnotify.orm.models import DocumentORM

__all__ = ["DocumentORM"]
