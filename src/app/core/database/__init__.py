"""Database layer - session management, base models, and mixins."""

from app.core.database.base import Base, TimestampMixin, UUIDMixin, VersionedMixin
from app.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "VersionedMixin",
    "async_engine",
    "async_session_factory",
    "get_db",
]
