"""Translate SQLAlchemy failures into the application's StorageError."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import StorageError


log = structlog.get_logger()


@asynccontextmanager
async def storage_errors(session: AsyncSession, operation: str) -> AsyncIterator[None]:
    """Wrap a repository operation so backend failures surface as StorageError.

    The session is rolled back so it stays usable for the caller.

    Usage:
        async with storage_errors(self.session, "cells.create"):
            ...
    """
    try:
        yield
    except SQLAlchemyError as exc:
        log.warning("storage_operation_failed", operation=operation, error=str(exc))
        await session.rollback()
        raise StorageError(
            f"Storage operation failed: {operation}",
            details={"operation": operation},
        ) from exc
