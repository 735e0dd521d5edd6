"""Cooperative cancellation for multi-step operations."""

import asyncio

from app.core.errors import OperationCancelledError


def raise_if_cancelled(cancel: asyncio.Event | None, operation: str) -> None:
    """Abort before a durable write when the caller has signalled cancellation.

    Writes already made are not undone; callers only get per-write atomicity.

    Raises:
        OperationCancelledError: If ``cancel`` is set
    """
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError(
            f"{operation} cancelled before completion",
            details={"operation": operation},
        )
