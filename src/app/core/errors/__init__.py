"""Error handling module with RFC 7807 Problem Details."""

from app.core.errors.exceptions import (
    AppException,
    BadRequestError,
    ConflictError,
    InvalidStateError,
    IsolationViolationError,
    MigrationFailedError,
    NoCapacityError,
    NoCellsAvailableError,
    NotFoundError,
    OperationCancelledError,
    ServiceUnavailableError,
    StorageError,
    VersionConflictError,
)


__all__ = [
    "AppException",
    "BadRequestError",
    "ConflictError",
    "InvalidStateError",
    "IsolationViolationError",
    "MigrationFailedError",
    "NoCapacityError",
    "NoCellsAvailableError",
    "NotFoundError",
    "OperationCancelledError",
    "ServiceUnavailableError",
    "StorageError",
    "VersionConflictError",
]
