"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.
Services raise them directly; nothing in the placement engine returns
error values for normal control flow.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a tenant, cell or migration record is absent.

    Example:
        raise NotFoundError("Tenant not found", resource="tenant", resource_id=str(tenant_id))
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Subdomain already registered", details={"subdomain": subdomain})
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class NoCellsAvailableError(AppException):
    """Raised when a region has no active cells at all."""

    message = "No active cells are available in the requested region"
    error_code = "no_cells_available"
    status_code = 409

    def __init__(self, region: str, message: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["region"] = region
        super().__init__(message=message, details=details, **kwargs)


class NoCapacityError(AppException):
    """Raised when no compliant cell has room and the regional cap is reached.

    Example:
        raise NoCapacityError(
            "Dedicated cell limit reached",
            region="eastus",
            details={"limit": 20},
        )
    """

    message = "No cell capacity available"
    error_code = "no_capacity"
    status_code = 409

    def __init__(
        self,
        message: str | None = None,
        region: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if region:
            details["region"] = region
        super().__init__(message=message, details=details, **kwargs)


class IsolationViolationError(AppException):
    """Raised when a change would move an isolated tenant onto a shared pool."""

    message = "Dedicated and enterprise tenants cannot move to shared cells"
    error_code = "isolation_violation"
    status_code = 422


class InvalidStateError(AppException):
    """Raised when an operation is not valid for the current tenant or cell status.

    Example:
        raise InvalidStateError(
            "Tenant must be Active",
            details={"status": tenant.status},
        )
    """

    message = "Operation not valid in the current state"
    error_code = "invalid_state"
    status_code = 409


class VersionConflictError(AppException):
    """Raised when a conditional write loses a race on the version token."""

    message = "Concurrent update detected"
    error_code = "version_conflict"
    status_code = 409

    def __init__(
        self,
        message: str | None = None,
        resource_id: str | None = None,
        expected_version: int | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource_id:
            details["resource_id"] = resource_id
        if expected_version is not None:
            details["expected_version"] = expected_version
        super().__init__(message=message, details=details, **kwargs)


class StorageError(AppException):
    """Raised when the repository layer fails.

    The original exception is chained as ``__cause__``.
    """

    message = "Storage backend failure"
    error_code = "storage_error"
    status_code = 503

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details.setdefault("retryable", True)
        super().__init__(message=message, details=details, **kwargs)


class MigrationFailedError(AppException):
    """Raised when a migration step fails.

    Wraps the causal error. ``details["migration_id"]`` identifies the
    durable intent so the recovery sweep can be correlated with the failure.
    """

    message = "Tenant migration failed"
    error_code = "migration_failed"
    status_code = 500

    def __init__(
        self,
        message: str | None = None,
        cause: BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        details.setdefault("retryable", True)
        if cause is not None:
            details["cause"] = type(cause).__name__
        super().__init__(message=message, details=details, **kwargs)


class OperationCancelledError(AppException):
    """Raised when the caller's cancellation signal fires before a durable write."""

    message = "Operation cancelled by caller"
    error_code = "operation_cancelled"
    status_code = 408


class BadRequestError(AppException):
    """Raised for general client errors.

    Example:
        raise BadRequestError("Region is required")
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class ServiceUnavailableError(AppException):
    """Raised when a required service is unavailable.

    Example:
        raise ServiceUnavailableError("Job queue not initialized")
    """

    message = "Service temporarily unavailable"
    error_code = "service_unavailable"
    status_code = 503
