"""Domain exceptions for the tenancy platform.

Defines the error taxonomy every entry point reports: a stable machine
code plus a human-readable message. These exceptions are independent of
infrastructure concerns; the presentation layer maps error_code to HTTP
status in app.core.exception_handlers.
"""

from typing import Any


class PlatformException(Exception):
    """Base exception for all platform application errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code (stable across releases).
        details: Additional error context (e.g. field, tenant_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error body used by the API."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class AuthenticationRequiredException(PlatformException):
    """Raised when the caller carries no (valid) identity."""

    def __init__(self, message: str = "Must be authenticated") -> None:
        super().__init__(message, "UNAUTHENTICATED")


class AuthorizationException(PlatformException):
    """Raised when the caller is authenticated but not allowed to act."""

    def __init__(
        self,
        message: str = "Permission denied",
        tenant_id: str | None = None,
    ) -> None:
        """Initialize with message and the tenant the caller tried to reach.

        Args:
            message: Human-readable message.
            tenant_id: Optional target tenant (never the caller's own secret data).
        """
        details = {"tenant_id": tenant_id} if tenant_id else {}
        super().__init__(message, "PERMISSION_DENIED", details)


class ValidationException(PlatformException):
    """Raised when input validation fails. Always raised before any mutation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "INVALID_ARGUMENT", details)


class ConflictException(PlatformException):
    """Raised when a unique value (email, role name) is already taken."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "ALREADY_EXISTS", details)


class DuplicateEmailException(ConflictException):
    """Raised when a principal with the email already exists."""

    def __init__(self, email: str) -> None:
        super().__init__(
            "A user with this email already exists",
            {"email": email},
        )


class PreconditionFailedException(PlatformException):
    """Raised when the target is in a state that forbids the operation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "FAILED_PRECONDITION", details)


class ResourceNotFoundException(PlatformException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'user', 'role').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class TenantNotFoundException(ResourceNotFoundException):
    """Raised when a requested tenant is not found."""

    def __init__(self, tenant_id: str) -> None:
        super().__init__("tenant", tenant_id)


class InternalFailureException(PlatformException):
    """Raised when a backing system failed, after any applicable rollback.

    Callers must treat the target tenant/user as possibly inconsistent and
    may retry; a retry allocates new ids rather than resuming.
    """

    def __init__(
        self,
        message: str,
        attempt_id: str | None = None,
        cleanup_pending: bool = False,
    ) -> None:
        details: dict[str, Any] = {}
        if attempt_id:
            details["attempt_id"] = attempt_id
        if cleanup_pending:
            details["cleanup_pending"] = True
        super().__init__(message, "INTERNAL", details)
