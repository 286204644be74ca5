# 📄 File: app/shared/core/exceptions.py
# 🧭 Purpose (Layman Explanation):
# This file defines all the special error types both services use to say what went wrong,
# and decides which HTTP status code each kind of problem turns into.
# 🧪 Purpose (Technical Summary):
# Closed error taxonomy (ErrorKind) with a total kind -> HTTP status mapping, plus the
# exception hierarchy raised by domain services, repositories and external clients.
# 🔗 Dependencies:
# FastAPI status constants, enum, typing
# 🔄 Connected Modules / Calls From:
# All modules for error handling, error middleware, API endpoints, domain services, event consumers

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import status


class ErrorKind(str, Enum):
    """Closed set of error categories understood by the HTTP boundary."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    ACCOUNT_UNAVAILABLE = "account_unavailable"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    EVENT_PROCESSING = "event_processing"
    INTERNAL = "internal"


_KIND_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.ACCOUNT_UNAVAILABLE: status.HTTP_403_FORBIDDEN,
    ErrorKind.UPSTREAM_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.EVENT_PROCESSING: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# every kind must have a status; a new member without one fails at import
_missing = set(ErrorKind) - set(_KIND_STATUS)
if _missing:
    raise RuntimeError(f"ErrorKind members without HTTP status: {sorted(k.value for k in _missing)}")


def status_for_kind(kind: ErrorKind) -> int:
    """
    Map an error kind to its HTTP status code.

    Args:
        kind: Error kind carried by a ServiceError

    Returns:
        int: HTTP status code

    Raises:
        ValueError: If the value is not an ErrorKind member
    """
    return _KIND_STATUS[ErrorKind(kind)]


class ServiceError(Exception):
    """
    Base exception class for both services.
    All custom exceptions should inherit from this class and declare a kind.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        if kind is not None:
            self.kind = ErrorKind(kind)
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return status_for_kind(self.kind)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "code": self.error_code,
                "kind": self.kind.value,
                "message": self.message,
                "details": self.details,
                "status_code": self.status_code
            }
        }


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class ValidationError(ServiceError):
    """
    Exception raised for request data that breaks a business rule.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message=message, details=details, error_code="VALIDATION_ERROR")


# =============================================================================
# AUTHENTICATION & AUTHORIZATION EXCEPTIONS
# =============================================================================

class AuthenticationError(ServiceError):
    """
    Exception raised for authentication failures.
    Used when user credentials are invalid or missing.
    """

    kind = ErrorKind.UNAUTHORIZED

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message=message, details=details, error_code="AUTHENTICATION_ERROR")


class AuthorizationError(ServiceError):
    """
    Exception raised for authorization failures.
    Used when the caller does not own the resource or lacks the role.
    """

    kind = ErrorKind.FORBIDDEN

    def __init__(
        self,
        message: str = "Access denied",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, error_code="AUTHORIZATION_ERROR")


class AccountUnavailableError(ServiceError):
    """
    Raised when the owning user account is inactive, deleted or not readable.
    Blocks the dependent write operation.
    """

    kind = ErrorKind.ACCOUNT_UNAVAILABLE

    def __init__(
        self,
        message: str = "User account is inactive or inaccessible",
        user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if user_id:
            details["user_id"] = user_id
        super().__init__(message=message, details=details, error_code="ACCOUNT_UNAVAILABLE")


# =============================================================================
# RESOURCE EXCEPTIONS
# =============================================================================

class NotFoundError(ServiceError):
    """Exception raised when a requested entity does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        details = {"resource_type": resource_type}
        if resource_id:
            details["resource_id"] = str(resource_id)
        super().__init__(
            message=message or f"{resource_type} not found",
            details=details,
            error_code="NOT_FOUND"
        )


class DuplicateResourceError(ServiceError):
    """Exception raised when a unique value is already taken."""

    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None
    ):
        details = {"field": field} if field else {}
        super().__init__(message=message, details=details, error_code="DUPLICATE_RESOURCE")


# =============================================================================
# INFRASTRUCTURE EXCEPTIONS
# =============================================================================

class UpstreamUnavailableError(ServiceError):
    """
    Raised when a dependent service cannot be reached (transport failure,
    timeout, open circuit). The operation may be retried by the caller.
    """

    kind = ErrorKind.UPSTREAM_UNAVAILABLE

    def __init__(
        self,
        message: str = "User status unavailable",
        service: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if service:
            details["service"] = service
        super().__init__(message=message, details=details, error_code="UPSTREAM_UNAVAILABLE")


class CircuitBreakerError(UpstreamUnavailableError):
    """Raised when a call is rejected because the circuit is open."""

    def __init__(self, service: str):
        super().__init__(
            message=f"Circuit breaker open for {service}",
            service=service,
        )
        self.error_code = "CIRCUIT_BREAKER_OPEN"


class RepositoryError(ServiceError):
    """Raised when a storage operation fails."""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = "Storage operation failed", operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message=message, details=details, error_code="REPOSITORY_ERROR")


class EventProcessingError(ServiceError):
    """
    Raised by event consumers when a message could not be applied.
    The broker retries the delivery and finally dead-letters it.
    """

    kind = ErrorKind.EVENT_PROCESSING

    def __init__(
        self,
        message: str = "Event processing failed",
        event_type: Optional[str] = None,
        event_id: Optional[str] = None
    ):
        details = {}
        if event_type:
            details["event_type"] = event_type
        if event_id:
            details["event_id"] = event_id
        super().__init__(message=message, details=details, error_code="EVENT_PROCESSING_ERROR")
