"""
Rich Domain Exceptions

Exception hierarchy for catalog errors.
Supports structured error information, error codes, and context.
"""

from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for domain exceptions."""

    # Domain errors
    DOMAIN_VALIDATION_ERROR = "DOMAIN_VALIDATION_ERROR"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"

    # External service errors
    EXTERNAL_SERVICE_UNAVAILABLE = "EXTERNAL_SERVICE_UNAVAILABLE"
    EXTERNAL_SERVICE_TIMEOUT = "EXTERNAL_SERVICE_TIMEOUT"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    CIRCUIT_BREAKER_OPEN = "CIRCUIT_BREAKER_OPEN"

    # System errors
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Provides structured error information with error codes, context, and metadata.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            error_code: Standard error code
            status_code: HTTP status code (default: 500)
            context: Additional context data
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        self.cause = cause

        logger.debug(
            "Domain exception raised",
            error_code=error_code.value,
            message=message,
            status_code=status_code,
            context=context,
            exception_type=type(self).__name__,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error": self.error_code.value,
            "message": self.message,
            "type": type(self).__name__,
        }
        if self.context:
            result["context"] = self.context
        return result


class EntityNotFoundError(DomainException):
    """Raised when an entity is not found."""

    def __init__(
        self,
        entity_type: str,
        entity_id: str | None = None,
        **kwargs
    ):
        message = kwargs.pop("message", None) or f"{entity_type} not found"
        if entity_id:
            message += f" (ID: {entity_id})"

        context = kwargs.pop("context", {})
        context["entity_type"] = entity_type
        if entity_id:
            context["entity_id"] = entity_id

        super().__init__(
            message=message,
            error_code=ErrorCode.ENTITY_NOT_FOUND,
            status_code=404,
            context=context,
            **kwargs
        )


class ExternalServiceError(DomainException):
    """Raised when a call to an external collaborator fails."""

    def __init__(
        self,
        service_name: str,
        message: str | None = None,
        timeout: bool = False,
        **kwargs
    ):
        error_code = ErrorCode.EXTERNAL_SERVICE_TIMEOUT if timeout else ErrorCode.EXTERNAL_SERVICE_ERROR
        default_message = f"{service_name} service {'timed out' if timeout else 'returned an error'}"

        context = kwargs.pop("context", {})
        context["service_name"] = service_name
        context["timeout"] = timeout

        super().__init__(
            message=message or default_message,
            error_code=error_code,
            status_code=503,
            context=context,
            **kwargs
        )
        self.service_name = service_name
        self.timeout = timeout


class ServiceUnavailableError(DomainException):
    """Raised when a guarded read cannot be served right now."""

    def __init__(
        self,
        service_name: str,
        message: str | None = None,
        **kwargs
    ):
        context = kwargs.pop("context", {})
        context["service_name"] = service_name

        super().__init__(
            message=message or f"{service_name} is temporarily unavailable",
            error_code=ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE,
            status_code=503,
            context=context,
            **kwargs
        )
        self.service_name = service_name


class CircuitBreakerOpenError(DomainException):
    """Raised when circuit breaker is open and request is rejected."""

    def __init__(
        self,
        service_name: str,
        **kwargs
    ):
        message = f"Circuit breaker is open for {service_name}. Service is temporarily unavailable."

        context = kwargs.pop("context", {})
        context["service_name"] = service_name
        context["circuit_state"] = "open"

        super().__init__(
            message=message,
            error_code=ErrorCode.CIRCUIT_BREAKER_OPEN,
            status_code=503,
            context=context,
            **kwargs
        )
        self.service_name = service_name


class DatabaseError(DomainException):
    """Raised when a database operation fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        **kwargs
    ):
        context = kwargs.pop("context", {})
        if operation:
            context["operation"] = operation

        super().__init__(
            message=message,
            error_code=ErrorCode.DATABASE_ERROR,
            status_code=500,
            context=context,
            **kwargs
        )
