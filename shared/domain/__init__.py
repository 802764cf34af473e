"""
Catalog Domain

Product model lives with the catalog service; this package holds the shared
exception hierarchy.
"""

from shared.domain.exceptions import (
    CircuitBreakerOpenError,
    DatabaseError,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    ExternalServiceError,
    ServiceUnavailableError,
)

__all__ = [
    "CircuitBreakerOpenError",
    "DatabaseError",
    "DomainException",
    "EntityNotFoundError",
    "ErrorCode",
    "ExternalServiceError",
    "ServiceUnavailableError",
]
