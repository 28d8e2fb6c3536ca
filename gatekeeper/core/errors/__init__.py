"""Core errors package.

Usage:
    from gatekeeper.core.errors import DomainError, ValidationError, NotFoundError
"""

from gatekeeper.core.errors.common_errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from gatekeeper.core.errors.domain_error import DomainError

__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "AuthorizationError",
]
