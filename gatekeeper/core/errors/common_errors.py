"""Common error classes used across all layers.

Error Types:
- ValidationError: Malformed input (tokens, conditions, payloads)
- NotFoundError: Unknown permission, role, assignment, override, template
- ConflictError: State conflicts (duplicate active assignment)
- AuthorizationError: Caller lacks a required permission

Usage:
    from gatekeeper.core.errors import ValidationError
    from gatekeeper.core.enums import ErrorCode
    from gatekeeper.core.result import Failure

    return Failure(error=ValidationError(
        code=ErrorCode.INVALID_RESOURCE,
        message="Invalid resource token",
        field="resource",
    ))
"""

from dataclasses import dataclass

from gatekeeper.core.errors.domain_error import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationError(DomainError):
    """Input validation failure.

    Attributes:
        field: Field name that failed validation.
    """

    field: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class NotFoundError(DomainError):
    """Resource not found.

    Attributes:
        resource_type: Type of resource (Permission, Role, etc.).
        resource_id: ID of the resource that was not found.
    """

    resource_type: str
    resource_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictError(DomainError):
    """Resource conflict (duplicate active state).

    Attributes:
        resource_type: Type of resource in conflict.
        conflicting_field: Field that has conflict.
    """

    resource_type: str
    conflicting_field: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthorizationError(DomainError):
    """Authorization failure (no permission).

    Attributes:
        required_permission: Permission that was required.
    """

    required_permission: str | None = None
