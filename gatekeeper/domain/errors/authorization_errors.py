"""Authorization engine error types.

Each error is returned inside ``Failure`` before any write happens
(validate-then-commit). The HTTP layer maps ``code`` to a status.

Usage:
    from gatekeeper.domain.errors import LastRoleViolationError

    return Failure(error=LastRoleViolationError(
        code=ErrorCode.LAST_ROLE_VIOLATION,
        message="Cannot revoke the user's only active role",
        user_id=str(user_id),
        role_id=str(role_id),
    ))
"""

from dataclasses import dataclass

from gatekeeper.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class DuplicateKeyError(DomainError):
    """A permission or role with the same identity already exists.

    Attributes:
        resource_type: "Permission" or "Role".
        key: The duplicated identity (``invoices.read``, ``ACCOUNTANT``).
    """

    resource_type: str
    key: str


@dataclass(frozen=True, slots=True, kw_only=True)
class InactiveError(DomainError):
    """Referenced role or permission is deactivated."""

    resource_type: str
    resource_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ForbiddenError(DomainError):
    """Attempt to mutate a system role or permission."""

    resource_type: str
    resource_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class LastRoleViolationError(DomainError):
    """Revoking would leave the user with zero active roles."""

    user_id: str
    role_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class CyclicHierarchyError(DomainError):
    """Reparenting would make a role its own ancestor."""

    role_id: str
    parent_role_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class InUseError(DomainError):
    """Permission or role is still referenced.

    Attributes:
        role_count: Number of roles referencing the permission.
        user_count: Number of users referencing it (overrides or assignments).
    """

    resource_type: str
    resource_id: str
    role_count: int = 0
    user_count: int = 0
