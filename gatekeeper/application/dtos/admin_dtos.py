"""DTOs for admin tooling operations.

Architecture:
    - Application layer DTOs (not domain entities)
    - Returned inside ``Success`` by engine services
    - Mapped to Pydantic schemas by the presentation layer
"""

from dataclasses import dataclass, field
from uuid import UUID

from gatekeeper.domain.entities import (
    Permission,
    PermissionOverride,
    Role,
    RoleAssignment,
)
from gatekeeper.domain.enums import BulkOperation, BulkTargetType


@dataclass(frozen=True, kw_only=True)
class PermissionPage:
    """One page of catalog entries.

    Attributes:
        items: Permissions on this page.
        total: Total number of matching permissions.
        page: 1-based page number.
        page_size: Requested page size.
    """

    items: list[Permission]
    total: int
    page: int
    page_size: int

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total


@dataclass(frozen=True, kw_only=True)
class PermissionSetChange:
    """Diff applied to a role's grants.

    Attributes:
        role_id: Role whose grants changed.
        added: Permission ids newly granted.
        removed: Permission ids no longer granted.
        affected_user_ids: Users whose cached permissions were invalidated.
    """

    role_id: UUID
    added: list[UUID] = field(default_factory=list)
    removed: list[UUID] = field(default_factory=list)
    affected_user_ids: list[UUID] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


@dataclass(frozen=True, kw_only=True)
class BulkAssignmentResult:
    """Outcome of a bulk permission assignment."""

    target_type: BulkTargetType
    target_id: UUID
    operation: BulkOperation
    changed_permission_ids: list[UUID] = field(default_factory=list)
    unchanged_permission_ids: list[UUID] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class UserRoleView:
    """Active assignment joined with its role."""

    assignment: RoleAssignment
    role: Role


@dataclass(frozen=True, kw_only=True)
class UserOverrideView:
    """Direct override joined with its permission key."""

    override: PermissionOverride
    permission: Permission
    is_expired: bool = False


@dataclass(frozen=True, kw_only=True)
class RoleLineage:
    """A role reached through the closure table, ``depth`` hops away."""

    role: Role
    depth: int
