"""Authorization domain events.

Published after a committed mutation. The notification collaborator (and
any other subscriber) listens on the event bus; the engine never calls it
directly.
"""

from dataclasses import dataclass, field
from uuid import UUID

from gatekeeper.domain.enums import OverrideType
from gatekeeper.domain.events.base_event import DomainEvent


@dataclass(frozen=True, kw_only=True)
class RoleAssigned(DomainEvent):
    """A role was assigned to a user."""

    user_id: UUID
    role_id: UUID
    role_name: str
    assigned_by: UUID | None = None


@dataclass(frozen=True, kw_only=True)
class RoleRevoked(DomainEvent):
    """A user's role assignment was revoked."""

    user_id: UUID
    role_id: UUID
    role_name: str
    reason: str
    revoked_by: UUID | None = None


@dataclass(frozen=True, kw_only=True)
class DirectPermissionSet(DomainEvent):
    """A direct GRANT/DENY override was created or replaced."""

    user_id: UUID
    permission_id: UUID
    permission_key: str
    override_type: OverrideType
    set_by: UUID | None = None


@dataclass(frozen=True, kw_only=True)
class DirectPermissionRemoved(DomainEvent):
    """A direct override was removed."""

    user_id: UUID
    permission_id: UUID
    permission_key: str
    removed_by: UUID | None = None


@dataclass(frozen=True, kw_only=True)
class RolePermissionsChanged(DomainEvent):
    """Grants or denies on a role changed.

    Attributes:
        affected_user_ids: Users whose cached permissions were invalidated.
    """

    role_id: UUID
    added_permission_ids: list[UUID] = field(default_factory=list)
    removed_permission_ids: list[UUID] = field(default_factory=list)
    affected_user_ids: list[UUID] = field(default_factory=list)
    changed_by: UUID | None = None


@dataclass(frozen=True, kw_only=True)
class RoleHierarchyChanged(DomainEvent):
    """A role was created under a parent, reparented or deactivated."""

    role_id: UUID
    old_parent_role_id: UUID | None = None
    new_parent_role_id: UUID | None = None
    affected_user_ids: list[UUID] = field(default_factory=list)
    changed_by: UUID | None = None


@dataclass(frozen=True, kw_only=True)
class PermissionCatalogChanged(DomainEvent):
    """A catalog entry was created, updated or deactivated."""

    permission_id: UUID
    permission_key: str
    change: str
    changed_by: UUID | None = None
