"""Role and role hierarchy entities."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID


@dataclass(slots=True, kw_only=True)
class Role:
    """Named bundle of permission grants with single-parent inheritance.

    Business Rules:
        - Name is unique and matches ``^[A-Z][A-Z0-9_]{1,99}$``
        - System roles reject every mutation
        - The hierarchy never contains cycles
        - A role inherits every grant of its ancestors

    Attributes:
        id: Role identifier.
        name: Unique role name (``ACCOUNTANT``).
        display_name: Human-readable name.
        description: Optional description.
        is_system: Whether the role is immutable.
        is_active: False once deactivated.
        parent_role_id: Optional parent in the hierarchy.
        metadata: Free-form attributes for admin tooling.
    """

    id: UUID
    name: str
    display_name: str
    description: str | None = None
    is_system: bool = False
    is_active: bool = True
    parent_role_id: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True, kw_only=True)
class RoleHierarchyEdge:
    """One row of the role closure table.

    Every role has a self-edge at depth 0; ``depth`` counts parent hops from
    descendant up to ancestor.
    """

    ancestor_id: UUID
    descendant_id: UUID
    depth: int


@dataclass(frozen=True, slots=True, kw_only=True)
class RoleSummary:
    """Role plus the number of users actively holding it."""

    role: Role
    active_user_count: int


@dataclass(frozen=True, slots=True, kw_only=True)
class RolePermissionView:
    """A permission held by a role, with where it comes from.

    ``inherited_from`` is None for direct grants on the role itself.
    """

    permission_id: UUID
    permission_key: str
    inherited_from: UUID | None = None
    inherited_from_name: str | None = None
    is_denied: bool = False
