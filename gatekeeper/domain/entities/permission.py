"""Permission catalog entity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from gatekeeper.domain.enums import ConditionType
from gatekeeper.domain.value_objects import PermissionKey


@dataclass(slots=True, kw_only=True)
class Permission:
    """A ``(resource, action)`` entry in the catalog.

    Business Rules:
        - ``(resource, action)`` is unique among active permissions
        - System permissions are immutable
        - Deactivation is a soft delete; rows are never removed
        - ``depends_on`` is informational and not enforced at check time

    Attributes:
        id: Permission identifier.
        resource: Lowercase resource token.
        action: Lowercase action token or ``*``.
        display_name: Human-readable name.
        description: Optional description.
        module: Optional grouping used for catalog listings.
        is_system: Whether the permission is immutable.
        is_active: False once soft-deleted.
        depends_on: Ids of permissions this one logically requires.
        supports_conditions: Whether overrides may attach conditions.
        allowed_condition_types: Condition kinds permitted when conditional.
    """

    id: UUID
    resource: str
    action: str
    display_name: str
    description: str | None = None
    module: str | None = None
    is_system: bool = False
    is_active: bool = True
    depends_on: list[UUID] = field(default_factory=list)
    supports_conditions: bool = False
    allowed_condition_types: list[ConditionType] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> PermissionKey:
        return PermissionKey(self.resource, self.action)

    @property
    def is_wildcard(self) -> bool:
        return self.key.is_wildcard


@dataclass(frozen=True, slots=True, kw_only=True)
class PermissionUsage:
    """How many roles and users still reference a permission."""

    role_count: int
    user_count: int

    @property
    def in_use(self) -> bool:
        return self.role_count > 0 or self.user_count > 0
