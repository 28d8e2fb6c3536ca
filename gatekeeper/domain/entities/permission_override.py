"""Direct user permission overrides and role-level denies."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from gatekeeper.domain.entities.role_assignment import as_utc
from gatekeeper.domain.enums import OverrideType
from gatekeeper.domain.value_objects import Condition


@dataclass(slots=True, kw_only=True)
class PermissionOverride:
    """GRANT or DENY of one permission attached directly to a user.

    At most one override exists per ``(user_id, permission_id)``; setting
    it again replaces the previous one.

    Attributes:
        id: Override identifier.
        user_id: User the override applies to.
        permission_id: Overridden permission.
        override_type: GRANT or DENY.
        conditions: Ordered predicates evaluated at check time (GRANT only).
        expires_at: Optional expiry.
        granted_by: Actor that set the override.
        reason: Optional free-text justification.
    """

    id: UUID
    user_id: UUID
    permission_id: UUID
    override_type: OverrideType
    conditions: list[Condition] = field(default_factory=list)
    expires_at: datetime | None = None
    granted_by: UUID | None = None
    granted_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    reason: str | None = None

    def is_active(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return self.expires_at is None or as_utc(self.expires_at) > now


@dataclass(frozen=True, slots=True, kw_only=True)
class RolePermissionDeny:
    """Explicit deny of a permission on a role.

    Disables that permission for the role and all of its descendants, even
    when an ancestor grants it.
    """

    role_id: UUID
    permission_id: UUID
    created_by: UUID | None = None
