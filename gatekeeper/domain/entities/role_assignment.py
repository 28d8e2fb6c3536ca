"""User role assignment entity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID


@dataclass(slots=True, kw_only=True)
class RoleAssignment:
    """Temporal, revocable assignment of a role to a user.

    Business Rules:
        - Active when not revoked and not expired
        - At most one active assignment per ``(user_id, role_id)``
        - A user always keeps at least one active assignment

    Attributes:
        id: Assignment identifier.
        user_id: User holding the role.
        role_id: Assigned role.
        granted_at: When the role was assigned.
        granted_by: Actor that assigned the role.
        expires_at: Optional expiry.
        revoked_at: When the assignment was revoked.
        revoked_by: Actor that revoked it.
        revoke_reason: Required explanation for revocation.
    """

    id: UUID
    user_id: UUID
    role_id: UUID
    granted_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    granted_by: UUID | None = None
    expires_at: datetime | None = None
    revoked_at: datetime | None = None
    revoked_by: UUID | None = None
    revoke_reason: str | None = None

    def is_active(self, now: datetime | None = None) -> bool:
        """Check the assignment is neither revoked nor expired."""
        if self.revoked_at is not None:
            return False
        now = now or datetime.now(UTC)
        if self.expires_at is not None and as_utc(self.expires_at) <= now:
            return False
        return True

    def revoke(self, *, reason: str, revoked_by: UUID | None) -> None:
        """Mark the assignment revoked now."""
        self.revoked_at = datetime.now(UTC)
        self.revoked_by = revoked_by
        self.revoke_reason = reason


def as_utc(moment: datetime) -> datetime:
    # SQLite returns naive datetimes; all stored times are UTC.
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)
