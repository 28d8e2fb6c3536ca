"""Permission template entity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID


@dataclass(slots=True, kw_only=True)
class PermissionTemplate:
    """Named, reusable set of permission ids applied to roles."""

    id: UUID
    name: str
    description: str | None = None
    permission_ids: list[UUID] = field(default_factory=list)
    created_by: UUID | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
