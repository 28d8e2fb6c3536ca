"""Resolved effective permissions for one user."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from gatekeeper.domain.enums import PermissionSource
from gatekeeper.domain.value_objects import Condition, PermissionKey


@dataclass(slots=True, kw_only=True)
class EffectivePermission:
    """One entry of the merged permission map.

    Attributes:
        key: ``resource.action`` string.
        permission_id: Catalog id of the concrete (or wildcard) permission.
        source: ROLE or DIRECT.
        source_id: Role id (ROLE) or override id (DIRECT).
        source_name: Role name for ROLE entries.
        is_denied: Explicit deny; always wins.
        conditions: Predicates that must hold for the grant to apply.
        via_wildcard: ``resource.*`` key this entry was expanded from.
    """

    key: str
    permission_id: UUID | None
    source: PermissionSource
    source_id: UUID | None = None
    source_name: str | None = None
    is_denied: bool = False
    conditions: list[Condition] = field(default_factory=list)
    via_wildcard: str | None = None

    @property
    def source_label(self) -> str:
        """Display form of the source (``role:ACCOUNTANT`` or ``direct``)."""
        if self.source is PermissionSource.ROLE and self.source_name:
            return f"role:{self.source_name}"
        return self.source.value


@dataclass(slots=True, kw_only=True)
class EffectivePermissionSet:
    """Deny-resolved, wildcard-expanded permission map for a user.

    Attributes:
        user_id: Owner of the set.
        entries: ``permission key -> entry``.
        role_names: Names of the user's active assigned roles.
        role_ids: Ids of the user's active assigned roles.
        dependent_role_ids: Assigned roles plus all their ancestors.
        computed_at: When the resolver produced the set.
        expires_at: Cache expiry, set when the set is cached.
        valid_until: Earliest future expiry among the assignments and
            overrides that fed the set; the set must not outlive it.
    """

    user_id: UUID
    entries: dict[str, EffectivePermission] = field(default_factory=dict)
    role_names: list[str] = field(default_factory=list)
    role_ids: list[UUID] = field(default_factory=list)
    dependent_role_ids: list[UUID] = field(default_factory=list)
    computed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime | None = None
    valid_until: datetime | None = None

    def get(self, key: PermissionKey | str) -> EffectivePermission | None:
        return self.entries.get(str(key))

    def granted_keys(self) -> list[str]:
        """Keys that are granted (not denied), sorted."""
        return sorted(k for k, entry in self.entries.items() if not entry.is_denied)

    def denied_keys(self) -> list[str]:
        return sorted(k for k, entry in self.entries.items() if entry.is_denied)

    def group_by_source(self) -> dict[str, list[EffectivePermission]]:
        """Entries grouped by their source label."""
        groups: dict[str, list[EffectivePermission]] = {}
        for key in sorted(self.entries):
            entry = self.entries[key]
            groups.setdefault(entry.source_label, []).append(entry)
        return groups
