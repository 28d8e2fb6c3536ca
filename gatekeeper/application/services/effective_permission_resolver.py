"""Effective permission resolution.

Computes, for one user, the merged, deny-resolved and wildcard-expanded map
of ``resource.action -> EffectivePermission``.

Flow:
1. Active role assignments (not revoked, not expired, role active)
2. Closure-table ancestors of every assigned role (self included)
3. Role grants of active ancestors, attributed to the nearest one
4. Role-level denies of any ancestor (apply to that role's descendants)
5. Active direct overrides, applied after role grants
6. Live expansion of ``resource.*`` entries against the catalog

Precedence:
    An explicit DENY always wins. A direct GRANT replaces role attribution
    but never lifts a deny, whichever layer the deny came from.

Architecture:
    - All reads happen in ONE read-only unit of work (single snapshot), so
      a resolution never observes half of a concurrent mutation
    - Merging is a pure function over the loaded rows
    - Nothing is persisted here; caching is the AuthorizationCache's job
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import UTC, datetime
from uuid import UUID

from gatekeeper.domain.entities import (
    EffectivePermission,
    EffectivePermissionSet,
    Permission,
    PermissionOverride,
    Role,
    RoleAssignment,
    RoleHierarchyEdge,
    RolePermissionDeny,
    as_utc,
)
from gatekeeper.domain.enums import OverrideType, PermissionSource
from gatekeeper.domain.protocols import LoggerProtocol, UnitOfWorkFactory


def _nearest_depths(
    assigned_role_ids: set[UUID], edges: Iterable[RoleHierarchyEdge]
) -> dict[UUID, int]:
    """Smallest depth at which each ancestor is reached from any assigned role."""
    depths: dict[UUID, int] = {}
    for edge in edges:
        if edge.descendant_id not in assigned_role_ids:
            continue
        current = depths.get(edge.ancestor_id)
        if current is None or edge.depth < current:
            depths[edge.ancestor_id] = edge.depth
    return depths


def merge_effective_permissions(
    *,
    user_id: UUID,
    assignments: list[RoleAssignment],
    edges: list[RoleHierarchyEdge],
    roles: dict[UUID, Role],
    grants: list[tuple[UUID, UUID]],
    denies: list[RolePermissionDeny],
    overrides: list[PermissionOverride],
    permissions: dict[UUID, Permission],
    expansions: dict[str, list[Permission]],
    now: datetime | None = None,
) -> EffectivePermissionSet:
    """Merge loaded authorization rows into an effective permission set.

    Args:
        user_id: User being resolved.
        assignments: The user's active role assignments.
        edges: Closure rows whose descendant is an assigned role.
        roles: Every role referenced by ``edges`` (active or not).
        grants: ``(role_id, permission_id)`` grants of those roles.
        denies: Role-level denies of those roles.
        overrides: The user's direct overrides.
        permissions: Catalog entries by id; inactive ones are ignored.
        expansions: Active concrete permissions per wildcard resource.
        now: Evaluation time for expiry checks.

    Returns:
        EffectivePermissionSet (not yet cached, ``expires_at`` unset). Its
        ``valid_until`` is the first moment an input assignment or override
        lapses.
    """
    now = now or datetime.now(UTC)

    assigned = [
        roles[a.role_id]
        for a in assignments
        if a.is_active(now) and a.role_id in roles and roles[a.role_id].is_active
    ]
    assigned_ids = {role.id for role in assigned}
    depths = _nearest_depths(assigned_ids, edges)
    sources = {
        role_id: depth
        for role_id, depth in depths.items()
        if role_id in roles and roles[role_id].is_active
    }

    def rank(role_id: UUID) -> tuple[int, str]:
        return sources[role_id], roles[role_id].name

    def active_permission(permission_id: UUID) -> Permission | None:
        permission = permissions.get(permission_id)
        return permission if permission is not None and permission.is_active else None

    entries: dict[str, EffectivePermission] = {}

    # Role grants, nearest ancestor first so it keeps the attribution.
    for role_id, permission_id in sorted(
        (g for g in grants if g[0] in sources), key=lambda g: rank(g[0])
    ):
        permission = active_permission(permission_id)
        if permission is None:
            continue
        key = str(permission.key)
        if key in entries:
            continue
        entries[key] = EffectivePermission(
            key=key,
            permission_id=permission.id,
            source=PermissionSource.ROLE,
            source_id=role_id,
            source_name=roles[role_id].name,
        )

    # Role-level denies cascade from the denying role to its descendants.
    for deny in sorted((d for d in denies if d.role_id in sources), key=lambda d: rank(d.role_id)):
        permission = active_permission(deny.permission_id)
        if permission is None:
            continue
        key = str(permission.key)
        existing = entries.get(key)
        if existing is not None and existing.is_denied:
            continue
        entries[key] = EffectivePermission(
            key=key,
            permission_id=permission.id,
            source=PermissionSource.ROLE,
            source_id=deny.role_id,
            source_name=roles[deny.role_id].name,
            is_denied=True,
        )

    # Direct overrides: DENY always lands, GRANT never lifts a deny.
    for override in overrides:
        if not override.is_active(now):
            continue
        permission = active_permission(override.permission_id)
        if permission is None:
            continue
        key = str(permission.key)
        existing = entries.get(key)
        if override.override_type is OverrideType.DENY:
            entries[key] = EffectivePermission(
                key=key,
                permission_id=permission.id,
                source=PermissionSource.DIRECT,
                source_id=override.id,
                is_denied=True,
            )
        elif existing is None or not existing.is_denied:
            entries[key] = EffectivePermission(
                key=key,
                permission_id=permission.id,
                source=PermissionSource.DIRECT,
                source_id=override.id,
                conditions=list(override.conditions),
            )

    # Live wildcard expansion; the wildcard entry itself is kept.
    wildcards = [
        (entry, permissions[entry.permission_id].resource)
        for entry in entries.values()
        if entry.permission_id in permissions and permissions[entry.permission_id].is_wildcard
    ]
    for wildcard, resource in wildcards:
        for permission in expansions.get(resource, []):
            if permission.is_wildcard:
                continue
            key = str(permission.key)
            existing = entries.get(key)
            if wildcard.is_denied:
                if existing is not None and existing.is_denied:
                    continue
            elif existing is not None:
                continue
            entries[key] = EffectivePermission(
                key=key,
                permission_id=permission.id,
                source=wildcard.source,
                source_id=wildcard.source_id,
                source_name=wildcard.source_name,
                is_denied=wildcard.is_denied,
                conditions=list(wildcard.conditions),
                via_wildcard=wildcard.key,
            )

    expiries = [
        as_utc(item.expires_at)
        for item in (*assignments, *overrides)
        if item.expires_at is not None and item.is_active(now)
    ]

    ordered_assigned = sorted(assigned, key=lambda r: r.name)
    return EffectivePermissionSet(
        user_id=user_id,
        entries=dict(sorted(entries.items())),
        role_names=[role.name for role in ordered_assigned],
        role_ids=[role.id for role in ordered_assigned],
        dependent_role_ids=sorted(
            {edge.ancestor_id for edge in edges} | {a.role_id for a in assignments},
            key=str,
        ),
        computed_at=now,
        valid_until=min(expiries, default=None),
    )


class EffectivePermissionResolver:
    """Loads a user's authorization rows and merges them.

    Dependencies (injected via constructor):
        - UnitOfWorkFactory: Opens the read-only snapshot
        - LoggerProtocol: Structured logging
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, logger: LoggerProtocol) -> None:
        self._uow_factory = uow_factory
        self._logger = logger

    async def resolve(self, user_id: UUID) -> EffectivePermissionSet:
        """Compute the user's effective permissions from committed state."""
        now = datetime.now(UTC)
        async with self._uow_factory(read_only=True) as uow:
            assignments = await uow.assignments.list_active_for_user(user_id, now)
            assigned_ids = {a.role_id for a in assignments}

            edges = await uow.roles.ancestors(assigned_ids)
            role_ids = {edge.ancestor_id for edge in edges} | assigned_ids
            roles = {role.id: role for role in await uow.roles.get_many(role_ids)}

            grants = await uow.role_permissions.grants_for_roles(role_ids)
            denies = await uow.role_permissions.denies_for_roles(role_ids)
            overrides = await uow.overrides.list_for_user(
                user_id, include_expired=False, now=now
            )

            permission_ids = (
                {permission_id for _, permission_id in grants}
                | {deny.permission_id for deny in denies}
                | {override.permission_id for override in overrides}
            )
            permissions = {
                p.id: p for p in await uow.permissions.get_many(permission_ids)
            }

            wildcard_resources = {
                p.resource for p in permissions.values() if p.is_active and p.is_wildcard
            }
            expansions: dict[str, list[Permission]] = defaultdict(list)
            for permission in await uow.permissions.list_active_by_resources(
                wildcard_resources
            ):
                expansions[permission.resource].append(permission)

        resolved = merge_effective_permissions(
            user_id=user_id,
            assignments=assignments,
            edges=edges,
            roles=roles,
            grants=grants,
            denies=denies,
            overrides=overrides,
            permissions=permissions,
            expansions=dict(expansions),
            now=now,
        )

        self._logger.debug(
            "effective_permissions_resolved",
            user_id=str(user_id),
            role_count=len(resolved.role_ids),
            entry_count=len(resolved.entries),
            wildcard_count=len(wildcard_resources),
        )
        return resolved
