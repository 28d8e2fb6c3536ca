"""Shared validate-before-write helpers for engine mutations.

Load-and-check helpers run inside the caller's unit of work and return a
Result, so mutations can reject input before the first write and roll back
cleanly. ``invalidate_role_subtree`` runs after commit.
"""

from collections.abc import Collection
from datetime import UTC, datetime
from uuid import UUID

from gatekeeper.application.services.authorization_cache import AuthorizationCache
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import DomainError, NotFoundError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities import Permission, Role
from gatekeeper.domain.errors import ForbiddenError, InactiveError
from gatekeeper.domain.protocols import UnitOfWork, UnitOfWorkFactory


def role_not_found(role_id: UUID) -> Failure[NotFoundError]:
    return Failure(
        error=NotFoundError(
            code=ErrorCode.ROLE_NOT_FOUND,
            message=f"Role {role_id} not found",
            resource_type="Role",
            resource_id=str(role_id),
        )
    )


def permission_not_found(permission_id: UUID | str) -> Failure[NotFoundError]:
    return Failure(
        error=NotFoundError(
            code=ErrorCode.PERMISSION_NOT_FOUND,
            message=f"Permission {permission_id} not found",
            resource_type="Permission",
            resource_id=str(permission_id),
        )
    )


def system_role_immutable(role: Role) -> Failure[ForbiddenError]:
    return Failure(
        error=ForbiddenError(
            code=ErrorCode.SYSTEM_ROLE_IMMUTABLE,
            message=f"System role {role.name} cannot be modified",
            resource_type="Role",
            resource_id=str(role.id),
        )
    )


async def load_role(uow: UnitOfWork, role_id: UUID) -> Result[Role, DomainError]:
    role = await uow.roles.get(role_id)
    if role is None:
        return role_not_found(role_id)
    return Success(value=role)


async def load_mutable_role(uow: UnitOfWork, role_id: UUID) -> Result[Role, DomainError]:
    """Load a role that may be changed (exists and is not a system role)."""
    role = await uow.roles.get(role_id)
    if role is None:
        return role_not_found(role_id)
    if role.is_system:
        return system_role_immutable(role)
    return Success(value=role)


async def load_grantable_permissions(
    uow: UnitOfWork, permission_ids: Collection[UUID]
) -> Result[list[Permission], DomainError]:
    """Load permissions that may be granted: every id known and active.

    Returns permissions in the order of ``permission_ids`` (deduplicated).
    """
    wanted = list(dict.fromkeys(permission_ids))
    found = {p.id: p for p in await uow.permissions.get_many(wanted)}
    for permission_id in wanted:
        permission = found.get(permission_id)
        if permission is None:
            return permission_not_found(permission_id)
        if not permission.is_active:
            return Failure(
                error=InactiveError(
                    code=ErrorCode.PERMISSION_INACTIVE,
                    message=f"Permission {permission.key} is deactivated",
                    resource_type="Permission",
                    resource_id=str(permission_id),
                )
            )
    return Success(value=[found[pid] for pid in wanted])


async def subtree_role_ids(uow: UnitOfWork, role_id: UUID) -> list[UUID]:
    """The role and all of its descendants, nearest first."""
    return [edge.descendant_id for edge in await uow.roles.descendants(role_id)]


async def subtree_user_ids(
    uow: UnitOfWork, role_ids: Collection[UUID], now: datetime
) -> set[UUID]:
    """Users actively assigned to any of ``role_ids``."""
    return await uow.assignments.active_user_ids_for_roles(role_ids, now)


async def apply_grant_diff(
    uow: UnitOfWork,
    role_id: UUID,
    *,
    add: Collection[UUID] = (),
    remove: Collection[UUID] = (),
    granted_by: UUID | None = None,
) -> tuple[list[UUID], list[UUID]]:
    """Grant ``add`` and revoke ``remove`` on a role, skipping no-ops.

    Returns:
        ``(added, removed)`` permission ids that actually changed.
    """
    current = await uow.role_permissions.permission_ids_for_role(role_id)
    added = [pid for pid in dict.fromkeys(add) if pid not in current]
    removed = [pid for pid in dict.fromkeys(remove) if pid in current]
    if added:
        await uow.role_permissions.add(role_id, added, granted_by=granted_by)
    if removed:
        await uow.role_permissions.remove(role_id, removed)
    return added, removed


async def invalidate_role_subtree(
    uow_factory: UnitOfWorkFactory,
    cache: AuthorizationCache,
    role_id: UUID,
) -> set[UUID]:
    """After commit: invalidate every user depending on ``role_id`` or its descendants.

    Users are enumerated from committed assignments (roles in the subtree)
    and from the cache index of each of those roles.
    """
    now = datetime.now(UTC)
    async with uow_factory(read_only=True) as uow:
        role_ids = await subtree_role_ids(uow, role_id)
        user_ids = await subtree_user_ids(uow, role_ids, now)
    return await cache.invalidate_roles(role_ids, user_ids)
