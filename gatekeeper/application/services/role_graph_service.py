"""Role graph service.

Roles, their single-parent hierarchy and their permission grants/denies.

The hierarchy is stored twice: ``roles.parent_role_id`` (the edit surface)
and the ``role_hierarchy`` closure table (the read surface). Every role has
a self-edge at depth 0; ancestors and descendants are single indexed scans,
never recursion.

Closure maintenance on reparent (one transaction):
1. Reject when the new parent is the role itself or one of its descendants
2. Keep the closure rows internal to the moved subtree
3. Delete every non-self row whose descendant is in the subtree
4. Re-insert the internal rows, plus ``(A, S, dA + k)`` for each ancestor A
   of the new parent (at ``dA - 1`` from it) and each subtree member S at
   depth k below the role

Cache invalidation happens after commit, for every user actively assigned
to a role in the affected subtree plus every user the cache index recorded
as depending on one of those roles.
"""

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from uuid_extensions import uuid7

from gatekeeper.application.dtos import PermissionSetChange, RoleLineage
from gatekeeper.application.services.authorization_cache import AuthorizationCache
from gatekeeper.application.services.change_recorder import ChangeRecorder
from gatekeeper.application.services.mutation_support import (
    apply_grant_diff,
    invalidate_role_subtree,
    load_grantable_permissions,
    load_mutable_role,
    load_role,
    role_not_found,
)
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import DomainError, NotFoundError, ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities import (
    Role,
    RoleHierarchyEdge,
    RolePermissionDeny,
    RolePermissionView,
    RoleSummary,
)
from gatekeeper.domain.enums import AuditAction
from gatekeeper.domain.errors import (
    CyclicHierarchyError,
    DuplicateKeyError,
    InactiveError,
    InUseError,
)
from gatekeeper.domain.events import RoleHierarchyChanged, RolePermissionsChanged
from gatekeeper.domain.protocols import LoggerProtocol, UnitOfWork, UnitOfWorkFactory
from gatekeeper.domain.value_objects import validate_role_name


def _snapshot(role: Role) -> dict[str, Any]:
    return {
        "name": role.name,
        "display_name": role.display_name,
        "description": role.description,
        "is_active": role.is_active,
        "parent_role_id": str(role.parent_role_id) if role.parent_role_id else None,
        "metadata": dict(role.metadata),
    }


def _duplicate_name(name: str) -> Failure[DuplicateKeyError]:
    return Failure(
        error=DuplicateKeyError(
            code=ErrorCode.ROLE_ALREADY_EXISTS,
            message=f"Role {name} already exists",
            resource_type="Role",
            key=name,
        )
    )


def _ids(values: Sequence[UUID]) -> list[str]:
    return [str(v) for v in values]


async def _load_active_parent(uow: UnitOfWork, parent_role_id: UUID) -> Result[Role, DomainError]:
    parent = await uow.roles.get(parent_role_id)
    if parent is None:
        return role_not_found(parent_role_id)
    if not parent.is_active:
        return Failure(
            error=InactiveError(
                code=ErrorCode.ROLE_INACTIVE,
                message=f"Parent role {parent.name} is deactivated",
                resource_type="Role",
                resource_id=str(parent_role_id),
            )
        )
    return Success(value=parent)


class RoleGraphService:
    """Role CRUD, hierarchy edits and role-level grants and denies.

    Dependencies (injected via constructor):
        - UnitOfWorkFactory: Transactions and repositories
        - AuthorizationCache: Subtree invalidation after commit
        - ChangeRecorder: Audit record + domain event
        - LoggerProtocol: Structured logging
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        cache: AuthorizationCache,
        recorder: ChangeRecorder,
        logger: LoggerProtocol,
    ) -> None:
        self._uow_factory = uow_factory
        self._cache = cache
        self._recorder = recorder
        self._logger = logger

    # =========================================================================
    # Roles
    # =========================================================================

    async def create_role(
        self,
        *,
        name: str,
        display_name: str,
        description: str | None = None,
        parent_role_id: UUID | None = None,
        permission_ids: Sequence[UUID] = (),
        metadata: Mapping[str, Any] | None = None,
        is_system: bool = False,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[Role, DomainError]:
        """Create a role, optionally under a parent and with initial grants.

        Closure rows and grants are written in the same transaction.

        Returns:
            Success(Role) when created.
            Failure(ValidationError | DuplicateKeyError | NotFoundError | InactiveError).
        """
        match validate_role_name(name):
            case Failure(error=error):
                self._logger.warning("role_create_rejected", name=name, error_code=error.code.value)
                return Failure(error=error)

        if not display_name.strip():
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message="Display name is required",
                    field="display_name",
                )
            )

        async with self._uow_factory() as uow:
            if await uow.roles.get_by_name(name) is not None:
                return _duplicate_name(name)

            parent_edges: list[RoleHierarchyEdge] = []
            if parent_role_id is not None:
                match await _load_active_parent(uow, parent_role_id):
                    case Failure(error=error):
                        return Failure(error=error)
                parent_edges = await uow.roles.ancestors([parent_role_id])

            match await load_grantable_permissions(uow, permission_ids):
                case Failure(error=error):
                    return Failure(error=error)
                case Success(value=permissions):
                    pass

            role = Role(
                id=uuid7(),
                name=name,
                display_name=display_name.strip(),
                description=description,
                is_system=is_system,
                parent_role_id=parent_role_id,
                metadata=dict(metadata or {}),
            )
            try:
                await uow.roles.add(role)
            except IntegrityError:
                # A concurrent create took the name first.
                self._logger.warning(
                    "role_create_rejected",
                    name=name,
                    error_code=ErrorCode.ROLE_ALREADY_EXISTS.value,
                )
                return _duplicate_name(name)
            await uow.roles.add_edges(
                [RoleHierarchyEdge(ancestor_id=role.id, descendant_id=role.id, depth=0)]
                + [
                    RoleHierarchyEdge(
                        ancestor_id=edge.ancestor_id,
                        descendant_id=role.id,
                        depth=edge.depth + 1,
                    )
                    for edge in parent_edges
                ]
            )
            if permissions:
                await uow.role_permissions.add(
                    role.id, [p.id for p in permissions], granted_by=actor_id
                )
            await uow.commit()

        self._logger.info(
            "role_created",
            role_id=str(role.id),
            role_name=role.name,
            parent_role_id=str(parent_role_id) if parent_role_id else None,
            permission_count=len(permissions),
        )
        await self._recorder.record(
            action=AuditAction.ROLE_CREATED,
            target_type="role",
            target_id=role.id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            new_value=_snapshot(role) | {"permission_ids": _ids([p.id for p in permissions])},
            event=RoleHierarchyChanged(
                role_id=role.id,
                new_parent_role_id=parent_role_id,
                changed_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=role)

    async def get_role(self, role_id: UUID) -> Result[RoleSummary, DomainError]:
        async with self._uow_factory(read_only=True) as uow:
            role = await uow.roles.get(role_id)
            if role is None:
                return role_not_found(role_id)
            counts = await uow.assignments.active_user_counts([role_id], datetime.now(UTC))
        return Success(value=RoleSummary(role=role, active_user_count=counts.get(role_id, 0)))

    async def get_role_by_name(self, name: str) -> Result[RoleSummary, DomainError]:
        async with self._uow_factory(read_only=True) as uow:
            role = await uow.roles.get_by_name(name)
            if role is None:
                return Failure(
                    error=NotFoundError(
                        code=ErrorCode.ROLE_NOT_FOUND,
                        message=f"Role {name} not found",
                        resource_type="Role",
                        resource_id=name,
                    )
                )
            counts = await uow.assignments.active_user_counts([role.id], datetime.now(UTC))
        return Success(value=RoleSummary(role=role, active_user_count=counts.get(role.id, 0)))

    async def list_roles(
        self,
        *,
        include_system: bool = True,
        include_inactive: bool = False,
        search: str | None = None,
    ) -> list[RoleSummary]:
        """Roles ordered by name, each with its active user count."""
        async with self._uow_factory(read_only=True) as uow:
            roles = await uow.roles.list(
                include_system=include_system,
                include_inactive=include_inactive,
                search=search,
            )
            counts = await uow.assignments.active_user_counts(
                [r.id for r in roles], datetime.now(UTC)
            )
        return [RoleSummary(role=r, active_user_count=counts.get(r.id, 0)) for r in roles]

    async def update_role(
        self,
        role_id: UUID,
        *,
        display_name: str | None = None,
        description: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[Role, DomainError]:
        """Update descriptive fields. Name, parent and grants have their own operations."""
        async with self._uow_factory() as uow:
            match await load_mutable_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)
                case Success(value=role):
                    pass

            before = _snapshot(role)
            if display_name is not None:
                if not display_name.strip():
                    return Failure(
                        error=ValidationError(
                            code=ErrorCode.VALIDATION_FAILED,
                            message="Display name cannot be empty",
                            field="display_name",
                        )
                    )
                role.display_name = display_name.strip()
            if description is not None:
                role.description = description
            if metadata is not None:
                role.metadata = dict(metadata)
            role.updated_at = datetime.now(UTC)
            await uow.roles.update(role)
            await uow.commit()

        self._logger.info("role_updated", role_id=str(role_id))
        await self._recorder.record(
            action=AuditAction.ROLE_UPDATED,
            target_type="role",
            target_id=role_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            old_value=before,
            new_value=_snapshot(role),
        )
        return Success(value=role)

    async def deactivate_role(
        self,
        role_id: UUID,
        *,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[Role, DomainError]:
        """Deactivate a role that nobody actively holds.

        Descendants stop inheriting its grants, so their users are invalidated.

        Returns:
            Success(Role) when deactivated (or already inactive).
            Failure(InUseError) while the role has active assignments.
        """
        async with self._uow_factory() as uow:
            match await load_mutable_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)
                case Success(value=role):
                    pass
            if not role.is_active:
                return Success(value=role)

            counts = await uow.assignments.active_user_counts([role_id], datetime.now(UTC))
            user_count = counts.get(role_id, 0)
            if user_count:
                self._logger.warning(
                    "role_deactivate_rejected", role_id=str(role_id), user_count=user_count
                )
                return Failure(
                    error=InUseError(
                        code=ErrorCode.ROLE_IN_USE,
                        message=f"Role {role.name} is assigned to {user_count} user(s)",
                        resource_type="Role",
                        resource_id=str(role_id),
                        user_count=user_count,
                    )
                )

            role.is_active = False
            role.updated_at = datetime.now(UTC)
            await uow.roles.update(role)
            await uow.commit()

        affected = await invalidate_role_subtree(self._uow_factory, self._cache, role_id)
        self._logger.info(
            "role_deactivated", role_id=str(role_id), affected_user_count=len(affected)
        )
        await self._recorder.record(
            action=AuditAction.ROLE_DEACTIVATED,
            target_type="role",
            target_id=role_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            old_value={"is_active": True},
            new_value={"is_active": False},
            event=RoleHierarchyChanged(
                role_id=role_id,
                old_parent_role_id=role.parent_role_id,
                new_parent_role_id=role.parent_role_id,
                affected_user_ids=sorted(affected, key=str),
                changed_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=role)

    # =========================================================================
    # Hierarchy
    # =========================================================================

    async def reparent_role(
        self,
        role_id: UUID,
        new_parent_role_id: UUID | None,
        *,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[Role, DomainError]:
        """Move a role (with its subtree) under a new parent, or to the top.

        Returns:
            Success(Role) with the new parent.
            Failure(CyclicHierarchyError) when the new parent is the role or
            one of its descendants; the closure is left untouched.
        """
        async with self._uow_factory() as uow:
            # Two crossing moves lock overlapping rows, so the second one
            # re-reads the subtree only after the first has committed.
            lock_ids = {role_id}
            if new_parent_role_id is not None:
                lock_ids |= {
                    edge.ancestor_id for edge in await uow.roles.ancestors([new_parent_role_id])
                }
            await uow.roles.lock(lock_ids)

            match await load_mutable_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)
                case Success(value=role):
                    pass

            old_parent_role_id = role.parent_role_id
            if old_parent_role_id == new_parent_role_id:
                return Success(value=role)

            subtree = await uow.roles.descendants(role_id)
            subtree_ids = [edge.descendant_id for edge in subtree]

            new_parent_edges: list[RoleHierarchyEdge] = []
            if new_parent_role_id is not None:
                if new_parent_role_id in subtree_ids:
                    self._logger.warning(
                        "role_reparent_rejected",
                        role_id=str(role_id),
                        new_parent_role_id=str(new_parent_role_id),
                        reason="cycle",
                    )
                    return Failure(
                        error=CyclicHierarchyError(
                            code=ErrorCode.CYCLIC_HIERARCHY,
                            message=(
                                f"Role {new_parent_role_id} is {role.name} itself "
                                "or one of its descendants"
                            ),
                            role_id=str(role_id),
                            parent_role_id=str(new_parent_role_id),
                        )
                    )
                match await _load_active_parent(uow, new_parent_role_id):
                    case Failure(error=error):
                        return Failure(error=error)
                new_parent_edges = await uow.roles.ancestors([new_parent_role_id])

            members = set(subtree_ids)
            internal = [
                edge
                for edge in await uow.roles.ancestors(subtree_ids)
                if edge.depth > 0 and edge.ancestor_id in members
            ]
            await uow.roles.delete_inherited_edges(subtree_ids)
            await uow.roles.add_edges(
                internal
                + [
                    RoleHierarchyEdge(
                        ancestor_id=upper.ancestor_id,
                        descendant_id=member.descendant_id,
                        depth=upper.depth + 1 + member.depth,
                    )
                    for member in subtree
                    for upper in new_parent_edges
                ]
            )

            role.parent_role_id = new_parent_role_id
            role.updated_at = datetime.now(UTC)
            await uow.roles.update(role)
            await uow.commit()

        affected = await invalidate_role_subtree(self._uow_factory, self._cache, role_id)
        self._logger.info(
            "role_reparented",
            role_id=str(role_id),
            old_parent_role_id=str(old_parent_role_id) if old_parent_role_id else None,
            new_parent_role_id=str(new_parent_role_id) if new_parent_role_id else None,
            subtree_size=len(subtree_ids),
            affected_user_count=len(affected),
        )
        await self._recorder.record(
            action=AuditAction.ROLE_REPARENTED,
            target_type="role",
            target_id=role_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            old_value={"parent_role_id": str(old_parent_role_id) if old_parent_role_id else None},
            new_value={"parent_role_id": str(new_parent_role_id) if new_parent_role_id else None},
            event=RoleHierarchyChanged(
                role_id=role_id,
                old_parent_role_id=old_parent_role_id,
                new_parent_role_id=new_parent_role_id,
                affected_user_ids=sorted(affected, key=str),
                changed_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=role)

    async def get_ancestors(
        self, role_id: UUID, *, include_self: bool = False
    ) -> Result[list[RoleLineage], DomainError]:
        """Ancestors of a role, nearest first."""
        async with self._uow_factory(read_only=True) as uow:
            match await load_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)
            picked = [
                (edge.ancestor_id, edge.depth)
                for edge in await uow.roles.ancestors([role_id])
                if include_self or edge.depth > 0
            ]
            return Success(value=await self._lineage(uow, picked))

    async def get_descendants(
        self, role_id: UUID, *, include_self: bool = False
    ) -> Result[list[RoleLineage], DomainError]:
        """Descendants of a role, nearest first."""
        async with self._uow_factory(read_only=True) as uow:
            match await load_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)
            picked = [
                (edge.descendant_id, edge.depth)
                for edge in await uow.roles.descendants(role_id)
                if include_self or edge.depth > 0
            ]
            return Success(value=await self._lineage(uow, picked))

    @staticmethod
    async def _lineage(uow: UnitOfWork, picked: list[tuple[UUID, int]]) -> list[RoleLineage]:
        roles = {r.id: r for r in await uow.roles.get_many([rid for rid, _ in picked])}
        return [
            RoleLineage(role=roles[rid], depth=depth)
            for rid, depth in sorted(picked, key=lambda p: (p[1], roles[p[0]].name))
            if rid in roles
        ]

    # =========================================================================
    # Role grants and denies
    # =========================================================================

    async def get_role_permissions(
        self, role_id: UUID, *, include_inherited: bool = True
    ) -> Result[list[RolePermissionView], DomainError]:
        """Permissions held by a role, with the ancestor each is inherited from.

        Denies from the role or any ancestor are always reported.
        """
        async with self._uow_factory(read_only=True) as uow:
            match await load_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)

            edges = await uow.roles.ancestors([role_id])
            depth_of = {edge.ancestor_id: edge.depth for edge in edges}
            roles = {r.id: r for r in await uow.roles.get_many(depth_of)}
            sources = [
                rid
                for rid in depth_of
                if rid == role_id or (include_inherited and rid in roles and roles[rid].is_active)
            ]
            grants = await uow.role_permissions.grants_for_roles(sources)
            denies = await uow.role_permissions.denies_for_roles(list(depth_of))
            permissions = {
                p.id: p
                for p in await uow.permissions.get_many(
                    {pid for _, pid in grants} | {d.permission_id for d in denies}
                )
                if p.is_active
            }

        denied = {d.permission_id for d in denies}
        nearest: dict[UUID, UUID] = {}
        for granting_role, permission_id in sorted(grants, key=lambda g: depth_of[g[0]]):
            nearest.setdefault(permission_id, granting_role)
        for deny in sorted(denies, key=lambda d: depth_of[d.role_id]):
            nearest.setdefault(deny.permission_id, deny.role_id)

        views = []
        for permission_id, source_role_id in nearest.items():
            permission = permissions.get(permission_id)
            if permission is None:
                continue
            inherited = source_role_id != role_id
            views.append(
                RolePermissionView(
                    permission_id=permission_id,
                    permission_key=str(permission.key),
                    inherited_from=source_role_id if inherited else None,
                    inherited_from_name=roles[source_role_id].name if inherited else None,
                    is_denied=permission_id in denied,
                )
            )
        return Success(value=sorted(views, key=lambda v: v.permission_key))

    async def set_role_permissions(
        self,
        role_id: UUID,
        permission_ids: Sequence[UUID],
        *,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[PermissionSetChange, DomainError]:
        """Make the role's direct grants exactly ``permission_ids`` (diffed)."""
        async with self._uow_factory() as uow:
            match await load_mutable_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)
            match await load_grantable_permissions(uow, permission_ids):
                case Failure(error=error):
                    return Failure(error=error)

            wanted = list(dict.fromkeys(permission_ids))
            current = await uow.role_permissions.permission_ids_for_role(role_id)
            added, removed = await apply_grant_diff(
                uow,
                role_id,
                add=wanted,
                remove=current.difference(wanted),
                granted_by=actor_id,
            )
            await uow.commit()

        return Success(
            value=await self._after_grant_change(
                role_id,
                added,
                removed,
                action=AuditAction.ROLE_PERMISSIONS_UPDATED,
                actor_id=actor_id,
                correlation_id=correlation_id,
                old_value={"permission_ids": _ids(sorted(current, key=str))},
                new_value={"permission_ids": _ids(wanted)},
            )
        )

    async def deny_role_permission(
        self,
        role_id: UUID,
        permission_id: UUID,
        *,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[PermissionSetChange, DomainError]:
        """Deny a permission on a role and, through inheritance, its descendants."""
        async with self._uow_factory() as uow:
            match await load_mutable_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)
            match await load_grantable_permissions(uow, [permission_id]):
                case Failure(error=error):
                    return Failure(error=error)

            existing = await uow.role_permissions.denies_for_roles([role_id])
            if any(d.permission_id == permission_id for d in existing):
                return Success(value=PermissionSetChange(role_id=role_id))

            await uow.role_permissions.add_deny(
                RolePermissionDeny(
                    role_id=role_id, permission_id=permission_id, created_by=actor_id
                )
            )
            await uow.commit()

        # A deny takes the permission out of the role's effective set.
        return Success(
            value=await self._after_grant_change(
                role_id,
                [],
                [permission_id],
                action=AuditAction.ROLE_PERMISSION_DENIED,
                actor_id=actor_id,
                correlation_id=correlation_id,
                new_value={"denied_permission_id": str(permission_id)},
            )
        )

    async def remove_role_permission_deny(
        self,
        role_id: UUID,
        permission_id: UUID,
        *,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[PermissionSetChange, DomainError]:
        async with self._uow_factory() as uow:
            match await load_mutable_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)
            if not await uow.role_permissions.remove_deny(role_id, permission_id):
                return Failure(
                    error=NotFoundError(
                        code=ErrorCode.OVERRIDE_NOT_FOUND,
                        message="Role has no deny for this permission",
                        resource_type="RolePermissionDeny",
                        resource_id=f"{role_id}:{permission_id}",
                    )
                )
            await uow.commit()

        return Success(
            value=await self._after_grant_change(
                role_id,
                [permission_id],
                [],
                action=AuditAction.ROLE_PERMISSION_DENY_REMOVED,
                actor_id=actor_id,
                correlation_id=correlation_id,
                old_value={"denied_permission_id": str(permission_id)},
            )
        )

    async def _after_grant_change(
        self,
        role_id: UUID,
        added: list[UUID],
        removed: list[UUID],
        *,
        action: AuditAction,
        actor_id: UUID | None,
        correlation_id: str | None,
        old_value: dict[str, Any] | None = None,
        new_value: dict[str, Any] | None = None,
    ) -> PermissionSetChange:
        affected: set[UUID] = set()
        if added or removed:
            affected = await invalidate_role_subtree(self._uow_factory, self._cache, role_id)

        change = PermissionSetChange(
            role_id=role_id,
            added=added,
            removed=removed,
            affected_user_ids=sorted(affected, key=str),
        )
        self._logger.info(
            "role_permissions_changed",
            role_id=str(role_id),
            audit_action=action.value,
            added_count=len(added),
            removed_count=len(removed),
            affected_user_count=len(affected),
        )
        await self._recorder.record(
            action=action,
            target_type="role",
            target_id=role_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            old_value=old_value,
            new_value=new_value,
            event=RolePermissionsChanged(
                role_id=role_id,
                added_permission_ids=added,
                removed_permission_ids=removed,
                affected_user_ids=change.affected_user_ids,
                changed_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return change
