"""Role, closure-table and role-grant repositories (SQLAlchemy)."""

from __future__ import annotations

from collections.abc import Collection
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities import Role, RoleHierarchyEdge, RolePermissionDeny, as_utc
from gatekeeper.domain.enums import OverrideType
from gatekeeper.infrastructure.persistence.models import (
    RoleHierarchyModel,
    RoleModel,
    RolePermissionModel,
    RolePermissionOverrideModel,
)


class RoleRepository:
    """SQLAlchemy implementation of RoleRepository protocol.

    The closure table is read with plain indexed scans; nothing here
    recurses over ``parent_role_id``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, role_id: UUID) -> Role | None:
        model = await self._session.get(RoleModel, role_id)
        return None if model is None else self._to_entity(model)

    async def get_many(self, role_ids: Collection[UUID]) -> list[Role]:
        if not role_ids:
            return []
        result = await self._session.execute(
            select(RoleModel).where(RoleModel.id.in_(list(role_ids)))
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def get_by_name(self, name: str) -> Role | None:
        result = await self._session.execute(select(RoleModel).where(RoleModel.name == name))
        model = result.scalar_one_or_none()
        return None if model is None else self._to_entity(model)

    async def list(
        self,
        *,
        include_system: bool = True,
        include_inactive: bool = False,
        search: str | None = None,
    ) -> list[Role]:
        stmt = select(RoleModel)
        if not include_system:
            stmt = stmt.where(RoleModel.is_system.is_(False))
        if not include_inactive:
            stmt = stmt.where(RoleModel.is_active.is_(True))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    RoleModel.name.ilike(pattern),
                    RoleModel.display_name.ilike(pattern),
                    RoleModel.description.ilike(pattern),
                )
            )
        result = await self._session.execute(stmt.order_by(RoleModel.name))
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, role: Role) -> None:
        self._session.add(
            RoleModel(
                id=role.id,
                name=role.name,
                display_name=role.display_name,
                description=role.description,
                is_system=role.is_system,
                is_active=role.is_active,
                parent_role_id=role.parent_role_id,
                role_metadata=dict(role.metadata),
                created_at=role.created_at,
                updated_at=role.updated_at,
            )
        )
        await self._session.flush()

    async def update(self, role: Role) -> None:
        model = await self._session.get(RoleModel, role.id)
        if model is None:
            return
        model.display_name = role.display_name
        model.description = role.description
        model.is_active = role.is_active
        model.parent_role_id = role.parent_role_id
        model.role_metadata = dict(role.metadata)
        model.updated_at = role.updated_at
        await self._session.flush()

    async def lock(self, role_ids: Collection[UUID]) -> None:
        # No-op updates in a fixed order: row locks on PostgreSQL, the database
        # write lock on SQLite. Both are held until commit or rollback.
        for role_id in sorted(set(role_ids), key=str):
            await self._session.execute(
                update(RoleModel)
                .where(RoleModel.id == role_id)
                .values(updated_at=RoleModel.updated_at)
                .execution_options(synchronize_session=False)
            )

    async def ancestors(self, role_ids: Collection[UUID]) -> list[RoleHierarchyEdge]:
        if not role_ids:
            return []
        stmt = (
            select(RoleHierarchyModel)
            .where(RoleHierarchyModel.descendant_id.in_(list(role_ids)))
            .order_by(RoleHierarchyModel.descendant_id, RoleHierarchyModel.depth)
        )
        result = await self._session.execute(stmt)
        return [self._to_edge(m) for m in result.scalars().all()]

    async def descendants(self, role_id: UUID) -> list[RoleHierarchyEdge]:
        stmt = (
            select(RoleHierarchyModel)
            .where(RoleHierarchyModel.ancestor_id == role_id)
            .order_by(RoleHierarchyModel.depth)
        )
        result = await self._session.execute(stmt)
        return [self._to_edge(m) for m in result.scalars().all()]

    async def add_edges(self, edges: Collection[RoleHierarchyEdge]) -> None:
        self._session.add_all(
            RoleHierarchyModel(
                ancestor_id=edge.ancestor_id,
                descendant_id=edge.descendant_id,
                depth=edge.depth,
            )
            for edge in edges
        )
        await self._session.flush()

    async def delete_inherited_edges(self, descendant_ids: Collection[UUID]) -> None:
        if not descendant_ids:
            return
        await self._session.execute(
            delete(RoleHierarchyModel).where(
                RoleHierarchyModel.descendant_id.in_(list(descendant_ids)),
                RoleHierarchyModel.depth > 0,
            )
        )

    @staticmethod
    def _to_edge(model: RoleHierarchyModel) -> RoleHierarchyEdge:
        return RoleHierarchyEdge(
            ancestor_id=model.ancestor_id,
            descendant_id=model.descendant_id,
            depth=model.depth,
        )

    @staticmethod
    def _to_entity(model: RoleModel) -> Role:
        return Role(
            id=model.id,
            name=model.name,
            display_name=model.display_name,
            description=model.description,
            is_system=model.is_system,
            is_active=model.is_active,
            parent_role_id=model.parent_role_id,
            metadata=dict(model.role_metadata or {}),
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )


class RolePermissionRepository:
    """SQLAlchemy implementation of RolePermissionRepository protocol."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def permission_ids_for_role(self, role_id: UUID) -> set[UUID]:
        result = await self._session.execute(
            select(RolePermissionModel.permission_id).where(RolePermissionModel.role_id == role_id)
        )
        return set(result.scalars().all())

    async def grants_for_roles(self, role_ids: Collection[UUID]) -> list[tuple[UUID, UUID]]:
        if not role_ids:
            return []
        result = await self._session.execute(
            select(RolePermissionModel.role_id, RolePermissionModel.permission_id).where(
                RolePermissionModel.role_id.in_(list(role_ids))
            )
        )
        return [(row.role_id, row.permission_id) for row in result.all()]

    async def add(
        self, role_id: UUID, permission_ids: Collection[UUID], granted_by: UUID | None = None
    ) -> None:
        self._session.add_all(
            RolePermissionModel(role_id=role_id, permission_id=pid, granted_by=granted_by)
            for pid in permission_ids
        )
        await self._session.flush()

    async def remove(self, role_id: UUID, permission_ids: Collection[UUID]) -> None:
        if not permission_ids:
            return
        await self._session.execute(
            delete(RolePermissionModel).where(
                RolePermissionModel.role_id == role_id,
                RolePermissionModel.permission_id.in_(list(permission_ids)),
            )
        )

    async def denies_for_roles(self, role_ids: Collection[UUID]) -> list[RolePermissionDeny]:
        if not role_ids:
            return []
        result = await self._session.execute(
            select(RolePermissionOverrideModel).where(
                RolePermissionOverrideModel.role_id.in_(list(role_ids)),
                RolePermissionOverrideModel.override_type == OverrideType.DENY.value,
            )
        )
        return [
            RolePermissionDeny(
                role_id=m.role_id, permission_id=m.permission_id, created_by=m.created_by
            )
            for m in result.scalars().all()
        ]

    async def add_deny(self, deny: RolePermissionDeny) -> None:
        self._session.add(
            RolePermissionOverrideModel(
                role_id=deny.role_id,
                permission_id=deny.permission_id,
                override_type=OverrideType.DENY.value,
                created_by=deny.created_by,
            )
        )
        await self._session.flush()

    async def remove_deny(self, role_id: UUID, permission_id: UUID) -> bool:
        result = await self._session.execute(
            delete(RolePermissionOverrideModel).where(
                RolePermissionOverrideModel.role_id == role_id,
                RolePermissionOverrideModel.permission_id == permission_id,
            )
        )
        return bool(result.rowcount)
