"""Authorization bootstrap seeder.

Seeds the system roles, their hierarchy closure and the base permissions
that guard the engine's own admin API. Idempotent via existence checks -
safe to run on every migration.

Hierarchy (child inherits parent):
    USER (BOOTSTRAP_ROLE_NAME) <- ADMIN <- SUPER_ADMIN

After initial seeding, all role/permission changes should be managed via
the admin API (audited).
"""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_extensions import uuid7

from gatekeeper.core.config import settings
from gatekeeper.infrastructure.persistence.models import (
    PermissionModel,
    RoleHierarchyModel,
    RoleModel,
    RolePermissionModel,
)

logger = structlog.get_logger(__name__)

# (name, display_name, description, parent name)
SYSTEM_ROLES: list[tuple[str, str, str, str | None]] = [
    (settings.bootstrap_role_name, "User", "Baseline role every user holds", None),
    (
        "ADMIN",
        "Administrator",
        "Manages roles, assignments and the catalog",
        settings.bootstrap_role_name,
    ),
    ("SUPER_ADMIN", "Super administrator", "Unrestricted administration", "ADMIN"),
]

# (resource, action, display_name, granted to)
BASE_PERMISSIONS: list[tuple[str, str, str, str]] = [
    ("permissions", "read", "View permission catalog", "ADMIN"),
    ("roles", "read", "View roles", "ADMIN"),
    ("roles", "assign", "Assign roles to users", "ADMIN"),
    ("users", "read", "View user permissions", "ADMIN"),
    ("templates", "read", "View permission templates", "ADMIN"),
    ("permissions", "*", "Manage permission catalog", "SUPER_ADMIN"),
    ("roles", "*", "Manage roles", "SUPER_ADMIN"),
    ("users", "*", "Manage user permissions", "SUPER_ADMIN"),
    ("templates", "*", "Manage permission templates", "SUPER_ADMIN"),
]


async def _seed_roles(session: AsyncSession, now: datetime) -> tuple[dict[str, UUID], int]:
    roles = RoleModel.__table__
    closure = RoleHierarchyModel.__table__
    role_ids: dict[str, UUID] = {}
    seeded = 0

    for name, display_name, description, parent_name in SYSTEM_ROLES:
        existing = await session.scalar(select(roles.c.id).where(roles.c.name == name))
        if existing is not None:
            role_ids[name] = existing
            logger.debug("system_role_exists", role_name=name)
            continue

        role_id = uuid7()
        parent_id = role_ids.get(parent_name) if parent_name else None
        await session.execute(
            insert(roles).values(
                id=role_id,
                created_at=now,
                updated_at=now,
                name=name,
                display_name=display_name,
                description=description,
                is_system=True,
                is_active=True,
                parent_role_id=parent_id,
                metadata={},
            )
        )

        # Self-edge plus one edge per ancestor of the parent
        edges: list[tuple[UUID, int]] = [(role_id, 0)]
        if parent_id is not None:
            result = await session.execute(
                select(closure.c.ancestor_id, closure.c.depth).where(
                    closure.c.descendant_id == parent_id
                )
            )
            edges.extend((ancestor_id, depth + 1) for ancestor_id, depth in result.all())
        await session.execute(
            insert(closure),
            [
                {
                    "id": uuid7(),
                    "created_at": now,
                    "ancestor_id": ancestor_id,
                    "descendant_id": role_id,
                    "depth": depth,
                }
                for ancestor_id, depth in edges
            ],
        )
        role_ids[name] = role_id
        seeded += 1

    return role_ids, seeded


async def _seed_permissions(
    session: AsyncSession, now: datetime, role_ids: dict[str, UUID]
) -> int:
    permissions = PermissionModel.__table__
    grants = RolePermissionModel.__table__
    seeded = 0

    for resource, action, display_name, role_name in BASE_PERMISSIONS:
        existing = await session.scalar(
            select(permissions.c.id).where(
                permissions.c.resource == resource,
                permissions.c.action == action,
                permissions.c.is_active.is_(True),
            )
        )
        if existing is not None:
            continue

        permission_id = uuid7()
        await session.execute(
            insert(permissions).values(
                id=permission_id,
                created_at=now,
                updated_at=now,
                resource=resource,
                action=action,
                display_name=display_name,
                module="authorization",
                is_system=True,
                is_active=True,
                depends_on=[],
                supports_conditions=False,
                allowed_condition_types=[],
            )
        )
        await session.execute(
            insert(grants).values(
                id=uuid7(),
                created_at=now,
                role_id=role_ids[role_name],
                permission_id=permission_id,
            )
        )
        seeded += 1

    return seeded


async def seed_authorization(session: AsyncSession) -> None:
    """Seed system roles and base permissions. Idempotent via existence checks.

    Args:
        session: Async database session.
    """
    now = datetime.now(UTC)
    role_ids, roles_seeded = await _seed_roles(session, now)
    permissions_seeded = await _seed_permissions(session, now, role_ids)

    logger.info(
        "authorization_seeding_complete",
        roles_seeded=roles_seeded,
        permissions_seeded=permissions_seeded,
        total_roles=len(SYSTEM_ROLES),
        total_permissions=len(BASE_PERMISSIONS),
    )
