"""Permission catalog service.

Canonical registry of ``(resource, action)`` pairs.

Business Rules:
    - ``(resource, action)`` is unique among ACTIVE permissions
    - System permissions reject every mutation
    - Deactivation is a soft delete, refused while referenced unless
      ``force`` detaches every reference in the same transaction
    - Wildcards are resolved against the live catalog at query time

Any catalog change flushes the whole authorization cache: holders of a
``resource.*`` grant are not tracked individually.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from uuid_extensions import uuid7

from gatekeeper.application.dtos import PermissionPage
from gatekeeper.application.services.authorization_cache import AuthorizationCache
from gatekeeper.application.services.change_recorder import ChangeRecorder
from gatekeeper.application.services.mutation_support import permission_not_found
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import DomainError, ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities import Permission, PermissionUsage
from gatekeeper.domain.enums import AuditAction, ConditionType
from gatekeeper.domain.errors import DuplicateKeyError, ForbiddenError, InUseError
from gatekeeper.domain.events import PermissionCatalogChanged
from gatekeeper.domain.protocols import LoggerProtocol, UnitOfWorkFactory
from gatekeeper.domain.value_objects import PermissionKey, validate_resource

MAX_PAGE_SIZE = 200


def _system_permission_immutable(permission: Permission) -> Failure[ForbiddenError]:
    return Failure(
        error=ForbiddenError(
            code=ErrorCode.SYSTEM_PERMISSION_IMMUTABLE,
            message=f"System permission {permission.key} cannot be modified",
            resource_type="Permission",
            resource_id=str(permission.id),
        )
    )


def _duplicate_key(key: PermissionKey) -> Failure[DuplicateKeyError]:
    return Failure(
        error=DuplicateKeyError(
            code=ErrorCode.PERMISSION_ALREADY_EXISTS,
            message=f"Permission {key} already exists",
            resource_type="Permission",
            key=str(key),
        )
    )


def _snapshot(permission: Permission) -> dict[str, object]:
    return {
        "key": str(permission.key),
        "display_name": permission.display_name,
        "description": permission.description,
        "module": permission.module,
        "is_active": permission.is_active,
        "supports_conditions": permission.supports_conditions,
        "allowed_condition_types": [t.value for t in permission.allowed_condition_types],
    }


class PermissionCatalogService:
    """CRUD over the permission catalog.

    Dependencies (injected via constructor):
        - UnitOfWorkFactory: Transactions and repositories
        - AuthorizationCache: Full flush after catalog changes
        - ChangeRecorder: Audit record + PermissionCatalogChanged event
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

    async def create_permission(
        self,
        *,
        resource: str,
        action: str,
        display_name: str,
        description: str | None = None,
        module: str | None = None,
        depends_on: Sequence[UUID] = (),
        supports_conditions: bool = False,
        allowed_condition_types: Sequence[ConditionType] = (),
        is_system: bool = False,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[Permission, DomainError]:
        """Register a new ``(resource, action)`` pair.

        Returns:
            Success(Permission) when created.
            Failure(ValidationError) for malformed tokens or unknown dependencies.
            Failure(DuplicateKeyError) when the key is already active.
        """
        match PermissionKey.create(resource, action):
            case Failure(error=error):
                self._logger.warning(
                    "permission_create_rejected",
                    resource=resource,
                    action=action,
                    error_code=error.code.value,
                )
                return Failure(error=error)
            case Success(value=key):
                pass

        if not display_name.strip():
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message="Display name is required",
                    field="display_name",
                )
            )

        async with self._uow_factory() as uow:
            if await uow.permissions.get_active_by_key(key.resource, key.action) is not None:
                return _duplicate_key(key)

            dependencies = list(dict.fromkeys(depends_on))
            known = {p.id for p in await uow.permissions.get_many(dependencies)}
            missing = [pid for pid in dependencies if pid not in known]
            if missing:
                return Failure(
                    error=ValidationError(
                        code=ErrorCode.VALIDATION_FAILED,
                        message="Unknown permission dependency",
                        field="depends_on",
                        details={"permission_id": str(missing[0])},
                    )
                )

            permission = Permission(
                id=uuid7(),
                resource=key.resource,
                action=key.action,
                display_name=display_name.strip(),
                description=description,
                module=module,
                is_system=is_system,
                depends_on=dependencies,
                supports_conditions=supports_conditions,
                allowed_condition_types=list(allowed_condition_types),
            )
            try:
                await uow.permissions.add(permission)
                await uow.commit()
            except IntegrityError:
                # A concurrent create won the active-key unique index.
                self._logger.warning(
                    "permission_create_rejected",
                    resource=key.resource,
                    action=key.action,
                    error_code=ErrorCode.PERMISSION_ALREADY_EXISTS.value,
                )
                return _duplicate_key(key)

        await self._cache.invalidate_all()
        self._logger.info(
            "permission_created",
            permission_id=str(permission.id),
            permission=str(key),
        )
        await self._recorder.record(
            action=AuditAction.PERMISSION_CREATED,
            target_type="permission",
            target_id=permission.id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            new_value=_snapshot(permission),
            event=PermissionCatalogChanged(
                permission_id=permission.id,
                permission_key=str(key),
                change="created",
                changed_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=permission)

    async def get_permission(self, permission_id: UUID) -> Result[Permission, DomainError]:
        async with self._uow_factory(read_only=True) as uow:
            permission = await uow.permissions.get(permission_id)
        if permission is None:
            return permission_not_found(permission_id)
        return Success(value=permission)

    async def get_permission_by_key(
        self, resource: str, action: str
    ) -> Result[Permission, DomainError]:
        """Find the active permission for ``resource.action``."""
        match PermissionKey.create(resource, action):
            case Failure(error=error):
                return Failure(error=error)
            case Success(value=key):
                pass

        async with self._uow_factory(read_only=True) as uow:
            permission = await uow.permissions.get_active_by_key(key.resource, key.action)
        if permission is None:
            return permission_not_found(key)
        return Success(value=permission)

    async def list_permissions(
        self,
        *,
        module: str | None = None,
        resource: str | None = None,
        search: str | None = None,
        include_inactive: bool = False,
        page: int = 1,
        page_size: int = 50,
    ) -> Result[PermissionPage, ValidationError]:
        """Filtered, paginated catalog listing ordered by key."""
        if page < 1 or not 1 <= page_size <= MAX_PAGE_SIZE:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message=f"page must be >= 1 and page_size between 1 and {MAX_PAGE_SIZE}",
                    field="page",
                )
            )

        async with self._uow_factory(read_only=True) as uow:
            items, total = await uow.permissions.list(
                module=module,
                resource=resource,
                search=search,
                include_inactive=include_inactive,
                offset=(page - 1) * page_size,
                limit=page_size,
            )
        return Success(
            value=PermissionPage(items=items, total=total, page=page, page_size=page_size)
        )

    async def update_permission(
        self,
        permission_id: UUID,
        *,
        display_name: str | None = None,
        description: str | None = None,
        module: str | None = None,
        allowed_condition_types: Sequence[ConditionType] | None = None,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[Permission, DomainError]:
        """Update display metadata. Identity ``(resource, action)`` never changes."""
        async with self._uow_factory() as uow:
            permission = await uow.permissions.get(permission_id)
            if permission is None:
                return permission_not_found(permission_id)
            if permission.is_system:
                return _system_permission_immutable(permission)

            before = _snapshot(permission)
            if display_name is not None:
                if not display_name.strip():
                    return Failure(
                        error=ValidationError(
                            code=ErrorCode.VALIDATION_FAILED,
                            message="Display name cannot be empty",
                            field="display_name",
                        )
                    )
                permission.display_name = display_name.strip()
            if description is not None:
                permission.description = description
            if module is not None:
                permission.module = module
            if allowed_condition_types is not None:
                permission.allowed_condition_types = list(allowed_condition_types)
                permission.supports_conditions = bool(allowed_condition_types)
            permission.updated_at = datetime.now(UTC)

            await uow.permissions.update(permission)
            await uow.commit()

        await self._cache.invalidate_all()
        self._logger.info("permission_updated", permission_id=str(permission_id))
        await self._recorder.record(
            action=AuditAction.PERMISSION_UPDATED,
            target_type="permission",
            target_id=permission_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            old_value=before,
            new_value=_snapshot(permission),
            event=PermissionCatalogChanged(
                permission_id=permission_id,
                permission_key=str(permission.key),
                change="updated",
                changed_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=permission)

    async def deactivate_permission(
        self,
        permission_id: UUID,
        *,
        force: bool = False,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[Permission, DomainError]:
        """Soft-delete a permission.

        Args:
            permission_id: Permission to deactivate.
            force: Detach role grants, role denies, user overrides and
                template items first (same transaction).

        Returns:
            Success(Permission) when deactivated (or already inactive).
            Failure(InUseError) when still referenced and ``force`` is False.
        """
        async with self._uow_factory() as uow:
            permission = await uow.permissions.get(permission_id)
            if permission is None:
                return permission_not_found(permission_id)
            if permission.is_system:
                return _system_permission_immutable(permission)
            if not permission.is_active:
                return Success(value=permission)

            usage = await uow.permissions.usage(permission_id, datetime.now(UTC))
            if usage.in_use and not force:
                self._logger.warning(
                    "permission_deactivate_rejected",
                    permission_id=str(permission_id),
                    role_count=usage.role_count,
                    user_count=usage.user_count,
                )
                return Failure(
                    error=InUseError(
                        code=ErrorCode.PERMISSION_IN_USE,
                        message=(
                            f"Permission {permission.key} is referenced by "
                            f"{usage.role_count} role(s) and {usage.user_count} user(s)"
                        ),
                        resource_type="Permission",
                        resource_id=str(permission_id),
                        role_count=usage.role_count,
                        user_count=usage.user_count,
                    )
                )

            if usage.in_use:
                await uow.permissions.detach(permission_id)
            permission.is_active = False
            permission.updated_at = datetime.now(UTC)
            await uow.permissions.update(permission)
            await uow.commit()

        await self._cache.invalidate_all()
        self._logger.info(
            "permission_deactivated",
            permission_id=str(permission_id),
            forced=force and usage.in_use,
        )
        await self._recorder.record(
            action=AuditAction.PERMISSION_DEACTIVATED,
            target_type="permission",
            target_id=permission_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            old_value={"is_active": True},
            new_value={
                "is_active": False,
                "detached_roles": usage.role_count if force else 0,
                "detached_users": usage.user_count if force else 0,
            },
            event=PermissionCatalogChanged(
                permission_id=permission_id,
                permission_key=str(permission.key),
                change="deactivated",
                changed_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=permission)

    async def get_usage(self, permission_id: UUID) -> Result[PermissionUsage, DomainError]:
        """How many roles and users reference the permission."""
        async with self._uow_factory(read_only=True) as uow:
            if await uow.permissions.get(permission_id) is None:
                return permission_not_found(permission_id)
            usage = await uow.permissions.usage(permission_id, datetime.now(UTC))
        return Success(value=usage)

    async def resolve_wildcard(self, resource: str) -> Result[list[Permission], ValidationError]:
        """Active concrete permissions of ``resource`` right now (never stored)."""
        match validate_resource(resource):
            case Failure(error=error):
                return Failure(error=error)

        async with self._uow_factory(read_only=True) as uow:
            permissions = await uow.permissions.list_active_by_resources([resource])
        return Success(value=[p for p in permissions if not p.is_wildcard])
