"""Permission template service.

A template is a named, reusable set of permission ids. Applying it to a
role either merges its permissions into the role's grants or replaces the
role's grants with exactly the template's set.
"""

from collections.abc import Sequence
from uuid import UUID

from uuid_extensions import uuid7

from gatekeeper.application.dtos import PermissionSetChange
from gatekeeper.application.services.authorization_cache import AuthorizationCache
from gatekeeper.application.services.change_recorder import ChangeRecorder
from gatekeeper.application.services.mutation_support import (
    apply_grant_diff,
    invalidate_role_subtree,
    load_grantable_permissions,
    load_mutable_role,
)
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import DomainError, NotFoundError, ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities import PermissionTemplate
from gatekeeper.domain.enums import AuditAction, TemplateApplyMode
from gatekeeper.domain.errors import DuplicateKeyError
from gatekeeper.domain.events import RolePermissionsChanged
from gatekeeper.domain.protocols import LoggerProtocol, UnitOfWorkFactory

MAX_TEMPLATE_NAME_LENGTH = 100


def _template_not_found(template_id: UUID) -> Failure[NotFoundError]:
    return Failure(
        error=NotFoundError(
            code=ErrorCode.TEMPLATE_NOT_FOUND,
            message=f"Permission template {template_id} not found",
            resource_type="PermissionTemplate",
            resource_id=str(template_id),
        )
    )


class TemplateService:
    """Create, list and apply permission templates.

    Dependencies (injected via constructor):
        - UnitOfWorkFactory: Transactions and repositories
        - AuthorizationCache: Role subtree invalidation after apply
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

    async def create_template(
        self,
        *,
        name: str,
        permission_ids: Sequence[UUID],
        description: str | None = None,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[PermissionTemplate, DomainError]:
        name = name.strip()
        if not name or len(name) > MAX_TEMPLATE_NAME_LENGTH:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message=f"Template name must be 1-{MAX_TEMPLATE_NAME_LENGTH} characters",
                    field="name",
                )
            )

        async with self._uow_factory() as uow:
            if await uow.templates.get_by_name(name) is not None:
                return Failure(
                    error=DuplicateKeyError(
                        code=ErrorCode.TEMPLATE_ALREADY_EXISTS,
                        message=f"Permission template {name} already exists",
                        resource_type="PermissionTemplate",
                        key=name,
                    )
                )
            match await load_grantable_permissions(uow, permission_ids):
                case Failure(error=error):
                    return Failure(error=error)
                case Success(value=permissions):
                    pass

            template = PermissionTemplate(
                id=uuid7(),
                name=name,
                description=description,
                permission_ids=[p.id for p in permissions],
                created_by=actor_id,
            )
            await uow.templates.add(template)
            await uow.commit()

        self._logger.info(
            "template_created",
            template_id=str(template.id),
            template_name=name,
            permission_count=len(template.permission_ids),
        )
        await self._recorder.record(
            action=AuditAction.TEMPLATE_CREATED,
            target_type="template",
            target_id=template.id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            new_value={
                "name": name,
                "permission_ids": [str(pid) for pid in template.permission_ids],
            },
        )
        return Success(value=template)

    async def list_templates(self) -> list[PermissionTemplate]:
        async with self._uow_factory(read_only=True) as uow:
            return await uow.templates.list()

    async def get_template(self, template_id: UUID) -> Result[PermissionTemplate, DomainError]:
        async with self._uow_factory(read_only=True) as uow:
            template = await uow.templates.get(template_id)
        if template is None:
            return _template_not_found(template_id)
        return Success(value=template)

    async def apply_template(
        self,
        template_id: UUID,
        role_id: UUID,
        mode: TemplateApplyMode = TemplateApplyMode.MERGE,
        *,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[PermissionSetChange, DomainError]:
        """Apply a template's permissions to a role.

        MERGE adds the template's permissions; REPLACE also removes every
        direct grant the template does not contain.
        """
        async with self._uow_factory() as uow:
            template = await uow.templates.get(template_id)
            if template is None:
                return _template_not_found(template_id)
            match await load_mutable_role(uow, role_id):
                case Failure(error=error):
                    return Failure(error=error)
            match await load_grantable_permissions(uow, template.permission_ids):
                case Failure(error=error):
                    return Failure(error=error)

            remove: set[UUID] = set()
            if mode is TemplateApplyMode.REPLACE:
                current = await uow.role_permissions.permission_ids_for_role(role_id)
                remove = current.difference(template.permission_ids)
            added, removed = await apply_grant_diff(
                uow,
                role_id,
                add=template.permission_ids,
                remove=remove,
                granted_by=actor_id,
            )
            await uow.commit()

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
            "template_applied",
            template_id=str(template_id),
            role_id=str(role_id),
            mode=mode.value,
            added_count=len(added),
            removed_count=len(removed),
        )
        await self._recorder.record(
            action=AuditAction.TEMPLATE_APPLIED,
            target_type="role",
            target_id=role_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            new_value={
                "template_id": str(template_id),
                "mode": mode.value,
                "added": [str(pid) for pid in added],
                "removed": [str(pid) for pid in removed],
            },
            event=RolePermissionsChanged(
                role_id=role_id,
                added_permission_ids=added,
                removed_permission_ids=removed,
                affected_user_ids=change.affected_user_ids,
                changed_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=change)
