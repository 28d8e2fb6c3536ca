"""Engine service factories.

Application-scoped singletons wiring the authorization engine services to
the infrastructure singletons. Presentation code obtains them through
FastAPI ``Depends``:

    from fastapi import Depends
    from gatekeeper.core.container import get_authorization_service

    service: AuthorizationService = Depends(get_authorization_service)
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from gatekeeper.core.config import settings
from gatekeeper.core.container.events import get_event_bus
from gatekeeper.core.container.infrastructure import (
    get_audit,
    get_effective_permission_cache,
    get_logger,
    get_uow_factory,
)

if TYPE_CHECKING:
    from gatekeeper.application.services import (
        AssignmentService,
        AuthorizationCache,
        AuthorizationService,
        BulkAssignmentService,
        ChangeRecorder,
        EffectivePermissionResolver,
        PermissionCatalogService,
        RoleGraphService,
        TemplateService,
    )


@lru_cache()
def get_resolver() -> "EffectivePermissionResolver":
    from gatekeeper.application.services import EffectivePermissionResolver

    return EffectivePermissionResolver(uow_factory=get_uow_factory(), logger=get_logger())


@lru_cache()
def get_authorization_cache() -> "AuthorizationCache":
    """Read-through cache in front of the resolver (degrades to direct resolution)."""
    from gatekeeper.application.services import AuthorizationCache

    return AuthorizationCache(
        resolver=get_resolver(),
        cache=get_effective_permission_cache(),
        logger=get_logger(),
    )


@lru_cache()
def get_change_recorder() -> "ChangeRecorder":
    from gatekeeper.application.services import ChangeRecorder

    return ChangeRecorder(audit=get_audit(), event_bus=get_event_bus(), logger=get_logger())


@lru_cache()
def get_authorization_service() -> "AuthorizationService":
    from gatekeeper.application.services import AuthorizationService

    return AuthorizationService(
        cache=get_authorization_cache(),
        logger=get_logger(),
        max_check_many_items=settings.max_check_many_items,
    )


@lru_cache()
def get_permission_catalog_service() -> "PermissionCatalogService":
    from gatekeeper.application.services import PermissionCatalogService

    return PermissionCatalogService(
        uow_factory=get_uow_factory(),
        cache=get_authorization_cache(),
        recorder=get_change_recorder(),
        logger=get_logger(),
    )


@lru_cache()
def get_role_graph_service() -> "RoleGraphService":
    from gatekeeper.application.services import RoleGraphService

    return RoleGraphService(
        uow_factory=get_uow_factory(),
        cache=get_authorization_cache(),
        recorder=get_change_recorder(),
        logger=get_logger(),
    )


@lru_cache()
def get_assignment_service() -> "AssignmentService":
    from gatekeeper.application.services import AssignmentService

    return AssignmentService(
        uow_factory=get_uow_factory(),
        cache=get_authorization_cache(),
        recorder=get_change_recorder(),
        logger=get_logger(),
    )


@lru_cache()
def get_bulk_assignment_service() -> "BulkAssignmentService":
    from gatekeeper.application.services import BulkAssignmentService

    return BulkAssignmentService(
        uow_factory=get_uow_factory(),
        cache=get_authorization_cache(),
        recorder=get_change_recorder(),
        logger=get_logger(),
    )


@lru_cache()
def get_template_service() -> "TemplateService":
    from gatekeeper.application.services import TemplateService

    return TemplateService(
        uow_factory=get_uow_factory(),
        cache=get_authorization_cache(),
        recorder=get_change_recorder(),
        logger=get_logger(),
    )
