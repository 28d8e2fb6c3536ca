"""Permission catalog router.

Endpoints:
    POST   /api/v1/permissions             - Create permission
    GET    /api/v1/permissions             - List permissions (paginated)
    GET    /api/v1/permissions/{id}        - Get permission
    GET    /api/v1/permissions/{id}/usage  - Reference counts
    PATCH  /api/v1/permissions/{id}        - Update metadata
    DELETE /api/v1/permissions/{id}        - Deactivate (?force=true detaches first)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from gatekeeper.application.services import PermissionCatalogService
from gatekeeper.core.container import get_permission_catalog_service
from gatekeeper.core.result import Failure, Success
from gatekeeper.presentation.routers.api.middleware import (
    RequestContext,
    get_request_context,
    require_admin,
)
from gatekeeper.presentation.routers.api.v1.errors import ErrorResponseBuilder, ProblemDetails
from gatekeeper.schemas.permission_schemas import (
    PermissionCreateRequest,
    PermissionListResponse,
    PermissionResponse,
    PermissionUpdateRequest,
    PermissionUsageResponse,
)

router = APIRouter(
    prefix="/permissions",
    tags=["Permissions"],
    dependencies=[Depends(require_admin)],
)

CatalogService = Annotated[PermissionCatalogService, Depends(get_permission_catalog_service)]
Context = Annotated[RequestContext, Depends(get_request_context)]


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=PermissionResponse,
    responses={
        400: {"description": "Invalid resource/action token", "model": ProblemDetails},
        409: {"description": "Permission already exists", "model": ProblemDetails},
    },
    summary="Create permission",
)
async def create_permission(
    request: Request,
    data: PermissionCreateRequest,
    ctx: Context,
    service: CatalogService,
) -> PermissionResponse | JSONResponse:
    result = await service.create_permission(
        resource=data.resource,
        action=data.action,
        display_name=data.display_name,
        description=data.description,
        module=data.module,
        depends_on=data.depends_on,
        supports_conditions=data.supports_conditions,
        allowed_condition_types=data.allowed_condition_types,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=permission):
            return PermissionResponse.from_entity(permission)


@router.get("", response_model=PermissionListResponse, summary="List permissions")
async def list_permissions(
    request: Request,
    service: CatalogService,
    module: str | None = None,
    resource: str | None = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
    include_inactive: bool = False,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=200)] = 50,
) -> PermissionListResponse | JSONResponse:
    result = await service.list_permissions(
        module=module,
        resource=resource,
        search=search,
        include_inactive=include_inactive,
        page=page,
        page_size=page_size,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=page_result):
            return PermissionListResponse.from_page(page_result)


@router.get(
    "/{permission_id}",
    response_model=PermissionResponse,
    responses={404: {"model": ProblemDetails}},
    summary="Get permission",
)
async def get_permission(
    request: Request,
    permission_id: UUID,
    service: CatalogService,
) -> PermissionResponse | JSONResponse:
    match await service.get_permission(permission_id):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=permission):
            return PermissionResponse.from_entity(permission)


@router.get(
    "/{permission_id}/usage",
    response_model=PermissionUsageResponse,
    responses={404: {"model": ProblemDetails}},
    summary="Permission usage",
)
async def get_permission_usage(
    request: Request,
    permission_id: UUID,
    service: CatalogService,
) -> PermissionUsageResponse | JSONResponse:
    match await service.get_usage(permission_id):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=usage):
            return PermissionUsageResponse.from_usage(permission_id, usage)


@router.patch(
    "/{permission_id}",
    response_model=PermissionResponse,
    responses={403: {"model": ProblemDetails}, 404: {"model": ProblemDetails}},
    summary="Update permission",
)
async def update_permission(
    request: Request,
    permission_id: UUID,
    data: PermissionUpdateRequest,
    ctx: Context,
    service: CatalogService,
) -> PermissionResponse | JSONResponse:
    result = await service.update_permission(
        permission_id,
        display_name=data.display_name,
        description=data.description,
        module=data.module,
        allowed_condition_types=data.allowed_condition_types,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=permission):
            return PermissionResponse.from_entity(permission)


@router.delete(
    "/{permission_id}",
    response_model=PermissionResponse,
    responses={
        403: {"description": "System permission", "model": ProblemDetails},
        404: {"model": ProblemDetails},
        409: {"description": "Still referenced (use force=true)", "model": ProblemDetails},
    },
    summary="Deactivate permission",
)
async def deactivate_permission(
    request: Request,
    permission_id: UUID,
    ctx: Context,
    service: CatalogService,
    force: bool = False,
) -> PermissionResponse | JSONResponse:
    result = await service.deactivate_permission(
        permission_id,
        force=force,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=permission):
            return PermissionResponse.from_entity(permission)
