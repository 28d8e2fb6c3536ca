"""Role graph router.

Endpoints:
    POST   /api/v1/roles                                          - Create role
    GET    /api/v1/roles                                          - List roles
    GET    /api/v1/roles/{role_id}                                - Get role
    PATCH  /api/v1/roles/{role_id}                                - Update metadata
    PUT    /api/v1/roles/{role_id}/parent                         - Reparent
    DELETE /api/v1/roles/{role_id}                                - Deactivate
    GET    /api/v1/roles/{role_id}/ancestors                      - Closure ancestors
    GET    /api/v1/roles/{role_id}/descendants                    - Closure descendants
    GET    /api/v1/roles/{role_id}/permissions                    - Grants (+ inherited)
    PUT    /api/v1/roles/{role_id}/permissions                    - Replace direct grants
    POST   /api/v1/roles/{role_id}/denied-permissions/{perm_id}   - Role-level deny
    DELETE /api/v1/roles/{role_id}/denied-permissions/{perm_id}   - Lift role-level deny
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from gatekeeper.application.services import RoleGraphService
from gatekeeper.core.container import get_role_graph_service
from gatekeeper.core.result import Failure, Success
from gatekeeper.presentation.routers.api.middleware import (
    RequestContext,
    get_request_context,
    require_admin,
)
from gatekeeper.presentation.routers.api.v1.errors import ErrorResponseBuilder, ProblemDetails
from gatekeeper.schemas.role_schemas import (
    PermissionSetChangeResponse,
    RoleCreateRequest,
    RoleLineageResponse,
    RoleListResponse,
    RoleParentUpdateRequest,
    RolePermissionListResponse,
    RolePermissionResponse,
    RolePermissionsUpdateRequest,
    RoleResponse,
    RoleUpdateRequest,
)

router = APIRouter(
    prefix="/roles",
    tags=["Roles"],
    dependencies=[Depends(require_admin)],
)

GraphService = Annotated[RoleGraphService, Depends(get_role_graph_service)]
Context = Annotated[RequestContext, Depends(get_request_context)]

_MUTATION_ERRORS = {
    403: {"description": "System role", "model": ProblemDetails},
    404: {"model": ProblemDetails},
    409: {"model": ProblemDetails},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=RoleResponse,
    responses={
        400: {"description": "Invalid role name", "model": ProblemDetails},
        404: {"description": "Unknown parent or permission", "model": ProblemDetails},
        409: {"description": "Role already exists", "model": ProblemDetails},
    },
    summary="Create role",
)
async def create_role(
    request: Request,
    data: RoleCreateRequest,
    ctx: Context,
    service: GraphService,
) -> RoleResponse | JSONResponse:
    result = await service.create_role(
        name=data.name,
        display_name=data.display_name,
        description=data.description,
        parent_role_id=data.parent_role_id,
        permission_ids=data.permission_ids,
        metadata=data.metadata,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=role):
            return RoleResponse.from_entity(role, active_user_count=0)


@router.get("", response_model=RoleListResponse, summary="List roles")
async def list_roles(
    service: GraphService,
    include_system: bool = True,
    include_inactive: bool = False,
    search: Annotated[str | None, Query(max_length=100)] = None,
) -> RoleListResponse:
    summaries = await service.list_roles(
        include_system=include_system,
        include_inactive=include_inactive,
        search=search,
    )
    return RoleListResponse(
        roles=[RoleResponse.from_summary(s) for s in summaries],
        total_count=len(summaries),
    )


@router.get(
    "/{role_id}",
    response_model=RoleResponse,
    responses={404: {"model": ProblemDetails}},
    summary="Get role",
)
async def get_role(
    request: Request,
    role_id: UUID,
    service: GraphService,
) -> RoleResponse | JSONResponse:
    match await service.get_role(role_id):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=summary):
            return RoleResponse.from_summary(summary)


@router.patch(
    "/{role_id}",
    response_model=RoleResponse,
    responses=_MUTATION_ERRORS,
    summary="Update role",
)
async def update_role(
    request: Request,
    role_id: UUID,
    data: RoleUpdateRequest,
    ctx: Context,
    service: GraphService,
) -> RoleResponse | JSONResponse:
    result = await service.update_role(
        role_id,
        display_name=data.display_name,
        description=data.description,
        metadata=data.metadata,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=role):
            return RoleResponse.from_entity(role)


@router.put(
    "/{role_id}/parent",
    response_model=RoleResponse,
    responses=_MUTATION_ERRORS,
    summary="Reparent role",
    description="Moves the role (and its subtree) under a new parent. Cycles are rejected.",
)
async def reparent_role(
    request: Request,
    role_id: UUID,
    data: RoleParentUpdateRequest,
    ctx: Context,
    service: GraphService,
) -> RoleResponse | JSONResponse:
    result = await service.reparent_role(
        role_id,
        data.parent_role_id,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=role):
            return RoleResponse.from_entity(role)


@router.delete(
    "/{role_id}",
    response_model=RoleResponse,
    responses=_MUTATION_ERRORS,
    summary="Deactivate role",
)
async def deactivate_role(
    request: Request,
    role_id: UUID,
    ctx: Context,
    service: GraphService,
) -> RoleResponse | JSONResponse:
    result = await service.deactivate_role(
        role_id,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=role):
            return RoleResponse.from_entity(role)


@router.get(
    "/{role_id}/ancestors",
    response_model=list[RoleLineageResponse],
    responses={404: {"model": ProblemDetails}},
    summary="Role ancestors",
)
async def get_ancestors(
    request: Request,
    role_id: UUID,
    service: GraphService,
    include_self: bool = False,
) -> list[RoleLineageResponse] | JSONResponse:
    match await service.get_ancestors(role_id, include_self=include_self):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=lineage):
            return [RoleLineageResponse.from_lineage(item) for item in lineage]


@router.get(
    "/{role_id}/descendants",
    response_model=list[RoleLineageResponse],
    responses={404: {"model": ProblemDetails}},
    summary="Role descendants",
)
async def get_descendants(
    request: Request,
    role_id: UUID,
    service: GraphService,
    include_self: bool = False,
) -> list[RoleLineageResponse] | JSONResponse:
    match await service.get_descendants(role_id, include_self=include_self):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=lineage):
            return [RoleLineageResponse.from_lineage(item) for item in lineage]


@router.get(
    "/{role_id}/permissions",
    response_model=RolePermissionListResponse,
    responses={404: {"model": ProblemDetails}},
    summary="Role permissions",
)
async def get_role_permissions(
    request: Request,
    role_id: UUID,
    service: GraphService,
    include_inherited: bool = True,
) -> RolePermissionListResponse | JSONResponse:
    match await service.get_role_permissions(role_id, include_inherited=include_inherited):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=views):
            return RolePermissionListResponse(
                role_id=role_id,
                permissions=[RolePermissionResponse.from_view(v) for v in views],
            )


@router.put(
    "/{role_id}/permissions",
    response_model=PermissionSetChangeResponse,
    responses=_MUTATION_ERRORS,
    summary="Replace role permissions",
)
async def set_role_permissions(
    request: Request,
    role_id: UUID,
    data: RolePermissionsUpdateRequest,
    ctx: Context,
    service: GraphService,
) -> PermissionSetChangeResponse | JSONResponse:
    result = await service.set_role_permissions(
        role_id,
        data.permission_ids,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=change):
            return PermissionSetChangeResponse.from_change(change)


@router.post(
    "/{role_id}/denied-permissions/{permission_id}",
    response_model=PermissionSetChangeResponse,
    responses=_MUTATION_ERRORS,
    summary="Deny permission on role",
    description="Denies the permission for the role and all of its descendants.",
)
async def deny_role_permission(
    request: Request,
    role_id: UUID,
    permission_id: UUID,
    ctx: Context,
    service: GraphService,
) -> PermissionSetChangeResponse | JSONResponse:
    result = await service.deny_role_permission(
        role_id,
        permission_id,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=change):
            return PermissionSetChangeResponse.from_change(change)


@router.delete(
    "/{role_id}/denied-permissions/{permission_id}",
    response_model=PermissionSetChangeResponse,
    responses=_MUTATION_ERRORS,
    summary="Remove role-level deny",
)
async def remove_role_permission_deny(
    request: Request,
    role_id: UUID,
    permission_id: UUID,
    ctx: Context,
    service: GraphService,
) -> PermissionSetChangeResponse | JSONResponse:
    result = await service.remove_role_permission_deny(
        role_id,
        permission_id,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=change):
            return PermissionSetChangeResponse.from_change(change)
