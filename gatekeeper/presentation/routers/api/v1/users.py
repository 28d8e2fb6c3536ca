"""User assignment router (roles and direct overrides).

Endpoints:
    POST   /api/v1/users/{user_id}/roles                    - Assign role
    GET    /api/v1/users/{user_id}/roles                    - Active assignments
    DELETE /api/v1/users/{user_id}/roles/{role_id}          - Revoke (?reason= required)
    GET    /api/v1/users/{user_id}/permissions              - Direct overrides
    PUT    /api/v1/users/{user_id}/permissions/{perm_id}    - Set GRANT/DENY override
    DELETE /api/v1/users/{user_id}/permissions/{perm_id}    - Remove override
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse

from gatekeeper.application.services import AssignmentService, PermissionCatalogService
from gatekeeper.core.container import get_assignment_service, get_permission_catalog_service
from gatekeeper.core.result import Failure, Success
from gatekeeper.presentation.routers.api.middleware import (
    RequestContext,
    get_request_context,
    require_admin,
)
from gatekeeper.presentation.routers.api.v1.errors import ErrorResponseBuilder, ProblemDetails
from gatekeeper.schemas.assignment_schemas import (
    DirectPermissionListResponse,
    DirectPermissionRequest,
    DirectPermissionResponse,
    RoleAssignmentRequest,
    RoleAssignmentResponse,
    UserRoleListResponse,
)

router = APIRouter(
    prefix="/users/{user_id}",
    tags=["User Assignments"],
    dependencies=[Depends(require_admin)],
)

Assignments = Annotated[AssignmentService, Depends(get_assignment_service)]
Context = Annotated[RequestContext, Depends(get_request_context)]


# =============================================================================
# Role assignments
# =============================================================================


@router.post(
    "/roles",
    status_code=status.HTTP_201_CREATED,
    response_model=RoleAssignmentResponse,
    responses={
        400: {"description": "Expiry not in the future", "model": ProblemDetails},
        404: {"model": ProblemDetails},
        409: {"description": "Already assigned or role inactive", "model": ProblemDetails},
    },
    summary="Assign role",
)
async def assign_role(
    request: Request,
    user_id: UUID,
    data: RoleAssignmentRequest,
    ctx: Context,
    service: Assignments,
) -> RoleAssignmentResponse | JSONResponse:
    result = await service.assign_role(
        user_id,
        data.role_id,
        expires_at=data.expires_at,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=assignment):
            return RoleAssignmentResponse.from_entity(assignment)


@router.get("/roles", response_model=UserRoleListResponse, summary="List user roles")
async def get_user_roles(user_id: UUID, service: Assignments) -> UserRoleListResponse:
    views = await service.get_user_roles(user_id)
    return UserRoleListResponse(
        user_id=user_id,
        roles=[RoleAssignmentResponse.from_view(v) for v in views],
    )


@router.delete(
    "/roles/{role_id}",
    response_model=RoleAssignmentResponse,
    responses={
        400: {"description": "Reason missing or too short", "model": ProblemDetails},
        404: {"model": ProblemDetails},
        409: {"description": "Last active role", "model": ProblemDetails},
    },
    summary="Revoke role",
)
async def revoke_role(
    request: Request,
    user_id: UUID,
    role_id: UUID,
    reason: Annotated[str, Query(description="Why the role is revoked (5-500 chars)")],
    ctx: Context,
    service: Assignments,
) -> RoleAssignmentResponse | JSONResponse:
    result = await service.revoke_role(
        user_id,
        role_id,
        reason,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=assignment):
            return RoleAssignmentResponse.from_entity(assignment)


# =============================================================================
# Direct overrides
# =============================================================================


@router.get(
    "/permissions",
    response_model=DirectPermissionListResponse,
    summary="List direct overrides",
)
async def get_user_overrides(
    user_id: UUID,
    service: Assignments,
    include_expired: bool = False,
) -> DirectPermissionListResponse:
    views = await service.get_user_overrides(user_id, include_expired=include_expired)
    return DirectPermissionListResponse(
        user_id=user_id,
        overrides=[DirectPermissionResponse.from_view(v) for v in views],
    )


@router.put(
    "/permissions/{permission_id}",
    response_model=DirectPermissionResponse,
    responses={
        400: {"description": "Invalid conditions or expiry", "model": ProblemDetails},
        404: {"model": ProblemDetails},
        409: {"description": "Permission inactive", "model": ProblemDetails},
    },
    summary="Set direct override",
    description="Creates or replaces the user's GRANT/DENY override for the permission.",
)
async def set_direct_permission(
    request: Request,
    user_id: UUID,
    permission_id: UUID,
    data: DirectPermissionRequest,
    ctx: Context,
    service: Assignments,
    catalog: Annotated[PermissionCatalogService, Depends(get_permission_catalog_service)],
) -> DirectPermissionResponse | JSONResponse:
    result = await service.set_direct_permission(
        user_id,
        permission_id,
        data.override_type,
        conditions=data.conditions,
        expires_at=data.expires_at,
        reason=data.reason,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=override):
            pass

    permission_key = None
    match await catalog.get_permission(permission_id):
        case Success(value=permission):
            permission_key = str(permission.key)
    return DirectPermissionResponse.from_entity(override, permission_key)


@router.delete(
    "/permissions/{permission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ProblemDetails}},
    summary="Remove direct override",
)
async def remove_direct_permission(
    request: Request,
    user_id: UUID,
    permission_id: UUID,
    ctx: Context,
    service: Assignments,
) -> Response:
    result = await service.remove_direct_permission(
        user_id,
        permission_id,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success():
            return Response(status_code=status.HTTP_204_NO_CONTENT)
