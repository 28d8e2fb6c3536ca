"""Authorization check router.

Endpoints:
    POST /api/v1/authorization/checks                   - Single check
    POST /api/v1/authorization/batch-checks             - Batch check (ALL / ANY)
    GET  /api/v1/users/{user_id}/effective-permissions  - Resolved permission set

A denied check is a normal 200 response with ``allowed=false``; only a
malformed request is an error.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from gatekeeper.application.services import AuthorizationService
from gatekeeper.core.container import get_authorization_service
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.entities import CheckItem
from gatekeeper.presentation.routers.api.v1.errors import ErrorResponseBuilder, ProblemDetails
from gatekeeper.schemas.authorization_schemas import (
    BatchCheckRequest,
    BatchCheckResponse,
    CheckRequest,
    CheckResponse,
    EffectivePermissionsResponse,
)

router = APIRouter(tags=["Authorization"])


@router.post(
    "/authorization/checks",
    response_model=CheckResponse,
    responses={400: {"description": "Malformed resource or action", "model": ProblemDetails}},
    summary="Check one permission",
)
async def check_permission(
    request: Request,
    data: CheckRequest,
    service: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> CheckResponse | JSONResponse:
    match await service.check(data.user_id, data.resource, data.action, data.context):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=decision):
            return CheckResponse.from_decision(decision)


@router.post(
    "/authorization/batch-checks",
    response_model=BatchCheckResponse,
    responses={
        400: {"description": "Empty, oversized or malformed batch", "model": ProblemDetails}
    },
    summary="Check several permissions",
    description="Resolves the user's permissions once and combines item results per mode.",
)
async def check_permissions(
    request: Request,
    data: BatchCheckRequest,
    service: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> BatchCheckResponse | JSONResponse:
    items = [
        CheckItem(resource=item.resource, action=item.action, context=item.context)
        for item in data.checks
    ]
    match await service.check_many(data.user_id, items, data.mode):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=result):
            return BatchCheckResponse.from_result(result)


@router.get(
    "/users/{user_id}/effective-permissions",
    response_model=EffectivePermissionsResponse,
    status_code=status.HTTP_200_OK,
    summary="Effective permissions of a user",
)
async def get_effective_permissions(
    user_id: UUID,
    service: Annotated[AuthorizationService, Depends(get_authorization_service)],
    group_by_source: Annotated[bool, Query(description="Group entries by source")] = False,
) -> EffectivePermissionsResponse:
    permissions = await service.get_effective_permissions(user_id)
    return EffectivePermissionsResponse.from_set(permissions, group_by_source=group_by_source)
