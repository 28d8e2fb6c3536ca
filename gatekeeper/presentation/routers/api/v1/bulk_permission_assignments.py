"""Bulk permission assignment router.

Endpoints:
    POST /api/v1/bulk-permission-assignments - Add/remove many permissions on a role or user
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from gatekeeper.application.services import BulkAssignmentService
from gatekeeper.core.container import get_bulk_assignment_service
from gatekeeper.core.result import Failure, Success
from gatekeeper.presentation.routers.api.middleware import (
    RequestContext,
    get_request_context,
    require_admin,
)
from gatekeeper.presentation.routers.api.v1.errors import ErrorResponseBuilder, ProblemDetails
from gatekeeper.schemas.template_schemas import BulkAssignmentRequest, BulkAssignmentResponse

router = APIRouter(
    prefix="/bulk-permission-assignments",
    tags=["Bulk Assignments"],
    dependencies=[Depends(require_admin)],
)


@router.post(
    "",
    response_model=BulkAssignmentResponse,
    responses={
        400: {"description": "Empty or oversized request", "model": ProblemDetails},
        403: {"description": "System role", "model": ProblemDetails},
        404: {"model": ProblemDetails},
        409: {"description": "Permission inactive", "model": ProblemDetails},
    },
    summary="Bulk assign permissions",
    description="Entries already in the requested state are reported as unchanged.",
)
async def bulk_assign(
    request: Request,
    data: BulkAssignmentRequest,
    ctx: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[BulkAssignmentService, Depends(get_bulk_assignment_service)],
) -> BulkAssignmentResponse | JSONResponse:
    result = await service.bulk_assign(
        data.target_type,
        data.target_id,
        data.permission_ids,
        data.operation,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=outcome):
            return BulkAssignmentResponse.from_result(outcome)
