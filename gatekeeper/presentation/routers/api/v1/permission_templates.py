"""Permission template router.

Endpoints:
    POST /api/v1/permission-templates                    - Create template
    GET  /api/v1/permission-templates                    - List templates
    GET  /api/v1/permission-templates/{id}               - Get template
    POST /api/v1/permission-templates/{id}/applications  - Apply to a role (merge/replace)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from gatekeeper.application.services import TemplateService
from gatekeeper.core.container import get_template_service
from gatekeeper.core.result import Failure, Success
from gatekeeper.presentation.routers.api.middleware import (
    RequestContext,
    get_request_context,
    require_admin,
)
from gatekeeper.presentation.routers.api.v1.errors import ErrorResponseBuilder, ProblemDetails
from gatekeeper.schemas.role_schemas import PermissionSetChangeResponse
from gatekeeper.schemas.template_schemas import (
    TemplateApplicationRequest,
    TemplateCreateRequest,
    TemplateListResponse,
    TemplateResponse,
)

router = APIRouter(
    prefix="/permission-templates",
    tags=["Permission Templates"],
    dependencies=[Depends(require_admin)],
)

Templates = Annotated[TemplateService, Depends(get_template_service)]
Context = Annotated[RequestContext, Depends(get_request_context)]


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=TemplateResponse,
    responses={
        404: {"description": "Unknown permission", "model": ProblemDetails},
        409: {"description": "Name taken or permission inactive", "model": ProblemDetails},
    },
    summary="Create template",
)
async def create_template(
    request: Request,
    data: TemplateCreateRequest,
    ctx: Context,
    service: Templates,
) -> TemplateResponse | JSONResponse:
    result = await service.create_template(
        name=data.name,
        description=data.description,
        permission_ids=data.permission_ids,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=template):
            return TemplateResponse.from_entity(template)


@router.get("", response_model=TemplateListResponse, summary="List templates")
async def list_templates(service: Templates) -> TemplateListResponse:
    templates = await service.list_templates()
    return TemplateListResponse(
        templates=[TemplateResponse.from_entity(t) for t in templates],
        total_count=len(templates),
    )


@router.get(
    "/{template_id}",
    response_model=TemplateResponse,
    responses={404: {"model": ProblemDetails}},
    summary="Get template",
)
async def get_template(
    request: Request,
    template_id: UUID,
    service: Templates,
) -> TemplateResponse | JSONResponse:
    match await service.get_template(template_id):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=template):
            return TemplateResponse.from_entity(template)


@router.post(
    "/{template_id}/applications",
    response_model=PermissionSetChangeResponse,
    responses={
        403: {"description": "System role", "model": ProblemDetails},
        404: {"model": ProblemDetails},
        409: {"description": "Template permission inactive", "model": ProblemDetails},
    },
    summary="Apply template to role",
)
async def apply_template(
    request: Request,
    template_id: UUID,
    data: TemplateApplicationRequest,
    ctx: Context,
    service: Templates,
) -> PermissionSetChangeResponse | JSONResponse:
    result = await service.apply_template(
        template_id,
        data.role_id,
        data.mode,
        actor_id=ctx.actor_id,
        correlation_id=ctx.correlation_id,
    )
    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=change):
            return PermissionSetChangeResponse.from_change(change)
