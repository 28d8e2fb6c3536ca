"""Permission template and bulk assignment schemas.

RESTful Endpoints:
    POST /api/v1/permission-templates                      - Create template
    GET  /api/v1/permission-templates                      - List templates
    POST /api/v1/permission-templates/{id}/applications    - Apply to a role
    POST /api/v1/bulk-permission-assignments               - Bulk add/remove
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from gatekeeper.application.dtos import BulkAssignmentResult
from gatekeeper.domain.entities import PermissionTemplate
from gatekeeper.domain.enums import BulkOperation, BulkTargetType, TemplateApplyMode


class TemplateCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    permission_ids: list[UUID] = Field(default_factory=list)


class TemplateResponse(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    permission_ids: list[UUID]
    created_by: UUID | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, template: PermissionTemplate) -> "TemplateResponse":
        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            permission_ids=list(template.permission_ids),
            created_by=template.created_by,
            created_at=template.created_at,
        )


class TemplateListResponse(BaseModel):
    templates: list[TemplateResponse]
    total_count: int


class TemplateApplicationRequest(BaseModel):
    """POST /api/v1/permission-templates/{id}/applications"""

    role_id: UUID
    mode: TemplateApplyMode = Field(
        TemplateApplyMode.MERGE, description="merge adds; replace makes grants exactly the template"
    )


class BulkAssignmentRequest(BaseModel):
    """POST /api/v1/bulk-permission-assignments"""

    target_type: BulkTargetType
    target_id: UUID
    permission_ids: list[UUID]
    operation: BulkOperation


class BulkAssignmentResponse(BaseModel):
    target_type: BulkTargetType
    target_id: UUID
    operation: BulkOperation
    changed_permission_ids: list[UUID]
    unchanged_permission_ids: list[UUID]

    @classmethod
    def from_result(cls, result: BulkAssignmentResult) -> "BulkAssignmentResponse":
        return cls(
            target_type=result.target_type,
            target_id=result.target_id,
            operation=result.operation,
            changed_permission_ids=list(result.changed_permission_ids),
            unchanged_permission_ids=list(result.unchanged_permission_ids),
        )
