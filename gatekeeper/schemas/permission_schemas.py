"""Permission catalog request/response schemas.

RESTful Endpoints:
    POST   /api/v1/permissions             - Create permission
    GET    /api/v1/permissions             - List (paginated, filtered)
    GET    /api/v1/permissions/{id}        - Get permission
    GET    /api/v1/permissions/{id}/usage  - Role/user reference counts
    PATCH  /api/v1/permissions/{id}        - Update metadata
    DELETE /api/v1/permissions/{id}        - Deactivate (soft delete)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from gatekeeper.application.dtos import PermissionPage
from gatekeeper.domain.entities import Permission, PermissionUsage
from gatekeeper.domain.enums import ConditionType


class PermissionCreateRequest(BaseModel):
    """Request schema for catalog entry creation.

    POST /api/v1/permissions
    Returns: 201 Created
    """

    resource: str = Field(..., description="Lowercase resource token", examples=["invoices"])
    action: str = Field(..., description="Lowercase action token or *", examples=["approve"])
    display_name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    module: str | None = Field(None, max_length=100, description="Catalog grouping")
    depends_on: list[UUID] = Field(default_factory=list, description="Informational only")
    supports_conditions: bool = Field(False, description="Overrides may attach conditions")
    allowed_condition_types: list[ConditionType] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "resource": "invoices",
                "action": "approve",
                "display_name": "Approve invoices",
                "module": "finance",
                "supports_conditions": True,
                "allowed_condition_types": ["own_organization"],
            }
        }
    )


class PermissionUpdateRequest(BaseModel):
    """PATCH /api/v1/permissions/{id}. Omitted fields are left unchanged."""

    display_name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    module: str | None = Field(None, max_length=100)
    allowed_condition_types: list[ConditionType] | None = None


class PermissionResponse(BaseModel):
    id: UUID
    key: str = Field(..., description="resource.action")
    resource: str
    action: str
    display_name: str
    description: str | None = None
    module: str | None = None
    is_system: bool
    is_active: bool
    depends_on: list[UUID] = Field(default_factory=list)
    supports_conditions: bool
    allowed_condition_types: list[ConditionType] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, permission: Permission) -> "PermissionResponse":
        return cls(
            id=permission.id,
            key=str(permission.key),
            resource=permission.resource,
            action=permission.action,
            display_name=permission.display_name,
            description=permission.description,
            module=permission.module,
            is_system=permission.is_system,
            is_active=permission.is_active,
            depends_on=list(permission.depends_on),
            supports_conditions=permission.supports_conditions,
            allowed_condition_types=list(permission.allowed_condition_types),
            created_at=permission.created_at,
            updated_at=permission.updated_at,
        )


class PermissionListResponse(BaseModel):
    """GET /api/v1/permissions"""

    items: list[PermissionResponse]
    total: int = Field(..., description="Total matching permissions")
    page: int
    page_size: int
    has_next: bool

    @classmethod
    def from_page(cls, page: PermissionPage) -> "PermissionListResponse":
        return cls(
            items=[PermissionResponse.from_entity(p) for p in page.items],
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            has_next=page.has_next,
        )


class PermissionUsageResponse(BaseModel):
    permission_id: UUID
    role_count: int = Field(..., description="Roles granting or denying the permission")
    user_count: int = Field(..., description="Users holding a direct override")
    in_use: bool

    @classmethod
    def from_usage(cls, permission_id: UUID, usage: PermissionUsage) -> "PermissionUsageResponse":
        return cls(
            permission_id=permission_id,
            role_count=usage.role_count,
            user_count=usage.user_count,
            in_use=usage.in_use,
        )
