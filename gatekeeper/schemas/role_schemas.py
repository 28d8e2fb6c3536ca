"""Role graph request/response schemas.

RESTful Endpoints:
    POST   /api/v1/roles                                      - Create role
    GET    /api/v1/roles                                      - List roles
    GET    /api/v1/roles/{id}                                 - Get role
    PATCH  /api/v1/roles/{id}                                 - Update metadata
    PUT    /api/v1/roles/{id}/parent                          - Reparent
    DELETE /api/v1/roles/{id}                                 - Deactivate
    GET    /api/v1/roles/{id}/permissions                     - Direct + inherited grants
    PUT    /api/v1/roles/{id}/permissions                     - Replace direct grants
    POST   /api/v1/roles/{id}/denied-permissions/{perm_id}    - Role-level deny
    DELETE /api/v1/roles/{id}/denied-permissions/{perm_id}    - Lift role-level deny
    GET    /api/v1/roles/{id}/ancestors                       - Closure ancestors
    GET    /api/v1/roles/{id}/descendants                     - Closure descendants
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from gatekeeper.application.dtos import PermissionSetChange, RoleLineage
from gatekeeper.domain.entities import Role, RolePermissionView, RoleSummary


class RoleCreateRequest(BaseModel):
    """Request schema for role creation.

    POST /api/v1/roles
    Returns: 201 Created
    """

    name: str = Field(..., description="Unique name matching ^[A-Z][A-Z0-9_]{1,99}$")
    display_name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    parent_role_id: UUID | None = Field(None, description="Parent role (inherits its grants)")
    permission_ids: list[UUID] = Field(default_factory=list, description="Initial grants")
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "ACCOUNTANT",
                "display_name": "Accountant",
                "parent_role_id": "0192f0c1-7c1e-7a51-9c1f-3f1d2e9b0a11",
                "permission_ids": [],
            }
        }
    )


class RoleUpdateRequest(BaseModel):
    """PATCH /api/v1/roles/{id}. Omitted fields are left unchanged."""

    display_name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    metadata: dict[str, Any] | None = None


class RoleParentUpdateRequest(BaseModel):
    """PUT /api/v1/roles/{id}/parent. ``null`` makes the role a root."""

    parent_role_id: UUID | None = None


class RolePermissionsUpdateRequest(BaseModel):
    """PUT /api/v1/roles/{id}/permissions. The role's direct grants become exactly this set."""

    permission_ids: list[UUID] = Field(default_factory=list)


class RoleResponse(BaseModel):
    id: UUID
    name: str
    display_name: str
    description: str | None = None
    is_system: bool
    is_active: bool
    parent_role_id: UUID | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    active_user_count: int | None = Field(None, description="Users actively holding the role")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, role: Role, active_user_count: int | None = None) -> "RoleResponse":
        return cls(
            id=role.id,
            name=role.name,
            display_name=role.display_name,
            description=role.description,
            is_system=role.is_system,
            is_active=role.is_active,
            parent_role_id=role.parent_role_id,
            metadata=dict(role.metadata),
            active_user_count=active_user_count,
            created_at=role.created_at,
            updated_at=role.updated_at,
        )

    @classmethod
    def from_summary(cls, summary: RoleSummary) -> "RoleResponse":
        return cls.from_entity(summary.role, summary.active_user_count)


class RoleListResponse(BaseModel):
    """GET /api/v1/roles"""

    roles: list[RoleResponse]
    total_count: int


class RoleLineageResponse(BaseModel):
    role: RoleResponse
    depth: int = Field(..., description="Parent hops between the two roles")

    @classmethod
    def from_lineage(cls, lineage: RoleLineage) -> "RoleLineageResponse":
        return cls(role=RoleResponse.from_entity(lineage.role), depth=lineage.depth)


class RolePermissionResponse(BaseModel):
    permission_id: UUID
    permission_key: str
    inherited_from: UUID | None = Field(None, description="Ancestor granting it; null if direct")
    inherited_from_name: str | None = None
    is_denied: bool = False

    @classmethod
    def from_view(cls, view: RolePermissionView) -> "RolePermissionResponse":
        return cls(
            permission_id=view.permission_id,
            permission_key=view.permission_key,
            inherited_from=view.inherited_from,
            inherited_from_name=view.inherited_from_name,
            is_denied=view.is_denied,
        )


class RolePermissionListResponse(BaseModel):
    role_id: UUID
    permissions: list[RolePermissionResponse]


class PermissionSetChangeResponse(BaseModel):
    """Diff applied to a role's grants or denies."""

    role_id: UUID
    added: list[UUID]
    removed: list[UUID]
    affected_user_ids: list[UUID] = Field(
        ..., description="Users whose cached permissions were invalidated"
    )

    @classmethod
    def from_change(cls, change: PermissionSetChange) -> "PermissionSetChangeResponse":
        return cls(
            role_id=change.role_id,
            added=list(change.added),
            removed=list(change.removed),
            affected_user_ids=list(change.affected_user_ids),
        )
