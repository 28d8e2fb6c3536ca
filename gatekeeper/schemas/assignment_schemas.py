"""User role assignment and direct override schemas.

RESTful Endpoints:
    POST   /api/v1/users/{user_id}/roles                   - Assign role
    GET    /api/v1/users/{user_id}/roles                   - Active assignments
    DELETE /api/v1/users/{user_id}/roles/{role_id}         - Revoke (reason required)
    PUT    /api/v1/users/{user_id}/permissions/{perm_id}   - Set GRANT/DENY override
    DELETE /api/v1/users/{user_id}/permissions/{perm_id}   - Remove override
    GET    /api/v1/users/{user_id}/permissions             - List overrides
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from gatekeeper.application.dtos import UserOverrideView, UserRoleView
from gatekeeper.domain.entities import PermissionOverride, RoleAssignment
from gatekeeper.domain.enums import OverrideType
from gatekeeper.domain.value_objects import condition_to_dict

# =============================================================================
# Role assignments
# =============================================================================


class RoleAssignmentRequest(BaseModel):
    """POST /api/v1/users/{user_id}/roles"""

    role_id: UUID
    expires_at: datetime | None = Field(None, description="Timezone-aware future expiry")


class RoleAssignmentResponse(BaseModel):
    id: UUID
    user_id: UUID
    role_id: UUID
    role_name: str | None = None
    granted_at: datetime
    granted_by: UUID | None = None
    expires_at: datetime | None = None
    revoked_at: datetime | None = None
    revoked_by: UUID | None = None
    revoke_reason: str | None = None

    @classmethod
    def from_entity(
        cls, assignment: RoleAssignment, role_name: str | None = None
    ) -> "RoleAssignmentResponse":
        return cls(
            id=assignment.id,
            user_id=assignment.user_id,
            role_id=assignment.role_id,
            role_name=role_name,
            granted_at=assignment.granted_at,
            granted_by=assignment.granted_by,
            expires_at=assignment.expires_at,
            revoked_at=assignment.revoked_at,
            revoked_by=assignment.revoked_by,
            revoke_reason=assignment.revoke_reason,
        )

    @classmethod
    def from_view(cls, view: UserRoleView) -> "RoleAssignmentResponse":
        return cls.from_entity(view.assignment, view.role.name)


class UserRoleListResponse(BaseModel):
    """GET /api/v1/users/{user_id}/roles"""

    user_id: UUID
    roles: list[RoleAssignmentResponse]


# =============================================================================
# Direct overrides
# =============================================================================


class DirectPermissionRequest(BaseModel):
    """PUT /api/v1/users/{user_id}/permissions/{permission_id}

    Conditions are only accepted on GRANT overrides of permissions that
    support them.
    """

    override_type: OverrideType
    conditions: list[dict[str, Any]] = Field(default_factory=list)
    expires_at: datetime | None = Field(None, description="Timezone-aware future expiry")
    reason: str | None = Field(None, max_length=500)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "override_type": "GRANT",
                "conditions": [{"type": "own_organization"}],
                "reason": "Covering for the finance lead",
            }
        }
    )


class DirectPermissionResponse(BaseModel):
    id: UUID
    user_id: UUID
    permission_id: UUID
    permission_key: str | None = None
    override_type: OverrideType
    conditions: list[dict[str, Any]] = Field(default_factory=list)
    expires_at: datetime | None = None
    granted_by: UUID | None = None
    granted_at: datetime
    reason: str | None = None
    is_expired: bool = False

    @classmethod
    def from_entity(
        cls,
        override: PermissionOverride,
        permission_key: str | None = None,
        is_expired: bool = False,
    ) -> "DirectPermissionResponse":
        return cls(
            id=override.id,
            user_id=override.user_id,
            permission_id=override.permission_id,
            permission_key=permission_key,
            override_type=override.override_type,
            conditions=[condition_to_dict(c) for c in override.conditions],
            expires_at=override.expires_at,
            granted_by=override.granted_by,
            granted_at=override.granted_at,
            reason=override.reason,
            is_expired=is_expired,
        )

    @classmethod
    def from_view(cls, view: UserOverrideView) -> "DirectPermissionResponse":
        return cls.from_entity(view.override, str(view.permission.key), view.is_expired)


class DirectPermissionListResponse(BaseModel):
    """GET /api/v1/users/{user_id}/permissions"""

    user_id: UUID
    overrides: list[DirectPermissionResponse]
