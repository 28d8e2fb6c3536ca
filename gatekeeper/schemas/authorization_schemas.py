"""Authorization check request/response schemas.

RESTful Endpoints:
    POST /api/v1/authorization/checks                     - Single check
    POST /api/v1/authorization/batch-checks               - Batch check (ALL / ANY)
    GET  /api/v1/users/{user_id}/effective-permissions    - Resolved permission set
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from gatekeeper.domain.entities import (
    AuthorizationDecision,
    CheckManyResult,
    EffectivePermission,
    EffectivePermissionSet,
)
from gatekeeper.domain.enums import CheckMode, DecisionReason, PermissionSource
from gatekeeper.domain.value_objects import condition_to_dict

# =============================================================================
# Single check
# =============================================================================


class CheckRequest(BaseModel):
    """Request schema for a single authorization check.

    POST /api/v1/authorization/checks
    """

    user_id: UUID = Field(..., description="User whose permissions are checked")
    resource: str = Field(..., min_length=1, description="Resource token (e.g., invoices)")
    action: str = Field(..., min_length=1, description="Action token or *")
    context: dict[str, Any] | None = Field(
        None,
        description="Attributes used by conditions (org_id, owner_id, department_id, ...)",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "0192f0c1-7c1e-7a51-9c1f-3f1d2e9b0a11",
                "resource": "invoices",
                "action": "approve",
                "context": {"org_id": "acme", "actor_org_id": "acme"},
            }
        }
    )


class CheckResponse(BaseModel):
    """Decision of one check. ``allowed=false`` is a normal 200 response."""

    allowed: bool = Field(..., description="Final decision")
    reason: DecisionReason = Field(
        ..., description="Granted, ExplicitDeny, ConditionFailed or NoGrant"
    )
    permission_key: str = Field(..., description="Requested resource.action")
    matched_key: str | None = Field(None, description="Entry that decided the outcome")
    source: str | None = Field(None, description="role:NAME or direct")
    via_wildcard: str | None = Field(None, description="Wildcard the match came through")
    failed_condition: str | None = Field(None, description="First condition that failed")

    @classmethod
    def from_decision(cls, decision: AuthorizationDecision) -> "CheckResponse":
        return cls(
            allowed=decision.allowed,
            reason=decision.reason,
            permission_key=decision.permission_key,
            matched_key=decision.matched_key,
            source=decision.source,
            via_wildcard=decision.via_wildcard,
            failed_condition=decision.failed_condition,
        )


# =============================================================================
# Batch check
# =============================================================================


class BatchCheckItem(BaseModel):
    resource: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    context: dict[str, Any] | None = None


class BatchCheckRequest(BaseModel):
    """Request schema for a batch check.

    POST /api/v1/authorization/batch-checks

    The item count is validated by the engine (1..max_check_many_items).
    """

    user_id: UUID = Field(..., description="User whose permissions are checked")
    checks: list[BatchCheckItem] = Field(..., description="Items to evaluate")
    mode: CheckMode = Field(CheckMode.ALL, description="ALL or ANY")


class BatchCheckResponse(BaseModel):
    allowed: bool = Field(..., description="Combined decision per mode")
    mode: CheckMode
    results: list[CheckResponse] = Field(..., description="Per-item decisions, request order")

    @classmethod
    def from_result(cls, result: CheckManyResult) -> "BatchCheckResponse":
        return cls(
            allowed=result.allowed,
            mode=result.mode,
            results=[CheckResponse.from_decision(d) for d in result.results],
        )


# =============================================================================
# Effective permissions
# =============================================================================


class EffectivePermissionResponse(BaseModel):
    key: str = Field(..., description="resource.action")
    permission_id: UUID | None = None
    source: PermissionSource
    source_label: str = Field(..., description="role:NAME or direct")
    source_id: UUID | None = None
    is_denied: bool = False
    conditions: list[dict[str, Any]] = Field(default_factory=list)
    via_wildcard: str | None = None

    @classmethod
    def from_entry(cls, entry: EffectivePermission) -> "EffectivePermissionResponse":
        return cls(
            key=entry.key,
            permission_id=entry.permission_id,
            source=entry.source,
            source_label=entry.source_label,
            source_id=entry.source_id,
            is_denied=entry.is_denied,
            conditions=[condition_to_dict(c) for c in entry.conditions],
            via_wildcard=entry.via_wildcard,
        )


class EffectivePermissionsResponse(BaseModel):
    """Response schema for a user's effective permissions.

    GET /api/v1/users/{user_id}/effective-permissions
    """

    user_id: UUID
    roles: list[str] = Field(..., description="Active assigned role names")
    granted: list[str] = Field(..., description="Granted permission keys")
    denied: list[str] = Field(..., description="Denied permission keys")
    permissions: list[EffectivePermissionResponse] | None = Field(
        None, description="Entries sorted by key (when not grouped)"
    )
    by_source: dict[str, list[EffectivePermissionResponse]] | None = Field(
        None, description="Entries grouped by source label (group_by_source=true)"
    )
    computed_at: datetime

    @classmethod
    def from_set(
        cls, permissions: EffectivePermissionSet, *, group_by_source: bool = False
    ) -> "EffectivePermissionsResponse":
        response = cls(
            user_id=permissions.user_id,
            roles=sorted(permissions.role_names),
            granted=permissions.granted_keys(),
            denied=permissions.denied_keys(),
            computed_at=permissions.computed_at,
        )
        if group_by_source:
            response.by_source = {
                label: [EffectivePermissionResponse.from_entry(e) for e in entries]
                for label, entries in permissions.group_by_source().items()
            }
        else:
            response.permissions = [
                EffectivePermissionResponse.from_entry(permissions.entries[key])
                for key in sorted(permissions.entries)
            ]
        return response
