"""API tests for the authorization check endpoints.

Tests the HTTP request/response cycle of:
- POST /api/v1/authorization/checks
- POST /api/v1/authorization/batch-checks
- GET  /api/v1/users/{user_id}/effective-permissions

Architecture:
- Uses the real app with dependency overrides
- Stubs AuthorizationService to control decisions
- Full decision logic is covered by the integration tests
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from uuid_extensions import uuid7

from gatekeeper.core.container import get_authorization_service
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import ValidationError
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.entities import (
    AuthorizationDecision,
    CheckManyResult,
    EffectivePermission,
    EffectivePermissionSet,
)
from gatekeeper.domain.enums import CheckMode, DecisionReason, PermissionSource
from gatekeeper.main import app


GRANTED = AuthorizationDecision(
    allowed=True,
    reason=DecisionReason.GRANTED,
    permission_key="invoices.read",
    matched_key="invoices.read",
    source="role:ACCOUNTANT",
)
DENIED = AuthorizationDecision(
    allowed=False,
    reason=DecisionReason.EXPLICIT_DENY,
    permission_key="invoices.delete",
    matched_key="invoices.delete",
    source="direct",
)


@pytest.fixture
def authorization_stub():
    stub = AsyncMock()
    app.dependency_overrides[get_authorization_service] = lambda: stub
    yield stub
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.api
class TestSingleCheck:
    def test_granted(self, client, authorization_stub):
        authorization_stub.check.return_value = Success(value=GRANTED)
        user_id = uuid7()

        response = client.post(
            "/api/v1/authorization/checks",
            json={"user_id": str(user_id), "resource": "invoices", "action": "read"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["allowed"] is True
        assert data["reason"] == "Granted"
        assert data["source"] == "role:ACCOUNTANT"
        authorization_stub.check.assert_awaited_once_with(user_id, "invoices", "read", None)

    def test_denied_is_still_200(self, client, authorization_stub):
        authorization_stub.check.return_value = Success(value=DENIED)

        response = client.post(
            "/api/v1/authorization/checks",
            json={"user_id": str(uuid7()), "resource": "invoices", "action": "delete"},
        )

        assert response.status_code == 200
        assert response.json()["allowed"] is False
        assert response.json()["reason"] == "ExplicitDeny"

    def test_context_is_forwarded(self, client, authorization_stub):
        authorization_stub.check.return_value = Success(value=GRANTED)
        context = {"actor_org_id": "acme", "org_id": "acme"}

        client.post(
            "/api/v1/authorization/checks",
            json={
                "user_id": str(uuid7()),
                "resource": "clients",
                "action": "read",
                "context": context,
            },
        )

        assert authorization_stub.check.call_args[0][3] == context

    def test_malformed_resource_is_problem_details(self, client, authorization_stub):
        authorization_stub.check.return_value = Failure(
            error=ValidationError(
                code=ErrorCode.INVALID_RESOURCE, message="Invalid resource", field="resource"
            )
        )

        response = client.post(
            "/api/v1/authorization/checks",
            json={"user_id": str(uuid7()), "resource": "Bad!", "action": "read"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "invalid_resource"
        assert data["errors"][0]["field"] == "resource"

    def test_missing_user_id_is_rejected(self, client, authorization_stub):
        response = client.post(
            "/api/v1/authorization/checks", json={"resource": "invoices", "action": "read"}
        )

        assert response.status_code == 422
        authorization_stub.check.assert_not_called()


@pytest.mark.api
class TestBatchCheck:
    def test_any_mode(self, client, authorization_stub):
        authorization_stub.check_many.return_value = Success(
            value=CheckManyResult(allowed=True, mode=CheckMode.ANY, results=[DENIED, GRANTED])
        )

        response = client.post(
            "/api/v1/authorization/batch-checks",
            json={
                "user_id": str(uuid7()),
                "mode": "ANY",
                "checks": [
                    {"resource": "invoices", "action": "delete"},
                    {"resource": "invoices", "action": "read"},
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["allowed"] is True
        assert [r["allowed"] for r in data["results"]] == [False, True]
        items = authorization_stub.check_many.call_args[0][1]
        assert [(i.resource, i.action) for i in items] == [
            ("invoices", "delete"),
            ("invoices", "read"),
        ]

    def test_oversized_batch(self, client, authorization_stub):
        authorization_stub.check_many.return_value = Failure(
            error=ValidationError(
                code=ErrorCode.VALIDATION_FAILED,
                message="At most 50 check items are allowed",
                field="checks",
            )
        )

        response = client.post(
            "/api/v1/authorization/batch-checks",
            json={
                "user_id": str(uuid7()),
                "checks": [{"resource": "invoices", "action": "read"}] * 51,
            },
        )

        assert response.status_code == 400
        assert response.json()["code"] == "validation_failed"


@pytest.mark.api
class TestEffectivePermissions:
    def test_lists_granted_and_denied(self, client, authorization_stub):
        user_id = uuid7()
        authorization_stub.get_effective_permissions.return_value = EffectivePermissionSet(
            user_id=user_id,
            role_names=["ACCOUNTANT"],
            entries={
                "invoices.read": EffectivePermission(
                    key="invoices.read",
                    permission_id=uuid7(),
                    source=PermissionSource.ROLE,
                    source_name="ACCOUNTANT",
                ),
                "invoices.delete": EffectivePermission(
                    key="invoices.delete",
                    permission_id=uuid7(),
                    source=PermissionSource.DIRECT,
                    is_denied=True,
                ),
            },
        )

        response = client.get(f"/api/v1/users/{user_id}/effective-permissions")

        assert response.status_code == 200
        data = response.json()
        assert data["roles"] == ["ACCOUNTANT"]
        assert data["granted"] == ["invoices.read"]
        assert data["denied"] == ["invoices.delete"]

    def test_group_by_source(self, client, authorization_stub):
        user_id = uuid7()
        authorization_stub.get_effective_permissions.return_value = EffectivePermissionSet(
            user_id=user_id,
            entries={
                "invoices.read": EffectivePermission(
                    key="invoices.read",
                    permission_id=uuid7(),
                    source=PermissionSource.ROLE,
                    source_name="ACCOUNTANT",
                ),
            },
        )

        response = client.get(
            f"/api/v1/users/{user_id}/effective-permissions",
            params={"group_by_source": "true"},
        )

        assert response.status_code == 200
        assert list(response.json()["by_source"]) == ["role:ACCOUNTANT"]
