"""Unit tests for problem-details rendering of engine errors."""

import json
from unittest.mock import Mock

import pytest

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import NotFoundError, ValidationError
from gatekeeper.domain.errors import InUseError, LastRoleViolationError
from gatekeeper.presentation.routers.api.v1.errors import ErrorResponseBuilder, status_for


@pytest.fixture
def request_stub():
    request = Mock()
    request.url.path = "/api/v1/users/u1/roles/r1"
    request.state.trace_id = "trace-123"
    return request


@pytest.mark.unit
class TestStatusMapping:
    @pytest.mark.parametrize(
        "code,expected",
        [
            (ErrorCode.INVALID_RESOURCE, 400),
            (ErrorCode.INVALID_CONDITION, 400),
            (ErrorCode.ROLE_NOT_FOUND, 404),
            (ErrorCode.SYSTEM_ROLE_IMMUTABLE, 403),
            (ErrorCode.LAST_ROLE_VIOLATION, 409),
            (ErrorCode.CYCLIC_HIERARCHY, 409),
            (ErrorCode.PERMISSION_IN_USE, 409),
            (ErrorCode.AUDIT_RECORD_FAILED, 500),
        ],
    )
    def test_status_for(self, code, expected):
        assert status_for(code) == expected


@pytest.mark.unit
class TestErrorResponseBuilder:
    def test_validation_error_lists_field(self, request_stub):
        error = ValidationError(
            code=ErrorCode.INVALID_ACTION, message="Invalid action", field="action"
        )

        response = ErrorResponseBuilder.from_domain_error(error, request_stub)
        body = json.loads(response.body)

        assert response.status_code == 400
        assert body["code"] == "invalid_action"
        assert body["errors"] == [
            {"field": "action", "code": "invalid_action", "message": "Invalid action"}
        ]
        assert body["trace_id"] == "trace-123"
        assert body["instance"] == "/api/v1/users/u1/roles/r1"

    def test_subclass_attributes_become_details(self, request_stub):
        error = InUseError(
            code=ErrorCode.PERMISSION_IN_USE,
            message="Permission is still in use",
            resource_type="Permission",
            resource_id="p1",
            role_count=2,
            user_count=0,
        )

        body = json.loads(ErrorResponseBuilder.from_domain_error(error, request_stub).body)

        assert body["status"] == 409
        assert body["details"]["role_count"] == "2"
        assert body["details"]["resource_id"] == "p1"

    def test_last_role_violation(self, request_stub):
        error = LastRoleViolationError(
            code=ErrorCode.LAST_ROLE_VIOLATION,
            message="Cannot revoke the user's only role",
            user_id="u1",
            role_id="r1",
        )

        response = ErrorResponseBuilder.from_domain_error(error, request_stub)

        assert response.status_code == 409
        assert json.loads(response.body)["title"] == "Resource Conflict"

    def test_not_found_without_field_has_no_errors_list(self, request_stub):
        error = NotFoundError(
            code=ErrorCode.ROLE_NOT_FOUND,
            message="Role not found",
            resource_type="Role",
            resource_id="r1",
        )

        body = json.loads(ErrorResponseBuilder.from_domain_error(error, request_stub).body)

        assert "errors" not in body
        assert body["type"].endswith("/errors/role_not_found")
