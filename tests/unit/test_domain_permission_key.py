"""Unit tests for PermissionKey and token validation."""

import pytest

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.value_objects import PermissionKey, validate_role_name


@pytest.mark.unit
class TestPermissionKey:
    def test_string_form_is_resource_dot_action(self):
        assert str(PermissionKey("invoices", "read")) == "invoices.read"

    def test_wildcard_key(self):
        key = PermissionKey("invoices", "read")

        assert not key.is_wildcard
        assert key.wildcard() == PermissionKey("invoices", "*")
        assert key.wildcard().is_wildcard

    @pytest.mark.parametrize(
        ("resource", "action"),
        [("invoices", "read"), ("client_notes", "export_v2"), ("users", "*")],
    )
    def test_create_accepts_valid_tokens(self, resource, action):
        result = PermissionKey.create(resource, action)

        assert isinstance(result, Success)
        assert result.value == PermissionKey(resource, action)

    @pytest.mark.parametrize(
        "resource", ["Invoices", "1invoices", "invoice-s", "", "a" * 101, "invoices\n"]
    )
    def test_create_rejects_malformed_resource(self, resource):
        result = PermissionKey.create(resource, "read")

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.INVALID_RESOURCE
        assert result.error.field == "resource"

    @pytest.mark.parametrize("action", ["Read", "re ad", "**", "", "a" * 51, "read\n", "*\n"])
    def test_create_rejects_malformed_action(self, action):
        result = PermissionKey.create("invoices", action)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.INVALID_ACTION

    def test_parse_round_trips_string_form(self):
        result = PermissionKey.parse("invoices.export")

        assert isinstance(result, Success)
        assert result.value == PermissionKey("invoices", "export")

    def test_parse_requires_separator(self):
        result = PermissionKey.parse("invoices")

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.VALIDATION_FAILED


@pytest.mark.unit
class TestRoleNameValidation:
    @pytest.mark.parametrize("name", ["ADMIN", "LOCAL_ADMIN", "R2", "SUPER_ADMIN_2"])
    def test_accepts_upper_snake_case(self, name):
        assert isinstance(validate_role_name(name), Success)

    @pytest.mark.parametrize(
        "name", ["admin", "A", "_ADMIN", "LOCAL-ADMIN", "2ADMIN", "A" * 101, "ADMIN\n"]
    )
    def test_rejects_other_formats(self, name):
        result = validate_role_name(name)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.INVALID_ROLE_NAME
