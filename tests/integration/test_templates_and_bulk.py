"""Permission templates and bulk permission assignment."""

import pytest
from uuid_extensions import uuid7

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.enums import BulkOperation, BulkTargetType, OverrideType, TemplateApplyMode


@pytest.mark.integration
class TestTemplates:
    @pytest.mark.asyncio
    async def test_create_and_list(self, engine):
        read = await engine.permission("invoices", "read")

        created = await engine.templates.create_template(
            name="Accounting basics", permission_ids=[read.id]
        )
        duplicate = await engine.templates.create_template(
            name="Accounting basics", permission_ids=[read.id]
        )

        assert isinstance(created, Success)
        assert created.value.permission_ids == [read.id]
        assert duplicate.error.code is ErrorCode.TEMPLATE_ALREADY_EXISTS
        assert [t.name for t in await engine.templates.list_templates()] == ["Accounting basics"]

    @pytest.mark.asyncio
    async def test_merge_keeps_existing_grants(self, engine):
        read = await engine.permission("invoices", "read")
        export = await engine.permission("invoices", "export")
        clerk = await engine.role("CLERK", permissions=[read])
        template = (
            await engine.templates.create_template(name="Exports", permission_ids=[export.id])
        ).value

        change = (
            await engine.templates.apply_template(template.id, clerk.id, TemplateApplyMode.MERGE)
        ).value

        assert change.added == [export.id]
        assert change.removed == []
        own = (await engine.roles.get_role_permissions(clerk.id)).value
        assert sorted(v.permission_key for v in own) == ["invoices.export", "invoices.read"]

    @pytest.mark.asyncio
    async def test_replace_removes_other_grants(self, engine):
        read = await engine.permission("invoices", "read")
        export = await engine.permission("invoices", "export")
        clerk = await engine.role("CLERK", permissions=[read])
        user_id = await engine.user_with(clerk)
        template = (
            await engine.templates.create_template(name="Exports", permission_ids=[export.id])
        ).value

        change = (
            await engine.templates.apply_template(template.id, clerk.id, TemplateApplyMode.REPLACE)
        ).value

        assert change.removed == [read.id]
        assert change.affected_user_ids == [user_id]
        assert await engine.allowed(user_id, "invoices", "read") is False
        assert await engine.allowed(user_id, "invoices", "export") is True

    @pytest.mark.asyncio
    async def test_apply_to_system_role_is_rejected(self, engine):
        read = await engine.permission("invoices", "read")
        system = await engine.role("ADMIN", is_system=True)
        template = (
            await engine.templates.create_template(name="Reads", permission_ids=[read.id])
        ).value

        result = await engine.templates.apply_template(template.id, system.id)

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.SYSTEM_ROLE_IMMUTABLE


@pytest.mark.integration
class TestBulkAssignment:
    @pytest.mark.asyncio
    async def test_add_to_role_reports_unchanged(self, engine):
        read = await engine.permission("invoices", "read")
        export = await engine.permission("invoices", "export")
        clerk = await engine.role("CLERK", permissions=[read])

        result = await engine.bulk.bulk_assign(
            BulkTargetType.ROLE, clerk.id, [read.id, export.id], BulkOperation.ADD
        )

        assert result.value.changed_permission_ids == [export.id]
        assert result.value.unchanged_permission_ids == [read.id]

    @pytest.mark.asyncio
    async def test_remove_from_role(self, engine):
        read = await engine.permission("invoices", "read")
        clerk = await engine.role("CLERK", permissions=[read])
        user_id = await engine.user_with(clerk)
        assert await engine.allowed(user_id, "invoices", "read") is True

        result = await engine.bulk.bulk_assign(
            BulkTargetType.ROLE, clerk.id, [read.id], BulkOperation.REMOVE
        )

        assert result.value.changed_permission_ids == [read.id]
        assert await engine.allowed(user_id, "invoices", "read") is False

    @pytest.mark.asyncio
    async def test_add_to_user_creates_grant_overrides(self, engine):
        read = await engine.permission("invoices", "read")
        export = await engine.permission("invoices", "export")
        user_id = await engine.user_with(await engine.role("USER"))

        result = await engine.bulk.bulk_assign(
            BulkTargetType.USER, user_id, [read.id, export.id], BulkOperation.ADD
        )

        assert isinstance(result, Success)
        overrides = await engine.assignments.get_user_overrides(user_id)
        assert {o.override.override_type for o in overrides} == {OverrideType.GRANT}
        assert await engine.allowed(user_id, "invoices", "export") is True

    @pytest.mark.asyncio
    async def test_unknown_permission_rejects_whole_batch(self, engine):
        read = await engine.permission("invoices", "read")
        clerk = await engine.role("CLERK")

        result = await engine.bulk.bulk_assign(
            BulkTargetType.ROLE, clerk.id, [read.id, uuid7()], BulkOperation.ADD
        )

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.PERMISSION_NOT_FOUND
        assert (await engine.roles.get_role_permissions(clerk.id)).value == []

    @pytest.mark.asyncio
    async def test_empty_request(self, engine):
        clerk = await engine.role("CLERK")

        result = await engine.bulk.bulk_assign(BulkTargetType.ROLE, clerk.id, [], BulkOperation.ADD)

        assert isinstance(result, Failure)
        assert result.error.field == "permission_ids"
