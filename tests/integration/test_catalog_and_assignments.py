"""Permission catalog, role assignments and direct overrides."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import update

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.enums import OverrideType
from gatekeeper.infrastructure.persistence.models import UserPermissionModel, UserRoleModel
from gatekeeper.infrastructure.persistence.repositories import (
    PermissionRepository,
    RoleAssignmentRepository,
    RoleRepository,
)


@pytest.mark.integration
class TestCatalog:
    @pytest.mark.asyncio
    async def test_duplicate_active_key(self, engine):
        await engine.permission("invoices", "read")

        result = await engine.catalog.create_permission(
            resource="invoices", action="read", display_name="Read invoices"
        )

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.PERMISSION_ALREADY_EXISTS

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "resource,action,code",
        [
            ("Invoices", "read", ErrorCode.INVALID_RESOURCE),
            ("invoices", "read-all", ErrorCode.INVALID_ACTION),
            ("", "read", ErrorCode.INVALID_RESOURCE),
        ],
    )
    async def test_malformed_key(self, engine, resource, action, code):
        result = await engine.catalog.create_permission(
            resource=resource, action=action, display_name="Bad"
        )

        assert isinstance(result, Failure)
        assert result.error.code is code

    @pytest.mark.asyncio
    async def test_deactivate_in_use_needs_force(self, engine):
        read = await engine.permission("invoices", "read")
        await engine.role("ACCOUNTANT", permissions=[read])

        usage = (await engine.catalog.get_usage(read.id)).value
        rejected = await engine.catalog.deactivate_permission(read.id)
        forced = await engine.catalog.deactivate_permission(read.id, force=True)

        assert usage.role_count == 1
        assert isinstance(rejected, Failure)
        assert rejected.error.code is ErrorCode.PERMISSION_IN_USE
        assert isinstance(forced, Success)
        assert forced.value.is_active is False
        assert (await engine.catalog.get_usage(read.id)).value.role_count == 0

    @pytest.mark.asyncio
    async def test_expired_override_does_not_block_deactivation(self, engine, test_database):
        read = await engine.permission("invoices", "read")
        user_id = await engine.user_with(await engine.role("USER"))
        await engine.assignments.set_direct_permission(
            user_id,
            read.id,
            OverrideType.GRANT,
            expires_at=datetime.now(UTC) + timedelta(hours=1),
        )
        assert (await engine.catalog.get_usage(read.id)).value.user_count == 1

        async with test_database.get_session() as session:
            await session.execute(
                update(UserPermissionModel)
                .where(UserPermissionModel.permission_id == read.id)
                .values(expires_at=datetime.now(UTC) - timedelta(minutes=1))
            )

        assert (await engine.catalog.get_usage(read.id)).value.user_count == 0
        result = await engine.catalog.deactivate_permission(read.id)
        assert isinstance(result, Success)
        assert result.value.is_active is False

    @pytest.mark.asyncio
    async def test_deactivated_key_can_be_recreated(self, engine):
        read = await engine.permission("invoices", "read")
        await engine.catalog.deactivate_permission(read.id)

        result = await engine.catalog.create_permission(
            resource="invoices", action="read", display_name="Read invoices"
        )

        assert isinstance(result, Success)
        assert result.value.id != read.id

    @pytest.mark.asyncio
    async def test_system_permission_is_immutable(self, engine):
        read = await engine.permission("roles", "read", is_system=True)

        updated = await engine.catalog.update_permission(read.id, display_name="Other")
        deactivated = await engine.catalog.deactivate_permission(read.id, force=True)

        assert updated.error.code is ErrorCode.SYSTEM_PERMISSION_IMMUTABLE
        assert deactivated.error.code is ErrorCode.SYSTEM_PERMISSION_IMMUTABLE

    @pytest.mark.asyncio
    async def test_inactive_permission_cannot_be_granted(self, engine):
        read = await engine.permission("invoices", "read")
        await engine.catalog.deactivate_permission(read.id)

        result = await engine.roles.create_role(
            name="CLERK", display_name="Clerk", permission_ids=[read.id]
        )

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.PERMISSION_INACTIVE

    @pytest.mark.asyncio
    async def test_wildcard_resolves_to_concrete_keys(self, engine):
        await engine.permission("invoices", "read")
        await engine.permission("invoices", "export")
        await engine.permission("invoices", "*")
        await engine.permission("payments", "read")

        concrete = (await engine.catalog.resolve_wildcard("invoices")).value

        assert sorted(str(p.key) for p in concrete) == ["invoices.export", "invoices.read"]


@pytest.mark.integration
class TestRoleAssignments:
    @pytest.mark.asyncio
    async def test_second_active_assignment_is_rejected(self, engine):
        clerk = await engine.role("CLERK")
        user_id = await engine.user_with(clerk)

        result = await engine.assignments.assign_role(user_id, clerk.id)

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.ASSIGNMENT_ALREADY_ACTIVE

    @pytest.mark.asyncio
    async def test_past_expiry_is_rejected(self, engine):
        clerk = await engine.role("CLERK")
        yesterday = datetime.now(UTC) - timedelta(days=1)

        result = await engine.assignments.assign_role(
            await engine.user_with(), clerk.id, expires_at=yesterday
        )

        assert isinstance(result, Failure)
        assert result.error.field == "expires_at"

    @pytest.mark.asyncio
    async def test_cannot_revoke_last_role(self, engine):
        user_role = await engine.role("USER")
        user_id = await engine.user_with(user_role)

        result = await engine.assignments.revoke_role(user_id, user_role.id, "Offboarding")

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.LAST_ROLE_VIOLATION
        assert [v.role.name for v in await engine.assignments.get_user_roles(user_id)] == [
            "USER"
        ]

    @pytest.mark.asyncio
    async def test_revoke_one_of_two_roles(self, engine):
        read = await engine.permission("invoices", "read")
        user_role = await engine.role("USER")
        accountant = await engine.role("ACCOUNTANT", permissions=[read])
        user_id = await engine.user_with(user_role, accountant)
        assert await engine.allowed(user_id, "invoices", "read") is True

        result = await engine.assignments.revoke_role(user_id, accountant.id, "Changed teams")

        assert isinstance(result, Success)
        assert result.value.revoke_reason == "Changed teams"
        assert await engine.allowed(user_id, "invoices", "read") is False
        assert [v.role.name for v in await engine.assignments.get_user_roles(user_id)] == [
            "USER"
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", ["", "    ", "nope", "x" * 501])
    async def test_revoke_reason_length(self, engine, reason):
        user_role = await engine.role("USER")
        clerk = await engine.role("CLERK")
        user_id = await engine.user_with(user_role, clerk)

        result = await engine.assignments.revoke_role(user_id, clerk.id, reason)

        assert isinstance(result, Failure)
        assert result.error.field == "reason"

    @pytest.mark.asyncio
    async def test_cannot_assign_inactive_role(self, engine):
        clerk = await engine.role("CLERK")
        await engine.roles.deactivate_role(clerk.id)

        result = await engine.assignments.assign_role(await engine.user_with(), clerk.id)

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.ROLE_INACTIVE

    @pytest.mark.asyncio
    async def test_expired_assignment_stops_granting(self, uncached_engine, test_database):
        engine = uncached_engine
        read = await engine.permission("invoices", "read")
        user_role = await engine.role("USER")
        temp = await engine.role("TEMP", permissions=[read])
        user_id = await engine.user_with(user_role)
        await engine.assignments.assign_role(
            user_id, temp.id, expires_at=datetime.now(UTC) + timedelta(hours=1)
        )
        assert await engine.allowed(user_id, "invoices", "read") is True

        async with test_database.get_session() as session:
            await session.execute(
                update(UserRoleModel)
                .where(UserRoleModel.role_id == temp.id)
                .values(expires_at=datetime.now(UTC) - timedelta(minutes=1))
            )

        assert await engine.allowed(user_id, "invoices", "read") is False

    @pytest.mark.asyncio
    async def test_expiring_assignment_stops_granting_through_cache(self, engine):
        read = await engine.permission("invoices", "read")
        user_role = await engine.role("USER")
        temp = await engine.role("TEMP", permissions=[read])
        user_id = await engine.user_with(user_role)
        await engine.assignments.assign_role(
            user_id, temp.id, expires_at=datetime.now(UTC) + timedelta(seconds=2)
        )
        assert await engine.allowed(user_id, "invoices", "read") is True

        await asyncio.sleep(2.2)

        assert await engine.allowed(user_id, "invoices", "read") is False

    @pytest.mark.asyncio
    async def test_expiring_override_stops_granting_through_cache(self, engine):
        read = await engine.permission("invoices", "read")
        user_id = await engine.user_with(await engine.role("USER"))
        await engine.assignments.set_direct_permission(
            user_id,
            read.id,
            OverrideType.GRANT,
            expires_at=datetime.now(UTC) + timedelta(seconds=2),
        )
        assert await engine.allowed(user_id, "invoices", "read") is True

        await asyncio.sleep(2.2)

        assert await engine.allowed(user_id, "invoices", "read") is False


@pytest.mark.integration
class TestDirectOverrideLifecycle:
    @pytest.mark.asyncio
    async def test_set_is_an_upsert(self, engine):
        read = await engine.permission("invoices", "read")
        user_id = await engine.user_with(await engine.role("USER"))

        await engine.assignments.set_direct_permission(user_id, read.id, OverrideType.DENY)
        await engine.assignments.set_direct_permission(user_id, read.id, OverrideType.GRANT)

        overrides = await engine.assignments.get_user_overrides(user_id)
        assert len(overrides) == 1
        assert overrides[0].override.override_type is OverrideType.GRANT
        assert await engine.allowed(user_id, "invoices", "read") is True

    @pytest.mark.asyncio
    async def test_remove_missing_override(self, engine):
        read = await engine.permission("invoices", "read")

        result = await engine.assignments.remove_direct_permission(
            await engine.user_with(), read.id
        )

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.OVERRIDE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_expired_override_is_ignored_and_listed_on_request(
        self, uncached_engine, test_database
    ):
        engine = uncached_engine
        read = await engine.permission("invoices", "read")
        user_id = await engine.user_with(await engine.role("USER"))
        await engine.assignments.set_direct_permission(
            user_id,
            read.id,
            OverrideType.GRANT,
            expires_at=datetime.now(UTC) + timedelta(hours=1),
        )
        assert await engine.allowed(user_id, "invoices", "read") is True

        async with test_database.get_session() as session:
            await session.execute(
                update(UserPermissionModel)
                .where(UserPermissionModel.user_id == user_id)
                .values(expires_at=datetime.now(UTC) - timedelta(minutes=1))
            )

        assert await engine.allowed(user_id, "invoices", "read") is False
        assert await engine.assignments.get_user_overrides(user_id) == []
        listed = await engine.assignments.get_user_overrides(user_id, include_expired=True)
        assert len(listed) == 1
        assert listed[0].is_expired is True


@pytest.mark.integration
class TestLookups:
    @pytest.mark.asyncio
    async def test_permission_by_key_finds_active_only(self, engine):
        read = await engine.permission("invoices", "read")

        found = await engine.catalog.get_permission_by_key("invoices", "read")
        await engine.catalog.deactivate_permission(read.id)
        gone = await engine.catalog.get_permission_by_key("invoices", "read")

        assert found.value.id == read.id
        assert gone.error.code is ErrorCode.PERMISSION_NOT_FOUND

    @pytest.mark.asyncio
    async def test_permission_by_malformed_key(self, engine):
        result = await engine.catalog.get_permission_by_key("Invoices", "read")

        assert result.error.code is ErrorCode.INVALID_RESOURCE

    @pytest.mark.asyncio
    async def test_role_by_name_counts_active_users(self, engine):
        clerk = await engine.role("CLERK")
        await engine.user_with(clerk)
        await engine.user_with(clerk)

        found = await engine.roles.get_role_by_name("CLERK")
        missing = await engine.roles.get_role_by_name("AUDITOR")

        assert found.value.role.id == clerk.id
        assert found.value.active_user_count == 2
        assert missing.error.code is ErrorCode.ROLE_NOT_FOUND


async def never_found(*args, **kwargs):
    return None


@pytest.mark.integration
class TestUniqueIndexRaces:
    """A create whose duplicate check ran before a concurrent commit."""

    @pytest.mark.asyncio
    async def test_assignment_lost_to_unique_index(self, engine, monkeypatch):
        clerk = await engine.role("CLERK")
        user_id = await engine.user_with(clerk)
        monkeypatch.setattr(RoleAssignmentRepository, "get_active", never_found)

        result = await engine.assignments.assign_role(user_id, clerk.id)

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.ASSIGNMENT_ALREADY_ACTIVE
        assert len(await engine.assignments.get_user_roles(user_id)) == 1

    @pytest.mark.asyncio
    async def test_permission_lost_to_unique_index(self, engine, monkeypatch):
        await engine.permission("invoices", "read")
        monkeypatch.setattr(PermissionRepository, "get_active_by_key", never_found)

        result = await engine.catalog.create_permission(
            resource="invoices", action="read", display_name="Read invoices"
        )

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.PERMISSION_ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_role_lost_to_unique_index(self, engine, monkeypatch):
        await engine.role("AUDITOR")
        monkeypatch.setattr(RoleRepository, "get_by_name", never_found)

        result = await engine.roles.create_role(name="AUDITOR", display_name="Again")

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.ROLE_ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_concurrent_assignments_of_same_role(self, engine):
        user_role = await engine.role("USER")
        clerk = await engine.role("CLERK")
        user_id = await engine.user_with(user_role)

        results = await asyncio.gather(
            engine.assignments.assign_role(user_id, clerk.id),
            engine.assignments.assign_role(user_id, clerk.id),
        )

        assert sum(isinstance(r, Success) for r in results) == 1
        rejected = next(r for r in results if isinstance(r, Failure))
        assert rejected.error.code is ErrorCode.ASSIGNMENT_ALREADY_ACTIVE
