"""End-to-end authorization decisions on SQLite + fake Redis.

Each test builds a small catalog and role graph through the services and
asserts on ``AuthorizationService.check``.
"""

import pytest

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.entities import CheckItem
from gatekeeper.domain.enums import CheckMode, ConditionType, DecisionReason, OverrideType


@pytest.mark.integration
class TestRoleGrants:
    @pytest.mark.asyncio
    async def test_accountant_reads_invoices(self, engine):
        read = await engine.permission("invoices", "read")
        await engine.permission("invoices", "delete")
        accountant = await engine.role("ACCOUNTANT", permissions=[read])
        user_id = await engine.user_with(accountant)

        result = await engine.authorization.check(user_id, "invoices", "read")

        assert result.value.allowed is True
        assert result.value.reason is DecisionReason.GRANTED
        assert result.value.source == "role:ACCOUNTANT"
        assert await engine.allowed(user_id, "invoices", "delete") is False

    @pytest.mark.asyncio
    async def test_unknown_permission_is_no_grant(self, engine):
        user_role = await engine.role("MEMBER")
        user_id = await engine.user_with(user_role)

        result = await engine.authorization.check(user_id, "reports", "export")

        assert result.value.allowed is False
        assert result.value.reason is DecisionReason.NO_GRANT

    @pytest.mark.asyncio
    async def test_user_without_roles_has_nothing(self, engine):
        await engine.permission("invoices", "read")

        permissions = await engine.authorization.get_effective_permissions(
            await engine.user_with()
        )

        assert permissions.entries == {}
        assert permissions.role_names == []


@pytest.mark.integration
class TestDirectOverrides:
    @pytest.mark.asyncio
    async def test_direct_deny_beats_role_grant(self, engine):
        read = await engine.permission("invoices", "read")
        accountant = await engine.role("ACCOUNTANT", permissions=[read])
        user_id = await engine.user_with(accountant)

        result = await engine.assignments.set_direct_permission(
            user_id, read.id, OverrideType.DENY, reason="Under investigation"
        )
        decision = (await engine.authorization.check(user_id, "invoices", "read")).value

        assert isinstance(result, Success)
        assert decision.allowed is False
        assert decision.reason is DecisionReason.EXPLICIT_DENY
        assert decision.source == "direct"

    @pytest.mark.asyncio
    async def test_removing_the_deny_restores_the_grant(self, engine):
        read = await engine.permission("invoices", "read")
        accountant = await engine.role("ACCOUNTANT", permissions=[read])
        user_id = await engine.user_with(accountant)
        await engine.assignments.set_direct_permission(user_id, read.id, OverrideType.DENY)
        assert await engine.allowed(user_id, "invoices", "read") is False

        result = await engine.assignments.remove_direct_permission(user_id, read.id)

        assert isinstance(result, Success)
        assert await engine.allowed(user_id, "invoices", "read") is True

    @pytest.mark.asyncio
    async def test_conditional_direct_grant(self, engine):
        clients_read = await engine.permission(
            "clients",
            "read",
            supports_conditions=True,
            allowed_condition_types=[ConditionType.OWN_ORGANIZATION],
        )
        member = await engine.role("MEMBER")
        user_id = await engine.user_with(member)

        result = await engine.assignments.set_direct_permission(
            user_id,
            clients_read.id,
            OverrideType.GRANT,
            conditions=[{"type": "own_organization"}],
        )
        same = await engine.authorization.check(
            user_id, "clients", "read", {"actor_org_id": "org-1", "org_id": "org-1"}
        )
        other = await engine.authorization.check(
            user_id, "clients", "read", {"actor_org_id": "org-1", "org_id": "org-2"}
        )
        missing = await engine.authorization.check(user_id, "clients", "read")

        assert isinstance(result, Success)
        assert same.value.allowed is True
        assert other.value.reason is DecisionReason.CONDITION_FAILED
        assert other.value.failed_condition == "own_organization"
        assert missing.value.allowed is False

    @pytest.mark.asyncio
    async def test_conditions_rejected_on_permission_without_support(self, engine):
        read = await engine.permission("invoices", "read")
        user_id = await engine.user_with(await engine.role("MEMBER"))

        result = await engine.assignments.set_direct_permission(
            user_id, read.id, OverrideType.GRANT, conditions=[{"type": "own_records"}]
        )

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.INVALID_CONDITION

    @pytest.mark.asyncio
    async def test_conditions_rejected_on_deny(self, engine):
        clients_read = await engine.permission("clients", "read", supports_conditions=True)
        user_id = await engine.user_with(await engine.role("MEMBER"))

        result = await engine.assignments.set_direct_permission(
            user_id,
            clients_read.id,
            OverrideType.DENY,
            conditions=[{"type": "own_organization"}],
        )

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.INVALID_CONDITION


@pytest.mark.integration
class TestWildcards:
    @pytest.mark.asyncio
    async def test_wildcard_covers_permissions_created_later(self, engine):
        await engine.permission("invoices", "read")
        wildcard = await engine.permission("invoices", "*")
        clerk = await engine.role("CLERK", permissions=[wildcard])
        user_id = await engine.user_with(clerk)
        assert await engine.allowed(user_id, "invoices", "read") is True

        await engine.permission("invoices", "export")
        decision = (await engine.authorization.check(user_id, "invoices", "export")).value

        assert decision.allowed is True
        assert decision.via_wildcard == "invoices.*"
        assert decision.source == "role:CLERK"

    @pytest.mark.asyncio
    async def test_wildcard_does_not_cross_resources(self, engine):
        wildcard = await engine.permission("invoices", "*")
        await engine.permission("payments", "read")
        clerk = await engine.role("CLERK", permissions=[wildcard])
        user_id = await engine.user_with(clerk)

        assert await engine.allowed(user_id, "payments", "read") is False

    @pytest.mark.asyncio
    async def test_explicit_deny_survives_wildcard_grant(self, engine):
        delete = await engine.permission("invoices", "delete")
        wildcard = await engine.permission("invoices", "*")
        clerk = await engine.role("CLERK", permissions=[wildcard])
        user_id = await engine.user_with(clerk)

        await engine.assignments.set_direct_permission(user_id, delete.id, OverrideType.DENY)

        assert await engine.allowed(user_id, "invoices", "delete") is False
        assert await engine.allowed(user_id, "invoices", "read") is True


@pytest.mark.integration
class TestInheritance:
    @pytest.mark.asyncio
    async def test_local_admin_inherits_admin_minus_denied(self, engine):
        users_read = await engine.permission("users", "read")
        users_delete = await engine.permission("users", "delete")
        admin = await engine.role("ADMIN", permissions=[users_read, users_delete])
        local_admin = await engine.role("LOCAL_ADMIN", parent=admin)
        await engine.roles.deny_role_permission(local_admin.id, users_delete.id)
        admin_user = await engine.user_with(admin)
        local_user = await engine.user_with(local_admin)

        read_decision = (await engine.authorization.check(local_user, "users", "read")).value
        delete_decision = (await engine.authorization.check(local_user, "users", "delete")).value

        assert read_decision.allowed is True
        assert read_decision.source == "role:ADMIN"
        assert delete_decision.reason is DecisionReason.EXPLICIT_DENY
        assert await engine.allowed(admin_user, "users", "delete") is True

    @pytest.mark.asyncio
    async def test_grant_flows_down_three_levels(self, engine):
        read = await engine.permission("reports", "read")
        base = await engine.role("BASE", permissions=[read])
        middle = await engine.role("MIDDLE", parent=base)
        leaf = await engine.role("LEAF", parent=middle)
        user_id = await engine.user_with(leaf)

        decision = (await engine.authorization.check(user_id, "reports", "read")).value

        assert decision.allowed is True
        assert decision.source == "role:BASE"

    @pytest.mark.asyncio
    async def test_grants_do_not_flow_up(self, engine):
        read = await engine.permission("reports", "read")
        base = await engine.role("BASE")
        await engine.role("LEAF", parent=base, permissions=[read])
        user_id = await engine.user_with(base)

        assert await engine.allowed(user_id, "reports", "read") is False

    @pytest.mark.asyncio
    async def test_deny_on_ancestor_reaches_descendants(self, engine):
        read = await engine.permission("reports", "read")
        base = await engine.role("BASE")
        leaf = await engine.role("LEAF", parent=base, permissions=[read])
        await engine.roles.deny_role_permission(base.id, read.id)
        user_id = await engine.user_with(leaf)

        assert await engine.allowed(user_id, "reports", "read") is False


@pytest.mark.integration
class TestBatchChecks:
    @pytest.mark.asyncio
    async def test_all_and_any(self, engine):
        read = await engine.permission("invoices", "read")
        await engine.permission("invoices", "approve")
        accountant = await engine.role("ACCOUNTANT", permissions=[read])
        user_id = await engine.user_with(accountant)
        items = [
            CheckItem(resource="invoices", action="read"),
            CheckItem(resource="invoices", action="approve"),
        ]

        all_result = await engine.authorization.check_many(user_id, items, CheckMode.ALL)
        any_result = await engine.authorization.check_many(user_id, items, CheckMode.ANY)

        assert all_result.value.allowed is False
        assert any_result.value.allowed is True
        assert [d.permission_key for d in all_result.value.results] == [
            "invoices.read",
            "invoices.approve",
        ]
