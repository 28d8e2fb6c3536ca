"""Role hierarchy and role administration against the database."""

import asyncio

import pytest

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Success


def names_by_depth(lineage) -> list[tuple[str, int]]:
    return sorted(((item.role.name, item.depth) for item in lineage), key=lambda x: x[1])


@pytest.mark.integration
class TestClosure:
    @pytest.mark.asyncio
    async def test_ancestors_and_descendants_are_transitive(self, engine):
        top = await engine.role("TOP")
        middle = await engine.role("MIDDLE", parent=top)
        leaf = await engine.role("LEAF", parent=middle)

        ancestors = (await engine.roles.get_ancestors(leaf.id)).value
        descendants = (await engine.roles.get_descendants(top.id, include_self=True)).value

        assert names_by_depth(ancestors) == [("MIDDLE", 1), ("TOP", 2)]
        assert names_by_depth(descendants) == [("TOP", 0), ("MIDDLE", 1), ("LEAF", 2)]

    @pytest.mark.asyncio
    async def test_inherited_permissions_name_their_source(self, engine):
        read = await engine.permission("reports", "read")
        write = await engine.permission("reports", "write")
        top = await engine.role("TOP", permissions=[read])
        leaf = await engine.role("LEAF", parent=top, permissions=[write])

        views = (await engine.roles.get_role_permissions(leaf.id)).value
        own = (await engine.roles.get_role_permissions(leaf.id, include_inherited=False)).value

        by_key = {v.permission_key: v for v in views}
        assert by_key["reports.read"].inherited_from == top.id
        assert by_key["reports.read"].inherited_from_name == "TOP"
        assert by_key["reports.write"].inherited_from is None
        assert [v.permission_key for v in own] == ["reports.write"]


@pytest.mark.integration
class TestReparent:
    @pytest.mark.asyncio
    async def test_cycle_is_rejected_and_graph_unchanged(self, engine):
        top = await engine.role("TOP")
        middle = await engine.role("MIDDLE", parent=top)
        leaf = await engine.role("LEAF", parent=middle)

        onto_descendant = await engine.roles.reparent_role(top.id, leaf.id)
        onto_self = await engine.roles.reparent_role(top.id, top.id)

        assert isinstance(onto_descendant, Failure)
        assert onto_descendant.error.code is ErrorCode.CYCLIC_HIERARCHY
        assert isinstance(onto_self, Failure)
        ancestors = (await engine.roles.get_ancestors(leaf.id)).value
        assert names_by_depth(ancestors) == [("MIDDLE", 1), ("TOP", 2)]

    @pytest.mark.asyncio
    async def test_subtree_moves_with_its_root(self, engine):
        old_parent = await engine.role("OLD_PARENT")
        new_parent = await engine.role("NEW_PARENT")
        middle = await engine.role("MIDDLE", parent=old_parent)
        leaf = await engine.role("LEAF", parent=middle)

        result = await engine.roles.reparent_role(middle.id, new_parent.id)

        assert isinstance(result, Success)
        ancestors = (await engine.roles.get_ancestors(leaf.id)).value
        assert names_by_depth(ancestors) == [("MIDDLE", 1), ("NEW_PARENT", 2)]

    @pytest.mark.asyncio
    async def test_reparent_changes_effective_permissions(self, engine):
        read = await engine.permission("reports", "read")
        granting = await engine.role("GRANTING", permissions=[read])
        leaf = await engine.role("LEAF")
        user_id = await engine.user_with(leaf)
        assert await engine.allowed(user_id, "reports", "read") is False

        await engine.roles.reparent_role(leaf.id, granting.id)
        assert await engine.allowed(user_id, "reports", "read") is True

        await engine.roles.reparent_role(leaf.id, None)
        assert await engine.allowed(user_id, "reports", "read") is False

    @pytest.mark.asyncio
    async def test_crossing_moves_cannot_form_a_cycle(self, engine):
        alpha = await engine.role("ALPHA")
        beta = await engine.role("BETA")

        results = await asyncio.gather(
            engine.roles.reparent_role(alpha.id, beta.id),
            engine.roles.reparent_role(beta.id, alpha.id),
        )

        assert sum(isinstance(r, Success) for r in results) == 1
        rejected = next(r for r in results if isinstance(r, Failure))
        assert rejected.error.code is ErrorCode.CYCLIC_HIERARCHY
        alpha_up = {i.role.name for i in (await engine.roles.get_ancestors(alpha.id)).value}
        beta_up = {i.role.name for i in (await engine.roles.get_ancestors(beta.id)).value}
        assert not ("BETA" in alpha_up and "ALPHA" in beta_up)
        assert len(alpha_up | beta_up) == 1


@pytest.mark.integration
class TestRoleAdministration:
    @pytest.mark.asyncio
    async def test_duplicate_role_name(self, engine):
        await engine.role("AUDITOR")

        result = await engine.roles.create_role(name="AUDITOR", display_name="Again")

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.ROLE_ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_invalid_role_name(self, engine):
        result = await engine.roles.create_role(name="auditor team", display_name="Auditors")

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.INVALID_ROLE_NAME

    @pytest.mark.asyncio
    async def test_system_role_is_immutable(self, engine):
        read = await engine.permission("reports", "read")
        system = await engine.role("SUPER_ADMIN", is_system=True)

        updated = await engine.roles.update_role(system.id, display_name="Renamed")
        granted = await engine.roles.set_role_permissions(system.id, [read.id])
        deactivated = await engine.roles.deactivate_role(system.id)

        for result in (updated, granted, deactivated):
            assert isinstance(result, Failure)
            assert result.error.code is ErrorCode.SYSTEM_ROLE_IMMUTABLE

    @pytest.mark.asyncio
    async def test_deactivate_assigned_role_is_rejected(self, engine):
        clerk = await engine.role("CLERK")
        await engine.user_with(clerk)

        result = await engine.roles.deactivate_role(clerk.id)

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.ROLE_IN_USE
        assert result.error.user_count == 1

    @pytest.mark.asyncio
    async def test_deactivated_ancestor_stops_granting_to_descendant_users(self, engine):
        read = await engine.permission("reports", "read")
        top = await engine.role("TOP", permissions=[read])
        leaf = await engine.role("LEAF", parent=top)
        user_id = await engine.user_with(leaf)
        assert await engine.allowed(user_id, "reports", "read") is True

        result = await engine.roles.deactivate_role(top.id)

        assert isinstance(result, Success)
        assert result.value.is_active is False
        assert await engine.allowed(user_id, "reports", "read") is False

    @pytest.mark.asyncio
    async def test_set_role_permissions_reports_diff(self, engine):
        read = await engine.permission("reports", "read")
        write = await engine.permission("reports", "write")
        clerk = await engine.role("CLERK", permissions=[read])
        user_id = await engine.user_with(clerk)

        change = (await engine.roles.set_role_permissions(clerk.id, [write.id])).value

        assert change.added == [write.id]
        assert change.removed == [read.id]
        assert change.affected_user_ids == [user_id]
        assert await engine.allowed(user_id, "reports", "read") is False
        assert await engine.allowed(user_id, "reports", "write") is True

    @pytest.mark.asyncio
    async def test_removing_role_deny_restores_inherited_grant(self, engine):
        read = await engine.permission("reports", "read")
        top = await engine.role("TOP", permissions=[read])
        leaf = await engine.role("LEAF", parent=top)
        await engine.roles.deny_role_permission(leaf.id, read.id)
        user_id = await engine.user_with(leaf)
        assert await engine.allowed(user_id, "reports", "read") is False

        result = await engine.roles.remove_role_permission_deny(leaf.id, read.id)

        assert isinstance(result, Success)
        assert await engine.allowed(user_id, "reports", "read") is True
