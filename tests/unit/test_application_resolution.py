"""Unit tests for merge_effective_permissions and decide.

Both are pure: rows in, permission map / decision out. No database.
"""

from datetime import UTC, datetime, timedelta

import pytest
from uuid_extensions import uuid7

from gatekeeper.application.services import merge_effective_permissions
from gatekeeper.application.services.authorization_service import decide
from gatekeeper.domain.entities import (
    Permission,
    PermissionOverride,
    Role,
    RoleAssignment,
    RoleHierarchyEdge,
    RolePermissionDeny,
)
from gatekeeper.domain.enums import DecisionReason, OverrideType, PermissionSource
from gatekeeper.domain.value_objects import OwnOrganization, PermissionKey

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


def make_permission(resource: str, action: str, **kwargs) -> Permission:
    return Permission(
        id=uuid7(), resource=resource, action=action, display_name=f"{resource}.{action}", **kwargs
    )


def make_role(name: str, **kwargs) -> Role:
    return Role(id=uuid7(), name=name, display_name=name.title(), **kwargs)


class Graph:
    """Minimal in-memory role graph for building merge inputs."""

    def __init__(self) -> None:
        self.roles: dict = {}
        self.edges: list[RoleHierarchyEdge] = []
        self.grants: list = []
        self.denies: list[RolePermissionDeny] = []
        self.permissions: dict = {}

    def add_role(self, role: Role, parent: Role | None = None) -> Role:
        self.roles[role.id] = role
        self.edges.append(RoleHierarchyEdge(ancestor_id=role.id, descendant_id=role.id, depth=0))
        if parent is not None:
            for edge in [e for e in self.edges if e.descendant_id == parent.id]:
                self.edges.append(
                    RoleHierarchyEdge(
                        ancestor_id=edge.ancestor_id, descendant_id=role.id, depth=edge.depth + 1
                    )
                )
        return role

    def grant(self, role: Role, permission: Permission) -> None:
        self.permissions[permission.id] = permission
        self.grants.append((role.id, permission.id))

    def deny(self, role: Role, permission: Permission) -> None:
        self.permissions[permission.id] = permission
        self.denies.append(RolePermissionDeny(role_id=role.id, permission_id=permission.id))

    def override(self, user_id, permission, override_type, **kwargs) -> PermissionOverride:
        self.permissions[permission.id] = permission
        return PermissionOverride(
            id=uuid7(),
            user_id=user_id,
            permission_id=permission.id,
            override_type=override_type,
            granted_at=NOW,
            **kwargs,
        )

    def merge(self, user_id, roles, overrides=(), expansions=None):
        assignments = [
            RoleAssignment(id=uuid7(), user_id=user_id, role_id=r.id, granted_at=NOW)
            for r in roles
        ]
        assigned = {r.id for r in roles}
        return merge_effective_permissions(
            user_id=user_id,
            assignments=assignments,
            edges=[e for e in self.edges if e.descendant_id in assigned],
            roles=self.roles,
            grants=self.grants,
            denies=self.denies,
            overrides=list(overrides),
            permissions=dict(self.permissions),
            expansions=expansions or {},
            now=NOW,
        )


@pytest.mark.unit
class TestMergeEffectivePermissions:
    def test_role_grant_is_attributed_to_the_role(self):
        graph = Graph()
        read = make_permission("invoices", "read")
        accountant = graph.add_role(make_role("ACCOUNTANT"))
        graph.grant(accountant, read)
        user_id = uuid7()

        result = graph.merge(user_id, [accountant])

        entry = result.get("invoices.read")
        assert entry.source is PermissionSource.ROLE
        assert entry.source_label == "role:ACCOUNTANT"
        assert result.role_names == ["ACCOUNTANT"]

    def test_inherited_grant_is_attributed_to_the_granting_ancestor(self):
        graph = Graph()
        read = make_permission("invoices", "read")
        a = graph.add_role(make_role("ROLE_A"))
        b = graph.add_role(make_role("ROLE_B"), parent=a)
        c = graph.add_role(make_role("ROLE_C"), parent=b)
        graph.grant(a, read)

        result = graph.merge(uuid7(), [c])

        assert result.get("invoices.read").source_id == a.id
        assert set(result.dependent_role_ids) == {a.id, b.id, c.id}

    def test_nearest_ancestor_wins_attribution(self):
        graph = Graph()
        read = make_permission("invoices", "read")
        a = graph.add_role(make_role("ROLE_A"))
        b = graph.add_role(make_role("ROLE_B"), parent=a)
        graph.grant(a, read)
        graph.grant(b, read)

        result = graph.merge(uuid7(), [b])

        assert result.get("invoices.read").source_name == "ROLE_B"

    def test_inactive_ancestor_contributes_nothing(self):
        graph = Graph()
        read = make_permission("invoices", "read")
        a = graph.add_role(make_role("ROLE_A", is_active=False))
        b = graph.add_role(make_role("ROLE_B"), parent=a)
        graph.grant(a, read)

        result = graph.merge(uuid7(), [b])

        assert result.get("invoices.read") is None

    def test_inactive_permission_is_ignored(self):
        graph = Graph()
        read = make_permission("invoices", "read", is_active=False)
        role = graph.add_role(make_role("ACCOUNTANT"))
        graph.grant(role, read)

        assert graph.merge(uuid7(), [role]).entries == {}

    def test_role_deny_cascades_to_descendants(self):
        graph = Graph()
        delete = make_permission("users", "delete")
        admin = graph.add_role(make_role("ADMIN"))
        local_admin = graph.add_role(make_role("LOCAL_ADMIN"), parent=admin)
        graph.grant(admin, delete)
        graph.deny(local_admin, delete)

        as_local = graph.merge(uuid7(), [local_admin])
        as_admin = graph.merge(uuid7(), [admin])

        assert as_local.get("users.delete").is_denied
        assert not as_admin.get("users.delete").is_denied

    def test_direct_deny_beats_role_grant(self):
        graph = Graph()
        read = make_permission("invoices", "read")
        role = graph.add_role(make_role("ACCOUNTANT"))
        graph.grant(role, read)
        user_id = uuid7()

        result = graph.merge(user_id, [role], [graph.override(user_id, read, OverrideType.DENY)])

        entry = result.get("invoices.read")
        assert entry.is_denied
        assert entry.source is PermissionSource.DIRECT

    def test_direct_grant_never_lifts_a_role_deny(self):
        graph = Graph()
        delete = make_permission("users", "delete")
        admin = graph.add_role(make_role("ADMIN"))
        graph.deny(admin, delete)
        user_id = uuid7()

        grant = graph.override(user_id, delete, OverrideType.GRANT)

        result = graph.merge(user_id, [admin], [grant])

        assert result.get("users.delete").is_denied

    def test_direct_grant_replaces_role_attribution(self):
        graph = Graph()
        read = make_permission("invoices", "read")
        role = graph.add_role(make_role("ACCOUNTANT"))
        graph.grant(role, read)
        user_id = uuid7()

        result = graph.merge(
            user_id,
            [role],
            [graph.override(user_id, read, OverrideType.GRANT, conditions=[OwnOrganization()])],
        )

        entry = result.get("invoices.read")
        assert entry.source is PermissionSource.DIRECT
        assert entry.conditions == [OwnOrganization()]

    def test_expired_override_is_ignored(self):
        graph = Graph()
        read = make_permission("invoices", "read")
        graph.permissions[read.id] = read
        user_id = uuid7()
        expired = graph.override(
            user_id, read, OverrideType.GRANT, expires_at=NOW - timedelta(minutes=1)
        )

        assert graph.merge(user_id, [], [expired]).get("invoices.read") is None

    def test_valid_until_is_earliest_pending_expiry(self):
        graph = Graph()
        read = make_permission("invoices", "read")
        write = make_permission("invoices", "write")
        user_id = uuid7()
        overrides = [
            graph.override(user_id, read, OverrideType.GRANT, expires_at=NOW + timedelta(hours=2)),
            graph.override(user_id, write, OverrideType.DENY, expires_at=NOW + timedelta(hours=1)),
            graph.override(
                user_id, read, OverrideType.GRANT, expires_at=NOW - timedelta(minutes=1)
            ),
        ]

        assert graph.merge(user_id, [], overrides).valid_until == NOW + timedelta(hours=1)

    def test_valid_until_is_none_without_expiries(self):
        graph = Graph()
        accountant = graph.add_role(make_role("ACCOUNTANT"))

        assert graph.merge(uuid7(), [accountant]).valid_until is None

    def test_wildcard_expands_against_catalog(self):
        graph = Graph()
        wildcard = make_permission("invoices", "*")
        export = make_permission("invoices", "export")
        role = graph.add_role(make_role("ACCOUNTANT"))
        graph.grant(role, wildcard)

        result = graph.merge(uuid7(), [role], expansions={"invoices": [wildcard, export]})

        assert result.get("invoices.*") is not None
        expanded = result.get("invoices.export")
        assert expanded.via_wildcard == "invoices.*"
        assert expanded.source_name == "ACCOUNTANT"

    def test_expansion_never_overwrites_explicit_deny(self):
        graph = Graph()
        wildcard = make_permission("invoices", "*")
        export = make_permission("invoices", "export")
        role = graph.add_role(make_role("ACCOUNTANT"))
        graph.grant(role, wildcard)
        user_id = uuid7()

        result = graph.merge(
            user_id,
            [role],
            [graph.override(user_id, export, OverrideType.DENY)],
            expansions={"invoices": [export]},
        )

        assert result.get("invoices.export").is_denied

    def test_denied_wildcard_denies_every_expanded_key(self):
        graph = Graph()
        wildcard = make_permission("invoices", "*")
        read = make_permission("invoices", "read")
        role = graph.add_role(make_role("ACCOUNTANT"))
        graph.grant(role, read)
        user_id = uuid7()

        result = graph.merge(
            user_id,
            [role],
            [graph.override(user_id, wildcard, OverrideType.DENY)],
            expansions={"invoices": [read]},
        )

        assert result.get("invoices.read").is_denied
        assert result.get("invoices.read").via_wildcard == "invoices.*"


@pytest.mark.unit
class TestDecide:
    def _resolve(self, grants=(), overrides=(), catalog=()):
        """Resolve a user holding ACCOUNTANT with ``grants`` plus direct ``overrides``.

        ``overrides`` holds ``(override_type, permission, extra_fields)``; ``catalog``
        adds active permissions that exist but are not granted.
        """
        graph = Graph()
        role = graph.add_role(make_role("ACCOUNTANT"))
        user_id = uuid7()
        for permission in grants:
            graph.grant(role, permission)
        direct = [
            graph.override(user_id, permission, override_type, **extra)
            for override_type, permission, extra in overrides
        ]
        expansions: dict = {}
        for permission in [*graph.permissions.values(), *catalog]:
            expansions.setdefault(permission.resource, []).append(permission)
        return graph.merge(user_id, [role], direct, expansions)

    def test_granted(self):
        permissions = self._resolve(grants=[make_permission("invoices", "read")])

        decision = decide(permissions, PermissionKey("invoices", "read"))

        assert decision.allowed
        assert decision.reason is DecisionReason.GRANTED
        assert decision.source == "role:ACCOUNTANT"
        assert decision.via_wildcard is None

    def test_no_grant(self):
        decision = decide(self._resolve(), PermissionKey("invoices", "read"))

        assert not decision.allowed
        assert decision.reason is DecisionReason.NO_GRANT
        assert decision.source is None

    def test_explicit_deny(self):
        read = make_permission("invoices", "read")
        permissions = self._resolve(grants=[read], overrides=[(OverrideType.DENY, read, {})])

        decision = decide(permissions, PermissionKey("invoices", "read"))

        assert not decision.allowed
        assert decision.reason is DecisionReason.EXPLICIT_DENY
        assert decision.source == "direct"

    def test_condition_failed_reports_condition_type(self):
        read = make_permission("clients", "read", supports_conditions=True)
        permissions = self._resolve(
            overrides=[(OverrideType.GRANT, read, {"conditions": [OwnOrganization()]})]
        )
        key = PermissionKey("clients", "read")

        denied = decide(permissions, key, {"orgId": "A", "actorOrgId": "B"})
        allowed = decide(permissions, key, {"orgId": "A", "actorOrgId": "A"})

        assert denied.reason is DecisionReason.CONDITION_FAILED
        assert denied.failed_condition == "own_organization"
        assert allowed.allowed
        assert allowed.reason is DecisionReason.GRANTED

    def test_expanded_entry_reports_its_wildcard(self):
        permissions = self._resolve(
            grants=[make_permission("reports", "*")],
            catalog=[make_permission("reports", "view")],
        )

        decision = decide(permissions, PermissionKey("reports", "view"))

        assert decision.allowed
        assert decision.matched_key == "reports.view"
        assert decision.via_wildcard == "reports.*"

    def test_wildcard_fallback_for_key_missing_from_catalog(self):
        permissions = self._resolve(grants=[make_permission("reports", "*")])

        decision = decide(permissions, PermissionKey("reports", "archive"))

        assert decision.allowed
        assert decision.matched_key == "reports.*"
        assert decision.via_wildcard == "reports.*"

    def test_explicit_entry_takes_precedence_over_wildcard_expansion(self):
        view = make_permission("reports", "view")
        permissions = self._resolve(
            grants=[make_permission("reports", "*")],
            overrides=[(OverrideType.GRANT, view, {})],
        )

        decision = decide(permissions, PermissionKey("reports", "view"))

        assert decision.allowed
        assert decision.source == "direct"
        assert decision.via_wildcard is None
