"""create_authorization_schema

Revision ID: 3f6c2a91d0b4
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f6c2a91d0b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True, nullable=False)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    """Create catalog, role graph, assignment, template and audit tables."""
    # Permission catalog
    op.create_table(
        "permissions",
        _id(),
        _created_at(),
        _updated_at(),
        sa.Column("resource", sa.String(length=100), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("module", sa.String(length=100), nullable=True),
        sa.Column("is_system", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "depends_on",
            sa.JSON(),
            nullable=False,
            comment="Permission keys this permission requires (informational)",
        ),
        sa.Column("supports_conditions", sa.Boolean(), nullable=False),
        sa.Column("allowed_condition_types", sa.JSON(), nullable=False),
    )
    op.create_index("ix_permissions_resource", "permissions", ["resource"])
    op.create_index("ix_permissions_module", "permissions", ["module"])
    op.create_index(
        "uq_permissions_active_key",
        "permissions",
        ["resource", "action"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active"),
    )

    # Roles and hierarchy closure
    op.create_table(
        "roles",
        _id(),
        _created_at(),
        _updated_at(),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_system", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("parent_role_id", sa.Uuid(), sa.ForeignKey("roles.id"), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
    )
    op.create_index("ix_roles_parent_role_id", "roles", ["parent_role_id"])

    op.create_table(
        "role_hierarchy",
        _id(),
        _created_at(),
        sa.Column(
            "ancestor_id",
            sa.Uuid(),
            sa.ForeignKey("roles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "descendant_id",
            sa.Uuid(),
            sa.ForeignKey("roles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("depth", sa.Integer(), nullable=False, comment="0 for the self-edge"),
        sa.UniqueConstraint("ancestor_id", "descendant_id", name="uq_role_hierarchy_pair"),
    )
    op.create_index("ix_role_hierarchy_ancestor_id", "role_hierarchy", ["ancestor_id"])
    op.create_index("ix_role_hierarchy_descendant_id", "role_hierarchy", ["descendant_id"])

    op.create_table(
        "role_permissions",
        _id(),
        _created_at(),
        sa.Column(
            "role_id", sa.Uuid(), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "permission_id",
            sa.Uuid(),
            sa.ForeignKey("permissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("granted_by", sa.Uuid(), nullable=True),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_pair"),
    )
    op.create_index("ix_role_permissions_role_id", "role_permissions", ["role_id"])
    op.create_index("ix_role_permissions_permission_id", "role_permissions", ["permission_id"])

    op.create_table(
        "role_permission_overrides",
        _id(),
        _created_at(),
        sa.Column(
            "role_id", sa.Uuid(), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "permission_id",
            sa.Uuid(),
            sa.ForeignKey("permissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("override_type", sa.String(length=20), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.UniqueConstraint(
            "role_id", "permission_id", name="uq_role_permission_overrides_pair"
        ),
    )
    op.create_index(
        "ix_role_permission_overrides_role_id", "role_permission_overrides", ["role_id"]
    )
    op.create_index(
        "ix_role_permission_overrides_permission_id",
        "role_permission_overrides",
        ["permission_id"],
    )

    # User assignments
    op.create_table(
        "user_roles",
        _id(),
        _created_at(),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role_id", sa.Uuid(), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("granted_by", sa.Uuid(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_by", sa.Uuid(), nullable=True),
        sa.Column("revoke_reason", sa.String(length=500), nullable=True),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])
    op.create_index("ix_user_roles_role_id", "user_roles", ["role_id"])
    op.create_index(
        "uq_user_roles_unrevoked",
        "user_roles",
        ["user_id", "role_id"],
        unique=True,
        postgresql_where=sa.text("revoked_at IS NULL"),
        sqlite_where=sa.text("revoked_at IS NULL"),
    )

    op.create_table(
        "user_permissions",
        _id(),
        _created_at(),
        _updated_at(),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column(
            "permission_id",
            sa.Uuid(),
            sa.ForeignKey("permissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("override_type", sa.String(length=20), nullable=False, comment="GRANT or DENY"),
        sa.Column("conditions", sa.JSON(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("granted_by", sa.Uuid(), nullable=True),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(length=500), nullable=True),
        sa.UniqueConstraint("user_id", "permission_id", name="uq_user_permissions_pair"),
    )
    op.create_index("ix_user_permissions_user_id", "user_permissions", ["user_id"])
    op.create_index("ix_user_permissions_permission_id", "user_permissions", ["permission_id"])

    # Templates
    op.create_table(
        "permission_templates",
        _id(),
        _created_at(),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
    )
    op.create_table(
        "permission_template_items",
        _id(),
        _created_at(),
        sa.Column(
            "template_id",
            sa.Uuid(),
            sa.ForeignKey("permission_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "permission_id",
            sa.Uuid(),
            sa.ForeignKey("permissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("template_id", "permission_id", name="uq_template_items_pair"),
    )
    op.create_index(
        "ix_permission_template_items_template_id", "permission_template_items", ["template_id"]
    )

    # Audit trail (append-only)
    op.create_table(
        "audit_logs",
        _id(),
        _created_at(),
        sa.Column("event_type", sa.String(length=100), nullable=False),
        sa.Column("target_type", sa.String(length=50), nullable=False),
        sa.Column("target_id", sa.String(length=100), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("old_value", sa.JSON(), nullable=True),
        sa.Column("new_value", sa.JSON(), nullable=True),
        sa.Column("correlation_id", sa.String(length=100), nullable=True),
    )
    op.create_index("ix_audit_logs_event_type", "audit_logs", ["event_type"])
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_correlation_id", "audit_logs", ["correlation_id"])
    op.create_index("idx_audit_target", "audit_logs", ["target_type", "target_id"])


def downgrade() -> None:
    """Drop all authorization tables."""
    op.drop_table("audit_logs")
    op.drop_table("permission_template_items")
    op.drop_table("permission_templates")
    op.drop_table("user_permissions")
    op.drop_index("uq_user_roles_unrevoked", table_name="user_roles")
    op.drop_table("user_roles")
    op.drop_table("role_permission_overrides")
    op.drop_table("role_permissions")
    op.drop_table("role_hierarchy")
    op.drop_table("roles")
    op.drop_index("uq_permissions_active_key", table_name="permissions")
    op.drop_table("permissions")
