"""Role, role closure and role grant database models."""

from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseModel, BaseMutableModel


class RoleModel(BaseMutableModel):
    """Role row. ``parent_role_id`` mirrors the depth-1 closure edge."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    parent_role_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("roles.id"), nullable=True, index=True
    )
    # "metadata" is reserved on declarative classes
    role_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )


class RoleHierarchyModel(BaseModel):
    """Transitive closure of the role hierarchy.

    One row per (ancestor, descendant) pair, including a depth-0 self-edge
    for every role.
    """

    __tablename__ = "role_hierarchy"

    ancestor_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    descendant_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    depth: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("ancestor_id", "descendant_id", name="uq_role_hierarchy_pair"),
    )


class RolePermissionModel(BaseModel):
    """Grant of a permission to a role."""

    __tablename__ = "role_permissions"

    role_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    granted_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_pair"),
    )


class RolePermissionOverrideModel(BaseModel):
    """Explicit deny of a permission on a role (and its descendants)."""

    __tablename__ = "role_permission_overrides"

    role_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    override_type: Mapped[str] = mapped_column(String(20), nullable=False, default="DENY")
    created_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "role_id", "permission_id", name="uq_role_permission_overrides_pair"
        ),
    )
