"""User role assignment and direct permission override models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseModel, BaseMutableModel


class UserRoleModel(BaseModel):
    """Assignment of a role to a user.

    Rows are never deleted; revocation sets ``revoked_at``. A partial unique
    index allows at most one unrevoked row per ``(user_id, role_id)``.
    """

    __tablename__ = "user_roles"

    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    role_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("roles.id"), nullable=False, index=True
    )
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    granted_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    revoke_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        Index(
            "uq_user_roles_unrevoked",
            "user_id",
            "role_id",
            unique=True,
            postgresql_where=text("revoked_at IS NULL"),
            sqlite_where=text("revoked_at IS NULL"),
        ),
    )


class UserPermissionModel(BaseMutableModel):
    """Direct GRANT/DENY override of a permission for a user."""

    __tablename__ = "user_permissions"

    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    permission_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    override_type: Mapped[str] = mapped_column(String(20), nullable=False)
    conditions: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    granted_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "permission_id", name="uq_user_permissions_pair"),
    )
