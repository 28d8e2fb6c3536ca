"""Permission catalog database model."""

from typing import Any

from sqlalchemy import JSON, Boolean, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseMutableModel


class PermissionModel(BaseMutableModel):
    """Catalog row for one ``(resource, action)`` pair.

    Rows are soft-deleted (``is_active = False``) and never removed, so the
    uniqueness of ``(resource, action)`` is enforced among active rows only
    through a partial unique index.
    """

    __tablename__ = "permissions"

    resource: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    module: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    depends_on: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    supports_conditions: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allowed_condition_types: Mapped[list[Any]] = mapped_column(
        JSON, nullable=False, default=list
    )

    __table_args__ = (
        Index(
            "uq_permissions_active_key",
            "resource",
            "action",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )
