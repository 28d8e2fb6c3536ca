"""Permission template models."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseModel


class PermissionTemplateModel(BaseModel):
    __tablename__ = "permission_templates"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)


class PermissionTemplateItemModel(BaseModel):
    __tablename__ = "permission_template_items"

    template_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("permission_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("template_id", "permission_id", name="uq_template_items_pair"),
    )
