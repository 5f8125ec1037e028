"""
Module model: the namespace permissions are grouped under (USER, PROJECT, TEAM, ...).
"""
from sqlalchemy import String, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, generate_ulid


class Module(Base, TimestampMixin):
    """
    Logical grouping of permissions.

    Deactivating a module does not touch its permissions; it only stops new
    permissions from being created under it.
    """
    __tablename__ = "modules"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    permissions: Mapped[list["Permission"]] = relationship(  # type: ignore
        "Permission",
        back_populates="module",
        lazy="selectin",
        order_by="Permission.name",
    )

    def __repr__(self) -> str:
        return f"<Module(id={self.id}, code={self.code!r})>"
