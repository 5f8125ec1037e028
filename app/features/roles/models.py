"""
Role model and the closed set of role levels.
"""
import enum
from typing import Any

from sqlalchemy import String, Boolean, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, generate_ulid
from app.features.permissions.models import role_permissions


class RoleLevel(str, enum.Enum):
    """
    Coarse privilege tag on a role, SUPER_ADMIN highest.

    The ordering is used for display, sorting and route sections only; a role
    never inherits the permissions of a lower level.
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    USER = "USER"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]

    @classmethod
    def parse(cls, value: Any) -> "RoleLevel | None":
        """Return the matching level, or None for missing and unrecognized values."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


_LEVEL_RANK = {
    RoleLevel.USER: 0,
    RoleLevel.MANAGER: 1,
    RoleLevel.ADMIN: 2,
    RoleLevel.SUPER_ADMIN: 3,
}


class Role(Base, TimestampMixin):
    """
    Named bundle of permissions with a level.

    Examples: "Project Lead" (MANAGER), "Reviewer" (USER), "Super Admin" (SUPER_ADMIN)
    """
    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[RoleLevel] = mapped_column(SQLEnum(RoleLevel), nullable=False, default=RoleLevel.USER)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    permissions: Mapped[list["Permission"]] = relationship(  # type: ignore
        "Permission",
        secondary=role_permissions,
        lazy="selectin",
        order_by="Permission.name",
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name!r}, level={self.level})>"
