"""
Permission model and the permission name value type.

A permission is a named capability owned by exactly one module. Names are
unique within their module and are what access checks compare against,
exactly and case-sensitively.
"""
import enum
import re

from sqlalchemy import String, ForeignKey, Table, Column, Boolean, Text, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, generate_ulid
from app.core.errors import ValidationError


PERMISSION_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_.:-]*$")
PERMISSION_NAME_MAX_LENGTH = 100


class PermissionName(str):
    """
    Validated permission name.

    Construction rejects empty, overlong or malformed names, so a typo in a
    required permission fails loudly instead of silently never matching.

        PermissionName("VIEW_USER_MANAGEMENT")   # ok
        PermissionName("view user management")   # ValidationError
    """

    def __new__(cls, value: str) -> "PermissionName":
        if isinstance(value, PermissionName):
            return value
        if not isinstance(value, str):
            raise ValidationError("Permission name must be a string", field="name")
        if not value or len(value) > PERMISSION_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Permission name must be 1-{PERMISSION_NAME_MAX_LENGTH} characters",
                field="name",
            )
        if not PERMISSION_NAME_PATTERN.match(value):
            raise ValidationError(
                "Permission name must start with a letter and contain only letters, digits, "
                "underscores, dots, colons and hyphens",
                field="name",
            )
        return super().__new__(cls, value)


class PermissionAction(str, enum.Enum):
    """Optional action tag on a permission."""
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MANAGE = "MANAGE"
    APPROVE = "APPROVE"


# Role-Permission relationship
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", String(26), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", String(26), ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class Permission(Base, TimestampMixin):
    """
    Permission model.

    Examples:
    - name="VIEW_USER_MANAGEMENT", module=USER, action=READ
    - name="MANAGE_TEAM_MEMBERS", module=TEAM, action=MANAGE
    """
    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("module_id", "name", name="uq_permissions_module_name"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(PERMISSION_NAME_MAX_LENGTH), nullable=False, index=True)
    module_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("modules.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    action: Mapped[PermissionAction | None] = mapped_column(SQLEnum(PermissionAction), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    module: Mapped["Module"] = relationship(  # type: ignore
        "Module",
        back_populates="permissions",
        lazy="selectin"
    )

    @property
    def module_code(self) -> str | None:
        return self.module.code if self.module is not None else None

    def __repr__(self) -> str:
        return f"<Permission(id={self.id}, name={self.name!r}, module_id={self.module_id})>"
