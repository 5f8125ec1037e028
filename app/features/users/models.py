"""
User model with ULID primary keys.
"""
from datetime import datetime
from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, generate_ulid


class User(Base, TimestampMixin):
    """
    User model representing people tracked by the panel.

    Authentication happens in Appwrite; appwrite_id links the local profile to
    the identity provider once the user has logged in at least once. Users
    created by an administrator before their first login are linked by email.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    # Appwrite user ID (null until the first login)
    appwrite_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)

    # Profile
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    employee_id: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    assignments: Mapped[list["ProjectRoleAssignment"]] = relationship(  # type: ignore
        "ProjectRoleAssignment",
        foreign_keys="ProjectRoleAssignment.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"
