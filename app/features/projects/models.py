"""
Project models.

A project is the context a role is held in: users hold roles through
ProjectRoleAssignment rows, optionally tagged with one of the project's teams.
"""
from datetime import date, datetime
import enum

from sqlalchemy import String, ForeignKey, Table, Column, Boolean, Text, Date, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, generate_ulid


class ProjectStatus(str, enum.Enum):
    """Lifecycle status of a project."""
    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Project membership (participation without implying any role)
project_members = Table(
    "project_members",
    Base.metadata,
    Column("project_id", String(26), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("joined_at", DateTime(timezone=True), nullable=False, default=datetime.now),
)


class Project(Base, TimestampMixin):
    """Named unit of work with a unique uppercase code (e.g. "TRACKER-WEB")."""
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        SQLEnum(ProjectStatus),
        default=ProjectStatus.ACTIVE,
        nullable=False,
        index=True
    )
    manager_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, code={self.code!r}, status={self.status})>"


class ProjectRoleAssignment(Base):
    """
    A user holding a role within a project, optionally on one of its teams.

    Rows are only ever written as a whole replacement set per user.
    """
    __tablename__ = "project_role_assignments"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    project_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True
    )
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.now)
    assigned_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)

    user: Mapped["User"] = relationship(  # type: ignore
        "User", foreign_keys=[user_id], back_populates="assignments", lazy="raise"
    )
    project: Mapped["Project"] = relationship("Project", lazy="selectin")
    role: Mapped["Role"] = relationship("Role", lazy="selectin")  # type: ignore
    team: Mapped["Team | None"] = relationship("Team", lazy="selectin")  # type: ignore

    def __repr__(self) -> str:
        return (
            f"<ProjectRoleAssignment(user_id={self.user_id}, project_id={self.project_id}, "
            f"role_id={self.role_id}, team_id={self.team_id})>"
        )
