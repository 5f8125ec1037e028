"""
Team models. A team belongs to exactly one project.
"""
from datetime import datetime
from sqlalchemy import String, ForeignKey, Table, Column, Boolean, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, generate_ulid


team_members = Table(
    "team_members",
    Base.metadata,
    Column("team_id", String(26), ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("joined_at", DateTime(timezone=True), nullable=False, default=datetime.now),
)


class Team(Base, TimestampMixin):
    """Team within a project with an optional lead."""
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    project_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    lead_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    project: Mapped["Project"] = relationship("Project", lazy="selectin")  # type: ignore

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name={self.name!r}, project_id={self.project_id})>"
