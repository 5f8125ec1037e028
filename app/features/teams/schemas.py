"""
Pydantic schemas for teams.
"""
from datetime import datetime
from pydantic import Field

from app.core.schemas import CamelModel


class TeamBase(CamelModel):
    """Base team schema."""
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    lead_id: str | None = None


class TeamCreate(TeamBase):
    """Schema for creating a team, optionally with its initial members."""
    project_id: str
    member_ids: list[str] = Field(default_factory=list)


class TeamUpdate(CamelModel):
    """Schema for updating a team. A team cannot move between projects."""
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    lead_id: str | None = None
    is_active: bool | None = None


class TeamResponse(TeamBase):
    """Schema for team responses."""
    id: str
    project_id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
