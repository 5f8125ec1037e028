"""
Pydantic schemas for user-related requests and responses.
"""
from datetime import datetime
from pydantic import EmailStr, Field

from app.core.schemas import CamelModel


class UserBase(CamelModel):
    """Base user schema with common fields."""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    phone: str | None = Field(None, max_length=30)
    department: str | None = Field(None, max_length=100)
    position: str | None = Field(None, max_length=100)
    employee_id: str | None = Field(None, max_length=50)


class AssignmentIn(CamelModel):
    """One (project, role, team?) assignment."""
    project_id: str
    role_id: str
    team_id: str | None = None


class UserCreate(UserBase):
    """Schema for creating a user profile ahead of their first login."""
    appwrite_id: str | None = Field(None, description="Appwrite user ID, if already known")
    project_role_assignments: list[AssignmentIn] = Field(default_factory=list)


class UserUpdate(CamelModel):
    """Schema for updating user information."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=30)
    department: str | None = Field(None, max_length=100)
    position: str | None = Field(None, max_length=100)
    employee_id: str | None = Field(None, max_length=50)
    is_active: bool | None = None


class ProfileUpdate(CamelModel):
    """Fields a user may change on their own profile."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=30)


class UserResponse(UserBase):
    """Schema for user responses."""
    id: str
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ReplaceAssignments(CamelModel):
    """Complete assignment set of a user."""
    assignments: list[AssignmentIn] = Field(default_factory=list)


class AssignmentResponse(CamelModel):
    id: str
    project_id: str
    role_id: str
    team_id: str | None = None
    assigned_at: datetime
    assigned_by_id: str | None = None


class UserRoleIds(CamelModel):
    """Complete role set of a user, used both to read and to replace it."""
    role_ids: list[str] = Field(default_factory=list)
