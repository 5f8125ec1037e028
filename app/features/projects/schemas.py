"""
Pydantic schemas for projects.
"""
import re
from datetime import date, datetime
from pydantic import Field, field_validator, model_validator

from app.core.schemas import CamelModel
from app.features.projects.models import ProjectStatus


PROJECT_CODE_PATTERN = re.compile(r"^[A-Z0-9]+(-[A-Z0-9]+)*$")


def normalize_project_code(value: str) -> str:
    """Upper-case a project code and check it is alphanumeric plus hyphens."""
    code = value.strip().upper()
    if not PROJECT_CODE_PATTERN.match(code):
        raise ValueError("Project code must contain only letters, digits and single hyphens (e.g. 'TRACKER-WEB')")
    return code


class ProjectBase(CamelModel):
    """Base project schema."""
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(None, max_length=2000)
    status: ProjectStatus = ProjectStatus.ACTIVE
    manager_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None


class ProjectCreate(ProjectBase):
    """Schema for creating a project."""

    @field_validator("code")
    @classmethod
    def code_format(cls, v: str) -> str:
        return normalize_project_code(v)

    @model_validator(mode="after")
    def dates_in_order(self) -> "ProjectCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class ProjectUpdate(CamelModel):
    """Schema for updating a project."""
    name: str | None = Field(None, min_length=1, max_length=255)
    code: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, max_length=2000)
    status: ProjectStatus | None = None
    manager_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None

    @field_validator("code")
    @classmethod
    def code_format(cls, v: str | None) -> str | None:
        return normalize_project_code(v) if v is not None else v


class ProjectResponse(ProjectBase):
    """Schema for project responses."""
    id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
