"""
Pydantic schemas for permission management.
"""
from datetime import datetime
from pydantic import Field, field_validator

from app.core.errors import ValidationError
from app.core.schemas import CamelModel
from app.features.permissions.models import PermissionAction, PermissionName


def _validate_name(value: str) -> str:
    try:
        return str(PermissionName(value))
    except ValidationError as exc:
        raise ValueError(exc.message) from exc


class PermissionBase(CamelModel):
    """Base permission schema."""
    name: str = Field(..., description="Permission name, unique within its module (e.g. 'VIEW_USER_MANAGEMENT')")
    description: str | None = Field(None, max_length=1000)
    action: PermissionAction | None = Field(None, description="Optional action tag")


class PermissionCreate(PermissionBase):
    """Schema for creating a new permission."""
    module_id: str = Field(..., description="Owning module ID")

    @field_validator("name")
    @classmethod
    def name_format(cls, v: str) -> str:
        return _validate_name(v)


class PermissionUpdate(CamelModel):
    """Schema for updating a permission."""
    name: str | None = None
    description: str | None = Field(None, max_length=1000)
    action: PermissionAction | None = None
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def name_format(cls, v: str | None) -> str | None:
        return _validate_name(v) if v is not None else v


class PermissionResponse(PermissionBase):
    """Schema for permission response."""
    id: str
    module_id: str
    module_code: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PermissionRef(CamelModel):
    """Minimal permission reference used inside role summaries."""
    id: str
    name: str
