"""
Pydantic schemas for modules.
"""
from datetime import datetime
from pydantic import Field

from app.core.schemas import CamelModel
from app.features.permissions.schemas import PermissionResponse


class ModuleBase(CamelModel):
    """Base module schema."""
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., max_length=50, description="Unique module code, stored upper-case (e.g. 'PROJECT')")
    description: str | None = Field(None, max_length=1000)


class ModuleCreate(ModuleBase):
    """Schema for creating a module."""
    pass


class ModuleUpdate(CamelModel):
    """Schema for updating a module."""
    name: str | None = Field(None, min_length=1, max_length=100)
    code: str | None = Field(None, max_length=50)
    description: str | None = Field(None, max_length=1000)
    is_active: bool | None = None


class ModuleResponse(ModuleBase):
    """Schema for module responses."""
    id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ModuleWithPermissions(ModuleResponse):
    """Module together with the permissions it owns."""
    permissions: list[PermissionResponse] = []
