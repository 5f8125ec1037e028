"""
Pydantic schemas for roles.
"""
from datetime import datetime
from pydantic import Field

from app.core.schemas import CamelModel
from app.features.permissions.schemas import PermissionResponse
from app.features.roles.models import RoleLevel


class RoleBase(CamelModel):
    """Base role schema."""
    name: str = Field(..., min_length=1, max_length=100, description="Unique role name")
    description: str | None = Field(None, max_length=1000)
    level: RoleLevel = Field(RoleLevel.USER, description="SUPER_ADMIN, ADMIN, MANAGER or USER")


class RoleCreate(RoleBase):
    """Schema for creating a role with its initial permission set."""
    permission_ids: list[str] = Field(default_factory=list)


class RoleUpdate(CamelModel):
    """Schema for updating role attributes. Permissions are replaced separately."""
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    level: RoleLevel | None = None
    is_active: bool | None = None


class RoleResponse(RoleBase):
    """Schema for role response."""
    id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class RoleWithPermissions(RoleResponse):
    """Schema for role with permissions."""
    permissions: list[PermissionResponse] = []


class RolePermissionIds(CamelModel):
    """Complete permission set of a role, used both to read and to replace it."""
    permission_ids: list[str] = Field(default_factory=list)
