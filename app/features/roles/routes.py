"""
Role management routes (SUPER_ADMIN only).
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.access.dependencies import SuperAdminSession
from app.features.audit.service import audit_request
from app.features.roles import service
from app.features.roles.models import RoleLevel
from app.features.roles.schemas import (
    RoleCreate,
    RolePermissionIds,
    RoleResponse,
    RoleUpdate,
    RoleWithPermissions,
)


router = APIRouter()


@router.post("", response_model=RoleWithPermissions, status_code=status.HTTP_201_CREATED)
async def create_role(
    role: RoleCreate,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a new role with its initial permissions."""
    db_role = await service.create_role(db, role)
    await audit_request(db, request, session.user_id, "create", "role", db_role.id, role.model_dump())
    return db_role


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)],
    level: Optional[RoleLevel] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
):
    """List roles, highest level first."""
    return await service.list_roles(db, level=level, is_active=is_active, search=search, skip=skip, limit=limit)


@router.get("/{role_id}", response_model=RoleWithPermissions)
async def get_role(
    role_id: str,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a specific role with its permissions."""
    return await service.get_role(db, role_id)


@router.put("/{role_id}", response_model=RoleWithPermissions)
async def update_role(
    role_id: str,
    role_update: RoleUpdate,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update role attributes. Use PUT /roles/{id}/permissions to change its permissions."""
    db_role = await service.update_role(db, role_id, role_update)
    await audit_request(
        db, request, session.user_id, "update", "role", role_id, role_update.model_dump(exclude_unset=True)
    )
    return db_role


@router.get("/{role_id}/permissions", response_model=RolePermissionIds)
async def get_role_permissions(
    role_id: str,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """IDs of the permissions a role currently holds."""
    return RolePermissionIds(permission_ids=await service.get_role_permission_ids(db, role_id))


@router.put("/{role_id}/permissions", response_model=RoleWithPermissions)
async def replace_role_permissions(
    role_id: str,
    body: RolePermissionIds,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Replace the complete permission set of a role."""
    db_role = await service.replace_role_permissions(db, role_id, body.permission_ids)
    await audit_request(
        db, request, session.user_id, "replace_permissions", "role", role_id,
        {"permission_ids": [p.id for p in db_role.permissions]}
    )
    return db_role
