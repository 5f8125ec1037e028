"""
Permission catalog routes (SUPER_ADMIN only).
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.access.dependencies import SuperAdminSession
from app.features.audit.service import audit_request
from app.features.permissions import service
from app.features.permissions.models import PermissionAction
from app.features.permissions.schemas import PermissionCreate, PermissionResponse, PermissionUpdate


router = APIRouter()


@router.post("", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
async def create_permission(
    permission: PermissionCreate,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a new permission in an active module."""
    db_permission = await service.create_permission(db, permission)
    await audit_request(
        db, request, session.user_id, "create", "permission", db_permission.id, permission.model_dump()
    )
    return db_permission


@router.get("", response_model=list[PermissionResponse])
async def list_permissions(
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)],
    module_id: Optional[str] = None,
    action: Optional[PermissionAction] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100
):
    """List permissions with optional filtering."""
    return await service.list_permissions(
        db, module_id=module_id, action=action, search=search, is_active=is_active, skip=skip, limit=limit
    )


@router.get("/{permission_id}", response_model=PermissionResponse)
async def get_permission(
    permission_id: str,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a specific permission."""
    return await service.get_permission(db, permission_id)


@router.put("/{permission_id}", response_model=PermissionResponse)
async def update_permission(
    permission_id: str,
    permission_update: PermissionUpdate,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update a permission."""
    db_permission = await service.update_permission(db, permission_id, permission_update)
    await audit_request(
        db, request, session.user_id, "update", "permission", permission_id,
        permission_update.model_dump(exclude_unset=True)
    )
    return db_permission
