"""
Module registry routes (SUPER_ADMIN only).
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.access.dependencies import SuperAdminSession
from app.features.audit.service import audit_request
from app.features.modules import service
from app.features.modules.schemas import ModuleCreate, ModuleResponse, ModuleUpdate, ModuleWithPermissions


router = APIRouter()


@router.post("", response_model=ModuleResponse, status_code=status.HTTP_201_CREATED)
async def create_module(
    module: ModuleCreate,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a new module."""
    db_module = await service.create_module(db, module)
    await audit_request(db, request, session.user_id, "create", "module", db_module.id, module.model_dump())
    return db_module


@router.get("", response_model=list[ModuleResponse])
async def list_modules(
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)],
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100
):
    """List modules, optionally filtered by name/code or active flag."""
    return await service.list_modules(db, search=search, is_active=is_active, skip=skip, limit=limit)


@router.get("/with-permissions", response_model=list[ModuleWithPermissions])
async def list_modules_with_permissions(
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Every module together with its permissions."""
    return await service.list_modules_with_permissions(db)


@router.get("/{module_id}", response_model=ModuleWithPermissions)
async def get_module(
    module_id: str,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a module with its permissions."""
    return await service.get_module(db, module_id)


@router.put("/{module_id}", response_model=ModuleResponse)
async def update_module(
    module_id: str,
    module_update: ModuleUpdate,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update a module. Deactivating it does not touch its permissions."""
    db_module = await service.update_module(db, module_id, module_update)
    await audit_request(
        db, request, session.user_id, "update", "module", module_id, module_update.model_dump(exclude_unset=True)
    )
    return db_module
