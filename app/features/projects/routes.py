"""
Project routes (SUPER_ADMIN, ADMIN and MANAGER).
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.schemas import UserIds
from app.features.access.dependencies import ProjectLeadSession
from app.features.audit.service import audit_request
from app.features.projects import service
from app.features.projects.models import ProjectStatus
from app.features.projects.schemas import ProjectCreate, ProjectResponse, ProjectUpdate


router = APIRouter()


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project: ProjectCreate,
    request: Request,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a new project."""
    db_project = await service.create_project(db, project)
    await audit_request(db, request, session.user_id, "create", "project", db_project.id, project.model_dump())
    return db_project


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)],
    status: Optional[ProjectStatus] = None,
    is_active: Optional[bool] = None,
    manager_id: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
):
    """List projects with optional filtering."""
    return await service.list_projects(
        db, status=status, is_active=is_active, manager_id=manager_id, search=search, skip=skip, limit=limit
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a specific project."""
    return await service.get_project(db, project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    request: Request,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update a project."""
    db_project = await service.update_project(db, project_id, project_update)
    await audit_request(
        db, request, session.user_id, "update", "project", project_id, project_update.model_dump(exclude_unset=True)
    )
    return db_project


@router.get("/{project_id}/members", response_model=UserIds)
async def get_project_members(
    project_id: str,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """IDs of the project's members."""
    return UserIds(user_ids=await service.get_project_member_ids(db, project_id))


@router.put("/{project_id}/members", response_model=UserIds)
async def replace_project_members(
    project_id: str,
    body: UserIds,
    request: Request,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Replace the complete member set of a project."""
    members = await service.replace_project_members(db, project_id, body.user_ids)
    await audit_request(
        db, request, session.user_id, "replace_members", "project", project_id, {"user_ids": members}
    )
    return UserIds(user_ids=members)
