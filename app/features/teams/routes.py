"""
Team routes (SUPER_ADMIN, ADMIN and MANAGER).
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.schemas import UserIds
from app.features.access.dependencies import ProjectLeadSession
from app.features.audit.service import audit_request
from app.features.teams import service
from app.features.teams.schemas import TeamCreate, TeamResponse, TeamUpdate


router = APIRouter()


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    team: TeamCreate,
    request: Request,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a new team in a project."""
    db_team = await service.create_team(db, team)
    await audit_request(db, request, session.user_id, "create", "team", db_team.id, team.model_dump())
    return db_team


@router.get("", response_model=list[TeamResponse])
async def list_teams(
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)],
    project_id: Optional[str] = None,
    lead_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
):
    """List teams, optionally for one project."""
    return await service.list_teams(
        db, project_id=project_id, lead_id=lead_id, is_active=is_active, search=search, skip=skip, limit=limit
    )


@router.get("/{team_id}", response_model=TeamResponse)
async def get_team(
    team_id: str,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a specific team."""
    return await service.get_team(db, team_id)


@router.put("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: str,
    team_update: TeamUpdate,
    request: Request,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update a team."""
    db_team = await service.update_team(db, team_id, team_update)
    await audit_request(
        db, request, session.user_id, "update", "team", team_id, team_update.model_dump(exclude_unset=True)
    )
    return db_team


@router.get("/{team_id}/members", response_model=UserIds)
async def get_team_members(
    team_id: str,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """IDs of the team's members."""
    return UserIds(user_ids=await service.get_team_member_ids(db, team_id))


@router.put("/{team_id}/members", response_model=UserIds)
async def replace_team_members(
    team_id: str,
    body: UserIds,
    request: Request,
    session: ProjectLeadSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Replace the complete member set of a team."""
    members = await service.replace_team_members(db, team_id, body.user_ids)
    await audit_request(
        db, request, session.user_id, "replace_members", "team", team_id, {"user_ids": members}
    )
    return UserIds(user_ids=members)
