"""
Team operations and team membership.
"""
from typing import Optional
from sqlalchemy import select, insert, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.features.projects.service import ensure_users_exist, get_project
from app.features.teams.models import Team, team_members
from app.features.teams.schemas import TeamCreate, TeamUpdate
from app.utils import get_logger


log = get_logger(__name__)


async def get_team(db: AsyncSession, team_id: str) -> Team:
    team = await db.get(Team, team_id)
    if team is None:
        raise NotFoundError("Team", team_id)
    return team


async def list_teams(
    db: AsyncSession,
    project_id: Optional[str] = None,
    lead_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Team]:
    stmt = select(Team)
    if project_id:
        stmt = stmt.where(Team.project_id == project_id)
    if lead_id:
        stmt = stmt.where(Team.lead_id == lead_id)
    if is_active is not None:
        stmt = stmt.where(Team.is_active == is_active)
    if search:
        stmt = stmt.where(Team.name.ilike(f"%{search}%"))
    stmt = stmt.order_by(Team.name, Team.id).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def _write_members(db: AsyncSession, team_id: str, members: list[str]) -> None:
    await db.execute(delete(team_members).where(team_members.c.team_id == team_id))
    if members:
        await db.execute(
            insert(team_members),
            [{"team_id": team_id, "user_id": uid} for uid in members],
        )


async def create_team(db: AsyncSession, data: TeamCreate) -> Team:
    """
    Create a team inside a project, with an optional initial member set.

    Raises:
        NotFoundError: If the project, the lead or any member does not exist
    """
    await get_project(db, data.project_id)
    if data.lead_id:
        await ensure_users_exist(db, [data.lead_id])
    members = await ensure_users_exist(db, data.member_ids)

    team = Team(**data.model_dump(exclude={"member_ids"}))
    db.add(team)
    await db.flush()
    await _write_members(db, team.id, members)
    await db.flush()
    await db.refresh(team)

    log.info("Created team %s in project %s", team.name, team.project_id)
    return team


async def update_team(db: AsyncSession, team_id: str, data: TeamUpdate) -> Team:
    team = await get_team(db, team_id)
    update_data = data.model_dump(exclude_unset=True)

    for key in ("name", "is_active"):
        if key in update_data and update_data[key] is None:
            raise ValidationError(f"{key} must not be null", field=key)
    if update_data.get("lead_id"):
        await ensure_users_exist(db, [update_data["lead_id"]])

    for key, value in update_data.items():
        setattr(team, key, value)

    await db.flush()
    await db.refresh(team)
    return team


async def get_team_member_ids(db: AsyncSession, team_id: str) -> list[str]:
    await get_team(db, team_id)
    result = await db.execute(
        select(team_members.c.user_id)
        .where(team_members.c.team_id == team_id)
        .order_by(team_members.c.user_id)
    )
    return list(result.scalars().all())


async def replace_team_members(db: AsyncSession, team_id: str, user_ids: list[str]) -> list[str]:
    """
    Replace the complete member set of a team.

    Raises:
        NotFoundError: If the team or any user does not exist
    """
    await get_team(db, team_id)
    members = await ensure_users_exist(db, user_ids)

    await _write_members(db, team_id, members)
    await db.flush()

    log.info("Replaced members of team %s: %d users", team_id, len(members))
    return sorted(members)
