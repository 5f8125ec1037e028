"""
Project operations and project membership.
"""
from typing import Optional
from sqlalchemy import select, insert, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.features.projects.models import Project, ProjectStatus, project_members
from app.features.projects.schemas import ProjectCreate, ProjectUpdate
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: Optional[str] = None) -> None:
    stmt = select(Project.id).where(Project.code == code)
    if exclude_id:
        stmt = stmt.where(Project.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ValidationError(f"Project with code '{code}' already exists", field="code")


async def ensure_users_exist(db: AsyncSession, user_ids: list[str]) -> list[str]:
    """
    Collapse duplicate user IDs and check each one exists.

    Raises:
        NotFoundError: If any ID does not reference a user
    """
    wanted = list(dict.fromkeys(user_ids))
    if not wanted:
        return []
    result = await db.execute(select(User.id).where(User.id.in_(wanted)))
    found = set(result.scalars().all())
    missing = [uid for uid in wanted if uid not in found]
    if missing:
        raise NotFoundError("User", missing, message=f"Users not found: {', '.join(missing)}")
    return wanted


async def get_project(db: AsyncSession, project_id: str) -> Project:
    project = await db.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


async def list_projects(
    db: AsyncSession,
    status: Optional[ProjectStatus] = None,
    is_active: Optional[bool] = None,
    manager_id: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Project]:
    stmt = select(Project)
    if status:
        stmt = stmt.where(Project.status == status)
    if is_active is not None:
        stmt = stmt.where(Project.is_active == is_active)
    if manager_id:
        stmt = stmt.where(Project.manager_id == manager_id)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Project.name.ilike(pattern), Project.code.ilike(pattern)))
    stmt = stmt.order_by(Project.code).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_project(db: AsyncSession, data: ProjectCreate) -> Project:
    """
    Create a project.

    Raises:
        ValidationError: If the code is already used
        NotFoundError: If the manager does not exist
    """
    await _ensure_code_free(db, data.code)
    if data.manager_id:
        await ensure_users_exist(db, [data.manager_id])

    project = Project(**data.model_dump())
    db.add(project)
    await db.flush()
    await db.refresh(project)

    log.info("Created project %s (%s)", project.code, project.id)
    return project


async def update_project(db: AsyncSession, project_id: str, data: ProjectUpdate) -> Project:
    project = await get_project(db, project_id)
    update_data = data.model_dump(exclude_unset=True)

    for key in ("name", "code", "status", "is_active"):
        if key in update_data and update_data[key] is None:
            raise ValidationError(f"{key} must not be null", field=key)
    if "code" in update_data:
        await _ensure_code_free(db, update_data["code"], exclude_id=project.id)
    if update_data.get("manager_id"):
        await ensure_users_exist(db, [update_data["manager_id"]])

    start = update_data.get("start_date", project.start_date)
    end = update_data.get("end_date", project.end_date)
    if start and end and end < start:
        raise ValidationError("endDate must not be before startDate", field="endDate")

    for key, value in update_data.items():
        setattr(project, key, value)

    await db.flush()
    await db.refresh(project)
    return project


async def get_project_member_ids(db: AsyncSession, project_id: str) -> list[str]:
    await get_project(db, project_id)
    result = await db.execute(
        select(project_members.c.user_id)
        .where(project_members.c.project_id == project_id)
        .order_by(project_members.c.user_id)
    )
    return list(result.scalars().all())


async def replace_project_members(db: AsyncSession, project_id: str, user_ids: list[str]) -> list[str]:
    """
    Replace the complete member set of a project.

    Membership grants no permissions by itself; it only lists the project in
    the member's complete information.

    Raises:
        NotFoundError: If the project or any user does not exist
    """
    await get_project(db, project_id)
    members = await ensure_users_exist(db, user_ids)

    await db.execute(delete(project_members).where(project_members.c.project_id == project_id))
    if members:
        await db.execute(
            insert(project_members),
            [{"project_id": project_id, "user_id": uid} for uid in members],
        )
    await db.flush()

    log.info("Replaced members of project %s: %d users", project_id, len(members))
    return sorted(members)
