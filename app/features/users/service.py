"""
User profile and assignment operations.

A user's assignments are only ever written as a complete set, either
directly (replace_assignments) or derived from a role set
(replace_user_roles). Every referenced ID is checked before the set changes.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.features.projects.models import Project, ProjectRoleAssignment
from app.features.roles.models import Role
from app.features.teams.models import Team
from app.features.users.models import User
from app.features.users.schemas import AssignmentIn, ProfileUpdate, UserCreate, UserUpdate
from app.utils import get_logger


log = get_logger(__name__)

Triple = tuple[str, str, Optional[str]]


async def _reload(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _ensure_unique(db: AsyncSession, user: Optional[User], **fields) -> None:
    for field, value in fields.items():
        if value is None:
            continue
        stmt = select(User.id).where(getattr(User, field) == value)
        if user is not None:
            stmt = stmt.where(User.id != user.id)
        if (await db.execute(stmt)).first():
            raise ValidationError(f"A user with this {field} already exists", field=field)


async def get_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def get_user_by_identity(db: AsyncSession, appwrite_id: str, email: Optional[str] = None) -> Optional[User]:
    """Find a user by identity-provider ID, falling back to email for users created before first login."""
    result = await db.execute(select(User).where(User.appwrite_id == appwrite_id))
    user = result.scalar_one_or_none()
    if user is None and email:
        result = await db.execute(select(User).where(User.email == email, User.appwrite_id.is_(None)))
        user = result.scalar_one_or_none()
    return user


async def list_users(
    db: AsyncSession,
    search: Optional[str] = None,
    department: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[User]:
    stmt = select(User)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
            User.email.ilike(pattern),
        ))
    if department:
        stmt = stmt.where(User.department == department)
    if is_active is not None:
        stmt = stmt.where(User.is_active == is_active)
    stmt = stmt.order_by(User.last_name, User.first_name, User.id).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_user(db: AsyncSession, data: UserCreate, created_by_id: Optional[str] = None) -> User:
    """
    Create a user profile, optionally with initial assignments.

    Raises:
        ValidationError: If email, employee ID or Appwrite ID is taken
        NotFoundError: If an assignment references an unknown project, role or team
    """
    await _ensure_unique(
        db, None, email=str(data.email), employee_id=data.employee_id, appwrite_id=data.appwrite_id
    )
    triples = await _validate_assignments(db, data.project_role_assignments)

    user = User(**data.model_dump(exclude={"project_role_assignments"}))
    user.assignments = [
        ProjectRoleAssignment(project_id=p, role_id=r, team_id=t, assigned_by_id=created_by_id)
        for p, r, t in triples
    ]
    db.add(user)
    await db.flush()

    log.info("Created user %s (%s) with %d assignments", user.email, user.id, len(triples))
    return await _reload(db, user.id)


async def update_user(db: AsyncSession, user_id: str, data: UserUpdate | ProfileUpdate) -> User:
    user = await get_user(db, user_id)
    update_data = data.model_dump(exclude_unset=True)

    for key in ("first_name", "last_name", "is_active"):
        if key in update_data and update_data[key] is None:
            raise ValidationError(f"{key} must not be null", field=key)
    await _ensure_unique(db, user, employee_id=update_data.get("employee_id"))

    for key, value in update_data.items():
        setattr(user, key, value)

    await db.flush()
    return await _reload(db, user.id)


async def record_login(db: AsyncSession, user: User) -> User:
    user.last_login_at = datetime.now()
    await db.flush()
    return await _reload(db, user.id)


# ============================================================================
# Assignments
# ============================================================================

async def _validate_assignments(db: AsyncSession, assignments: list[AssignmentIn]) -> list[Triple]:
    """Collapse identical triples and check every reference."""
    triples: list[Triple] = list(dict.fromkeys((a.project_id, a.role_id, a.team_id) for a in assignments))
    if not triples:
        return []

    project_ids = {p for p, _, _ in triples}
    role_ids = {r for _, r, _ in triples}
    team_ids = {t for _, _, t in triples if t}

    found_projects = set((await db.execute(select(Project.id).where(Project.id.in_(project_ids)))).scalars())
    for pid in project_ids - found_projects:
        raise NotFoundError("Project", pid)

    found_roles = set((await db.execute(select(Role.id).where(Role.id.in_(role_ids)))).scalars())
    for rid in role_ids - found_roles:
        raise NotFoundError("Role", rid)

    team_projects: dict[str, str] = {}
    if team_ids:
        rows = await db.execute(select(Team.id, Team.project_id).where(Team.id.in_(team_ids)))
        team_projects = {tid: pid for tid, pid in rows.all()}
    for tid in team_ids - team_projects.keys():
        raise NotFoundError("Team", tid)

    for project_id, _, team_id in triples:
        if team_id and team_projects[team_id] != project_id:
            raise ValidationError(
                f"Team {team_id} does not belong to project {project_id}",
                field="teamId",
                team_id=team_id,
                project_id=project_id,
            )
    return triples


def _apply_triples(user: User, triples: list[Triple], assigned_by_id: Optional[str]) -> None:
    # Rows whose triple survives keep their original assigned_at
    existing = {(a.project_id, a.role_id, a.team_id): a for a in user.assignments}
    user.assignments = [
        existing.get(triple) or ProjectRoleAssignment(
            project_id=triple[0], role_id=triple[1], team_id=triple[2], assigned_by_id=assigned_by_id
        )
        for triple in triples
    ]


async def get_user_assignments(db: AsyncSession, user_id: str) -> list[ProjectRoleAssignment]:
    user = await get_user(db, user_id)
    return sorted(user.assignments, key=lambda a: (a.project_id, a.role_id, a.team_id or ""))


async def replace_assignments(
    db: AsyncSession,
    user_id: str,
    assignments: list[AssignmentIn],
    assigned_by_id: Optional[str] = None,
) -> User:
    """
    Replace the complete assignment set of a user.

    Raises:
        NotFoundError: If the user, or any project, role or team, does not exist
        ValidationError: If a team does not belong to its assignment's project
    """
    user = await get_user(db, user_id)
    triples = await _validate_assignments(db, assignments)

    _apply_triples(user, triples, assigned_by_id)
    await db.flush()

    log.info("Replaced assignments of user %s: %d assignments", user.id, len(triples))
    return await _reload(db, user.id)


async def get_user_role_ids(db: AsyncSession, user_id: str) -> list[str]:
    user = await get_user(db, user_id)
    return sorted({a.role_id for a in user.assignments})


async def replace_user_roles(
    db: AsyncSession,
    user_id: str,
    role_ids: list[str],
    assigned_by_id: Optional[str] = None,
) -> User:
    """
    Replace the complete role set of a user.

    The new roles are held on every project the user already has assignments
    on, each project keeping the team of its first assignment. An empty list
    removes every assignment.

    Raises:
        NotFoundError: If the user or any role does not exist
        ValidationError: If roles are given but the user has no project to hold them on
    """
    user = await get_user(db, user_id)
    wanted = list(dict.fromkeys(role_ids))

    found = set((await db.execute(select(Role.id).where(Role.id.in_(wanted)))).scalars()) if wanted else set()
    for rid in wanted:
        if rid not in found:
            raise NotFoundError("Role", rid)

    contexts: dict[str, Optional[str]] = {}
    for a in sorted(user.assignments, key=lambda a: (a.assigned_at, a.id)):
        contexts.setdefault(a.project_id, a.team_id)
    if wanted and not contexts:
        raise ValidationError(
            "User has no project assignment to hold roles on; use the assignments endpoint",
            field="roleIds",
        )

    triples = [(pid, rid, tid) for pid, tid in contexts.items() for rid in wanted]
    _apply_triples(user, triples, assigned_by_id)
    await db.flush()

    log.info("Replaced roles of user %s: %d roles over %d projects", user.id, len(wanted), len(contexts))
    return await _reload(db, user.id)
