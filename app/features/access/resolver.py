"""
Effective permission resolution.

A user's effective permission set is derived, never stored: for each of the
user's assignments take its role; if the role is active, add the names of
its active permissions. Roles held on several projects count once. A user
without assignments resolves to an empty set, which every gated check denies.
"""
from collections.abc import Iterable
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.features.access.schemas import (
    ProjectSummary,
    RoleSummary,
    TeamSummary,
    UserCompleteInformation,
)
from app.features.permissions.schemas import PermissionRef
from app.features.projects.models import Project, ProjectRoleAssignment, project_members
from app.features.roles.models import Role, RoleLevel
from app.features.teams.models import Team, team_members
from app.features.users.models import User
from app.features.users.schemas import UserResponse
from app.utils import get_logger


log = get_logger(__name__)


def effective_permissions(role: Role) -> frozenset[str]:
    """Permission names a role contributes: none when inactive, otherwise its active permissions."""
    if not role.is_active:
        return frozenset()
    return frozenset(p.name for p in role.permissions if p.is_active)


def collect_common_permissions(assignments: Iterable[ProjectRoleAssignment]) -> list[str]:
    """Sorted union of the effective permissions of every assigned role."""
    names: set[str] = set()
    for assignment in assignments:
        names |= effective_permissions(assignment.role)
    return sorted(names)


def highest_role_level(info: UserCompleteInformation) -> Optional[RoleLevel]:
    """Highest level among the user's active roles, or None when they hold none."""
    levels = [role.level for project in info.projects for role in project.roles]
    if not levels:
        return None
    return max(levels, key=lambda level: level.rank)


def _role_summary(role: Role) -> RoleSummary:
    return RoleSummary(
        id=role.id,
        name=role.name,
        level=role.level,
        permissions=[PermissionRef(id=p.id, name=p.name) for p in role.permissions if p.is_active],
    )


def _team_summary(team: Team) -> TeamSummary:
    return TeamSummary(id=team.id, name=team.name, lead_id=team.lead_id)


async def _load_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def build_complete_information(db: AsyncSession, user: User) -> UserCompleteInformation:
    """
    Assemble the aggregate for an already loaded user.

    Projects listed are those the user holds assignments on plus those they
    are a member of; membership alone adds no roles and no permissions. Teams
    per project are the assignment teams plus the project's teams the user
    is a member of.
    """
    member_project_ids = set((await db.execute(
        select(project_members.c.project_id).where(project_members.c.user_id == user.id)
    )).scalars())
    member_teams = list((await db.execute(
        select(Team).join(team_members, team_members.c.team_id == Team.id)
        .where(team_members.c.user_id == user.id)
    )).scalars())

    projects: dict[str, Project] = {a.project.id: a.project for a in user.assignments}
    missing = member_project_ids - projects.keys()
    if missing:
        rows = await db.execute(select(Project).where(Project.id.in_(missing)))
        projects.update({p.id: p for p in rows.scalars()})

    teams: dict[str, dict[str, Team]] = {pid: {} for pid in projects}
    roles: dict[str, dict[str, Role]] = {pid: {} for pid in projects}
    for assignment in user.assignments:
        if assignment.team is not None:
            teams[assignment.project_id][assignment.team.id] = assignment.team
        if assignment.role.is_active:
            roles[assignment.project_id][assignment.role.id] = assignment.role
    for team in member_teams:
        if team.project_id in teams:
            teams[team.project_id][team.id] = team

    summaries = [
        ProjectSummary(
            id=project.id,
            name=project.name,
            code=project.code,
            status=project.status,
            is_active=project.is_active,
            teams=[_team_summary(t) for t in sorted(teams[project.id].values(), key=lambda t: (t.name, t.id))],
            roles=[
                _role_summary(r)
                for r in sorted(roles[project.id].values(), key=lambda r: (-r.level.rank, r.name))
            ],
        )
        for project in sorted(projects.values(), key=lambda p: p.code)
    ]

    return UserCompleteInformation(
        profile=UserResponse.model_validate(user),
        projects=summaries,
        common_permissions=collect_common_permissions(user.assignments),
    )


async def resolve_user_complete_information(db: AsyncSession, user_id: str) -> UserCompleteInformation:
    """
    Fetch a user's profile, projects, teams, roles and effective permissions.

    Raises:
        NotFoundError: If the user does not exist
    """
    user = await _load_user(db, user_id)
    info = await build_complete_information(db, user)
    log.debug("Resolved %d permissions for user %s", len(info.common_permissions), user_id)
    return info


async def resolve_all_users_information(
    db: AsyncSession,
    is_active: Optional[bool] = None,
) -> list[UserCompleteInformation]:
    """Complete information for every user, ordered by name."""
    stmt = select(User).order_by(User.last_name, User.first_name, User.id)
    if is_active is not None:
        stmt = stmt.where(User.is_active == is_active)
    users = list((await db.execute(stmt.execution_options(populate_existing=True))).scalars())
    return [await build_complete_information(db, user) for user in users]
