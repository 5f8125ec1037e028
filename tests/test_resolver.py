"""
Tests for effective permission resolution and the complete-information aggregate.
"""
import pytest

from app.core.errors import NotFoundError
from app.features.access.capabilities import find_capability
from app.features.access.guard import AccessState, has_permission
from app.features.access.resolver import (
    highest_role_level,
    resolve_all_users_information,
    resolve_user_complete_information,
)
from app.features.access.session import SessionContext
from app.features.modules import service as module_service
from app.features.modules.schemas import ModuleUpdate
from app.features.permissions import service as permission_service
from app.features.permissions.schemas import PermissionUpdate
from app.features.projects import service as project_service
from app.features.roles import service as role_service
from app.features.roles.models import RoleLevel
from app.features.roles.schemas import RoleUpdate
from app.features.teams import service as team_service


class TestScenarios:
    async def test_single_role_on_one_project(self, db, graph):
        """A "Project Lead" on P1 gets exactly that role's permissions and nothing else."""
        lead = await graph.role(
            "Project Lead", RoleLevel.MANAGER, ("VIEW_PROJECT_MANAGEMENT", "VIEW_TEAM_MANAGEMENT")
        )
        await graph.permission("VIEW_USER_MANAGEMENT")
        p1 = await graph.project("P1")
        x = await graph.user("X")
        await graph.assign(x, (p1, lead))

        info = await resolve_user_complete_information(db, x.id)

        assert set(info.common_permissions) == {"VIEW_PROJECT_MANAGEMENT", "VIEW_TEAM_MANAGEMENT"}
        assert not has_permission(info.common_permissions, "VIEW_USER_MANAGEMENT")
        session = SessionContext.from_user_information(info)
        assert find_capability("/projects").evaluate(session).allowed
        assert find_capability("/users").evaluate(session).state is AccessState.UNAUTHORIZED

    async def test_roles_on_two_projects_union(self, db, graph):
        lead = await graph.role("Lead", RoleLevel.MANAGER, ("A", "B"))
        reviewer = await graph.role("Reviewer", RoleLevel.USER, ("B", "C"))
        p1 = await graph.project("P1")
        p2 = await graph.project("P2")
        y = await graph.user("Y")
        await graph.assign(y, (p1, lead), (p2, reviewer))

        info = await resolve_user_complete_information(db, y.id)

        assert info.common_permissions == ["A", "B", "C"]
        # Dedup bound: 3 distinct names from 4 granted
        assert len(info.common_permissions) < len(lead.permissions) + len(reviewer.permissions)
        assert [p.code for p in info.projects] == ["P1", "P2"]
        assert [r.name for r in info.projects[0].roles] == ["Lead"]
        assert [r.name for r in info.projects[1].roles] == ["Reviewer"]

    async def test_emptying_a_role_removes_its_permissions(self, db, graph):
        role = await graph.role("Role One", RoleLevel.USER, ("A", "B"))
        project = await graph.project()
        user = await graph.user()
        await graph.assign(user, (project, role))

        await role_service.replace_role_permissions(db, role.id, [])

        info = await resolve_user_complete_information(db, user.id)
        assert info.common_permissions == []


class TestResolution:
    async def test_user_without_assignments_resolves_empty(self, db, graph):
        user = await graph.user()

        info = await resolve_user_complete_information(db, user.id)

        assert info.common_permissions == []
        assert info.projects == []
        assert highest_role_level(info) is None

    async def test_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            await resolve_user_complete_information(db, "01HZZZZZZZZZZZZZZZZZZZZZZZ")

    async def test_equality_when_nothing_is_shared(self, db, graph):
        r1 = await graph.role("R1", RoleLevel.USER, ("A", "B"))
        r2 = await graph.role("R2", RoleLevel.USER, ("C",))
        project = await graph.project()
        user = await graph.user()
        await graph.assign(user, (project, r1), (project, r2))

        info = await resolve_user_complete_information(db, user.id)

        assert len(info.common_permissions) == 3

    async def test_same_role_on_two_projects_counts_once(self, db, graph):
        role = await graph.role("Dev", RoleLevel.USER, ("A",))
        p1, p2 = await graph.project(), await graph.project()
        user = await graph.user()
        await graph.assign(user, (p1, role), (p2, role))

        info = await resolve_user_complete_information(db, user.id)

        assert info.common_permissions == ["A"]
        assert len(info.projects) == 2

    async def test_inactive_role_contributes_nothing(self, db, graph):
        active = await graph.role("Active", RoleLevel.USER, ("A",))
        dormant = await graph.role("Dormant", RoleLevel.ADMIN, ("B",))
        project = await graph.project()
        user = await graph.user()
        await graph.assign(user, (project, active), (project, dormant))

        await role_service.update_role(db, dormant.id, RoleUpdate(is_active=False))

        info = await resolve_user_complete_information(db, user.id)
        assert info.common_permissions == ["A"]
        assert [r.name for r in info.projects[0].roles] == ["Active"]
        assert highest_role_level(info) is RoleLevel.USER

    async def test_inactive_permission_contributes_nothing(self, db, graph):
        role = await graph.role("Dev", RoleLevel.USER, ("A", "B"))
        project = await graph.project()
        user = await graph.user()
        await graph.assign(user, (project, role))

        await permission_service.update_permission(db, await graph.permission("B"), PermissionUpdate(is_active=False))

        info = await resolve_user_complete_information(db, user.id)
        assert info.common_permissions == ["A"]
        assert [p.name for p in info.projects[0].roles[0].permissions] == ["A"]

    async def test_deactivating_a_module_does_not_cascade(self, db, graph):
        role = await graph.role("Dev", RoleLevel.USER, ("A",))
        project = await graph.project()
        user = await graph.user()
        await graph.assign(user, (project, role))

        await module_service.update_module(db, await graph.module("GENERAL"), ModuleUpdate(is_active=False))

        info = await resolve_user_complete_information(db, user.id)
        assert info.common_permissions == ["A"]

    async def test_highest_level_wins(self, db, graph):
        user_role = await graph.role("Dev", RoleLevel.USER)
        admin_role = await graph.role("Admin", RoleLevel.ADMIN)
        p1, p2 = await graph.project(), await graph.project()
        user = await graph.user()
        await graph.assign(user, (p1, user_role), (p2, admin_role))

        info = await resolve_user_complete_information(db, user.id)

        assert highest_role_level(info) is RoleLevel.ADMIN

    async def test_memberships_list_projects_without_permissions(self, db, graph):
        role = await graph.role("Dev", RoleLevel.USER, ("A",))
        assigned = await graph.project("ASSIGNED")
        member_only = await graph.project("MEMBER-ONLY")
        team = await graph.team(member_only, "Core")
        other_team = await graph.team(await graph.project("ELSEWHERE"), "Other")
        user = await graph.user()
        await graph.assign(user, (assigned, role))

        await project_service.replace_project_members(db, member_only.id, [user.id])
        await team_service.replace_team_members(db, team.id, [user.id])
        await team_service.replace_team_members(db, other_team.id, [user.id])

        info = await resolve_user_complete_information(db, user.id)

        assert [p.code for p in info.projects] == ["ASSIGNED", "MEMBER-ONLY"]
        member_project = info.projects[1]
        assert member_project.roles == []
        assert [t.name for t in member_project.teams] == ["Core"]
        assert info.common_permissions == ["A"]

    async def test_assignment_team_is_listed(self, db, graph):
        role = await graph.role("Dev", RoleLevel.USER)
        project = await graph.project()
        team = await graph.team(project, "Backend")
        user = await graph.user()
        await graph.assign(user, (project, role, team))

        info = await resolve_user_complete_information(db, user.id)

        assert [t.id for t in info.projects[0].teams] == [team.id]

    async def test_all_users_information(self, db, graph):
        role = await graph.role("Dev", RoleLevel.USER, ("A",))
        project = await graph.project()
        u1 = await graph.user("Alice")
        await graph.user("Bob")
        await graph.assign(u1, (project, role))

        infos = await resolve_all_users_information(db)

        by_name = {i.profile.first_name: i for i in infos}
        assert by_name["Alice"].common_permissions == ["A"]
        assert by_name["Bob"].common_permissions == []
