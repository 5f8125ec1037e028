"""
Tests for the access guard, the session context and the capability registry.

These are pure functions over in-memory values; no database is involved.
"""
import dataclasses

import pytest

from app.core.errors import PermissionDeniedError, ValidationError
from app.features.access.dependencies import require_permission, require_roles
from app.features.access.capabilities import CAPABILITIES, find_capability, visible_capabilities
from app.features.access.guard import (
    AccessState,
    evaluate,
    has_all_permissions,
    has_any_permission,
    has_permission,
    has_role,
    login_redirect,
)
from app.features.access.session import SessionContext, SessionStore
from app.features.roles.models import RoleLevel


def session(level=None, permissions=(), user_id="u-1") -> SessionContext:
    return SessionContext(
        user_id=user_id,
        email="someone@tracker.io",
        role_level=level,
        permissions=frozenset(permissions),
        token="token",
    )


class TestHasRole:
    """Role-set membership."""

    @pytest.mark.parametrize("level", [RoleLevel.ADMIN, RoleLevel.MANAGER, RoleLevel.USER, None, "ROOT", "", 3])
    def test_super_admin_gate_denies_everyone_else(self, level):
        assert has_role(level, {RoleLevel.SUPER_ADMIN}) is False

    def test_super_admin_gate_allows_super_admin(self):
        assert has_role(RoleLevel.SUPER_ADMIN, {RoleLevel.SUPER_ADMIN})
        assert has_role("SUPER_ADMIN", ["SUPER_ADMIN"])

    def test_unknown_allow_list_entries_are_ignored(self):
        assert has_role(RoleLevel.MANAGER, ["PROJECT_MANAGER"]) is False
        assert has_role(RoleLevel.MANAGER, ["PROJECT_MANAGER", "MANAGER"]) is True

    def test_level_values_are_case_sensitive(self):
        assert has_role("super_admin", [RoleLevel.SUPER_ADMIN]) is False

    def test_empty_allow_list_denies(self):
        assert has_role(RoleLevel.SUPER_ADMIN, []) is False


class TestHasPermission:
    """Permission membership."""

    def test_exact_match_only(self):
        perms = {"VIEW_USER_MANAGEMENT"}
        assert has_permission(perms, "VIEW_USER_MANAGEMENT")
        assert not has_permission(perms, "view_user_management")
        assert not has_permission(perms, "VIEW_USER")
        assert not has_permission({"VIEW_USER"}, "VIEW_USER_MANAGEMENT")
        assert not has_permission({"VIEW_*"}, "VIEW_USER_MANAGEMENT")

    def test_empty_set_denies(self):
        assert not has_permission(frozenset(), "VIEW_USER_MANAGEMENT")

    @pytest.mark.parametrize("name", ["", "view user", "1VIEW", "x" * 101])
    def test_malformed_requirement_raises(self, name):
        with pytest.raises(ValidationError):
            has_permission({"VIEW_DASHBOARD"}, name)

    def test_any_and_all(self):
        perms = {"A", "B"}
        assert has_any_permission(perms, ["C", "B"])
        assert not has_any_permission(perms, ["C", "D"])
        assert not has_any_permission(perms, [])
        assert has_all_permissions(perms, ["A", "B"])
        assert not has_all_permissions(perms, ["A", "C"])


class TestEvaluate:
    def test_anonymous_is_redirected_to_login_with_next(self):
        decision = evaluate(SessionContext.anonymous(), roles=[RoleLevel.SUPER_ADMIN], target="/roles")
        assert decision.state is AccessState.UNAUTHENTICATED
        assert decision.redirect_to == "/auth/login?next=%2Froles"
        assert not decision.allowed

    def test_wrong_role_is_unauthorized_without_fallback(self):
        decision = evaluate(session(RoleLevel.ADMIN, {"VIEW_USER_MANAGEMENT"}), roles=[RoleLevel.SUPER_ADMIN])
        assert decision.state is AccessState.UNAUTHORIZED
        assert decision.redirect_to is None
        assert "SUPER_ADMIN" in decision.reason

    def test_missing_permission_is_unauthorized(self):
        decision = evaluate(session(RoleLevel.SUPER_ADMIN), permission="VIEW_USER_MANAGEMENT")
        assert decision.state is AccessState.UNAUTHORIZED

    def test_all_requirements_must_hold(self):
        s = session(RoleLevel.MANAGER, {"VIEW_REPORTS"})
        assert evaluate(s, roles=[RoleLevel.MANAGER], any_permissions=["VIEW_REPORTS"]).allowed
        assert not evaluate(s, roles=[RoleLevel.MANAGER], permission="VIEW_DASHBOARD").allowed

    def test_no_requirement_needs_only_authentication(self):
        assert evaluate(session()).state is AccessState.AUTHORIZED

    def test_user_without_roles_is_denied_everywhere_gated(self):
        s = session(level=None, permissions=())
        for capability in CAPABILITIES:
            if capability.roles is None and capability.any_permissions is None:
                continue
            assert capability.evaluate(s).state is AccessState.UNAUTHORIZED, capability.name


class TestLoginRedirect:
    def test_without_target(self):
        assert login_redirect() == "/auth/login"

    def test_query_is_encoded(self):
        assert login_redirect("/daily-updates/1/edit?tab=2") == "/auth/login?next=%2Fdaily-updates%2F1%2Fedit%3Ftab%3D2"


class TestCapabilities:
    def test_sub_paths_inherit_their_section(self):
        assert find_capability("/daily-updates/42/edit").name == "daily-updates"
        assert find_capability("modules/view-all").name == "modules"
        assert find_capability("/reports/teams?x=1").name == "reports"

    def test_unknown_path_has_no_capability(self):
        assert find_capability("/nowhere") is None
        assert find_capability("/") is None

    def test_super_admin_with_view_permissions_sees_admin_sections(self):
        s = session(RoleLevel.SUPER_ADMIN, {"VIEW_DASHBOARD", "VIEW_CONFIGURATION", "VIEW_REPORTS"})
        names = {c.name for c in visible_capabilities(s)}
        assert {"users", "roles", "modules", "permissions", "configuration", "projects", "teams"} <= names
        assert "daily-updates" not in names

    def test_developer_sees_daily_updates_with_either_permission(self):
        for perm in ("VIEW_DAILY_UPDATES", "VIEW_DAILY_UPDATES_FULL"):
            names = {c.name for c in visible_capabilities(session(RoleLevel.USER, {perm}))}
            assert "daily-updates" in names
            assert "projects" not in names
            assert "users" not in names

    def test_manager_reaches_projects_not_users(self):
        projects = find_capability("/projects")
        users = find_capability("/users")
        s = session(RoleLevel.MANAGER)
        assert projects.evaluate(s).allowed
        assert users.evaluate(s).state is AccessState.UNAUTHORIZED


class TestRouteDependencies:
    async def test_require_roles(self):
        dependency = require_roles(RoleLevel.SUPER_ADMIN)
        admin = session(RoleLevel.SUPER_ADMIN)

        assert await dependency(admin) is admin
        with pytest.raises(PermissionDeniedError) as exc_info:
            await dependency(session(RoleLevel.ADMIN))
        assert exc_info.value.details["required_roles"] == ["SUPER_ADMIN"]

    async def test_require_permission(self):
        dependency = require_permission("VIEW_REPORTS")

        assert (await dependency(session(RoleLevel.USER, {"VIEW_REPORTS"}))).user_id == "u-1"
        with pytest.raises(PermissionDeniedError):
            await dependency(session(RoleLevel.SUPER_ADMIN, {"VIEW_DASHBOARD"}))

    def test_malformed_requirement_fails_at_declaration(self):
        with pytest.raises(ValidationError):
            require_permission("view reports")


class TestSessionStore:
    def test_context_is_immutable(self):
        s = session(RoleLevel.USER, {"A"})
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.role_level = RoleLevel.SUPER_ADMIN

    def test_starts_anonymous_and_logout_resets(self, complete_information):
        store = SessionStore()
        assert not store.current.is_authenticated

        context = store.login("tok", complete_information)
        assert store.current is context
        assert store.token == "tok"
        assert context.role_level is RoleLevel.MANAGER
        assert context.permissions == frozenset({"VIEW_PROJECT_MANAGEMENT"})

        store.logout()
        assert not store.current.is_authenticated
        assert store.token is None


@pytest.fixture
def complete_information(complete_information_payload):
    from app.features.access.schemas import UserCompleteInformation

    return UserCompleteInformation.model_validate(complete_information_payload)
