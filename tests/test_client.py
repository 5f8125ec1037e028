"""
Tests for the API client: session lifecycle, navigation and error mapping.
"""
from datetime import timedelta

import httpx
import pytest
from httpx import ASGITransport

from app.client import TrackerClient
from app.core.errors import NotFoundError, PermissionDeniedError, UnauthorizedError, ValidationError
from app.features.access.guard import AccessState
from app.features.roles.models import RoleLevel
from app.main import app


@pytest.fixture
async def tracker(client):
    """TrackerClient against the app, sharing the `client` fixture's database override."""
    async with TrackerClient(base_url="http://test", transport=ASGITransport(app=app)) as tc:
        yield tc


def mock_client(handler) -> TrackerClient:
    return TrackerClient(base_url="http://test", transport=httpx.MockTransport(handler))


class TestSession:
    async def test_login_and_navigate(self, tracker, db, graph, token_for):
        manager = await graph.user_with_level(RoleLevel.MANAGER, ("VIEW_PROJECT_MANAGEMENT",))
        await db.commit()

        session = await tracker.login(token_for(manager))

        assert session.user_id == manager.id
        assert session.role_level is RoleLevel.MANAGER
        assert (await tracker.navigate("/projects/123")).allowed
        assert (await tracker.navigate("/roles")).state is AccessState.UNAUTHORIZED

    async def test_navigate_sees_role_changes(
        self, tracker, client, db, graph, super_admin, headers_for, token_for
    ):
        manager = await graph.user_with_level(RoleLevel.MANAGER)
        await db.commit()
        await tracker.login(token_for(manager))
        assert (await tracker.navigate("/teams")).allowed

        response = await client.put(
            f"/users/{manager.id}/roles", json={"roleIds": []}, headers=headers_for(super_admin)
        )
        assert response.status_code == 200

        decision = await tracker.navigate("/teams")
        assert decision.state is AccessState.UNAUTHORIZED
        assert tracker.session.role_level is None

    async def test_expired_token_does_not_log_in(self, tracker, super_admin, token_for):
        with pytest.raises(UnauthorizedError) as exc_info:
            await tracker.login(token_for(super_admin, timedelta(minutes=-5)))

        assert exc_info.value.redirect_to.startswith("/auth/login?next=")
        assert not tracker.session.is_authenticated

    async def test_anonymous_navigation_redirects(self, tracker):
        decision = await tracker.navigate("/daily-updates")

        assert decision.state is AccessState.UNAUTHENTICATED
        assert decision.redirect_to == "/auth/login?next=%2Fdaily-updates"

    async def test_logout(self, tracker, super_admin, token_for):
        await tracker.login(token_for(super_admin))

        tracker.logout()

        assert not tracker.session.is_authenticated
        assert tracker.store.token is None


class TestUnauthorizedResponses:
    async def test_any_401_logs_out(self, complete_information_payload):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if request.url.path == "/users/me/complete-information" and len(calls) == 1:
                return httpx.Response(200, json=complete_information_payload)
            return httpx.Response(
                401,
                json={"error": "UNAUTHORIZED", "detail": "Token has expired", "details": {"loginUrl": "/auth/login"}},
            )

        async with mock_client(handler) as tc:
            await tc.login("tok")
            assert tc.session.is_authenticated

            with pytest.raises(UnauthorizedError):
                await tc.replace_user_roles("u-2", [])

            assert not tc.session.is_authenticated
            assert calls[1].headers["Authorization"] == "Bearer tok"

    async def test_refresh_after_revocation_goes_anonymous(self, complete_information_payload):
        responses = iter([
            httpx.Response(200, json=complete_information_payload),
            httpx.Response(401, json={"error": "UNAUTHORIZED", "detail": "Not authenticated", "details": {}}),
        ])

        async with mock_client(lambda request: next(responses)) as tc:
            await tc.login("tok")
            decision = await tc.navigate("/projects")

        assert decision.state is AccessState.UNAUTHENTICATED
        assert decision.redirect_to == "/auth/login?next=%2Fprojects"


class TestErrorMapping:
    @pytest.mark.parametrize("status, body, error_type", [
        (403, {"error": "PERMISSION_DENIED", "detail": "Requires permission: X", "details": {}}, PermissionDeniedError),
        (404, {"error": "NOT_FOUND", "detail": "Role not found", "details": {"resource": "Role", "id": "r"}},
         NotFoundError),
        (400, {"error": "VALIDATION_ERROR", "detail": "Unknown", "details": {"field": "permissionIds"}},
         ValidationError),
    ])
    async def test_status_maps_to_error(self, status, body, error_type):
        async with mock_client(lambda request: httpx.Response(status, json=body)) as tc:
            with pytest.raises(error_type) as exc_info:
                await tc.replace_role_permissions("r", [])

        assert exc_info.value.message == body["detail"]

    async def test_not_found_keeps_resource(self):
        body = {"error": "NOT_FOUND", "detail": "Role not found", "details": {"resource": "Role", "id": "r"}}
        async with mock_client(lambda request: httpx.Response(404, json=body)) as tc:
            with pytest.raises(NotFoundError) as exc_info:
                await tc.replace_role_permissions("r", [])

        assert exc_info.value.details == {"resource": "Role", "id": "r"}

    async def test_request_validation_shape(self):
        async with mock_client(lambda request: httpx.Response(400, json={"code": "bad code"})) as tc:
            with pytest.raises(ValidationError) as exc_info:
                await tc.replace_project_members("p", [])

        assert exc_info.value.details["field"] == "code"
        assert exc_info.value.message == "bad code"
