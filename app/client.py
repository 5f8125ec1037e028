"""
Async API client for the tracker backend.

Holds the caller's session in a SessionStore and keeps it honest:

- any 401 response logs the session out (one response hook, not per call)
- navigate() refetches the caller's complete information before evaluating
  the target path, so role changes are seen on the next navigation
- error responses are raised as the same exceptions the server raised

Usage:
    async with TrackerClient() as client:
        await client.login(token)
        decision = await client.navigate("/projects")
"""
from typing import Any, Optional

import httpx

from app.core import config
from app.core.errors import (
    NotFoundError,
    PermissionDeniedError,
    TrackerError,
    UnauthorizedError,
    ValidationError,
)
from app.features.access.capabilities import find_capability
from app.features.access.guard import AccessDecision, AccessState, login_redirect
from app.features.access.schemas import UserCompleteInformation
from app.features.access.session import SessionContext, SessionStore
from app.features.users.schemas import AssignmentIn
from app.utils import get_logger


log = get_logger(__name__)


def _error_from_response(response: httpx.Response) -> TrackerError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("detail") or response.reason_phrase or "Request failed"
    details = body.get("details") or {}

    if response.status_code == 401:
        return UnauthorizedError(message, redirect_to=details.get("loginUrl"))
    if response.status_code == 403:
        return PermissionDeniedError(message, **details)
    if response.status_code == 404:
        return NotFoundError(details.get("resource", "Resource"), details.get("id"), message=message)
    if response.status_code == 400:
        if "error" not in body and "detail" not in body:
            # Request-body validation errors come back as {field: message}
            field, msg = next(iter(body.items()), (None, "Invalid request"))
            return ValidationError(str(msg), field=field)
        return ValidationError(message, **details)
    return TrackerError(message, error_code=body.get("error"), details=details)


class TrackerClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        store: Optional[SessionStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self.store = store or SessionStore()
        self._http = httpx.AsyncClient(
            base_url=base_url or config.API_BASE_URL,
            transport=transport,
            timeout=timeout,
            event_hooks={"request": [self._authorize], "response": [self._on_response]},
        )

    async def __aenter__(self) -> "TrackerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def session(self) -> SessionContext:
        return self.store.current

    async def _authorize(self, request: httpx.Request) -> None:
        token = self.store.token
        if token and "Authorization" not in request.headers:
            request.headers["Authorization"] = f"Bearer {token}"

    async def _on_response(self, response: httpx.Response) -> None:
        if response.status_code == 401 and self.store.current.is_authenticated:
            log.info("Received 401 from %s, logging out", response.request.url.path)
            self.store.logout()

    async def _request(self, method: str, url: str, token: Optional[str] = None, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        response = await self._http.request(method, url, headers=headers, **kwargs)
        if response.is_error:
            raise _error_from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def login(self, token: str) -> SessionContext:
        """Fetch the caller's complete information with `token` and install the session."""
        data = await self._request("GET", "/users/me/complete-information", token=token)
        info = UserCompleteInformation.model_validate(data)
        return self.store.login(token, info)

    async def refresh(self) -> SessionContext:
        """Refetch the current session. Anonymous sessions stay anonymous."""
        token = self.store.token
        if token is None:
            return self.store.current
        try:
            return await self.login(token)
        except UnauthorizedError:
            return self.store.current

    def logout(self) -> SessionContext:
        return self.store.logout()

    async def navigate(self, path: str) -> AccessDecision:
        """
        Evaluate a panel path for the current caller after refetching the session.

        Paths without a registered capability only need an authenticated session.
        """
        session = await self.refresh()
        capability = find_capability(path)
        if capability is not None:
            return capability.evaluate(session, target=path)
        if not session.is_authenticated:
            return AccessDecision(AccessState.UNAUTHENTICATED, redirect_to=login_redirect(path))
        return AccessDecision(AccessState.AUTHORIZED)

    # ------------------------------------------------------------------
    # Complete information
    # ------------------------------------------------------------------

    async def get_my_complete_information(self) -> UserCompleteInformation:
        data = await self._request("GET", "/users/me/complete-information")
        return UserCompleteInformation.model_validate(data)

    async def get_user_complete_information(self, user_id: str) -> UserCompleteInformation:
        data = await self._request("GET", f"/users/{user_id}/complete-information")
        return UserCompleteInformation.model_validate(data)

    async def get_all_users_information(self) -> list[UserCompleteInformation]:
        data = await self._request("GET", "/users/all-information")
        return [UserCompleteInformation.model_validate(item) for item in data]

    # ------------------------------------------------------------------
    # Replace operations
    # ------------------------------------------------------------------

    async def replace_role_permissions(self, role_id: str, permission_ids: list[str]) -> dict:
        return await self._request("PUT", f"/roles/{role_id}/permissions", json={"permissionIds": permission_ids})

    async def replace_user_roles(self, user_id: str, role_ids: list[str]) -> list[str]:
        data = await self._request("PUT", f"/users/{user_id}/roles", json={"roleIds": role_ids})
        return data["roleIds"]

    async def replace_assignments(self, user_id: str, assignments: list[AssignmentIn]) -> list[dict]:
        payload = {"assignments": [a.model_dump(by_alias=True) for a in assignments]}
        return await self._request("PUT", f"/users/{user_id}/assignments", json=payload)

    async def replace_project_members(self, project_id: str, user_ids: list[str]) -> list[str]:
        data = await self._request("PUT", f"/projects/{project_id}/members", json={"userIds": user_ids})
        return data["userIds"]

    async def replace_team_members(self, team_id: str, user_ids: list[str]) -> list[str]:
        data = await self._request("PUT", f"/teams/{team_id}/members", json={"userIds": user_ids})
        return data["userIds"]
