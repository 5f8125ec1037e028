"""
FastAPI dependencies that put the access guard in front of routes.

The session is resolved again on every request, so role and permission
changes take effect on the caller's next request.

Usage:
    @router.put("/{role_id}/permissions")
    async def replace_permissions(
        session: Annotated[SessionContext, Depends(require_roles(RoleLevel.SUPER_ADMIN))],
        ...
    ):
        ...
"""
from typing import Annotated, Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.errors import PermissionDeniedError
from app.features.access.guard import evaluate, has_permission
from app.features.access.resolver import build_complete_information
from app.features.access.session import SessionContext
from app.features.permissions.models import PermissionName
from app.features.roles.models import RoleLevel
from app.features.users.dependencies import get_current_user, security
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


async def get_session(
    user: Annotated[User, Depends(get_current_user)],
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> SessionContext:
    """Session context of the authenticated caller."""
    info = await build_complete_information(db, user)
    return SessionContext.from_user_information(info, token=credentials.credentials if credentials else None)


def require_roles(*levels: RoleLevel):
    """
    Dependency factory that requires the caller's role level to be in `levels`.

    Raises:
        PermissionDeniedError: If the caller's level is missing or not allowed
    """
    allowed = tuple(levels)

    async def role_dependency(
        session: Annotated[SessionContext, Depends(get_session)]
    ) -> SessionContext:
        decision = evaluate(session, roles=allowed)
        if not decision.allowed:
            log.info("Denied user %s (role %s): %s", session.user_id, session.role_level, decision.reason)
            raise PermissionDeniedError(decision.reason or "Permission denied", required_roles=[r.value for r in allowed])
        return session

    return role_dependency


def require_permission(name: str):
    """
    Dependency factory that requires one permission.

    The name is validated when the dependency is declared, so a malformed
    requirement fails at import time rather than silently denying.

    Raises:
        PermissionDeniedError: If the caller does not hold the permission
    """
    required = PermissionName(name)

    async def permission_dependency(
        session: Annotated[SessionContext, Depends(get_session)]
    ) -> SessionContext:
        if not has_permission(session.permissions, required):
            log.info("Denied user %s: missing %s", session.user_id, required)
            raise PermissionDeniedError(f"Requires permission: {required}", required_permission=str(required))
        return session

    return permission_dependency


SuperAdminSession = Annotated[SessionContext, Depends(require_roles(RoleLevel.SUPER_ADMIN))]
ProjectLeadSession = Annotated[
    SessionContext,
    Depends(require_roles(RoleLevel.SUPER_ADMIN, RoleLevel.ADMIN, RoleLevel.MANAGER)),
]
CurrentSession = Annotated[SessionContext, Depends(get_session)]
