"""
Access guard: pure checks over a session context.

Two strategies are available and either may gate a capability:

- role-set membership: the caller's coarse role level must be in an allow-list
- permission membership: a required permission name must be in the caller's
  effective permission set (exact, case-sensitive, no wildcards)

Every function here is synchronous and side-effect free; fetching the
session is the caller's job.
"""
import enum
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional
from urllib.parse import urlencode

from app.core import config
from app.features.permissions.models import PermissionName
from app.features.roles.models import RoleLevel

if TYPE_CHECKING:
    from app.features.access.session import SessionContext


class AccessState(str, enum.Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    UNAUTHORIZED = "UNAUTHORIZED"
    AUTHORIZED = "AUTHORIZED"


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    redirect_to: Optional[str] = None
    reason: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.state is AccessState.AUTHORIZED


def login_redirect(target: Optional[str] = None) -> str:
    """Login URL carrying the originally requested path as ?next=."""
    if not target:
        return config.LOGIN_URL
    separator = "&" if "?" in config.LOGIN_URL else "?"
    return f"{config.LOGIN_URL}{separator}{urlencode({'next': target})}"


def has_permission(permissions: Collection[str], required: str) -> bool:
    """
    Exact membership test.

    Raises:
        ValidationError: If `required` is not a well-formed permission name
    """
    return PermissionName(required) in permissions


def has_any_permission(permissions: Collection[str], required: Iterable[str]) -> bool:
    return any(has_permission(permissions, name) for name in required)


def has_all_permissions(permissions: Collection[str], required: Iterable[str]) -> bool:
    return all(has_permission(permissions, name) for name in required)


def has_role(level: Any, allowed: Iterable[Any]) -> bool:
    """
    Role-set membership test. Never raises.

    Missing or unrecognized levels never match, and unrecognized strings in
    the allow-list are ignored.
    """
    parsed = RoleLevel.parse(level)
    if parsed is None:
        return False
    return any(RoleLevel.parse(candidate) is parsed for candidate in allowed)


def evaluate(
    session: "SessionContext",
    roles: Optional[Iterable[Any]] = None,
    permission: Optional[str] = None,
    any_permissions: Optional[Iterable[str]] = None,
    target: Optional[str] = None,
) -> AccessDecision:
    """
    Decide whether the session may reach a capability.

    Unauthenticated sessions are redirected to login with `target` as next.
    When several requirements are given all of them must hold. A capability
    with no requirement only needs authentication.
    """
    if not session.is_authenticated:
        return AccessDecision(AccessState.UNAUTHENTICATED, redirect_to=login_redirect(target))

    if roles is not None:
        roles = list(roles)
        if not has_role(session.role_level, roles):
            return AccessDecision(
                AccessState.UNAUTHORIZED,
                reason=f"Requires one of roles: {', '.join(str(getattr(r, 'value', r)) for r in roles)}",
            )
    if permission is not None and not has_permission(session.permissions, permission):
        return AccessDecision(AccessState.UNAUTHORIZED, reason=f"Requires permission: {permission}")
    if any_permissions is not None:
        any_permissions = list(any_permissions)
        if not has_any_permission(session.permissions, any_permissions):
            return AccessDecision(
                AccessState.UNAUTHORIZED,
                reason=f"Requires any of permissions: {', '.join(any_permissions)}",
            )

    return AccessDecision(AccessState.AUTHORIZED)
