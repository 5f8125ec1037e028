"""
Registry of the panel's gated capabilities.

Each capability pairs a panel path with its requirement: a role allow-list,
a set of permissions of which any one suffices, or both. Paths without an
entry (profile, dashboard) only need an authenticated session.
"""
from dataclasses import dataclass
from typing import Optional

from app.features.access.guard import AccessDecision, evaluate
from app.features.access.session import SessionContext
from app.features.roles.models import RoleLevel


ADMIN_ONLY = (RoleLevel.SUPER_ADMIN,)
PROJECT_LEADS = (RoleLevel.SUPER_ADMIN, RoleLevel.ADMIN, RoleLevel.MANAGER)
CONTRIBUTORS = (RoleLevel.SUPER_ADMIN, RoleLevel.ADMIN, RoleLevel.MANAGER, RoleLevel.USER)


@dataclass(frozen=True)
class Capability:
    name: str
    path: str
    roles: Optional[tuple[RoleLevel, ...]] = None
    any_permissions: Optional[tuple[str, ...]] = None

    def evaluate(self, session: SessionContext, target: Optional[str] = None) -> AccessDecision:
        return evaluate(
            session,
            roles=self.roles,
            any_permissions=self.any_permissions,
            target=target or self.path,
        )


CAPABILITIES: tuple[Capability, ...] = (
    Capability("profile", "/profile"),
    Capability("dashboard", "/dashboard", any_permissions=("VIEW_DASHBOARD",)),
    Capability("configuration", "/configuration", roles=ADMIN_ONLY, any_permissions=("VIEW_CONFIGURATION",)),
    Capability("projects", "/projects", roles=PROJECT_LEADS),
    Capability("teams", "/teams", roles=PROJECT_LEADS),
    Capability(
        "daily-updates",
        "/daily-updates",
        roles=CONTRIBUTORS,
        any_permissions=("VIEW_DAILY_UPDATES", "VIEW_DAILY_UPDATES_FULL"),
    ),
    Capability("users", "/users", roles=ADMIN_ONLY),
    Capability("modules", "/modules", roles=ADMIN_ONLY),
    Capability("roles", "/roles", roles=ADMIN_ONLY),
    Capability("permissions", "/permissions", roles=ADMIN_ONLY),
    Capability("reports", "/reports", roles=PROJECT_LEADS, any_permissions=("VIEW_REPORTS",)),
)

_BY_PATH = {c.path: c for c in CAPABILITIES}


def find_capability(path: str) -> Optional[Capability]:
    """
    Capability governing a panel path.

    Sub-paths inherit their section's capability, so "/daily-updates/42/edit"
    is governed by "/daily-updates".
    """
    path = "/" + path.split("?", 1)[0].strip("/")
    while path:
        capability = _BY_PATH.get(path)
        if capability is not None:
            return capability
        path = path.rsplit("/", 1)[0]
    return None


def visible_capabilities(session: SessionContext) -> list[Capability]:
    """Capabilities the session may reach, in menu order."""
    return [c for c in CAPABILITIES if c.evaluate(session).allowed]
