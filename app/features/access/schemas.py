"""
Pydantic schemas for the complete-information aggregate and access checks.
"""
from pydantic import Field

from app.core.schemas import CamelModel
from app.features.access.guard import AccessState
from app.features.permissions.schemas import PermissionRef
from app.features.projects.models import ProjectStatus
from app.features.roles.models import RoleLevel
from app.features.users.schemas import UserResponse


class TeamSummary(CamelModel):
    id: str
    name: str
    lead_id: str | None = None


class RoleSummary(CamelModel):
    id: str
    name: str
    level: RoleLevel
    permissions: list[PermissionRef] = []


class ProjectSummary(CamelModel):
    """A project the user takes part in, with their teams and roles there."""
    id: str
    name: str
    code: str
    status: ProjectStatus
    is_active: bool
    teams: list[TeamSummary] = []
    roles: list[RoleSummary] = []


class UserCompleteInformation(CamelModel):
    """
    Everything the access model knows about one user.

    common_permissions is the flattened, sorted union of the permission names
    of every active role the user holds; it is recomputed on every fetch.
    """
    profile: UserResponse
    projects: list[ProjectSummary] = []
    common_permissions: list[str] = []


class CapabilityResponse(CamelModel):
    name: str
    path: str


class SessionResponse(CamelModel):
    user_id: str
    email: str
    role: RoleLevel | None = None
    permissions: list[str] = []
    capabilities: list[CapabilityResponse] = []


class AccessCheckRequest(CamelModel):
    """Either a capability path, or an explicit role and/or permission requirement."""
    path: str | None = None
    roles: list[str] | None = None
    permission: str | None = None
    any_permissions: list[str] | None = None


class AccessDecisionResponse(CamelModel):
    state: AccessState
    allowed: bool
    redirect_to: str | None = Field(None, description="Login URL when the caller is not authenticated")
    reason: str | None = None
