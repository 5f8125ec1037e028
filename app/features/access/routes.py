"""
Access routes: the caller's session and capability checks.
"""
from fastapi import APIRouter

from app.features.access.capabilities import find_capability, visible_capabilities
from app.features.access.dependencies import CurrentSession
from app.features.access.guard import AccessDecision, AccessState, evaluate
from app.features.access.schemas import (
    AccessCheckRequest,
    AccessDecisionResponse,
    CapabilityResponse,
    SessionResponse,
)


router = APIRouter()


def _decision_response(decision: AccessDecision) -> AccessDecisionResponse:
    return AccessDecisionResponse(
        state=decision.state,
        allowed=decision.allowed,
        redirect_to=decision.redirect_to,
        reason=decision.reason,
    )


@router.get("/me", response_model=SessionResponse)
async def get_my_session(session: CurrentSession):
    """Current role level, effective permissions and the capabilities they unlock."""
    return SessionResponse(
        user_id=session.user_id,
        email=session.email,
        role=session.role_level,
        permissions=sorted(session.permissions),
        capabilities=[CapabilityResponse(name=c.name, path=c.path) for c in visible_capabilities(session)],
    )


@router.post("/check", response_model=AccessDecisionResponse)
async def check_access(check: AccessCheckRequest, session: CurrentSession):
    """
    Evaluate a capability for the caller.

    With a path, the path's registered capability is evaluated and any
    explicit requirements in the body are ignored. Unregistered paths only
    need authentication.
    """
    if check.path is not None:
        capability = find_capability(check.path)
        if capability is None:
            return _decision_response(AccessDecision(AccessState.AUTHORIZED))
        return _decision_response(capability.evaluate(session, target=check.path))

    decision = evaluate(
        session,
        roles=check.roles,
        permission=check.permission,
        any_permissions=check.any_permissions,
    )
    return _decision_response(decision)
