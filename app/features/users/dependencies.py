"""
FastAPI dependencies for authentication.
"""
from typing import Annotated, Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from app.core.database.engine import get_db
from app.core.errors import PermissionDeniedError, UnauthorizedError
from app.features.users.auth import verify_jwt_token, get_appwrite_user
from app.features.users.models import User
from app.features.users.service import get_user_by_identity, record_login
from app.utils import get_logger


log = get_logger(__name__)

# auto_error=False so a missing header goes through the central 401 handler
security = HTTPBearer(auto_error=False)


def _split_name(full_name: str) -> tuple[str, str]:
    first, _, last = (full_name or "").strip().partition(" ")
    return first or "Unknown", last.strip()


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User:
    """
    Get the current authenticated user from JWT token.

    This dependency:
    1. Extracts JWT from Authorization header
    2. Decodes it and reads the Appwrite user ID
    3. Finds the local profile by Appwrite ID, then by email for profiles
       created before the first login, or provisions one from Appwrite
    4. Updates last_login_at timestamp

    Usage:
        @router.get("/me")
        async def get_me(user: User = Depends(get_current_user)):
            return user
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()

    payload = verify_jwt_token(credentials.credentials)
    appwrite_user_id = payload.get("userId")
    if not appwrite_user_id:
        raise UnauthorizedError("Invalid token payload")

    user = await get_user_by_identity(db, appwrite_user_id)

    if user is None:
        # Only the address Appwrite reports may link an existing profile
        appwrite_user = await get_appwrite_user(appwrite_user_id)
        email = appwrite_user.get("email", "")
        user = await get_user_by_identity(db, appwrite_user_id, email)
        if user is None:
            first_name, last_name = _split_name(appwrite_user.get("name", ""))
            user = User(
                appwrite_id=appwrite_user_id,
                email=email,
                first_name=first_name,
                last_name=last_name,
            )
            db.add(user)
            log.info("Provisioned user %s from Appwrite", email)

    if user.appwrite_id is None:
        user.appwrite_id = appwrite_user_id

    if not user.is_active:
        raise PermissionDeniedError("User account is deactivated")

    return await record_login(db, user)


def get_authorization_header(request: Request) -> str:
    """
    Extract authorization header for rate limiting.
    Used with slowapi Limiter.
    """
    auth = request.headers.get("Authorization", "")
    return auth or "anonymous"
