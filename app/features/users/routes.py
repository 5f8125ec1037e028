"""
User feature routes.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.errors import PermissionDeniedError
from app.features.access.dependencies import CurrentSession, SuperAdminSession
from app.features.access.guard import has_permission
from app.features.access.resolver import (
    build_complete_information,
    resolve_all_users_information,
    resolve_user_complete_information,
)
from app.features.access.schemas import UserCompleteInformation
from app.features.audit.service import audit_request
from app.features.users import service
from app.features.users.dependencies import get_current_user
from app.features.users.models import User
from app.features.users.schemas import (
    AssignmentResponse,
    ProfileUpdate,
    ReplaceAssignments,
    UserCreate,
    UserResponse,
    UserRoleIds,
    UserUpdate,
)


router = APIRouter(tags=["users"])

VIEW_USER_MANAGEMENT = "VIEW_USER_MANAGEMENT"


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    user: Annotated[User, Depends(get_current_user)]
):
    """Get current authenticated user's profile."""
    return user


@router.patch("/me", response_model=UserResponse)
async def update_current_user_profile(
    update_data: ProfileUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update current user's profile."""
    return await service.update_user(db, user.id, update_data)


@router.get("/me/complete-information", response_model=UserCompleteInformation)
async def get_my_complete_information(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Profile, projects, teams, roles and effective permissions of the caller."""
    return await build_complete_information(db, user)


@router.get("/all-information", response_model=list[UserCompleteInformation])
async def get_all_users_information(
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)],
    is_active: Optional[bool] = None
):
    """Complete information for every user."""
    return await resolve_all_users_information(db, is_active=is_active)


@router.get("", response_model=list[UserResponse])
async def list_users(
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)],
    search: Optional[str] = None,
    department: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 50
):
    """List users with optional search and filtering."""
    return await service.list_users(
        db, search=search, department=department, is_active=is_active, skip=skip, limit=limit
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user: UserCreate,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a user profile ahead of their first login."""
    db_user = await service.create_user(db, user, created_by_id=session.user_id)
    await audit_request(db, request, session.user_id, "create", "user", db_user.id, user.model_dump())
    return db_user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_by_id(
    user_id: str,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a user profile by ID."""
    return await service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_update: UserUpdate,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update a user, including (de)activation."""
    db_user = await service.update_user(db, user_id, user_update)
    await audit_request(
        db, request, session.user_id, "update", "user", user_id, user_update.model_dump(exclude_unset=True)
    )
    return db_user


@router.get("/{user_id}/complete-information", response_model=UserCompleteInformation)
async def get_user_complete_information(
    user_id: str,
    session: CurrentSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Profile, projects, teams, roles and effective permissions of a user.

    Callers may always read their own; reading someone else's requires
    VIEW_USER_MANAGEMENT.
    """
    if user_id != session.user_id and not has_permission(session.permissions, VIEW_USER_MANAGEMENT):
        raise PermissionDeniedError(
            f"Requires permission: {VIEW_USER_MANAGEMENT}", required_permission=VIEW_USER_MANAGEMENT
        )
    return await resolve_user_complete_information(db, user_id)


@router.get("/{user_id}/roles", response_model=UserRoleIds)
async def get_user_roles(
    user_id: str,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """IDs of the roles a user holds on any project."""
    return UserRoleIds(role_ids=await service.get_user_role_ids(db, user_id))


@router.put("/{user_id}/roles", response_model=UserRoleIds)
async def replace_user_roles(
    user_id: str,
    body: UserRoleIds,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Replace the complete role set of a user across their projects."""
    await service.replace_user_roles(db, user_id, body.role_ids, assigned_by_id=session.user_id)
    role_ids = await service.get_user_role_ids(db, user_id)
    await audit_request(db, request, session.user_id, "replace_roles", "user", user_id, {"role_ids": role_ids})
    return UserRoleIds(role_ids=role_ids)


@router.get("/{user_id}/assignments", response_model=list[AssignmentResponse])
async def get_user_assignments(
    user_id: str,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """A user's (project, role, team) assignments."""
    return await service.get_user_assignments(db, user_id)


@router.put("/{user_id}/assignments", response_model=list[AssignmentResponse])
async def replace_user_assignments(
    user_id: str,
    body: ReplaceAssignments,
    request: Request,
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Replace the complete assignment set of a user."""
    await service.replace_assignments(db, user_id, body.assignments, assigned_by_id=session.user_id)
    await audit_request(
        db, request, session.user_id, "replace_assignments", "user", user_id, body.model_dump()
    )
    return await service.get_user_assignments(db, user_id)
