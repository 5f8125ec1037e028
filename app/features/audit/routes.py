"""
Audit log routes (SUPER_ADMIN only).
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.access.dependencies import SuperAdminSession
from app.features.audit.schemas import AuditLogResponse
from app.features.audit.service import list_audit_logs


router = APIRouter()


@router.get("", response_model=list[AuditLogResponse])
async def get_audit_logs(
    session: SuperAdminSession,
    db: Annotated[AsyncSession, Depends(get_db)],
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    user_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
):
    """List audit entries, newest first."""
    return await list_audit_logs(
        db, resource_type=resource_type, resource_id=resource_id, user_id=user_id, skip=skip, limit=limit
    )
