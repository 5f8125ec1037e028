"""
Audit logging helpers.
"""
from typing import Any, Dict, Optional
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from starlette.requests import Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.audit.models import AuditLog
from app.utils import get_logger


log = get_logger(__name__)


async def create_audit_log(
    db: AsyncSession,
    user_id: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None
) -> AuditLog:
    """
    Create an audit log entry in the caller's transaction.

    Args:
        db: Database session
        user_id: User performing the action
        action: Action performed (e.g., "create", "update", "replace_permissions")
        resource_type: Type of resource (e.g., "role", "permission", "user")
        resource_id: ID of the resource
        details: Additional details, typically the full replacement payload
        ip_address: Client IP address
        user_agent: Client user agent

    Returns:
        Created AuditLog object
    """
    audit_log = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent
    )
    db.add(audit_log)
    await db.flush()

    log.info(f"Audit: user={user_id} action={action} resource={resource_type}:{resource_id}")

    return audit_log


async def audit_request(
    db: AsyncSession,
    request: Request,
    user_id: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """create_audit_log with the client address and user agent taken from the request."""
    return await create_audit_log(
        db,
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=jsonable_encoder(details) if details is not None else None,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


async def list_audit_logs(
    db: AsyncSession,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    user_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[AuditLog]:
    """List audit entries, newest first."""
    stmt = select(AuditLog)
    if resource_type:
        stmt = stmt.where(AuditLog.resource_type == resource_type)
    if resource_id:
        stmt = stmt.where(AuditLog.resource_id == resource_id)
    if user_id:
        stmt = stmt.where(AuditLog.user_id == user_id)
    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
