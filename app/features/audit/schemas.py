"""
Pydantic schemas for audit log entries.
"""
from datetime import datetime
from typing import Any

from app.core.schemas import CamelModel


class AuditLogResponse(CamelModel):
    id: str
    user_id: str | None = None
    action: str
    resource_type: str
    resource_id: str | None = None
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime
