"""
Admin Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional


class SessionActionRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Reason (for audit log)")


class AdminActionResponse(BaseModel):
    success: bool
    message: str
    email: str
    action: str
    audit_log_id: int


class AuditLogResponse(BaseModel):
    id: int
    actor_email: Optional[str]
    action: str
    target_type: Optional[str]
    target_id: Optional[str]
    meta_data: Optional[Dict[str, Any]]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    logs: List[AuditLogResponse]
    total: int
