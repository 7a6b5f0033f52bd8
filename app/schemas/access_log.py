"""
Pydantic schemas for access log queries
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from app.models.audit import AccessAction, AccessStatus
from app.schemas.common import Pagination


class AccessLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    tenant_id: Optional[str] = None
    action: AccessAction
    status: AccessStatus
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    error_message: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class AccessLogList(BaseModel):
    logs: List[AccessLogResponse]
    pagination: Pagination
