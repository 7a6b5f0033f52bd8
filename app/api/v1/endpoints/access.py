"""
Access Management API Endpoints - ADMIN level
Revoke and extend access, query the access log
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.api.dependencies import get_request_info, require_admin
from app.core.config import settings
from app.db.session import get_db
from app.models.audit import AccessAction, AccessStatus
from app.models.user import User
from app.schemas.access_log import AccessLogList, AccessLogResponse
from app.schemas.common import Pagination
from app.schemas.invitation import (
    ExtendAccessRequest,
    ExtendAccessResponse,
    RevokeAccessRequest,
    RevokeAccessResponse,
)
from app.services.audit_service import AccessLogFilters, RequestInfo, get_audit_service
from app.services.invitation_service import ExpiryPolicy, get_invitation_service

router = APIRouter()
invitation_service = get_invitation_service()
audit_service = get_audit_service()


@router.post("/access/revoke", response_model=RevokeAccessResponse)
async def revoke_access(
    revoke_data: RevokeAccessRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    request_info: RequestInfo = Depends(get_request_info),
):
    """
    Revoke a user's access to the given tenants across all of their
    accepted invitations (ADMIN only).
    """
    revoked_count, revoked_at = await invitation_service.revoke_user_access(
        db,
        revoke_data.user_id,
        revoke_data.tenants,
        reason=revoke_data.reason,
        request=request_info,
    )
    return RevokeAccessResponse(revoked_count=revoked_count, revoked_at=revoked_at)


@router.post("/access/extend", response_model=ExtendAccessResponse)
async def extend_access(
    extend_data: ExtendAccessRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    request_info: RequestInfo = Depends(get_request_info),
):
    """
    Set a new expiry counted from now (ADMIN only).
    """
    expires_at = await invitation_service.extend(
        db,
        extend_data.invitation_id,
        ExpiryPolicy(
            days=extend_data.expiry_days,
            months=extend_data.expiry_months,
            years=extend_data.expiry_years,
        ),
        request=request_info,
    )
    return ExtendAccessResponse(expires_at=expires_at)


@router.get("/access-logs", response_model=AccessLogList)
async def list_access_logs(
    user_id: Optional[int] = None,
    tenant_id: Optional[str] = None,
    action: Optional[AccessAction] = None,
    status: Optional[AccessStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=settings.MAX_ACCESS_LOG_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Query the access log, newest first (ADMIN only).
    """
    logs, total = await audit_service.query(
        db,
        AccessLogFilters(
            user_id=user_id,
            tenant_id=tenant_id,
            action=action,
            status=status,
            start_date=start_date,
            end_date=end_date,
        ),
        skip=skip,
        limit=limit,
    )
    return AccessLogList(
        logs=[AccessLogResponse.model_validate(log) for log in logs],
        pagination=Pagination.build(total, skip, limit),
    )
