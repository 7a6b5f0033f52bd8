"""
Invitation API Endpoints
Issue, list and accept invitations; revoke scopes of a single invitation
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.api.dependencies import get_request_info, require_admin
from app.core.config import settings
from app.db.session import get_db
from app.models.base import utcnow
from app.models.user import User
from app.schemas.common import Pagination
from app.schemas.invitation import (
    InvitationAccept,
    InvitationAccepted,
    InvitationCreate,
    InvitationCreated,
    InvitationList,
    InvitationResponse,
    InvitationSummary,
    RevokeAccessResponse,
    RevokeInvitationRequest,
)
from app.services.audit_service import RequestInfo
from app.services.invitation_service import ExpiryPolicy, InvitationFilters, get_invitation_service

router = APIRouter()
invitation_service = get_invitation_service()


@router.post("", response_model=InvitationCreated, status_code=status.HTTP_201_CREATED)
async def issue_invitation(
    invitation_data: InvitationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    request_info: RequestInfo = Depends(get_request_info),
):
    """
    Issue an invitation for one or more tenants (ADMIN only).

    The user account is created if the email is new. The acceptance link is
    emailed to the invitee.
    """
    invitation = await invitation_service.issue(
        db,
        email=invitation_data.email,
        tenants=invitation_data.tenants,
        expiry=ExpiryPolicy(
            days=invitation_data.expiry_days,
            months=invitation_data.expiry_months,
            years=invitation_data.expiry_years,
        ),
        issuer_id=current_user.id,
        request=request_info,
    )
    return InvitationCreated(invitation=InvitationSummary.model_validate(invitation))


@router.get("", response_model=InvitationList)
async def list_invitations(
    email: Optional[str] = None,
    tenant_id: Optional[str] = None,
    is_used: Optional[bool] = None,
    is_revoked: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=settings.MAX_INVITATION_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    List invitations, newest first (ADMIN only).

    Revoked invitations are only returned when ``is_revoked=true``.
    """
    invitations, total = await invitation_service.list(
        db,
        InvitationFilters(email=email, tenant=tenant_id, is_used=is_used, is_revoked=is_revoked),
        skip=skip,
        limit=limit,
    )
    return InvitationList(
        invitations=[InvitationResponse.model_validate(inv) for inv in invitations],
        pagination=Pagination.build(total, skip, limit),
    )


@router.post("/accept", response_model=InvitationAccepted)
async def accept_invitation(
    accept_data: InvitationAccept,
    db: AsyncSession = Depends(get_db),
    request_info: RequestInfo = Depends(get_request_info),
):
    """
    Redeem an invitation token.

    Returns the generated username and password. This is the only time the
    password is ever returned.
    """
    accepted = await invitation_service.accept(db, accept_data.token, request=request_info)
    return InvitationAccepted(
        email=accepted.email,
        username=accepted.username,
        password=accepted.password,
    )


@router.get("/{invitation_id}", response_model=InvitationResponse)
async def get_invitation(
    invitation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Get one invitation (ADMIN only)."""
    invitation = await invitation_service.get(db, invitation_id)
    return InvitationResponse.model_validate(invitation)


@router.post("/{invitation_id}/revoke", response_model=RevokeAccessResponse)
async def revoke_invitation(
    invitation_id: int,
    revoke_data: RevokeInvitationRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    request_info: RequestInfo = Depends(get_request_info),
):
    """
    Revoke tenant scopes of one invitation (ADMIN only).

    Revoking all of its scopes revokes the invitation permanently.
    """
    revoked_count = await invitation_service.revoke(
        db,
        invitation_id,
        revoke_data.tenants,
        reason=revoke_data.reason,
        request=request_info,
    )
    return RevokeAccessResponse(revoked_count=revoked_count, revoked_at=utcnow())
