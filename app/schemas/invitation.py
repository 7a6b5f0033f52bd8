"""
Invitation Schemas
Pydantic models for invitation and access management requests
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.config import settings
from app.schemas.common import Pagination


class ExpiryFields(BaseModel):
    """Access duration given as days, months and years"""
    expiry_days: int = Field(0, ge=0)
    expiry_months: int = Field(0, ge=0)
    expiry_years: int = Field(0, ge=0)


def _require_slugs(value: List[str]) -> List[str]:
    cleaned = [slug.strip() for slug in value if slug and slug.strip()]
    if not cleaned:
        raise ValueError("tenants must contain at least one tenant slug")
    return cleaned


class InvitationCreate(ExpiryFields):
    """Schema for issuing an invitation"""
    email: EmailStr
    tenants: List[str] = Field(..., min_length=1)
    expiry_days: int = Field(settings.DEFAULT_INVITATION_EXPIRY_DAYS, ge=0)

    @field_validator("tenants")
    @classmethod
    def validate_tenants(cls, value: List[str]) -> List[str]:
        return _require_slugs(value)


class InvitationSummary(BaseModel):
    """Invitation as returned right after it is issued"""
    id: int
    email: str
    tenants: List[str]
    expires_at: datetime

    class Config:
        from_attributes = True


class InvitationCreated(BaseModel):
    message: str = "Invitation sent successfully"
    invitation: InvitationSummary


class InvitationResponse(BaseModel):
    """Schema for invitation listings (never includes the token)"""
    id: int
    email: str
    user_id: int
    tenants: List[str]
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    is_used: bool
    revoked_at: Optional[datetime] = None
    revoked_reason: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    is_expired: bool
    status: str

    class Config:
        from_attributes = True


class InvitationList(BaseModel):
    invitations: List[InvitationResponse]
    pagination: Pagination


class InvitationAccept(BaseModel):
    """Schema for accepting an invitation"""
    token: str = Field(..., min_length=1)


class InvitationAccepted(BaseModel):
    """One-time credentials returned on acceptance"""
    message: str = "Invitation accepted successfully"
    email: str
    username: str
    password: str


class RevokeAccessRequest(BaseModel):
    user_id: int
    tenants: List[str] = Field(..., min_length=1)
    reason: Optional[str] = None

    @field_validator("tenants")
    @classmethod
    def validate_tenants(cls, value: List[str]) -> List[str]:
        return _require_slugs(value)


class RevokeInvitationRequest(BaseModel):
    tenants: List[str] = Field(..., min_length=1)
    reason: Optional[str] = None

    @field_validator("tenants")
    @classmethod
    def validate_tenants(cls, value: List[str]) -> List[str]:
        return _require_slugs(value)


class RevokeAccessResponse(BaseModel):
    message: str = "Access revoked successfully"
    revoked_count: int
    revoked_at: datetime


class ExtendAccessRequest(ExpiryFields):
    invitation_id: int


class ExtendAccessResponse(BaseModel):
    message: str = "Access extended successfully"
    expires_at: datetime
