"""
Pydantic schemas for User and sign-in endpoints
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Dict, List, Optional
from datetime import datetime
from app.models.user import UserRole


class UserResponse(BaseModel):
    """Response schema for users (never includes the password hash)"""
    id: int
    email: EmailStr
    username: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    role: UserRole
    is_active: bool
    is_invitation_accepted: bool
    last_login: Optional[datetime] = None
    oauth_ids: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SignInRequest(BaseModel):
    """Schema for email/password sign-in"""
    email: EmailStr
    password: str = Field(..., min_length=1)
    tenant_id: Optional[str] = None


class SignInResponse(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
    accessible_tenants: List[str]


class SessionVerification(BaseModel):
    valid: bool = True
    user: UserResponse
    claims: dict


class UserCount(BaseModel):
    count: int
