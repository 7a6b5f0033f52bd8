"""
Pydantic schemas for Tenant endpoints
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9_-]*$")
    domain: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    domain: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class TenantResponse(BaseModel):
    id: int
    name: str
    slug: str
    domain: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TenantList(BaseModel):
    tenants: List[TenantResponse]
