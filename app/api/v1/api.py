"""
API v1 router
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    access,
    auth,
    invitations,
    tenants,
    users,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router)
api_router.include_router(invitations.router, prefix="/invitations", tags=["Invitations"])
api_router.include_router(access.router, tags=["Access Management - ADMIN"])
api_router.include_router(tenants.router, prefix="/tenants", tags=["Tenants - ADMIN"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])


@api_router.get("/")
async def api_root():
    """API v1 root endpoint"""
    return {
        "message": "Tenant Access Gateway API v1",
        "status": "active",
        "version": "1.0.0",
        "endpoints": {
            "auth": "/auth",
            "invitations": "/invitations (ADMIN, accept is public)",
            "access": "/access (ADMIN)",
            "access_logs": "/access-logs (ADMIN)",
            "tenants": "/tenants (ADMIN)",
            "users": "/users",
            "docs": "/docs",
            "health": "/health"
        }
    }
