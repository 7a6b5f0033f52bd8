"""
API Dependencies for authentication and authorization
"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.exceptions import UnauthorizedError
from app.db.session import get_db
from app.models.user import User, UserRole
from app.services.audit_service import RequestInfo
from app.services.auth_service import auth_service


security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get the current authenticated user object.

    The token is validated by the session verifier, so an inactive user or a
    tenant-bound token whose tenant access is gone is rejected here too.
    """

    # Validate JWT token is provided
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user, _ = await auth_service.verify_session(db, credentials.credentials)
    return user


def require_roles(*roles: UserRole):
    """
    Dependency factory for role-based access control.
    Usage: @router.get("/admin", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """
    def check_user_role(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise UnauthorizedError()
        return current_user

    return check_user_role


require_admin = require_roles(UserRole.ADMIN, UserRole.SUPERADMIN)


def get_request_info(request: Request) -> RequestInfo:
    """Client address and user agent for the access log"""
    forwarded = request.headers.get("x-forwarded-for") or request.headers.get("x-client-ip")
    ip_address = forwarded.split(",")[0].strip() if forwarded else None
    if not ip_address and request.client:
        ip_address = request.client.host
    return RequestInfo(
        ip_address=ip_address or "unknown",
        user_agent=request.headers.get("user-agent") or "unknown",
    )
