from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.db.session import get_db
from app.models.user import User
from app.schemas.user import SignInRequest, SignInResponse, SessionVerification, UserResponse
from app.services.audit_service import RequestInfo
from app.services.auth_service import auth_service
from app.api.dependencies import get_current_user, get_request_info, security

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/auth", tags=["Authentication"])


# Authenticate user and return JWT token
@router.post("/signin", response_model=SignInResponse)
async def signin(
    credentials: SignInRequest,
    db: AsyncSession = Depends(get_db),
    request_info: RequestInfo = Depends(get_request_info),
) -> SignInResponse:
    """
    Sign in with email and password.

    When ``tenant_id`` is given the user must have live access to that
    tenant, and the issued token is bound to it.
    """
    result = await auth_service.authenticate(
        db,
        credentials.email,
        credentials.password,
        tenant_slug=credentials.tenant_id,
        request=request_info,
    )
    logger.info(f"User {result.user.id} signed in (tenant: {result.tenant_id})")

    return SignInResponse(
        access_token=result.access_token,
        expires_in=result.expires_in,
        user=UserResponse.model_validate(result.user),
        accessible_tenants=result.accessible_tenants,
    )


# Validate a session token against live tenant access
@router.post("/verify", response_model=SessionVerification)
async def verify(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> SessionVerification:
    """
    Verify a Bearer token.

    A tenant-bound token stops verifying as soon as that access is revoked
    or expires, even though the JWT itself is still valid.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user, claims = await auth_service.verify_session(db, credentials.credentials)
    return SessionVerification(user=UserResponse.model_validate(user), claims=claims)


# Get current user profile
@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user)
) -> UserResponse:
    """
    Get current user profile.
    Requires valid JWT token.
    """
    return UserResponse.model_validate(current_user)
