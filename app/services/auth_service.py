"""
Authentication service for sign-in, session verification and JWT handling
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AccessDeniedError, AuthenticationError
from app.models.audit import AccessAction, AccessStatus
from app.models.user import OAuthProvider, User
from app.services.access_control import AccessControlService, get_access_control_service
from app.services.audit_service import AccessLogEntry, AuditService, RequestInfo, get_audit_service
from app.services.credential_service import CredentialService, get_credential_service
from app.services.user_service import UserService, get_user_service

logger = logging.getLogger(__name__)


@dataclass
class SignInResult:
    user: User
    access_token: str
    expires_in: int
    tenant_id: Optional[str] = None
    accessible_tenants: List[str] = field(default_factory=list)


class AuthService:
    """Authentication service for sign-in and JWT management"""

    def __init__(
        self,
        user_service: Optional[UserService] = None,
        credential_service: Optional[CredentialService] = None,
        access_control: Optional[AccessControlService] = None,
        audit_service: Optional[AuditService] = None,
    ):
        self.users = user_service or get_user_service()
        self.credentials = credential_service or get_credential_service()
        self.access_control = access_control or get_access_control_service()
        self.audit = audit_service or get_audit_service()
        self.algorithm = settings.ALGORITHM
        self.secret_key = settings.SECRET_KEY
        self.access_token_expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=self.access_token_expire_minutes)

        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> Optional[dict]:
        """Decode and validate a JWT access token"""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

    def _token_for(self, user: User, tenant_slug: Optional[str]) -> str:
        return self.create_access_token({
            "sub": str(user.id),
            "email": user.email,
            "username": user.username,
            "role": user.role.value,
            "tenant_id": tenant_slug,
        })

    async def _record_signin(
        self,
        db: AsyncSession,
        user_id: Optional[int],
        tenant_slug: Optional[str],
        request: Optional[RequestInfo],
        error: Optional[str] = None,
    ) -> None:
        await self.audit.append(db, AccessLogEntry(
            action=AccessAction.SIGNIN,
            status=AccessStatus.FAILED if error else AccessStatus.SUCCESS,
            user_id=user_id,
            tenant_id=tenant_slug,
            error_message=error,
            request=request,
        ))

    async def _complete_signin(
        self,
        db: AsyncSession,
        user: User,
        tenant_slug: Optional[str],
        request: Optional[RequestInfo],
    ) -> SignInResult:
        """Shared tail of every sign-in path: invitation and tenant checks"""
        if not user.is_invitation_accepted:
            await self._record_signin(db, user.id, tenant_slug, request, "Invitation not accepted")
            raise AccessDeniedError("You must accept the invitation first")

        if tenant_slug and not await self.access_control.has_access(db, user.id, tenant_slug):
            await self._record_signin(db, user.id, tenant_slug, request, "No access to tenant")
            raise AccessDeniedError()

        user_id = user.id
        await self.users.update_last_login(db, user_id)
        accessible = await self.access_control.accessible_tenants(db, user_id)
        await self._record_signin(db, user_id, tenant_slug, request)

        user = await self.users.get_by_id(db, user_id)
        return SignInResult(
            user=user,
            access_token=self._token_for(user, tenant_slug),
            expires_in=self.access_token_expire_minutes * 60,
            tenant_id=tenant_slug,
            accessible_tenants=accessible,
        )

    async def authenticate(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        tenant_slug: Optional[str] = None,
        request: Optional[RequestInfo] = None,
    ) -> SignInResult:
        """
        Sign in with email and password, optionally into a specific tenant.

        Every outcome is written to the access log.

        Raises:
            AuthenticationError: Unknown user, inactive user or wrong password
            AccessDeniedError: Invitation not accepted or no live tenant access
        """
        user = await self.users.find_by_email(db, email)
        if not user:
            await self._record_signin(db, None, tenant_slug, request, "User not found")
            raise AuthenticationError()

        if not user.password_hash:
            await self._record_signin(db, user.id, tenant_slug, request, "User has no password set")
            raise AuthenticationError("Please use social login")

        valid = await run_in_threadpool(self.credentials.verify_password, password, user.password_hash)
        if not valid:
            await self._record_signin(db, user.id, tenant_slug, request, "Invalid password")
            raise AuthenticationError()

        if not user.is_active:
            await self._record_signin(db, user.id, tenant_slug, request, "User inactive")
            raise AuthenticationError("Account is disabled")

        return await self._complete_signin(db, user, tenant_slug, request)

    async def oauth_sign_in(
        self,
        db: AsyncSession,
        provider: OAuthProvider,
        provider_id: str,
        email: str,
        name: Optional[str] = None,
        image: Optional[str] = None,
        tenant_slug: Optional[str] = None,
        request: Optional[RequestInfo] = None,
    ) -> SignInResult:
        """
        Sign in with an identity already verified by an OAuth provider.

        Only invited users may sign in this way; the provider identity is
        linked to the account and the profile refreshed from the provider.
        """
        user = await self.users.find_by_email(db, email)
        if not user:
            await self._record_signin(db, None, tenant_slug, request, "User not invited")
            raise AccessDeniedError("User not invited. Please check your email for an invitation link.")

        if not user.is_active:
            await self._record_signin(db, user.id, tenant_slug, request, "User inactive")
            raise AuthenticationError("Account is disabled")

        if user.is_invitation_accepted:
            await self.users.link_oauth_provider(db, user.id, provider, provider_id)
            user = await self.users.update_profile(db, user.id, name=name, image=image)

        return await self._complete_signin(db, user, tenant_slug, request)

    async def verify_session(self, db: AsyncSession, token: str) -> Tuple[User, dict]:
        """
        Validate a session token.

        Raises:
            AuthenticationError: Token invalid/expired or user gone/inactive
            AccessDeniedError: Token is tenant-scoped and that access is no longer live
        """
        payload = self.decode_access_token(token)
        if not payload or not payload.get("sub"):
            raise AuthenticationError("Invalid or expired token")

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise AuthenticationError("Invalid token payload")

        user = await self.users.find_by_id(db, user_id)
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        tenant_slug = payload.get("tenant_id")
        if tenant_slug:
            await self.access_control.require_access(db, user.id, tenant_slug)

        return user, payload


auth_service = AuthService()
