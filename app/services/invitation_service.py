"""
Invitation Service
Owns the invitation lifecycle: issue, one-time acceptance, partial/full
revocation, expiry extension and listing
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ConflictError,
    InternalError,
    InvalidOrExpiredInvitationError,
    NotFoundError,
    TenantNotFoundError,
    ValidationError,
)
from app.models.audit import AccessAction, AccessStatus
from app.models.base import utcnow
from app.models.invitation import Invitation, InvitationTenant
from app.models.user import User
from app.services.audit_service import AccessLogEntry, AuditService, RequestInfo, get_audit_service
from app.services.credential_service import CredentialService, get_credential_service
from app.services.email_service import EmailService, get_email_service
from app.services.tenant_service import TenantService, get_tenant_service
from app.services.user_service import UserService, get_user_service

logger = logging.getLogger(__name__)


@dataclass
class ExpiryPolicy:
    """
    Access duration as calendar days, months and years.

    Applied to a start instant as days first, then months, then years. The
    order matters: month arithmetic clamps to the end of the month, so
    Jan 30 + 1 day + 1 month is Feb 28 while Jan 30 + 1 month + 1 day is
    Mar 1.
    """
    days: int = 0
    months: int = 0
    years: int = 0

    def __post_init__(self):
        for field_name in ("days", "months", "years"):
            value = getattr(self, field_name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValidationError(f"{field_name} must be a non-negative integer")

    @property
    def is_empty(self) -> bool:
        return not (self.days or self.months or self.years)

    def apply(self, start: datetime) -> datetime:
        result = start + relativedelta(days=self.days)
        result = result + relativedelta(months=self.months)
        result = result + relativedelta(years=self.years)
        return result


@dataclass
class AcceptedInvitation:
    """Result of a successful acceptance. ``password`` is never retrievable again."""
    invitation_id: int
    user_id: int
    email: str
    username: str
    password: str
    tenants: List[str]
    expires_at: datetime


@dataclass
class InvitationFilters:
    email: Optional[str] = None
    tenant: Optional[str] = None
    is_used: Optional[bool] = None
    is_revoked: bool = False


def _clean_slugs(tenants: Optional[Sequence[str]]) -> List[str]:
    """Strip blanks and duplicates, keeping the caller's order"""
    if not tenants:
        return []
    cleaned = []
    for slug in tenants:
        if not isinstance(slug, str):
            raise ValidationError("tenants must be a list of tenant slugs")
        slug = slug.strip()
        if slug and slug not in cleaned:
            cleaned.append(slug)
    return cleaned


class InvitationService:
    """Service for managing invitations and the access they grant"""

    TOKEN_ATTEMPTS = 3
    USERNAME_ATTEMPTS = 5

    def __init__(
        self,
        tenant_service: Optional[TenantService] = None,
        user_service: Optional[UserService] = None,
        credential_service: Optional[CredentialService] = None,
        audit_service: Optional[AuditService] = None,
        email_service: Optional[EmailService] = None,
        allow_extend_revoked: Optional[bool] = None,
    ):
        self.tenants = tenant_service or get_tenant_service()
        self.users = user_service or get_user_service()
        self.credentials = credential_service or get_credential_service()
        self.audit = audit_service or get_audit_service()
        self.email_service = email_service or get_email_service()
        self.allow_extend_revoked = (
            settings.ALLOW_EXTEND_REVOKED if allow_extend_revoked is None else allow_extend_revoked
        )

    # ==================== LOOKUPS ====================

    async def find_by_id(self, db: AsyncSession, invitation_id: int) -> Optional[Invitation]:
        result = await db.execute(
            select(Invitation)
            .where(Invitation.id == invitation_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, db: AsyncSession, invitation_id: int) -> Invitation:
        invitation = await self.find_by_id(db, invitation_id)
        if not invitation:
            raise NotFoundError("Invitation not found")
        return invitation

    async def find_by_token(self, db: AsyncSession, token: str) -> Optional[Invitation]:
        result = await db.execute(select(Invitation).where(Invitation.token == token))
        return result.scalar_one_or_none()

    async def _new_token(self, db: AsyncSession) -> str:
        for _ in range(self.TOKEN_ATTEMPTS):
            token = self.credentials.generate_token()
            if not await self.find_by_token(db, token):
                return token
        raise InternalError("Could not generate a unique invitation token")

    async def _new_username(self, db: AsyncSession) -> str:
        for _ in range(self.USERNAME_ATTEMPTS):
            username = self.credentials.generate_username()
            if not await self.users.find_by_username(db, username):
                return username
        raise InternalError("Could not generate a unique username")

    # ==================== ISSUE ====================

    async def issue(
        self,
        db: AsyncSession,
        email: str,
        tenants: Sequence[str],
        expiry: Optional[ExpiryPolicy] = None,
        issuer_id: Optional[int] = None,
        request: Optional[RequestInfo] = None,
    ) -> Invitation:
        """
        Create a pending invitation for ``email`` covering ``tenants``.

        The user for the email is created if it does not exist yet; an
        existing user is reused. Once committed, one ``invite`` log entry is
        written per tenant and the invitation email is dispatched.

        Raises:
            ValidationError: Missing email, empty tenant list or zero expiry
            TenantNotFoundError: A slug does not name an active tenant
        """
        email = self.users.normalize_email(email)
        if not email or "@" not in email:
            raise ValidationError("Valid email is required")

        slugs = _clean_slugs(tenants)
        if not slugs:
            raise ValidationError("At least one tenant is required")

        expiry = expiry or ExpiryPolicy(days=settings.DEFAULT_INVITATION_EXPIRY_DAYS)
        if expiry.is_empty:
            raise ValidationError("Invitation expiry must be at least one day, month or year")

        active = {tenant.slug for tenant in await self.tenants.find_active_by_slugs(db, slugs)}
        missing = [slug for slug in slugs if slug not in active]
        if missing:
            raise TenantNotFoundError(f"Tenant not found: {', '.join(missing)}")

        user = await self.users.create(db, email, assign_username=False)
        token = await self._new_token(db)

        invitation = Invitation(
            email=email,
            user_id=user.id,
            token=token,
            expires_at=expiry.apply(utcnow()),
            is_used=False,
            created_by=issuer_id,
            scopes=[InvitationTenant(tenant_slug=slug) for slug in slugs],
        )
        db.add(invitation)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.exception(f"Invitation insert rejected for {email}")
            raise ConflictError("Invitation could not be created, please retry")

        invitation_id, user_id = invitation.id, user.id
        logger.info(
            f"Invitation {invitation_id} issued to user {user_id} for {slugs}, "
            f"expires {invitation.expires_at.isoformat()}"
        )

        await self._dispatch_invitation(invitation)
        await self.audit.append_many(db, [
            AccessLogEntry(
                action=AccessAction.INVITE,
                status=AccessStatus.SUCCESS,
                user_id=user_id,
                tenant_id=slug,
                request=request,
            )
            for slug in slugs
        ])

        return await self.get(db, invitation_id)

    async def _dispatch_invitation(self, invitation: Invitation) -> None:
        acceptance_url = f"{settings.FRONTEND_URL}/auth/accept-invitation?token={invitation.token}"
        try:
            sent = await run_in_threadpool(
                self.email_service.send_invitation_email,
                invitation.email,
                acceptance_url,
                invitation.tenants,
                invitation.expires_at,
            )
            if not sent:
                logger.warning(f"Invitation email not sent for invitation {invitation.id}")
        except Exception:
            # Delivery problems never undo a committed invitation
            logger.exception(f"Invitation email failed for invitation {invitation.id}")

    # ==================== ACCEPT ====================

    async def accept(
        self,
        db: AsyncSession,
        token: str,
        request: Optional[RequestInfo] = None,
    ) -> AcceptedInvitation:
        """
        Redeem an invitation token and issue credentials.

        Marking the invitation used is a single conditional UPDATE, so of any
        number of concurrent calls with the same token exactly one succeeds.
        The user's credentials are written in the same transaction.

        Raises:
            ValidationError: No token given
            InvalidOrExpiredInvitationError: Token unknown, used, revoked or expired
        """
        if not token or not isinstance(token, str):
            raise ValidationError("Invitation token is required")

        raw_password = self.credentials.generate_password()
        password_hash = await run_in_threadpool(self.credentials.hash_password, raw_password)

        now = utcnow()
        result = await db.execute(
            update(Invitation)
            .where(
                Invitation.token == token,
                Invitation.is_used.is_(False),
                Invitation.revoked_at.is_(None),
                Invitation.expires_at > now,
            )
            .values(is_used=True, accepted_at=now, updated_at=now)
            .returning(Invitation.id, Invitation.email, Invitation.user_id)
            .execution_options(synchronize_session=False)
        )
        claimed = result.first()

        if claimed is None:
            await db.rollback()
            await self.audit.append(db, AccessLogEntry(
                action=AccessAction.ACCEPT_INVITATION,
                status=AccessStatus.FAILED,
                error_message="Invalid or expired invitation",
                request=request,
            ))
            raise InvalidOrExpiredInvitationError()

        try:
            assigned = await db.scalar(select(User.username).where(User.id == claimed.user_id))
            username = assigned or await self._new_username(db)
            username = await self.users.mark_invitation_accepted(
                db, claimed.user_id, username, password_hash
            )
            await db.commit()
        except (IntegrityError, InternalError):
            await db.rollback()
            logger.exception(f"Could not store credentials for invitation {claimed.id}")
            raise InternalError("Failed to accept invitation")

        invitation = await self.get(db, claimed.id)
        accepted = AcceptedInvitation(
            invitation_id=invitation.id,
            user_id=claimed.user_id,
            email=claimed.email,
            username=username,
            password=raw_password,
            tenants=invitation.tenants,
            expires_at=invitation.expires_at,
        )
        logger.info(f"Invitation {accepted.invitation_id} accepted by user {accepted.user_id}")

        await self._dispatch_credentials(accepted)
        await self.audit.append_many(db, [
            AccessLogEntry(
                action=AccessAction.ACCEPT_INVITATION,
                status=AccessStatus.SUCCESS,
                user_id=accepted.user_id,
                tenant_id=slug,
                request=request,
            )
            for slug in accepted.tenants
        ])
        return accepted

    async def _dispatch_credentials(self, accepted: AcceptedInvitation) -> None:
        try:
            sent = await run_in_threadpool(
                self.email_service.send_credentials_email,
                accepted.email,
                accepted.username,
                accepted.password,
                accepted.tenants,
                accepted.expires_at,
            )
            if not sent:
                logger.warning(f"Credentials email not sent for invitation {accepted.invitation_id}")
        except Exception:
            logger.exception(f"Credentials email failed for invitation {accepted.invitation_id}")

    # ==================== REVOKE ====================

    async def _close(self, db: AsyncSession, invitation_id: int, reason: Optional[str], now: datetime) -> bool:
        result = await db.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id, Invitation.revoked_at.is_(None))
            .values(revoked_at=now, revoked_reason=reason, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def _close_if_empty(self, db: AsyncSession, invitation_id: int, reason: Optional[str], now: datetime) -> None:
        # Evaluated by the database at write time, after any committed concurrent revoke
        held = select(InvitationTenant.id).where(InvitationTenant.invitation_id == Invitation.id)
        await db.execute(
            update(Invitation)
            .where(
                Invitation.id == invitation_id,
                Invitation.revoked_at.is_(None),
                ~held.exists(),
            )
            .values(revoked_at=now, revoked_reason=reason, updated_at=now)
            .execution_options(synchronize_session=False)
        )

    async def _held_scopes(self, db: AsyncSession, invitation_id: int) -> List[str]:
        result = await db.execute(
            select(InvitationTenant.tenant_slug)
            .where(InvitationTenant.invitation_id == invitation_id)
            .order_by(InvitationTenant.id)
        )
        return list(result.scalars().all())

    async def revoke(
        self,
        db: AsyncSession,
        invitation_id: int,
        tenants: Sequence[str],
        reason: Optional[str] = None,
        request: Optional[RequestInfo] = None,
    ) -> int:
        """
        Revoke some or all of an invitation's tenant scopes.

        Revoking every current scope revokes the invitation itself, which is
        final. Revoking a subset removes exactly those scopes with one DELETE,
        so concurrent partial revokes cannot overwrite each other. The
        invitation row is locked first, so revokes of the same invitation are
        applied one after the other against the scopes left by the previous.

        Returns:
            Number of scopes revoked (one ``revoke`` log entry each)
        """
        requested = _clean_slugs(tenants)
        if not requested:
            raise ValidationError("At least one tenant is required")

        invitation = await self.get(db, invitation_id)
        invitation_id, user_id = invitation.id, invitation.user_id

        live = await db.scalar(
            select(Invitation.id)
            .where(Invitation.id == invitation_id, Invitation.revoked_at.is_(None))
            .with_for_update()
        )
        current = await self._held_scopes(db, invitation_id) if live else []
        targets = [slug for slug in current if slug in requested]
        if not targets:
            await db.commit()
            return 0

        now = utcnow()
        if len(targets) == len(current):
            revoked = targets if await self._close(db, invitation_id, reason, now) else []
        else:
            result = await db.execute(
                delete(InvitationTenant)
                .where(
                    InvitationTenant.invitation_id == invitation_id,
                    InvitationTenant.tenant_slug.in_(targets),
                )
                .returning(InvitationTenant.tenant_slug)
                .execution_options(synchronize_session=False)
            )
            revoked = [row.tenant_slug for row in result.all()]

            await db.execute(
                update(Invitation)
                .where(Invitation.id == invitation_id)
                .values(updated_at=now)
                .execution_options(synchronize_session=False)
            )
            await self._close_if_empty(db, invitation_id, reason, now)

        await db.commit()

        if revoked:
            logger.info(f"Revoked {revoked} on invitation {invitation_id}")
            await self.audit.append_many(db, [
                AccessLogEntry(
                    action=AccessAction.REVOKE,
                    status=AccessStatus.SUCCESS,
                    user_id=user_id,
                    tenant_id=slug,
                    request=request,
                )
                for slug in revoked
            ])
        return len(revoked)

    async def revoke_user_access(
        self,
        db: AsyncSession,
        user_id: int,
        tenants: Sequence[str],
        reason: Optional[str] = None,
        request: Optional[RequestInfo] = None,
    ) -> Tuple[int, datetime]:
        """
        Revoke ``tenants`` from every accepted, live invitation of a user.

        Returns:
            (number of scopes revoked, time of revocation)
        """
        requested = _clean_slugs(tenants)
        if not requested:
            raise ValidationError("user_id and tenants are required")

        result = await db.execute(
            select(Invitation.id)
            .join(InvitationTenant)
            .where(
                Invitation.user_id == user_id,
                Invitation.is_used.is_(True),
                Invitation.revoked_at.is_(None),
                InvitationTenant.tenant_slug.in_(requested),
            )
            .distinct()
            .order_by(Invitation.id)
        )
        invitation_ids = list(result.scalars().all())

        revoked_count = 0
        for invitation_id in invitation_ids:
            revoked_count += await self.revoke(db, invitation_id, requested, reason, request)
        return revoked_count, utcnow()

    # ==================== EXTEND ====================

    async def extend(
        self,
        db: AsyncSession,
        invitation_id: int,
        expiry: ExpiryPolicy,
        request: Optional[RequestInfo] = None,
    ) -> datetime:
        """
        Set a new expiry of now + ``expiry``.

        The new expiry is counted from the current instant, not from the old
        expiry, so repeated calls do not accumulate.

        Raises:
            NotFoundError: Unknown invitation
            ConflictError: Invitation is revoked and extending revoked
                invitations is disabled
        """
        invitation = await self.get(db, invitation_id)
        if invitation.is_revoked and not self.allow_extend_revoked:
            raise ConflictError("Cannot extend a revoked invitation")

        now = utcnow()
        expires_at = expiry.apply(now)
        result = await db.execute(
            update(Invitation)
            .where(Invitation.id == invitation.id)
            .values(expires_at=expires_at, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            raise NotFoundError("Invitation not found")
        await db.commit()

        if invitation.is_revoked:
            logger.warning(f"Extended revoked invitation {invitation.id}")
        logger.info(f"Invitation {invitation.id} now expires {expires_at.isoformat()}")

        await self.audit.append_many(db, [
            AccessLogEntry(
                action=AccessAction.EXTEND_ACCESS,
                status=AccessStatus.SUCCESS,
                user_id=invitation.user_id,
                tenant_id=slug,
                request=request,
            )
            for slug in invitation.tenants
        ])
        return expires_at

    # ==================== LIST ====================

    async def list(
        self,
        db: AsyncSession,
        filters: Optional[InvitationFilters] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Invitation], int]:
        """
        List invitations, newest first.

        Revoked invitations are left out unless ``filters.is_revoked`` is set,
        in which case only revoked ones are returned.

        Returns:
            (page of invitations, total matching invitations)
        """
        filters = filters or InvitationFilters()
        conditions = []
        if filters.email:
            conditions.append(Invitation.email.icontains(filters.email.strip(), autoescape=True))
        if filters.tenant:
            conditions.append(Invitation.scopes.any(InvitationTenant.tenant_slug == filters.tenant))
        if filters.is_used is not None:
            conditions.append(Invitation.is_used.is_(filters.is_used))
        if filters.is_revoked:
            conditions.append(Invitation.revoked_at.is_not(None))
        else:
            conditions.append(Invitation.revoked_at.is_(None))

        total_result = await db.execute(
            select(func.count(Invitation.id)).where(*conditions)
        )
        total = total_result.scalar_one()

        result = await db.execute(
            select(Invitation)
            .where(*conditions)
            .order_by(Invitation.created_at.desc(), Invitation.id.desc())
            .offset(skip)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total


# Singleton instance
_invitation_service: Optional[InvitationService] = None


def get_invitation_service() -> InvitationService:
    """Get or create the invitation service singleton"""
    global _invitation_service
    if _invitation_service is None:
        _invitation_service = InvitationService()
    return _invitation_service
