"""
Access Control Service
The one place that decides whether a user currently has access to a tenant.
Every sign-in and session-validation path goes through ``has_access``.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccessDeniedError
from app.models.base import utcnow
from app.models.invitation import Invitation, InvitationTenant
from app.models.tenant import Tenant


class AccessControlService:
    """Evaluates live tenant access from persisted invitations"""

    def _live_grants(self, user_id: int):
        """
        Scopes of the user's accepted, unrevoked, unexpired invitations
        that point at an active tenant.
        """
        return (
            select(InvitationTenant.tenant_slug)
            .join(Invitation, Invitation.id == InvitationTenant.invitation_id)
            .join(Tenant, Tenant.slug == InvitationTenant.tenant_slug)
            .where(
                Invitation.user_id == user_id,
                Invitation.is_used.is_(True),
                Invitation.revoked_at.is_(None),
                Invitation.expires_at > utcnow(),
                Tenant.is_active.is_(True),
            )
        )

    async def has_access(self, db: AsyncSession, user_id: Optional[int], tenant_slug: Optional[str]) -> bool:
        if user_id is None or not tenant_slug:
            return False
        result = await db.execute(
            self._live_grants(user_id)
            .where(InvitationTenant.tenant_slug == tenant_slug)
            .limit(1)
        )
        return result.first() is not None

    async def require_access(self, db: AsyncSession, user_id: Optional[int], tenant_slug: Optional[str]) -> None:
        if not await self.has_access(db, user_id, tenant_slug):
            raise AccessDeniedError()

    async def accessible_tenants(self, db: AsyncSession, user_id: int) -> List[str]:
        """Distinct tenant slugs the user can access right now, sorted"""
        result = await db.execute(
            self._live_grants(user_id)
            .distinct()
            .order_by(InvitationTenant.tenant_slug)
        )
        return list(result.scalars().all())


# Singleton instance
_access_control_service: Optional[AccessControlService] = None


def get_access_control_service() -> AccessControlService:
    """Get or create the access control service singleton"""
    global _access_control_service
    if _access_control_service is None:
        _access_control_service = AccessControlService()
    return _access_control_service
