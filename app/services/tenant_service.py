"""
Tenant Service
Tenant registry: creation, lookup and deactivation of tenant applications
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.tenant import Tenant

logger = logging.getLogger(__name__)


class TenantService:
    """Service for managing tenants"""

    async def create(
        self,
        db: AsyncSession,
        name: str,
        slug: str,
        creator_id: Optional[int],
        domain: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Tenant:
        """
        Create a new tenant.

        Raises:
            ValidationError: If name or slug is blank
            ConflictError: If the slug is already taken (active or not)
        """
        name = (name or "").strip()
        slug = (slug or "").strip()
        if not name or not slug:
            raise ValidationError("name and slug are required")

        if await self.find_by_slug(db, slug, active_only=False):
            raise ConflictError("Tenant with this slug already exists")

        tenant = Tenant(
            name=name,
            slug=slug,
            domain=domain or None,
            description=description or None,
            is_active=True,
            created_by=creator_id,
        )
        db.add(tenant)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Tenant with this slug already exists")
        await db.refresh(tenant)

        logger.info(f"Tenant created: {tenant.slug} (id={tenant.id})")
        return tenant

    async def find_by_slug(
        self,
        db: AsyncSession,
        slug: str,
        active_only: bool = True,
    ) -> Optional[Tenant]:
        query = select(Tenant).where(Tenant.slug == slug)
        if active_only:
            query = query.where(Tenant.is_active.is_(True))
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def find_by_id(self, db: AsyncSession, tenant_id: int) -> Optional[Tenant]:
        result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()

    async def get_by_id(self, db: AsyncSession, tenant_id: int) -> Tenant:
        tenant = await self.find_by_id(db, tenant_id)
        if not tenant:
            raise NotFoundError(f"Tenant with ID {tenant_id} not found")
        return tenant

    async def find_active_by_slugs(self, db: AsyncSession, slugs: List[str]) -> List[Tenant]:
        if not slugs:
            return []
        result = await db.execute(
            select(Tenant).where(Tenant.slug.in_(slugs), Tenant.is_active.is_(True))
        )
        return list(result.scalars().all())

    async def list(self, db: AsyncSession, active_only: bool = True) -> List[Tenant]:
        """List tenants ordered by name"""
        query = select(Tenant)
        if active_only:
            query = query.where(Tenant.is_active.is_(True))
        result = await db.execute(query.order_by(Tenant.name.asc(), Tenant.id.asc()))
        return list(result.scalars().all())

    async def update(
        self,
        db: AsyncSession,
        tenant_id: int,
        name: Optional[str] = None,
        domain: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Tenant:
        """Update descriptive fields; the slug is fixed once created"""
        tenant = await self.get_by_id(db, tenant_id)

        if name is not None:
            if not name.strip():
                raise ValidationError("name cannot be empty")
            tenant.name = name.strip()
        if domain is not None:
            tenant.domain = domain or None
        if description is not None:
            tenant.description = description or None

        await db.commit()
        await db.refresh(tenant)
        return tenant

    async def deactivate(self, db: AsyncSession, tenant_id: int) -> Tenant:
        tenant = await self.get_by_id(db, tenant_id)
        tenant.is_active = False
        await db.commit()
        await db.refresh(tenant)
        logger.info(f"Tenant deactivated: {tenant.slug}")
        return tenant


# Singleton instance
_tenant_service: Optional[TenantService] = None


def get_tenant_service() -> TenantService:
    """Get or create the tenant service singleton"""
    global _tenant_service
    if _tenant_service is None:
        _tenant_service = TenantService()
    return _tenant_service
