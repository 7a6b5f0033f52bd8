"""
Tenant API Endpoints - ADMIN level
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.tenant import TenantCreate, TenantList, TenantResponse, TenantUpdate
from app.services.tenant_service import get_tenant_service

router = APIRouter()
tenant_service = get_tenant_service()


@router.get("", response_model=TenantList)
async def list_tenants(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """List tenants ordered by name (ADMIN only)."""
    tenants = await tenant_service.list(db, active_only=not include_inactive)
    return TenantList(tenants=[TenantResponse.model_validate(t) for t in tenants])


@router.post("", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    tenant_data: TenantCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Create a tenant (ADMIN only). Slugs are unique."""
    tenant = await tenant_service.create(
        db,
        name=tenant_data.name,
        slug=tenant_data.slug,
        creator_id=current_user.id,
        domain=tenant_data.domain,
        description=tenant_data.description,
    )
    return TenantResponse.model_validate(tenant)


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(
    tenant_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    tenant = await tenant_service.get_by_id(db, tenant_id)
    return TenantResponse.model_validate(tenant)


@router.patch("/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: int,
    tenant_data: TenantUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Update tenant name, domain or description (ADMIN only)."""
    tenant = await tenant_service.update(db, tenant_id, **tenant_data.model_dump(exclude_unset=True))
    return TenantResponse.model_validate(tenant)


@router.post("/{tenant_id}/deactivate", response_model=TenantResponse)
async def deactivate_tenant(
    tenant_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Deactivate a tenant (ADMIN only).

    Nobody can sign in to a deactivated tenant and it cannot be named in new
    invitations.
    """
    tenant = await tenant_service.deactivate(db, tenant_id)
    return TenantResponse.model_validate(tenant)
