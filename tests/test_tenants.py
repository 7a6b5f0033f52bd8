"""
Tenant registry tests
"""
import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.services.tenant_service import TenantService


tenant_service = TenantService()


@pytest.mark.asyncio
async def test_create_and_find(db_session, admin_user):
    tenant = await tenant_service.create(
        db_session,
        name="My App",
        slug="myapp",
        creator_id=admin_user.id,
        domain="https://myapp.example.com",
    )

    assert tenant.id is not None
    assert tenant.is_active is True
    assert tenant.created_by == admin_user.id

    found = await tenant_service.find_by_slug(db_session, "myapp")
    assert found.id == tenant.id


@pytest.mark.asyncio
async def test_duplicate_slug_rejected(db_session, tenants):
    with pytest.raises(ConflictError):
        await tenant_service.create(db_session, name="Another", slug="myapp", creator_id=None)


@pytest.mark.asyncio
async def test_blank_fields_rejected(db_session):
    with pytest.raises(ValidationError):
        await tenant_service.create(db_session, name="  ", slug="x", creator_id=None)
    with pytest.raises(ValidationError):
        await tenant_service.create(db_session, name="X", slug="", creator_id=None)


@pytest.mark.asyncio
async def test_deactivated_tenant_hidden_from_active_lookups(db_session, tenants):
    reports = tenants[2]
    await tenant_service.deactivate(db_session, reports.id)

    assert await tenant_service.find_by_slug(db_session, "reports") is None
    assert (await tenant_service.find_by_slug(db_session, "reports", active_only=False)).id == reports.id

    active = await tenant_service.find_active_by_slugs(db_session, ["myapp", "reports"])
    assert [t.slug for t in active] == ["myapp"]

    with pytest.raises(ConflictError):
        await tenant_service.create(db_session, name="Reports again", slug="reports", creator_id=None)


@pytest.mark.asyncio
async def test_list_ordered_by_name(db_session, tenants):
    listed = await tenant_service.list(db_session)
    assert [t.name for t in listed] == ["Dashboard", "My App", "Reports"]

    await tenant_service.deactivate(db_session, tenants[0].id)
    assert [t.slug for t in await tenant_service.list(db_session)] == ["dashboard", "reports"]
    assert len(await tenant_service.list(db_session, active_only=False)) == 3


@pytest.mark.asyncio
async def test_update_keeps_slug(db_session, tenants):
    updated = await tenant_service.update(db_session, tenants[0].id, name="Renamed", description="New")
    assert updated.name == "Renamed"
    assert updated.description == "New"
    assert updated.slug == "myapp"


@pytest.mark.asyncio
async def test_get_unknown_tenant(db_session):
    with pytest.raises(NotFoundError):
        await tenant_service.get_by_id(db_session, 9999)
