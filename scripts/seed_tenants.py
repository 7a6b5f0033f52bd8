"""
Script to create the default tenants listed in SEED_TENANTS
Usage: python scripts/seed_tenants.py

Run scripts/seed_admin.py first; tenants are recorded as created by the admin.
"""
import sys
import asyncio

from sqlalchemy import select

from app.core.config import settings
from app.db.session import database, get_db_session
from app.models import User, UserRole
from app.services.tenant_service import get_tenant_service


async def seed_tenants() -> bool:
    tenants = get_tenant_service()
    async with get_db_session() as db:
        result = await db.execute(
            select(User).where(User.role == UserRole.ADMIN).order_by(User.id).limit(1)
        )
        admin = result.scalar_one_or_none()
        if not admin:
            print("❌ Admin user not found. Run scripts/seed_admin.py first")
            return False

        created_count = 0
        for tenant_data in settings.SEED_TENANTS:
            slug = tenant_data["slug"]
            if await tenants.find_by_slug(db, slug, active_only=False):
                print(f"  - Tenant already exists: {tenant_data['name']} ({slug})")
                continue

            await tenants.create(
                db,
                name=tenant_data["name"],
                slug=slug,
                creator_id=admin.id,
                domain=tenant_data.get("domain"),
                description=tenant_data.get("description"),
            )
            print(f"  ✅ Created tenant: {tenant_data['name']} ({slug})")
            created_count += 1

        if created_count == 0:
            print("\n✅ All default tenants already exist")
        else:
            print(f"\n🎉 Seeded {created_count} tenant(s) successfully")
        return True


async def main() -> bool:
    try:
        return await seed_tenants()
    finally:
        await database.dispose()


if __name__ == "__main__":
    success = asyncio.run(main())
    sys.exit(0 if success else 1)
