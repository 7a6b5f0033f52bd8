"""
Script to create the initial admin user from ADMIN_EMAIL / ADMIN_PASSWORD
Usage: python scripts/seed_admin.py
"""
import sys
import asyncio

from app.core.config import settings
from app.db.session import database, get_db_session
from app.models import User, UserRole
from app.services.credential_service import get_credential_service
from app.services.user_service import get_user_service


async def seed_admin() -> bool:
    """Create the admin user unless one already exists for ADMIN_EMAIL"""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        print("❌ ADMIN_EMAIL and ADMIN_PASSWORD environment variables are required")
        return False

    users = get_user_service()
    async with get_db_session() as db:
        existing = await users.find_by_email(db, settings.ADMIN_EMAIL)
        if existing:
            print(f"✅ Admin user already exists (ID: {existing.id}, role: {existing.role.value})")
            return True

        admin = User(
            email=users.normalize_email(settings.ADMIN_EMAIL),
            username=await users.derive_username(db, "admin"),
            password_hash=get_credential_service().hash_password(settings.ADMIN_PASSWORD),
            name="Admin",
            role=UserRole.ADMIN,
            is_active=True,
            is_invitation_accepted=True,
        )
        db.add(admin)
        await db.commit()

        print("\n🎉 Admin user created successfully")
        print(f"📧 Email: {admin.email}")
        print(f"👤 Username: {admin.username}")
        print(f"🔑 Role: {admin.role.value}")
        print(f"   ID: {admin.id}")
        return True


async def main() -> bool:
    try:
        return await seed_admin()
    finally:
        await database.dispose()


if __name__ == "__main__":
    success = asyncio.run(main())
    sys.exit(0 if success else 1)
