"""
Initialize database - create all tables
Run this script to set up a development database for the first time.
Production databases are managed with Alembic (alembic upgrade head).
"""
import sys
import asyncio

from app.core.config import settings
from app.db.session import database
from app.models import Base


async def init_database(drop_existing: bool = False):
    """Create all database tables"""
    print("Connecting to database...")
    print(f"Database URL: {settings.DATABASE_URL[:50]}...")

    async with database.engine.begin() as conn:
        if drop_existing:
            print("Dropping all tables...")
            await conn.run_sync(Base.metadata.drop_all)

        print("Creating all tables...")
        await conn.run_sync(Base.metadata.create_all)

    await database.dispose()
    print("✅ Database initialized successfully!")
    print(f"Tables: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    asyncio.run(init_database(drop_existing="--drop" in sys.argv))
