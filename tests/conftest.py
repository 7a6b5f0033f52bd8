"""
PyTest configuration and fixtures for Tenant Access Gateway tests
"""
import os
import tempfile

# Settings are read at import time, so the test environment goes first
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["AWS_ACCESS_KEY_ID"] = ""
os.environ["AWS_SECRET_ACCESS_KEY"] = ""
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="access-gateway-logs-"))

import pytest
import pytest_asyncio
from unittest.mock import MagicMock
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.session import get_db
from app.models.base import Base
from app.models.user import User, UserRole
from app.services.auth_service import auth_service
from app.services.credential_service import get_credential_service
from app.services.email_service import EmailService
from app.services.invitation_service import InvitationService
from app.services.tenant_service import get_tenant_service


# Test database setup - Using async SQLite with aiosqlite
SQLALCHEMY_TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def engine():
    """In-memory database, created fresh for each test."""
    test_engine = create_async_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(engine):
    """
    Session bound to the per-test database.
    """
    TestingSessionLocal = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with TestingSessionLocal() as session:
        yield session
        await session.commit()


@pytest_asyncio.fixture(scope="function")
async def client(db_session):
    """
    Route the app's database dependency to the test session.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def mailer():
    """Email service stand-in that records calls and reports success."""
    mock = MagicMock(spec=EmailService)
    mock.send_invitation_email.return_value = True
    mock.send_credentials_email.return_value = True
    return mock


@pytest.fixture
def invitation_service(mailer):
    return InvitationService(email_service=mailer, allow_extend_revoked=True)


@pytest_asyncio.fixture
async def admin_user(db_session):
    """
    Create an admin user in the database.
    """
    user = User(
        email="admin@example.com",
        username="admin",
        password_hash=get_credential_service().hash_password("Admin123!@#"),
        name="Admin User",
        role=UserRole.ADMIN,
        is_active=True,
        is_invitation_accepted=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_headers(admin_user):
    """
    Get authentication headers for admin user.
    """
    token = auth_service.create_access_token({"sub": str(admin_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def tenants(db_session, admin_user):
    """
    Three active tenants: myapp, dashboard and reports.
    """
    service = get_tenant_service()
    created = []
    for name, slug in (("My App", "myapp"), ("Dashboard", "dashboard"), ("Reports", "reports")):
        created.append(await service.create(db_session, name=name, slug=slug, creator_id=admin_user.id))
    return created


@pytest_asyncio.fixture
async def accepted_invite(db_session, invitation_service, tenants, admin_user):
    """
    An invitation for alice@example.com to myapp and dashboard, already accepted.
    """
    invitation = await invitation_service.issue(
        db_session,
        email="alice@example.com",
        tenants=["myapp", "dashboard"],
        issuer_id=admin_user.id,
    )
    accepted = await invitation_service.accept(db_session, invitation.token)
    return accepted
