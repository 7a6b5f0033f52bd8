"""
SQLAlchemy models - Import all for Alembic autogenerate
"""
from app.models.base import Base, TimestampMixin

# Import all models
from app.models.user import User, UserRole, UserOAuthLink, OAuthProvider
from app.models.tenant import Tenant
from app.models.invitation import Invitation, InvitationTenant
from app.models.audit import AccessLog, AccessAction, AccessStatus

# Export all for easy imports
__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserRole",
    "UserOAuthLink",
    "OAuthProvider",
    "Tenant",
    "Invitation",
    "InvitationTenant",
    "AccessLog",
    "AccessAction",
    "AccessStatus",
]
