"""
User and OAuth link models
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Enum as SQLEnum, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, TimestampMixin, enum_values, utcnow


class UserRole(str, enum.Enum):
    """User roles for RBAC"""
    USER = "user"  # Invited end user
    ADMIN = "admin"  # Issues and manages invitations
    SUPERADMIN = "superadmin"


class OAuthProvider(str, enum.Enum):
    """Identity providers a user account may be linked to"""
    GOOGLE = "google"
    GITHUB = "github"


class User(Base, TimestampMixin):
    """
    Platform user.

    ``username`` stays NULL until one is assigned and never changes after
    that. ``password_hash`` is only written by invitation acceptance or an
    explicit password change.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=True, index=True)
    password_hash = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True)
    image = Column(String(500), nullable=True)

    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.USER,
        nullable=False,
        index=True,
    )

    # Status
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_invitation_accepted = Column(Boolean, default=False, nullable=False)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    oauth_links = relationship(
        "UserOAuthLink",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def oauth_ids(self) -> dict:
        """Provider -> provider-assigned id"""
        return {link.provider.value: link.provider_id for link in self.oauth_links}

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', username='{self.username}')>"


class UserOAuthLink(Base):
    """Link between a user and an identity at an OAuth provider"""
    __tablename__ = "user_oauth_links"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_user_oauth_links_user_provider"),
        UniqueConstraint("provider", "provider_id", name="uq_user_oauth_links_provider_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(
        SQLEnum(OAuthProvider, name="oauth_provider", values_callable=enum_values),
        nullable=False,
    )
    provider_id = Column(String(255), nullable=False)
    linked_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="oauth_links")
