"""
Invitation Model
An invitation is both the invite and, once accepted, the user's access grant
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, utcnow


class Invitation(Base, TimestampMixin):
    """
    Single-use, time-boxed invitation granting access to a set of tenants.

    ``is_used`` only ever flips from False to True. Once ``revoked_at`` is
    set the invitation is dead for good. Expiry is never stored as a state;
    it is derived from ``expires_at`` whenever the invitation is read.
    """
    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(128), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    accepted_at = Column(DateTime, nullable=True)
    is_used = Column(Boolean, default=False, nullable=False, index=True)
    revoked_at = Column(DateTime, nullable=True, index=True)
    revoked_reason = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    scopes = relationship(
        "InvitationTenant",
        back_populates="invitation",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvitationTenant.id",
    )

    @property
    def tenants(self) -> list[str]:
        """Tenant slugs currently granted by this invitation"""
        return [scope.tenant_slug for scope in self.scopes]

    @property
    def is_expired(self) -> bool:
        return utcnow() >= self.expires_at

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    @property
    def status(self) -> str:
        if self.is_revoked:
            return "revoked"
        if self.is_expired:
            return "expired"
        if self.is_used:
            return "accepted"
        return "pending"

    def __repr__(self):
        return f"<Invitation(id={self.id}, email='{self.email}', status={self.status})>"


class InvitationTenant(Base):
    """One tenant scope of an invitation"""
    __tablename__ = "invitation_tenants"
    __table_args__ = (
        UniqueConstraint("invitation_id", "tenant_slug", name="uq_invitation_tenants_invitation_slug"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invitation_id = Column(Integer, ForeignKey("invitations.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_slug = Column(String(100), nullable=False, index=True)

    invitation = relationship("Invitation", back_populates="scopes")
