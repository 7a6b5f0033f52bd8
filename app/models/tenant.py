"""
Tenant model
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Text

from app.models.base import Base, TimestampMixin


class Tenant(Base, TimestampMixin):
    """
    A tenant application users can be granted access to.

    Invitations and access logs refer to tenants by ``slug``.
    """
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    domain = Column(String(255), nullable=True, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    def __repr__(self):
        return f"<Tenant(id={self.id}, slug='{self.slug}', active={self.is_active})>"
