"""
Access audit log
"""
import enum

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum as SQLEnum

from app.models.base import Base, enum_values, utcnow


class AccessAction(str, enum.Enum):
    INVITE = "invite"
    ACCEPT_INVITATION = "accept-invitation"
    SIGNIN = "signin"
    REVOKE = "revoke"
    EXTEND_ACCESS = "extend-access"


class AccessStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class AccessLog(Base):
    """
    Append-only record of an access-relevant event.

    ``tenant_id`` holds the tenant slug the event concerns. Rows are never
    updated or deleted by the application.
    """
    __tablename__ = "access_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    tenant_id = Column(String(100), nullable=True, index=True)

    action = Column(
        SQLEnum(AccessAction, name="access_action", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    status = Column(
        SQLEnum(AccessStatus, name="access_status", values_callable=enum_values),
        nullable=False,
        index=True,
    )

    # Request metadata
    ip_address = Column(String(100), nullable=True)
    user_agent = Column(String(500), nullable=True)
    error_message = Column(Text, nullable=True)

    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AccessLog(id={self.id}, action={self.action}, status={self.status})>"
