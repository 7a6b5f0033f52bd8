"""
Application error taxonomy.

Services raise these; the handlers registered in ``app.main`` turn them into
``{"detail": ...}`` JSON responses with the matching status code.
"""
from typing import Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP response"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid credentials"


class UnauthorizedError(AppError):
    """Caller is authenticated but lacks the admin role"""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Unauthorized"


class AccessDeniedError(AppError):
    """Caller has no live access to the requested tenant"""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have access to this application or your access has expired"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class TenantNotFoundError(NotFoundError):
    default_detail = "Tenant not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class InvalidOrExpiredInvitationError(AppError):
    """
    Raised for every invalid acceptance attempt.

    Unknown, already used, revoked and expired tokens all produce this same
    error so callers cannot tell which condition applied.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid or expired invitation"

    def __init__(self):
        super().__init__(self.default_detail)


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
