"""
Credential Service
One-time username/password generation and password hashing
"""
import secrets
from typing import Optional

from passlib.context import CryptContext

from app.core.config import settings


class CredentialService:
    """Generates one-time credentials and hashes/verifies passwords"""

    USERNAME_PREFIX = "user_"

    def __init__(self, bcrypt_rounds: int = settings.BCRYPT_ROUNDS):
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )

    def generate_username(self) -> str:
        """Random username: ``user_`` followed by 8 lowercase hex characters"""
        return f"{self.USERNAME_PREFIX}{secrets.token_hex(4)}"

    def generate_password(self) -> str:
        """128-bit random password encoded as 32 hex characters"""
        return secrets.token_hex(16)

    def generate_token(self) -> str:
        """
        Generate a cryptographically secure invitation token.

        Returns:
            256-bit token as 64 hex characters
        """
        return secrets.token_hex(32)

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt"""
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """Verify a password against its hash; unusable hashes never match"""
        if not plain_password or not hashed_password:
            return False
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False


# Singleton instance
_credential_service: Optional[CredentialService] = None


def get_credential_service() -> CredentialService:
    """Get or create the credential service singleton"""
    global _credential_service
    if _credential_service is None:
        _credential_service = CredentialService()
    return _credential_service
