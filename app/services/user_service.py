"""
User Service
User directory: creation with unique username derivation, lookups and
credential/profile updates
"""
import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.user import OAuthProvider, User, UserOAuthLink, UserRole
from app.services.credential_service import CredentialService, get_credential_service

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing users"""

    def __init__(self, credential_service: Optional[CredentialService] = None):
        self.credentials = credential_service or get_credential_service()

    @staticmethod
    def normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(
            select(User)
            .where(User.email == self.normalize_email(email))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def find_by_id(self, db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, db: AsyncSession, user_id: int) -> User:
        user = await self.find_by_id(db, user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    async def derive_username(self, db: AsyncSession, base: str) -> str:
        """
        First free username in the sequence ``base``, ``base1``, ``base2``, ...
        """
        base = base.strip().lower() or "user"
        candidate = base
        counter = 1
        while await self.find_by_username(db, candidate):
            candidate = f"{base}{counter}"
            counter += 1
        return candidate

    async def create(
        self,
        db: AsyncSession,
        email: str,
        suggested_username: Optional[str] = None,
        name: Optional[str] = None,
        role: UserRole = UserRole.USER,
        assign_username: bool = True,
    ) -> User:
        """
        Return the user for ``email``, creating it if needed.

        An existing user is returned untouched, so re-inviting a registered
        email reuses the same account and username. With
        ``assign_username=False`` a new user is left without a username until
        one is issued on invitation acceptance. The caller commits.
        """
        email = self.normalize_email(email)
        if "@" not in email:
            raise ValidationError("Valid email is required")

        existing = await self.find_by_email(db, email)
        if existing:
            return existing

        local_part = email.split("@")[0]
        username = None
        if assign_username:
            username = await self.derive_username(db, suggested_username or local_part)

        user = User(
            email=email,
            username=username,
            name=name or local_part,
            role=role,
            is_active=True,
            is_invitation_accepted=False,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("User with this email or username already exists")

        logger.info(f"User created: id={user.id} username={username}")
        return user

    async def update_last_login(self, db: AsyncSession, user_id: int) -> None:
        await db.execute(
            update(User).where(User.id == user_id).values(last_login=utcnow())
        )
        await db.commit()

    async def mark_invitation_accepted(
        self,
        db: AsyncSession,
        user_id: int,
        username: str,
        password_hash: str,
    ) -> str:
        """
        Store credentials issued on acceptance in a single UPDATE.

        A username that is already assigned is kept. Does not commit, so the
        caller can keep it in the same unit of work as the invitation update.

        Returns:
            The username the user ends up with
        """
        result = await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                username=func.coalesce(User.username, username),
                password_hash=password_hash,
                is_invitation_accepted=True,
                updated_at=utcnow(),
            )
            .returning(User.username)
            .execution_options(synchronize_session=False)
        )
        effective = result.scalar_one_or_none()
        if effective is None:
            raise NotFoundError(f"User with ID {user_id} not found")
        return effective

    async def set_password(self, db: AsyncSession, user_id: int, password: str) -> None:
        """Explicitly set a new password"""
        if not password:
            raise ValidationError("Password is required")
        user = await self.get_by_id(db, user_id)
        user.password_hash = self.credentials.hash_password(password)
        await db.commit()

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: int,
        name: Optional[str] = None,
        image: Optional[str] = None,
    ) -> User:
        user = await self.get_by_id(db, user_id)
        if name is not None:
            user.name = name
        if image is not None:
            user.image = image
        await db.commit()
        await db.refresh(user)
        return user

    async def link_oauth_provider(
        self,
        db: AsyncSession,
        user_id: int,
        provider: OAuthProvider,
        provider_id: str,
    ) -> UserOAuthLink:
        """
        Link (or re-link) the user's account at ``provider``.

        Raises:
            ConflictError: If the provider identity belongs to another user
        """
        try:
            provider = OAuthProvider(provider)
        except ValueError:
            raise ValidationError(f"Unsupported OAuth provider: {provider}")
        if not provider_id:
            raise ValidationError("provider_id is required")

        user = await self.get_by_id(db, user_id)

        result = await db.execute(
            select(UserOAuthLink).where(
                UserOAuthLink.provider == provider,
                UserOAuthLink.provider_id == provider_id,
            )
        )
        owner = result.scalar_one_or_none()
        if owner and owner.user_id != user.id:
            raise ConflictError("This account is already linked to another user")

        link = next((l for l in user.oauth_links if l.provider == provider), None)
        if link:
            link.provider_id = provider_id
        else:
            link = UserOAuthLink(user_id=user.id, provider=provider, provider_id=provider_id)
            user.oauth_links.append(link)

        await db.commit()
        await db.refresh(link)
        return link

    async def deactivate(self, db: AsyncSession, user_id: int) -> User:
        user = await self.get_by_id(db, user_id)
        user.is_active = False
        await db.commit()
        await db.refresh(user)
        logger.info(f"User deactivated: id={user.id}")
        return user

    async def count(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count(User.id)))
        return result.scalar_one()


# Singleton instance
_user_service: Optional[UserService] = None


def get_user_service() -> UserService:
    """Get or create the user service singleton"""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
