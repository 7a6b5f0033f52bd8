"""
Database session configuration

The engine and session factory are owned by a ``Database`` handle. It is
created once per process, connects lazily on first use and is disposed by
the application lifespan on shutdown.
"""
import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

logger = logging.getLogger(__name__)


class Database:
    """Owns the process-wide engine and session factory"""

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.url = url
        self.echo = echo
        self.engine_kwargs = engine_kwargs
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    def connect(self) -> AsyncEngine:
        """Create the engine on first call and reuse it afterwards."""
        if self._engine is None:
            self._engine = create_async_engine(
                self.url,
                echo=self.echo,
                future=True,
                **self.engine_kwargs,
            )
            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autocommit=False,
                autoflush=False,
            )
            logger.info("Database engine created")
        return self._engine

    @property
    def engine(self) -> AsyncEngine:
        return self.connect()

    def session(self) -> AsyncSession:
        """Open a new session (caller is responsible for closing it)."""
        self.connect()
        return self._session_factory()

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connections closed")


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
    }


database = Database(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    **_engine_options(settings.DATABASE_URL),
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.
    Usage in FastAPI endpoints:
        async def endpoint(db: AsyncSession = Depends(get_db)):
    """
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_db_session() -> AsyncSession:
    """
    Get database session for scripts and background tasks.
    Usage:
        async with get_db_session() as db:
            # database operations
    """
    return database.session()
