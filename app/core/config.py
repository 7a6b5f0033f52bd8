"""
Configuration settings for the Tenant Access Gateway API
"""
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App
    PROJECT_NAME: str = "Tenant Access Gateway API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)
    LOG_DIR: str = Field(default="logs")

    # Security & JWT Authentication
    SECRET_KEY: str = Field(default="change-me-in-production")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30  # 30 days
    BCRYPT_ROUNDS: int = Field(default=10)

    # Database
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./access_gateway.db",
        description="Database connection URL - should be set via environment variable"
    )
    DB_ECHO: bool = Field(default=False)
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)

    # CORS
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"]
    )

    # Frontend (used to build invitation acceptance links)
    FRONTEND_URL: str = Field(default="http://localhost:3000")

    # Invitations & access
    DEFAULT_INVITATION_EXPIRY_DAYS: int = Field(default=30)
    MAX_INVITATION_PAGE_SIZE: int = Field(default=100)
    MAX_ACCESS_LOG_PAGE_SIZE: int = Field(default=500)
    # Extending an already revoked invitation is allowed unless this is turned off
    ALLOW_EXTEND_REVOKED: bool = Field(default=True)

    # AWS
    AWS_REGION: str = Field(default="us-east-2")
    AWS_ACCESS_KEY_ID: str = Field(default="")
    AWS_SECRET_ACCESS_KEY: str = Field(default="")

    # Email (Amazon SES)
    SES_REGION: str = Field(default="us-east-2")
    SES_SENDER_EMAIL: str = Field(default="")

    # Seed data
    ADMIN_EMAIL: str = Field(default="")
    ADMIN_PASSWORD: str = Field(default="")
    SEED_TENANTS: List[dict] = Field(
        default=[
            {
                "name": "My App",
                "slug": "myapp",
                "domain": "http://localhost:3001",
                "description": "Primary application",
            },
            {
                "name": "Dashboard",
                "slug": "dashboard",
                "domain": "http://localhost:3002",
                "description": "Analytics and reporting dashboard",
            },
        ]
    )


settings = Settings()
