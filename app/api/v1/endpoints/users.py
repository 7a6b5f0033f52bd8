"""
User API Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import UserCount, UserResponse
from app.services.user_service import get_user_service

router = APIRouter()
user_service = get_user_service()


@router.get("/count", response_model=UserCount)
async def count_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Total number of users (ADMIN only)."""
    return UserCount(count=await user_service.count(db))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = await user_service.get_by_id(db, user_id)
    return UserResponse.model_validate(user)


@router.post("/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Disable a user account (ADMIN only)."""
    user = await user_service.deactivate(db, user_id)
    return UserResponse.model_validate(user)
