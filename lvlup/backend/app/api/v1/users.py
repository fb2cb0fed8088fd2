from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.db.models.user import User
from app.db.repositories.notification_repository import NotificationPreferencesRepository
from app.api.dependencies import get_current_active_user
from app.schemas.user import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
    User as UserSchema,
)

router = APIRouter()


@router.get("/me", response_model=UserSchema)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
):
    """Get current user information"""
    return current_user


@router.get("/me/notification-preferences", response_model=NotificationPreferences)
async def get_notification_preferences(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Caller's notification preferences, created with defaults on first read"""
    return await NotificationPreferencesRepository(db).get_or_create(current_user.id)


@router.put("/me/notification-preferences", response_model=NotificationPreferences)
async def update_notification_preferences(
    preferences_in: NotificationPreferencesUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    repo = NotificationPreferencesRepository(db)
    preferences = await repo.get_or_create(current_user.id)
    return await repo.update(preferences.id, preferences_in.model_dump(exclude_unset=True, exclude_none=True))
