# backend/app/db/repositories/notification_repository.py
from typing import List, Optional
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import NotificationStatus
from app.db.base import utcnow
from app.db.models.notification import Notification, NotificationPreferences
from app.db.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def get_for_user(self, notification_id: str, user_id: str) -> Optional[Notification]:
        result = await self.session.execute(
            select(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(
        self, user_id: str, status: Optional[str] = None, skip: int = 0, limit: int = 50
    ) -> List[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if status:
            query = query.where(Notification.status == status)
        query = query.order_by(Notification.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_unread(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Notification.id))
            .where(Notification.user_id == user_id)
            .where(Notification.status == NotificationStatus.UNREAD.value)
        )
        return result.scalar() or 0

    async def set_status(self, notification: Notification, status: NotificationStatus) -> Notification:
        notification.status = status.value
        if status is NotificationStatus.READ and notification.read_at is None:
            notification.read_at = utcnow()
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.status == NotificationStatus.UNREAD.value)
            .values(status=NotificationStatus.READ.value, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount


class NotificationPreferencesRepository(BaseRepository[NotificationPreferences]):
    """Repository for per-user notification preferences"""

    def __init__(self, session: AsyncSession):
        super().__init__(NotificationPreferences, session)

    async def get_by_user(self, user_id: str) -> Optional[NotificationPreferences]:
        result = await self.session.execute(
            select(NotificationPreferences).where(NotificationPreferences.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: str) -> NotificationPreferences:
        """Preferences for a user, created with defaults on first use"""
        preferences = await self.get_by_user(user_id)
        if preferences is None:
            preferences = await self.create({"user_id": user_id})
        return preferences
