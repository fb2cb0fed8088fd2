# backend/app/api/v1/notifications.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    get_current_active_user,
    get_notification_service,
    get_platform_admin,
)
from app.core.constants import NotificationStatus
from app.core.errors import NotFound
from app.core.input_validation import IdPath
from app.db.database import get_db
from app.db.models.notification import Notification
from app.db.models.user import User
from app.db.repositories.notification_repository import NotificationRepository
from app.db.repositories.tenant_repository import TenantRepository
from app.schemas.notification import (
    BroadcastResult,
    MarkAllReadResult,
    Notification as NotificationSchema,
    SystemNotificationCreate,
    UnreadCount,
    WeeklyDigestRequest,
)
from app.services.notification_service import NotificationService

router = APIRouter()


async def _own_notification(db: AsyncSession, caller: User, notification_id: str) -> Notification:
    # Other users' notifications are indistinguishable from missing ones
    notification = await NotificationRepository(db).get_for_user(notification_id, caller.id)
    if notification is None:
        raise NotFound("Notification not found")
    return notification


@router.get("", response_model=List[NotificationSchema])
async def list_notifications(
    status_filter: Optional[NotificationStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Caller's notifications, newest first"""
    return await NotificationRepository(db).list_for_user(
        current_user.id,
        status=status_filter.value if status_filter else None,
        skip=skip,
        limit=limit,
    )


@router.get("/unread-count", response_model=UnreadCount)
async def get_unread_count(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return UnreadCount(count=await NotificationRepository(db).count_unread(current_user.id))


@router.post("/read-all", response_model=MarkAllReadResult)
async def mark_all_read(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return MarkAllReadResult(updated=await NotificationRepository(db).mark_all_read(current_user.id))


@router.post("/system", response_model=BroadcastResult, status_code=status.HTTP_202_ACCEPTED)
async def broadcast_system_notification(
    notification_in: SystemNotificationCreate,
    current_user: User = Depends(get_platform_admin),
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Send a system update to every active user of a tenant"""
    if await TenantRepository(db).get_by_id(notification_in.tenant_id) is None:
        raise NotFound("Tenant not found")
    recipients = await notifications.broadcast_system_update(
        notification_in.tenant_id, notification_in.title, notification_in.message
    )
    return BroadcastResult(recipients=recipients)


@router.post("/weekly-digest", response_model=BroadcastResult, status_code=status.HTTP_202_ACCEPTED)
async def send_weekly_digest(
    digest_in: WeeklyDigestRequest,
    current_user: User = Depends(get_platform_admin),
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Send the weekly digest to a tenant's opted-in users"""
    if await TenantRepository(db).get_by_id(digest_in.tenant_id) is None:
        raise NotFound("Tenant not found")
    return BroadcastResult(recipients=await notifications.send_weekly_digests(digest_in.tenant_id))


@router.post("/{notification_id}/read", response_model=NotificationSchema)
async def mark_read(
    notification_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await _own_notification(db, current_user, notification_id)
    return await NotificationRepository(db).set_status(notification, NotificationStatus.READ)


@router.post("/{notification_id}/archive", response_model=NotificationSchema)
async def archive_notification(
    notification_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await _own_notification(db, current_user, notification_id)
    return await NotificationRepository(db).set_status(notification, NotificationStatus.ARCHIVED)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await _own_notification(db, current_user, notification_id)
    await NotificationRepository(db).delete(notification.id)
