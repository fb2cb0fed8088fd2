# backend/app/services/notification_service.py
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import (
    CRITICAL_NOTIFICATION_TYPES,
    NOTIFICATION_PREFERENCE_FIELDS,
    NotificationType,
)
from app.core.logging import logger
from app.db.base import utcnow
from app.db.models.notification import Notification, NotificationPreferences
from app.db.repositories.employee_repository import EmployeeRepository
from app.db.repositories.feedback_repository import FeedbackRepository
from app.db.repositories.goal_repository import GoalRepository
from app.db.repositories.notification_repository import (
    NotificationPreferencesRepository,
    NotificationRepository,
)
from app.db.repositories.user_repository import UserRepository
from app.services.notification_dispatcher import DeliveryJob, NotificationDispatcher

REVIEW_ACTION_MESSAGES = {
    "created": "A new performance review has been created for you.",
    "submitted": "Your performance review has been submitted for approval.",
    "approved": "Your performance review has been approved!",
}

DIGEST_PERIOD = timedelta(days=7)


def should_send_email(notification_type: NotificationType, preferences: NotificationPreferences) -> bool:
    """Email policy: master switch first, then critical types or the per-type opt-in"""
    if not preferences.email_notifications:
        return False
    if notification_type in CRITICAL_NOTIFICATION_TYPES:
        return True
    field = NOTIFICATION_PREFERENCE_FIELDS.get(notification_type)
    return bool(field and getattr(preferences, field))


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "status": notification.status,
        "metadata": notification.meta,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


class NotificationService:
    """Persists notifications and hands them to the dispatcher"""

    def __init__(self, session: AsyncSession, dispatcher: Optional[NotificationDispatcher] = None):
        self.session = session
        self.dispatcher = dispatcher
        self.notifications = NotificationRepository(session)
        self.preferences = NotificationPreferencesRepository(session)
        self.users = UserRepository(session)

    async def notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """
        Persist a notification for ``user_id`` and queue its delivery.

        The row is committed before any channel is tried, so it stays in the
        in-app list whatever happens to push or email. Returns None (and logs)
        when the user is unknown or the row could not be stored.
        """
        try:
            user = await self.users.get(user_id)
            if user is None:
                logger.warning(f"Notification skipped, unknown user {user_id}")
                return None

            preferences = await self.preferences.get_or_create(user.id)
            notification = await self.notifications.create({
                "user_id": user.id,
                "type": notification_type.value,
                "title": title,
                "message": message,
                "meta": metadata,
            })
        except SQLAlchemyError:
            logger.exception("Failed to persist notification", extra={"user_id": user_id})
            await self.session.rollback()
            return None

        if self.dispatcher is not None:
            self.dispatcher.enqueue(DeliveryJob(
                notification_id=notification.id,
                user_id=user.id,
                email=user.email,
                recipient_name=user.first_name or "",
                type=notification_type.value,
                title=title,
                message=message,
                metadata=metadata,
                payload=serialize_notification(notification),
                send_email=should_send_email(notification_type, preferences),
            ))
        return notification

    async def notify_feedback_received(self, user_id: str, feedback_id: str, rating: Optional[int]):
        rating_text = f"a {rating}-star rating" if rating else "no rating"
        return await self.notify(
            user_id,
            NotificationType.FEEDBACK_RECEIVED,
            "New Feedback Received!",
            f"You have received new feedback with {rating_text}. Check your dashboard to view the details.",
            {"feedback_id": feedback_id, "rating": rating},
        )

    async def notify_goal_reminder(self, user_id: str, goal) -> Optional[Notification]:
        due = f" It is due on {goal.target_date.date().isoformat()}." if goal.target_date else ""
        return await self.notify(
            user_id,
            NotificationType.GOAL_REMINDER,
            f"Goal Reminder: {goal.title}",
            f'Your goal "{goal.title}" is at {goal.progress}% progress.{due}',
            {"goal_id": goal.id, "progress": goal.progress},
        )

    async def notify_performance_review(self, user_id: str, review, action: str) -> Optional[Notification]:
        return await self.notify(
            user_id,
            NotificationType.PERFORMANCE_REVIEW,
            f"Performance Review {action.capitalize()}",
            f"{REVIEW_ACTION_MESSAGES[action]} Review period: {review.review_period}",
            {"review_id": review.id, "action": action},
        )

    async def broadcast_system_update(self, tenant_id: str, title: str, message: str) -> int:
        """Send a system update to every active user of a tenant"""
        delivered = 0
        user_ids = [user.id for user in await self.users.list_for_tenant(tenant_id)]
        for user_id in user_ids:
            if await self.notify(user_id, NotificationType.SYSTEM_UPDATE, title, message, {"tenant_id": tenant_id}):
                delivered += 1
        return delivered

    async def notify_weekly_digest(self, user_id: str, digest: Dict[str, Any]) -> Optional[Notification]:
        return await self.notify(
            user_id,
            NotificationType.WEEKLY_DIGEST,
            "Your Weekly Performance Digest",
            f"Here's your weekly summary: {digest['new_feedback']} new feedback received, "
            f"{digest['goals_completed']} goals completed.",
            digest,
        )

    async def send_weekly_digests(self, tenant_id: str, now: Optional[datetime] = None) -> int:
        """
        Send the weekly digest to every active user of a tenant who opted in.

        Users without an employee record have nothing to summarize and are
        skipped. Returns the number of digests stored.
        """
        since = (now or utcnow()) - DIGEST_PERIOD
        employees = EmployeeRepository(self.session)
        feedback = FeedbackRepository(self.session)
        goals = GoalRepository(self.session)

        delivered = 0
        user_ids = [user.id for user in await self.users.list_for_tenant(tenant_id)]
        for user_id in user_ids:
            preferences = await self.preferences.get_or_create(user_id)
            if not preferences.weekly_digest:
                continue
            employee = await employees.get_by_user_id(user_id)
            if employee is None:
                continue
            digest = {
                "new_feedback": await feedback.count_since(employee.id, since),
                "goals_completed": await goals.count_completed_since(employee.id, since),
                "since": since.isoformat(),
            }
            if await self.notify_weekly_digest(user_id, digest):
                delivered += 1
        logger.info(f"Weekly digest sent to {delivered} users of tenant {tenant_id}")
        return delivered
