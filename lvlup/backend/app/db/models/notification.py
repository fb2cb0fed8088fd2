# backend/app/db/models/notification.py
from sqlalchemy import Column, String, ForeignKey, Boolean, Text, DateTime, JSON
from sqlalchemy.orm import relationship

from app.core.constants import NotificationStatus
from app.db.base import BaseModel, new_id


class NotificationPreferences(BaseModel):
    __tablename__ = "notification_preferences"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    email_notifications = Column(Boolean, default=True, nullable=False)
    push_notifications = Column(Boolean, default=True, nullable=False)
    feedback_notifications = Column(Boolean, default=True, nullable=False)
    goal_reminders = Column(Boolean, default=True, nullable=False)
    weekly_digest = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="notification_preferences")


class Notification(BaseModel):
    """Persisted in-app notification; only status and read_at change after creation"""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), default=NotificationStatus.UNREAD.value, nullable=False, index=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    read_at = Column(DateTime, nullable=True)
