# backend/app/schemas/user.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    tenant_id: Optional[str] = None
    is_active: bool
    created_at: datetime


class NotificationPreferences(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email_notifications: bool
    push_notifications: bool
    feedback_notifications: bool
    goal_reminders: bool
    weekly_digest: bool


class NotificationPreferencesUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    feedback_notifications: Optional[bool] = None
    goal_reminders: Optional[bool] = None
    weekly_digest: Optional[bool] = None
