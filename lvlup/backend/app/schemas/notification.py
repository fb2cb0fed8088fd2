# backend/app/schemas/notification.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import IDENTIFIER_PATTERN


class Notification(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: str
    title: str
    message: str
    status: str
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="meta")
    created_at: datetime
    read_at: Optional[datetime] = None


class UnreadCount(BaseModel):
    count: int


class MarkAllReadResult(BaseModel):
    updated: int


class SystemNotificationCreate(BaseModel):
    tenant_id: str = Field(..., pattern=IDENTIFIER_PATTERN)
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)


class BroadcastResult(BaseModel):
    recipients: int


class WeeklyDigestRequest(BaseModel):
    tenant_id: str = Field(..., pattern=IDENTIFIER_PATTERN)
