# backend/app/schemas/goal.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import IDENTIFIER_PATTERN, GoalStatus

Priority = Literal["high", "medium", "low"]


class GoalCreate(BaseModel):
    employee_id: str = Field(..., pattern=IDENTIFIER_PATTERN)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=50)
    priority: Priority = "medium"
    target_date: Optional[datetime] = None
    progress: int = Field(0, ge=0, le=100)


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=50)
    priority: Optional[Priority] = None
    target_date: Optional[datetime] = None
    status: Optional[GoalStatus] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class Goal(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    priority: str
    target_date: Optional[datetime] = None
    status: str
    progress: int
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
