# backend/app/schemas/feedback.py
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.input_validation import SanitizedStr


class PublicFeedbackCreate(BaseModel):
    """Feedback submitted through an employee's public link"""
    giver_name: Optional[SanitizedStr] = Field(None, max_length=255)
    giver_email: Optional[EmailStr] = None
    relationship: Optional[SanitizedStr] = Field(None, max_length=50)
    rating: Optional[int] = Field(None, ge=1, le=5)
    competency_scores: Optional[Dict[str, int]] = None
    comments: Optional[SanitizedStr] = Field(None, max_length=5000)
    is_anonymous: bool = False


class PublicEmployee(BaseModel):
    """What an anonymous visitor of a feedback link may see"""
    display_name: str
    organization: str


class Feedback(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    giver_name: Optional[str] = None
    giver_email: Optional[str] = None
    relationship: Optional[str] = None
    rating: Optional[int] = None
    competency_scores: Optional[Dict[str, int]] = None
    comments: Optional[str] = None
    is_anonymous: bool
    sentiment: Optional[str] = None
    created_at: datetime


class FeedbackReceipt(BaseModel):
    id: str
    message: str = "Thank you for your feedback!"


class FeedbackSummary(BaseModel):
    employee_id: str
    total: int
    average_rating: Optional[float] = None
    rating_distribution: Dict[str, int]
    sentiment_counts: Dict[str, int]
