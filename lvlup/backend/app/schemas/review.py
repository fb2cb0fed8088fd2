# backend/app/schemas/review.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.constants import IDENTIFIER_PATTERN


class ReviewCreate(BaseModel):
    employee_id: str = Field(..., pattern=IDENTIFIER_PATTERN)
    review_period: str = Field(..., min_length=1, max_length=50)
    overall_score: Optional[Decimal] = Field(None, ge=0, le=5, max_digits=3, decimal_places=2)
    competency_scores: Optional[Dict[str, Any]] = None
    comments: Optional[str] = None
    goals: Optional[List[Any]] = None


class ReviewUpdate(BaseModel):
    review_period: Optional[str] = Field(None, min_length=1, max_length=50)
    overall_score: Optional[Decimal] = Field(None, ge=0, le=5, max_digits=3, decimal_places=2)
    competency_scores: Optional[Dict[str, Any]] = None
    comments: Optional[str] = None
    goals: Optional[List[Any]] = None

    @field_validator("review_period")
    @classmethod
    def review_period_not_null(cls, v):
        if v is None:
            raise ValueError("review_period cannot be null")
        return v


class Review(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    reviewer_id: str
    review_period: str
    overall_score: Optional[float] = None
    competency_scores: Optional[Dict[str, Any]] = None
    comments: Optional[str] = None
    goals: Optional[List[Any]] = None
    status: str
    created_at: datetime
    updated_at: datetime
