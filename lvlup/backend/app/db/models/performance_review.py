# backend/app/db/models/performance_review.py
from sqlalchemy import Column, String, ForeignKey, Numeric, Text, JSON

from app.core.constants import ReviewStatus
from app.db.base import BaseModel, new_id


class PerformanceReview(BaseModel):
    __tablename__ = "performance_reviews"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False, index=True)
    reviewer_id = Column(String(36), ForeignKey("employees.id"), nullable=False)
    review_period = Column(String(50), nullable=False)
    overall_score = Column(Numeric(3, 2), nullable=True)
    competency_scores = Column(JSON, nullable=True)
    comments = Column(Text, nullable=True)
    goals = Column(JSON, nullable=True)
    status = Column(String(20), default=ReviewStatus.DRAFT.value, nullable=False)
