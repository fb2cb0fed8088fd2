# backend/app/db/models/feedback.py
from sqlalchemy import Column, String, ForeignKey, Integer, Text, Boolean, JSON

from app.db.base import BaseModel, new_id


class Feedback(BaseModel):
    """Feedback about an employee, usually submitted through the public link"""
    __tablename__ = "feedbacks"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False, index=True)
    giver_name = Column(String(255), nullable=True)
    giver_email = Column(String(255), nullable=True)
    relationship = Column(String(50), nullable=True)  # client, colleague, manager, vendor
    rating = Column(Integer, nullable=True)  # 1-5
    competency_scores = Column(JSON, nullable=True)
    comments = Column(Text, nullable=True)
    is_anonymous = Column(Boolean, default=False, nullable=False)
    sentiment = Column(String(20), nullable=True)
