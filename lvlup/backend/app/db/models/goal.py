# backend/app/db/models/goal.py
from sqlalchemy import Column, String, ForeignKey, Integer, Text, DateTime

from app.core.constants import GoalStatus
from app.db.base import BaseModel, new_id


class Goal(BaseModel):
    """Performance goal; tenant scope comes from the employee"""
    __tablename__ = "goals"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)
    priority = Column(String(20), default="medium", nullable=False)
    target_date = Column(DateTime, nullable=True)
    status = Column(String(20), default=GoalStatus.IN_PROGRESS.value, nullable=False)
    progress = Column(Integer, default=0, nullable=False)  # 0-100
    notes = Column(Text, nullable=True)
