# backend/app/db/models/job_position.py
from sqlalchemy import Column, String, ForeignKey, Integer, Text

from app.db.base import BaseModel, new_id


class JobPosition(BaseModel):
    __tablename__ = "job_positions"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    tenant_id = Column(String(100), ForeignKey("tenants.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    department = Column(String(255), nullable=True)
    level = Column(Integer, default=1, nullable=False)  # 1-10
    description = Column(Text, nullable=True)
