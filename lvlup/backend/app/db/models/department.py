# backend/app/db/models/department.py
from sqlalchemy import Column, String, ForeignKey, Text
from sqlalchemy.orm import relationship

from app.db.base import BaseModel, new_id


class Department(BaseModel):
    __tablename__ = "departments"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    tenant_id = Column(String(100), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    parent_department_id = Column(String(36), ForeignKey("departments.id"), nullable=True)

    tenant = relationship("Tenant", back_populates="departments")
    employees = relationship("Employee", back_populates="department")
