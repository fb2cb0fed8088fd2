# backend/app/db/models/employee.py
from sqlalchemy import Column, String, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship

from app.core.constants import EmployeeStatus
from app.db.base import BaseModel, new_id


class Employee(BaseModel):
    """Company-specific extension of a User (1:1)"""
    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    tenant_id = Column(String(100), ForeignKey("tenants.id"), nullable=False, index=True)

    employee_number = Column(String(50), nullable=True)
    job_position_id = Column(String(36), ForeignKey("job_positions.id"), nullable=True)
    department_id = Column(String(36), ForeignKey("departments.id"), nullable=True, index=True)
    manager_id = Column(String(36), ForeignKey("employees.id"), nullable=True, index=True)

    # Public token for unauthenticated feedback links
    feedback_url = Column(String(100), unique=True, nullable=False, index=True)

    hire_date = Column(DateTime, nullable=True)
    status = Column(String(20), default=EmployeeStatus.ACTIVE.value, nullable=False, index=True)
    bio = Column(Text, nullable=True)
    work_location = Column(String(20), nullable=True)  # remote, office, hybrid

    # Relationships
    user = relationship("User", back_populates="employee", lazy="joined")
    tenant = relationship("Tenant", back_populates="employees")
    department = relationship("Department", back_populates="employees")
    job_position = relationship("JobPosition")
