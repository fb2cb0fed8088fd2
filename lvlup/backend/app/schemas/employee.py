# backend/app/schemas/employee.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.constants import IDENTIFIER_PATTERN, EmployeeStatus

# Roles a tenant admin may hand out
TenantRoleName = Literal["employee", "manager", "tenant_admin"]
OptionalId = Optional[str]


class EmployeeCreate(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: TenantRoleName = "employee"
    employee_number: Optional[str] = Field(None, max_length=50)
    department_id: OptionalId = Field(None, pattern=IDENTIFIER_PATTERN)
    job_position_id: OptionalId = Field(None, pattern=IDENTIFIER_PATTERN)
    manager_id: OptionalId = Field(None, pattern=IDENTIFIER_PATTERN)
    hire_date: Optional[datetime] = None
    bio: Optional[str] = None
    work_location: Optional[Literal["remote", "office", "hybrid"]] = None


class EmployeeBulkCreate(BaseModel):
    employees: List[EmployeeCreate] = Field(..., min_length=1, max_length=100)


class EmployeeUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[TenantRoleName] = None
    employee_number: Optional[str] = Field(None, max_length=50)
    department_id: OptionalId = Field(None, pattern=IDENTIFIER_PATTERN)
    job_position_id: OptionalId = Field(None, pattern=IDENTIFIER_PATTERN)
    manager_id: OptionalId = Field(None, pattern=IDENTIFIER_PATTERN)
    status: Optional[EmployeeStatus] = None
    bio: Optional[str] = None
    work_location: Optional[Literal["remote", "office", "hybrid"]] = None


class Employee(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    tenant_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    employee_number: Optional[str] = None
    department_id: Optional[str] = None
    job_position_id: Optional[str] = None
    manager_id: Optional[str] = None
    status: str
    feedback_url: str
    hire_date: Optional[datetime] = None
    bio: Optional[str] = None
    work_location: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_model(cls, employee) -> "Employee":
        user = employee.user
        return cls(
            id=employee.id,
            user_id=employee.user_id,
            tenant_id=employee.tenant_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            employee_number=employee.employee_number,
            department_id=employee.department_id,
            job_position_id=employee.job_position_id,
            manager_id=employee.manager_id,
            status=employee.status,
            feedback_url=employee.feedback_url,
            hire_date=employee.hire_date,
            bio=employee.bio,
            work_location=employee.work_location,
            created_at=employee.created_at,
        )
