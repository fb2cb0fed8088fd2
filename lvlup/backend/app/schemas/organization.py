# backend/app/schemas/organization.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.constants import IDENTIFIER_PATTERN


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    parent_department_id: Optional[str] = Field(None, pattern=IDENTIFIER_PATTERN)


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    parent_department_id: Optional[str] = Field(None, pattern=IDENTIFIER_PATTERN)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError("name cannot be null")
        return v


class Department(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    name: str
    description: Optional[str] = None
    parent_department_id: Optional[str] = None
    created_at: datetime


class JobPositionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    level: int = Field(1, ge=1, le=10)
    description: Optional[str] = None


class JobPositionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    level: Optional[int] = Field(None, ge=1, le=10)
    description: Optional[str] = None


class JobPosition(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    title: str
    department: Optional[str] = None
    level: int
    description: Optional[str] = None
    created_at: datetime
