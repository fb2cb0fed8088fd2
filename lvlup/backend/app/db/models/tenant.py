# backend/app/db/models/tenant.py
from sqlalchemy import Column, String, Integer, Boolean
from sqlalchemy.orm import relationship

from app.core.constants import DEFAULT_TIER, TIER_SEAT_LIMITS
from app.db.base import BaseModel, new_id


class Tenant(BaseModel):
    """Tenant (customer company); the unit of data isolation"""
    __tablename__ = "tenants"

    id = Column(String(100), primary_key=True, default=new_id, index=True)
    name = Column(String(255), nullable=False)
    domain = Column(String(255), unique=True, nullable=True)

    # Plan
    subscription_tier = Column(String(50), default=DEFAULT_TIER.value, nullable=False, index=True)
    # Enforced seat cap, -1 = unlimited
    max_employees = Column(Integer, default=TIER_SEAT_LIMITS[DEFAULT_TIER], nullable=False)

    # Status (tenants are soft-deactivated, never deleted)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    users = relationship("User", back_populates="tenant")
    employees = relationship("Employee", back_populates="tenant")
    departments = relationship("Department", back_populates="tenant")
    billing_audit_logs = relationship("BillingAuditLog", back_populates="tenant")
