# backend/app/schemas/tenant.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime

from app.core.constants import DEFAULT_TIER, SubscriptionTier


class TenantBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    domain: Optional[str] = Field(None, max_length=255)


class TenantCreate(TenantBase):
    subscription_tier: SubscriptionTier = DEFAULT_TIER
    # Defaults to the tier's seat limit; -1 = unlimited
    max_employees: Optional[int] = Field(None, ge=-1)


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    domain: Optional[str] = Field(None, max_length=255)


class TierChange(BaseModel):
    subscription_tier: SubscriptionTier
    max_employees: Optional[int] = Field(None, ge=-1)


class Tenant(TenantBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    subscription_tier: str
    max_employees: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BillingAuditEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    user_id: Optional[str] = None
    action: str
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    description: Optional[str] = None
    created_at: datetime


class DashboardMetrics(BaseModel):
    total_employees: int
    total_feedback: int
    average_rating: Optional[float] = None
    active_reviews: int
    average_review_score: Optional[float] = None
    goals_completed: int
