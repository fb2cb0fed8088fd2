# backend/app/schemas/subscription.py
from typing import Dict, Optional

from pydantic import BaseModel


class Pricing(BaseModel):
    monthly: int
    yearly: int


class FeatureLimits(BaseModel):
    # None = unlimited
    max_employees: Optional[int] = None
    current_employees: int = 0
    remaining_seats: Optional[int] = None


class FeatureInfo(BaseModel):
    tier: Optional[str] = None
    display_name: Optional[str] = None
    pricing: Optional[Pricing] = None
    support_level: Optional[str] = None
    features: Dict[str, bool]
    limits: FeatureLimits


class TierSummary(BaseModel):
    tier: str
    display_name: str
    pricing: Pricing
    support_level: str
    max_employees: Optional[int] = None
    features: Dict[str, bool]
