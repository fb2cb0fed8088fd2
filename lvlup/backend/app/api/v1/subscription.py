# backend/app/api/v1/subscription.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import TenantScopeQuery, get_current_active_user, resolve_tenant_scope
from app.core.constants import SubscriptionTier, UserRole
from app.core.errors import NotFound
from app.core.features import NO_FEATURES, get_tier_info, resolve_features
from app.db.database import get_db
from app.db.models.user import User
from app.db.repositories.tenant_repository import TenantRepository
from app.schemas.subscription import FeatureInfo, FeatureLimits, TierSummary
from app.services.employee_service import EmployeeService

router = APIRouter()


@router.get("/features", response_model=FeatureInfo)
async def get_subscription_features(
    tenant_id: Optional[str] = TenantScopeQuery,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Feature set and seat usage of the caller's tenant.

    Platform administrators name a tenant with ``tenant_id``; without one they
    get the unresolved set (every flag off).
    """
    scope = resolve_tenant_scope(current_user, tenant_id, UserRole.EMPLOYEE)
    if scope is None:
        return FeatureInfo(features=NO_FEATURES.flags(), limits=FeatureLimits(max_employees=0))

    tenant = await TenantRepository(db).get_by_id(scope)
    if tenant is None:
        raise NotFound("Tenant not found")

    info = get_tier_info(tenant.subscription_tier)
    features = info["features"]
    usage = await EmployeeService(db).seat_usage(tenant)
    return FeatureInfo(
        tier=info["tier"],
        display_name=info["display_name"],
        pricing=info["pricing"],
        support_level=features.support_level,
        features=features.flags(),
        limits=FeatureLimits(**usage),
    )


@router.get("/tiers", response_model=List[TierSummary])
async def list_tiers(current_user: User = Depends(get_current_active_user)):
    """Every tier with its feature set"""
    tiers = []
    for tier in SubscriptionTier:
        info = get_tier_info(tier)
        features = resolve_features(tier)
        tiers.append(TierSummary(
            tier=info["tier"],
            display_name=info["display_name"],
            pricing=info["pricing"],
            support_level=features.support_level,
            max_employees=features.max_employees,
            features=features.flags(),
        ))
    return tiers
