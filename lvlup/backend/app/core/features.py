# backend/app/core/features.py
"""
Subscription feature resolver.

Maps a tenant's subscription tier to its feature flags and numeric limits.
The mapping is a static table: resolving never touches the database and
never raises. Unknown or legacy tier values resolve to the lowest rung of
the tier ladder.
"""
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

from app.core.constants import (
    DEFAULT_TIER,
    TIER_DISPLAY_NAMES,
    TIER_PRICING,
    TIER_SEAT_LIMITS,
    SubscriptionTier,
)


class FeatureFlag(str, Enum):
    BASIC_EMPLOYEE_MANAGEMENT = "basic_employee_management"
    BASIC_DASHBOARD = "basic_dashboard"
    EMPLOYEE_PROFILES = "employee_profiles"
    BULK_EMPLOYEE_OPERATIONS = "bulk_employee_operations"
    ADVANCED_EMPLOYEE_SEARCH = "advanced_employee_search"
    DEPARTMENT_MANAGEMENT = "department_management"
    JOB_POSITION_MANAGEMENT = "job_position_management"
    EMPLOYEE_HIERARCHY = "employee_hierarchy"
    PERFORMANCE_REVIEWS = "performance_reviews"
    ADVANCED_PERFORMANCE_METRICS = "advanced_performance_metrics"
    CUSTOM_PERFORMANCE_CRITERIA = "custom_performance_criteria"
    BASIC_FEEDBACK = "basic_feedback"
    QR_CODE_FEEDBACK = "qr_code_feedback"
    ADVANCED_FEEDBACK_ANALYTICS = "advanced_feedback_analytics"
    REAL_TIME_FEEDBACK_ALERTS = "real_time_feedback_alerts"
    GOAL_TRACKING = "goal_tracking"
    ADVANCED_GOAL_ANALYTICS = "advanced_goal_analytics"
    PERSONAL_DEVELOPMENT_PLANS = "personal_development_plans"
    BASIC_REPORTING = "basic_reporting"
    ADVANCED_ANALYTICS = "advanced_analytics"
    CUSTOM_REPORTS = "custom_reports"
    DATA_EXPORT = "data_export"
    TEAM_COLLABORATION = "team_collaboration"
    CROSS_DEPARTMENT_VISIBILITY = "cross_department_visibility"
    API_ACCESS = "api_access"
    WEBHOOKS = "webhooks"
    SSO_INTEGRATION = "sso_integration"


class TierFeatures(BaseModel):
    """Resolved feature set of a tier"""
    model_config = ConfigDict(frozen=True)

    basic_employee_management: bool = False
    basic_dashboard: bool = False
    employee_profiles: bool = False
    bulk_employee_operations: bool = False
    advanced_employee_search: bool = False
    department_management: bool = False
    job_position_management: bool = False
    employee_hierarchy: bool = False
    performance_reviews: bool = False
    advanced_performance_metrics: bool = False
    custom_performance_criteria: bool = False
    basic_feedback: bool = False
    qr_code_feedback: bool = False
    advanced_feedback_analytics: bool = False
    real_time_feedback_alerts: bool = False
    goal_tracking: bool = False
    advanced_goal_analytics: bool = False
    personal_development_plans: bool = False
    basic_reporting: bool = False
    advanced_analytics: bool = False
    custom_reports: bool = False
    data_export: bool = False
    team_collaboration: bool = False
    cross_department_visibility: bool = False
    api_access: bool = False
    webhooks: bool = False
    sso_integration: bool = False

    # None = unlimited
    max_employees: Optional[int] = 0
    support_level: str = "email"

    def flags(self) -> Dict[str, bool]:
        return {flag.value: getattr(self, flag.value) for flag in FeatureFlag}


def _flags(*enabled: FeatureFlag) -> Dict[str, bool]:
    return {flag.value: True for flag in enabled}


_CORE = (
    FeatureFlag.BASIC_EMPLOYEE_MANAGEMENT,
    FeatureFlag.BASIC_DASHBOARD,
    FeatureFlag.EMPLOYEE_PROFILES,
    FeatureFlag.PERFORMANCE_REVIEWS,
    FeatureFlag.BASIC_FEEDBACK,
    FeatureFlag.QR_CODE_FEEDBACK,
    FeatureFlag.GOAL_TRACKING,
    FeatureFlag.BASIC_REPORTING,
)

_FORMING = _CORE + (
    FeatureFlag.BULK_EMPLOYEE_OPERATIONS,
    FeatureFlag.ADVANCED_EMPLOYEE_SEARCH,
    FeatureFlag.DEPARTMENT_MANAGEMENT,
    FeatureFlag.JOB_POSITION_MANAGEMENT,
    FeatureFlag.EMPLOYEE_HIERARCHY,
    FeatureFlag.ADVANCED_FEEDBACK_ANALYTICS,
    FeatureFlag.REAL_TIME_FEEDBACK_ALERTS,
    FeatureFlag.ADVANCED_GOAL_ANALYTICS,
    FeatureFlag.ADVANCED_ANALYTICS,
    FeatureFlag.TEAM_COLLABORATION,
)

_STORMING = _FORMING + (
    FeatureFlag.ADVANCED_PERFORMANCE_METRICS,
    FeatureFlag.CUSTOM_PERFORMANCE_CRITERIA,
    FeatureFlag.PERSONAL_DEVELOPMENT_PLANS,
    FeatureFlag.CUSTOM_REPORTS,
    FeatureFlag.DATA_EXPORT,
    FeatureFlag.CROSS_DEPARTMENT_VISIBILITY,
    FeatureFlag.API_ACCESS,
)

_NORMING = _STORMING + (
    FeatureFlag.WEBHOOKS,
    FeatureFlag.SSO_INTEGRATION,
)

_APPSUMO = tuple(
    flag for flag in _FORMING if flag is not FeatureFlag.REAL_TIME_FEEDBACK_ALERTS
) + (FeatureFlag.ADVANCED_PERFORMANCE_METRICS,)

_FLAGS_BY_TIER = {
    SubscriptionTier.MJ_SCOTT: (_CORE, "email"),
    SubscriptionTier.FORMING: (_FORMING, "email"),
    SubscriptionTier.STORMING: (_STORMING, "priority"),
    SubscriptionTier.NORMING: (_NORMING, "priority"),
    SubscriptionTier.PERFORMING: (_NORMING, "dedicated"),
    SubscriptionTier.APPSUMO: (_APPSUMO, "email"),
}

TIER_FEATURES: Dict[SubscriptionTier, TierFeatures] = {
    tier: TierFeatures(
        **_flags(*enabled),
        max_employees=TIER_SEAT_LIMITS[tier],
        support_level=support,
    )
    for tier, (enabled, support) in _FLAGS_BY_TIER.items()
}

# Everything off: what an unresolved tenant gets
NO_FEATURES = TierFeatures(max_employees=0)


def normalize_tier(tier: Union[SubscriptionTier, str, None]) -> SubscriptionTier:
    """Coerce a stored tier value to a known tier, falling back to the lowest rung"""
    if isinstance(tier, SubscriptionTier):
        return tier
    try:
        return SubscriptionTier(tier)
    except ValueError:
        return DEFAULT_TIER


def resolve_features(tier: Union[SubscriptionTier, str, None]) -> TierFeatures:
    """Feature set for a tier. Unknown tiers resolve to the lowest rung."""
    return TIER_FEATURES[normalize_tier(tier)]


def has_feature(tier: Union[SubscriptionTier, str, None], flag: Union[FeatureFlag, str]) -> bool:
    """Whether a tier grants a flag. False for an unresolved tier or unknown flag."""
    if tier is None:
        return False
    name = flag.value if isinstance(flag, FeatureFlag) else flag
    if name not in FeatureFlag._value2member_map_:
        return False
    return bool(getattr(resolve_features(tier), name))


def seat_limit_for(tier: Union[SubscriptionTier, str, None]) -> int:
    """Seat cap stored on a tenant for the given tier (-1 = unlimited)"""
    limit = resolve_features(tier).max_employees
    return -1 if limit is None else limit


def get_tier_info(tier: Union[SubscriptionTier, str, None]) -> Dict[str, Any]:
    resolved = normalize_tier(tier)
    return {
        "tier": resolved.value,
        "display_name": TIER_DISPLAY_NAMES[resolved],
        "pricing": TIER_PRICING[resolved],
        "features": TIER_FEATURES[resolved],
    }
