# backend/app/core/constants.py
from enum import Enum
from typing import Dict, Optional


class UserRole(str, Enum):
    PLATFORM_ADMIN = "platform_admin"
    TENANT_ADMIN = "tenant_admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


# Rank used by the access guard. platform_admin is not ranked: it bypasses
# tenant scoping altogether.
ROLE_RANK: Dict[UserRole, int] = {
    UserRole.EMPLOYEE: 0,
    UserRole.MANAGER: 1,
    UserRole.TENANT_ADMIN: 2,
}


class SubscriptionTier(str, Enum):
    MJ_SCOTT = "mj_scott"
    FORMING = "forming"
    STORMING = "storming"
    NORMING = "norming"
    PERFORMING = "performing"
    APPSUMO = "appsumo"


# Ordered by capability; mj_scott and appsumo sit outside the ladder.
TIER_ORDER = (
    SubscriptionTier.FORMING,
    SubscriptionTier.STORMING,
    SubscriptionTier.NORMING,
    SubscriptionTier.PERFORMING,
)

DEFAULT_TIER = SubscriptionTier.FORMING

# Seat caps (None = unlimited)
TIER_SEAT_LIMITS: Dict[SubscriptionTier, Optional[int]] = {
    SubscriptionTier.MJ_SCOTT: 10,
    SubscriptionTier.FORMING: 25,
    SubscriptionTier.STORMING: 100,
    SubscriptionTier.NORMING: 500,
    SubscriptionTier.PERFORMING: None,
    SubscriptionTier.APPSUMO: 50,
}

TIER_DISPLAY_NAMES: Dict[SubscriptionTier, str] = {
    SubscriptionTier.MJ_SCOTT: "MJ Scott (VIP)",
    SubscriptionTier.FORMING: "Forming",
    SubscriptionTier.STORMING: "Storming",
    SubscriptionTier.NORMING: "Norming",
    SubscriptionTier.PERFORMING: "Performing",
    SubscriptionTier.APPSUMO: "AppSumo Lifetime",
}

# Per-seat list price in USD
TIER_PRICING: Dict[SubscriptionTier, Dict[str, int]] = {
    SubscriptionTier.MJ_SCOTT: {"monthly": 0, "yearly": 0},
    SubscriptionTier.FORMING: {"monthly": 5, "yearly": 4},
    SubscriptionTier.STORMING: {"monthly": 10, "yearly": 8},
    SubscriptionTier.NORMING: {"monthly": 15, "yearly": 12},
    SubscriptionTier.PERFORMING: {"monthly": 25, "yearly": 20},
    SubscriptionTier.APPSUMO: {"monthly": 0, "yearly": 0},
}

UNLIMITED = -1


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class GoalStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    ON_HOLD = "on_hold"


class ReviewStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class NotificationType(str, Enum):
    FEEDBACK_RECEIVED = "feedback_received"
    GOAL_REMINDER = "goal_reminder"
    PERFORMANCE_REVIEW = "performance_review"
    SYSTEM_UPDATE = "system_update"
    WEEKLY_DIGEST = "weekly_digest"


class NotificationStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"


# Types emailed regardless of the per-type opt-out
CRITICAL_NOTIFICATION_TYPES = frozenset({
    NotificationType.PERFORMANCE_REVIEW,
    NotificationType.SYSTEM_UPDATE,
})

# Per-type preference column consulted before emailing
NOTIFICATION_PREFERENCE_FIELDS: Dict[NotificationType, str] = {
    NotificationType.FEEDBACK_RECEIVED: "feedback_notifications",
    NotificationType.GOAL_REMINDER: "goal_reminders",
    NotificationType.WEEKLY_DIGEST: "weekly_digest",
}

# Identifiers accepted in paths and query strings
IDENTIFIER_PATTERN = r"^[A-Za-z0-9_-]{1,100}$"
