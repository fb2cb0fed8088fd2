# backend/app/db/models/__init__.py
from app.db.models.tenant import Tenant
from app.db.models.user import User
from app.db.models.department import Department
from app.db.models.job_position import JobPosition
from app.db.models.employee import Employee
from app.db.models.goal import Goal
from app.db.models.feedback import Feedback
from app.db.models.performance_review import PerformanceReview
from app.db.models.notification import Notification, NotificationPreferences
from app.db.models.billing_audit_log import BillingAuditLog

__all__ = [
    "Tenant",
    "User",
    "Department",
    "JobPosition",
    "Employee",
    "Goal",
    "Feedback",
    "PerformanceReview",
    "Notification",
    "NotificationPreferences",
    "BillingAuditLog",
]
