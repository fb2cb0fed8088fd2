# backend/app/core/audit_log.py
"""
Audit event logging.

Security-relevant events (access denials, plan-limit rejections, tier
changes, request traces) are written as structured records to the
``lvlup.audit`` logger.
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional

from app.core.logging import logger as app_logger


class AuditEventType(str, Enum):
    ACCESS_DENIED = "access.denied"
    FEATURE_DENIED = "feature.denied"
    LIMIT_EXCEEDED = "limit.exceeded"
    TENANT_CREATED = "tenant.created"
    TENANT_TIER_CHANGED = "tenant.tier_changed"
    TENANT_STATUS_CHANGED = "tenant.status_changed"
    EMPLOYEE_CREATED = "employee.created"
    EMPLOYEE_TERMINATED = "employee.terminated"
    API_REQUEST = "api.request"


def _audit_logger() -> logging.Logger:
    audit = logging.getLogger("lvlup.audit")
    if not audit.handlers:
        # Share the application handler so records land in the same stream
        for handler in app_logger.handlers:
            audit.addHandler(handler)
        audit.setLevel(logging.INFO)
        audit.propagate = False
    return audit


class AuditLogger:
    """Writes audit events as structured log records"""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or _audit_logger()

    async def log_event(
        self,
        *,
        event_type: AuditEventType,
        user_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> None:
        self.log_event_sync(
            event_type=event_type,
            user_id=user_id,
            tenant_id=tenant_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
            request_id=request_id,
        )

    def log_event_sync(
        self,
        *,
        event_type: AuditEventType,
        user_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> None:
        level = logging.WARNING if event_type in _WARN_EVENTS else logging.INFO
        extra: Dict[str, Any] = {
            "event_type": event_type.value,
            "details": details or {},
        }
        if user_id is not None:
            extra["user_id"] = str(user_id)
        if tenant_id is not None:
            extra["tenant_id"] = tenant_id
        if request_id is not None:
            extra["request_id"] = request_id
        if ip_address:
            extra["ip_address"] = ip_address
        if user_agent:
            extra["user_agent"] = user_agent
        self.log.log(level, event_type.value, extra=extra)


_WARN_EVENTS = frozenset({
    AuditEventType.ACCESS_DENIED,
    AuditEventType.FEATURE_DENIED,
    AuditEventType.LIMIT_EXCEEDED,
})

audit_logger = AuditLogger()

__all__ = ["AuditEventType", "AuditLogger", "audit_logger"]
