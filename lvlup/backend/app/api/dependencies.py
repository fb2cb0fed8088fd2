# backend/app/api/dependencies.py
from typing import Optional, Union

from fastapi import Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_log import AuditEventType, audit_logger
from app.core.constants import IDENTIFIER_PATTERN, UserRole
from app.core.errors import (
    DENIAL_ERRORS,
    AuthenticationRequired,
    FeatureNotAvailable,
    InsufficientRole,
    NotFound,
    TenantInactive,
)
from app.core.features import FeatureFlag, has_feature
from app.core.rbac import check_access
from app.core.security import JWTError, decode_token
from app.db.database import get_db
from app.db.models.employee import Employee
from app.db.models.tenant import Tenant
from app.db.models.user import User
from app.db.repositories.employee_repository import EmployeeRepository
from app.db.repositories.tenant_repository import TenantRepository
from app.db.repositories.user_repository import UserRepository
from app.services.insights_service import BehavioralInsightsService
from app.services.notification_dispatcher import NotificationDispatcher
from app.services.notification_service import NotificationService

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if not credentials:
        raise AuthenticationRequired()

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise AuthenticationRequired("Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationRequired("Invalid token")

    user = await UserRepository(db).get(user_id)
    if not user or not user.is_active:
        raise AuthenticationRequired("User not found or inactive")

    # Picked up by the request audit middleware
    request.state.user_id = user.id
    request.state.tenant_id = user.tenant_id
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Every non-platform user must belong to an existing, active tenant"""
    if current_user.role == UserRole.PLATFORM_ADMIN.value:
        return current_user

    if not current_user.tenant_id:
        raise AuthenticationRequired("User is not associated with an organization")

    tenant = await TenantRepository(db).get_by_id(current_user.tenant_id)
    if tenant is None:
        raise AuthenticationRequired("User is not associated with an organization")
    if not tenant.is_active:
        raise TenantInactive()
    return current_user


def is_platform_admin(user: User) -> bool:
    return user.role == UserRole.PLATFORM_ADMIN.value


def enforce_access(caller: User, target_tenant_id: str, required_role: Union[UserRole, str]) -> None:
    """Run the access guard; log and raise on denial"""
    decision = check_access(caller, target_tenant_id, required_role)
    if decision.allowed:
        return

    audit_logger.log_event_sync(
        event_type=AuditEventType.ACCESS_DENIED,
        user_id=caller.id,
        tenant_id=caller.tenant_id,
        details={
            "reason": decision.reason.value,
            "target_tenant_id": target_tenant_id,
            "required_role": UserRole(required_role).value,
            "role": caller.role,
        },
    )
    raise DENIAL_ERRORS[decision.reason]()


def require_platform_admin(caller: User) -> None:
    if not is_platform_admin(caller):
        audit_logger.log_event_sync(
            event_type=AuditEventType.ACCESS_DENIED,
            user_id=caller.id,
            tenant_id=caller.tenant_id,
            details={"reason": "INSUFFICIENT_ROLE", "required_role": UserRole.PLATFORM_ADMIN.value},
        )
        raise InsufficientRole("This action is restricted to platform administrators.")


async def get_platform_admin(current_user: User = Depends(get_current_active_user)) -> User:
    require_platform_admin(current_user)
    return current_user


def resolve_tenant_scope(caller: User, tenant_id: Optional[str], required_role: Union[UserRole, str]) -> Optional[str]:
    """
    Tenant a list/create operation runs against.

    Non-admins always get their own tenant; naming another one is denied
    before anything is looked up. Platform admins get the tenant they name,
    or None (every tenant) when they name none.
    """
    if is_platform_admin(caller):
        return tenant_id
    target = tenant_id or caller.tenant_id
    enforce_access(caller, target, required_role)
    return target


TenantScopeQuery = Query(
    None,
    pattern=IDENTIFIER_PATTERN,
    description="Tenant to act on (platform administrators only; others are limited to their own)",
)


def ensure_feature(caller: User, tenant: Optional[Tenant], flag: FeatureFlag) -> None:
    """Raise FEATURE_NOT_AVAILABLE unless the tenant's tier grants ``flag``"""
    if is_platform_admin(caller):
        return
    tier = tenant.subscription_tier if tenant is not None else None
    if has_feature(tier, flag):
        return

    audit_logger.log_event_sync(
        event_type=AuditEventType.FEATURE_DENIED,
        user_id=caller.id,
        tenant_id=caller.tenant_id,
        details={"feature": flag.value, "tier": tier},
    )
    raise FeatureNotAvailable(
        f"Your current plan does not include {flag.value.replace('_', ' ')}. Upgrade your plan to unlock it.",
        details={"feature": flag.value, "current_tier": tier, "upgrade_required": True},
    )


async def load_employee_for(
    db: AsyncSession,
    caller: User,
    employee_id: str,
    required_role: Union[UserRole, str],
    allow_self: bool = False,
) -> Employee:
    """
    Load an employee and check the caller may act on it.

    With ``allow_self`` an employee acting on their own record only needs the
    base role; anyone else needs ``required_role`` in the employee's tenant.
    """
    employee = await EmployeeRepository(db).get(employee_id)
    if employee is None:
        raise NotFound("Employee not found")

    if allow_self and employee.user_id == caller.id:
        enforce_access(caller, employee.tenant_id, UserRole.EMPLOYEE)
    else:
        enforce_access(caller, employee.tenant_id, required_role)
    return employee


def get_dispatcher(request: Request) -> Optional[NotificationDispatcher]:
    return getattr(request.app.state, "notification_dispatcher", None)


async def get_notification_service(
    db: AsyncSession = Depends(get_db),
    dispatcher: Optional[NotificationDispatcher] = Depends(get_dispatcher),
) -> NotificationService:
    return NotificationService(db, dispatcher)


def get_insights_service(request: Request) -> BehavioralInsightsService:
    service = getattr(request.app.state, "insights_service", None)
    return service or BehavioralInsightsService()


async def ensure_tenant_feature(db: AsyncSession, caller: User, tenant_id: Optional[str], flag: FeatureFlag) -> None:
    """``ensure_feature`` against the tenant the operation targets, which must exist"""
    tenant = None
    if tenant_id:
        tenant = await TenantRepository(db).get_by_id(tenant_id)
        if tenant is None:
            raise NotFound("Tenant not found")
    ensure_feature(caller, tenant, flag)
