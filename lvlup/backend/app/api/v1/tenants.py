# backend/app/api/v1/tenants.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    enforce_access,
    ensure_tenant_feature,
    get_current_active_user,
    get_platform_admin,
)
from app.core.audit_log import AuditEventType, audit_logger
from app.core.constants import UserRole
from app.core.errors import Conflict, InvalidRequestBody, NotFound
from app.core.features import FeatureFlag, seat_limit_for
from app.core.input_validation import IdPath, InputValidator
from app.db.database import get_db
from app.db.models.user import User
from app.db.repositories.tenant_repository import TenantRepository
from app.schemas.tenant import (
    BillingAuditEntry,
    DashboardMetrics,
    Tenant as TenantSchema,
    TenantCreate,
    TenantUpdate,
    TierChange,
)

router = APIRouter()


async def _get_tenant_or_404(repo: TenantRepository, tenant_id: str):
    tenant = await repo.get_by_id(tenant_id)
    if tenant is None:
        raise NotFound("Tenant not found")
    return tenant


async def _check_domain(repo: TenantRepository, domain: Optional[str], tenant_id: Optional[str] = None):
    if domain is None:
        return
    if not InputValidator.validate_domain(domain):
        raise InvalidRequestBody(
            "Invalid domain",
            details=[{"field": "domain", "message": "Must be a valid domain name", "code": "value_error"}],
        )
    existing = await repo.get_by_domain(domain.lower())
    if existing is not None and existing.id != tenant_id:
        raise Conflict("A tenant with this domain already exists")


@router.post("", response_model=TenantSchema, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    tenant_in: TenantCreate,
    current_user: User = Depends(get_platform_admin),
    db: AsyncSession = Depends(get_db)
):
    """Provision a tenant; the seat cap defaults to the tier's limit"""
    repo = TenantRepository(db)
    await _check_domain(repo, tenant_in.domain)

    max_employees = tenant_in.max_employees
    if max_employees is None:
        max_employees = seat_limit_for(tenant_in.subscription_tier)

    tenant = await repo.create({
        "name": tenant_in.name,
        "domain": tenant_in.domain.lower() if tenant_in.domain else None,
        "subscription_tier": tenant_in.subscription_tier.value,
        "max_employees": max_employees,
    })
    await audit_logger.log_event(
        event_type=AuditEventType.TENANT_CREATED,
        user_id=current_user.id,
        tenant_id=tenant.id,
        details={"tier": tenant.subscription_tier, "max_employees": tenant.max_employees},
    )
    return tenant


@router.get("", response_model=List[TenantSchema])
async def list_tenants(
    is_active: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_platform_admin),
    db: AsyncSession = Depends(get_db)
):
    """List every tenant (platform administrators only)"""
    return await TenantRepository(db).list_tenants(is_active=is_active, skip=skip, limit=limit)


@router.get("/me", response_model=TenantSchema)
async def get_current_tenant(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current tenant information"""
    if not current_user.tenant_id:
        raise NotFound("You are not a member of any organization")
    return await _get_tenant_or_404(TenantRepository(db), current_user.tenant_id)


@router.get("/{tenant_id}", response_model=TenantSchema)
async def get_tenant(
    tenant_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    enforce_access(current_user, tenant_id, UserRole.EMPLOYEE)
    return await _get_tenant_or_404(TenantRepository(db), tenant_id)


@router.get("/{tenant_id}/metrics", response_model=DashboardMetrics)
async def get_dashboard_metrics(
    tenant_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Headline numbers for the organization dashboard"""
    enforce_access(current_user, tenant_id, UserRole.EMPLOYEE)
    await ensure_tenant_feature(db, current_user, tenant_id, FeatureFlag.BASIC_DASHBOARD)
    return DashboardMetrics(**await TenantRepository(db).dashboard_metrics(tenant_id))


@router.patch("/{tenant_id}", response_model=TenantSchema)
async def update_tenant(
    tenant_id: IdPath,
    tenant_in: TenantUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Rename a tenant or change its domain"""
    enforce_access(current_user, tenant_id, UserRole.TENANT_ADMIN)
    repo = TenantRepository(db)
    await _get_tenant_or_404(repo, tenant_id)

    values = tenant_in.model_dump(exclude_unset=True, exclude_none=True)
    if "domain" in values:
        await _check_domain(repo, values["domain"], tenant_id)
        values["domain"] = values["domain"].lower()
    return await repo.update(tenant_id, values)


@router.put("/{tenant_id}/subscription", response_model=TenantSchema)
async def change_subscription(
    tenant_id: IdPath,
    change: TierChange,
    current_user: User = Depends(get_platform_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Move a tenant to another tier.

    The seat cap is reset to the new tier's limit unless ``max_employees`` is
    given. A cap below the current headcount is accepted: existing employees
    stay, further creates are refused.
    """
    repo = TenantRepository(db)
    tenant = await _get_tenant_or_404(repo, tenant_id)
    old_tier = tenant.subscription_tier

    max_employees = change.max_employees
    if max_employees is None:
        max_employees = seat_limit_for(change.subscription_tier)

    tenant = await repo.change_tier(tenant, change.subscription_tier, max_employees, actor_id=current_user.id)
    await audit_logger.log_event(
        event_type=AuditEventType.TENANT_TIER_CHANGED,
        user_id=current_user.id,
        tenant_id=tenant.id,
        details={"from": old_tier, "to": tenant.subscription_tier, "max_employees": max_employees},
    )
    return tenant


async def _set_active(db: AsyncSession, tenant_id: str, is_active: bool, actor: User):
    repo = TenantRepository(db)
    tenant = await _get_tenant_or_404(repo, tenant_id)
    tenant = await repo.set_active(tenant, is_active, actor_id=actor.id)
    await audit_logger.log_event(
        event_type=AuditEventType.TENANT_STATUS_CHANGED,
        user_id=actor.id,
        tenant_id=tenant.id,
        details={"is_active": is_active},
    )
    return tenant


@router.post("/{tenant_id}/deactivate", response_model=TenantSchema)
async def deactivate_tenant(
    tenant_id: IdPath,
    current_user: User = Depends(get_platform_admin),
    db: AsyncSession = Depends(get_db)
):
    """Soft-deactivate a tenant; its users lose access until reactivated"""
    return await _set_active(db, tenant_id, False, current_user)


@router.post("/{tenant_id}/activate", response_model=TenantSchema)
async def activate_tenant(
    tenant_id: IdPath,
    current_user: User = Depends(get_platform_admin),
    db: AsyncSession = Depends(get_db)
):
    return await _set_active(db, tenant_id, True, current_user)


@router.get("/{tenant_id}/billing-audit", response_model=List[BillingAuditEntry])
async def get_billing_audit(
    tenant_id: IdPath,
    current_user: User = Depends(get_platform_admin),
    db: AsyncSession = Depends(get_db)
):
    repo = TenantRepository(db)
    await _get_tenant_or_404(repo, tenant_id)
    return await repo.billing_history(tenant_id)
