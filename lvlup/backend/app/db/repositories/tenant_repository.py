# backend/app/db/repositories/tenant_repository.py
from typing import Any, Dict, Optional, List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import EmployeeStatus, GoalStatus, ReviewStatus, SubscriptionTier
from app.db.models.tenant import Tenant
from app.db.models.employee import Employee
from app.db.models.feedback import Feedback
from app.db.models.goal import Goal
from app.db.models.performance_review import PerformanceReview
from app.db.models.billing_audit_log import BillingAuditLog
from app.db.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Repository for Tenant operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Tenant, session)

    async def get_by_id(self, tenant_id: str) -> Optional[Tenant]:
        """Get tenant by ID"""
        result = await self.session.execute(
            select(Tenant).where(Tenant.id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_domain(self, domain: str) -> Optional[Tenant]:
        result = await self.session.execute(
            select(Tenant).where(Tenant.domain == domain)
        )
        return result.scalar_one_or_none()

    async def list_tenants(
        self, is_active: Optional[bool] = None, skip: int = 0, limit: int = 100
    ) -> List[Tenant]:
        filters = {"is_active": is_active} if is_active is not None else None
        return await self.get_multi(skip=skip, limit=limit, filters=filters)

    async def count_active_employees(self, tenant_id: str) -> int:
        """Count employees occupying a seat (everyone not terminated)"""
        result = await self.session.execute(
            select(func.count(Employee.id))
            .where(Employee.tenant_id == tenant_id)
            .where(Employee.status != EmployeeStatus.TERMINATED.value)
        )
        return result.scalar() or 0

    async def dashboard_metrics(self, tenant_id: str) -> Dict[str, Any]:
        """Headline counts for a tenant's dashboard"""
        feedback = (await self.session.execute(
            select(func.count(Feedback.id), func.avg(Feedback.rating))
            .join(Employee, Employee.id == Feedback.employee_id)
            .where(Employee.tenant_id == tenant_id)
        )).one()
        reviews = (await self.session.execute(
            select(func.count(PerformanceReview.id), func.avg(PerformanceReview.overall_score))
            .join(Employee, Employee.id == PerformanceReview.employee_id)
            .where(Employee.tenant_id == tenant_id)
            .where(PerformanceReview.status == ReviewStatus.SUBMITTED.value)
        )).one()
        goals_completed = (await self.session.execute(
            select(func.count(Goal.id))
            .join(Employee, Employee.id == Goal.employee_id)
            .where(Employee.tenant_id == tenant_id)
            .where(Goal.status == GoalStatus.COMPLETED.value)
        )).scalar()

        return {
            "total_employees": await self.count_active_employees(tenant_id),
            "total_feedback": feedback[0] or 0,
            "average_rating": round(float(feedback[1]), 2) if feedback[1] is not None else None,
            "active_reviews": reviews[0] or 0,
            "average_review_score": round(float(reviews[1]), 2) if reviews[1] is not None else None,
            "goals_completed": goals_completed or 0,
        }

    async def change_tier(
        self,
        tenant: Tenant,
        tier: SubscriptionTier,
        max_employees: int,
        actor_id: Optional[str] = None,
    ) -> Tenant:
        """Move a tenant to another tier and record the change in the billing audit"""
        old_value = {
            "subscription_tier": tenant.subscription_tier,
            "max_employees": tenant.max_employees,
        }
        new_value = {"subscription_tier": tier.value, "max_employees": max_employees}

        tenant.subscription_tier = tier.value
        tenant.max_employees = max_employees
        self.session.add(BillingAuditLog(
            tenant_id=tenant.id,
            user_id=actor_id,
            action="tier_change",
            old_value=old_value,
            new_value=new_value,
            description=f"Subscription changed from {old_value['subscription_tier']} to {tier.value}",
        ))
        await self.session.commit()
        await self.session.refresh(tenant)
        return tenant

    async def set_active(self, tenant: Tenant, is_active: bool, actor_id: Optional[str] = None) -> Tenant:
        if tenant.is_active != is_active:
            self.session.add(BillingAuditLog(
                tenant_id=tenant.id,
                user_id=actor_id,
                action="activate" if is_active else "deactivate",
                old_value={"is_active": tenant.is_active},
                new_value={"is_active": is_active},
            ))
            tenant.is_active = is_active
            await self.session.commit()
            await self.session.refresh(tenant)
        return tenant

    async def billing_history(self, tenant_id: str) -> List[BillingAuditLog]:
        result = await self.session.execute(
            select(BillingAuditLog)
            .where(BillingAuditLog.tenant_id == tenant_id)
            .order_by(BillingAuditLog.created_at.desc())
        )
        return list(result.scalars().all())
