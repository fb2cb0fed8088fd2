# backend/app/db/repositories/review_repository.py
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.employee import Employee
from app.db.models.performance_review import PerformanceReview
from app.db.repositories.base import BaseRepository


class ReviewRepository(BaseRepository[PerformanceReview]):
    """Repository for PerformanceReview operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(PerformanceReview, session)

    async def list_for_employee(self, employee_id: str) -> List[PerformanceReview]:
        result = await self.session.execute(
            select(PerformanceReview)
            .where(PerformanceReview.employee_id == employee_id)
            .order_by(PerformanceReview.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_for_tenant(
        self, tenant_id: Optional[str], status: Optional[str] = None
    ) -> List[PerformanceReview]:
        """Reviews whose employee belongs to ``tenant_id`` (every tenant when None)"""
        query = select(PerformanceReview).join(
            Employee, Employee.id == PerformanceReview.employee_id
        )
        if tenant_id is not None:
            query = query.where(Employee.tenant_id == tenant_id)
        if status:
            query = query.where(PerformanceReview.status == status)
        result = await self.session.execute(query.order_by(PerformanceReview.created_at.desc()))
        return list(result.scalars().all())
