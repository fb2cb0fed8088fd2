# backend/app/db/repositories/goal_repository.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import GoalStatus
from app.db.models.goal import Goal
from app.db.repositories.base import BaseRepository


class GoalRepository(BaseRepository[Goal]):
    """Repository for Goal operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Goal, session)

    async def list_for_employee(self, employee_id: str, status: Optional[str] = None) -> List[Goal]:
        query = select(Goal).where(Goal.employee_id == employee_id)
        if status:
            query = query.where(Goal.status == status)
        result = await self.session.execute(query.order_by(Goal.created_at))
        return list(result.scalars().all())

    async def count_completed_since(self, employee_id: str, since: datetime) -> int:
        """Goals marked completed since ``since`` (by last update time)"""
        result = await self.session.execute(
            select(func.count(Goal.id))
            .where(Goal.employee_id == employee_id)
            .where(Goal.status == GoalStatus.COMPLETED.value)
            .where(Goal.updated_at >= since)
        )
        return result.scalar() or 0
