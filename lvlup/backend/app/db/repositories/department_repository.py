# backend/app/db/repositories/department_repository.py
from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.department import Department
from app.db.repositories.base import BaseRepository


class DepartmentRepository(BaseRepository[Department]):
    """Repository for Department operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Department, session)

    async def list_departments(self, tenant_id: Optional[str] = None) -> List[Department]:
        query = select(Department)
        if tenant_id is not None:
            query = query.where(Department.tenant_id == tenant_id)
        result = await self.session.execute(query.order_by(Department.name))
        return list(result.scalars().all())

    async def count_children(self, department_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Department.id)).where(Department.parent_department_id == department_id)
        )
        return result.scalar() or 0

    async def creates_cycle(self, department_id: str, parent_id: str) -> bool:
        """Whether setting ``parent_id`` as parent of ``department_id`` closes a loop"""
        seen = set()
        current: Optional[str] = parent_id
        while current is not None and current not in seen:
            if current == department_id:
                return True
            seen.add(current)
            result = await self.session.execute(
                select(Department.parent_department_id).where(Department.id == current)
            )
            current = result.scalar_one_or_none()
        return current is not None
