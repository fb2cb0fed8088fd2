# backend/app/db/repositories/job_position_repository.py
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.job_position import JobPosition
from app.db.repositories.base import BaseRepository


class JobPositionRepository(BaseRepository[JobPosition]):
    """Repository for JobPosition operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(JobPosition, session)

    async def list_positions(self, tenant_id: Optional[str] = None) -> List[JobPosition]:
        query = select(JobPosition)
        if tenant_id is not None:
            query = query.where(JobPosition.tenant_id == tenant_id)
        result = await self.session.execute(query.order_by(JobPosition.level, JobPosition.title))
        return list(result.scalars().all())
