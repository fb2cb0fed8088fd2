# backend/app/db/repositories/user_repository.py
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user import User
from app.db.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        result = await self.session.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def list_for_tenant(self, tenant_id: str) -> List[User]:
        result = await self.session.execute(
            select(User).where(User.tenant_id == tenant_id).where(User.is_active.is_(True))
        )
        return list(result.scalars().all())
