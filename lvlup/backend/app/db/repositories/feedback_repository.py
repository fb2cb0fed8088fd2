# backend/app/db/repositories/feedback_repository.py
from datetime import datetime
from typing import Any, Dict, List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.feedback import Feedback
from app.db.repositories.base import BaseRepository


class FeedbackRepository(BaseRepository[Feedback]):
    """Repository for Feedback operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Feedback, session)

    async def list_for_employee(self, employee_id: str, limit: int = 100) -> List[Feedback]:
        result = await self.session.execute(
            select(Feedback)
            .where(Feedback.employee_id == employee_id)
            .order_by(Feedback.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def summary_for_employee(self, employee_id: str) -> Dict[str, Any]:
        """Counts, average rating and distributions for one employee"""
        totals = (await self.session.execute(
            select(func.count(Feedback.id), func.avg(Feedback.rating))
            .where(Feedback.employee_id == employee_id)
        )).one()

        ratings = await self.session.execute(
            select(Feedback.rating, func.count(Feedback.id))
            .where(Feedback.employee_id == employee_id)
            .where(Feedback.rating.is_not(None))
            .group_by(Feedback.rating)
        )
        sentiments = await self.session.execute(
            select(Feedback.sentiment, func.count(Feedback.id))
            .where(Feedback.employee_id == employee_id)
            .where(Feedback.sentiment.is_not(None))
            .group_by(Feedback.sentiment)
        )

        average = totals[1]
        return {
            "total": totals[0] or 0,
            "average_rating": round(float(average), 2) if average is not None else None,
            "rating_distribution": {str(rating): count for rating, count in ratings.all()},
            "sentiment_counts": {sentiment: count for sentiment, count in sentiments.all()},
        }

    async def count_since(self, employee_id: str, since: datetime) -> int:
        result = await self.session.execute(
            select(func.count(Feedback.id))
            .where(Feedback.employee_id == employee_id)
            .where(Feedback.created_at >= since)
        )
        return result.scalar() or 0
