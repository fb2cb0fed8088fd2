# backend/app/api/v1/feedback.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    ensure_tenant_feature,
    get_current_active_user,
    get_notification_service,
    load_employee_for,
)
from app.core.config import settings
from app.core.constants import IDENTIFIER_PATTERN, EmployeeStatus, Sentiment, UserRole
from app.core.errors import FeatureNotAvailable, NotFound
from app.core.features import FeatureFlag, has_feature
from app.core.input_validation import IdPath
from app.core.logging import logger
from app.core.rate_limiter import feedback_client_key, feedback_url_key, limiter
from app.db.database import get_db
from app.db.models.user import User
from app.db.repositories.employee_repository import EmployeeRepository
from app.db.repositories.feedback_repository import FeedbackRepository
from app.db.repositories.tenant_repository import TenantRepository
from app.schemas.feedback import (
    Feedback as FeedbackSchema,
    FeedbackReceipt,
    FeedbackSummary,
    PublicEmployee,
    PublicFeedbackCreate,
)
from app.services.notification_service import NotificationService

router = APIRouter()


def sentiment_for_rating(rating: Optional[int]) -> Optional[str]:
    if rating is None:
        return None
    if rating >= 4:
        return Sentiment.POSITIVE.value
    if rating == 3:
        return Sentiment.NEUTRAL.value
    return Sentiment.NEGATIVE.value


async def _public_target(db: AsyncSession, feedback_url: str):
    """Employee and tenant behind a public link; anything unusable looks missing"""
    employee = await EmployeeRepository(db).get_by_feedback_url(feedback_url)
    if employee is None or employee.status == EmployeeStatus.TERMINATED.value:
        raise NotFound("Feedback link not found")
    tenant = await TenantRepository(db).get_by_id(employee.tenant_id)
    if tenant is None or not tenant.is_active:
        raise NotFound("Feedback link not found")
    if not has_feature(tenant.subscription_tier, FeatureFlag.BASIC_FEEDBACK):
        raise FeatureNotAvailable("This organization is not collecting feedback right now.")
    return employee, tenant


def _redact(feedback) -> FeedbackSchema:
    item = FeedbackSchema.model_validate(feedback)
    if item.is_anonymous:
        item.giver_name = None
        item.giver_email = None
    return item


@router.get("/public/{feedback_url}", response_model=PublicEmployee)
@limiter.limit(settings.FEEDBACK_RATE_LIMIT_PER_URL, key_func=feedback_url_key)
async def get_public_feedback_target(
    request: Request,
    feedback_url: IdPath,
    db: AsyncSession = Depends(get_db)
):
    """Who a feedback link is for; no authentication"""
    employee, tenant = await _public_target(db, feedback_url)
    return PublicEmployee(display_name=employee.user.full_name, organization=tenant.name)


@router.post("/public/{feedback_url}", response_model=FeedbackReceipt, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.FEEDBACK_RATE_LIMIT_PER_URL, key_func=feedback_url_key)
@limiter.limit(settings.FEEDBACK_RATE_LIMIT_PER_CLIENT, key_func=feedback_client_key)
async def submit_public_feedback(
    request: Request,
    feedback_url: IdPath,
    feedback_in: PublicFeedbackCreate,
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Submit feedback through a public link; the employee is notified"""
    employee, _ = await _public_target(db, feedback_url)
    employee_id, user_id = employee.id, employee.user_id

    values = feedback_in.model_dump()
    if feedback_in.is_anonymous:
        values["giver_name"] = None
        values["giver_email"] = None
    feedback = await FeedbackRepository(db).create({
        **values,
        "employee_id": employee_id,
        "sentiment": sentiment_for_rating(feedback_in.rating),
    })
    logger.info("Public feedback received", extra={"tenant_id": employee.tenant_id})

    feedback_id = feedback.id
    await notifications.notify_feedback_received(user_id, feedback_id, feedback_in.rating)
    return FeedbackReceipt(id=feedback_id)


@router.get("", response_model=List[FeedbackSchema])
async def list_feedback(
    employee_id: str = Query(..., pattern=IDENTIFIER_PATTERN),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Feedback about an employee (own, or any in the tenant for managers)"""
    employee = await load_employee_for(db, current_user, employee_id, UserRole.MANAGER, allow_self=True)
    await ensure_tenant_feature(db, current_user, employee.tenant_id, FeatureFlag.BASIC_FEEDBACK)
    feedback = await FeedbackRepository(db).list_for_employee(employee.id, limit=limit)
    return [_redact(item) for item in feedback]


@router.get("/summary", response_model=FeedbackSummary)
async def get_feedback_summary(
    employee_id: str = Query(..., pattern=IDENTIFIER_PATTERN),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Rating and sentiment aggregates for an employee"""
    employee = await load_employee_for(db, current_user, employee_id, UserRole.MANAGER)
    await ensure_tenant_feature(db, current_user, employee.tenant_id, FeatureFlag.ADVANCED_FEEDBACK_ANALYTICS)
    summary = await FeedbackRepository(db).summary_for_employee(employee.id)
    return FeedbackSummary(employee_id=employee.id, **summary)
