# backend/app/api/v1/reviews.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    TenantScopeQuery,
    ensure_tenant_feature,
    get_current_active_user,
    get_notification_service,
    load_employee_for,
    resolve_tenant_scope,
)
from app.core.constants import IDENTIFIER_PATTERN, ReviewStatus, UserRole
from app.core.errors import Conflict, InvalidRequestBody, NotFound
from app.core.features import FeatureFlag
from app.core.input_validation import IdPath
from app.db.database import get_db
from app.db.models.user import User
from app.db.repositories.employee_repository import EmployeeRepository
from app.db.repositories.review_repository import ReviewRepository
from app.schemas.review import Review as ReviewSchema, ReviewCreate, ReviewUpdate
from app.services.notification_service import NotificationService

router = APIRouter()

# Allowed status moves: current -> next
TRANSITIONS = {
    "submit": (ReviewStatus.DRAFT, ReviewStatus.SUBMITTED, UserRole.MANAGER),
    "approve": (ReviewStatus.SUBMITTED, ReviewStatus.APPROVED, UserRole.TENANT_ADMIN),
}


async def _load_review(
    db: AsyncSession, caller: User, review_id: str, required_role: UserRole, allow_self: bool = False
):
    review = await ReviewRepository(db).get(review_id)
    if review is None:
        raise NotFound("Performance review not found")
    employee = await load_employee_for(db, caller, review.employee_id, required_role, allow_self=allow_self)
    await ensure_tenant_feature(db, caller, employee.tenant_id, FeatureFlag.PERFORMANCE_REVIEWS)
    return review, employee


async def _transition(
    db: AsyncSession,
    caller: User,
    review_id: str,
    action: str,
    notifications: NotificationService,
) -> ReviewSchema:
    current, target, role = TRANSITIONS[action]
    review, employee = await _load_review(db, caller, review_id, role)
    if review.status != current.value:
        raise Conflict(
            f"Only {current.value} reviews can be {target.value}",
            details={"status": review.status},
        )
    review = await ReviewRepository(db).update(review.id, {"status": target.value})
    result = ReviewSchema.model_validate(review)
    await notifications.notify_performance_review(employee.user_id, review, target.value)
    return result


@router.post("", response_model=ReviewSchema, status_code=status.HTTP_201_CREATED)
async def create_review(
    review_in: ReviewCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Start a draft review; the caller is the reviewer"""
    employee = await load_employee_for(db, current_user, review_in.employee_id, UserRole.MANAGER)
    await ensure_tenant_feature(db, current_user, employee.tenant_id, FeatureFlag.PERFORMANCE_REVIEWS)

    reviewer = await EmployeeRepository(db).get_by_user_id(current_user.id)
    if reviewer is None or reviewer.tenant_id != employee.tenant_id:
        raise InvalidRequestBody(
            "Reviews must be written by an employee of the same organization",
            details=[{"field": "reviewer_id", "message": "Caller has no employee record in this organization", "code": "reference"}],
        )

    review = await ReviewRepository(db).create({
        **review_in.model_dump(),
        "employee_id": employee.id,
        "reviewer_id": reviewer.id,
        "status": ReviewStatus.DRAFT.value,
    })
    result = ReviewSchema.model_validate(review)
    await notifications.notify_performance_review(employee.user_id, review, "created")
    return result


@router.get("", response_model=List[ReviewSchema])
async def list_reviews(
    employee_id: Optional[str] = Query(None, pattern=IDENTIFIER_PATTERN),
    status_filter: Optional[ReviewStatus] = Query(None, alias="status"),
    tenant_id: Optional[str] = TenantScopeQuery,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Reviews of one employee, or of the whole tenant for managers"""
    repo = ReviewRepository(db)
    if employee_id:
        employee = await load_employee_for(db, current_user, employee_id, UserRole.MANAGER, allow_self=True)
        await ensure_tenant_feature(db, current_user, employee.tenant_id, FeatureFlag.PERFORMANCE_REVIEWS)
        reviews = await repo.list_for_employee(employee.id)
        if status_filter:
            reviews = [review for review in reviews if review.status == status_filter.value]
        return reviews

    scope = resolve_tenant_scope(current_user, tenant_id, UserRole.MANAGER)
    await ensure_tenant_feature(db, current_user, scope, FeatureFlag.PERFORMANCE_REVIEWS)
    return await repo.list_for_tenant(scope, status_filter.value if status_filter else None)


@router.get("/{review_id}", response_model=ReviewSchema)
async def get_review(
    review_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    review, _ = await _load_review(db, current_user, review_id, UserRole.MANAGER, allow_self=True)
    return review


@router.patch("/{review_id}", response_model=ReviewSchema)
async def update_review(
    review_id: IdPath,
    review_in: ReviewUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Edit a review while it is still a draft"""
    review, _ = await _load_review(db, current_user, review_id, UserRole.MANAGER)
    if review.status != ReviewStatus.DRAFT.value:
        raise Conflict("Only draft reviews can be edited", details={"status": review.status})
    return await ReviewRepository(db).update(review.id, review_in.model_dump(exclude_unset=True))


@router.post("/{review_id}/submit", response_model=ReviewSchema)
async def submit_review(
    review_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    return await _transition(db, current_user, review_id, "submit", notifications)


@router.post("/{review_id}/approve", response_model=ReviewSchema)
async def approve_review(
    review_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    return await _transition(db, current_user, review_id, "approve", notifications)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    review, _ = await _load_review(db, current_user, review_id, UserRole.TENANT_ADMIN)
    await ReviewRepository(db).delete(review.id)
