# backend/app/api/v1/goals.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    ensure_tenant_feature,
    get_current_active_user,
    get_notification_service,
    load_employee_for,
)
from app.core.constants import IDENTIFIER_PATTERN, GoalStatus, UserRole
from app.core.errors import NotFound
from app.core.features import FeatureFlag
from app.core.input_validation import IdPath
from app.core.logging import logger
from app.db.database import get_db
from app.db.models.employee import Employee
from app.db.models.user import User
from app.db.repositories.goal_repository import GoalRepository
from app.schemas.goal import Goal as GoalSchema, GoalCreate, GoalUpdate
from app.services.notification_service import NotificationService

router = APIRouter()


async def _employee_for_goals(db: AsyncSession, caller: User, employee_id: str) -> Employee:
    # Own goals need only the base role, anyone else's need a manager
    employee = await load_employee_for(db, caller, employee_id, UserRole.MANAGER, allow_self=True)
    await ensure_tenant_feature(db, caller, employee.tenant_id, FeatureFlag.GOAL_TRACKING)
    return employee


async def _load_goal(db: AsyncSession, caller: User, goal_id: str, allow_self: bool = True):
    goal = await GoalRepository(db).get(goal_id)
    if goal is None:
        raise NotFound("Goal not found")
    employee = await load_employee_for(db, caller, goal.employee_id, UserRole.MANAGER, allow_self=allow_self)
    await ensure_tenant_feature(db, caller, employee.tenant_id, FeatureFlag.GOAL_TRACKING)
    return goal, employee


def _completion(values: dict) -> dict:
    """Reaching 100% completes a goal"""
    if values.get("progress") == 100 and "status" not in values:
        values["status"] = GoalStatus.COMPLETED.value
    return values


@router.get("", response_model=List[GoalSchema])
async def list_goals(
    employee_id: str = Query(..., pattern=IDENTIFIER_PATTERN),
    status_filter: Optional[GoalStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Goals of one employee"""
    employee = await _employee_for_goals(db, current_user, employee_id)
    return await GoalRepository(db).list_for_employee(
        employee.id, status_filter.value if status_filter else None
    )


@router.post("", response_model=GoalSchema, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal_in: GoalCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    employee = await _employee_for_goals(db, current_user, goal_in.employee_id)
    values = _completion(goal_in.model_dump())
    values["employee_id"] = employee.id
    return await GoalRepository(db).create(values)


@router.get("/{goal_id}", response_model=GoalSchema)
async def get_goal(
    goal_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    goal, _ = await _load_goal(db, current_user, goal_id)
    return goal


@router.patch("/{goal_id}", response_model=GoalSchema)
async def update_goal(
    goal_id: IdPath,
    goal_in: GoalUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    goal, _ = await _load_goal(db, current_user, goal_id)
    values = goal_in.model_dump(exclude_unset=True, exclude_none=True)
    if "status" in values:
        values["status"] = GoalStatus(values["status"]).value
    return await GoalRepository(db).update(goal.id, _completion(values))


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(
    goal_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    goal, _ = await _load_goal(db, current_user, goal_id, allow_self=False)
    await GoalRepository(db).delete(goal.id)


@router.post("/{goal_id}/remind", status_code=status.HTTP_202_ACCEPTED)
async def remind_goal(
    goal_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Send the goal's owner a reminder"""
    goal, employee = await _load_goal(db, current_user, goal_id, allow_self=False)
    goal_id = goal.id
    notification = await notifications.notify_goal_reminder(employee.user_id, goal)
    if notification is None:
        logger.warning("Goal reminder was not stored", extra={"user_id": employee.user_id})
    return {"goal_id": goal_id, "notification_id": notification.id if notification else None}
