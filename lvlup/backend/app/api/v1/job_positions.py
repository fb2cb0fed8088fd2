# backend/app/api/v1/job_positions.py
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    TenantScopeQuery,
    enforce_access,
    ensure_tenant_feature,
    get_current_active_user,
    resolve_tenant_scope,
)
from app.core.constants import UserRole
from app.core.errors import Conflict, InvalidParameterFormat, NotFound
from app.core.features import FeatureFlag
from app.core.input_validation import IdPath
from app.db.database import get_db
from app.db.models.job_position import JobPosition
from app.db.models.user import User
from app.db.repositories.employee_repository import EmployeeRepository
from app.db.repositories.job_position_repository import JobPositionRepository
from app.schemas.organization import (
    JobPosition as JobPositionSchema,
    JobPositionCreate,
    JobPositionUpdate,
)

router = APIRouter()


async def _load_for_management(db: AsyncSession, caller: User, position_id: str) -> JobPosition:
    position = await JobPositionRepository(db).get(position_id)
    if position is None:
        raise NotFound("Job position not found")
    enforce_access(caller, position.tenant_id, UserRole.TENANT_ADMIN)
    await ensure_tenant_feature(db, caller, position.tenant_id, FeatureFlag.JOB_POSITION_MANAGEMENT)
    return position


@router.get("", response_model=List[JobPositionSchema])
async def list_job_positions(
    tenant_id: Optional[str] = TenantScopeQuery,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    scope = resolve_tenant_scope(current_user, tenant_id, UserRole.EMPLOYEE)
    return await JobPositionRepository(db).list_positions(scope)


@router.post("", response_model=JobPositionSchema, status_code=status.HTTP_201_CREATED)
async def create_job_position(
    position_in: JobPositionCreate,
    tenant_id: Optional[str] = TenantScopeQuery,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    target = resolve_tenant_scope(current_user, tenant_id, UserRole.TENANT_ADMIN)
    if target is None:
        raise InvalidParameterFormat("tenant_id is required")
    await ensure_tenant_feature(db, current_user, target, FeatureFlag.JOB_POSITION_MANAGEMENT)
    return await JobPositionRepository(db).create({**position_in.model_dump(), "tenant_id": target})


@router.patch("/{position_id}", response_model=JobPositionSchema)
async def update_job_position(
    position_id: IdPath,
    position_in: JobPositionUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    position = await _load_for_management(db, current_user, position_id)
    return await JobPositionRepository(db).update(position.id, position_in.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{position_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job_position(
    position_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    position = await _load_for_management(db, current_user, position_id)
    if await EmployeeRepository(db).count_with_job_position(position.id):
        raise Conflict("Job position is still assigned to employees")
    await JobPositionRepository(db).delete(position.id)
