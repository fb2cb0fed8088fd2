# backend/app/api/v1/departments.py
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
from app.core.errors import Conflict, InvalidParameterFormat, InvalidRequestBody, NotFound
from app.core.features import FeatureFlag
from app.core.input_validation import IdPath
from app.db.database import get_db
from app.db.models.department import Department
from app.db.models.user import User
from app.db.repositories.department_repository import DepartmentRepository
from app.db.repositories.employee_repository import EmployeeRepository
from app.schemas.organization import (
    Department as DepartmentSchema,
    DepartmentCreate,
    DepartmentUpdate,
)

router = APIRouter()


async def _load(db: AsyncSession, caller: User, department_id: str, required_role: UserRole) -> Department:
    department = await DepartmentRepository(db).get(department_id)
    if department is None:
        raise NotFound("Department not found")
    enforce_access(caller, department.tenant_id, required_role)
    return department


async def _check_manage(db: AsyncSession, caller: User, tenant_id: str) -> None:
    enforce_access(caller, tenant_id, UserRole.TENANT_ADMIN)
    await ensure_tenant_feature(db, caller, tenant_id, FeatureFlag.DEPARTMENT_MANAGEMENT)


async def _check_parent(repo: DepartmentRepository, tenant_id: str, parent_id: str, department_id: Optional[str] = None):
    parent = await repo.get(parent_id)
    if parent is None or parent.tenant_id != tenant_id:
        raise InvalidRequestBody(
            "Parent department not found in this organization",
            details=[{"field": "parent_department_id", "message": "Unknown department", "code": "reference"}],
        )
    if department_id and await repo.creates_cycle(department_id, parent_id):
        raise InvalidRequestBody(
            "A department cannot be nested inside itself",
            details=[{"field": "parent_department_id", "message": "Would create a cycle", "code": "reference"}],
        )


@router.get("", response_model=List[DepartmentSchema])
async def list_departments(
    tenant_id: Optional[str] = TenantScopeQuery,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    scope = resolve_tenant_scope(current_user, tenant_id, UserRole.EMPLOYEE)
    return await DepartmentRepository(db).list_departments(scope)


@router.get("/{department_id}", response_model=DepartmentSchema)
async def get_department(
    department_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return await _load(db, current_user, department_id, UserRole.EMPLOYEE)


@router.post("", response_model=DepartmentSchema, status_code=status.HTTP_201_CREATED)
async def create_department(
    department_in: DepartmentCreate,
    tenant_id: Optional[str] = TenantScopeQuery,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    target = resolve_tenant_scope(current_user, tenant_id, UserRole.TENANT_ADMIN)
    if target is None:
        raise InvalidParameterFormat("tenant_id is required")
    await _check_manage(db, current_user, target)

    repo = DepartmentRepository(db)
    if department_in.parent_department_id:
        await _check_parent(repo, target, department_in.parent_department_id)
    return await repo.create({**department_in.model_dump(), "tenant_id": target})


@router.patch("/{department_id}", response_model=DepartmentSchema)
async def update_department(
    department_id: IdPath,
    department_in: DepartmentUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    department = await _load(db, current_user, department_id, UserRole.TENANT_ADMIN)
    await _check_manage(db, current_user, department.tenant_id)

    repo = DepartmentRepository(db)
    values = department_in.model_dump(exclude_unset=True)
    if values.get("parent_department_id"):
        await _check_parent(repo, department.tenant_id, values["parent_department_id"], department.id)
    return await repo.update(department.id, values)


@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
    department_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete an empty department"""
    department = await _load(db, current_user, department_id, UserRole.TENANT_ADMIN)
    await _check_manage(db, current_user, department.tenant_id)

    repo = DepartmentRepository(db)
    if await repo.count_children(department.id):
        raise Conflict("Department has sub-departments; move or delete them first")
    if await EmployeeRepository(db).count_in_department(department.id):
        raise Conflict("Department still has employees; reassign them first")
    await repo.delete(department.id)
