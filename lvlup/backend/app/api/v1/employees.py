# backend/app/api/v1/employees.py
import csv
import io
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    TenantScopeQuery,
    enforce_access,
    ensure_tenant_feature,
    get_current_active_user,
    get_insights_service,
    load_employee_for,
    resolve_tenant_scope,
)
from app.core.constants import EmployeeStatus, UserRole
from app.core.errors import InsufficientRole, InvalidParameterFormat, ProviderUnavailable
from app.core.features import FeatureFlag
from app.core.input_validation import IdPath, OptionalIdQuery
from app.db.database import get_db
from app.db.models.user import User
from app.db.repositories.employee_repository import EmployeeRepository
from app.db.repositories.feedback_repository import FeedbackRepository
from app.db.repositories.goal_repository import GoalRepository
from app.schemas.employee import (
    Employee as EmployeeSchema,
    EmployeeBulkCreate,
    EmployeeCreate,
    EmployeeUpdate,
)
from app.schemas.insights import BehavioralInsights
from app.services.employee_service import EmployeeService
from app.services.insights_service import BehavioralInsightsService

router = APIRouter()

EXPORT_COLUMNS = (
    "id", "employee_number", "first_name", "last_name", "email", "role",
    "department_id", "job_position_id", "manager_id", "status", "hire_date",
    "work_location", "feedback_url",
)


def _creation_tenant(caller: User, tenant_id: Optional[str]) -> str:
    target = resolve_tenant_scope(caller, tenant_id, UserRole.TENANT_ADMIN)
    if target is None:
        raise InvalidParameterFormat(
            "tenant_id is required",
            details=[{"field": "tenant_id", "message": "Platform administrators must name the tenant", "code": "missing"}],
        )
    return target


@router.get("", response_model=List[EmployeeSchema])
async def list_employees(
    tenant_id: Optional[str] = TenantScopeQuery,
    department_id: OptionalIdQuery = None,
    status_filter: Optional[EmployeeStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """List employees of the caller's tenant (every tenant for platform admins without a filter)"""
    scope = resolve_tenant_scope(current_user, tenant_id, UserRole.EMPLOYEE)
    employees = await EmployeeRepository(db).list_employees(
        tenant_id=scope,
        department_id=department_id,
        status=status_filter.value if status_filter else None,
        skip=skip,
        limit=limit,
    )
    return [EmployeeSchema.from_model(employee) for employee in employees]


@router.get("/export")
async def export_employees(
    tenant_id: Optional[str] = TenantScopeQuery,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Employee directory as CSV"""
    scope = resolve_tenant_scope(current_user, tenant_id, UserRole.TENANT_ADMIN)
    await ensure_tenant_feature(db, current_user, scope, FeatureFlag.DATA_EXPORT)

    employees = await EmployeeRepository(db).list_employees(tenant_id=scope, limit=100000)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for employee in employees:
        row = EmployeeSchema.from_model(employee).model_dump(mode="json")
        writer.writerow([row.get(column) or "" for column in EXPORT_COLUMNS])

    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="employees.csv"'},
    )


@router.post("", response_model=EmployeeSchema, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_in: EmployeeCreate,
    tenant_id: Optional[str] = TenantScopeQuery,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a user and its employee record, subject to the tenant's seat cap"""
    target = _creation_tenant(current_user, tenant_id)
    created = await EmployeeService(db).create_employees(target, [employee_in], current_user)
    return EmployeeSchema.from_model(created[0])


@router.post("/bulk", response_model=List[EmployeeSchema], status_code=status.HTTP_201_CREATED)
async def bulk_create_employees(
    bulk_in: EmployeeBulkCreate,
    tenant_id: Optional[str] = TenantScopeQuery,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Create up to 100 employees at once; nothing is created if any would exceed the cap"""
    target = _creation_tenant(current_user, tenant_id)
    await ensure_tenant_feature(db, current_user, target, FeatureFlag.BULK_EMPLOYEE_OPERATIONS)
    created = await EmployeeService(db).create_employees(target, bulk_in.employees, current_user)
    return [EmployeeSchema.from_model(employee) for employee in created]


@router.get("/{employee_id}", response_model=EmployeeSchema)
async def get_employee(
    employee_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    employee = await load_employee_for(db, current_user, employee_id, UserRole.EMPLOYEE)
    return EmployeeSchema.from_model(employee)


@router.patch("/{employee_id}", response_model=EmployeeSchema)
async def update_employee(
    employee_id: IdPath,
    employee_in: EmployeeUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    employee = await load_employee_for(db, current_user, employee_id, UserRole.MANAGER)
    # Role changes are an admin decision
    if employee_in.role is not None:
        enforce_access(current_user, employee.tenant_id, UserRole.TENANT_ADMIN)
    employee = await EmployeeService(db).update_employee(employee, employee_in)
    return EmployeeSchema.from_model(employee)


@router.delete("/{employee_id}", response_model=EmployeeSchema)
async def terminate_employee(
    employee_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Terminate an employee (soft delete); the seat becomes free"""
    employee = await load_employee_for(db, current_user, employee_id, UserRole.TENANT_ADMIN)
    if employee.user_id == current_user.id:
        raise InsufficientRole("You cannot terminate your own employee record.")
    employee = await EmployeeService(db).terminate_employee(employee, current_user)
    return EmployeeSchema.from_model(employee)


@router.get("/{employee_id}/reports", response_model=List[EmployeeSchema])
async def get_direct_reports(
    employee_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Direct reports of an employee"""
    employee = await load_employee_for(db, current_user, employee_id, UserRole.EMPLOYEE)
    await ensure_tenant_feature(db, current_user, employee.tenant_id, FeatureFlag.EMPLOYEE_HIERARCHY)
    reports = await EmployeeRepository(db).get_direct_reports(employee.id)
    return [EmployeeSchema.from_model(report) for report in reports]


@router.get("/{employee_id}/insights", response_model=BehavioralInsights)
async def get_behavioral_insights(
    employee_id: IdPath,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    insights: BehavioralInsightsService = Depends(get_insights_service),
):
    """
    Collaboration, sentiment and leadership analyses of an employee's feedback.

    Analyses that fail come back with ``available: false``; the others are
    still returned. Without a configured LLM provider the whole endpoint
    answers PROVIDER_UNAVAILABLE.
    """
    employee = await load_employee_for(db, current_user, employee_id, UserRole.MANAGER)
    await ensure_tenant_feature(db, current_user, employee.tenant_id, FeatureFlag.ADVANCED_ANALYTICS)
    if not insights.is_configured:
        raise ProviderUnavailable()

    feedback = await FeedbackRepository(db).list_for_employee(employee.id)
    feedback_texts = [item.comments for item in feedback if item.comments]
    goals = await GoalRepository(db).list_for_employee(employee.id)
    goal_summaries = [
        f"{goal.title} ({goal.status}, {goal.progress}% complete)"
        + (f": {goal.description}" if goal.description else "")
        for goal in goals
    ]

    results = await insights.analyze_employee(feedback_texts, goal_summaries)
    return BehavioralInsights(
        employee_id=employee.id,
        feedback_count=len(feedback_texts),
        **results,
    )
