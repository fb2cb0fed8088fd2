# backend/app/services/employee_service.py
"""
Employee lifecycle: provisioning under the tenant seat cap, reference
checks (department, job position, manager), updates and termination.
"""
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_log import AuditEventType, audit_logger
from app.core.constants import UNLIMITED, EmployeeStatus
from app.core.errors import Conflict, InvalidRequestBody, LimitExceeded, NotFound, TenantInactive
from app.core.logging import logger
from app.db.models.employee import Employee
from app.db.models.tenant import Tenant
from app.db.models.user import User
from app.db.repositories.department_repository import DepartmentRepository
from app.db.repositories.employee_repository import EmployeeRepository, SeatLimitReached
from app.db.repositories.job_position_repository import JobPositionRepository
from app.db.repositories.tenant_repository import TenantRepository
from app.db.repositories.user_repository import UserRepository
from app.schemas.employee import EmployeeCreate, EmployeeUpdate

USER_FIELDS = ("first_name", "last_name", "role")
EMPLOYEE_FIELDS = (
    "employee_number",
    "department_id",
    "job_position_id",
    "manager_id",
    "hire_date",
    "bio",
    "work_location",
)


def _invalid(field: str, message: str) -> InvalidRequestBody:
    return InvalidRequestBody(message, details=[{"field": field, "message": message, "code": "reference"}])


class EmployeeService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.employees = EmployeeRepository(session)
        self.tenants = TenantRepository(session)
        self.users = UserRepository(session)
        self.departments = DepartmentRepository(session)
        self.positions = JobPositionRepository(session)

    async def _target_tenant(self, tenant_id: str) -> Tenant:
        tenant = await self.tenants.get_by_id(tenant_id)
        if tenant is None:
            raise NotFound("Tenant not found")
        if not tenant.is_active:
            raise TenantInactive("This organization is inactive; employees cannot be added.")
        return tenant

    async def check_references(
        self,
        tenant_id: str,
        department_id: Optional[str] = None,
        job_position_id: Optional[str] = None,
        manager_id: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> None:
        """Referenced rows must exist inside the same tenant; reporting lines stay acyclic"""
        if department_id:
            department = await self.departments.get(department_id)
            if department is None or department.tenant_id != tenant_id:
                raise _invalid("department_id", "Department not found in this organization")
        if job_position_id:
            position = await self.positions.get(job_position_id)
            if position is None or position.tenant_id != tenant_id:
                raise _invalid("job_position_id", "Job position not found in this organization")
        if manager_id:
            if employee_id and manager_id == employee_id:
                raise _invalid("manager_id", "An employee cannot be their own manager")
            manager = await self.employees.get(manager_id)
            if manager is None or manager.tenant_id != tenant_id:
                raise _invalid("manager_id", "Manager not found in this organization")
            if employee_id and await self.employees.creates_reporting_cycle(employee_id, manager_id):
                raise _invalid("manager_id", "This manager would create a reporting cycle")

    async def _check_emails(self, items: Sequence[EmployeeCreate]) -> None:
        seen = set()
        for item in items:
            email = item.email.lower()
            if email in seen:
                raise Conflict(f"Duplicate email in request: {email}", details={"email": email})
            seen.add(email)
            if await self.users.get_by_email(email):
                raise Conflict("A user with this email already exists", details={"email": email})

    async def create_employees(
        self, tenant_id: str, items: Sequence[EmployeeCreate], actor: User
    ) -> List[Employee]:
        """
        Create users and their employee rows, all-or-nothing.

        Raises:
            LimitExceeded: If the batch does not fit in the remaining seats
            Conflict: If an email is already taken
        """
        # A refused insert rolls the session back and expires loaded rows
        actor_id = actor.id
        tenant = await self._target_tenant(tenant_id)
        await self._check_emails(items)
        for item in items:
            await self.check_references(tenant_id, item.department_id, item.job_position_id, item.manager_id)

        rows = []
        for item in items:
            user_fields = {
                "email": item.email.lower(),
                "first_name": item.first_name,
                "last_name": item.last_name,
                "role": item.role,
                "tenant_id": tenant_id,
            }
            employee_fields = {field: getattr(item, field) for field in EMPLOYEE_FIELDS}
            rows.append((user_fields, employee_fields))

        tier = tenant.subscription_tier
        try:
            created = await self.employees.create_many_with_seat_check(tenant_id, rows)
        except SeatLimitReached as e:
            await audit_logger.log_event(
                event_type=AuditEventType.LIMIT_EXCEEDED,
                user_id=actor_id,
                tenant_id=tenant_id,
                details={"limit": "max_employees", "max": e.max_employees, "current": e.current, "requested": len(rows)},
            )
            raise LimitExceeded(
                f"Employee limit reached ({e.current}/{e.max_employees}). "
                "Upgrade your plan to add more employees.",
                details={
                    "limit": "max_employees",
                    "max_employees": e.max_employees,
                    "current_employees": e.current,
                    "current_tier": tier,
                    "upgrade_required": True,
                },
            )
        except IntegrityError:
            logger.warning("Employee create hit a uniqueness constraint", extra={"tenant_id": tenant_id})
            raise Conflict("A user with this email already exists")

        for employee in created:
            await audit_logger.log_event(
                event_type=AuditEventType.EMPLOYEE_CREATED,
                user_id=actor_id,
                tenant_id=tenant_id,
                details={"employee_id": employee.id},
            )
        return created

    async def update_employee(self, employee: Employee, update: EmployeeUpdate) -> Employee:
        values = update.model_dump(exclude_unset=True)

        status = values.pop("status", None)
        if status is not None:
            status = EmployeeStatus(status)
            if status is EmployeeStatus.TERMINATED:
                raise _invalid("status", "Terminate an employee with DELETE /employees/{id}")
            if employee.status == EmployeeStatus.TERMINATED.value:
                raise _invalid("status", "Terminated employees cannot be reactivated")

        await self.check_references(
            employee.tenant_id,
            values.get("department_id"),
            values.get("job_position_id"),
            values.get("manager_id"),
            employee_id=employee.id,
        )

        user_values = {k: values[k] for k in USER_FIELDS if values.get(k) is not None}
        employee_values: Dict[str, Any] = {k: values[k] for k in EMPLOYEE_FIELDS if k in values}
        if status is not None:
            employee_values["status"] = status.value

        if user_values:
            await self.users.update(employee.user_id, user_values)
        return await self.employees.update(employee.id, employee_values)

    async def terminate_employee(self, employee: Employee, actor: User) -> Employee:
        """Soft delete: the row stays, the seat is freed and the user loses access"""
        if employee.status == EmployeeStatus.TERMINATED.value:
            return employee
        await self.users.update(employee.user_id, {"is_active": False})
        employee = await self.employees.update(employee.id, {"status": EmployeeStatus.TERMINATED.value})
        await audit_logger.log_event(
            event_type=AuditEventType.EMPLOYEE_TERMINATED,
            user_id=actor.id,
            tenant_id=employee.tenant_id,
            details={"employee_id": employee.id},
        )
        return employee

    async def seat_usage(self, tenant: Tenant) -> Dict[str, Optional[int]]:
        current = await self.tenants.count_active_employees(tenant.id)
        if tenant.max_employees == UNLIMITED:
            return {"max_employees": None, "current_employees": current, "remaining_seats": None}
        return {
            "max_employees": tenant.max_employees,
            "current_employees": current,
            "remaining_seats": max(tenant.max_employees - current, 0),
        }
