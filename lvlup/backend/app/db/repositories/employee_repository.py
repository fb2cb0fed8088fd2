# backend/app/db/repositories/employee_repository.py
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, insert, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import UNLIMITED, EmployeeStatus
from app.db.base import new_id, utcnow
from app.db.models.employee import Employee
from app.db.models.tenant import Tenant
from app.db.models.user import User
from app.db.repositories.base import BaseRepository


class SeatLimitReached(Exception):
    """Raised when a tenant has no free seat for a new employee"""

    def __init__(self, tenant_id: str, max_employees: int, current: int):
        self.tenant_id = tenant_id
        self.max_employees = max_employees
        self.current = current
        super().__init__(f"Tenant {tenant_id} is at its employee limit ({current}/{max_employees})")


def generate_feedback_url(user_id: str) -> str:
    """Public feedback token, e.g. ``3f2a9c1b-7d4e``"""
    return f"{user_id.replace('-', '')[:8]}-{uuid.uuid4().hex[:4]}"


class EmployeeRepository(BaseRepository[Employee]):
    """Repository for Employee operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Employee, session)

    async def get_by_user_id(self, user_id: str) -> Optional[Employee]:
        result = await self.session.execute(
            select(Employee).where(Employee.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_feedback_url(self, feedback_url: str) -> Optional[Employee]:
        result = await self.session.execute(
            select(Employee).where(Employee.feedback_url == feedback_url)
        )
        return result.scalar_one_or_none()

    async def list_employees(
        self,
        tenant_id: Optional[str] = None,
        department_id: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Employee]:
        """List employees, optionally across every tenant when ``tenant_id`` is None"""
        query = select(Employee)
        if tenant_id is not None:
            query = query.where(Employee.tenant_id == tenant_id)
        if department_id:
            query = query.where(Employee.department_id == department_id)
        if status:
            query = query.where(Employee.status == status)
        query = query.order_by(Employee.created_at).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.unique().scalars().all())

    async def get_direct_reports(self, employee_id: str) -> List[Employee]:
        result = await self.session.execute(
            select(Employee)
            .where(Employee.manager_id == employee_id)
            .where(Employee.status != EmployeeStatus.TERMINATED.value)
            .order_by(Employee.created_at)
        )
        return list(result.unique().scalars().all())

    async def count_in_department(self, department_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Employee.id)).where(Employee.department_id == department_id)
        )
        return result.scalar() or 0

    async def count_with_job_position(self, job_position_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Employee.id)).where(Employee.job_position_id == job_position_id)
        )
        return result.scalar() or 0

    async def creates_reporting_cycle(self, employee_id: str, manager_id: str) -> bool:
        """Whether making ``manager_id`` the manager of ``employee_id`` closes a loop"""
        seen = set()
        current: Optional[str] = manager_id
        while current is not None and current not in seen:
            if current == employee_id:
                return True
            seen.add(current)
            result = await self.session.execute(
                select(Employee.manager_id).where(Employee.id == current)
            )
            current = result.scalar_one_or_none()
        return current is not None

    async def create_many_with_seat_check(
        self,
        tenant_id: str,
        rows: Sequence[Tuple[Dict[str, Any], Dict[str, Any]]],
    ) -> List[Employee]:
        """
        Create several user/employee pairs all-or-nothing.

        The tenant row is locked, then each employee is inserted with a single
        ``INSERT ... SELECT ... WHERE (seats in use) < max_employees`` so the
        count and the insert cannot interleave with another create.

        Raises:
            SeatLimitReached: If any row would exceed the cap; nothing is written
        """
        employee_ids = []
        try:
            tenant = (await self.session.execute(
                select(Tenant)
                .where(Tenant.id == tenant_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )).scalar_one()

            for user_fields, employee_fields in rows:
                employee_id = await self._insert_if_seat_free(tenant, user_fields, employee_fields)
                if employee_id is None:
                    current = await self._count_seats(tenant_id)
                    max_employees = tenant.max_employees
                    await self.session.rollback()
                    raise SeatLimitReached(tenant_id, max_employees, current)
                employee_ids.append(employee_id)

            await self.session.commit()
        except SeatLimitReached:
            raise
        except Exception:
            await self.session.rollback()
            raise

        return [await self.get(employee_id) for employee_id in employee_ids]

    async def _insert_if_seat_free(
        self,
        tenant: Tenant,
        user_fields: Dict[str, Any],
        employee_fields: Dict[str, Any],
    ) -> Optional[str]:
        user = User(**user_fields)
        self.session.add(user)
        await self.session.flush()

        now = utcnow()
        values = {
            "id": new_id(),
            "user_id": user.id,
            "tenant_id": tenant.id,
            "feedback_url": generate_feedback_url(user.id),
            "status": EmployeeStatus.ACTIVE.value,
            "created_at": now,
            "updated_at": now,
        }
        values.update({k: v for k, v in employee_fields.items() if v is not None})

        table = Employee.__table__
        row = select(*[literal(value, type_=table.c[key].type) for key, value in values.items()])
        if tenant.max_employees != UNLIMITED:
            seats_in_use = (
                select(func.count(table.c.id))
                .where(table.c.tenant_id == tenant.id)
                .where(table.c.status != EmployeeStatus.TERMINATED.value)
                .correlate(None)
                .scalar_subquery()
            )
            row = row.where(seats_in_use < tenant.max_employees)

        result = await self.session.execute(
            insert(table).from_select(list(values.keys()), row, include_defaults=False)
        )
        return values["id"] if result.rowcount else None

    async def _count_seats(self, tenant_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Employee.id))
            .where(Employee.tenant_id == tenant_id)
            .where(Employee.status != EmployeeStatus.TERMINATED.value)
        )
        return result.scalar() or 0
