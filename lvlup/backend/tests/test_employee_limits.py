# tests/test_employee_limits.py
"""
Seat limit tests
Tests: employee creation under the tier cap, upgrades, termination, bulk creation
"""
import asyncio

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.constants import SubscriptionTier
from app.core.errors import LimitExceeded
from app.db.base import Base
from app.db.models import BillingAuditLog, Employee, Tenant, User
from app.db.repositories.tenant_repository import TenantRepository
from app.schemas.employee import EmployeeCreate
from app.services.employee_service import EmployeeService


def new_employee(n: int, **extra) -> dict:
    return {"email": f"new{n}@example.com", "first_name": "New", "last_name": f"Hire {n}", **extra}


async def count_employees(db_session, tenant_id: str) -> int:
    result = await db_session.execute(
        select(func.count()).select_from(Employee).where(Employee.tenant_id == tenant_id)
    )
    return result.scalar_one()


class TestSeatLimit:
    """Test the per-tenant seat cap"""

    @pytest.mark.asyncio
    async def test_create_under_limit(self, client, headers, admin, tenant):
        """Test creating an employee while seats remain"""
        user, _ = admin
        response = await client.post("/api/v1/employees", headers=headers(user), json=new_employee(1))

        assert response.status_code == 201
        data = response.json()
        assert data["tenant_id"] == tenant.id
        assert data["email"] == "new1@example.com"
        assert data["status"] == "active"
        assert data["feedback_url"]

    @pytest.mark.asyncio
    async def test_26th_employee_rejected(self, client, headers, admin, tenant, fill_seats, db_session):
        """Test a forming tenant at 25 employees cannot add a 26th"""
        user, _ = admin
        await fill_seats(tenant, 24)

        response = await client.post("/api/v1/employees", headers=headers(user), json=new_employee(26))

        assert response.status_code == 403
        data = response.json()
        assert data["error"] == "LIMIT_EXCEEDED"
        assert data["details"]["max_employees"] == 25
        assert data["details"]["current_employees"] == 25
        assert data["details"]["current_tier"] == "forming"
        assert data["details"]["upgrade_required"] is True
        assert await count_employees(db_session, tenant.id) == 25

    @pytest.mark.asyncio
    async def test_upgrade_lifts_limit(
        self, client, headers, admin, tenant, fill_seats, platform_admin, db_session
    ):
        """Test moving to storming lets the 26th employee in and records the change"""
        user, _ = admin
        await fill_seats(tenant, 24)

        response = await client.put(
            f"/api/v1/tenants/{tenant.id}/subscription",
            headers=headers(platform_admin),
            json={"subscription_tier": "storming"},
        )
        assert response.status_code == 200
        assert response.json()["max_employees"] == 100

        response = await client.post("/api/v1/employees", headers=headers(user), json=new_employee(26))
        assert response.status_code == 201

        history = await client.get(f"/api/v1/tenants/{tenant.id}/billing-audit", headers=headers(platform_admin))
        assert history.status_code == 200
        entries = history.json()
        assert entries[0]["old_value"]["subscription_tier"] == "forming"
        assert entries[0]["new_value"]["subscription_tier"] == "storming"

    @pytest.mark.asyncio
    async def test_unlimited_tier(self, client, headers, make_tenant, make_member, fill_seats):
        """Test the performing tier never refuses on seats"""
        tenant = await make_tenant(tier=SubscriptionTier.PERFORMING)
        user, _ = await make_member(tenant, role="tenant_admin")
        await fill_seats(tenant, 30)

        response = await client.post("/api/v1/employees", headers=headers(user), json=new_employee(1))

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_terminated_employees_free_seats(self, client, headers, admin, tenant, fill_seats):
        """Test terminated employees do not count against the cap"""
        user, _ = admin
        await fill_seats(tenant, 24)
        await fill_seats(tenant, 5, status="terminated")

        usage = await client.get("/api/v1/subscription/features", headers=headers(user))
        assert usage.json()["limits"]["current_employees"] == 25

        response = await client.post("/api/v1/employees", headers=headers(user), json=new_employee(1))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_termination_frees_a_seat(self, client, headers, admin, tenant, fill_seats, employee):
        """Test DELETE frees the employee's seat and deactivates the user"""
        user, _ = admin
        _, victim = employee
        # admin + manager + employee + 22
        await fill_seats(tenant, 22)

        refused = await client.post("/api/v1/employees", headers=headers(user), json=new_employee(1))
        assert refused.status_code == 403

        response = await client.delete(f"/api/v1/employees/{victim.id}", headers=headers(user))
        assert response.status_code == 200
        assert response.json()["status"] == "terminated"

        response = await client.post("/api/v1/employees", headers=headers(user), json=new_employee(1))
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_terminated_user_loses_access(self, client, headers, admin, employee):
        """Test a terminated employee can no longer authenticate"""
        admin_user, _ = admin
        user, row = employee
        await client.delete(f"/api/v1/employees/{row.id}", headers=headers(admin_user))

        response = await client.get("/api/v1/users/me", headers=headers(user))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_cap_below_headcount(self, client, headers, admin, tenant, fill_seats, platform_admin):
        """Test lowering the cap keeps existing employees but refuses new ones"""
        user, _ = admin
        await fill_seats(tenant, 5)

        response = await client.put(
            f"/api/v1/tenants/{tenant.id}/subscription",
            headers=headers(platform_admin),
            json={"subscription_tier": "forming", "max_employees": 3},
        )
        assert response.status_code == 200

        listed = await client.get("/api/v1/employees", headers=headers(user))
        assert len(listed.json()) == 6

        response = await client.post("/api/v1/employees", headers=headers(user), json=new_employee(1))
        assert response.status_code == 403
        assert response.json()["error"] == "LIMIT_EXCEEDED"


class TestBulkCreate:
    """Test all-or-nothing bulk creation"""

    @pytest.mark.asyncio
    async def test_bulk_within_limit(self, client, headers, admin):
        """Test a batch that fits is created whole"""
        user, _ = admin
        response = await client.post(
            "/api/v1/employees/bulk",
            headers=headers(user),
            json={"employees": [new_employee(i) for i in range(3)]},
        )

        assert response.status_code == 201
        assert len(response.json()) == 3

    @pytest.mark.asyncio
    async def test_bulk_overflow_creates_nothing(self, client, headers, admin, tenant, fill_seats, db_session):
        """Test a batch that would overflow the cap creates no rows at all"""
        user, _ = admin
        await fill_seats(tenant, 22)

        response = await client.post(
            "/api/v1/employees/bulk",
            headers=headers(user),
            json={"employees": [new_employee(i) for i in range(3)]},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "LIMIT_EXCEEDED"
        assert await count_employees(db_session, tenant.id) == 23
        result = await db_session.execute(select(User).where(User.email == "new0@example.com"))
        assert result.scalar_one_or_none() is None

    @pytest.mark.asyncio
    async def test_bulk_duplicate_email(self, client, headers, admin):
        """Test duplicate emails inside a batch are refused"""
        user, _ = admin
        response = await client.post(
            "/api/v1/employees/bulk",
            headers=headers(user),
            json={"employees": [new_employee(1), new_employee(1)]},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_bulk_needs_feature(self, client, headers, make_tenant, make_member):
        """Test the VIP tier cannot bulk create"""
        tenant = await make_tenant(tier=SubscriptionTier.MJ_SCOTT)
        user, _ = await make_member(tenant, role="tenant_admin")

        response = await client.post(
            "/api/v1/employees/bulk",
            headers=headers(user),
            json={"employees": [new_employee(1)]},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "FEATURE_NOT_AVAILABLE"


class TestEmployeeCreation:
    """Test employee creation rules besides seats"""

    @pytest.mark.asyncio
    async def test_existing_email_conflict(self, client, headers, admin):
        """Test an email already in use is refused"""
        user, _ = admin
        response = await client.post(
            "/api/v1/employees",
            headers=headers(user),
            json=new_employee(1, email=user.email),
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_manager_from_other_tenant(self, client, headers, admin, make_tenant, make_member):
        """Test a manager reference must stay inside the tenant"""
        user, _ = admin
        other = await make_tenant("Other Co")
        _, foreign_manager = await make_member(other, role="manager")

        response = await client.post(
            "/api/v1/employees",
            headers=headers(user),
            json=new_employee(1, manager_id=foreign_manager.id),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_REQUEST_BODY"

    @pytest.mark.asyncio
    async def test_platform_admin_must_name_tenant(self, client, headers, platform_admin):
        """Test platform admins create employees into a named tenant only"""
        response = await client.post("/api/v1/employees", headers=headers(platform_admin), json=new_employee(1))

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PARAMETER_FORMAT"

    @pytest.mark.asyncio
    async def test_platform_admin_still_bound_by_seats(
        self, client, headers, platform_admin, tenant, fill_seats
    ):
        """Test the seat cap binds platform admins too"""
        await fill_seats(tenant, 25)

        response = await client.post(
            "/api/v1/employees",
            params={"tenant_id": tenant.id},
            headers=headers(platform_admin),
            json=new_employee(1),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "LIMIT_EXCEEDED"

    @pytest.mark.asyncio
    async def test_reporting_cycle_refused(self, client, headers, admin, manager, employee):
        """Test a manager cannot be made to report to their own report"""
        user, _ = admin
        _, manager_row = manager
        _, employee_row = employee

        response = await client.patch(
            f"/api/v1/employees/{manager_row.id}",
            headers=headers(user),
            json={"manager_id": employee_row.id},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_direct_reports(self, client, headers, manager, employee):
        """Test listing a manager's direct reports"""
        user, manager_row = manager
        _, employee_row = employee

        response = await client.get(f"/api/v1/employees/{manager_row.id}/reports", headers=headers(user))

        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [employee_row.id]


class TestSeatRaces:
    """Test the cap holds when creates overlap"""

    @pytest.mark.asyncio
    async def test_concurrent_creates_take_the_last_seat_once(self, tmp_path):
        """Test parallel creates against one free seat let exactly one through"""
        # One connection per session so the creates really run side by side
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'seats.db'}",
            poolclass=NullPool,
            connect_args={"timeout": 30},
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

        async with factory() as session:
            tenant = Tenant(name="Tight Ship", subscription_tier="forming", max_employees=3)
            session.add(tenant)
            await session.flush()
            actor = User(email="owner@example.com", tenant_id=tenant.id, role="tenant_admin")
            session.add(actor)
            await session.commit()
            tenant_id = tenant.id
            await EmployeeService(session).create_employees(
                tenant_id, [EmployeeCreate(**new_employee(n)) for n in range(2)], actor
            )

        async def attempt(n: int) -> bool:
            async with factory() as session:
                try:
                    await EmployeeService(session).create_employees(
                        tenant_id, [EmployeeCreate(**new_employee(100 + n))], actor
                    )
                except LimitExceeded:
                    return False
                return True

        try:
            outcomes = await asyncio.gather(*(attempt(n) for n in range(5)))

            assert outcomes.count(True) == 1
            assert outcomes.count(False) == 4
            async with factory() as session:
                assert await TenantRepository(session).count_active_employees(tenant_id) == 3
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_cap_reread_after_lock(self, db_session, session_factory, tenant, admin, fill_seats):
        """Test a cap raised by another session is used even when this session holds the old tenant row"""
        user, _ = admin
        await fill_seats(tenant, 24)
        assert tenant.max_employees == 25

        async with session_factory() as other:
            await other.execute(update(Tenant).where(Tenant.id == tenant.id).values(max_employees=30))
            await other.commit()

        created = await EmployeeService(db_session).create_employees(
            tenant.id, [EmployeeCreate(**new_employee(1))], user
        )

        assert len(created) == 1
        assert await count_employees(db_session, tenant.id) == 26

    @pytest.mark.asyncio
    async def test_refusal_after_rollback_reports_limit(self, db_session, tenant, admin, fill_seats):
        """Test the caller loaded in the same session survives the refused insert"""
        user, _ = admin
        await fill_seats(tenant, 24)

        with pytest.raises(LimitExceeded) as exc:
            await EmployeeService(db_session).create_employees(
                tenant.id, [EmployeeCreate(**new_employee(1))], user
            )

        assert exc.value.details["current_employees"] == 25
        assert exc.value.details["current_tier"] == "forming"


@pytest.mark.asyncio
async def test_tier_change_writes_billing_row(client, headers, tenant, platform_admin, db_session):
    """Test every tier change leaves a billing audit row"""
    await client.put(
        f"/api/v1/tenants/{tenant.id}/subscription",
        headers=headers(platform_admin),
        json={"subscription_tier": "norming"},
    )

    result = await db_session.execute(select(BillingAuditLog).where(BillingAuditLog.tenant_id == tenant.id))
    rows = result.scalars().all()
    assert len(rows) == 1
    assert rows[0].user_id == platform_admin.id
