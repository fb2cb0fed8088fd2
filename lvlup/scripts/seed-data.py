# scripts/seed-data.py
"""Seed database with demo data"""
import asyncio
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from app.core.constants import SubscriptionTier
from app.core.features import seat_limit_for
from app.core.security import create_access_token
from app.db.database import async_session_local, init_db
from app.db.repositories.department_repository import DepartmentRepository
from app.db.repositories.tenant_repository import TenantRepository
from app.db.repositories.user_repository import UserRepository
from app.schemas.employee import EmployeeCreate
from app.services.employee_service import EmployeeService

DEMO_TENANT_ID = "demo-tenant-001"


async def seed_data():
    """Seed database with demo data"""
    await init_db()

    async with async_session_local() as session:
        tenant_repo = TenantRepository(session)
        user_repo = UserRepository(session)

        if await tenant_repo.get_by_id(DEMO_TENANT_ID):
            print("Demo tenant already exists, nothing to do")
            return

        tenant = await tenant_repo.create({
            "id": DEMO_TENANT_ID,
            "name": "Demo Company",
            "domain": "demo.example.com",
            "subscription_tier": SubscriptionTier.FORMING.value,
            "max_employees": seat_limit_for(SubscriptionTier.FORMING),
        })
        print(f"Created tenant: {tenant.name} ({tenant.subscription_tier})")

        platform_admin = await user_repo.create({
            "email": "admin@example.com",
            "first_name": "Platform",
            "last_name": "Admin",
            "role": "platform_admin",
        })

        engineering = await DepartmentRepository(session).create({
            "tenant_id": tenant.id,
            "name": "Engineering",
        })

        service = EmployeeService(session)
        owner, = await service.create_employees(tenant.id, [EmployeeCreate(
            email="owner@demo.example.com",
            first_name="Dana",
            last_name="Owner",
            role="tenant_admin",
        )], platform_admin)
        lead, = await service.create_employees(tenant.id, [EmployeeCreate(
            email="lead@demo.example.com",
            first_name="Lee",
            last_name="Lead",
            role="manager",
            department_id=engineering.id,
            manager_id=owner.id,
        )], platform_admin)
        staff = await service.create_employees(tenant.id, [
            EmployeeCreate(
                email=f"dev{i}@demo.example.com",
                first_name="Dev",
                last_name=str(i),
                department_id=engineering.id,
                manager_id=lead.id,
            )
            for i in range(1, 4)
        ], platform_admin)

        print(f"Created {2 + len(staff)} employees")
        print("\nDevelopment tokens (Authorization: Bearer <token>):")
        print(f"platform_admin  {platform_admin.email}: {create_access_token({'sub': platform_admin.id})}")
        for employee in [owner, lead, *staff]:
            user = employee.user
            print(f"{user.role:<15} {user.email}: {create_access_token({'sub': user.id})}")
        print("\nPublic feedback links:")
        for employee in [owner, lead, *staff]:
            print(f"  /api/v1/feedback/public/{employee.feedback_url}")


if __name__ == "__main__":
    asyncio.run(seed_data())
