"""
Pytest configuration and fixtures
Shared test setup for all test modules
"""
import os

# Set test environment before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only-min-32-chars")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-for-testing-only")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ.pop("SMTP_HOST", None)
os.environ.pop("ANTHROPIC_API_KEY", None)
os.environ.pop("REDIS_URL", None)

from typing import AsyncGenerator, List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.constants import TIER_SEAT_LIMITS, SubscriptionTier
from app.core.rate_limiter import limiter
from app.core.security import create_access_token
from app.core.websocket_manager import ConnectionRegistry
from app.db.base import Base, new_id
from app.db.database import get_db
from app.db.models import Employee, Tenant, User
from app.db.repositories.employee_repository import generate_feedback_url
from app.services.insights_service import BehavioralInsightsService
from app.services.notification_dispatcher import NotificationDispatcher


class RecordingEmailService:
    """Stands in for SMTP; records what would have been sent"""

    def __init__(self, configured: bool = True, failures: int = 0):
        self.configured = configured
        self.failures = failures
        self.sent: List[dict] = []
        self.attempts = 0

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def send_notification_email(self, to_email, recipient_name, title, message, details=None) -> bool:
        self.attempts += 1
        if self.failures:
            self.failures -= 1
            return False
        self.sent.append({"to": to_email, "title": title, "message": message})
        return True


@pytest_asyncio.fixture
async def engine():
    """In-memory database shared by every session of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
def dispatcher(registry, email_service) -> NotificationDispatcher:
    """Not started: tests call ``drain()`` to process queued jobs inline"""
    return NotificationDispatcher(registry, email_service, retry_delay=0, email_timeout=1)


@pytest.fixture
def insights_service() -> BehavioralInsightsService:
    return BehavioralInsightsService(client=None)


@pytest.fixture
def override_app(session_factory, registry, dispatcher, insights_service):
    """Point the app at the test database and test collaborators"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.connection_registry = registry
    app.state.notification_dispatcher = dispatcher
    app.state.insights_service = insights_service
    limiter.reset()
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(override_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=override_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_tenant(db_session):
    """Create a tenant; the seat cap defaults to the tier's limit"""

    async def _make(
        name: str = "Acme Corp",
        tier: SubscriptionTier = SubscriptionTier.FORMING,
        max_employees: Optional[int] = None,
        is_active: bool = True,
        tenant_id: Optional[str] = None,
    ) -> Tenant:
        if max_employees is None:
            limit = TIER_SEAT_LIMITS[tier]
            max_employees = -1 if limit is None else limit
        tenant = Tenant(
            id=tenant_id or new_id(),
            name=name,
            subscription_tier=tier.value,
            max_employees=max_employees,
            is_active=is_active,
        )
        db_session.add(tenant)
        await db_session.commit()
        return tenant

    return _make


@pytest.fixture
def make_member(db_session):
    """Create a user and, unless told otherwise, its employee row"""
    counter = {"n": 0}

    async def _make(
        tenant: Optional[Tenant],
        role: str = "employee",
        with_employee: bool = True,
        status: str = "active",
        manager: Optional[Employee] = None,
    ) -> Tuple[User, Optional[Employee]]:
        counter["n"] += 1
        user = User(
            email=f"{role}{counter['n']}-{new_id()[:6]}@example.com",
            first_name=role.replace("_", " ").title(),
            last_name=str(counter["n"]),
            role=role,
            tenant_id=tenant.id if tenant else None,
        )
        db_session.add(user)
        await db_session.flush()

        employee = None
        if with_employee and tenant is not None:
            employee = Employee(
                user_id=user.id,
                tenant_id=tenant.id,
                feedback_url=generate_feedback_url(user.id),
                status=status,
                manager_id=manager.id if manager else None,
            )
            db_session.add(employee)
        await db_session.commit()
        return user, employee

    return _make


@pytest.fixture
def fill_seats(db_session):
    """Add ``count`` plain employees straight to the database"""

    async def _fill(tenant: Tenant, count: int, status: str = "active") -> None:
        for i in range(count):
            user = User(email=f"filler-{new_id()}@example.com", tenant_id=tenant.id, role="employee")
            db_session.add(user)
            await db_session.flush()
            db_session.add(Employee(
                user_id=user.id,
                tenant_id=tenant.id,
                feedback_url=generate_feedback_url(user.id),
                status=status,
            ))
        await db_session.commit()

    return _fill


def auth_headers(user: User) -> dict:
    """Generate auth headers for a user"""
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest_asyncio.fixture
async def tenant(make_tenant) -> Tenant:
    return await make_tenant()


@pytest_asyncio.fixture
async def admin(make_member, tenant):
    return await make_member(tenant, role="tenant_admin")


@pytest_asyncio.fixture
async def manager(make_member, tenant):
    return await make_member(tenant, role="manager")


@pytest_asyncio.fixture
async def employee(make_member, tenant, manager):
    return await make_member(tenant, role="employee", manager=manager[1])


@pytest_asyncio.fixture
async def platform_admin(make_member):
    user, _ = await make_member(None, role="platform_admin", with_employee=False)
    return user


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def make_email_service():
    return RecordingEmailService
