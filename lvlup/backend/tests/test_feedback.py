# tests/test_feedback.py
"""
Feedback tests
Tests: public feedback links, sanitization, rate limits, notifications, summaries
"""
import pytest
from sqlalchemy import select
from starlette.requests import Request

from app.api.v1.feedback import sentiment_for_rating
from app.core.config import settings
from app.core.rate_limiter import get_real_client_ip
from app.db.models import Feedback, Notification


def public_path(employee_row) -> str:
    return f"/api/v1/feedback/public/{employee_row.feedback_url}"


class TestSentiment:
    """Test rating to sentiment mapping"""

    @pytest.mark.parametrize("rating,expected", [
        (5, "positive"), (4, "positive"), (3, "neutral"), (2, "negative"), (1, "negative"), (None, None),
    ])
    def test_mapping(self, rating, expected):
        """Test every rating lands in the right bucket"""
        assert sentiment_for_rating(rating) == expected


def request_from(peer: str, headers: dict) -> Request:
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": (peer, 50000),
    })


class TestClientAddress:
    """Test which address a rate limit is keyed on"""

    def test_forwarding_headers_ignored_by_default(self):
        """Test a direct client cannot pick its own address"""
        request = request_from("203.0.113.9", {"X-Forwarded-For": "10.0.0.1", "X-Real-IP": "10.0.0.2"})
        assert get_real_client_ip(request) == "203.0.113.9"

    def test_trusted_proxy(self, monkeypatch):
        """Test the nearest untrusted hop wins behind a configured proxy"""
        monkeypatch.setattr(settings, "TRUSTED_PROXIES", ["10.1.1.1", "10.1.1.2"])
        request = request_from("10.1.1.1", {"X-Forwarded-For": "1.2.3.4, 198.51.100.7, 10.1.1.2"})
        assert get_real_client_ip(request) == "198.51.100.7"

    def test_trusted_proxy_real_ip(self, monkeypatch):
        """Test X-Real-IP is used when the proxy sends no X-Forwarded-For"""
        monkeypatch.setattr(settings, "TRUSTED_PROXIES", ["10.1.1.1"])
        assert get_real_client_ip(request_from("10.1.1.1", {"X-Real-IP": "198.51.100.7"})) == "198.51.100.7"
        assert get_real_client_ip(request_from("10.1.1.1", {})) == "10.1.1.1"

    def test_untrusted_peer_with_configured_proxies(self, monkeypatch):
        """Test only the listed proxies may forward addresses"""
        monkeypatch.setattr(settings, "TRUSTED_PROXIES", ["10.1.1.1"])
        request = request_from("203.0.113.9", {"X-Forwarded-For": "10.0.0.1"})
        assert get_real_client_ip(request) == "203.0.113.9"


class TestPublicFeedback:
    """Test the unauthenticated feedback link"""

    @pytest.mark.asyncio
    async def test_lookup(self, client, employee, tenant):
        """Test a visitor sees only a display name and the organization"""
        user, row = employee
        response = await client.get(public_path(row))

        assert response.status_code == 200
        assert response.json() == {"display_name": user.full_name, "organization": tenant.name}

    @pytest.mark.asyncio
    async def test_unknown_link(self, client):
        """Test an unknown link is a plain 404"""
        response = await client.get("/api/v1/feedback/public/deadbeef-0000")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_terminated_employee_link(self, client, make_member, tenant):
        """Test a terminated employee's link no longer works"""
        _, row = await make_member(tenant, status="terminated")
        response = await client.get(public_path(row))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_inactive_tenant_link(self, client, make_tenant, make_member):
        """Test links of deactivated tenants look missing"""
        tenant = await make_tenant(is_active=False)
        _, row = await make_member(tenant)
        response = await client.get(public_path(row))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_submit_notifies_employee(self, client, employee, db_session, dispatcher):
        """Test a submission is stored and the employee is notified"""
        user, row = employee
        response = await client.post(public_path(row), json={
            "giver_name": "Pat Client",
            "giver_email": "pat@example.com",
            "relationship": "client",
            "rating": 5,
            "comments": "Fantastic support",
        })

        assert response.status_code == 201
        feedback_id = response.json()["id"]

        stored = (await db_session.execute(select(Feedback).where(Feedback.id == feedback_id))).scalar_one()
        assert stored.sentiment == "positive"
        assert stored.giver_name == "Pat Client"

        notifications = (await db_session.execute(
            select(Notification).where(Notification.user_id == user.id)
        )).scalars().all()
        assert len(notifications) == 1
        assert notifications[0].type == "feedback_received"
        assert notifications[0].meta["feedback_id"] == feedback_id
        assert dispatcher.pending == 1

    @pytest.mark.asyncio
    async def test_markup_stripped(self, client, employee, db_session):
        """Test HTML in free text is removed before storage"""
        _, row = employee
        response = await client.post(public_path(row), json={
            "giver_name": "<b>Eve</b>",
            "comments": "<script>alert(1)</script>Nice work",
            "rating": 4,
        })

        assert response.status_code == 201
        stored = (await db_session.execute(
            select(Feedback).where(Feedback.id == response.json()["id"])
        )).scalar_one()
        assert "<" not in stored.comments
        assert stored.comments.endswith("Nice work")
        assert stored.giver_name == "Eve"

    @pytest.mark.asyncio
    async def test_anonymous_keeps_no_identity(self, client, employee, db_session):
        """Test anonymous submissions store no giver details"""
        _, row = employee
        response = await client.post(public_path(row), json={
            "giver_name": "Secret Sam",
            "giver_email": "sam@example.com",
            "is_anonymous": True,
            "rating": 2,
        })

        stored = (await db_session.execute(
            select(Feedback).where(Feedback.id == response.json()["id"])
        )).scalar_one()
        assert stored.giver_name is None
        assert stored.giver_email is None
        assert stored.sentiment == "negative"

    @pytest.mark.asyncio
    async def test_rating_out_of_range(self, client, employee):
        """Test ratings outside 1-5 are rejected"""
        _, row = employee
        response = await client.post(public_path(row), json={"rating": 9})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_REQUEST_BODY"

    @pytest.mark.asyncio
    async def test_client_rate_limit(self, client, employee):
        """Test one client gets five submissions per link per hour"""
        _, row = employee
        for _ in range(5):
            response = await client.post(public_path(row), json={"rating": 4})
            assert response.status_code == 201

        response = await client.post(public_path(row), json={"rating": 4})

        assert response.status_code == 429
        assert response.json()["error"] == "RATE_LIMITED"
        assert "Retry-After" in response.headers

    @pytest.mark.asyncio
    async def test_rate_limit_is_per_client(self, client, employee, monkeypatch):
        """Test another client behind the proxy is not blocked by the first one's allowance"""
        monkeypatch.setattr(settings, "TRUSTED_PROXIES", ["127.0.0.1"])
        _, row = employee
        for _ in range(5):
            await client.post(public_path(row), json={"rating": 4}, headers={"X-Forwarded-For": "10.0.0.1"})

        response = await client.post(public_path(row), json={"rating": 4}, headers={"X-Forwarded-For": "10.0.0.2"})

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_rotating_forwarded_for_does_not_reset_limit(self, client, employee):
        """Test a direct client cannot dodge its allowance with made-up forwarding headers"""
        _, row = employee
        for i in range(5):
            response = await client.post(
                public_path(row), json={"rating": 4}, headers={"X-Forwarded-For": f"10.0.0.{i}"}
            )
            assert response.status_code == 201

        response = await client.post(public_path(row), json={"rating": 4}, headers={"X-Forwarded-For": "10.0.0.99"})

        assert response.status_code == 429


class TestFeedbackReading:
    """Test authenticated feedback views"""

    async def _give(self, db_session, row, **values):
        feedback = Feedback(employee_id=row.id, **values)
        db_session.add(feedback)
        await db_session.commit()
        return feedback

    @pytest.mark.asyncio
    async def test_own_feedback_redacts_anonymous(self, client, headers, employee, db_session):
        """Test anonymous entries never reveal a giver"""
        user, row = employee
        await self._give(db_session, row, rating=5, giver_name="Known Person")
        await self._give(db_session, row, rating=3, giver_name="Should Not Show", is_anonymous=True)

        response = await client.get("/api/v1/feedback", params={"employee_id": row.id}, headers=headers(user))

        assert response.status_code == 200
        names = {item["giver_name"] for item in response.json()}
        assert names == {"Known Person", None}

    @pytest.mark.asyncio
    async def test_colleague_cannot_read(self, client, headers, make_member, tenant, employee):
        """Test a peer cannot read someone else's feedback"""
        _, row = employee
        peer, _ = await make_member(tenant)

        response = await client.get("/api/v1/feedback", params={"employee_id": row.id}, headers=headers(peer))

        assert response.status_code == 403
        assert response.json()["error"] == "INSUFFICIENT_ROLE"

    @pytest.mark.asyncio
    async def test_summary(self, client, headers, manager, employee, db_session):
        """Test rating and sentiment aggregates"""
        user, _ = manager
        _, row = employee
        await self._give(db_session, row, rating=5, sentiment="positive")
        await self._give(db_session, row, rating=3, sentiment="neutral")
        await self._give(db_session, row, rating=4, sentiment="positive")

        response = await client.get("/api/v1/feedback/summary", params={"employee_id": row.id}, headers=headers(user))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["average_rating"] == pytest.approx(4.0)
        assert data["rating_distribution"]["5"] == 1
        assert data["sentiment_counts"]["positive"] == 2
