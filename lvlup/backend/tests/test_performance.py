# tests/test_performance.py
"""
Performance tests
Tests: goals, goal reminders, review workflow
"""
import pytest
from sqlalchemy import select

from app.db.models import Notification


async def create_goal(client, headers, user, employee_row, **extra):
    return await client.post(
        "/api/v1/goals",
        headers=headers(user),
        json={"employee_id": employee_row.id, "title": "Learn SQL", **extra},
    )


class TestGoals:
    """Test goal tracking"""

    @pytest.mark.asyncio
    async def test_employee_sets_own_goal(self, client, headers, employee):
        """Test employees manage their own goals"""
        user, row = employee
        response = await create_goal(client, headers, user, row, priority="high")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "in_progress"
        assert data["progress"] == 0
        assert data["priority"] == "high"

    @pytest.mark.asyncio
    async def test_peer_cannot_set_goal(self, client, headers, make_member, tenant, employee):
        """Test an employee cannot create goals for a colleague"""
        _, row = employee
        peer, _ = await make_member(tenant)

        response = await create_goal(client, headers, peer, row)

        assert response.status_code == 403
        assert response.json()["error"] == "INSUFFICIENT_ROLE"

    @pytest.mark.asyncio
    async def test_full_progress_completes(self, client, headers, employee):
        """Test reaching 100% marks the goal completed"""
        user, row = employee
        goal = (await create_goal(client, headers, user, row)).json()

        response = await client.patch(f"/api/v1/goals/{goal['id']}", headers=headers(user), json={"progress": 100})

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    @pytest.mark.asyncio
    async def test_progress_bounds(self, client, headers, employee):
        """Test progress outside 0-100 is rejected"""
        user, row = employee
        response = await create_goal(client, headers, user, row, progress=120)

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_REQUEST_BODY"

    @pytest.mark.asyncio
    async def test_list_by_status(self, client, headers, employee):
        """Test filtering an employee's goals by status"""
        user, row = employee
        await create_goal(client, headers, user, row)
        await create_goal(client, headers, user, row, progress=100)

        response = await client.get(
            "/api/v1/goals", params={"employee_id": row.id, "status": "completed"}, headers=headers(user)
        )

        assert response.status_code == 200
        assert len(response.json()) == 1

    @pytest.mark.asyncio
    async def test_owner_cannot_delete(self, client, headers, employee, manager):
        """Test deleting goals is for managers"""
        user, row = employee
        manager_user, _ = manager
        goal = (await create_goal(client, headers, user, row)).json()

        refused = await client.delete(f"/api/v1/goals/{goal['id']}", headers=headers(user))
        assert refused.status_code == 403

        deleted = await client.delete(f"/api/v1/goals/{goal['id']}", headers=headers(manager_user))
        assert deleted.status_code == 204

    @pytest.mark.asyncio
    async def test_reminder(self, client, headers, employee, manager, db_session, dispatcher):
        """Test a manager's reminder becomes a notification for the owner"""
        user, row = employee
        manager_user, _ = manager
        goal = (await create_goal(client, headers, user, row, progress=40)).json()

        response = await client.post(f"/api/v1/goals/{goal['id']}/remind", headers=headers(manager_user))

        assert response.status_code == 202
        assert response.json()["goal_id"] == goal["id"]
        stored = (await db_session.execute(
            select(Notification).where(Notification.user_id == user.id)
        )).scalar_one()
        assert stored.type == "goal_reminder"
        assert "40%" in stored.message
        assert response.json()["notification_id"] == stored.id


class TestReviews:
    """Test the draft -> submitted -> approved workflow"""

    async def _draft(self, client, headers, manager_user, employee_row):
        response = await client.post(
            "/api/v1/reviews",
            headers=headers(manager_user),
            json={"employee_id": employee_row.id, "review_period": "2024-Q3", "overall_score": "4.25"},
        )
        assert response.status_code == 201
        return response.json()

    @pytest.mark.asyncio
    async def test_manager_creates_draft(self, client, headers, manager, employee, db_session):
        """Test a new review is a draft by the caller and notifies the employee"""
        manager_user, manager_row = manager
        user, row = employee

        review = await self._draft(client, headers, manager_user, row)

        assert review["status"] == "draft"
        assert review["reviewer_id"] == manager_row.id
        assert review["overall_score"] == pytest.approx(4.25)
        notification = (await db_session.execute(
            select(Notification).where(Notification.user_id == user.id)
        )).scalar_one()
        assert notification.type == "performance_review"

    @pytest.mark.asyncio
    async def test_employee_cannot_create(self, client, headers, employee):
        """Test employees cannot review themselves"""
        user, row = employee
        response = await client.post(
            "/api/v1/reviews", headers=headers(user), json={"employee_id": row.id, "review_period": "2024-Q3"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_full_workflow(self, client, headers, manager, employee, admin):
        """Test submit by the manager, approval by the tenant admin"""
        manager_user, _ = manager
        _, row = employee
        admin_user, _ = admin
        review = await self._draft(client, headers, manager_user, row)

        submitted = await client.post(f"/api/v1/reviews/{review['id']}/submit", headers=headers(manager_user))
        assert submitted.json()["status"] == "submitted"

        refused = await client.post(f"/api/v1/reviews/{review['id']}/approve", headers=headers(manager_user))
        assert refused.status_code == 403

        approved = await client.post(f"/api/v1/reviews/{review['id']}/approve", headers=headers(admin_user))
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"

    @pytest.mark.asyncio
    async def test_out_of_order_transition(self, client, headers, manager, employee, admin):
        """Test approving a draft is a conflict"""
        manager_user, _ = manager
        _, row = employee
        admin_user, _ = admin
        review = await self._draft(client, headers, manager_user, row)

        response = await client.post(f"/api/v1/reviews/{review['id']}/approve", headers=headers(admin_user))

        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_submitted_is_read_only(self, client, headers, manager, employee):
        """Test only drafts can be edited"""
        manager_user, _ = manager
        _, row = employee
        review = await self._draft(client, headers, manager_user, row)
        await client.post(f"/api/v1/reviews/{review['id']}/submit", headers=headers(manager_user))

        response = await client.patch(
            f"/api/v1/reviews/{review['id']}", headers=headers(manager_user), json={"comments": "late edit"}
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_employee_reads_own_reviews(self, client, headers, manager, employee):
        """Test employees see reviews about themselves"""
        manager_user, _ = manager
        user, row = employee
        await self._draft(client, headers, manager_user, row)

        response = await client.get("/api/v1/reviews", params={"employee_id": row.id}, headers=headers(user))

        assert response.status_code == 200
        assert len(response.json()) == 1

    @pytest.mark.asyncio
    async def test_tenant_listing_needs_manager(self, client, headers, employee):
        """Test employees cannot list every review in the tenant"""
        user, _ = employee
        response = await client.get("/api/v1/reviews", headers=headers(user))

        assert response.status_code == 403
        assert response.json()["error"] == "INSUFFICIENT_ROLE"

    @pytest.mark.asyncio
    async def test_review_period_cannot_be_nulled(self, client, headers, manager, employee):
        """Test an explicit null review period is rejected before reaching storage"""
        manager_user, _ = manager
        _, row = employee
        review = await self._draft(client, headers, manager_user, row)

        response = await client.patch(
            f"/api/v1/reviews/{review['id']}", headers=headers(manager_user), json={"review_period": None}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "INVALID_REQUEST_BODY"
        assert data["details"][0]["field"] == "review_period"

        unchanged = await client.get(f"/api/v1/reviews/{review['id']}", headers=headers(manager_user))
        assert unchanged.json()["review_period"] == "2024-Q3"
