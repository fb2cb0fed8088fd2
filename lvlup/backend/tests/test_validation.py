# tests/test_validation.py
"""
Input validation tests
Tests: sanitizing, domain checks, body validation, error envelope
"""
import pytest

from app.core.input_validation import InputValidator, sanitize_text


class TestSanitizer:
    """Test free text cleaning"""

    def test_tags_removed(self):
        """Test markup is stripped"""
        assert sanitize_text("<img src=x onerror=alert(1)>Hello <b>there</b>") == "Hello there"

    def test_null_bytes_removed(self):
        """Test null bytes never reach storage"""
        assert sanitize_text("a\x00b") == "ab"

    def test_none_passthrough(self):
        """Test missing values stay missing"""
        assert sanitize_text(None) is None


class TestDomains:
    """Test tenant domain validation"""

    @pytest.mark.parametrize("value", ["acme.com", "Sub.Example.CO", "a-b.io"])
    def test_valid(self, value):
        """Test accepted domain shapes"""
        assert InputValidator.validate_domain(value)

    @pytest.mark.parametrize("value", ["localhost", "-bad.com", "has space.com", "acme..com"])
    def test_invalid(self, value):
        """Test rejected domain shapes"""
        assert not InputValidator.validate_domain(value)


class TestErrorEnvelope:
    """Test errors reach clients in one shape"""

    @pytest.mark.asyncio
    async def test_bad_path_id(self, client, headers, employee):
        """Test malformed path ids are INVALID_PARAMETER_FORMAT"""
        user, _ = employee
        response = await client.get("/api/v1/employees/not;valid", headers=headers(user))

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "INVALID_PARAMETER_FORMAT"
        assert data["details"][0]["field"] == "employee_id"

    @pytest.mark.asyncio
    async def test_bad_query(self, client, headers, employee):
        """Test malformed query values are INVALID_PARAMETER_FORMAT"""
        user, _ = employee
        response = await client.get("/api/v1/employees", params={"limit": "lots"}, headers=headers(user))

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PARAMETER_FORMAT"

    @pytest.mark.asyncio
    async def test_bad_body(self, client, headers, admin):
        """Test schema violations in the body are INVALID_REQUEST_BODY"""
        user, _ = admin
        response = await client.post(
            "/api/v1/employees", headers=headers(user), json={"email": "not-an-email", "first_name": ""}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "INVALID_REQUEST_BODY"
        fields = {detail["field"] for detail in data["details"]}
        assert {"email", "first_name", "last_name"} <= fields

    @pytest.mark.asyncio
    async def test_missing_resource(self, client, headers, employee):
        """Test unknown ids are NOT_FOUND"""
        user, _ = employee
        response = await client.get("/api/v1/goals/does-not-exist", headers=headers(user))

        assert response.status_code == 404
        assert response.json() == {"error": "NOT_FOUND", "message": "Goal not found"}

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        """Test the framework's own 404 uses the same envelope"""
        response = await client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_request_id_header(self, client):
        """Test every response carries a request id"""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.headers["X-Request-ID"]
        assert response.json()["status"] == "healthy"
