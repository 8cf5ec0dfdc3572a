"""Tests for authentication endpoints and flows."""

from fastapi.testclient import TestClient

from app.dependencies import AUTH_COOKIE_NAME
from app.services.identity import TokenService


class TestRegistration:
    """Tests for user registration."""

    def test_register_api_success(self, client: TestClient):
        """Register a new user via API."""
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "new@example.com", "password": "password123", "display_name": "New User"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "new@example.com"
        assert data["display_name"] == "New User"
        assert "token" in data
        assert AUTH_COOKIE_NAME in response.cookies

    def test_register_api_duplicate_email(self, client: TestClient, test_user: dict):
        """Reject duplicate email registration."""
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "TEST@example.com", "password": "password123", "display_name": "Another User"},
        )
        assert response.status_code == 400
        assert "already registered" in response.json()["detail"]

    def test_register_short_password(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "short@example.com", "password": "abc", "display_name": "Short"},
        )
        assert response.status_code == 422


class TestLogin:
    """Tests for user login."""

    def test_login_api_success(self, client: TestClient, test_user: dict):
        """Login via API with valid credentials."""
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "test@example.com", "password": "password123"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "test@example.com"
        assert "token" in data

    def test_login_api_wrong_password(self, client: TestClient, test_user: dict):
        """Reject login with wrong password."""
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "test@example.com", "password": "wrongpassword"},
        )
        assert response.status_code == 401
        assert "Invalid" in response.json()["detail"]

    def test_login_api_nonexistent_email(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": "password123"},
        )
        assert response.status_code == 401

    def test_login_case_insensitive(self, client: TestClient, test_user: dict):
        """Login works regardless of email case."""
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "TEST@EXAMPLE.COM", "password": "password123"},
        )
        assert response.status_code == 200


class TestTokenVerification:
    """Tests for token verification."""

    def test_verify_valid_token(self, client: TestClient, test_user: dict):
        """Verify a valid bearer token returns the identity."""
        response = client.get("/api/v1/auth/verify", headers=test_user["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["user_id"] == test_user["user_id"]
        assert data["email"] == "test@example.com"
        assert data["display_name"] == "Test User"

    def test_verify_with_cookie(self, client: TestClient, test_user: dict):
        client.cookies.set(AUTH_COOKIE_NAME, test_user["token"])
        response = client.get("/api/v1/auth/verify")
        assert response.status_code == 200

    def test_verify_invalid_token(self, client: TestClient):
        """Reject an invalid token."""
        response = client.get("/api/v1/auth/verify", headers={"Authorization": "Bearer invalid.token.here"})
        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_verify_missing_token(self, client: TestClient):
        response = client.get("/api/v1/auth/verify")
        assert response.status_code == 401

    def test_expired_token_rejected(self, client: TestClient, test_user: dict):
        service = TokenService()
        service.expire_minutes = -1
        token = service.create_token(test_user["user_id"], test_user["email"], test_user["display_name"])
        response = client.get("/api/v1/auth/verify", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestProtectedRoutes:
    """Every journal and mood route requires a session."""

    def test_transcribe_requires_auth(self, client: TestClient):
        response = client.post("/api/v1/transcribe", files={"audio": ("a.webm", b"\x00" * 16, "audio/webm")})
        assert response.status_code == 401

    def test_journals_require_auth(self, client: TestClient):
        assert client.get("/api/v1/journals/today").status_code == 401
        assert client.get("/api/v1/journals/stats").status_code == 401

    def test_mood_requires_auth(self, client: TestClient):
        assert client.get("/api/v1/mood/today").status_code == 401

    def test_logout_clears_cookie(self, client: TestClient, test_user: dict):
        client.cookies.set(AUTH_COOKIE_NAME, test_user["token"])
        response = client.post("/api/v1/auth/logout")
        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"].lower()
        assert AUTH_COOKIE_NAME in set_cookie
        assert "max-age=0" in set_cookie


class TestHealthCheck:
    """Tests for health check endpoint."""

    def test_health_check(self, client: TestClient):
        """Health check returns ok status."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["app"] == "voice-journal"

    def test_security_headers(self, client: TestClient):
        response = client.get("/api/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
