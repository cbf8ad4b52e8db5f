"""Tests for the auth blueprint.

Covers:
- Login by email or username, generic invalid-credentials message
- Session lookup and logout
- Remember-me cookie
- CSRF token endpoint
- seed-admin CLI command
"""

from salestrack.models.user import Profile, User

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, SALES_EMAIL, SALES_PASSWORD


class TestLogin:
    def test_login_with_email(self, client, seed_data, login):
        resp = login(SALES_EMAIL, SALES_PASSWORD)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["user"]["email"] == SALES_EMAIL
        assert data["profile"]["role"] == "sales"
        assert data["profile"]["full_name"] == "Sari Sales"

    def test_login_with_username(self, client, seed_data):
        resp = client.post(
            "/auth/login",
            json={"identifier": "sari", "password": SALES_PASSWORD},
        )
        assert resp.status_code == 200
        assert resp.get_json()["user"]["id"] == seed_data["sales_id"]

    def test_login_email_is_case_insensitive(self, client, seed_data, login):
        resp = login(SALES_EMAIL.upper(), SALES_PASSWORD)
        assert resp.status_code == 200

    def test_wrong_password(self, client, seed_data, login):
        resp = login(SALES_EMAIL, "nope")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid credentials."

    def test_unknown_account_same_message(self, client, seed_data, login):
        resp = login("ghost@example.com", "whatever")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid credentials."

    def test_missing_fields(self, client, seed_data):
        resp = client.post("/auth/login", json={"email": "", "password": ""})
        assert resp.status_code == 400
        assert "required" in resp.get_json()["message"]

    def test_numeric_password_rejected(self, client, seed_data, login):
        resp = login(SALES_EMAIL, 1234)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Email and password must be text."

    def test_non_string_identifier_rejected(self, client, seed_data):
        resp = client.post(
            "/auth/login", json={"identifier": {"email": SALES_EMAIL}, "password": "x"}
        )
        assert resp.status_code == 400

    def test_remember_sets_cookie(self, client, seed_data, login):
        resp = login(ADMIN_EMAIL, ADMIN_PASSWORD, remember=True)
        assert resp.status_code == 200
        cookies = resp.headers.getlist("Set-Cookie")
        assert any(c.startswith("remember_token=") for c in cookies)

    def test_no_remember_cookie_by_default(self, client, seed_data, login):
        resp = login(ADMIN_EMAIL, ADMIN_PASSWORD)
        cookies = resp.headers.getlist("Set-Cookie")
        assert not any(c.startswith("remember_token=") for c in cookies)


class TestSession:
    def test_session_when_logged_out(self, client, seed_data):
        resp = client.get("/auth/session")
        assert resp.status_code == 200
        assert resp.get_json() is None

    def test_session_when_logged_in(self, client, seed_data, login_admin):
        login_admin()
        resp = client.get("/auth/session")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["user"]["id"] == seed_data["admin_id"]
        assert data["profile"]["role"] == "admin"

    def test_logout(self, client, seed_data, login_admin):
        login_admin()
        resp = client.post("/auth/logout")
        assert resp.status_code == 204

        resp = client.get("/auth/session")
        assert resp.get_json() is None

    def test_logout_when_not_logged_in(self, client, seed_data):
        resp = client.post("/auth/logout")
        assert resp.status_code == 204

    def test_protected_route_requires_login(self, client, seed_data):
        resp = client.get("/prospects")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Authentication required."


class TestCsrfToken:
    def test_returns_token(self, client):
        resp = client.get("/auth/csrf")
        assert resp.status_code == 200
        assert resp.get_json()["csrf_token"]


class TestSeedAdminCommand:
    def test_creates_admin(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-admin"])
        assert result.exit_code == 0
        assert "Created admin user: admin@salestrack.local" in result.output

        user = User.query.filter_by(email="admin@salestrack.local").first()
        assert user is not None
        assert user.profile.role == "admin"

    def test_is_idempotent(self, app):
        runner = app.test_cli_runner()
        runner.invoke(args=["seed-admin"])
        result = runner.invoke(args=["seed-admin"])
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert Profile.query.filter_by(role="admin").count() == 1

    def test_custom_credentials_can_log_in(self, app, client):
        runner = app.test_cli_runner()
        runner.invoke(
            args=["seed-admin", "--email", "boss@example.com", "--password", "s3cret"]
        )
        resp = client.post(
            "/auth/login",
            json={"email": "boss@example.com", "password": "s3cret"},
        )
        assert resp.status_code == 200
        assert resp.get_json()["profile"]["role"] == "admin"
