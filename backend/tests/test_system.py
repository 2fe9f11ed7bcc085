"""Health check, JSON error pages and CLI commands."""

from stockroom.extensions import db
from stockroom.models import SessionToken, User
from stockroom.services.auth_service import verify_password
from stockroom.services.session_service import create_session


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["timestamp"].endswith("Z")

    def test_unknown_route_is_json(self, client, db_session):
        resp = client.get("/api/nowhere")
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "NOT_FOUND"

    def test_cors_headers(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://localhost:3000"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

        other = client.get("/health", headers={"Origin": "https://evil.example"})
        assert "Access-Control-Allow-Origin" not in other.headers


class TestUsersCli:

    def test_create_super_admin(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create", "--name", "Owner", "--email", "Owner@Stockroom.test",
            "--password", "admin123", "--role", "super_admin",
        ])
        assert result.exit_code == 0
        assert "PASS Created user: Owner (owner@stockroom.test) with role 'super_admin'" in result.output

        user = db.session.query(User).options(User.with_credentials()).filter_by(email="owner@stockroom.test").one()
        assert user.role == "super_admin"
        assert verify_password("admin123", user.password_hash)

    def test_create_duplicate(self, app, admin):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create", "--name", "Again", "--email", admin.email, "--password", "admin123",
        ])
        assert "FAIL Failed to create user" in result.output
        assert db.session.query(User).count() == 1

    def test_short_password(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create", "--name", "Tiny", "--email", "tiny@stockroom.test", "--password", "abc",
        ])
        assert "FAIL Password must be at least 6 characters" in result.output
        assert db.session.query(User).count() == 0

    def test_change_password_revokes_sessions(self, app, admin):
        create_session(admin.id)
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "change-password", "--email", admin.email, "--password", "fresh-pass",
        ])
        assert "PASS Password changed for manager@stockroom.test" in result.output
        assert "Revoked 1 session(s)" in result.output
        assert db.session.query(SessionToken).filter_by(user_id=admin.id, is_revoked=False).count() == 0

        user = db.session.query(User).options(User.with_credentials()).filter_by(id=admin.id).one()
        assert verify_password("fresh-pass", user.password_hash)

    def test_list(self, app, admin, plain_user):
        result = app.test_cli_runner().invoke(args=["users", "list"])
        assert "manager@stockroom.test" in result.output
        assert "clerk@stockroom.test" in result.output


class TestIndexesCli:

    def test_ensure_on_complete_schema(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["db-indexes", "ensure"])
        assert result.exit_code == 0
        assert "PASS All indexes present" in result.output

    def test_list(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["db-indexes", "list"])
        assert "uq_products_sku" in result.output
        assert "MISSING" not in result.output
