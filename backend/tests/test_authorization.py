"""
Authorization tests.

Verifies:
- Every protected route refuses a missing or bogus bearer token
- Users read; admins write; super admins manage roles and read the log
- Super admin accounts are protected from admins and from self-demotion
"""

import pytest

from conftest import auth_headers


PROTECTED_ROUTES = [
    ("get", "/api/auth/me"),
    ("post", "/api/auth/logout"),
    ("get", "/api/products"),
    ("post", "/api/products"),
    ("get", "/api/buy-stock"),
    ("get", "/api/buy-stock/low-stock"),
    ("get", "/api/rental-assets"),
    ("get", "/api/rental-assets/available"),
    ("get", "/api/rentals"),
    ("post", "/api/rentals"),
    ("get", "/api/sales"),
    ("post", "/api/sales"),
    ("get", "/api/users"),
    ("get", "/api/users/count"),
    ("put", "/api/users/me"),
    ("get", "/api/activity-logs"),
]


@pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
def test_missing_token(client, db_session, method, path):
    resp = getattr(client, method)(path, json={})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Authentication required", "code": "UNAUTHORIZED"}


@pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
def test_bogus_token(client, db_session, method, path):
    resp = getattr(client, method)(path, json={}, headers={"Authorization": "Bearer not-a-real-token"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid or expired token"


@pytest.mark.parametrize("method,path", [
    ("post", "/api/products"),
    ("post", "/api/rental-assets"),
    ("post", "/api/rentals"),
    ("post", "/api/sales"),
    ("post", "/api/users"),
    ("get", "/api/users/count"),
])
def test_user_cannot_write(client, user_headers, method, path):
    resp = getattr(client, method)(path, json={}, headers=user_headers)
    assert resp.status_code == 403
    assert resp.get_json() == {"error": "Admin access required", "code": "FORBIDDEN"}


@pytest.mark.parametrize("method,path", [
    ("get", "/api/users"),
    ("get", "/api/activity-logs"),
])
def test_admin_cannot_use_super_admin_routes(client, admin_headers, method, path):
    resp = getattr(client, method)(path, headers=admin_headers)
    assert resp.status_code == 403


class TestUserManagement:

    def test_admin_creates_user(self, client, admin_headers):
        resp = client.post("/api/users", headers=admin_headers, json={
            "name": "New Hire", "email": "Hire@Stockroom.test", "password": "secret99",
        })
        assert resp.status_code == 201
        user = resp.get_json()
        assert user["email"] == "hire@stockroom.test"
        assert user["role"] == "user"
        assert "password_hash" not in user

        count = client.get("/api/users/count", headers=admin_headers).get_json()
        assert count == {"count": 2}

    def test_api_cannot_create_super_admin(self, client, super_admin_headers):
        resp = client.post("/api/users", headers=super_admin_headers, json={
            "name": "Second Owner", "email": "owner2@stockroom.test", "password": "secret99",
            "role": "super_admin",
        })
        assert resp.status_code == 400
        assert set(resp.get_json()["fields"]) == {"role"}

    def test_duplicate_email(self, client, admin_headers, plain_user):
        resp = client.post("/api/users", headers=admin_headers, json={
            "name": "Copy", "email": plain_user.email, "password": "secret99",
        })
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "DUPLICATE_KEY"

    def test_admin_cannot_edit_super_admin(self, client, admin_headers, super_admin):
        resp = client.put(f"/api/users/{super_admin.id}", headers=admin_headers, json={"name": "Hijacked"})
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "Only a super admin can modify a super admin account"

    def test_admin_edits_user(self, client, admin_headers, plain_user):
        resp = client.put(f"/api/users/{plain_user.id}", headers=admin_headers, json={"name": "Senior Clerk"})
        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Senior Clerk"

    def test_role_change(self, client, super_admin_headers, user_headers, plain_user):
        assert client.get("/api/users/count", headers=user_headers).status_code == 403
        resp = client.put(f"/api/users/{plain_user.id}/role", headers=super_admin_headers, json={"role": "admin"})
        assert resp.status_code == 200
        assert resp.get_json()["role"] == "admin"

        # The promotion applies to the user's existing sessions
        assert client.get("/api/users/count", headers=user_headers).status_code == 200

    def test_fresh_session_for_promoted_user(self, client, super_admin_headers, plain_user):
        client.put(f"/api/users/{plain_user.id}/role", headers=super_admin_headers, json={"role": "admin"})
        assert client.get("/api/users/count", headers=auth_headers(plain_user)).status_code == 200

    def test_super_admin_cannot_demote_self(self, client, super_admin_headers, super_admin):
        resp = client.put(f"/api/users/{super_admin.id}/role", headers=super_admin_headers, json={"role": "admin"})
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "You cannot remove your own super admin role"

    def test_list_users(self, client, super_admin_headers, admin, plain_user):
        body = client.get("/api/users?role=admin", headers=super_admin_headers).get_json()
        assert [u["email"] for u in body["items"]] == [admin.email]

    def test_profile_update_only_touches_name(self, client, user_headers):
        resp = client.put("/api/users/me", headers=user_headers, json={"name": "Renamed"})
        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Renamed"

        refused = client.put("/api/users/me", headers=user_headers, json={"role": "super_admin"})
        assert refused.status_code == 400
        assert refused.get_json()["fields"] == {"role": "Field not allowed: role"}
