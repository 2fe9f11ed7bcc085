"""
Rental tests.

Verifies:
- Pricing: whole days rounded up; late returns pay daily_rate * penalty_rate
- Booking flips assets to rented and back on completion/cancellation
- Unavailable assets are refused without side effects
- Editing, asset swaps and terminal states
"""

import re
from datetime import datetime

import pytest

from stockroom.extensions import db
from stockroom.models import Rental, RentalAsset
from stockroom.services.rental_service import calculate_penalty, calculate_total_amount

RENTAL_NUMBER = re.compile(r"^RENT-\d{8}-\d{4}$")


def _book(client, headers, asset_ids, **overrides):
    payload = {
        "customer_name": "Jane Doe",
        "customer_email": "Jane@Example.com",
        "assets": [{"asset_id": asset_id} for asset_id in asset_ids],
        "start_date": "2026-01-01T00:00:00Z",
        "end_date": "2026-01-04T00:00:00Z",
        "daily_rate": 10,
    }
    payload.update(overrides)
    return client.post("/api/rentals", headers=headers, json=payload)


def _asset(asset_id: int) -> RentalAsset:
    return db.session.get(RentalAsset, asset_id)


@pytest.fixture
def units(camera, make_asset):
    return [make_asset(camera["id"], code) for code in ("A01", "A02", "A03")]


class TestPricing:

    def test_total_rounds_days_up(self):
        assert calculate_total_amount(datetime(2026, 1, 1), datetime(2026, 1, 4), 10) == 30
        assert calculate_total_amount(datetime(2026, 1, 1), datetime(2026, 1, 2, 1), 10) == 20

    def test_penalty(self):
        end = datetime(2026, 1, 4)
        assert calculate_penalty(end, datetime(2026, 1, 3), 10) == 0.0
        assert calculate_penalty(end, end, 10) == 0.0
        assert calculate_penalty(end, datetime(2026, 1, 6, 12), 10) == 45.0
        assert calculate_penalty(end, datetime(2026, 1, 5), 10, penalty_rate=2) == 20.0


class TestBooking:

    def test_create_marks_assets_rented(self, client, admin_headers, units):
        resp = _book(client, admin_headers, [units[0]["id"], units[1]["id"]])
        assert resp.status_code == 201
        rental = resp.get_json()

        assert RENTAL_NUMBER.match(rental["rental_number"])
        assert rental["rental_number"].endswith("-0001")
        assert rental["status"] == "pending"
        assert rental["total_amount"] == 30.0
        assert rental["penalty_rate"] == 1.5
        assert rental["customer_email"] == "jane@example.com"
        assert rental["assets"] == [
            {"asset_id": units[0]["id"], "quantity": 1},
            {"asset_id": units[1]["id"], "quantity": 1},
        ]

        for unit in units[:2]:
            assert _asset(unit["id"]).status == "rented"
            assert _asset(unit["id"]).current_rental_id == rental["id"]
        assert _asset(units[2]["id"]).status == "available"

    def test_numbers_are_sequential(self, client, admin_headers, units):
        first = _book(client, admin_headers, [units[0]["id"]]).get_json()
        second = _book(client, admin_headers, [units[1]["id"]]).get_json()
        assert first["rental_number"][:-4] == second["rental_number"][:-4]
        assert second["rental_number"].endswith("-0002")

    def test_unavailable_asset_is_refused(self, client, admin_headers, units):
        _book(client, admin_headers, [units[0]["id"]])

        resp = _book(client, admin_headers, [units[1]["id"], units[0]["id"]])
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Asset A01 is not available"
        assert db.session.query(Rental).count() == 1
        assert _asset(units[1]["id"]).status == "available"

    def test_unknown_asset(self, client, admin_headers, units):
        resp = _book(client, admin_headers, [987654])
        assert resp.status_code == 409
        assert db.session.query(Rental).count() == 0

    def test_end_before_start(self, client, admin_headers, units):
        resp = _book(client, admin_headers, [units[0]["id"]], end_date="2025-12-31T00:00:00Z")
        assert resp.status_code == 400
        assert resp.get_json()["fields"] == {"end_date": "End date must be after start date"}

    def test_users_cannot_book(self, client, user_headers, units):
        assert _book(client, user_headers, [units[0]["id"]]).status_code == 403


class TestLifecycle:

    def test_complete_late_return(self, client, admin_headers, units):
        rental = _book(client, admin_headers, [units[0]["id"]]).get_json()

        resp = client.post(f"/api/rentals/{rental['id']}/complete", headers=admin_headers, json={
            "actual_return_date": "2026-01-06T12:00:00Z",
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "completed"
        assert body["actual_return_date"] == "2026-01-06T12:00:00Z"
        assert body["penalty_amount"] == 45.0

        asset = _asset(units[0]["id"])
        assert asset.status == "available"
        assert asset.current_rental_id is None

    def test_cancel_releases_assets(self, client, admin_headers, units):
        rental = _book(client, admin_headers, [units[0]["id"]]).get_json()

        resp = client.post(f"/api/rentals/{rental['id']}/cancel", headers=admin_headers, json={
            "reason": "Customer called",
        })
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "cancelled"
        assert resp.get_json()["notes"] == "Customer called"
        assert _asset(units[0]["id"]).status == "available"

        again = client.post(f"/api/rentals/{rental['id']}/cancel", headers=admin_headers, json={})
        assert again.status_code == 409
        assert again.get_json()["error"] == "Rental is already cancelled"

        complete = client.post(f"/api/rentals/{rental['id']}/complete", headers=admin_headers, json={})
        assert complete.status_code == 409

    def test_active_overdue_rental_reports_live_penalty(self, client, admin_headers, units):
        rental = _book(
            client, admin_headers, [units[0]["id"]],
            start_date="2020-01-01T00:00:00Z", end_date="2020-01-04T00:00:00Z",
        ).get_json()
        assert rental["penalty_amount"] == 0.0

        resp = client.put(f"/api/rentals/{rental['id']}/status", headers=admin_headers, json={"status": "active"})
        assert resp.status_code == 200
        assert resp.get_json()["penalty_amount"] > 0

        listed = client.get("/api/rentals?status=active", headers=admin_headers).get_json()
        assert [r["id"] for r in listed["items"]] == [rental["id"]]
        assert listed["items"][0]["penalty_amount"] > 0

        # Stored value is only set when the rental completes
        assert db.session.get(Rental, rental["id"]).penalty_amount == 0.0

    def test_illegal_status(self, client, admin_headers, units):
        rental = _book(client, admin_headers, [units[0]["id"]]).get_json()
        resp = client.put(f"/api/rentals/{rental['id']}/status", headers=admin_headers, json={"status": "lost"})
        assert resp.status_code == 400


class TestEditing:

    def test_swap_assets_and_reprice(self, client, admin_headers, units):
        rental = _book(client, admin_headers, [units[0]["id"]]).get_json()

        resp = client.put(f"/api/rentals/{rental['id']}", headers=admin_headers, json={
            "assets": [{"asset_id": units[1]["id"]}, {"asset_id": units[2]["id"]}],
            "end_date": "2026-01-06T00:00:00Z",
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["total_amount"] == 50.0
        assert [line["asset_id"] for line in body["assets"]] == [units[1]["id"], units[2]["id"]]

        assert _asset(units[0]["id"]).status == "available"
        assert _asset(units[1]["id"]).current_rental_id == rental["id"]
        assert _asset(units[2]["id"]).status == "rented"

    def test_keep_asset_while_adding_another(self, client, admin_headers, units):
        rental = _book(client, admin_headers, [units[0]["id"]]).get_json()

        resp = client.put(f"/api/rentals/{rental['id']}", headers=admin_headers, json={
            "assets": [{"asset_id": units[0]["id"]}, {"asset_id": units[1]["id"]}],
        })
        assert resp.status_code == 200
        assert _asset(units[0]["id"]).status == "rented"
        assert _asset(units[1]["id"]).status == "rented"

    def test_new_end_date_must_follow_stored_start(self, client, admin_headers, units):
        rental = _book(client, admin_headers, [units[0]["id"]]).get_json()
        resp = client.put(f"/api/rentals/{rental['id']}", headers=admin_headers, json={
            "end_date": "2025-06-01T00:00:00Z",
        })
        assert resp.status_code == 400
        assert set(resp.get_json()["fields"]) == {"end_date"}

    def test_null_deposit_rejected(self, client, admin_headers, units):
        rental = _book(client, admin_headers, [units[0]["id"]], deposit=25.0).get_json()
        resp = client.put(f"/api/rentals/{rental['id']}", headers=admin_headers, json={"deposit": None})
        assert resp.status_code == 400
        assert resp.get_json()["fields"] == {"deposit": "Deposit cannot be empty"}
        assert db.session.get(Rental, rental["id"]).deposit == 25.0

    def test_terminal_rental_is_read_only(self, client, admin_headers, units):
        rental = _book(client, admin_headers, [units[0]["id"]]).get_json()
        client.post(f"/api/rentals/{rental['id']}/complete", headers=admin_headers, json={})

        resp = client.put(f"/api/rentals/{rental['id']}", headers=admin_headers, json={"notes": "late edit"})
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Cannot edit a completed rental"


class TestListing:

    def test_filters(self, client, user_headers, admin_headers, units):
        _book(client, admin_headers, [units[0]["id"]])
        _book(
            client, admin_headers, [units[1]["id"]],
            customer_name="Bob Smith", customer_email="bob@example.com",
            start_date="2026-03-01T00:00:00Z", end_date="2026-03-05T00:00:00Z",
        )

        by_email = client.get("/api/rentals?customer_email=BOB@example.com", headers=user_headers).get_json()
        assert [r["customer_name"] for r in by_email["items"]] == ["Bob Smith"]

        window = client.get(
            "/api/rentals?start_date=2026-01-01&end_date=2026-01-31", headers=user_headers
        ).get_json()
        assert [r["customer_name"] for r in window["items"]] == ["Jane Doe"]

        search = client.get("/api/rentals?search=smith", headers=user_headers).get_json()
        assert search["pagination"]["total"] == 1

        bad = client.get("/api/rentals?start_date=2026-02-01&end_date=2026-01-01", headers=user_headers)
        assert bad.status_code == 400
