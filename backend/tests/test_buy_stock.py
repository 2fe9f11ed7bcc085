"""
Buy stock tests.

Verifies:
- Set (upsert) and adjust; quantity never goes negative
- Low-stock filters and report
- Rental products have no buy stock
"""

from stockroom.extensions import db
from stockroom.models import ActivityLog, BuyStock


class TestSetAndAdjust:

    def test_set_stock(self, client, admin_headers, make_product):
        product = make_product()
        resp = client.put(f"/api/buy-stock/product/{product['id']}", headers=admin_headers, json={
            "quantity": 12, "min_quantity": 3,
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["quantity"] == 12
        assert body["min_quantity"] == 3
        assert body["is_low_stock"] is False
        assert body["sku"] == "WID-001"

    def test_set_stock_creates_missing_row(self, client, admin_headers, make_product):
        product = make_product()
        db.session.query(BuyStock).filter_by(product_id=product["id"]).delete()
        db.session.commit()

        resp = client.put(f"/api/buy-stock/product/{product['id']}", headers=admin_headers, json={
            "quantity": 5, "min_quantity": 1,
        })
        assert resp.status_code == 200
        assert db.session.query(BuyStock).filter_by(product_id=product["id"]).one().quantity == 5

    def test_adjust_up_and_down(self, client, admin_headers, make_product):
        product = make_product()
        url = f"/api/buy-stock/product/{product['id']}/adjust"

        assert client.post(url, headers=admin_headers, json={"adjustment": 10}).get_json()["quantity"] == 10
        resp = client.post(url, headers=admin_headers, json={"adjustment": -4, "reason": "Damaged in transit"})
        assert resp.get_json()["quantity"] == 6

        log = (
            db.session.query(ActivityLog)
            .filter_by(entity_type="buy_stock")
            .order_by(ActivityLog.id.desc())
            .first()
        )
        assert log.changes == {"quantity": {"old": 10, "new": 6}, "reason": "Damaged in transit"}

    def test_adjust_cannot_go_negative(self, client, admin_headers, make_product):
        product = make_product()
        resp = client.post(f"/api/buy-stock/product/{product['id']}/adjust", headers=admin_headers, json={
            "adjustment": -1,
        })
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Stock quantity cannot be negative"
        assert db.session.query(BuyStock).filter_by(product_id=product["id"]).one().quantity == 0

    def test_zero_adjustment_is_invalid(self, client, admin_headers, make_product):
        product = make_product()
        resp = client.post(f"/api/buy-stock/product/{product['id']}/adjust", headers=admin_headers, json={
            "adjustment": 0,
        })
        assert resp.status_code == 400
        assert resp.get_json()["fields"] == {"adjustment": "Adjustment cannot be zero"}

    def test_rental_product_has_no_buy_stock(self, client, admin_headers, camera):
        resp = client.put(f"/api/buy-stock/product/{camera['id']}", headers=admin_headers, json={
            "quantity": 1, "min_quantity": 0,
        })
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Product is not a buy-stock product"

    def test_users_cannot_change_stock(self, client, user_headers, make_product):
        product = make_product()
        resp = client.put(f"/api/buy-stock/product/{product['id']}", headers=user_headers, json={
            "quantity": 1, "min_quantity": 0,
        })
        assert resp.status_code == 403


class TestLowStock:

    def _stock(self, client, headers, product, quantity, min_quantity):
        client.put(f"/api/buy-stock/product/{product['id']}", headers=headers, json={
            "quantity": quantity, "min_quantity": min_quantity,
        })

    def test_low_stock_filter_and_report(self, client, admin_headers, make_product):
        plenty = make_product(name="Plenty", sku="PLENTY")
        short = make_product(name="Short", sku="SHORT")
        empty = make_product(name="Empty", sku="EMPTY")
        self._stock(client, admin_headers, plenty, 50, 5)
        self._stock(client, admin_headers, short, 4, 5)
        self._stock(client, admin_headers, empty, 0, 2)

        listed = client.get("/api/buy-stock?low_stock_only=true", headers=admin_headers).get_json()
        assert {row["sku"] for row in listed["items"]} == {"SHORT", "EMPTY"}

        report = client.get("/api/buy-stock/low-stock", headers=admin_headers).get_json()
        assert [row["sku"] for row in report["items"]] == ["EMPTY", "SHORT"]
        assert report["count"] == 2

        searched = client.get("/api/buy-stock?search=plen", headers=admin_headers).get_json()
        assert [row["sku"] for row in searched["items"]] == ["PLENTY"]
