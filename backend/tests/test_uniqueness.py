"""
Uniqueness tests.

Verifies:
- Natural keys (email, SKU, asset code per product) reject duplicates
- A duplicate that slips past the pre-check is caught by the unique index
  and reported with the natural-key fields
- A failed write leaves nothing behind
"""

import pytest

from stockroom.errors import DuplicateKeyError
from stockroom.extensions import db
from stockroom.indexes import match_unique_violation
from stockroom.models import Product, RentalAsset
from stockroom.services import persistence


class TestSku:

    def test_duplicate_sku_is_case_insensitive(self, client, admin_headers):
        first = client.post("/api/products", headers=admin_headers, json={
            "name": "Camera", "sku": "cam-001", "stock_type": "rental",
        })
        assert first.status_code == 201
        assert first.get_json()["sku"] == "CAM-001"

        second = client.post("/api/products", headers=admin_headers, json={
            "name": "Other camera", "sku": "CAM-001", "stock_type": "rental",
        })
        assert second.status_code == 409
        body = second.get_json()
        assert body["code"] == "DUPLICATE_KEY"
        assert body["fields"] == {"sku": "SKU already exists"}
        assert db.session.query(Product).count() == 1

    def test_sku_change_to_taken_value(self, client, admin_headers, make_product):
        make_product(sku="WID-001")
        other = make_product(name="Gadget", sku="GAD-001")

        resp = client.put(f"/api/products/{other['id']}", headers=admin_headers, json={"sku": "wid-001"})
        assert resp.status_code == 409
        assert db.session.get(Product, other["id"]).sku == "GAD-001"

    def test_unique_index_catches_race(self, admin):
        db.session.add(Product(name="A", sku="RACE-1", stock_type="buy", created_by=admin.id, images=[]))
        persistence.commit()
        db.session.add(Product(name="B", sku="RACE-1", stock_type="buy", created_by=admin.id, images=[]))

        with pytest.raises(DuplicateKeyError) as exc_info:
            persistence.flush()

        assert exc_info.value.fields == ("sku",)
        assert exc_info.value.index_name == "uq_products_sku"
        assert db.session.query(Product).filter_by(sku="RACE-1").count() == 1


class TestAssetCode:

    def test_same_code_same_product_fails(self, client, admin_headers, camera):
        first = client.post("/api/rental-assets", headers=admin_headers, json={
            "product_id": camera["id"], "asset_code": "A01",
        })
        assert first.status_code == 201

        second = client.post("/api/rental-assets", headers=admin_headers, json={
            "product_id": camera["id"], "asset_code": "a01",
        })
        assert second.status_code == 409
        body = second.get_json()
        assert body["code"] == "DUPLICATE_KEY"
        assert set(body["fields"]) == {"asset_code", "product_id"}
        assert db.session.query(RentalAsset).count() == 1

    def test_same_code_other_product_succeeds(self, client, admin_headers, camera, make_product):
        tripod = make_product(name="Tripod", sku="TRI-001", stock_type="rental")
        for product in (camera, tripod):
            resp = client.post("/api/rental-assets", headers=admin_headers, json={
                "product_id": product["id"], "asset_code": "A01",
            })
            assert resp.status_code == 201

    def test_compound_index_catches_race(self, camera):
        db.session.add(RentalAsset(product_id=camera["id"], asset_code="A01", status="available"))
        persistence.commit()
        db.session.add(RentalAsset(product_id=camera["id"], asset_code="A01", status="available"))

        with pytest.raises(DuplicateKeyError) as exc_info:
            persistence.flush()

        assert set(exc_info.value.fields) == {"asset_code", "product_id"}
        assert exc_info.value.index_name == "uq_rentalassets_asset_code_product"


class TestEmail:

    def test_duplicate_email(self, client, admin_headers, plain_user):
        resp = client.post("/api/users", headers=admin_headers, json={
            "name": "Clerk Two", "email": "Clerk@Stockroom.test", "password": "secret1",
        })
        assert resp.status_code == 409
        assert resp.get_json()["fields"] == {"email": "User with this email already exists"}


class TestViolationMessages:

    @pytest.mark.parametrize("message,fields", [
        ("UNIQUE constraint failed: products.sku", ("sku",)),
        ("UNIQUE constraint failed: rentalassets.asset_code, rentalassets.product_id", ("asset_code", "product_id")),
        ('duplicate key value violates unique constraint "uq_sales_bill_number"', ("bill_number",)),
        ("Duplicate entry 'X' for key 'users.uq_users_email'", ("email",)),
    ])
    def test_known_messages(self, app, message, fields):
        key = match_unique_violation(message)
        assert key is not None
        assert key.fields == fields

    def test_unknown_message(self, app):
        assert match_unique_violation("NOT NULL constraint failed: products.name") is None
