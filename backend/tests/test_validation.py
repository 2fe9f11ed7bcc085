"""
Field validator tests.

Verifies:
- SKU and asset codes are uppercased before the format check
- Every failed field is reported at once
- Cross-field rules (sale totals, rental dates) run after field rules
- List schemas coerce query-string values and bound page/limit
"""

from datetime import datetime

import pytest

from stockroom.errors import ValidationError
from stockroom.schemas import (
    PRODUCT_CREATE,
    PRODUCT_UPDATE,
    PRODUCT_LIST,
    RENTAL_CREATE,
    SALE_CREATE,
    SALE_TOTAL_RULES,
    SALE_UPDATE,
    USER_CREATE,
)
from stockroom.validation import normalize_code, validate_payload, within_tolerance


def _errors(schema, payload) -> dict:
    with pytest.raises(ValidationError) as exc_info:
        validate_payload(schema, payload)
    return exc_info.value.errors


def _sale(**overrides) -> dict:
    sale = {
        "customer_name": "Jane Doe",
        "items": [
            {
                "product_id": 1,
                "product_name": "Widget",
                "sku": "WID-001",
                "quantity": 1,
                "unit_price": 100,
                "total_price": 100,
            }
        ],
        "subtotal": 100,
        "discount": 10,
        "tax": 7,
        "total_amount": 97,
    }
    sale.update(overrides)
    return sale


def _rental(**overrides) -> dict:
    rental = {
        "customer_name": "Jane Doe",
        "assets": [{"asset_id": 1}],
        "start_date": "2026-01-01T00:00:00Z",
        "end_date": "2026-01-04T00:00:00Z",
        "daily_rate": 10,
    }
    rental.update(overrides)
    return rental


class TestCodes:

    @pytest.mark.parametrize("raw,expected", [
        ("cam-001", "CAM-001"),
        ("  a01 ", "A01"),
        ("MIX_ed-9", "MIX_ED-9"),
    ])
    def test_sku_is_uppercased(self, raw, expected):
        data = validate_payload(PRODUCT_CREATE, {"name": "Camera", "sku": raw, "stock_type": "rental"})
        assert data["sku"] == expected

    @pytest.mark.parametrize("raw", ["CAM 001", "CAM.001", "CAM/1", "ÇAM"])
    def test_sku_rejects_other_characters(self, raw):
        errors = _errors(PRODUCT_CREATE, {"name": "Camera", "sku": raw, "stock_type": "rental"})
        assert errors == {
            "sku": "SKU can only contain uppercase letters, numbers, hyphens, and underscores",
        }

    def test_normalize_code_matches_validator(self):
        assert normalize_code(" cam-001 ") == "CAM-001"


class TestFieldRules:

    def test_every_failed_field_is_listed(self):
        errors = _errors(PRODUCT_CREATE, {
            "name": "",
            "sku": "bad sku",
            "stock_type": "lease",
            "price": -1,
        })
        assert set(errors) == {"name", "sku", "stock_type", "price"}
        assert errors["price"] == "Price cannot be negative"
        assert errors["stock_type"] == "Stock type must be one of: buy, rental"

    def test_missing_required_fields(self):
        errors = _errors(USER_CREATE, {})
        assert errors == {
            "name": "Name is required",
            "email": "Email is required",
            "password": "Password is required",
        }

    def test_unknown_fields_are_rejected(self):
        errors = _errors(PRODUCT_UPDATE, {"colour": "red"})
        assert errors == {"colour": "Field not allowed: colour"}

    def test_partial_schema_skips_required(self):
        assert validate_payload(PRODUCT_UPDATE, {"price": 12.5}) == {"price": 12.5}

    def test_defaults_are_filled(self):
        data = validate_payload(USER_CREATE, {"name": "Al", "email": "AL@Example.com", "password": "secret"})
        assert data["role"] == "user"
        assert data["email"] == "al@example.com"

    def test_super_admin_is_not_assignable_on_create(self):
        errors = _errors(USER_CREATE, {
            "name": "Al", "email": "al@example.com", "password": "secret", "role": "super_admin",
        })
        assert set(errors) == {"role"}

    def test_boolean_is_not_a_number(self):
        errors = _errors(PRODUCT_UPDATE, {"price": True})
        assert errors == {"price": "Price must be a number"}

    def test_nested_item_errors_use_dotted_paths(self):
        sale = _sale()
        sale["items"][0]["quantity"] = 0
        errors = _errors(SALE_CREATE, sale)
        assert errors == {"items.0.quantity": "Quantity must be at least 1"}

    def test_image_urls(self):
        errors = _errors(PRODUCT_UPDATE, {"images": ["https://cdn.example.com/a.png", "not-a-url"]})
        assert errors == {"images.1": "Image URL must be a valid URL"}

    def test_null_on_defaulted_field_is_rejected(self):
        errors = _errors(PRODUCT_CREATE, {"name": "Widget", "sku": "wid-1", "stock_type": "buy", "images": None})
        assert errors == {"images": "Images cannot be empty"}
        assert _errors(SALE_UPDATE, {"tax": None}) == {"tax": "Tax cannot be empty"}

    def test_null_on_optional_field_clears_it(self):
        assert validate_payload(PRODUCT_UPDATE, {"description": None}) == {"description": None}


class TestSaleTotals:

    def test_balanced_sale_is_accepted(self):
        data = validate_payload(SALE_CREATE, _sale(total_amount=97))
        assert data["total_amount"] == 97
        assert data["payment_status"] == "pending"

    def test_wrong_total_is_reported_on_total_amount(self):
        errors = _errors(SALE_CREATE, _sale(total_amount=100))
        assert errors == {"total_amount": "Total amount must equal subtotal - discount + tax"}

    def test_items_not_matching_subtotal_is_reported_on_subtotal(self):
        errors = _errors(SALE_CREATE, _sale(subtotal=90, total_amount=87))
        assert errors == {"subtotal": "Items total does not match subtotal"}

    def test_tolerance_is_one_cent(self):
        validate_payload(SALE_CREATE, _sale(total_amount=97.005))
        _errors(SALE_CREATE, _sale(total_amount=97.02))
        assert within_tolerance(0.1 + 0.2, 0.3)

    def test_cross_field_rules_wait_for_field_rules(self):
        errors = _errors(SALE_CREATE, _sale(total_amount=100, discount=-5))
        assert errors == {"discount": "Discount cannot be negative"}

    def test_missing_amount_fails_the_total_check(self):
        data = {"items": _sale()["items"], "subtotal": 100, "discount": None, "tax": 7, "total_amount": 97}
        failures = [rule(data) for rule in SALE_TOTAL_RULES]
        assert failures == [None, ("discount", "Discount is required")]


class TestRentalDates:

    def test_end_must_follow_start(self):
        errors = _errors(RENTAL_CREATE, _rental(end_date="2026-01-01T00:00:00Z"))
        assert errors == {"end_date": "End date must be after start date"}

    def test_dates_are_normalized_to_utc(self):
        data = validate_payload(RENTAL_CREATE, _rental(start_date="2026-01-01T02:00:00+02:00"))
        assert data["start_date"] == datetime(2026, 1, 1, 0, 0)
        assert data["assets"] == [{"asset_id": 1, "quantity": 1}]
        assert data["penalty_rate"] == 1.5

    def test_invalid_date(self):
        errors = _errors(RENTAL_CREATE, _rental(start_date="next tuesday"))
        assert errors == {"start_date": "Start date must be an ISO-8601 date"}

    def test_assets_listed_once(self):
        errors = _errors(RENTAL_CREATE, _rental(assets=[{"asset_id": 1}, {"asset_id": 1}]))
        assert errors == {"assets": "Each asset can only be listed once"}

    def test_at_least_one_asset(self):
        errors = _errors(RENTAL_CREATE, _rental(assets=[]))
        assert errors == {"assets": "At least 1 assets required"}


class TestListSchemas:

    def test_query_strings_are_coerced(self):
        data = validate_payload(PRODUCT_LIST, {"page": "2", "limit": "50", "stock_type": "buy"})
        assert data == {"page": 2, "limit": 50, "stock_type": "buy"}

    def test_pagination_defaults(self):
        assert validate_payload(PRODUCT_LIST, {}) == {"page": 1, "limit": 20}

    @pytest.mark.parametrize("params,field", [
        ({"page": "0"}, "page"),
        ({"limit": "101"}, "limit"),
        ({"limit": "1.5"}, "limit"),
    ])
    def test_pagination_bounds(self, params, field):
        assert set(_errors(PRODUCT_LIST, params)) == {field}
