# Overview: Per-entity input schemas for create, update, status and list operations.

"""
Entity schemas

Each operation validates its payload against one of these before touching the
database. Field names are the API's snake_case names; cross-field rules report
against the field a user would fix.
"""

from __future__ import annotations

from .validation import (
    Field,
    Schema,
    date_window_rule,
    list_schema,
    within_tolerance,
)


USER_ROLES = ("user", "admin", "super_admin")
ASSIGNABLE_ROLES = ("user", "admin")
STOCK_TYPES = ("buy", "rental")
RENTAL_ASSET_STATUSES = ("available", "rented", "maintenance", "reserved", "damaged")
RENTAL_STATUSES = ("pending", "active", "completed", "cancelled")
SALE_STATUSES = ("pending", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "partial")
PAYMENT_METHODS = ("cash", "card", "transfer", "other")
ACTIVITY_ACTIONS = ("create", "update", "delete")
ACTIVITY_ENTITY_TYPES = ("product", "buy_stock", "rental_asset", "rental", "sale", "user")

DEFAULT_PENALTY_RATE = 1.5
MIN_PASSWORD_LENGTH = 6


def _money(label: str | None = None, **kw) -> Field:
    return Field("number", label=label, minimum=0, **kw)


# =============================================================================
# Users / auth
# =============================================================================

_USER_NAME = Field("string", label="Name", required=True, min_length=2, max_length=50)
_EMAIL = Field("email", label="Email", required=True)
_PASSWORD = Field("string", label="Password", required=True, min_length=MIN_PASSWORD_LENGTH)

USER_CREATE = Schema("user_create", {
    "name": _USER_NAME,
    "email": _EMAIL,
    "password": _PASSWORD,
    "role": Field("choice", label="Role", choices=ASSIGNABLE_ROLES, default="user"),
})

USER_UPDATE = Schema("user_update", {
    "name": _USER_NAME,
    "email": _EMAIL,
    "role": Field("choice", label="Role", choices=ASSIGNABLE_ROLES),
}, partial=True)

USER_ROLE_UPDATE = Schema("user_role_update", {
    "role": Field("choice", label="Role", required=True, choices=USER_ROLES),
})

PROFILE_UPDATE = Schema("profile_update", {"name": _USER_NAME}, partial=True)

LOGIN = Schema("login", {
    "email": _EMAIL,
    "password": Field("string", label="Password", required=True, min_length=1),
})

FORGOT_PASSWORD = Schema("forgot_password", {"email": _EMAIL})

VERIFY_RESET_TOKEN = Schema("verify_reset_token", {
    "token": Field("string", label="Token", required=True, min_length=1),
})

RESET_PASSWORD = Schema("reset_password", {
    "token": Field("string", label="Token", required=True, min_length=1),
    "password": _PASSWORD,
})

CHANGE_PASSWORD = Schema("change_password", {
    "current_password": Field("string", label="Current password", required=True, min_length=1),
    "new_password": Field("string", label="New password", required=True, min_length=MIN_PASSWORD_LENGTH),
})


# =============================================================================
# Products
# =============================================================================

_PRODUCT_FIELDS = {
    "name": Field("string", label="Product name", required=True, min_length=1, max_length=200),
    "description": Field("string", max_length=2000),
    "sku": Field("code", label="SKU", required=True, min_length=1, max_length=64),
    "category": Field("string", max_length=100),
    "price": _money("Price"),
    "unit": Field("string", max_length=20),
    "images": Field("list", item=Field("url", label="Image URL"), default=list),
    "stock_type": Field("choice", label="Stock type", required=True, choices=STOCK_TYPES),
    "daily_rental_rate": _money("Daily rental rate"),
    "monthly_rental_rate": _money("Monthly rental rate"),
    "insurance_fee": _money("Insurance fee"),
    "replacement_price": _money("Replacement price"),
}

PRODUCT_CREATE = Schema("product_create", _PRODUCT_FIELDS)
PRODUCT_UPDATE = Schema("product_update", _PRODUCT_FIELDS, partial=True)

PRODUCT_LIST = list_schema("product_list", {
    "stock_type": Field("choice", label="Stock type", choices=STOCK_TYPES),
    "category": Field("string", max_length=100),
    "search": Field("string", max_length=200),
})


# =============================================================================
# Buy stock
# =============================================================================

BUY_STOCK_UPDATE = Schema("buy_stock_update", {
    "quantity": Field("integer", label="Quantity", required=True, minimum=0),
    "min_quantity": Field("integer", label="Minimum quantity", required=True, minimum=0),
})

BUY_STOCK_ADJUST = Schema("buy_stock_adjust", {
    "adjustment": Field("integer", label="Adjustment", required=True, nonzero=True),
    "reason": Field("string", max_length=500),
})

BUY_STOCK_LIST = list_schema("buy_stock_list", {
    "low_stock_only": Field("boolean", default=False),
    "search": Field("string", max_length=200),
})


# =============================================================================
# Rental assets
# =============================================================================

_ASSET_CODE = Field("code", label="Asset code", required=True, min_length=1, max_length=64)
_NOTES = Field("string", label="Notes", max_length=1000)

RENTAL_ASSET_CREATE = Schema("rental_asset_create", {
    "product_id": Field("id", label="Product ID", required=True),
    "asset_code": _ASSET_CODE,
    "status": Field("choice", label="Status", choices=RENTAL_ASSET_STATUSES, default="available"),
    "notes": _NOTES,
})

RENTAL_ASSET_UPDATE = Schema("rental_asset_update", {
    "asset_code": _ASSET_CODE,
    "notes": _NOTES,
}, partial=True)

RENTAL_ASSET_STATUS = Schema("rental_asset_status", {
    "status": Field("choice", label="Status", required=True, choices=RENTAL_ASSET_STATUSES),
    "notes": _NOTES,
})

RENTAL_ASSET_LIST = list_schema("rental_asset_list", {
    "product_id": Field("id", label="Product ID"),
    "status": Field("choice", label="Status", choices=RENTAL_ASSET_STATUSES),
    "search": Field("string", max_length=200),
})


# =============================================================================
# Rentals
# =============================================================================

_CUSTOMER_FIELDS = {
    "customer_name": Field("string", label="Customer name", required=True, min_length=1, max_length=200),
    "customer_phone": Field("string", label="Phone number", max_length=20),
    "customer_email": Field("email", label="Customer email"),
    "customer_address": Field("string", label="Address", max_length=500),
}

RENTAL_LINE = Schema("rental_line", {
    "asset_id": Field("id", label="Asset ID", required=True),
    "quantity": Field("integer", label="Quantity", minimum=1, default=1),
})


def _end_after_start(data: dict):
    start, end = data.get("start_date"), data.get("end_date")
    if start is not None and end is not None and not end > start:
        return "end_date", "End date must be after start date"
    return None


def _unique_assets(data: dict):
    lines = data.get("assets")
    if lines:
        ids = [line["asset_id"] for line in lines]
        if len(set(ids)) != len(ids):
            return "assets", "Each asset can only be listed once"
    return None


_RENTAL_FIELDS = {
    **_CUSTOMER_FIELDS,
    "assets": Field("list", label="Assets", required=True, item=RENTAL_LINE, min_items=1),
    "start_date": Field("datetime", label="Start date", required=True),
    "end_date": Field("datetime", label="End date", required=True),
    "expected_return_date": Field("datetime", label="Expected return date"),
    "daily_rate": _money("Daily rate", required=True),
    "deposit": _money("Deposit", default=0.0),
    "shipping_cost": _money("Shipping cost", default=0.0),
    "penalty_rate": _money("Penalty rate", default=DEFAULT_PENALTY_RATE),
    "notes": _NOTES,
}

RENTAL_CREATE = Schema("rental_create", _RENTAL_FIELDS, rules=(_end_after_start, _unique_assets))
RENTAL_UPDATE = Schema("rental_update", _RENTAL_FIELDS, rules=(_end_after_start, _unique_assets), partial=True)

RENTAL_STATUS = Schema("rental_status", {
    "status": Field("choice", label="Status", required=True, choices=RENTAL_STATUSES),
    "actual_return_date": Field("datetime", label="Actual return date"),
    "penalty_rate": _money("Penalty rate"),
    "notes": _NOTES,
})

RENTAL_CANCEL = Schema("rental_cancel", {
    "reason": Field("string", label="Reason", max_length=500),
})

RENTAL_COMPLETE = Schema("rental_complete", {
    "actual_return_date": Field("datetime", label="Actual return date"),
    "penalty_rate": _money("Penalty rate"),
    "notes": _NOTES,
})

RENTAL_LIST = list_schema("rental_list", {
    "status": Field("choice", label="Status", choices=RENTAL_STATUSES),
    "customer_email": Field("email", label="Customer email"),
    "start_date": Field("datetime", label="Start date"),
    "end_date": Field("datetime", label="End date"),
    "search": Field("string", max_length=200),
}, rules=(date_window_rule(),))


# =============================================================================
# Sales
# =============================================================================

SALE_ITEM = Schema("sale_item", {
    "product_id": Field("id", label="Product ID", required=True),
    "product_name": Field("string", label="Product name", required=True, min_length=1, max_length=200),
    "sku": Field("code", label="SKU", required=True, min_length=1, max_length=64),
    "quantity": Field("integer", label="Quantity", required=True, minimum=1),
    "unit_price": _money("Unit price", required=True),
    "total_price": _money("Total price", required=True),
})


_TOTAL_LABELS = {
    "items": "Items",
    "subtotal": "Subtotal",
    "discount": "Discount",
    "tax": "Tax",
    "total_amount": "Total amount",
}


def _first_missing(data: dict, keys):
    for key in keys:
        if data.get(key) is None:
            return key, f"{_TOTAL_LABELS[key]} is required"
    return None


def _items_match_subtotal(data: dict):
    missing = _first_missing(data, ("items", "subtotal"))
    if missing:
        return missing
    items_total = sum(item["total_price"] for item in data["items"])
    if not within_tolerance(items_total, data["subtotal"]):
        return "subtotal", "Items total does not match subtotal"
    return None


def _total_matches(data: dict):
    missing = _first_missing(data, ("subtotal", "discount", "tax", "total_amount"))
    if missing:
        return missing
    expected = data["subtotal"] - data["discount"] + data["tax"]
    if not within_tolerance(expected, data["total_amount"]):
        return "total_amount", "Total amount must equal subtotal - discount + tax"
    return None


_SALE_FIELDS = {
    **_CUSTOMER_FIELDS,
    "items": Field("list", label="Items", required=True, item=SALE_ITEM, min_items=1),
    "subtotal": _money("Subtotal", required=True),
    "discount": _money("Discount", default=0.0),
    "tax": _money("Tax", default=0.0),
    "total_amount": _money("Total amount", required=True),
    "deposit": _money("Deposit", default=0.0),
    "payment_method": Field("choice", label="Payment method", choices=PAYMENT_METHODS),
    "payment_status": Field("choice", label="Payment status", choices=PAYMENT_STATUSES, default="pending"),
    "paid_amount": _money("Paid amount", default=0.0),
    "notes": _NOTES,
}

SALE_CREATE = Schema("sale_create", _SALE_FIELDS, rules=(_items_match_subtotal, _total_matches))
# Totals on update are checked in the service against the merged record
SALE_UPDATE = Schema("sale_update", _SALE_FIELDS, partial=True)

SALE_STATUS = Schema("sale_status", {
    "status": Field("choice", label="Status", required=True, choices=SALE_STATUSES),
    "notes": _NOTES,
})

SALE_LIST = list_schema("sale_list", {
    "status": Field("choice", label="Status", choices=SALE_STATUSES),
    "payment_status": Field("choice", label="Payment status", choices=PAYMENT_STATUSES),
    "customer_name": Field("string", max_length=200),
    "start_date": Field("datetime", label="Start date"),
    "end_date": Field("datetime", label="End date"),
    "search": Field("string", max_length=200),
}, rules=(date_window_rule(),))

SALE_TOTAL_RULES = (_items_match_subtotal, _total_matches)


# =============================================================================
# Activity logs
# =============================================================================

ACTIVITY_LOG_LIST = list_schema("activity_log_list", {
    "user_id": Field("id", label="User ID"),
    "entity_type": Field("choice", label="Entity type", choices=ACTIVITY_ENTITY_TYPES),
    "entity_id": Field("string", max_length=64),
    "action": Field("choice", label="Action", choices=ACTIVITY_ACTIONS),
    "start_date": Field("datetime", label="Start date"),
    "end_date": Field("datetime", label="End date"),
}, rules=(date_window_rule(),))

USER_LIST = list_schema("user_list", {
    "role": Field("choice", label="Role", choices=USER_ROLES),
    "search": Field("string", max_length=200),
})
