# Overview: Service-layer operations for sales; checkout documents and their stock movements.

"""
Sales Service

A sale is created pending with a fresh BILL- number and does not touch
stock. Status changes carry the stock side effects:

- pending -> completed: every line's product must be buy-type with enough
  stock; all quantities are deducted together
- completed -> cancelled: the deducted quantities are restored
- pending -> cancelled: no stock movement

cancelled is terminal and a completed sale cannot go back to pending.
Only pending sales may be edited or deleted.
"""

from __future__ import annotations

from sqlalchemy import or_

from ..errors import BusinessRuleError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, Sale, SaleLine
from ..schemas import SALE_TOTAL_RULES
from . import persistence
from .activity_log_service import diff_fields, record_activity
from .buy_stock_service import deduct_for_sale, restore_for_sale
from .document_service import next_bill_number
from .pagination import paginate

SALE_MUTABLE_FIELDS = (
    "customer_name", "customer_phone", "customer_email", "customer_address",
    "subtotal", "discount", "tax", "total_amount", "deposit",
    "payment_method", "payment_status", "paid_amount", "notes",
)
LOGGED_FIELDS = ("customer_name", "subtotal", "discount", "tax", "total_amount", "payment_status", "paid_amount")


def require_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale")
    return sale


def _check_products_exist(items: list[dict]) -> None:
    ids = {item["product_id"] for item in items}
    found = {pid for (pid,) in db.session.query(Product.id).filter(Product.id.in_(ids)).all()}
    errors = {
        f"items.{i}.product_id": "Product not found"
        for i, item in enumerate(items)
        if item["product_id"] not in found
    }
    if errors:
        raise ValidationError(errors)


def _set_lines(sale: Sale, items: list[dict]) -> None:
    sale.lines = [
        SaleLine(
            position=i,
            product_id=item["product_id"],
            product_name=item["product_name"],
            sku=item["sku"],
            quantity=item["quantity"],
            unit_price=item["unit_price"],
            total_price=item["total_price"],
        )
        for i, item in enumerate(items)
    ]


def _snapshot(sale: Sale) -> dict:
    return {k: getattr(sale, k) for k in LOGGED_FIELDS}


def create_sale(*, actor_id: int, data: dict) -> dict:
    _check_products_exist(data["items"])

    sale = Sale(bill_number=next_bill_number(), status="pending", created_by=actor_id)
    for key in SALE_MUTABLE_FIELDS:
        if key in data:
            setattr(sale, key, data[key])
    _set_lines(sale, data["items"])
    db.session.add(sale)
    persistence.flush()

    record_activity(
        user_id=actor_id,
        action="create",
        entity_type="sale",
        entity_id=sale.id,
        entity_name=sale.bill_number,
        changes={"customer_name": sale.customer_name, "total_amount": sale.total_amount},
    )
    persistence.commit()
    return sale.to_dict()


def update_sale(*, actor_id: int, sale_id: int, patch: dict) -> dict:
    """
    Edit a pending sale. The totals are re-checked against the merged
    record, so a patch touching only `discount` must still balance.
    """
    sale = require_sale(sale_id)
    if sale.status != "pending":
        raise BusinessRuleError("Only pending sales can be edited")

    merged = {k: getattr(sale, k) for k in ("subtotal", "discount", "tax", "total_amount")}
    merged["items"] = patch.get("items") or [line.to_dict() for line in sale.lines]
    merged.update({k: patch[k] for k in ("subtotal", "discount", "tax", "total_amount") if k in patch})
    errors = {}
    for rule in SALE_TOTAL_RULES:
        failure = rule(merged)
        if failure:
            errors[failure[0]] = failure[1]
    if errors:
        raise ValidationError(errors)

    if "items" in patch:
        _check_products_exist(patch["items"])

    before = _snapshot(sale)
    for key in SALE_MUTABLE_FIELDS:
        if key in patch:
            setattr(sale, key, patch[key])
    if "items" in patch:
        _set_lines(sale, patch["items"])

    changes = diff_fields(before, _snapshot(sale))
    if "items" in patch:
        changes["items"] = {"new": len(patch["items"])}
    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="sale",
        entity_id=sale.id,
        entity_name=sale.bill_number,
        changes=changes or None,
    )
    persistence.commit()
    return sale.to_dict()


def update_status(*, actor_id: int, sale_id: int, status: str, notes: str | None = None) -> dict:
    sale = require_sale(sale_id)
    old_status = sale.status

    if old_status == status:
        raise BusinessRuleError(f"Sale is already {status}")
    if old_status == "cancelled":
        raise BusinessRuleError("A cancelled sale cannot change status")
    if old_status == "completed" and status == "pending":
        raise BusinessRuleError("A completed sale cannot return to pending")

    if status == "completed":
        deduct_for_sale(actor_id=actor_id, bill_number=sale.bill_number, lines=sale.lines)
    elif status == "cancelled" and old_status == "completed":
        restore_for_sale(actor_id=actor_id, bill_number=sale.bill_number, lines=sale.lines)

    sale.status = status
    if notes:
        sale.notes = notes

    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="sale",
        entity_id=sale.id,
        entity_name=sale.bill_number,
        changes={"status": {"old": old_status, "new": status}},
    )
    persistence.commit()
    return sale.to_dict()


def get_sale(sale_id: int) -> dict:
    return require_sale(sale_id).to_dict()


def list_sales(filters: dict) -> dict:
    """
    Newest first. customer_name is a substring match; the date window
    applies to created_at; search covers bill number and customer name.
    """
    query = db.session.query(Sale)
    if filters.get("status"):
        query = query.filter(Sale.status == filters["status"])
    if filters.get("payment_status"):
        query = query.filter(Sale.payment_status == filters["payment_status"])
    if filters.get("customer_name"):
        query = query.filter(Sale.customer_name.ilike(f"%{filters['customer_name']}%"))
    if filters.get("start_date") is not None:
        query = query.filter(Sale.created_at >= filters["start_date"])
    if filters.get("end_date") is not None:
        query = query.filter(Sale.created_at <= filters["end_date"])
    if filters.get("search"):
        like = f"%{filters['search']}%"
        query = query.filter(or_(Sale.bill_number.ilike(like), Sale.customer_name.ilike(like)))
    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())
    return paginate(query, page=filters.get("page", 1), limit=filters.get("limit", 20))


def delete_sale(*, actor_id: int, sale_id: int) -> None:
    sale = require_sale(sale_id)
    if sale.status != "pending":
        raise BusinessRuleError("Only pending sales can be deleted; cancel the sale instead")

    record_activity(
        user_id=actor_id,
        action="delete",
        entity_type="sale",
        entity_id=sale.id,
        entity_name=sale.bill_number,
        changes={"total_amount": sale.total_amount},
    )
    db.session.delete(sale)
    persistence.commit()
