# Overview: Service-layer operations for buy stock; on-hand counts, adjustments and low-stock reporting.

"""
Buy Stock Service

One BuyStock row per buy-type product. The quantity never goes negative:
adjustments and sale deductions that would cross zero are refused, and the
table carries a CHECK constraint as a backstop.
"""

from __future__ import annotations

from sqlalchemy import or_

from ..errors import BusinessRuleError, NotFoundError
from ..extensions import db
from ..models import BuyStock, Product
from . import persistence
from .activity_log_service import record_activity
from .pagination import paginate
from .persistence import lock_for_update
from .products_service import require_product


def _require_buy_product(product_id: int) -> Product:
    product = require_product(product_id)
    if product.stock_type != "buy":
        raise BusinessRuleError("Product is not a buy-stock product")
    return product


def _stock_label(product: Product) -> str:
    return f"{product.name} ({product.sku})"


def get_locked_stock(product_id: int) -> BuyStock | None:
    """BuyStock row for update (row lock where the engine supports it)."""
    return lock_for_update(db.session.query(BuyStock).filter_by(product_id=product_id)).first()


def set_stock(*, actor_id: int, product_id: int, quantity: int, min_quantity: int) -> dict:
    """
    Set quantity and min_quantity, creating the row if the product has none.
    """
    product = _require_buy_product(product_id)
    stock = get_locked_stock(product_id)

    if stock is None:
        stock = BuyStock(product_id=product.id, quantity=quantity, min_quantity=min_quantity, last_updated_by=actor_id)
        db.session.add(stock)
        old = {"quantity": None, "min_quantity": None}
    else:
        old = {"quantity": stock.quantity, "min_quantity": stock.min_quantity}
        stock.quantity = quantity
        stock.min_quantity = min_quantity
        stock.last_updated_by = actor_id
    persistence.flush()

    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="buy_stock",
        entity_id=stock.id,
        entity_name=_stock_label(product),
        changes={
            "quantity": {"old": old["quantity"], "new": quantity},
            "min_quantity": {"old": old["min_quantity"], "new": min_quantity},
        },
    )
    persistence.commit()
    return stock.to_dict()


def adjust_stock(*, actor_id: int, product_id: int, adjustment: int, reason: str | None = None) -> dict:
    """
    Add `adjustment` (non-zero, may be negative) to the on-hand quantity.

    Raises BusinessRuleError if the result would be negative.
    """
    product = _require_buy_product(product_id)
    stock = get_locked_stock(product_id)
    if stock is None:
        raise NotFoundError("Stock", "No stock record for this product")

    old_quantity = stock.quantity
    new_quantity = old_quantity + adjustment
    if new_quantity < 0:
        raise BusinessRuleError("Stock quantity cannot be negative")

    stock.quantity = new_quantity
    stock.last_updated_by = actor_id

    changes = {"quantity": {"old": old_quantity, "new": new_quantity}}
    if reason:
        changes["reason"] = reason
    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="buy_stock",
        entity_id=stock.id,
        entity_name=_stock_label(product),
        changes=changes,
    )
    persistence.commit()
    return stock.to_dict()


def get_stock_by_product(product_id: int) -> dict | None:
    """None when the product has no stock row yet."""
    require_product(product_id)
    stock = db.session.query(BuyStock).filter_by(product_id=product_id).first()
    return stock.to_dict() if stock else None


def list_buy_stock(filters: dict) -> dict:
    """Most recently updated first. low_stock_only keeps quantity <= min_quantity."""
    query = db.session.query(BuyStock).join(Product, BuyStock.product_id == Product.id)
    if filters.get("low_stock_only"):
        query = query.filter(BuyStock.quantity <= BuyStock.min_quantity)
    if filters.get("search"):
        like = f"%{filters['search']}%"
        query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like)))
    query = query.order_by(BuyStock.updated_at.desc(), BuyStock.id.desc())
    return paginate(query, page=filters.get("page", 1), limit=filters.get("limit", 20))


def low_stock_report() -> list[dict]:
    """Every row at or below its minimum, lowest quantity first."""
    rows = (
        db.session.query(BuyStock)
        .filter(BuyStock.quantity <= BuyStock.min_quantity)
        .order_by(BuyStock.quantity.asc(), BuyStock.id.asc())
        .all()
    )
    return [row.to_dict() for row in rows]


def _sale_quantities(lines) -> dict[int, int]:
    wanted: dict[int, int] = {}
    for line in lines:
        wanted[line.product_id] = wanted.get(line.product_id, 0) + line.quantity
    return wanted


def _log_sale_movement(actor_id: int, stock: BuyStock, product: Product, old_quantity: int, reason: str) -> None:
    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="buy_stock",
        entity_id=stock.id,
        entity_name=_stock_label(product),
        changes={"quantity": {"old": old_quantity, "new": stock.quantity}, "reason": reason},
    )


def deduct_for_sale(*, actor_id: int, bill_number: str, lines) -> None:
    """
    Take every sale line out of stock, or none of them.

    Each line's product must be buy-type with enough stock. Quantities of
    repeated products are summed before checking. Every touched stock row
    gets an activity entry; the caller commits.
    """
    rows = []
    for product_id, qty in _sale_quantities(lines).items():
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product", f"Product {product_id} not found")
        if product.stock_type != "buy":
            raise BusinessRuleError(f"{product.name} is not a buy-stock product")
        stock = get_locked_stock(product_id)
        if stock is None or stock.quantity < qty:
            available = stock.quantity if stock else 0
            raise BusinessRuleError(
                f"Insufficient stock for {product.name}: {available} available, {qty} requested"
            )
        rows.append((stock, product, qty))

    for stock, product, qty in rows:
        old_quantity = stock.quantity
        stock.quantity -= qty
        stock.last_updated_by = actor_id
        _log_sale_movement(actor_id, stock, product, old_quantity, f"Sale {bill_number} completed")


def restore_for_sale(*, actor_id: int, bill_number: str, lines) -> None:
    """Put the quantities of a cancelled completed sale back on hand."""
    for product_id, qty in _sale_quantities(lines).items():
        stock = get_locked_stock(product_id)
        if stock is None:
            # The product lost its stock row (deleted); nothing to restore into
            continue
        old_quantity = stock.quantity
        stock.quantity += qty
        stock.last_updated_by = actor_id
        _log_sale_movement(actor_id, stock, stock.product, old_quantity, f"Sale {bill_number} cancelled")
