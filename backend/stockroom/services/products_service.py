# Overview: Service-layer operations for products; catalog CRUD with SKU uniqueness.

"""
Products Service

SKU is the natural key (uppercased by the validator). Creation and SKU
changes pre-check for a clash so the caller gets a friendly message; the
unique index is what actually guarantees it.

Stock side effects:
- a buy-type product gets its BuyStock row (quantity 0) at creation
- deleting a product removes its BuyStock row
- a product with rental assets cannot be deleted
"""

from __future__ import annotations

from sqlalchemy import or_

from ..errors import BusinessRuleError, DuplicateKeyError, NotFoundError
from ..extensions import db
from ..models import BuyStock, Product, RentalAsset
from . import persistence
from .activity_log_service import diff_fields, record_activity
from .pagination import paginate

PRODUCT_MUTABLE_FIELDS = (
    "name", "description", "sku", "category", "price", "unit", "images", "stock_type",
    "daily_rental_rate", "monthly_rental_rate", "insurance_fee", "replacement_price",
)

# Fields whose changes are written to the activity log
LOGGED_FIELDS = ("name", "sku", "price", "stock_type")


def require_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product")
    return product


def _ensure_sku_free(sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise DuplicateKeyError(("sku",), "SKU already exists")


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(filters: dict) -> dict:
    """
    Newest first. Filters: stock_type, category, search (name/sku/description).
    """
    query = db.session.query(Product)
    if filters.get("stock_type"):
        query = query.filter(Product.stock_type == filters["stock_type"])
    if filters.get("category"):
        query = query.filter(Product.category == filters["category"])
    if filters.get("search"):
        like = f"%{filters['search']}%"
        query = query.filter(or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
            Product.description.ilike(like),
        ))
    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate(query, page=filters.get("page", 1), limit=filters.get("limit", 20))


def get_product(product_id: int) -> dict:
    return require_product(product_id).to_dict()


def create_product(*, actor_id: int, patch: dict) -> dict:
    _ensure_sku_free(patch["sku"])

    product = Product(created_by=actor_id, images=[])
    apply_product_patch(product, patch)
    db.session.add(product)
    persistence.flush()

    if product.stock_type == "buy":
        db.session.add(BuyStock(product_id=product.id, quantity=0, min_quantity=0, last_updated_by=actor_id))

    record_activity(
        user_id=actor_id,
        action="create",
        entity_type="product",
        entity_id=product.id,
        entity_name=product.name,
    )
    persistence.commit()
    return product.to_dict()


def update_product(*, actor_id: int, product_id: int, patch: dict) -> dict:
    product = require_product(product_id)

    if "sku" in patch and patch["sku"] != product.sku:
        _ensure_sku_free(patch["sku"], exclude_id=product.id)

    new_type = patch.get("stock_type")
    if new_type and new_type != product.stock_type:
        _check_stock_type_change(product, new_type, actor_id)

    before = {k: getattr(product, k) for k in LOGGED_FIELDS}
    apply_product_patch(product, patch)
    persistence.flush()

    changes = diff_fields(before, {k: getattr(product, k) for k in LOGGED_FIELDS})
    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="product",
        entity_id=product.id,
        entity_name=product.name,
        changes=changes or None,
    )
    persistence.commit()
    return product.to_dict()


def _check_stock_type_change(product: Product, new_type: str, actor_id: int) -> None:
    """
    A product may switch sides only while the side it leaves is empty.
    Switching to buy creates the BuyStock row if it is missing.
    """
    if product.stock_type == "rental":
        if db.session.query(RentalAsset.id).filter_by(product_id=product.id).first() is not None:
            raise BusinessRuleError("Cannot change stock type while the product has rental assets")
    else:
        stock = db.session.query(BuyStock).filter_by(product_id=product.id).first()
        if stock is not None and stock.quantity > 0:
            raise BusinessRuleError("Cannot change stock type while the product has stock on hand")

    if new_type == "buy":
        if db.session.query(BuyStock.id).filter_by(product_id=product.id).first() is None:
            db.session.add(BuyStock(product_id=product.id, quantity=0, min_quantity=0, last_updated_by=actor_id))


def delete_product(*, actor_id: int, product_id: int) -> None:
    product = require_product(product_id)

    if db.session.query(RentalAsset.id).filter_by(product_id=product.id).first() is not None:
        raise BusinessRuleError("Cannot delete a product that still has rental assets")

    db.session.query(BuyStock).filter_by(product_id=product.id).delete()

    record_activity(
        user_id=actor_id,
        action="delete",
        entity_type="product",
        entity_id=product.id,
        entity_name=product.name,
        changes={"sku": product.sku},
    )
    db.session.delete(product)
    persistence.commit()
