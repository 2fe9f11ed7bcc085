# Overview: Service-layer operations for rental assets; units of rental-type products.

from __future__ import annotations

from sqlalchemy import func, or_

from ..errors import BusinessRuleError, DuplicateKeyError, NotFoundError
from ..extensions import db
from ..models import Product, RentalAsset, RentalLine
from ..schemas import RENTAL_ASSET_STATUSES
from . import persistence
from .activity_log_service import diff_fields, record_activity
from .pagination import paginate
from .products_service import require_product


def require_asset(asset_id: int) -> RentalAsset:
    asset = db.session.get(RentalAsset, asset_id)
    if asset is None:
        raise NotFoundError("Rental asset")
    return asset


def _ensure_code_free(asset_code: str, product_id: int, exclude_id: int | None = None) -> None:
    query = db.session.query(RentalAsset.id).filter(
        RentalAsset.asset_code == asset_code,
        RentalAsset.product_id == product_id,
    )
    if exclude_id is not None:
        query = query.filter(RentalAsset.id != exclude_id)
    if query.first() is not None:
        raise DuplicateKeyError(
            ("asset_code", "product_id"),
            "Asset code already exists for this product",
        )


def _label(asset: RentalAsset) -> str:
    product = asset.product
    return f"{asset.asset_code} ({product.name})" if product else asset.asset_code


def create_asset(*, actor_id: int, data: dict) -> dict:
    product = require_product(data["product_id"])
    if product.stock_type != "rental":
        raise BusinessRuleError("Product is not a rental product")

    _ensure_code_free(data["asset_code"], product.id)

    asset = RentalAsset(
        product_id=product.id,
        asset_code=data["asset_code"],
        status=data.get("status") or "available",
        notes=data.get("notes"),
    )
    db.session.add(asset)
    persistence.flush()

    record_activity(
        user_id=actor_id,
        action="create",
        entity_type="rental_asset",
        entity_id=asset.id,
        entity_name=_label(asset),
    )
    persistence.commit()
    return asset.to_dict()


def update_asset(*, actor_id: int, asset_id: int, patch: dict) -> dict:
    """Change asset_code and/or notes. Status has its own operation."""
    asset = require_asset(asset_id)
    before = {"asset_code": asset.asset_code, "notes": asset.notes}

    if "asset_code" in patch and patch["asset_code"] != asset.asset_code:
        _ensure_code_free(patch["asset_code"], asset.product_id, exclude_id=asset.id)
        asset.asset_code = patch["asset_code"]
    if "notes" in patch:
        asset.notes = patch["notes"]
    persistence.flush()

    changes = diff_fields(before, {"asset_code": asset.asset_code, "notes": asset.notes})
    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="rental_asset",
        entity_id=asset.id,
        entity_name=_label(asset),
        changes=changes or None,
    )
    persistence.commit()
    return asset.to_dict()


def update_status(*, actor_id: int, asset_id: int, status: str, notes: str | None = None) -> dict:
    """
    Set any legal status. Leaving "rented" by hand clears current_rental_id.
    """
    asset = require_asset(asset_id)
    old_status = asset.status

    asset.status = status
    if status != "rented":
        asset.current_rental_id = None
    if notes:
        asset.notes = notes

    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="rental_asset",
        entity_id=asset.id,
        entity_name=_label(asset),
        changes={"status": {"old": old_status, "new": status}},
    )
    persistence.commit()
    return asset.to_dict()


def get_asset(asset_id: int) -> dict:
    return require_asset(asset_id).to_dict()


def _filtered(filters: dict):
    query = db.session.query(RentalAsset).join(Product, RentalAsset.product_id == Product.id)
    if filters.get("product_id") is not None:
        query = query.filter(RentalAsset.product_id == filters["product_id"])
    if filters.get("search"):
        like = f"%{filters['search']}%"
        query = query.filter(or_(
            RentalAsset.asset_code.ilike(like),
            Product.name.ilike(like),
            Product.sku.ilike(like),
        ))
    return query


def list_assets(filters: dict) -> dict:
    """
    Newest first. `status_counts` covers every status over the product/search
    filters, before the status filter narrows the page.
    """
    base = _filtered(filters)

    counts = dict.fromkeys(RENTAL_ASSET_STATUSES, 0)
    for status, n in (
        base.with_entities(RentalAsset.status, func.count(RentalAsset.id))
        .group_by(RentalAsset.status)
        .all()
    ):
        counts[status] = n

    query = base
    if filters.get("status"):
        query = query.filter(RentalAsset.status == filters["status"])
    query = query.order_by(RentalAsset.created_at.desc(), RentalAsset.id.desc())

    result = paginate(query, page=filters.get("page", 1), limit=filters.get("limit", 20))
    result["status_counts"] = counts
    return result


def available_assets(product_id: int | None = None) -> list[dict]:
    """Available units, optionally for one product, sorted by asset code."""
    query = db.session.query(RentalAsset).filter(RentalAsset.status == "available")
    if product_id is not None:
        query = query.filter(RentalAsset.product_id == product_id)
    rows = query.order_by(RentalAsset.asset_code.asc(), RentalAsset.id.asc()).all()
    return [row.to_dict() for row in rows]


def delete_asset(*, actor_id: int, asset_id: int) -> None:
    asset = require_asset(asset_id)
    if asset.status == "rented":
        raise BusinessRuleError("Cannot delete an asset that is currently rented")
    if db.session.query(RentalLine.id).filter_by(asset_id=asset.id).first() is not None:
        raise BusinessRuleError("Cannot delete an asset that is referenced by a rental")

    record_activity(
        user_id=actor_id,
        action="delete",
        entity_type="rental_asset",
        entity_id=asset.id,
        entity_name=_label(asset),
    )
    db.session.delete(asset)
    persistence.commit()
