# Overview: Flask API routes for rental assets; per-unit tracking of rental products.

from flask import Blueprint, request

from ..decorators import require_auth, require_role
from ..errors import ValidationError
from ..schemas import RENTAL_ASSET_CREATE, RENTAL_ASSET_LIST, RENTAL_ASSET_STATUS, RENTAL_ASSET_UPDATE
from ..services import rental_asset_service
from .common import actor_id, validated_body, validated_query

rental_assets_bp = Blueprint("rental_assets", __name__, url_prefix="/api/rental-assets")


@rental_assets_bp.get("")
@require_auth
def list_assets():
    """Query params: product_id, status, search, page, limit. Includes status_counts."""
    return rental_asset_service.list_assets(validated_query(RENTAL_ASSET_LIST))


@rental_assets_bp.get("/available")
@require_auth
def available_assets():
    product_id = request.args.get("product_id")
    if product_id is not None and not product_id.isdigit():
        raise ValidationError({"product_id": "Product ID must be an integer"})
    items = rental_asset_service.available_assets(int(product_id) if product_id else None)
    return {"items": items, "count": len(items)}


@rental_assets_bp.get("/<int:asset_id>")
@require_auth
def get_asset(asset_id: int):
    return rental_asset_service.get_asset(asset_id)


@rental_assets_bp.post("")
@require_auth
@require_role("admin")
def create_asset():
    data = validated_body(RENTAL_ASSET_CREATE)
    return rental_asset_service.create_asset(actor_id=actor_id(), data=data), 201


@rental_assets_bp.put("/<int:asset_id>")
@require_auth
@require_role("admin")
def update_asset(asset_id: int):
    patch = validated_body(RENTAL_ASSET_UPDATE)
    return rental_asset_service.update_asset(actor_id=actor_id(), asset_id=asset_id, patch=patch)


@rental_assets_bp.put("/<int:asset_id>/status")
@require_auth
@require_role("admin")
def update_status(asset_id: int):
    data = validated_body(RENTAL_ASSET_STATUS)
    return rental_asset_service.update_status(
        actor_id=actor_id(),
        asset_id=asset_id,
        status=data["status"],
        notes=data.get("notes"),
    )


@rental_assets_bp.delete("/<int:asset_id>")
@require_auth
@require_role("admin")
def delete_asset(asset_id: int):
    rental_asset_service.delete_asset(actor_id=actor_id(), asset_id=asset_id)
    return {"ok": True}, 200
