# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

All routes require authentication; writes require admin or above.
"""
from flask import Blueprint

from ..decorators import require_auth, require_role
from ..schemas import PRODUCT_CREATE, PRODUCT_LIST, PRODUCT_UPDATE
from ..services import products_service
from .common import actor_id, validated_body, validated_query

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    Query params: stock_type, category, search, page, limit.
    """
    return products_service.list_products(validated_query(PRODUCT_LIST))


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    return products_service.get_product(product_id)


@products_bp.post("")
@require_auth
@require_role("admin")
def create_product_route():
    """SKU is uppercased before the format check; a clash is a 409."""
    patch = validated_body(PRODUCT_CREATE)
    return products_service.create_product(actor_id=actor_id(), patch=patch), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_role("admin")
def update_product_route(product_id: int):
    patch = validated_body(PRODUCT_UPDATE)
    return products_service.update_product(actor_id=actor_id(), product_id=product_id, patch=patch)


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role("admin")
def delete_product_route(product_id: int):
    products_service.delete_product(actor_id=actor_id(), product_id=product_id)
    return {"ok": True}, 200
