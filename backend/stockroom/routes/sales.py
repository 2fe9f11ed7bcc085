# Overview: Flask API routes for sales; checkout documents and status changes.

from flask import Blueprint

from ..decorators import require_auth, require_role
from ..schemas import SALE_CREATE, SALE_LIST, SALE_STATUS, SALE_UPDATE
from ..services import sales_service
from .common import actor_id, validated_body, validated_query

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales():
    return sales_service.list_sales(validated_query(SALE_LIST))


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale(sale_id: int):
    return sales_service.get_sale(sale_id)


@sales_bp.post("")
@require_auth
@require_role("admin")
def create_sale():
    """
    Totals must balance: sum(items.total_price) ~= subtotal and
    subtotal - discount + tax ~= total_amount (within 0.01).
    """
    data = validated_body(SALE_CREATE)
    return sales_service.create_sale(actor_id=actor_id(), data=data), 201


@sales_bp.put("/<int:sale_id>")
@require_auth
@require_role("admin")
def update_sale(sale_id: int):
    patch = validated_body(SALE_UPDATE)
    return sales_service.update_sale(actor_id=actor_id(), sale_id=sale_id, patch=patch)


@sales_bp.put("/<int:sale_id>/status")
@require_auth
@require_role("admin")
def update_status(sale_id: int):
    data = validated_body(SALE_STATUS)
    return sales_service.update_status(
        actor_id=actor_id(),
        sale_id=sale_id,
        status=data["status"],
        notes=data.get("notes"),
    )


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_role("admin")
def delete_sale(sale_id: int):
    sales_service.delete_sale(actor_id=actor_id(), sale_id=sale_id)
    return {"ok": True}, 200
