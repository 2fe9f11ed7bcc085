# Overview: Flask API routes for buy-stock counts, adjustments and low-stock reporting.

from flask import Blueprint

from ..decorators import require_auth, require_role
from ..schemas import BUY_STOCK_ADJUST, BUY_STOCK_LIST, BUY_STOCK_UPDATE
from ..services import buy_stock_service
from .common import actor_id, validated_body, validated_query

buy_stock_bp = Blueprint("buy_stock", __name__, url_prefix="/api/buy-stock")


@buy_stock_bp.get("")
@require_auth
def list_buy_stock():
    return buy_stock_service.list_buy_stock(validated_query(BUY_STOCK_LIST))


@buy_stock_bp.get("/low-stock")
@require_auth
def low_stock():
    items = buy_stock_service.low_stock_report()
    return {"items": items, "count": len(items)}


@buy_stock_bp.get("/product/<int:product_id>")
@require_auth
def get_by_product(product_id: int):
    return {"stock": buy_stock_service.get_stock_by_product(product_id)}


@buy_stock_bp.put("/product/<int:product_id>")
@require_auth
@require_role("admin")
def set_stock(product_id: int):
    data = validated_body(BUY_STOCK_UPDATE)
    return buy_stock_service.set_stock(
        actor_id=actor_id(),
        product_id=product_id,
        quantity=data["quantity"],
        min_quantity=data["min_quantity"],
    )


@buy_stock_bp.post("/product/<int:product_id>/adjust")
@require_auth
@require_role("admin")
def adjust_stock(product_id: int):
    """Body: {"adjustment": non-zero int, "reason": optional}."""
    data = validated_body(BUY_STOCK_ADJUST)
    return buy_stock_service.adjust_stock(
        actor_id=actor_id(),
        product_id=product_id,
        adjustment=data["adjustment"],
        reason=data.get("reason"),
    )
