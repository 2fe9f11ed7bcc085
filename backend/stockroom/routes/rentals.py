# Overview: Flask API routes for rentals; booking, edits and lifecycle transitions.

from flask import Blueprint

from ..decorators import require_auth, require_role
from ..schemas import RENTAL_CANCEL, RENTAL_COMPLETE, RENTAL_CREATE, RENTAL_LIST, RENTAL_STATUS, RENTAL_UPDATE
from ..services import rental_service
from .common import actor_id, validated_body, validated_query

rentals_bp = Blueprint("rentals", __name__, url_prefix="/api/rentals")


@rentals_bp.get("")
@require_auth
def list_rentals():
    """
    Query params: status, customer_email, start_date, end_date, search,
    page, limit. Active overdue rentals report a live penalty_amount.
    """
    return rental_service.list_rentals(validated_query(RENTAL_LIST))


@rentals_bp.get("/<int:rental_id>")
@require_auth
def get_rental(rental_id: int):
    return rental_service.get_rental(rental_id)


@rentals_bp.post("")
@require_auth
@require_role("admin")
def create_rental():
    data = validated_body(RENTAL_CREATE)
    return rental_service.create_rental(actor_id=actor_id(), data=data), 201


@rentals_bp.put("/<int:rental_id>")
@require_auth
@require_role("admin")
def update_rental(rental_id: int):
    patch = validated_body(RENTAL_UPDATE)
    return rental_service.update_rental(actor_id=actor_id(), rental_id=rental_id, patch=patch)


@rentals_bp.put("/<int:rental_id>/status")
@require_auth
@require_role("admin")
def update_status(rental_id: int):
    data = validated_body(RENTAL_STATUS)
    return rental_service.update_status(
        actor_id=actor_id(),
        rental_id=rental_id,
        status=data["status"],
        actual_return_date=data.get("actual_return_date"),
        penalty_rate=data.get("penalty_rate"),
        notes=data.get("notes"),
    )


@rentals_bp.post("/<int:rental_id>/cancel")
@require_auth
@require_role("admin")
def cancel_rental(rental_id: int):
    data = validated_body(RENTAL_CANCEL)
    return rental_service.cancel_rental(actor_id=actor_id(), rental_id=rental_id, reason=data.get("reason"))


@rentals_bp.post("/<int:rental_id>/complete")
@require_auth
@require_role("admin")
def complete_rental(rental_id: int):
    data = validated_body(RENTAL_COMPLETE)
    return rental_service.complete_rental(
        actor_id=actor_id(),
        rental_id=rental_id,
        actual_return_date=data.get("actual_return_date"),
        penalty_rate=data.get("penalty_rate"),
        notes=data.get("notes"),
    )
