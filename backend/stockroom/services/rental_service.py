# Overview: Service-layer operations for rentals; booking lifecycle and asset allocation.

"""
Rental Service

Pricing:
- total_amount = ceil(days between start and end) * daily_rate
- penalty_amount = ceil(days past end_date at return) * daily_rate * penalty_rate

Asset state follows the rental:
- create / asset swap: every booked asset must be "available"; it becomes
  "rented" with current_rental_id pointing at the rental
- completed / cancelled: every booked asset goes back to "available"

completed and cancelled are terminal. The rental row, its lines, the asset
flips and the activity row commit together.
"""

from __future__ import annotations

import math
from datetime import datetime

from sqlalchemy import or_

from ..errors import BusinessRuleError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Rental, RentalAsset, RentalLine
from ..schemas import DEFAULT_PENALTY_RATE
from ..time_utils import utcnow
from . import persistence
from .activity_log_service import diff_fields, record_activity
from .document_service import next_rental_number
from .pagination import paginate
from .persistence import lock_for_update

TERMINAL_STATUSES = ("completed", "cancelled")
SECONDS_PER_DAY = 24 * 60 * 60

RENTAL_MUTABLE_FIELDS = (
    "customer_name", "customer_phone", "customer_email", "customer_address",
    "start_date", "end_date", "expected_return_date",
    "daily_rate", "deposit", "shipping_cost", "penalty_rate", "notes",
)
LOGGED_FIELDS = ("customer_name", "start_date", "end_date", "daily_rate", "total_amount", "status")


def calculate_total_amount(start_date: datetime, end_date: datetime, daily_rate: float) -> float:
    """Whole days, rounded up: a 25-hour rental bills two days."""
    days = math.ceil((end_date - start_date).total_seconds() / SECONDS_PER_DAY)
    return days * daily_rate


def calculate_penalty(end_date: datetime, returned_at: datetime, daily_rate: float,
                      penalty_rate: float = DEFAULT_PENALTY_RATE) -> float:
    """No penalty when returned on or before end_date."""
    if returned_at <= end_date:
        return 0.0
    overdue_days = math.ceil((returned_at - end_date).total_seconds() / SECONDS_PER_DAY)
    return overdue_days * daily_rate * penalty_rate


def require_rental(rental_id: int) -> Rental:
    rental = db.session.get(Rental, rental_id)
    if rental is None:
        raise NotFoundError("Rental")
    return rental


def _serialize(rental: Rental, now: datetime | None = None) -> dict:
    """to_dict plus a live penalty for active rentals past their end date."""
    data = rental.to_dict()
    if rental.status == "active":
        data["penalty_amount"] = calculate_penalty(
            rental.end_date,
            now or utcnow(),
            rental.daily_rate,
            rental.penalty_rate if rental.penalty_rate is not None else DEFAULT_PENALTY_RATE,
        )
    return data


def _lock_available_assets(asset_ids: list[int], rental_id: int | None = None) -> list[RentalAsset]:
    """
    Lock the requested assets and check each one can be booked.

    An asset already held by `rental_id` counts as available to it. Raises
    BusinessRuleError naming the first asset that is missing or taken.
    Nothing is modified.
    """
    assets = (
        lock_for_update(db.session.query(RentalAsset).filter(RentalAsset.id.in_(asset_ids)))
        .all()
    )
    by_id = {asset.id: asset for asset in assets}
    for asset_id in asset_ids:
        asset = by_id.get(asset_id)
        if asset is None:
            raise BusinessRuleError(f"Rental asset {asset_id} does not exist")
        held_here = rental_id is not None and asset.current_rental_id == rental_id
        if asset.status != "available" and not held_here:
            raise BusinessRuleError(f"Asset {asset.asset_code} is not available")
    return [by_id[asset_id] for asset_id in asset_ids]


def _mark_rented(assets: list[RentalAsset], rental: Rental) -> None:
    for asset in assets:
        asset.status = "rented"
        asset.current_rental_id = rental.id


def _release_assets(rental: Rental, keep=()) -> None:
    """
    Return the rental's assets to available, except those in `keep`.
    Assets since reassigned to another rental are left alone.
    """
    ids = [asset_id for asset_id in rental.asset_ids if asset_id not in keep]
    if not ids:
        return
    for asset in db.session.query(RentalAsset).filter(RentalAsset.id.in_(ids)).all():
        if asset.current_rental_id in (rental.id, None):
            asset.status = "available"
            asset.current_rental_id = None


def _set_lines(rental: Rental, lines: list[dict]) -> None:
    rental.lines = [
        RentalLine(position=i, asset_id=line["asset_id"], quantity=line.get("quantity") or 1)
        for i, line in enumerate(lines)
    ]


def _snapshot(rental: Rental) -> dict:
    return {k: getattr(rental, k) for k in LOGGED_FIELDS}


def create_rental(*, actor_id: int, data: dict) -> dict:
    asset_ids = [line["asset_id"] for line in data["assets"]]
    assets = _lock_available_assets(asset_ids)

    rental = Rental(
        rental_number=next_rental_number(),
        status="pending",
        created_by=actor_id,
        penalty_amount=0.0,
    )
    for key in RENTAL_MUTABLE_FIELDS:
        if key in data:
            setattr(rental, key, data[key])
    if rental.penalty_rate is None:
        rental.penalty_rate = DEFAULT_PENALTY_RATE
    rental.total_amount = calculate_total_amount(rental.start_date, rental.end_date, rental.daily_rate)

    _set_lines(rental, data["assets"])
    db.session.add(rental)
    persistence.flush()

    _mark_rented(assets, rental)

    record_activity(
        user_id=actor_id,
        action="create",
        entity_type="rental",
        entity_id=rental.id,
        entity_name=rental.rental_number,
        changes={"customer_name": rental.customer_name, "total_amount": rental.total_amount},
    )
    persistence.commit()
    return _serialize(rental)


def update_rental(*, actor_id: int, rental_id: int, patch: dict) -> dict:
    """
    Edit an open rental. Dates or rate changes recompute total_amount;
    a new asset list releases the dropped assets and claims the added ones.
    """
    rental = require_rental(rental_id)
    if rental.status in TERMINAL_STATUSES:
        raise BusinessRuleError(f"Cannot edit a {rental.status} rental")

    start = patch.get("start_date", rental.start_date)
    end = patch.get("end_date", rental.end_date)
    if not end > start:
        raise ValidationError({"end_date": "End date must be after start date"})

    new_assets = None
    if "assets" in patch:
        new_assets = _lock_available_assets([line["asset_id"] for line in patch["assets"]], rental_id=rental.id)

    before = _snapshot(rental)
    old_asset_ids = rental.asset_ids
    for key in RENTAL_MUTABLE_FIELDS:
        if key in patch:
            setattr(rental, key, patch[key])

    if {"start_date", "end_date", "daily_rate"} & patch.keys():
        rental.total_amount = calculate_total_amount(rental.start_date, rental.end_date, rental.daily_rate)

    if new_assets is not None:
        _release_assets(rental, keep={asset.id for asset in new_assets})
        # Old lines go first: (rental_id, asset_id) is unique
        rental.lines = []
        persistence.flush()
        _set_lines(rental, patch["assets"])
        _mark_rented(new_assets, rental)

    changes = diff_fields(before, _snapshot(rental))
    if new_assets is not None:
        changes["assets"] = {"old": old_asset_ids, "new": [asset.id for asset in new_assets]}
    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="rental",
        entity_id=rental.id,
        entity_name=rental.rental_number,
        changes=changes or None,
    )
    persistence.commit()
    return _serialize(rental)


def update_status(
    *,
    actor_id: int,
    rental_id: int,
    status: str,
    actual_return_date: datetime | None = None,
    penalty_rate: float | None = None,
    notes: str | None = None,
) -> dict:
    """
    Move a rental to any legal status, applying the side effects:
    completed stamps the return and penalty and frees the assets,
    cancelled frees the assets. Terminal rentals cannot move.
    """
    rental = require_rental(rental_id)
    old_status = rental.status
    if old_status in TERMINAL_STATUSES:
        raise BusinessRuleError(f"Rental is already {old_status}")

    rental.status = status
    if notes:
        rental.notes = notes

    changes = {"status": {"old": old_status, "new": status}}
    if status == "completed":
        returned_at = actual_return_date or utcnow()
        rate = penalty_rate if penalty_rate is not None else (
            rental.penalty_rate if rental.penalty_rate is not None else DEFAULT_PENALTY_RATE
        )
        rental.actual_return_date = returned_at
        rental.penalty_rate = rate
        rental.penalty_amount = calculate_penalty(rental.end_date, returned_at, rental.daily_rate, rate)
        changes["penalty_amount"] = {"old": None, "new": rental.penalty_amount}
        _release_assets(rental)
    elif status == "cancelled":
        _release_assets(rental)

    record_activity(
        user_id=actor_id,
        action="update",
        entity_type="rental",
        entity_id=rental.id,
        entity_name=rental.rental_number,
        changes=changes,
    )
    persistence.commit()
    return _serialize(rental)


def cancel_rental(*, actor_id: int, rental_id: int, reason: str | None = None) -> dict:
    rental = require_rental(rental_id)
    if rental.status == "cancelled":
        raise BusinessRuleError("Rental is already cancelled")
    return update_status(actor_id=actor_id, rental_id=rental_id, status="cancelled", notes=reason)


def complete_rental(
    *,
    actor_id: int,
    rental_id: int,
    actual_return_date: datetime | None = None,
    penalty_rate: float | None = None,
    notes: str | None = None,
) -> dict:
    return update_status(
        actor_id=actor_id,
        rental_id=rental_id,
        status="completed",
        actual_return_date=actual_return_date,
        penalty_rate=penalty_rate,
        notes=notes,
    )


def get_rental(rental_id: int) -> dict:
    return _serialize(require_rental(rental_id))


def list_rentals(filters: dict) -> dict:
    """
    Newest first. The date window keeps rentals that lie inside it:
    start_date >= window start and end_date <= window end.
    """
    query = db.session.query(Rental)
    if filters.get("status"):
        query = query.filter(Rental.status == filters["status"])
    if filters.get("customer_email"):
        query = query.filter(Rental.customer_email == filters["customer_email"])
    if filters.get("start_date") is not None:
        query = query.filter(Rental.start_date >= filters["start_date"])
    if filters.get("end_date") is not None:
        query = query.filter(Rental.end_date <= filters["end_date"])
    if filters.get("search"):
        like = f"%{filters['search']}%"
        query = query.filter(or_(
            Rental.rental_number.ilike(like),
            Rental.customer_name.ilike(like),
            Rental.customer_email.ilike(like),
            Rental.customer_phone.ilike(like),
        ))
    query = query.order_by(Rental.created_at.desc(), Rental.id.desc())

    now = utcnow()
    return paginate(
        query,
        page=filters.get("page", 1),
        limit=filters.get("limit", 20),
        serialize=lambda rental: _serialize(rental, now),
    )
