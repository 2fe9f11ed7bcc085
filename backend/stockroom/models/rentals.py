from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z, utcnow


class Rental(db.Model):
    """
    A booking of one or more rental assets for a date range.

    Lifecycle: pending -> active -> completed, with cancelled reachable from
    pending/active. Completing or cancelling releases the booked assets.
    """
    __tablename__ = "rentals"
    __table_args__ = (
        db.Index("uq_rentals_rental_number", "rental_number", unique=True),
        db.Index("ix_rentals_customer_email", "customer_email"),
        db.Index("ix_rentals_status", "status"),
        db.Index("ix_rentals_start_date", "start_date"),
        db.Index("ix_rentals_end_date", "end_date"),
        db.Index("ix_rentals_created_by", "created_by"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    rental_number = db.Column(db.String(32), nullable=False)

    customer_name = db.Column(db.String(200), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_address = db.Column(db.String(500), nullable=True)

    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    expected_return_date = db.Column(db.DateTime(timezone=True), nullable=True)
    actual_return_date = db.Column(db.DateTime(timezone=True), nullable=True)

    daily_rate = db.Column(db.Float, nullable=False, default=0.0)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)
    deposit = db.Column(db.Float, nullable=False, default=0.0)
    shipping_cost = db.Column(db.Float, nullable=False, default=0.0)
    penalty_rate = db.Column(db.Float, nullable=False, default=1.5)
    penalty_amount = db.Column(db.Float, nullable=False, default=0.0)

    status = db.Column(db.String(16), nullable=False, default="pending")
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    lines = db.relationship(
        "RentalLine",
        order_by="RentalLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )

    @property
    def asset_ids(self) -> list[int]:
        return [line.asset_id for line in self.lines]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rental_number": self.rental_number,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "customer_address": self.customer_address,
            "assets": [line.to_dict() for line in self.lines],
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
            "expected_return_date": to_utc_z(self.expected_return_date),
            "actual_return_date": to_utc_z(self.actual_return_date),
            "daily_rate": self.daily_rate,
            "total_amount": self.total_amount,
            "deposit": self.deposit,
            "shipping_cost": self.shipping_cost,
            "penalty_rate": self.penalty_rate,
            "penalty_amount": self.penalty_amount,
            "status": self.status,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Rental id={self.id} rental_number={self.rental_number!r} status={self.status!r}>"


class RentalLine(db.Model):
    """Booked asset on a rental, in the order the client listed them."""
    __tablename__ = "rental_lines"
    __table_args__ = (
        db.UniqueConstraint("rental_id", "asset_id", name="uq_rental_lines_rental_asset"),
        db.Index("ix_rental_lines_asset_id", "asset_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    rental_id = db.Column(db.Integer, db.ForeignKey("rentals.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    asset_id = db.Column(db.Integer, db.ForeignKey("rentalassets.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    def to_dict(self) -> dict:
        return {"asset_id": self.asset_id, "quantity": self.quantity}
