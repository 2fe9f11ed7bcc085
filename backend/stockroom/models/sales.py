from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    Checkout document for buy-type products.

    Totals are client-computed and checked on write:
    - sum(line.total_price) ~= subtotal
    - subtotal - discount + tax ~= total_amount

    Stock moves only on status change (completed deducts, completed ->
    cancelled restores), never at creation.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("uq_sales_bill_number", "bill_number", unique=True),
        db.Index("ix_sales_created_at", "created_at"),
        db.Index("ix_sales_customer_name", "customer_name"),
        db.Index("ix_sales_status", "status"),
        db.Index("ix_sales_payment_status", "payment_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_number = db.Column(db.String(32), nullable=False)

    customer_name = db.Column(db.String(200), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_address = db.Column(db.String(500), nullable=True)

    subtotal = db.Column(db.Float, nullable=False)
    discount = db.Column(db.Float, nullable=False, default=0.0)
    tax = db.Column(db.Float, nullable=False, default=0.0)
    total_amount = db.Column(db.Float, nullable=False)
    deposit = db.Column(db.Float, nullable=False, default=0.0)

    payment_method = db.Column(db.String(16), nullable=True)
    payment_status = db.Column(db.String(16), nullable=False, default="pending")
    paid_amount = db.Column(db.Float, nullable=False, default=0.0)

    status = db.Column(db.String(16), nullable=False, default="pending")
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    lines = db.relationship(
        "SaleLine",
        order_by="SaleLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_number": self.bill_number,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "customer_address": self.customer_address,
            "items": [line.to_dict() for line in self.lines],
            "subtotal": self.subtotal,
            "discount": self.discount,
            "tax": self.tax,
            "total_amount": self.total_amount,
            "deposit": self.deposit,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "paid_amount": self.paid_amount,
            "status": self.status,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Sale id={self.id} bill_number={self.bill_number!r} status={self.status!r}>"


class SaleLine(db.Model):
    """
    Sold item. product_name and sku are snapshots taken at checkout.
    """
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.Index("ix_sale_lines_product_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    sku = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    total_price = db.Column(db.Float, nullable=False)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "sku": self.sku,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
        }
