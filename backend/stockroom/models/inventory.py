from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Product master data.

    SKU is the natural key: stored uppercased, unique across the catalog.
    stock_type decides which side of the inventory the product lives on:
    - buy: counted stock in BuyStock, sold through Sales
    - rental: individually tracked RentalAsset units, booked through Rentals
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("uq_products_sku", "sku", unique=True),
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_stock_type", "stock_type"),
        db.Index("ix_products_created_by", "created_by"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    sku = db.Column(db.String(64), nullable=False)
    category = db.Column(db.String(100), nullable=True)
    price = db.Column(db.Float, nullable=True)
    unit = db.Column(db.String(20), nullable=True)
    images = db.Column(db.JSON, nullable=False, default=list)

    stock_type = db.Column(db.String(16), nullable=False)

    # Rental pricing
    daily_rental_rate = db.Column(db.Float, nullable=True)
    monthly_rental_rate = db.Column(db.Float, nullable=True)
    insurance_fee = db.Column(db.Float, nullable=True)
    replacement_price = db.Column(db.Float, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sku": self.sku,
            "category": self.category,
            "price": self.price,
            "unit": self.unit,
            "images": list(self.images or []),
            "stock_type": self.stock_type,
            "daily_rental_rate": self.daily_rental_rate,
            "monthly_rental_rate": self.monthly_rental_rate,
            "insurance_fee": self.insurance_fee,
            "replacement_price": self.replacement_price,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} stock_type={self.stock_type!r}>"


class BuyStock(db.Model):
    """On-hand count for a buy-type product. One row per product."""
    __tablename__ = "buystocks"
    __table_args__ = (
        db.Index("uq_buystocks_product_id", "product_id", unique=True),
        db.Index("ix_buystocks_quantity", "quantity"),
        db.Index("ix_buystocks_last_updated_by", "last_updated_by"),
        db.CheckConstraint("quantity >= 0", name="ck_buystocks_quantity_nonnegative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_quantity = db.Column(db.Integer, nullable=False, default=0)
    last_updated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product", backref=db.backref("buy_stock", uselist=False, lazy=True))

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity

    def to_dict(self) -> dict:
        product = self.product
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": product.name if product else None,
            "sku": product.sku if product else None,
            "quantity": self.quantity,
            "min_quantity": self.min_quantity,
            "is_low_stock": self.is_low_stock,
            "last_updated_by": self.last_updated_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class RentalAsset(db.Model):
    """
    One physical unit of a rental-type product.

    asset_code is unique per product, not globally: two products may each
    have an "A01".
    """
    __tablename__ = "rentalassets"
    __table_args__ = (
        db.Index("uq_rentalassets_asset_code_product", "asset_code", "product_id", unique=True),
        db.Index("ix_rentalassets_product_id", "product_id"),
        db.Index("ix_rentalassets_status", "status"),
        db.Index("ix_rentalassets_current_rental_id", "current_rental_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    asset_code = db.Column(db.String(64), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="available")
    # Plain id column: the rental is looked up, never owned
    current_rental_id = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product", backref=db.backref("rental_assets", lazy=True))

    def to_dict(self) -> dict:
        product = self.product
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": product.name if product else None,
            "sku": product.sku if product else None,
            "asset_code": self.asset_code,
            "status": self.status,
            "current_rental_id": self.current_rental_id,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<RentalAsset id={self.id} asset_code={self.asset_code!r} status={self.status!r}>"
