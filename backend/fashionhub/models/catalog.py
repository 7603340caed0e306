from __future__ import annotations

from ..extensions import db
from fashionhub.time_utils import to_utc_z


class Product(db.Model):
    """
    Catalog entry for a sellable item.

    STOCK: `stock` is the single owned on-hand counter. It is only ever
    mutated through services.stock_service (atomic adjust-by-delta), never
    by read-modify-write in routes or other services.

    BARCODE: Globally unique; it is the lookup key at the POS.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("barcode", name="uq_products_barcode"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_category_name", "category", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(64), nullable=False)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)

    stock = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(120), nullable=False, index=True)

    # Reorder threshold: stock <= min_stock is "low stock"
    min_stock = db.Column(db.Integer, nullable=False, default=10)

    description = db.Column(db.Text, nullable=True)
    size = db.Column(db.String(32), nullable=True)
    color = db.Column(db.String(64), nullable=True)
    brand = db.Column(db.String(120), nullable=True)
    gender = db.Column(db.String(16), nullable=False, default="Unisex")
    image = db.Column(db.String(512), nullable=True)

    # Discount configuration (percentages, 0-100)
    discount_enabled = db.Column(db.Boolean, nullable=False, default=False)
    discount_percent = db.Column(db.Integer, nullable=False, default=0)
    max_discount_for_sales = db.Column(db.Integer, nullable=False, default=10)
    max_discount_for_admin = db.Column(db.Integer, nullable=False, default=20)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock

    def __repr__(self) -> str:
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "barcode": self.barcode,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "category": self.category,
            "min_stock": self.min_stock,
            "is_low_stock": self.is_low_stock,
            "description": self.description,
            "size": self.size,
            "color": self.color,
            "brand": self.brand,
            "gender": self.gender,
            "image": self.image,
            "discount_enabled": self.discount_enabled,
            "discount_percent": self.discount_percent,
            "max_discount_for_sales": self.max_discount_for_sales,
            "max_discount_for_admin": self.max_discount_for_admin,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Supplier(db.Model):
    """Vendor that purchase orders are placed with."""
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(120), nullable=True)
    pincode = db.Column(db.String(16), nullable=True)
    gstin = db.Column(db.String(32), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "gstin": self.gstin,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
