# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier Service

WHY: Every purchase order is placed with exactly one supplier. Orders keep a
snapshot of the supplier name, but the supplier row cannot be deleted while
orders still reference it.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Supplier, PurchaseOrder
from ..validation import ConflictError


SUPPLIER_MUTABLE_FIELDS = {
    "name", "contact_person", "email", "phone", "address",
    "city", "state", "pincode", "gstin", "status", "notes",
}


class SupplierNotFoundError(Exception):
    """Raised when a supplier is not found."""
    pass


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if not supplier:
        raise SupplierNotFoundError(f"Supplier {supplier_id} not found")
    return supplier


def list_suppliers(*, status: str | None = None, search: str | None = None) -> list[Supplier]:
    """List suppliers ordered by name."""
    query = db.session.query(Supplier)
    if status:
        query = query.filter(Supplier.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            db.or_(
                Supplier.name.ilike(pattern),
                Supplier.contact_person.ilike(pattern),
                Supplier.city.ilike(pattern),
            )
        )
    return query.order_by(Supplier.name.asc(), Supplier.id.asc()).all()


def create_supplier(*, patch: dict) -> Supplier:
    supplier = Supplier()
    for k, v in patch.items():
        if k in SUPPLIER_MUTABLE_FIELDS:
            setattr(supplier, k, v)
    db.session.add(supplier)
    db.session.commit()
    return supplier


def update_supplier(*, supplier_id: int, patch: dict) -> Supplier:
    """
    Update supplier fields.

    Existing purchase orders keep their supplier_name snapshot.
    """
    supplier = get_supplier(supplier_id)
    for k, v in patch.items():
        if k in SUPPLIER_MUTABLE_FIELDS:
            setattr(supplier, k, v)
    db.session.commit()
    return supplier


def delete_supplier(*, supplier_id: int) -> None:
    """
    Delete a supplier.

    Raises:
        SupplierNotFoundError: If not found
        ConflictError: If purchase orders reference the supplier
    """
    supplier = get_supplier(supplier_id)

    in_use = db.session.query(PurchaseOrder.id).filter(
        PurchaseOrder.supplier_id == supplier_id
    ).first()
    if in_use:
        raise ConflictError(
            "Supplier has purchase orders. Mark it inactive instead of deleting."
        )

    db.session.delete(supplier)
    db.session.commit()
