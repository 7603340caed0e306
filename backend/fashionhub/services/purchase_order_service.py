# Overview: Service-layer operations for purchase orders, including the receive-and-restock workflow.

"""
Purchase Order Service

LIFECYCLE:
1. pending: Created with line items; lines, supplier and payment editable
2. received: Goods delivered; every line's quantity added to product stock
3. cancelled: Abandoned before delivery

Transitions are one-way: pending -> received, pending -> cancelled.
Receiving a received or cancelled order is a conflict and changes nothing.

RECEIPT IS ATOMIC:
The order row is locked, every line's stock increment is staged in the
same transaction as the status flip, and the unit is committed once. If any
line references a product that no longer exists, the whole receipt is
rolled back and the missing product ids are reported together.

NUMBERING:
Order numbers (PO-YYMM-NNNNN) come from an atomically incremented counter
(document_service), not from counting existing orders.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..extensions import db
from ..models import PurchaseOrder, PurchaseOrderLine, Product
from .concurrency import lock_for_update, run_with_retry
from .document_service import next_document_number, PURCHASE_ORDER
from .stock_service import adjust_stock, ProductNotFoundError
from .supplier_service import get_supplier, SupplierNotFoundError
from fashionhub.time_utils import utcnow

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_RECEIVED = "received"
STATUS_CANCELLED = "cancelled"
STATUSES = {STATUS_PENDING, STATUS_RECEIVED, STATUS_CANCELLED}

PAYMENT_UNPAID = "unpaid"
PAYMENT_PARTIAL = "partial"
PAYMENT_PAID = "paid"


class PurchaseOrderNotFoundError(Exception):
    """Raised when a purchase order is not found."""
    pass


class PurchaseOrderValidationError(Exception):
    """Raised when purchase order data fails validation."""
    pass


class PurchaseOrderStateError(Exception):
    """Raised when an operation is invalid for the current order status."""
    pass


class PurchaseOrderReceiptError(Exception):
    """Raised when a receipt is aborted because line products are missing."""
    def __init__(self, order_number: str, missing_product_ids: list[int]):
        ids = ", ".join(str(pid) for pid in missing_product_ids)
        super().__init__(
            f"Cannot receive {order_number}: products no longer exist ({ids}). No stock was changed."
        )
        self.order_number = order_number
        self.missing_product_ids = missing_product_ids

    @property
    def details(self) -> dict:
        return {"missing_product_ids": self.missing_product_ids}


def payment_status_for(paid_cents: int, total_cents: int) -> str:
    if paid_cents <= 0:
        return PAYMENT_UNPAID
    if paid_cents < total_cents:
        return PAYMENT_PARTIAL
    return PAYMENT_PAID


def _require_int(value, field: str, *, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PurchaseOrderValidationError(f"{field} must be an integer")
    if value < minimum:
        raise PurchaseOrderValidationError(f"{field} must be >= {minimum}")
    return value


def _optional_text(value, field: str, *, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise PurchaseOrderValidationError(f"{field} must be a string")
    value = value.strip()
    if max_length and len(value) > max_length:
        raise PurchaseOrderValidationError(f"{field} exceeds max length {max_length}")
    return value or None


def _load_locked(order_id: int) -> PurchaseOrder:
    # populate_existing: a retry must see the committed row, not the identity map
    order = (
        lock_for_update(db.session.query(PurchaseOrder).filter_by(id=order_id))
        .populate_existing()
        .first()
    )
    if not order:
        raise PurchaseOrderNotFoundError(f"Purchase order {order_id} not found")
    return order


def _build_lines(items) -> list[PurchaseOrderLine]:
    """
    Validate raw line items and build (unsaved) line rows.

    Each item: {product_id, quantity, unit_price_cents, size?, color?}.
    product_name is snapshotted from the catalog.
    """
    if not isinstance(items, list) or not items:
        raise PurchaseOrderValidationError("items must be a non-empty list")

    lines = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise PurchaseOrderValidationError(f"items[{position}] must be an object")

        product_id = item.get("product_id")
        if product_id is None:
            raise PurchaseOrderValidationError(f"items[{position}].product_id is required")
        product_id = _require_int(product_id, f"items[{position}].product_id", minimum=1)
        quantity = _require_int(item.get("quantity"), f"items[{position}].quantity", minimum=1)
        unit_price = _require_int(
            item.get("unit_price_cents"), f"items[{position}].unit_price_cents", minimum=0
        )
        size = _optional_text(item.get("size"), f"items[{position}].size", max_length=32)
        color = _optional_text(item.get("color"), f"items[{position}].color", max_length=64)

        product = db.session.get(Product, product_id)
        if product is None:
            raise PurchaseOrderValidationError(f"Product {product_id} not found")

        lines.append(
            PurchaseOrderLine(
                position=position,
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price_cents=unit_price,
                size=size or product.size,
                color=color or product.color,
            )
        )
    return lines


def _set_paid_amount(order: PurchaseOrder, paid_cents: int) -> None:
    paid_cents = _require_int(paid_cents, "paid_amount_cents", minimum=0)
    if paid_cents > order.total_amount_cents:
        raise PurchaseOrderValidationError("paid_amount_cents cannot exceed total_amount_cents")
    order.paid_amount_cents = paid_cents
    order.payment_status = payment_status_for(paid_cents, order.total_amount_cents)


def create_purchase_order(
    *,
    supplier_id: int,
    items: list[dict],
    expected_delivery: datetime | None = None,
    notes: str | None = None,
    paid_amount_cents: int = 0,
    created_by_user_id: int | None = None,
) -> PurchaseOrder:
    """
    Create a pending purchase order.

    Args:
        supplier_id: Supplier the order is placed with (must exist)
        items: Line items (see _build_lines)
        expected_delivery: Optional expected delivery date
        notes: Optional notes
        paid_amount_cents: Advance payment, <= total
        created_by_user_id: User creating the order

    Returns:
        Created PurchaseOrder with its assigned order number

    Raises:
        PurchaseOrderValidationError: Unknown supplier/product or invalid line
    """
    notes = _optional_text(notes, "notes")
    try:
        supplier = get_supplier(supplier_id)
    except SupplierNotFoundError as e:
        raise PurchaseOrderValidationError(str(e))

    lines = _build_lines(items)
    supplier_name = supplier.name
    total = sum(line.line_total_cents for line in lines)
    paid = _require_int(paid_amount_cents or 0, "paid_amount_cents", minimum=0)
    if paid > total:
        raise PurchaseOrderValidationError("paid_amount_cents cannot exceed total_amount_cents")

    order_number = next_document_number(document_type=PURCHASE_ORDER, prefix="PO")

    order = PurchaseOrder(
        order_number=order_number,
        supplier_id=supplier_id,
        supplier_name=supplier_name,
        status=STATUS_PENDING,
        expected_delivery=expected_delivery,
        notes=notes,
        created_by_user_id=created_by_user_id,
        total_amount_cents=total,
        paid_amount_cents=paid,
        payment_status=payment_status_for(paid, total),
    )
    order.lines = lines

    db.session.add(order)
    db.session.commit()

    logger.info("Purchase order %s created supplier_id=%s lines=%d", order.order_number, supplier_id, len(lines))
    return order


def get_purchase_order(order_id: int) -> PurchaseOrder:
    """
    Raises:
        PurchaseOrderNotFoundError: If not found
    """
    order = db.session.get(PurchaseOrder, order_id)
    if not order:
        raise PurchaseOrderNotFoundError(f"Purchase order {order_id} not found")
    return order


def list_purchase_orders(
    *,
    status: str | None = None,
    supplier_id: int | None = None,
) -> list[PurchaseOrder]:
    """List purchase orders, newest first."""
    if status and status not in STATUSES:
        raise PurchaseOrderValidationError(
            f"status must be one of: {', '.join(sorted(STATUSES))}"
        )

    query = db.session.query(PurchaseOrder)
    if status:
        query = query.filter(PurchaseOrder.status == status)
    if supplier_id:
        query = query.filter(PurchaseOrder.supplier_id == supplier_id)

    return query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc()).all()


def update_purchase_order(*, order_id: int, patch: dict) -> PurchaseOrder:
    """
    Edit an order.

    Always editable: notes, expected_delivery, paid_amount_cents.
    Only while pending: supplier_id, items (total is recomputed).
    Status is never edited here; use receive/cancel.

    The order row is locked for the whole edit, so a concurrent receipt
    either sees the new lines or makes the edit fail the status check.
    """
    if "notes" in patch:
        patch = {**patch, "notes": _optional_text(patch["notes"], "notes")}

    def _op() -> PurchaseOrder:
        order = _load_locked(order_id)

        structural = {"supplier_id", "items"} & patch.keys()
        if structural and order.status != STATUS_PENDING:
            raise PurchaseOrderStateError(
                f"Cannot change {', '.join(sorted(structural))} on a {order.status} purchase order"
            )

        if "supplier_id" in patch:
            try:
                supplier = get_supplier(patch["supplier_id"])
            except SupplierNotFoundError as e:
                raise PurchaseOrderValidationError(str(e))
            order.supplier_id = supplier.id
            order.supplier_name = supplier.name

        if "items" in patch:
            order.lines = _build_lines(patch["items"])
            order.total_amount_cents = sum(line.line_total_cents for line in order.lines)

        if "notes" in patch:
            order.notes = patch["notes"]
        if "expected_delivery" in patch:
            order.expected_delivery = patch["expected_delivery"]

        _set_paid_amount(order, patch.get("paid_amount_cents", order.paid_amount_cents))

        db.session.commit()
        return order

    try:
        return run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise


def record_payment(*, order_id: int, amount_cents: int) -> PurchaseOrder:
    """Add a supplier payment against the order and re-derive payment_status."""
    amount_cents = _require_int(amount_cents, "amount_cents", minimum=1)

    def _op():
        order = _load_locked(order_id)
        if order.status == STATUS_CANCELLED:
            raise PurchaseOrderStateError("Cannot record payment on a cancelled purchase order")

        _set_paid_amount(order, order.paid_amount_cents + amount_cents)
        db.session.commit()
        return order

    return run_with_retry(_op)


def delete_purchase_order(*, order_id: int) -> None:
    """
    Delete an order and its lines.

    Stock already added by a receipt is not reverted.
    """
    def _op() -> tuple[str, str]:
        order = _load_locked(order_id)
        summary = (order.order_number, order.status)
        db.session.delete(order)
        db.session.commit()
        return summary

    order_number, status = run_with_retry(_op)
    logger.info("Purchase order %s deleted (status=%s)", order_number, status)


def receive_purchase_order(order_id: int) -> PurchaseOrder:
    """
    Mark a pending order as received and add every line to product stock.

    Steps (single transaction):
    1. Lock and load the order
    2. Reject if already received or cancelled
    3. Increment stock for each line in stored order
    4. Set status=received, received_date=now
    5. Commit

    Returns:
        The received PurchaseOrder

    Raises:
        PurchaseOrderNotFoundError: No such order (no side effects)
        PurchaseOrderStateError: Order already received or cancelled (no side effects)
        PurchaseOrderReceiptError: A line's product is gone (rolled back)
    """
    def _op() -> PurchaseOrder:
        order = _load_locked(order_id)

        if order.status == STATUS_RECEIVED:
            raise PurchaseOrderStateError("Purchase order already received")
        if order.status == STATUS_CANCELLED:
            raise PurchaseOrderStateError("Cannot receive a cancelled purchase order")

        order_number = order.order_number
        missing: list[int] = []
        for line in order.lines:
            try:
                adjust_stock(line.product_id, line.quantity, commit=False)
            except ProductNotFoundError:
                missing.append(line.product_id)

        if missing:
            db.session.rollback()
            raise PurchaseOrderReceiptError(order_number, missing)

        order.status = STATUS_RECEIVED
        order.received_date = utcnow()
        db.session.commit()
        return order

    try:
        order = run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise

    logger.info("Purchase order %s received (%d lines)", order.order_number, len(order.lines))
    return order


def cancel_purchase_order(order_id: int, reason: str | None = None) -> PurchaseOrder:
    """
    Cancel a pending order. Stock is untouched.

    Raises:
        PurchaseOrderNotFoundError: If not found
        PurchaseOrderStateError: If already received or cancelled
    """
    reason = _optional_text(reason, "reason")

    def _op() -> PurchaseOrder:
        order = _load_locked(order_id)

        if order.status == STATUS_RECEIVED:
            raise PurchaseOrderStateError("Cannot cancel a received purchase order")
        if order.status == STATUS_CANCELLED:
            raise PurchaseOrderStateError("Purchase order is already cancelled")

        order.status = STATUS_CANCELLED
        order.cancelled_at = utcnow()
        order.cancellation_reason = reason
        db.session.commit()
        return order

    order = run_with_retry(_op)
    logger.info("Purchase order %s cancelled", order.order_number)
    return order
