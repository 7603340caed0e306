# Overview: Stock adjustment service; the only code path allowed to change Product.stock.

"""
Stock Adjustment Service

INVARIANTS (authoritative):
- Product.stock is never negative. An adjustment that would drive stock
  below zero is REJECTED (InsufficientStockError), never clamped. The same
  policy applies to sales, manual subtract and any other negative delta.
- Adjustments are applied as a single conditional UPDATE
  (stock = stock + delta WHERE stock + delta >= 0), so concurrent sales and
  receipts on the same product serialize in the database and cannot lose
  updates.
- Adjustments are NOT idempotent. Callers own at-most-once semantics
  (receipt guards on order status, checkout on the sale insert).

UNIT OF WORK:
- commit=True (default) commits immediately.
- commit=False stages the change in the caller's transaction; the caller
  commits or rolls back the whole unit (receipt, checkout).
"""

from __future__ import annotations

import logging

from sqlalchemy import update

from ..extensions import db
from ..models import Product
from fashionhub.time_utils import utcnow

logger = logging.getLogger(__name__)

STOCK_OPERATIONS = {"add", "subtract", "set"}


class ProductNotFoundError(Exception):
    """Raised when a product is not found."""
    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class StockValidationError(Exception):
    """Raised when a stock adjustment request is malformed."""
    pass


class InsufficientStockError(Exception):
    """Raised when an adjustment would drive stock below zero."""
    def __init__(self, product: Product, requested: int):
        super().__init__(
            f"Insufficient stock for {product.name}. "
            f"Available: {product.stock}, Required: {requested}"
        )
        self.product_id = product.id
        self.available = product.stock
        self.requested = requested

    @property
    def details(self) -> dict:
        return {
            "product_id": self.product_id,
            "available": self.available,
            "required": self.requested,
        }


def _require_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise StockValidationError(f"{field} must be an integer")
    return value


def adjust_stock(product_id: int, delta: int, *, commit: bool = True) -> Product:
    """
    Apply a signed delta to a product's stock.

    Args:
        product_id: Product to adjust
        delta: Positive to restock, negative to consume
        commit: Commit immediately (False to enlist in caller's transaction)

    Returns:
        The updated Product

    Raises:
        ProductNotFoundError: No such product (no mutation)
        InsufficientStockError: stock + delta would be negative (no mutation)
        StockValidationError: delta is not an integer
    """
    delta = _require_int(delta, "delta")

    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.stock + delta >= 0)
        .values(stock=Product.stock + delta, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    product = db.session.get(Product, product_id, populate_existing=True)
    if not result.rowcount:
        if product is None:
            raise ProductNotFoundError(product_id)
        raise InsufficientStockError(product, -delta)

    logger.info("Stock adjusted product_id=%s delta=%+d stock=%s", product_id, delta, product.stock)

    if commit:
        db.session.commit()
    return product


def set_stock(product_id: int, quantity: int, *, commit: bool = True) -> Product:
    """
    Overwrite stock with an absolute count (manual stocktake correction).

    Expressed as a delta against the locked current value so it shares the
    non-negative guard and the atomic UPDATE with adjust_stock.
    """
    quantity = _require_int(quantity, "quantity")
    if quantity < 0:
        raise StockValidationError("quantity must be >= 0")

    product = (
        db.session.query(Product)
        .filter_by(id=product_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if product is None:
        raise ProductNotFoundError(product_id)

    return adjust_stock(product_id, quantity - product.stock, commit=commit)


def update_stock(product_id: int, quantity: int, operation: str = "set") -> Product:
    """
    Manual stock update as exposed by PATCH /products/<id>/stock.

    operation:
    - add: stock += quantity
    - subtract: stock -= quantity (rejected if it would go negative)
    - set: stock = quantity
    """
    if operation not in STOCK_OPERATIONS:
        raise StockValidationError(
            f"operation must be one of: {', '.join(sorted(STOCK_OPERATIONS))}"
        )
    quantity = _require_int(quantity, "quantity")

    if operation == "set":
        return set_stock(product_id, quantity)

    if quantity < 0:
        raise StockValidationError("quantity must be >= 0 for add/subtract")

    delta = quantity if operation == "add" else -quantity
    return adjust_stock(product_id, delta)


def list_low_stock() -> list[Product]:
    """Products at or below their reorder threshold, lowest stock first."""
    return (
        db.session.query(Product)
        .filter(Product.stock <= Product.min_stock)
        .order_by(Product.stock.asc(), Product.name.asc())
        .all()
    )
