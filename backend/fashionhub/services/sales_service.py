# Overview: Service-layer operations for POS checkout; pricing, discounts, tax and stock decrement.

"""
Sales Service

A sale is written once, atomically: the invoice row, its lines and every
stock decrement commit together or not at all.

PRICING (all integer cents, half-up rounding):
- line gross = unit_price * quantity (unit price always taken from the catalog)
- line discount = gross * discount_percent / 100
- subtotal = sum(gross), discount = sum(line discount)
- tax = (subtotal - discount) * TAX_RATE_BPS / 10000
- total = subtotal - discount + tax

DISCOUNT CAPS:
- admin: product.max_discount_for_admin
- salesPerson: min(product.max_discount_for_sales, user.max_discount_percent),
  and only when user.can_discount
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from flask import current_app

from ..extensions import db
from ..models import Sale, SaleLine, Product, User
from .document_service import next_document_number, SALE
from .stock_service import adjust_stock, InsufficientStockError

logger = logging.getLogger(__name__)

PAYMENT_METHODS = {"CASH", "CREDIT_CARD", "DEBIT_CARD", "UPI"}
CARD_METHODS = {"CREDIT_CARD", "DEBIT_CARD"}


class SaleError(Exception):
    """Raised when a checkout request is invalid."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details


class SaleNotFoundError(Exception):
    """Raised when a sale is not found."""
    pass


def _round_half_up(numerator: int, denominator: int) -> int:
    return (numerator * 2 + denominator) // (denominator * 2)


def max_discount_for(user: User, product: Product) -> int:
    if user.is_admin:
        return product.max_discount_for_admin
    if not user.can_discount:
        return 0
    return min(product.max_discount_for_sales, user.max_discount_percent)


def _optional_text(value, field: str, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise SaleError(f"{field} must be a string")
    value = value.strip()
    if max_length and len(value) > max_length:
        raise SaleError(f"{field} exceeds max length {max_length}")
    return value or None


def _parse_items(items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise SaleError("items must be a non-empty list")

    parsed = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise SaleError(f"items[{idx}] must be an object")
        product_id = item.get("product_id")
        quantity = item.get("quantity")
        discount = item.get("discount_percent")

        for field, value in (("product_id", product_id), ("quantity", quantity)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise SaleError(f"items[{idx}].{field} must be an integer")
        if quantity < 1:
            raise SaleError(f"items[{idx}].quantity must be >= 1")
        if discount is not None:
            if isinstance(discount, bool) or not isinstance(discount, int):
                raise SaleError(f"items[{idx}].discount_percent must be an integer")
            if not 0 <= discount <= 100:
                raise SaleError(f"items[{idx}].discount_percent must be between 0 and 100")

        parsed.append({
            "product_id": product_id,
            "quantity": quantity,
            "discount_percent": discount,
            "size": _optional_text(item.get("size"), f"items[{idx}].size", 32),
            "color": _optional_text(item.get("color"), f"items[{idx}].color", 64),
        })
    return parsed


def create_sale(
    *,
    user: User,
    items: list[dict],
    payment_method: str,
    card_last4: str | None = None,
    upi_transaction_id: str | None = None,
    customer_name: str | None = None,
    customer_phone: str | None = None,
) -> Sale:
    """
    Check out a cart.

    Args:
        user: The salesperson (or admin) ringing up the sale
        items: [{product_id, quantity, discount_percent?, size?, color?}]
        payment_method: CASH, CREDIT_CARD, DEBIT_CARD or UPI

    Returns:
        The committed Sale

    Raises:
        SaleError: Invalid payload, unknown product, or discount above cap
        InsufficientStockError: A product cannot cover the requested quantity
    """
    if not isinstance(payment_method, str) or payment_method not in PAYMENT_METHODS:
        raise SaleError(f"payment_method must be one of: {', '.join(sorted(PAYMENT_METHODS))}")
    card_last4 = _optional_text(card_last4, "card_last4")
    upi_transaction_id = _optional_text(upi_transaction_id, "upi_transaction_id", 64)
    customer_name = _optional_text(customer_name, "customer_name", 255)
    customer_phone = _optional_text(customer_phone, "customer_phone", 32)
    if payment_method in CARD_METHODS and card_last4:
        if len(card_last4) != 4 or not card_last4.isdigit():
            raise SaleError("card_last4 must be 4 digits")

    parsed = _parse_items(items)

    products: dict[int, Product] = {}
    required: "OrderedDict[int, int]" = OrderedDict()
    for entry in parsed:
        pid = entry["product_id"]
        if pid not in products:
            product = db.session.get(Product, pid)
            if product is None:
                raise SaleError(f"Product {pid} not found", {"product_id": pid})
            products[pid] = product
        required[pid] = required.get(pid, 0) + entry["quantity"]

    for pid, qty in required.items():
        if products[pid].stock < qty:
            raise InsufficientStockError(products[pid], qty)

    lines = []
    subtotal = 0
    discount_total = 0
    for position, entry in enumerate(parsed):
        product = products[entry["product_id"]]

        discount = entry["discount_percent"]
        if discount is None:
            discount = product.discount_percent if product.discount_enabled else 0
        else:
            cap = max_discount_for(user, product)
            if discount > cap:
                raise SaleError(
                    f"Discount {discount}% exceeds maximum {cap}% for {product.name}",
                    {"product_id": product.id, "max_discount_percent": cap},
                )

        gross = product.price_cents * entry["quantity"]
        line_discount = _round_half_up(gross * discount, 100)
        subtotal += gross
        discount_total += line_discount

        lines.append(
            SaleLine(
                position=position,
                product_id=product.id,
                product_name=product.name,
                quantity=entry["quantity"],
                unit_price_cents=product.price_cents,
                discount_percent=discount,
                discount_cents=line_discount,
                line_total_cents=gross - line_discount,
                size=entry["size"] or product.size,
                color=entry["color"] or product.color,
            )
        )

    tax_rate_bps = current_app.config.get("TAX_RATE_BPS", 500)
    tax = _round_half_up((subtotal - discount_total) * tax_rate_bps, 10_000)

    try:
        invoice_number = next_document_number(document_type=SALE, prefix="INV")

        sale = Sale(
            invoice_number=invoice_number,
            subtotal_cents=subtotal,
            tax_cents=tax,
            discount_cents=discount_total,
            total_cents=subtotal - discount_total + tax,
            payment_method=payment_method,
            card_last4=card_last4 if payment_method in CARD_METHODS else None,
            upi_transaction_id=upi_transaction_id if payment_method == "UPI" else None,
            customer_name=customer_name,
            customer_phone=customer_phone,
            sales_person_id=user.id,
            sales_person_name=user.name,
        )
        sale.lines = lines
        db.session.add(sale)

        for pid, qty in required.items():
            adjust_stock(pid, -qty, commit=False)

        db.session.commit()
    except Exception:
        # Includes stock moving between the check and the decrement
        db.session.rollback()
        raise

    logger.info(
        "Sale %s created by user_id=%s total_cents=%s lines=%d",
        sale.invoice_number, user.id, sale.total_cents, len(lines),
    )
    return sale


def list_sales(user: User) -> list[Sale]:
    """Newest first. A salesPerson only sees their own sales."""
    query = db.session.query(Sale)
    if not user.is_admin:
        query = query.filter(Sale.sales_person_id == user.id)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise SaleNotFoundError(f"Sale {sale_id} not found")
    return sale
