# Overview: Service-layer operations for draft carts; encapsulates business logic and database work.

"""
Draft Service

Drafts are parked carts. They snapshot product name and price at save time
and never reserve or touch stock; availability is only checked when the
draft is turned into a sale.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Draft, DraftLine, Product, User


DRAFT_FIELDS = {"name", "customer_name", "customer_phone", "notes"}

# None means unbounded (Text column)
TEXT_LIMITS = {"name": 255, "customer_name": 255, "customer_phone": 32, "notes": None}


class DraftNotFoundError(Exception):
    """Raised when a draft is not found."""
    pass


class DraftValidationError(Exception):
    """Raised when draft data fails validation."""
    pass


def _int_field(value, field: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise DraftValidationError(f"{field} must be an integer")
    if value < minimum:
        raise DraftValidationError(f"{field} must be >= {minimum}")
    return value


def _text(value, field: str, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise DraftValidationError(f"{field} must be a string")
    value = value.strip()
    if max_length and len(value) > max_length:
        raise DraftValidationError(f"{field} exceeds max length {max_length}")
    return value or None


def _draft_fields(payload: dict) -> dict:
    return {k: _text(payload[k], k, TEXT_LIMITS[k]) for k in DRAFT_FIELDS if k in payload}


def _build_lines(items) -> list[DraftLine]:
    if not isinstance(items, list):
        raise DraftValidationError("items must be a list")

    lines = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise DraftValidationError(f"items[{position}] must be an object")
        product_id = _int_field(item.get("product_id"), f"items[{position}].product_id", 1)
        quantity = _int_field(item.get("quantity"), f"items[{position}].quantity", 1)

        product = db.session.get(Product, product_id)
        if product is None:
            raise DraftValidationError(f"Product {product_id} not found")

        price = item.get("price_cents", product.price_cents)
        price = _int_field(price, f"items[{position}].price_cents", 0)
        size = _text(item.get("size"), f"items[{position}].size", 32)
        color = _text(item.get("color"), f"items[{position}].color", 64)
        discount = _int_field(item.get("discount_percent", 0), f"items[{position}].discount_percent", 0)
        if discount > 100:
            raise DraftValidationError(f"items[{position}].discount_percent must be <= 100")

        lines.append(
            DraftLine(
                position=position,
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                price_cents=price,
                size=size or product.size,
                color=color or product.color,
                discount_percent=discount,
            )
        )
    return lines


def list_drafts() -> list[Draft]:
    return db.session.query(Draft).order_by(Draft.created_at.desc(), Draft.id.desc()).all()


def get_draft(draft_id: int) -> Draft:
    draft = db.session.get(Draft, draft_id)
    if not draft:
        raise DraftNotFoundError(f"Draft {draft_id} not found")
    return draft


def create_draft(*, payload: dict, user: User) -> Draft:
    fields = _draft_fields(payload)
    if not fields.get("name"):
        raise DraftValidationError("name is required")

    draft = Draft(created_by_user_id=user.id, **fields)
    draft.lines = _build_lines(payload.get("items", []))

    db.session.add(draft)
    db.session.commit()
    return draft


def update_draft(*, draft_id: int, payload: dict) -> Draft:
    """Replace the supplied fields; "items" replaces every line."""
    draft = get_draft(draft_id)

    fields = _draft_fields(payload)
    if "name" in fields and not fields["name"]:
        raise DraftValidationError("name cannot be blank")

    lines = _build_lines(payload["items"]) if "items" in payload else None

    for k, value in fields.items():
        setattr(draft, k, value)
    if lines is not None:
        draft.lines = lines

    db.session.commit()
    return draft


def delete_draft(*, draft_id: int) -> None:
    draft = get_draft(draft_id)
    db.session.delete(draft)
    db.session.commit()
