# Overview: Payload validation for catalog and supplier writes; column-driven coercion plus business rules.

"""
Request payload validation.

A WritePolicy names the model a payload targets, which columns clients may
write, which are required on create, and an optional rule hook for checks
the column metadata cannot express (price ranges, enumerations).

Column types drive coercion:
- Integer: strict (no bools, floats, "12.5" or "1e3")
- Boolean: JSON true/false only
- DateTime: ISO-8601, normalized to naive UTC
- String/Text: stripped; blank rejected when the column is NOT NULL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text

from fashionhub.time_utils import parse_iso_datetime


# 9,999,999.99 in rupees
MAX_PRICE_CENTS = 999_999_999
MAX_STOCK = 1_000_000

GENDERS = {"Men", "Women", "Unisex", "Kids"}
SUPPLIER_STATUSES = {"active", "inactive"}

PERCENT_FIELDS = ("discount_percent", "max_discount_for_sales", "max_discount_for_admin")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level uniqueness or in-use conflict (duplicate barcode, supplier with orders)."""


@dataclass(frozen=True)
class WritePolicy:
    model: type
    writable_fields: frozenset
    required_on_create: frozenset = frozenset()
    rules: Optional[Callable[[dict], None]] = field(default=None, compare=False)


def coerce_int(value: Any, field: str) -> int:
    """Strict integer coercion shared by payload validation and route parsing."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be an integer")

    text = value.strip()
    if "." in text:
        raise ValidationError(f"{field} must be an integer (no decimals)")
    if "e" in text.lower():
        raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
    try:
        return int(text)
    except ValueError:
        raise ValidationError(f"{field} must be an integer")


def coerce_datetime(value: Any, field: str) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a datetime")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")


def _coerce_column(column, value: Any):
    kind = column.type
    name = column.key

    if isinstance(kind, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{name} must be true or false")
        return value

    if isinstance(kind, Integer):
        return coerce_int(value, name)

    if isinstance(kind, DateTime):
        parsed = coerce_datetime(value, name)
        if parsed is None:
            raise ValidationError(f"{name} must be an ISO-8601 datetime")
        return parsed

    if isinstance(kind, (String, Text)):
        text = str(value).strip()
        if not text and not column.nullable:
            raise ValidationError(f"{name} cannot be blank")
        limit = getattr(kind, "length", None)
        if limit and len(text) > limit:
            raise ValidationError(f"{name} exceeds max length {limit}")
        return text

    return value


def validate_payload(payload: Any, policy: WritePolicy, *, partial: bool) -> dict:
    """
    Return a cleaned patch containing only writable, coerced fields.

    partial=False applies create semantics (required fields enforced);
    partial=True validates only the keys present.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(policy.required_on_create - payload.keys())
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in policy.model.__mapper__.columns}
    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    patch: dict = {}
    for key, raw in payload.items():
        column = columns[key]
        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
        else:
            patch[key] = _coerce_column(column, raw)

    if policy.rules:
        policy.rules(patch)
    return patch


def _require_range(patch: dict, key: str, low: int, high: int | None = None) -> None:
    value = patch.get(key)
    if value is None:
        return
    if value < low:
        raise ValidationError(f"{key} must be >= {low}")
    if high is not None and value > high:
        raise ValidationError(f"{key} cannot exceed {high}")


def product_rules(patch: dict) -> None:
    _require_range(patch, "price_cents", 0, MAX_PRICE_CENTS)
    _require_range(patch, "stock", 0, MAX_STOCK)
    _require_range(patch, "min_stock", 0)

    for key in PERCENT_FIELDS:
        value = patch.get(key)
        if value is not None and not 0 <= value <= 100:
            raise ValidationError(f"{key} must be between 0 and 100")

    gender = patch.get("gender")
    if gender is not None and gender not in GENDERS:
        raise ValidationError(f"gender must be one of: {', '.join(sorted(GENDERS))}")


def supplier_rules(patch: dict) -> None:
    if "status" in patch and patch["status"] not in SUPPLIER_STATUSES:
        raise ValidationError("status must be 'active' or 'inactive'")
    email = patch.get("email")
    if email and "@" not in email:
        raise ValidationError("email is not valid")
