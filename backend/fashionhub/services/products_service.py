# backend/fashionhub/services/products_service.py
"""
Product Store

Catalog CRUD with barcode uniqueness. Stock may be given on create and
corrected on update, but every change after creation goes through
stock_service so the non-negative invariant and atomic update hold.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_

from ..extensions import db
from ..models import Product
from ..validation import ConflictError
from .stock_service import ProductNotFoundError, set_stock

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name", "barcode", "price_cents", "category", "min_stock",
    "description", "size", "color", "brand", "gender", "image",
    "discount_enabled", "discount_percent",
    "max_discount_for_sales", "max_discount_for_admin",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _ensure_barcode_available(barcode: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter(Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("Barcode already exists.")


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def list_products(
    *,
    search: str | None = None,
    category: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional search and pagination.

    Args:
        search: Case-insensitive match on name, barcode or brand
        category: Exact category filter
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product)

    if search:
        pattern = f"%{search.strip()}%"
        base_query = base_query.filter(
            or_(
                Product.name.ilike(pattern),
                Product.barcode.ilike(pattern),
                Product.brand.ilike(pattern),
            )
        )
    if category:
        base_query = base_query.filter(Product.category == category)

    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def find_by_barcode(barcode: str) -> Product | None:
    return db.session.query(Product).filter_by(barcode=barcode.strip()).first()


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If barcode already exists
    """
    _ensure_barcode_available(patch["barcode"])

    p = Product(stock=patch.get("stock") or 0)
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.commit()

    logger.info("Product created id=%s barcode=%s", p.id, p.barcode)
    return p


def update_product(*, product_id: int, patch: dict) -> Product:
    """
    Update a product.

    A "stock" key is treated as an absolute stock correction.

    Raises:
        ProductNotFoundError: If product not found
        ConflictError: If new barcode already exists
    """
    p = get_product(product_id)

    if "barcode" in patch and patch["barcode"] != p.barcode:
        _ensure_barcode_available(patch["barcode"], exclude_id=p.id)

    apply_product_patch(p, patch)

    if "stock" in patch:
        set_stock(p.id, patch["stock"], commit=False)

    db.session.commit()
    return p


def delete_product(*, product_id: int) -> None:
    """
    Hard-delete a product.

    Purchase order, sale and draft lines keep their product_name snapshot;
    their product_id becomes a dangling weak reference.
    """
    p = get_product(product_id)
    db.session.delete(p)
    db.session.commit()
    logger.info("Product deleted id=%s", product_id)
