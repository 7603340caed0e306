# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations and manual stock updates: any staff member
- Create/update/delete: admin only
"""
from flask import Blueprint, request, jsonify

from ..services import products_service, stock_service
from ..services.stock_service import (
    ProductNotFoundError,
    InsufficientStockError,
    StockValidationError,
)
from ..models import Product
from ..models.auth import ROLE_ADMIN
from ..validation import (
    WritePolicy,
    validate_payload,
    product_rules,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_role

PRODUCT_POLICY = WritePolicy(
    model=Product,
    writable_fields=frozenset({
        "name", "barcode", "price_cents", "stock", "category", "min_stock",
        "description", "size", "color", "brand", "gender", "image",
        "discount_enabled", "discount_percent",
        "max_discount_for_sales", "max_discount_for_admin",
    }),
    required_on_create=frozenset({"name", "barcode", "price_cents", "category"}),
    rules=product_rules,
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List products with optional search and pagination.

    Query params:
    - search: str (optional) - matches name, barcode or brand
    - category: str (optional)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return products_service.list_products(
        search=request.args.get("search"),
        category=request.args.get("category"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/low-stock")
@require_auth
def low_stock_route():
    products = stock_service.list_low_stock()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/barcode/<barcode>")
@require_auth
def product_by_barcode_route(barcode: str):
    product = products_service.find_by_barcode(barcode)
    if not product:
        return {"error": "Product not found"}, 404
    return product.to_dict()


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        return products_service.get_product(product_id).to_dict()
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404


@products_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload, PRODUCT_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload, PRODUCT_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except (StockValidationError, InsufficientStockError) as e:
        return {"error": str(e)}, 400

    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id=product_id)
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404
    return {"message": "Product deleted successfully"}, 200


@products_bp.patch("/<int:product_id>/stock")
@require_auth
def update_stock_route(product_id: int):
    """
    Manual stock update.

    Request body:
    {
        "quantity": 5,
        "operation": "add" | "subtract" | "set"   // default "set"
    }

    A subtract that would leave stock negative is rejected with 400.
    """
    data = request.get_json(silent=True) or {}

    if "quantity" not in data:
        return jsonify({"error": "quantity is required"}), 400

    try:
        product = stock_service.update_stock(
            product_id,
            data["quantity"],
            data.get("operation", "set"),
        )
        return jsonify(product.to_dict())
    except ProductNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except StockValidationError as e:
        return jsonify({"error": str(e)}), 400
