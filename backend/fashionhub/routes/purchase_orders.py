# Overview: Flask API routes for purchase order operations; parses input and returns JSON responses.

"""
Purchase Order Routes

SECURITY: All routes require an authenticated admin.

Lifecycle endpoints:
- PATCH /<id>/receive: pending -> received, adds line quantities to stock
- PATCH /<id>/cancel: pending -> cancelled, stock untouched
- POST /<id>/payments: record a supplier payment
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from ..models.auth import ROLE_ADMIN
from ..services import purchase_order_service
from ..services.purchase_order_service import (
    PurchaseOrderNotFoundError,
    PurchaseOrderValidationError,
    PurchaseOrderStateError,
    PurchaseOrderReceiptError,
)
from ..validation import coerce_datetime, coerce_int, ValidationError


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")

UPDATABLE_FIELDS = {"supplier_id", "items", "notes", "expected_delivery", "paid_amount_cents"}


@purchase_orders_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_purchase_orders_route():
    """
    List purchase orders, newest first.

    Query parameters:
    - status: pending, received or cancelled
    - supplier_id: Filter by supplier
    """
    status = request.args.get("status")
    supplier_id = request.args.get("supplier_id")

    try:
        if supplier_id is not None:
            supplier_id = coerce_int(supplier_id, "supplier_id")
        orders = purchase_order_service.list_purchase_orders(status=status, supplier_id=supplier_id)
    except (ValidationError, PurchaseOrderValidationError) as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "items": [o.to_dict() for o in orders],
        "count": len(orders),
    })


@purchase_orders_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_purchase_order_route():
    """
    Create a purchase order.

    Request body:
    {
        "supplier_id": 1,                      // required
        "items": [                             // required, non-empty
            {"product_id": 1, "quantity": 10, "unit_price_cents": 45000,
             "size": "M", "color": "Blue"}
        ],
        "expected_delivery": "2024-02-01",     // optional, ISO-8601
        "paid_amount_cents": 0,                // optional
        "notes": "..."                         // optional
    }
    """
    data = request.get_json(silent=True) or {}

    supplier_id = data.get("supplier_id")
    if not supplier_id:
        return jsonify({"error": "supplier_id is required"}), 400

    try:
        supplier_id = coerce_int(supplier_id, "supplier_id")
        expected_delivery = coerce_datetime(data.get("expected_delivery"), "expected_delivery")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        order = purchase_order_service.create_purchase_order(
            supplier_id=supplier_id,
            items=data.get("items"),
            expected_delivery=expected_delivery,
            notes=data.get("notes"),
            paid_amount_cents=data.get("paid_amount_cents", 0),
            created_by_user_id=g.current_user.id,
        )
        return jsonify(order.to_dict()), 201
    except PurchaseOrderValidationError as e:
        return jsonify({"error": str(e)}), 400


@purchase_orders_bp.get("/<int:order_id>")
@require_auth
@require_role(ROLE_ADMIN)
def get_purchase_order_route(order_id: int):
    try:
        order = purchase_order_service.get_purchase_order(order_id)
    except PurchaseOrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(order.to_dict())


@purchase_orders_bp.put("/<int:order_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_purchase_order_route(order_id: int):
    """
    Update a purchase order.

    Lines and supplier can only change while the order is pending.
    Use the receive/cancel endpoints to change status.
    """
    data = request.get_json(silent=True) or {}

    unknown = sorted(set(data.keys()) - UPDATABLE_FIELDS)
    if unknown:
        return jsonify({"error": f"Field not allowed: {', '.join(unknown)}"}), 400

    patch = dict(data)
    try:
        if "expected_delivery" in patch:
            patch["expected_delivery"] = coerce_datetime(patch["expected_delivery"], "expected_delivery")
        if "supplier_id" in patch:
            patch["supplier_id"] = coerce_int(patch["supplier_id"], "supplier_id")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        order = purchase_order_service.update_purchase_order(order_id=order_id, patch=patch)
        return jsonify(order.to_dict())
    except PurchaseOrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PurchaseOrderStateError as e:
        return jsonify({"error": str(e)}), 409
    except PurchaseOrderValidationError as e:
        return jsonify({"error": str(e)}), 400


@purchase_orders_bp.delete("/<int:order_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_purchase_order_route(order_id: int):
    try:
        purchase_order_service.delete_purchase_order(order_id=order_id)
    except PurchaseOrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Purchase order deleted successfully"})


@purchase_orders_bp.patch("/<int:order_id>/receive")
@require_auth
@require_role(ROLE_ADMIN)
def receive_purchase_order_route(order_id: int):
    """
    Receive a purchase order: add every line's quantity to product stock.

    Returns:
    - 200: Updated order (status=received)
    - 404: Order not found
    - 400: Order already received or cancelled, or a line's product is gone
           (nothing is changed in either case)
    """
    try:
        order = purchase_order_service.receive_purchase_order(order_id)
        return jsonify({
            "message": "Purchase order received and stock updated",
            "purchase_order": order.to_dict(),
        })
    except PurchaseOrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PurchaseOrderStateError as e:
        return jsonify({"error": str(e)}), 400
    except PurchaseOrderReceiptError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to receive purchase order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


@purchase_orders_bp.patch("/<int:order_id>/cancel")
@require_auth
@require_role(ROLE_ADMIN)
def cancel_purchase_order_route(order_id: int):
    data = request.get_json(silent=True) or {}

    try:
        order = purchase_order_service.cancel_purchase_order(order_id, reason=data.get("reason"))
        return jsonify(order.to_dict())
    except PurchaseOrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PurchaseOrderStateError as e:
        return jsonify({"error": str(e)}), 400
    except PurchaseOrderValidationError as e:
        return jsonify({"error": str(e)}), 400


@purchase_orders_bp.post("/<int:order_id>/payments")
@require_auth
@require_role(ROLE_ADMIN)
def record_payment_route(order_id: int):
    """Request body: {"amount_cents": 5000}"""
    data = request.get_json(silent=True) or {}

    if "amount_cents" not in data:
        return jsonify({"error": "amount_cents is required"}), 400

    try:
        order = purchase_order_service.record_payment(order_id=order_id, amount_cents=data["amount_cents"])
        return jsonify(order.to_dict())
    except PurchaseOrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PurchaseOrderStateError as e:
        return jsonify({"error": str(e)}), 409
    except PurchaseOrderValidationError as e:
        return jsonify({"error": str(e)}), 400
