# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales (POS checkout) routes.

SECURITY: All routes require authentication.
- A salesPerson only sees their own sales
- Stats require admin or the can_view_reports permission
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_reports_access
from ..services import sales_service, reporting_service
from ..services.sales_service import SaleError, SaleNotFoundError
from ..services.stock_service import InsufficientStockError
from ..services.reporting_service import ReportError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales_route():
    sales = sales_service.list_sales(g.current_user)
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)})


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Check out a cart.

    Request body:
    {
        "items": [{"product_id": 1, "quantity": 2, "discount_percent": 5}],
        "payment_method": "CASH",       // CASH, CREDIT_CARD, DEBIT_CARD, UPI
        "card_last4": "4242",           // optional, cards only
        "upi_transaction_id": "...",    // optional, UPI only
        "customer_name": "...",         // optional
        "customer_phone": "..."         // optional
    }

    Returns:
    - 201: Created sale with invoice number and totals
    - 400: Invalid cart, unknown product, discount above cap, or insufficient stock
    """
    data = request.get_json(silent=True) or {}

    try:
        sale = sales_service.create_sale(
            user=g.current_user,
            items=data.get("items"),
            payment_method=data.get("payment_method"),
            card_last4=data.get("card_last4"),
            upi_transaction_id=data.get("upi_transaction_id"),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
        )
        return jsonify(sale.to_dict()), 201
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except SaleError as e:
        body = {"error": str(e)}
        if e.details:
            body["details"] = e.details
        return jsonify(body), 400
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/stats")
@require_auth
@require_reports_access
def sales_stats_route():
    """
    Query parameters:
    - start: ISO-8601 (optional)
    - end: ISO-8601 (optional)
    """
    try:
        return jsonify(reporting_service.sales_stats(
            start=request.args.get("start"),
            end=request.args.get("end"),
        ))
    except ReportError as e:
        return jsonify({"error": str(e)}), 400


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except SaleNotFoundError as e:
        return jsonify({"error": str(e)}), 404

    user = g.current_user
    if not user.is_admin and sale.sales_person_id != user.id:
        return jsonify({"error": f"Sale {sale_id} not found"}), 404

    return jsonify(sale.to_dict())
