# Overview: Flask API routes for reports operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_reports_access
from ..services import reporting_service
from ..services.reporting_service import ReportError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/top-products")
@require_auth
@require_reports_access
def top_products_route():
    """
    Query parameters:
    - start, end: ISO-8601 (optional)
    - limit: int (default 10, max 100)
    """
    try:
        return jsonify(reporting_service.top_products(
            start=request.args.get("start"),
            end=request.args.get("end"),
            limit=request.args.get("limit", 10, type=int),
        ))
    except ReportError as e:
        return jsonify({"error": str(e)}), 400


@reports_bp.get("/inventory-summary")
@require_auth
@require_reports_access
def inventory_summary_route():
    return jsonify(reporting_service.inventory_summary())
