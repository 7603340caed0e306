# Overview: Flask API routes for draft cart operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..services import draft_service
from ..services.draft_service import DraftNotFoundError, DraftValidationError


drafts_bp = Blueprint("drafts", __name__, url_prefix="/api/drafts")


@drafts_bp.get("")
@require_auth
def list_drafts_route():
    drafts = draft_service.list_drafts()
    return jsonify({"items": [d.to_dict() for d in drafts], "count": len(drafts)})


@drafts_bp.post("")
@require_auth
def create_draft_route():
    """
    Request body:
    {
        "name": "Table 4",                        // required
        "items": [{"product_id": 1, "quantity": 2, "discount_percent": 0}],
        "customer_name": "...", "customer_phone": "...", "notes": "..."
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        draft = draft_service.create_draft(payload=data, user=g.current_user)
        return jsonify(draft.to_dict()), 201
    except DraftValidationError as e:
        return jsonify({"error": str(e)}), 400


@drafts_bp.get("/<int:draft_id>")
@require_auth
def get_draft_route(draft_id: int):
    try:
        return jsonify(draft_service.get_draft(draft_id).to_dict())
    except DraftNotFoundError as e:
        return jsonify({"error": str(e)}), 404


@drafts_bp.put("/<int:draft_id>")
@require_auth
def update_draft_route(draft_id: int):
    data = request.get_json(silent=True) or {}
    try:
        draft = draft_service.update_draft(draft_id=draft_id, payload=data)
        return jsonify(draft.to_dict())
    except DraftNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except DraftValidationError as e:
        return jsonify({"error": str(e)}), 400


@drafts_bp.delete("/<int:draft_id>")
@require_auth
def delete_draft_route(draft_id: int):
    try:
        draft_service.delete_draft(draft_id=draft_id)
    except DraftNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Draft deleted successfully"})
